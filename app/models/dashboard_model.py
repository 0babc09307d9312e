# /app/models/dashboard_model.py

from pydantic import Field

from .base_model import APIModel


class DashboardSummary(APIModel):
    """
    Headline numbers for the staff dashboard cards.
    """
    total_books: int = Field(..., description="Number of distinct catalogue titles.", examples=[240])
    total_copies: int = Field(..., examples=[615])
    available_copies: int = Field(..., examples=[480])
    total_users: int = Field(..., examples=[130])
    total_students: int = Field(..., examples=[118])
    active_loans: int = Field(..., description="Loans currently BORROWED or OVERDUE.", examples=[135])
    overdue_loans: int = Field(..., examples=[12])
    pending_book_requests: int = Field(..., examples=[7])
    pending_extension_requests: int = Field(..., examples=[3])
