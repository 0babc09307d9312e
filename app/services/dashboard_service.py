# /app/services/dashboard_service.py

import logging

from ..models.circulation_model import BookRequestStatus, ExtensionRequestStatus, TransactionStatus
from ..models.dashboard_model import DashboardSummary
from ..models.user_model import Role
from .database_service import DatabaseService

logger = logging.getLogger(__name__)


def get_summary_data(db: DatabaseService) -> DashboardSummary:
    """
    Aggregates the headline counts for the staff dashboard.

    Every figure is a COUNT/SUM query; no rows are loaded.
    """
    try:
        inventory = db.get_inventory_totals()
        return DashboardSummary(
            total_books=inventory["titles"],
            total_copies=inventory["copies"],
            available_copies=inventory["available"],
            total_users=db.count_users(),
            total_students=db.count_users(Role.STUDENT.value),
            active_loans=db.count_active_transactions(),
            overdue_loans=db.count_transactions_by_status(TransactionStatus.OVERDUE.value),
            pending_book_requests=db.count_book_requests_by_status(BookRequestStatus.PENDING.value),
            pending_extension_requests=db.count_extension_requests_by_status(ExtensionRequestStatus.PENDING.value),
        )
    except Exception as e:
        logger.error("Failed to calculate dashboard summary: %s", e)
        raise
