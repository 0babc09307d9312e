# /app/models/circulation_model.py

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .base_model import APIModel, UTCDateTime
from .book_model import BookSummary
from .user_model import UserSummary


# --- Core Enumerations ---
class TransactionStatus(str, Enum):
    BORROWED = "BORROWED"
    RETURNED = "RETURNED"
    OVERDUE = "OVERDUE"


ACTIVE_TRANSACTION_STATUSES = (TransactionStatus.BORROWED.value, TransactionStatus.OVERDUE.value)


class BookRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FULFILLED = "FULFILLED"


class ExtensionRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# --- Transactions ---
class BorrowRequest(APIModel):
    book_id: str
    user_id: str
    due_date: Optional[UTCDateTime] = None


class Transaction(APIModel):
    id: str
    user_id: str
    book_id: str
    borrowed_date: datetime
    due_date: datetime
    returned_date: Optional[datetime] = None
    status: TransactionStatus
    user: Optional[UserSummary] = None
    book: Optional[BookSummary] = None


class OverdueSweepResult(APIModel):
    marked_overdue: int
    due_soon_reminders: int


# --- Book requests ---
class BookRequestCreate(APIModel):
    book_id: str = Field(..., min_length=1)
    notes: Optional[str] = None


class BookRequest(APIModel):
    id: str
    user_id: str
    book_id: str
    requested_by: str
    notes: Optional[str] = None
    request_date: datetime
    status: BookRequestStatus
    processed_by: Optional[str] = None
    processed_date: Optional[datetime] = None
    transaction_id: Optional[str] = None
    user: Optional[UserSummary] = None
    book: Optional[BookSummary] = None


class ApproveBookRequest(APIModel):
    due_date: Optional[UTCDateTime] = None


# --- Extension requests ---
class ExtensionRequestCreate(APIModel):
    transaction_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)
    requested_due_date: Optional[UTCDateTime] = None


class ExtensionRequest(APIModel):
    id: str
    user_id: str
    transaction_id: str
    request_date: datetime
    requested_due_date: Optional[datetime] = None
    reason: str
    status: ExtensionRequestStatus
    processed_by: Optional[str] = None
    processed_date: Optional[datetime] = None
    user: Optional[UserSummary] = None
    transaction: Optional[Transaction] = None


class ApproveExtension(APIModel):
    custom_due_date: Optional[UTCDateTime] = None
