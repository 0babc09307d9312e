# /app/services/transaction_service.py

"""
Loans: direct borrowing at the desk, returns, and the periodic overdue sweep.

Missing books or users raise `LookupError`, acting on someone else's loan
raises `PermissionError`, and other rule violations raise `ValueError`.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from app.core.clock import utcnow
from app.core.config import settings
from app.core.deps import is_staff
from app.db.models.circulation_models import Transaction
from app.db.models.user_models import User
from ..models.circulation_model import ACTIVE_TRANSACTION_STATUSES, TransactionStatus
from ..models.notification_model import NotificationType
from .database_service import DatabaseService
from . import notification_service

logger = logging.getLogger(__name__)


def default_due_date(now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) + timedelta(days=settings.loan_period_days)


def new_loan_record(user_id: str, book_id: str, due_date: datetime, now: datetime) -> Dict:
    return {
        "id": f"txn_{uuid.uuid4().hex[:12]}",
        "user_id": user_id,
        "book_id": book_id,
        "borrowed_date": now,
        "due_date": due_date,
        "status": TransactionStatus.BORROWED.value,
    }


def get_all_transactions(db: DatabaseService) -> List[Transaction]:
    return db.get_all_transactions()


def get_active_transactions(db: DatabaseService) -> List[Transaction]:
    return db.get_active_transactions()


def get_user_transactions(user_id: str, acting_user: User, db: DatabaseService) -> List[Transaction]:
    if acting_user.id != user_id and not is_staff(acting_user):
        raise PermissionError("You can only view your own transactions")
    return db.get_transactions_by_user(user_id)


def borrow_book(book_id: str, user_id: str, db: DatabaseService,
                due_date: Optional[datetime] = None) -> Transaction:
    """Lends a copy of `book_id` to `user_id` directly from the desk."""
    book = db.get_book_by_id(book_id)
    if not book:
        raise LookupError("Book not found")
    borrower = db.get_user_by_id(user_id)
    if not borrower:
        raise LookupError("User not found")

    now = utcnow()
    due_date = due_date or default_due_date(now)
    if due_date <= now:
        raise ValueError("Due date must be in the future")

    transaction = db.create_loan(new_loan_record(user_id, book_id, due_date, now))
    if transaction is None:
        raise ValueError("No copies of this book are available")

    notification_service.notify(
        db, user_id, NotificationType.BOOK_BORROWED,
        "Book Borrowed",
        f'You have borrowed "{book.title}". Please return it by {due_date:%Y-%m-%d}.',
    )
    logger.info("Loan %s: %s -> %s", transaction.id, book_id, user_id)
    return transaction


def return_book(transaction_id: str, acting_user: User, db: DatabaseService) -> Optional[Transaction]:
    transaction = db.get_transaction_by_id(transaction_id)
    if not transaction:
        return None
    if transaction.user_id != acting_user.id and not is_staff(acting_user):
        raise PermissionError("You can only return your own books")
    if transaction.status not in ACTIVE_TRANSACTION_STATUSES:
        raise ValueError("This book has already been returned")

    transaction = db.close_loan(transaction, utcnow())
    notification_service.notify(
        db, transaction.user_id, NotificationType.BOOK_RETURNED,
        "Book Returned",
        f'Thank you for returning "{transaction.book.title}".',
    )
    logger.info("Loan %s returned", transaction.id)
    return transaction


def run_overdue_sweep(db: DatabaseService, now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Flags BORROWED loans past their due date as OVERDUE and sends a one-off
    reminder for loans due within the due-soon window.
    """
    now = now or utcnow()

    overdue = db.get_newly_overdue_transactions(now)
    for transaction in overdue:
        notification_service.notify(
            db, transaction.user_id, NotificationType.BOOK_OVERDUE,
            "Book Overdue",
            f'"{transaction.book.title}" was due on {transaction.due_date:%Y-%m-%d}. '
            "Please return it as soon as possible.",
        )
    if overdue:
        db.update_transactions(overdue, {"status": TransactionStatus.OVERDUE.value})

    due_soon = db.get_due_soon_transactions(now, now + timedelta(days=settings.due_soon_days))
    for transaction in due_soon:
        notification_service.notify(
            db, transaction.user_id, NotificationType.BOOK_DUE_SOON,
            "Book Due Soon",
            f'"{transaction.book.title}" is due on {transaction.due_date:%Y-%m-%d}.',
        )
    if due_soon:
        db.update_transactions(due_soon, {"reminder_sent_at": now})

    if overdue or due_soon:
        logger.info("Overdue sweep: %d newly overdue, %d due-soon reminders", len(overdue), len(due_soon))
    return {"marked_overdue": len(overdue), "due_soon_reminders": len(due_soon)}
