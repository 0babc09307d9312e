# /app/services/request_service.py

"""
Student-initiated requests that librarians approve or reject:

- book requests, which become loans when approved;
- extension requests, which move the due date of an active loan.

Conventions match `transaction_service`: `None` for a missing request,
`LookupError` for a missing related record, `PermissionError` for acting on
someone else's loan, `ValueError` for everything else.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from app.core.clock import utcnow
from app.core.config import settings
from app.db.models.circulation_models import BookRequest, ExtensionRequest, Transaction
from app.db.models.user_models import User
from ..models.circulation_model import (
    ACTIVE_TRANSACTION_STATUSES,
    BookRequestCreate,
    BookRequestStatus,
    ExtensionRequestCreate,
    ExtensionRequestStatus,
)
from ..models.notification_model import NotificationType
from ..models.user_model import Role
from .database_service import DatabaseService
from . import notification_service, transaction_service

logger = logging.getLogger(__name__)


# --- Book Requests ---

def create_book_request(request: BookRequestCreate, user: User, db: DatabaseService) -> BookRequest:
    if user.role != Role.STUDENT.value:
        raise PermissionError("Only students can request books")
    book = db.get_book_by_id(request.book_id)
    if not book:
        raise LookupError("Book not found")
    if db.find_pending_book_request(user.id, book.id):
        raise ValueError("You already have a pending request for this book")

    new_request = db.add_book_request({
        "id": f"breq_{uuid.uuid4().hex[:12]}",
        "user_id": user.id,
        "book_id": book.id,
        "requested_by": user.full_name,
        "notes": request.notes,
        "request_date": utcnow(),
        "status": BookRequestStatus.PENDING.value,
    })
    logger.info("Book request %s by %s for %s", new_request.id, user.username, book.id)
    return db.get_book_request_by_id(new_request.id)


def get_my_book_requests(user: User, db: DatabaseService) -> List[BookRequest]:
    return db.get_book_requests_by_user(user.id)


def get_all_book_requests(db: DatabaseService) -> List[BookRequest]:
    return db.get_all_book_requests()


def get_pending_book_requests(db: DatabaseService) -> List[BookRequest]:
    return db.get_pending_book_requests()


def approve_book_request(request_id: str, librarian: User, db: DatabaseService,
                         due_date: Optional[datetime] = None) -> Optional[Transaction]:
    """Fulfils a pending request with a new loan and returns that loan."""
    book_request = db.get_book_request_by_id(request_id)
    if not book_request:
        return None
    if book_request.status != BookRequestStatus.PENDING.value:
        raise ValueError(f"Request is already {book_request.status.lower()}")

    now = utcnow()
    due_date = due_date or transaction_service.default_due_date(now)
    if due_date <= now:
        raise ValueError("Due date must be in the future")

    book_title = book_request.book.title
    record = transaction_service.new_loan_record(book_request.user_id, book_request.book_id, due_date, now)
    transaction = db.fulfil_book_request(book_request, record, processed_by=librarian.id, processed_date=now)
    if transaction is None:
        raise ValueError("No copies of this book are available")

    notification_service.notify(
        db, transaction.user_id, NotificationType.BOOK_REQUEST_APPROVED,
        "Book Request Approved",
        f'Your request for "{book_title}" was approved. Please return it by {due_date:%Y-%m-%d}.',
    )
    logger.info("Book request %s approved by %s", request_id, librarian.username)
    return transaction


def reject_book_request(request_id: str, librarian: User, db: DatabaseService) -> Optional[BookRequest]:
    book_request = db.get_book_request_by_id(request_id)
    if not book_request:
        return None
    if book_request.status != BookRequestStatus.PENDING.value:
        raise ValueError(f"Request is already {book_request.status.lower()}")

    updated = db.update_book_request(request_id, {
        "status": BookRequestStatus.REJECTED.value,
        "processed_by": librarian.id,
        "processed_date": utcnow(),
    })
    notification_service.notify(
        db, updated.user_id, NotificationType.BOOK_REQUEST_REJECTED,
        "Book Request Rejected",
        f'Your request for "{updated.book.title}" was not approved.',
    )
    return updated


# --- Extension Requests ---

def create_extension_request(request: ExtensionRequestCreate, user: User,
                             db: DatabaseService) -> ExtensionRequest:
    transaction = db.get_transaction_by_id(request.transaction_id)
    if not transaction:
        raise LookupError("Transaction not found")
    if transaction.user_id != user.id:
        raise PermissionError("You can only extend your own loans")
    if transaction.status not in ACTIVE_TRANSACTION_STATUSES:
        raise ValueError("Only active loans can be extended")
    if db.find_pending_extension_request(transaction.id):
        raise ValueError("An extension request for this loan is already pending")
    if request.requested_due_date and request.requested_due_date <= transaction.due_date:
        raise ValueError("Requested due date must be after the current due date")

    new_request = db.add_extension_request({
        "id": f"ext_{uuid.uuid4().hex[:12]}",
        "user_id": user.id,
        "transaction_id": transaction.id,
        "request_date": utcnow(),
        "requested_due_date": request.requested_due_date,
        "reason": request.reason,
        "status": ExtensionRequestStatus.PENDING.value,
    })
    return db.get_extension_request_by_id(new_request.id)


def get_my_extension_requests(user: User, db: DatabaseService) -> List[ExtensionRequest]:
    return db.get_extension_requests_by_user(user.id)


def get_all_extension_requests(db: DatabaseService) -> List[ExtensionRequest]:
    return db.get_all_extension_requests()


def get_pending_extension_requests(db: DatabaseService) -> List[ExtensionRequest]:
    return db.get_pending_extension_requests()


def approve_extension_request(request_id: str, librarian: User, db: DatabaseService,
                              custom_due_date: Optional[datetime] = None) -> Optional[ExtensionRequest]:
    extension = db.get_extension_request_by_id(request_id)
    if not extension:
        return None
    if extension.status != ExtensionRequestStatus.PENDING.value:
        raise ValueError(f"Request is already {extension.status.lower()}")

    transaction = extension.transaction
    if transaction.status not in ACTIVE_TRANSACTION_STATUSES:
        raise ValueError("The loan has already been closed")

    new_due_date = (
        custom_due_date
        or extension.requested_due_date
        or transaction.due_date + timedelta(days=settings.extension_days)
    )
    if new_due_date <= transaction.due_date:
        raise ValueError("New due date must be after the current due date")

    now = utcnow()
    book_title = transaction.book.title
    updated = db.apply_extension(extension, new_due_date, processed_by=librarian.id, processed_date=now, now=now)
    notification_service.notify(
        db, updated.user_id, NotificationType.EXTENSION_REQUEST_APPROVED,
        "Extension Approved",
        f'The due date for "{book_title}" is now {new_due_date:%Y-%m-%d}.',
    )
    return db.get_extension_request_by_id(request_id)


def reject_extension_request(request_id: str, librarian: User,
                             db: DatabaseService) -> Optional[ExtensionRequest]:
    extension = db.get_extension_request_by_id(request_id)
    if not extension:
        return None
    if extension.status != ExtensionRequestStatus.PENDING.value:
        raise ValueError(f"Request is already {extension.status.lower()}")

    book_title = extension.transaction.book.title
    updated = db.update_extension_request(request_id, {
        "status": ExtensionRequestStatus.REJECTED.value,
        "processed_by": librarian.id,
        "processed_date": utcnow(),
    })
    notification_service.notify(
        db, updated.user_id, NotificationType.EXTENSION_REQUEST_REJECTED,
        "Extension Rejected",
        f'Your extension request for "{book_title}" was not approved.',
    )
    return db.get_extension_request_by_id(request_id)
