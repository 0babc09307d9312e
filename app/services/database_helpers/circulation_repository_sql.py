# /app/services/database_helpers/circulation_repository_sql.py

"""
Raw SQLAlchemy queries for loans (`transactions`), borrow requests
(`bookrequests`) and extension requests (`extensionrequests`).

The workflow methods at the bottom (`create_loan`, `close_loan`,
`fulfil_book_request`, `apply_extension`) change several rows at once and
commit them together; a loan is only recorded if a copy could be reserved.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.db.models.circulation_models import BookRequest, ExtensionRequest, Transaction
from app.models.circulation_model import (
    ACTIVE_TRANSACTION_STATUSES,
    BookRequestStatus,
    ExtensionRequestStatus,
    TransactionStatus,
)
from .book_repository_sql import BookRepositorySQL


class CirculationRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session
        self.books = BookRepositorySQL(db_session)

    def _transactions(self):
        return self.db.query(Transaction).options(
            joinedload(Transaction.user), joinedload(Transaction.book)
        )

    # --- Transaction Methods ---

    def get_transaction_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return self._transactions().filter(Transaction.id == transaction_id).first()

    def get_all_transactions(self) -> List[Transaction]:
        return self._transactions().order_by(Transaction.borrowed_date.desc()).all()

    def get_active_transactions(self) -> List[Transaction]:
        return (
            self._transactions()
            .filter(Transaction.status.in_(ACTIVE_TRANSACTION_STATUSES))
            .order_by(Transaction.due_date.asc())
            .all()
        )

    def get_transactions_by_user(self, user_id: str) -> List[Transaction]:
        return (
            self._transactions()
            .filter(Transaction.user_id == user_id)
            .order_by(Transaction.borrowed_date.desc())
            .all()
        )

    def get_transactions_by_book(self, book_id: str) -> List[Transaction]:
        return self.db.query(Transaction).filter(Transaction.book_id == book_id).all()

    def count_active_transactions(self, user_id: Optional[str] = None, book_id: Optional[str] = None) -> int:
        query = self.db.query(func.count(Transaction.id)).filter(
            Transaction.status.in_(ACTIVE_TRANSACTION_STATUSES)
        )
        if user_id:
            query = query.filter(Transaction.user_id == user_id)
        if book_id:
            query = query.filter(Transaction.book_id == book_id)
        return query.scalar() or 0

    def count_transactions_by_status(self, status: str) -> int:
        return self.db.query(func.count(Transaction.id)).filter(Transaction.status == status).scalar() or 0

    def get_newly_overdue_transactions(self, now: datetime) -> List[Transaction]:
        """BORROWED loans whose due date has passed."""
        return (
            self._transactions()
            .filter(Transaction.status == TransactionStatus.BORROWED.value, Transaction.due_date < now)
            .all()
        )

    def get_due_soon_transactions(self, now: datetime, horizon: datetime) -> List[Transaction]:
        """BORROWED loans due before `horizon` that have not been reminded yet."""
        return (
            self._transactions()
            .filter(
                Transaction.status == TransactionStatus.BORROWED.value,
                Transaction.due_date >= now,
                Transaction.due_date <= horizon,
                Transaction.reminder_sent_at.is_(None),
            )
            .all()
        )

    def update_transactions(self, transactions: List[Transaction], data: Dict) -> int:
        for db_transaction in transactions:
            for key, value in data.items():
                setattr(db_transaction, key, value)
        self.db.commit()
        return len(transactions)

    # --- Book Request Methods ---

    def _book_requests(self):
        return self.db.query(BookRequest).options(
            joinedload(BookRequest.user), joinedload(BookRequest.book)
        )

    def add_book_request(self, record: Dict) -> BookRequest:
        new_request = BookRequest(**record)
        self.db.add(new_request)
        self.db.commit()
        self.db.refresh(new_request)
        return new_request

    def get_book_request_by_id(self, request_id: str) -> Optional[BookRequest]:
        return self._book_requests().filter(BookRequest.id == request_id).first()

    def get_book_requests_by_user(self, user_id: str) -> List[BookRequest]:
        return (
            self._book_requests()
            .filter(BookRequest.user_id == user_id)
            .order_by(BookRequest.request_date.desc())
            .all()
        )

    def get_all_book_requests(self) -> List[BookRequest]:
        return self._book_requests().order_by(BookRequest.request_date.desc()).all()

    def get_pending_book_requests(self) -> List[BookRequest]:
        return (
            self._book_requests()
            .filter(BookRequest.status == BookRequestStatus.PENDING.value)
            .order_by(BookRequest.request_date.asc())
            .all()
        )

    def find_pending_book_request(self, user_id: str, book_id: str) -> Optional[BookRequest]:
        return (
            self.db.query(BookRequest)
            .filter(
                BookRequest.user_id == user_id,
                BookRequest.book_id == book_id,
                BookRequest.status == BookRequestStatus.PENDING.value,
            )
            .first()
        )

    def count_book_requests_by_status(self, status: str) -> int:
        return self.db.query(func.count(BookRequest.id)).filter(BookRequest.status == status).scalar() or 0

    def update_book_request(self, request_id: str, data: Dict) -> Optional[BookRequest]:
        db_request = self.get_book_request_by_id(request_id)
        if db_request:
            for key, value in data.items():
                setattr(db_request, key, value)
            self.db.commit()
            self.db.refresh(db_request)
        return db_request

    # --- Extension Request Methods ---

    def _extension_requests(self):
        return self.db.query(ExtensionRequest).options(
            joinedload(ExtensionRequest.user),
            joinedload(ExtensionRequest.transaction).joinedload(Transaction.book),
        )

    def add_extension_request(self, record: Dict) -> ExtensionRequest:
        new_request = ExtensionRequest(**record)
        self.db.add(new_request)
        self.db.commit()
        self.db.refresh(new_request)
        return new_request

    def get_extension_request_by_id(self, request_id: str) -> Optional[ExtensionRequest]:
        return self._extension_requests().filter(ExtensionRequest.id == request_id).first()

    def get_extension_requests_by_user(self, user_id: str) -> List[ExtensionRequest]:
        return (
            self._extension_requests()
            .filter(ExtensionRequest.user_id == user_id)
            .order_by(ExtensionRequest.request_date.desc())
            .all()
        )

    def get_all_extension_requests(self) -> List[ExtensionRequest]:
        return self._extension_requests().order_by(ExtensionRequest.request_date.desc()).all()

    def get_pending_extension_requests(self) -> List[ExtensionRequest]:
        return (
            self._extension_requests()
            .filter(ExtensionRequest.status == ExtensionRequestStatus.PENDING.value)
            .order_by(ExtensionRequest.request_date.asc())
            .all()
        )

    def find_pending_extension_request(self, transaction_id: str) -> Optional[ExtensionRequest]:
        return (
            self.db.query(ExtensionRequest)
            .filter(
                ExtensionRequest.transaction_id == transaction_id,
                ExtensionRequest.status == ExtensionRequestStatus.PENDING.value,
            )
            .first()
        )

    def count_extension_requests_by_status(self, status: str) -> int:
        return (
            self.db.query(func.count(ExtensionRequest.id))
            .filter(ExtensionRequest.status == status)
            .scalar() or 0
        )

    def update_extension_request(self, request_id: str, data: Dict) -> Optional[ExtensionRequest]:
        db_request = self.get_extension_request_by_id(request_id)
        if db_request:
            for key, value in data.items():
                setattr(db_request, key, value)
            self.db.commit()
            self.db.refresh(db_request)
        return db_request

    # --- Workflow Methods ---

    def create_loan(self, record: Dict) -> Optional[Transaction]:
        """
        Reserves a copy of `record["book_id"]` and records the loan.
        Returns None if no copy was available.
        """
        if not self.books.adjust_availability(record["book_id"], -1, commit=False):
            self.db.rollback()
            return None
        new_transaction = Transaction(**record)
        self.db.add(new_transaction)
        self.db.commit()
        return self.get_transaction_by_id(new_transaction.id)

    def close_loan(self, transaction: Transaction, returned_date: datetime) -> Transaction:
        transaction.status = TransactionStatus.RETURNED.value
        transaction.returned_date = returned_date
        self.books.adjust_availability(transaction.book_id, 1, commit=False)
        self.db.commit()
        self.db.refresh(transaction)
        return transaction

    def fulfil_book_request(self, book_request: BookRequest, record: Dict, processed_by: str,
                            processed_date: datetime) -> Optional[Transaction]:
        """Turns a pending request into a loan. Returns None if no copy was available."""
        if not self.books.adjust_availability(book_request.book_id, -1, commit=False):
            self.db.rollback()
            return None
        new_transaction = Transaction(**record)
        self.db.add(new_transaction)
        book_request.status = BookRequestStatus.FULFILLED.value
        book_request.processed_by = processed_by
        book_request.processed_date = processed_date
        book_request.transaction_id = new_transaction.id
        self.db.commit()
        return self.get_transaction_by_id(new_transaction.id)

    def apply_extension(self, extension: ExtensionRequest, new_due_date: datetime, processed_by: str,
                        processed_date: datetime, now: datetime) -> ExtensionRequest:
        transaction = extension.transaction
        transaction.due_date = new_due_date
        transaction.reminder_sent_at = None
        if transaction.status == TransactionStatus.OVERDUE.value and new_due_date > now:
            transaction.status = TransactionStatus.BORROWED.value
        extension.status = ExtensionRequestStatus.APPROVED.value
        extension.processed_by = processed_by
        extension.processed_date = processed_date
        self.db.commit()
        self.db.refresh(extension)
        return extension

