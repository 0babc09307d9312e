# /app/services/database_service.py

"""
Single entry point to persistence for every service.

`DatabaseService` owns one SQLAlchemy session and delegates to the table-group
repositories in `database_helpers`. Services never build queries themselves.
"""

from datetime import datetime
from typing import Dict, Generator, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

# --- Core Database Setup ---
from app.db.database import get_db

# --- Repository Imports ---
from .database_helpers.user_repository_sql import UserRepositorySQL
from .database_helpers.book_repository_sql import BookRepositorySQL
from .database_helpers.circulation_repository_sql import CirculationRepositorySQL
from .database_helpers.notification_repository_sql import NotificationRepositorySQL
from .database_helpers.chat_repository_sql import ChatRepositorySQL
from .database_helpers.ai_repository_sql import AIRepositorySQL


class DatabaseService:
    def __init__(self, db_session: Session):
        if db_session is None:
            raise ValueError("A database session is required.")
        self.session = db_session
        self.user_repo = UserRepositorySQL(db_session)
        self.book_repo = BookRepositorySQL(db_session)
        self.circulation_repo = CirculationRepositorySQL(db_session)
        self.notification_repo = NotificationRepositorySQL(db_session)
        self.chat_repo = ChatRepositorySQL(db_session)
        self.ai_repo = AIRepositorySQL(db_session)

    # --- USER METHODS (DELEGATED) ---
    def get_user_by_id(self, user_id: str): return self.user_repo.get_user_by_id(user_id)
    def get_user_by_username(self, username: str): return self.user_repo.get_user_by_username(username)
    def get_user_by_email(self, email: str): return self.user_repo.get_user_by_email(email)
    def get_user_by_login(self, identifier: str): return self.user_repo.get_user_by_login(identifier)
    def get_user_by_student_id(self, student_id: str): return self.user_repo.get_user_by_student_id(student_id)
    def get_all_users(self) -> List: return self.user_repo.get_all_users()
    def get_users_by_role(self, role: str) -> List: return self.user_repo.get_users_by_role(role)
    def count_users(self, role: Optional[str] = None) -> int: return self.user_repo.count_users(role)
    def add_user(self, record: Dict): return self.user_repo.add_user(record)
    def update_user(self, user_id: str, data: Dict): return self.user_repo.update_user(user_id, data)
    def delete_user(self, user_id: str) -> bool: return self.user_repo.delete_user(user_id)

    # --- BOOK METHODS (DELEGATED) ---
    def get_book_by_id(self, book_id: str): return self.book_repo.get_book_by_id(book_id)
    def get_all_books(self) -> List: return self.book_repo.get_all_books()
    def get_available_books(self) -> List: return self.book_repo.get_available_books()
    def get_inventory_totals(self) -> Dict[str, int]: return self.book_repo.get_inventory_totals()
    def add_book(self, record: Dict): return self.book_repo.add_book(record)
    def add_books(self, records: List[Dict]) -> List: return self.book_repo.add_books(records)
    def update_book(self, book_id: str, data: Dict): return self.book_repo.update_book(book_id, data)
    def delete_book(self, book_id: str) -> bool: return self.book_repo.delete_book(book_id)
    def get_book_ai_content(self, book_id: str): return self.book_repo.get_book_ai_content(book_id)
    def save_book_ai_content(self, book_id: str, record: Dict): return self.book_repo.upsert_book_ai_content(book_id, record)

    # --- TRANSACTION METHODS (DELEGATED) ---
    def get_transaction_by_id(self, transaction_id: str): return self.circulation_repo.get_transaction_by_id(transaction_id)
    def get_all_transactions(self) -> List: return self.circulation_repo.get_all_transactions()
    def get_active_transactions(self) -> List: return self.circulation_repo.get_active_transactions()
    def get_transactions_by_user(self, user_id: str) -> List: return self.circulation_repo.get_transactions_by_user(user_id)
    def get_transactions_by_book(self, book_id: str) -> List: return self.circulation_repo.get_transactions_by_book(book_id)
    def count_active_transactions(self, user_id: Optional[str] = None, book_id: Optional[str] = None) -> int:
        return self.circulation_repo.count_active_transactions(user_id=user_id, book_id=book_id)
    def count_transactions_by_status(self, status: str) -> int: return self.circulation_repo.count_transactions_by_status(status)
    def get_newly_overdue_transactions(self, now: datetime) -> List: return self.circulation_repo.get_newly_overdue_transactions(now)
    def get_due_soon_transactions(self, now: datetime, horizon: datetime) -> List:
        return self.circulation_repo.get_due_soon_transactions(now, horizon)
    def update_transactions(self, transactions: List, data: Dict) -> int: return self.circulation_repo.update_transactions(transactions, data)
    def create_loan(self, record: Dict): return self.circulation_repo.create_loan(record)
    def close_loan(self, transaction, returned_date: datetime): return self.circulation_repo.close_loan(transaction, returned_date)

    # --- BOOK REQUEST METHODS (DELEGATED) ---
    def add_book_request(self, record: Dict): return self.circulation_repo.add_book_request(record)
    def get_book_request_by_id(self, request_id: str): return self.circulation_repo.get_book_request_by_id(request_id)
    def get_book_requests_by_user(self, user_id: str) -> List: return self.circulation_repo.get_book_requests_by_user(user_id)
    def get_all_book_requests(self) -> List: return self.circulation_repo.get_all_book_requests()
    def get_pending_book_requests(self) -> List: return self.circulation_repo.get_pending_book_requests()
    def find_pending_book_request(self, user_id: str, book_id: str): return self.circulation_repo.find_pending_book_request(user_id, book_id)
    def count_book_requests_by_status(self, status: str) -> int: return self.circulation_repo.count_book_requests_by_status(status)
    def update_book_request(self, request_id: str, data: Dict): return self.circulation_repo.update_book_request(request_id, data)
    def fulfil_book_request(self, book_request, record: Dict, processed_by: str, processed_date: datetime):
        return self.circulation_repo.fulfil_book_request(book_request, record, processed_by, processed_date)

    # --- EXTENSION REQUEST METHODS (DELEGATED) ---
    def add_extension_request(self, record: Dict): return self.circulation_repo.add_extension_request(record)
    def get_extension_request_by_id(self, request_id: str): return self.circulation_repo.get_extension_request_by_id(request_id)
    def get_extension_requests_by_user(self, user_id: str) -> List: return self.circulation_repo.get_extension_requests_by_user(user_id)
    def get_all_extension_requests(self) -> List: return self.circulation_repo.get_all_extension_requests()
    def get_pending_extension_requests(self) -> List: return self.circulation_repo.get_pending_extension_requests()
    def find_pending_extension_request(self, transaction_id: str): return self.circulation_repo.find_pending_extension_request(transaction_id)
    def count_extension_requests_by_status(self, status: str) -> int: return self.circulation_repo.count_extension_requests_by_status(status)
    def update_extension_request(self, request_id: str, data: Dict): return self.circulation_repo.update_extension_request(request_id, data)
    def apply_extension(self, extension, new_due_date: datetime, processed_by: str, processed_date: datetime, now: datetime):
        return self.circulation_repo.apply_extension(extension, new_due_date, processed_by, processed_date, now)

    # --- NOTIFICATION METHODS (DELEGATED) ---
    def add_notification(self, record: Dict): return self.notification_repo.add_notification(record)
    def get_notifications_by_user(self, user_id: str) -> List: return self.notification_repo.get_notifications_by_user(user_id)
    def count_unread_notifications(self, user_id: str) -> int: return self.notification_repo.count_unread(user_id)
    def mark_notification_read(self, notification_id: str, user_id: str): return self.notification_repo.mark_read(notification_id, user_id)
    def mark_all_notifications_read(self, user_id: str) -> int: return self.notification_repo.mark_all_read(user_id)
    def clear_notifications(self, user_id: str) -> int: return self.notification_repo.clear_all(user_id)

    # --- CHAT HISTORY METHODS (DELEGATED) ---
    def create_chat_session(self, session_record: Dict): return self.chat_repo.create_session(session_record)
    def get_chat_sessions_by_user_id(self, user_id: str) -> List: return self.chat_repo.get_sessions_by_user_id(user_id)
    def get_chat_session_by_id(self, session_id: str): return self.chat_repo.get_session_by_id(session_id)
    def add_chat_message(self, message_record: Dict): return self.chat_repo.add_message(message_record)
    def get_messages_by_session_id(self, session_id: str, limit: Optional[int] = None) -> List:
        return self.chat_repo.get_messages_by_session_id(session_id, limit)
    def delete_chat_session(self, session_id: str) -> bool: return self.chat_repo.delete_session_by_id(session_id)

    # --- AI PREDICTION & ANALYTICS METHODS (DELEGATED) ---
    def add_predictions(self, records: List[Dict]) -> List: return self.ai_repo.add_predictions(records)
    def get_all_predictions(self) -> List: return self.ai_repo.get_all_predictions()
    def get_predictions_by_type(self, prediction_type: str) -> List: return self.ai_repo.get_predictions_by_type(prediction_type)
    def get_predictions_by_target(self, target_id: str) -> List: return self.ai_repo.get_predictions_by_target(target_id)
    def get_valid_predictions_by_type(self, prediction_type: str, now: datetime) -> List:
        return self.ai_repo.get_valid_predictions_by_type(prediction_type, now)
    def count_predictions(self) -> int: return self.ai_repo.count_predictions()
    def delete_predictions_before(self, cutoff: datetime) -> int: return self.ai_repo.delete_predictions_before(cutoff)
    def add_analytics(self, record: Dict): return self.ai_repo.add_analytics(record)
    def get_all_analytics(self) -> List: return self.ai_repo.get_all_analytics()
    def get_analytics_by_type(self, analytics_type: str) -> List: return self.ai_repo.get_analytics_by_type(analytics_type)
    def get_latest_analytics(self, analytics_type: str): return self.ai_repo.get_latest_analytics(analytics_type)
    def delete_analytics_before(self, cutoff: datetime) -> int: return self.ai_repo.delete_analytics_before(cutoff)


# --- DEPENDENCY PROVIDER ---
def get_db_service(db: Session = Depends(get_db)) -> Generator[DatabaseService, None, None]:
    """FastAPI dependency that provides a DatabaseService bound to the request's session."""
    yield DatabaseService(db_session=db)
