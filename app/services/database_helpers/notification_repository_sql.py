# /app/services/database_helpers/notification_repository_sql.py

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models.notification_models import Notification


class NotificationRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def add_notification(self, record: Dict) -> Notification:
        new_notification = Notification(**record)
        self.db.add(new_notification)
        self.db.commit()
        self.db.refresh(new_notification)
        return new_notification

    def get_notifications_by_user(self, user_id: str) -> List[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .all()
        )

    def get_notification(self, notification_id: str, user_id: str) -> Optional[Notification]:
        """Scoped to the owner so nobody can touch another user's notifications."""
        return (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )

    def count_unread(self, user_id: str) -> int:
        return (
            self.db.query(func.count(Notification.id))
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .scalar() or 0
        )

    def mark_read(self, notification_id: str, user_id: str) -> Optional[Notification]:
        notification = self.get_notification(notification_id, user_id)
        if notification:
            notification.is_read = True
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: str) -> int:
        updated = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        self.db.commit()
        return updated

    def clear_all(self, user_id: str) -> int:
        deleted = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
