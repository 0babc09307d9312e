# /app/services/notification_service.py

import logging
import uuid
from typing import List, Optional

from app.db.models.notification_models import Notification
from app.models.notification_model import NotificationType
from .database_service import DatabaseService

logger = logging.getLogger(__name__)


def notify(db: DatabaseService, user_id: str, type_: NotificationType, title: str, message: str) -> Notification:
    """Stores an in-app notification for `user_id`."""
    notification = db.add_notification({
        "id": f"ntf_{uuid.uuid4().hex[:12]}",
        "user_id": user_id,
        "type": type_.value,
        "title": title,
        "message": message,
    })
    logger.debug("Notified %s: %s", user_id, type_.value)
    return notification


def get_notifications(db: DatabaseService, user_id: str) -> List[Notification]:
    return db.get_notifications_by_user(user_id)


def get_unread_count(db: DatabaseService, user_id: str) -> int:
    return db.count_unread_notifications(user_id)


def mark_as_read(db: DatabaseService, notification_id: str, user_id: str) -> Optional[Notification]:
    return db.mark_notification_read(notification_id, user_id)


def mark_all_as_read(db: DatabaseService, user_id: str) -> int:
    return db.mark_all_notifications_read(user_id)


def clear_all(db: DatabaseService, user_id: str) -> int:
    return db.clear_notifications(user_id)
