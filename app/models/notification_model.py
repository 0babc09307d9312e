# /app/models/notification_model.py

from datetime import datetime
from enum import Enum

from .base_model import APIModel


class NotificationType(str, Enum):
    BOOK_BORROWED = "BOOK_BORROWED"
    BOOK_RETURNED = "BOOK_RETURNED"
    BOOK_DUE_SOON = "BOOK_DUE_SOON"
    BOOK_OVERDUE = "BOOK_OVERDUE"
    BOOK_REQUEST_APPROVED = "BOOK_REQUEST_APPROVED"
    BOOK_REQUEST_REJECTED = "BOOK_REQUEST_REJECTED"
    EXTENSION_REQUEST_APPROVED = "EXTENSION_REQUEST_APPROVED"
    EXTENSION_REQUEST_REJECTED = "EXTENSION_REQUEST_REJECTED"
    GENERAL = "GENERAL"


class Notification(APIModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    is_read: bool
    created_at: datetime


class UnreadCount(APIModel):
    count: int


class BulkUpdateResult(APIModel):
    updated: int
