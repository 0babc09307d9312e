# /app/routers/notifications_router.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.deps import get_current_active_user
from ..models import notification_model
from ..services import notification_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


@router.get("", response_model=List[notification_model.Notification], summary="Get My Notifications")
def get_notifications(db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    return notification_service.get_notifications(db, current_user.id)


@router.get("/unread-count", response_model=notification_model.UnreadCount, summary="Count Unread Notifications")
def get_unread_count(db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    return notification_model.UnreadCount(count=notification_service.get_unread_count(db, current_user.id))


@router.put("/read-all", response_model=notification_model.BulkUpdateResult, summary="Mark All as Read")
def mark_all_as_read(db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    return notification_model.BulkUpdateResult(updated=notification_service.mark_all_as_read(db, current_user.id))


@router.delete("/clear-all", response_model=notification_model.BulkUpdateResult, summary="Delete All My Notifications")
def clear_all(db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    return notification_model.BulkUpdateResult(updated=notification_service.clear_all(db, current_user.id))


@router.put("/{notification_id}/read", response_model=notification_model.Notification, summary="Mark a Notification as Read")
def mark_as_read(notification_id: str, db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    notification = notification_service.mark_as_read(db, notification_id, current_user.id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Notification with ID {notification_id} not found")
    return notification
