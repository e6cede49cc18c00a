"""
API endpoints для push-повідомлень та історії повідомлень
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.config import settings
from app.database import get_db
from app import crud_notifications
from app.api.dependencies import get_dispatcher, get_push_provider
from app.exceptions import ExternalServiceError, NotFoundError, StoreError
from app.schemas import (
    MarkReadRequest,
    NewFeedbackRequest,
    NotificationResponse,
    NotificationStats,
    PushTestRequest,
    SendNotificationRequest,
)
from app.services.dispatcher import FeedbackNotificationDispatcher

router = APIRouter()
logger = logging.getLogger(__name__)


def _to_response(notification) -> dict:
    return NotificationResponse(
        id=notification.id,
        title=notification.title,
        body=notification.body,
        data=crud_notifications.deserialize_data(notification.data),
        feedback_id=notification.feedback_id,
        created_at=notification.created_at,
        is_read=notification.is_read,
        read_at=notification.read_at,
    ).model_dump(mode="json")


# ============= Notification History Endpoints =============

@router.get("/notifications", tags=["Notifications"])
async def get_notifications(
    user_id: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1),
    db: Session = Depends(get_db)
):
    """
    Отримання історії повідомлень користувача
    """
    limit = min(limit, settings.NOTIFICATION_HISTORY_MAX_LIMIT)
    try:
        notifications = crud_notifications.get_notification_history(db, user_id, limit)
    except SQLAlchemyError as e:
        raise StoreError("Failed to get notification history") from e

    return {
        "success": True,
        "data": [_to_response(n) for n in notifications],
        "count": len(notifications)
    }


@router.get("/notifications/stats", tags=["Notifications"])
async def get_notification_stats(
    user_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db)
):
    """
    Статистика повідомлень: всього, прочитані, за тиждень/місяць
    """
    try:
        stats = crud_notifications.get_notification_stats(
            db, user_id, sample_size=settings.NOTIFICATION_HISTORY_MAX_LIMIT
        )
    except SQLAlchemyError as e:
        raise StoreError("Failed to get notification statistics") from e

    return {
        "success": True,
        "data": NotificationStats(**stats).model_dump()
    }


@router.put("/notifications/{notification_id}/read", tags=["Notifications"])
async def mark_notification_read(
    notification_id: int,
    request: MarkReadRequest,
    db: Session = Depends(get_db)
):
    """
    Позначити повідомлення прочитаним (повторний виклик безпечний)
    """
    try:
        notification = crud_notifications.mark_notification_as_read(db, notification_id, request.user_id)
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Failed to mark notification as read") from e

    if notification is None:
        raise NotFoundError("Notification not found for this user", error="Notification not found")

    return {
        "success": True,
        "message": "Notification marked as read",
        "data": _to_response(notification)
    }


# ============= Send Endpoints =============

@router.post("/notifications/test", tags=["Notifications"])
async def send_test_notification(
    request: PushTestRequest,
    push=Depends(get_push_provider)
):
    """
    Тестова відправка на конкретний токен (без запису в історію)
    """
    notification = {
        "title": request.title or "Test Notification",
        "body": request.body or "This is a test notification from your server"
    }
    result = push.send_to_token(request.fcm_token, notification, {"type": "test", **request.data})

    if not result.success:
        raise ExternalServiceError(result.error or "Push provider rejected the message")

    return {
        "success": True,
        "message": "Test notification sent successfully",
        "message_id": result.message_id
    }


@router.post("/notifications/new-feedback", tags=["Notifications"])
async def notify_new_feedback(
    request: NewFeedbackRequest,
    dispatcher: FeedbackNotificationDispatcher = Depends(get_dispatcher)
):
    """
    Сповіщення про новий відгук клієнта.
    Викликається тригером БД або зовнішньою системою.
    """
    summary = dispatcher.notify_new_feedback(request.feedback_id)

    if summary is None:
        return {
            "success": True,
            "message": "No users to notify for this feedback"
        }

    return {
        "success": True,
        "message": "Feedback notifications processed",
        "summary": {
            "total": summary.total,
            "success_count": summary.success_count,
            "failure_count": summary.failure_count
        },
        "details": [outcome.model_dump() for outcome in summary.details]
    }


@router.post("/notifications/send", tags=["Notifications"])
async def send_notification(
    request: SendNotificationRequest,
    dispatcher: FeedbackNotificationDispatcher = Depends(get_dispatcher)
):
    """
    Відправка довільного повідомлення конкретному користувачу
    """
    outcome = dispatcher.send_to_user(request.user_id, request.title, request.body, request.data)

    if not outcome.success:
        raise ExternalServiceError(outcome.error or "Failed to send notification")

    return {
        "success": True,
        "message": "Notification sent successfully",
        "details": outcome.model_dump()
    }
