"""
CRUD операції для історії повідомлень
"""

from sqlalchemy.orm import Session
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
import json
import logging

from app.models import NotificationHistory, utc_now
from app.schemas import DataPayload, data_to_strings

logger = logging.getLogger(__name__)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """SQLite повертає datetime без timezone - вважаємо його UTC"""
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def serialize_data(data: Optional[DataPayload]) -> Optional[str]:
    if not data:
        return None
    return json.dumps(data_to_strings(data))


def deserialize_data(raw: Optional[str]) -> Dict[str, str]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Notification data is not valid JSON, ignoring")
        return {}
    return parsed if isinstance(parsed, dict) else {}


def save_notification_history(
    db: Session,
    user_id: str,
    title: str,
    body: str,
    data: Optional[Dict[str, str]] = None,
    feedback_id: Optional[str] = None
) -> NotificationHistory:
    """
    Додає запис в історію повідомлень користувача
    """
    notification = NotificationHistory(
        user_id=user_id,
        title=title,
        body=body,
        data=serialize_data(data),
        feedback_id=feedback_id,
        is_read=False
    )

    db.add(notification)
    db.commit()
    db.refresh(notification)

    logger.info(f"Saved notification history for user: {user_id}")
    return notification


def get_notification_history(
    db: Session,
    user_id: str,
    limit: int = 50
) -> List[NotificationHistory]:
    """
    Останні повідомлення користувача, новіші першими
    """
    return db.query(NotificationHistory).filter(
        NotificationHistory.user_id == user_id
    ).order_by(
        NotificationHistory.created_at.desc(),
        NotificationHistory.id.desc()
    ).limit(limit).all()


def get_notification(db: Session, notification_id: int, user_id: str) -> Optional[NotificationHistory]:
    return db.query(NotificationHistory).filter(
        NotificationHistory.id == notification_id,
        NotificationHistory.user_id == user_id
    ).first()


def mark_notification_as_read(
    db: Session,
    notification_id: int,
    user_id: str
) -> Optional[NotificationHistory]:
    """
    Позначає повідомлення прочитаним. Повторний виклик нічого не змінює.
    Повертає None якщо повідомлення не належить користувачу.
    """
    notification = get_notification(db, notification_id, user_id)

    if notification is None:
        return None

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utc_now()
        db.commit()
        db.refresh(notification)
        logger.info(f"Marked notification as read: {notification_id}")

    return notification


def get_notification_stats(db: Session, user_id: str, sample_size: int = 1000) -> Dict[str, int]:
    """
    Статистика по останніх sample_size повідомленнях користувача
    """
    notifications = get_notification_history(db, user_id, limit=sample_size)

    now = utc_now()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    unread = sum(1 for n in notifications if not n.is_read)
    return {
        "total": len(notifications),
        "unread": unread,
        "read": len(notifications) - unread,
        "this_week": sum(1 for n in notifications if as_utc(n.created_at) > week_ago),
        "this_month": sum(1 for n in notifications if as_utc(n.created_at) > month_ago),
    }
