"""
SQLAlchemy моделі для бази даних
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, Index, UniqueConstraint
from app.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserToken(Base):
    """
    FCM токени користувачів. Один користувач може мати кілька пристроїв.
    """
    __tablename__ = "user_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    fcm_token = Column(String, nullable=False)
    platform = Column(String, nullable=False)  # 'android' or 'ios'
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Пара (user_id, fcm_token) - природний ключ
    __table_args__ = (
        UniqueConstraint('user_id', 'fcm_token', name='uq_user_tokens_user_token'),
        Index('idx_user_tokens_created', 'created_at'),
    )

    def __repr__(self):
        return f"<UserToken(user_id={self.user_id}, platform={self.platform}, token={self.fcm_token[:20]}...)>"


class NotificationHistory(Base):
    """
    Історія відправлених користувачам повідомлень
    """
    __tablename__ = "notification_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    data = Column(Text, nullable=True)  # JSON з додатковими даними
    feedback_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_notification_user_created', 'user_id', 'created_at'),
    )

    def __repr__(self):
        return f"<NotificationHistory(id={self.id}, user_id={self.user_id}, is_read={self.is_read})>"


class Feedback(Base):
    """
    Відгуки клієнтів. Таблицю веде інша система, тут тільки читаємо.
    """
    __tablename__ = "feedback"

    id = Column(String, primary_key=True)
    customer_name = Column(String, nullable=True)
    content = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    assigned_user_id = Column(String, nullable=True, index=True)

    def __repr__(self):
        return f"<Feedback(id={self.id}, assigned_user_id={self.assigned_user_id})>"
