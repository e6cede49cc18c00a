"""
Pydantic схеми для валідації API запитів та відповідей
"""

from pydantic import BaseModel, Field, field_serializer
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Union


# Значення data - скаляри, у FCM і в БД вони йдуть рядками
DataPayload = Dict[str, Union[str, int, float, bool]]


def data_to_strings(data: Optional[DataPayload]) -> Dict[str, str]:
    """
    Всі значення data як рядки (вимога FCM). bool пишемо як у JSON: "true"/"false".
    """
    result = {}
    for key, value in (data or {}).items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        result[str(key)] = str(value)
    return result


def _iso_utc(dt: Optional[datetime]) -> Optional[str]:
    """Серіалізуємо datetime з UTC маркером"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        # Якщо без timezone - додаємо UTC
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


# === Схеми для токенів ===

class TokenRegisterRequest(BaseModel):
    """Реєстрація FCM токена користувача"""
    user_id: str = Field(..., min_length=1, description="ID користувача")
    fcm_token: str = Field(..., min_length=1, description="Firebase Cloud Messaging токен")
    platform: Literal["ios", "android"] = Field(..., description="Платформа пристрою")


class TokenRemoveRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    fcm_token: str = Field(..., min_length=1)


class UserTokenResponse(BaseModel):
    fcm_token: str
    platform: str
    created_at: datetime
    updated_at: datetime

    @field_serializer('created_at', 'updated_at')
    def serialize_datetime(self, dt: datetime, _info):
        return _iso_utc(dt)

    class Config:
        from_attributes = True


# === Схеми для історії повідомлень ===

class NotificationResponse(BaseModel):
    id: int
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)
    feedback_id: Optional[str] = None
    created_at: datetime
    is_read: bool
    read_at: Optional[datetime] = None

    @field_serializer('created_at', 'read_at')
    def serialize_datetime(self, dt: Optional[datetime], _info):
        return _iso_utc(dt)


class NotificationStats(BaseModel):
    total: int
    unread: int
    read: int
    this_week: int
    this_month: int


class MarkReadRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


# === Схеми для відправки ===

class PushTestRequest(BaseModel):
    fcm_token: str = Field(..., min_length=1)
    title: Optional[str] = None
    body: Optional[str] = None
    data: DataPayload = Field(default_factory=dict)


class NewFeedbackRequest(BaseModel):
    """Подія про новий відгук (від тригера БД або зовнішньої системи)"""
    feedback_id: str = Field(..., min_length=1)
    # Приходять від старих тригерів, вміст береться з БД
    customer_name: Optional[str] = None
    feedback_content: Optional[str] = None


class SendNotificationRequest(BaseModel):
    """Ручна відправка повідомлення конкретному користувачу"""
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    data: DataPayload = Field(default_factory=dict)


# === Результати розсилки ===

class DispatchOutcome(BaseModel):
    """Результат відправки одному отримувачу"""
    user_id: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class DispatchSummary(BaseModel):
    total: int
    success_count: int
    failure_count: int
    details: List[DispatchOutcome]
