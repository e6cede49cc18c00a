"""
Спільні залежності FastAPI для роутів
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.services import firebase_service
from app.services.dispatcher import FeedbackNotificationDispatcher


def get_push_provider():
    """Push-провайдер; в тестах підміняється через app.dependency_overrides"""
    return firebase_service


def get_dispatcher(
    db: Session = Depends(get_db),
    push=Depends(get_push_provider),
) -> FeedbackNotificationDispatcher:
    return FeedbackNotificationDispatcher(db, push=push)
