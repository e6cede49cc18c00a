"""
CRUD операції для FCM токенів користувачів
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from app.config import settings
from app.models import UserToken, utc_now

logger = logging.getLogger(__name__)

PLATFORMS = ("ios", "android")


def _freshness_cutoff(ttl_days: Optional[int] = None) -> datetime:
    days = settings.TOKEN_TTL_DAYS if ttl_days is None else ttl_days
    return utc_now() - timedelta(days=days)


def _find_token(db: Session, user_id: str, fcm_token: str) -> Optional[UserToken]:
    return db.query(UserToken).filter(
        UserToken.user_id == user_id,
        UserToken.fcm_token == fcm_token
    ).first()


def save_user_token(
    db: Session,
    user_id: str,
    fcm_token: str,
    platform: str
) -> UserToken:
    """
    Створює новий або оновлює існуючий токен для пари (user_id, fcm_token)
    """
    user_token = _find_token(db, user_id, fcm_token)

    if user_token is None:
        user_token = UserToken(
            user_id=user_id,
            fcm_token=fcm_token,
            platform=platform
        )
        db.add(user_token)
        try:
            db.commit()
            db.refresh(user_token)
            logger.info(f"Saved new FCM token for user: {user_id}")
            return user_token
        except IntegrityError:
            # Паралельна реєстрація встигла вставити той самий рядок
            db.rollback()
            user_token = _find_token(db, user_id, fcm_token)
            if user_token is None:
                raise

    user_token.platform = platform
    user_token.updated_at = utc_now()
    db.commit()
    db.refresh(user_token)
    logger.info(f"Updated existing FCM token for user: {user_id}")
    return user_token


def get_active_tokens(db: Session, user_id: str, ttl_days: Optional[int] = None) -> List[UserToken]:
    """
    Токени користувача, створені за останні TOKEN_TTL_DAYS днів, новіші першими
    """
    return db.query(UserToken).filter(
        UserToken.user_id == user_id,
        UserToken.created_at > _freshness_cutoff(ttl_days)
    ).order_by(
        UserToken.updated_at.desc(),
        UserToken.id.desc()
    ).all()


def remove_user_token(db: Session, user_id: str, fcm_token: str) -> bool:
    """
    Видаляє токен. Відсутність токена не є помилкою.
    """
    deleted_count = db.query(UserToken).filter(
        UserToken.user_id == user_id,
        UserToken.fcm_token == fcm_token
    ).delete(synchronize_session=False)
    db.commit()

    if deleted_count:
        logger.info(f"Removed FCM token for user: {user_id}")
    return deleted_count > 0


def cleanup_old_tokens(db: Session, ttl_days: Optional[int] = None) -> int:
    """
    Видаляє токени старші за TOKEN_TTL_DAYS днів
    """
    deleted_count = db.query(UserToken).filter(
        UserToken.created_at < _freshness_cutoff(ttl_days)
    ).delete(synchronize_session=False)
    db.commit()

    logger.info(f"Cleaned up {deleted_count} old tokens")
    return deleted_count
