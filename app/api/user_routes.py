"""
API endpoints для управління FCM токенами користувачів
"""
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app import crud_tokens
from app.api.dependencies import get_push_provider
from app.exceptions import StoreError, ValidationError
from app.schemas import TokenRegisterRequest, TokenRemoveRequest, UserTokenResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/user/fcm-token", tags=["Users"])
async def save_fcm_token(
    request: TokenRegisterRequest,
    db: Session = Depends(get_db),
    push=Depends(get_push_provider)
):
    """
    Реєстрація або оновлення FCM токену користувача
    """
    validation = push.validate_token(request.fcm_token)
    if not validation.get("valid"):
        raise ValidationError("The provided FCM token is not valid", error="Invalid FCM token")

    try:
        crud_tokens.save_user_token(
            db=db,
            user_id=request.user_id,
            fcm_token=request.fcm_token,
            platform=request.platform
        )
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Failed to save FCM token") from e

    return {
        "success": True,
        "message": "FCM token saved successfully"
    }


@router.delete("/user/fcm-token", tags=["Users"])
async def remove_fcm_token(
    request: TokenRemoveRequest,
    db: Session = Depends(get_db)
):
    """
    Видалення FCM токену (вихід з акаунту або видалення додатку)
    """
    try:
        removed = crud_tokens.remove_user_token(db, request.user_id, request.fcm_token)
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Failed to remove FCM token") from e

    return {
        "success": True,
        "message": "FCM token removed successfully",
        "removed": removed
    }


@router.get("/user/{user_id}/fcm-tokens", tags=["Users"])
async def list_fcm_tokens(
    user_id: str,
    db: Session = Depends(get_db)
):
    """
    Активні токени користувача (створені за останні TOKEN_TTL_DAYS днів)
    """
    try:
        tokens = crud_tokens.get_active_tokens(db, user_id)
    except SQLAlchemyError as e:
        raise StoreError("Failed to get FCM tokens") from e

    return {
        "success": True,
        "data": [UserTokenResponse.model_validate(t).model_dump() for t in tokens],
        "count": len(tokens)
    }


@router.post("/user/fcm-tokens/cleanup", tags=["Users"])
async def cleanup_fcm_tokens(db: Session = Depends(get_db)):
    """
    Видалення застарілих токенів (зазвичай робить scheduler щодня)
    """
    try:
        deleted_count = crud_tokens.cleanup_old_tokens(db)
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Failed to clean up FCM tokens") from e

    return {
        "success": True,
        "message": f"Deleted {deleted_count} old tokens",
        "deleted_count": deleted_count
    }
