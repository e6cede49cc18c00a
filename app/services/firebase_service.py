import os
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional
from firebase_admin import credentials, messaging, initialize_app
import firebase_admin

from app.config import settings
from app.schemas import data_to_strings

logger = logging.getLogger(__name__)

# Глобальна змінна для Firebase app
_firebase_app = None
_firebase_lock = threading.Lock()


@dataclass
class PushResult:
    """Результат відправки на один токен"""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


def _credentials_path() -> str:
    if settings.FIREBASE_CREDENTIALS_PATH:
        return settings.FIREBASE_CREDENTIALS_PATH
    return os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
        'serviceAccountKey.json'
    )


def initialize_firebase():
    """
    Ініціалізація Firebase Admin SDK (один раз на процес)
    """
    global _firebase_app

    if _firebase_app is not None:
        return _firebase_app

    with _firebase_lock:
        if _firebase_app is not None:
            return _firebase_app

        try:
            # Перевіряємо чи вже ініціалізовано
            _firebase_app = firebase_admin.get_app()
            logger.info("Firebase app already initialized")
            return _firebase_app
        except ValueError:
            # App не існує, ініціалізуємо
            pass

        service_account_path = _credentials_path()
        if not os.path.exists(service_account_path):
            logger.error(f"Service account key not found at {service_account_path}")
            raise FileNotFoundError(f"Service account key not found at {service_account_path}")

        cred = credentials.Certificate(service_account_path)
        # httpTimeout обмежує кожен виклик FCM, щоб один недоступний
        # пристрій не блокував всю розсилку
        _firebase_app = initialize_app(cred, options={
            'httpTimeout': settings.PUSH_SEND_TIMEOUT_SECONDS,
        })

        logger.info("Firebase Admin SDK initialized successfully")
        return _firebase_app


def build_message(
    fcm_token: str,
    title: Optional[str] = None,
    body: Optional[str] = None,
    data: Optional[Dict[str, str]] = None
) -> messaging.Message:
    """
    Створює FCM повідомлення з налаштуваннями для Android та iOS.
    Без title/body - тихе повідомлення (для перевірки токена).
    """
    notification = None
    if title or body:
        notification = messaging.Notification(title=title, body=body)

    return messaging.Message(
        notification=notification,
        # Всі значення data мають бути рядками (вимога FCM)
        data=data_to_strings(data),
        token=fcm_token,
        android=messaging.AndroidConfig(
            priority='high',
            notification=messaging.AndroidNotification(
                icon='ic_stat_notification',
                sound='default',
            ),
        ),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    sound='default',
                    badge=1,
                ),
            ),
        ),
    )


def send_to_token(
    fcm_token: str,
    notification: Dict[str, str],
    data: Optional[Dict[str, str]] = None
) -> PushResult:
    """
    Відправка push-повідомлення на один пристрій

    Args:
        fcm_token: Firebase Cloud Messaging токен пристрою
        notification: {'title': ..., 'body': ...}
        data: Додаткові дані (опціонально)

    Returns:
        PushResult з message_id або текстом помилки. Помилки FCM не піднімаються.
    """
    try:
        initialize_firebase()

        message = build_message(
            fcm_token,
            title=notification.get('title'),
            body=notification.get('body'),
            data=data,
        )
        message_id = messaging.send(message)
        logger.info(f"Successfully sent message: {message_id}")
        return PushResult(success=True, message_id=message_id)

    except Exception as e:
        logger.error(f"Error sending push notification to token {fcm_token[:20]}...: {e}")
        return PushResult(success=False, error=str(e))


def validate_token(fcm_token: str) -> Dict[str, object]:
    """
    Перевірка токена через dry-run відправку (повідомлення не доставляється)
    """
    try:
        initialize_firebase()
        messaging.send(build_message(fcm_token), dry_run=True)
        return {"valid": True}
    except Exception as e:
        logger.warning(f"FCM token {fcm_token[:20]}... is not valid: {e}")
        return {"valid": False, "error": str(e)}
