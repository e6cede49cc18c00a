"""
Конфігурація додатка
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Налаштування додатка"""

    # Application
    APP_NAME: str = "Feedback Push Backend"
    DEBUG: bool = True
    API_PREFIX: str = "/api"

    # Database
    DATABASE_URL: str = "sqlite:///./feedback_push.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 0
    DB_POOL_RECYCLE_SECONDS: int = 30

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # Firebase
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None
    PUSH_SEND_TIMEOUT_SECONDS: int = 10

    # Токени пристроїв
    TOKEN_TTL_DAYS: int = 30

    # Розсилка по відгуках
    NOTIFY_ALWAYS_USER_IDS: List[str] = ["admin"]
    DISPATCH_MAX_WORKERS: int = 1

    # Історія повідомлень
    NOTIFICATION_HISTORY_MAX_LIMIT: int = 1000

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    TOKEN_CLEANUP_HOUR: int = 3

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
