"""
Налаштування підключення до бази даних

Engine створюється ліниво при першому зверненні і живе до зупинки процесу.
"""

import logging
import threading

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from app.config import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_engine_lock = threading.Lock()

# Створення SessionLocal для роботи з БД (bind додається в get_engine)
SessionLocal = sessionmaker(autoflush=False)

# Base клас для моделей
Base = declarative_base()


def _build_engine() -> Engine:
    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        # Необхідно для SQLite
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE_SECONDS,
        pool_pre_ping=True,
    )


def get_engine() -> Engine:
    """
    Повертає спільний engine, створюючи його при першому виклику
    """
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = _build_engine()
                SessionLocal.configure(bind=_engine)
                logger.info("Database engine initialized")
    return _engine


def new_session() -> Session:
    get_engine()
    return SessionLocal()


def get_db():
    """
    Dependency для отримання сесії БД
    Використовується в FastAPI endpoints
    """
    db = new_session()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Ініціалізація бази даних - створення всіх таблиць
    """
    from app import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def dispose_engine():
    """
    Закриває всі з'єднання пулу (викликається при зупинці сервера)
    """
    global _engine

    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None
            logger.info("Database engine disposed")
