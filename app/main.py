"""
Головний файл FastAPI додатка
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config import settings
from app.database import init_db, dispose_engine
from app.exceptions import (
    AppError,
    app_error_handler,
    request_validation_handler,
    unhandled_error_handler,
)
from app.api.user_routes import router as user_router
from app.api.notification_routes import router as notification_router
from app.scheduler import start_scheduler, stop_scheduler, get_scheduler_status

# Налаштування логування
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle events для FastAPI
    Виконується при старті та зупинці сервера
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Запуск {settings.APP_NAME}...")
    logger.info("=" * 60)

    # Ініціалізація бази даних
    init_db()
    logger.info("✓ База даних ініціалізована")

    # Firebase ініціалізується при першій відправці
    if settings.SCHEDULER_ENABLED:
        try:
            start_scheduler()
        except Exception as e:
            logger.error(f"✗ Помилка при запуску scheduler: {e}")
    else:
        logger.info("ℹ️  Scheduler вимкнено (SCHEDULER_ENABLED=False)")

    yield

    # Shutdown
    logger.info(f"Зупинка {settings.APP_NAME}...")
    stop_scheduler()
    dispose_engine()
    logger.info("До побачення!")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Backend API для push-сповіщень про відгуки клієнтів",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/")
    async def root():
        """Перевірка роботи API"""
        return {
            "message": f"{settings.APP_NAME} API",
            "status": "working",
            "version": "1.0.0",
            "documentation": "/docs"
        }

    @app.get("/health")
    async def health_check():
        """Перевірка здоров'я сервера"""
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "scheduler": get_scheduler_status()
        }

    # Підключення API роутів
    app.include_router(user_router, prefix=settings.API_PREFIX)
    app.include_router(notification_router, prefix=settings.API_PREFIX)
    return app


app = create_app()

# Для запуску: uvicorn app.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
