from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app import crud_tokens
from app.config import settings
from app.database import new_session

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def cleanup_stale_tokens_job():
    """Видаляє FCM токени старші за TOKEN_TTL_DAYS днів (щодня)"""
    db: Session = new_session()
    try:
        deleted_count = crud_tokens.cleanup_old_tokens(db)
        if deleted_count > 0:
            logger.info(f"Видалено {deleted_count} застарілих токенів")
    except SQLAlchemyError as e:
        logger.error(f"Помилка при очищенні токенів: {e}")
        db.rollback()
    finally:
        db.close()


def start_scheduler():
    """
    Запускає планувальник:
    - Очищення застарілих FCM токенів щодня о TOKEN_CLEANUP_HOUR:00
    """
    scheduler.add_job(
        cleanup_stale_tokens_job,
        'cron',
        hour=settings.TOKEN_CLEANUP_HOUR,
        minute=0,
        id='cleanup_tokens',
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"✅ Планувальник запущено: очищення токенів щодня о {settings.TOKEN_CLEANUP_HOUR}:00")


def stop_scheduler():
    """Зупиняє планувальник"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Планувальник зупинено")


def get_scheduler_status():
    """Повертає статус планувальника"""
    jobs_info = []
    if scheduler.running:
        for job in scheduler.get_jobs():
            jobs_info.append({
                "id": job.id,
                "next_run": str(job.next_run_time) if job.next_run_time else None
            })

    return {
        "running": scheduler.running,
        "jobs": jobs_info
    }
