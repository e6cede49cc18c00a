"""Daily maintenance job."""

from app import scheduler
from app.models import UserToken


def test_cleanup_job_removes_31_day_old_token_and_keeps_29_day_old(db, add_token):
    add_token("user-1", "old", days_old=31)
    add_token("user-1", "recent", days_old=29)

    scheduler.cleanup_stale_tokens_job()

    db.expire_all()
    assert [t.fcm_token for t in db.query(UserToken).all()] == ["recent"]


def test_status_lists_cleanup_job_when_started(monkeypatch):
    monkeypatch.setattr(scheduler, "scheduler", scheduler.BackgroundScheduler())
    scheduler.start_scheduler()
    try:
        status = scheduler.get_scheduler_status()
        assert status["running"] is True
        assert [job["id"] for job in status["jobs"]] == ["cleanup_tokens"]
    finally:
        scheduler.stop_scheduler()
