"""Shared fixtures: a throwaway SQLite database and a fake push provider."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.config import settings
from app.database import dispose_engine, init_db, new_session
from app.models import Feedback, UserToken, utc_now
from app.services.firebase_service import PushResult


class FakePush:
    """Records every call; tokens listed in ``failing_tokens`` are rejected."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict, dict | None]] = []
        self.validated: list[str] = []
        self.failing_tokens: set[str] = set()
        self.invalid_tokens: set[str] = set()

    def send_to_token(self, token, notification, data=None):
        self.sent.append((token, notification, data))
        if token in self.failing_tokens:
            return PushResult(success=False, error="Requested entity was not found.")
        return PushResult(success=True, message_id=f"projects/test/messages/{token}")

    def validate_token(self, token):
        self.validated.append(token)
        if token in self.invalid_tokens:
            return {"valid": False, "error": "The registration token is not a valid FCM registration token"}
        return {"valid": True}

    @property
    def sent_tokens(self) -> list[str]:
        return [token for token, _, _ in self.sent]


@pytest.fixture()
def db(tmp_path, monkeypatch):
    """Fresh database per test, bound through the regular engine bootstrap."""

    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setattr(settings, "SCHEDULER_ENABLED", False)
    dispose_engine()
    init_db()

    session = new_session()
    yield session
    session.close()
    dispose_engine()


@pytest.fixture()
def push() -> FakePush:
    return FakePush()


@pytest.fixture()
def add_feedback(db):
    def _add(feedback_id="fb-1", assigned_user_id="manager-1", customer_name="Olena", content="Great service"):
        feedback = Feedback(
            id=feedback_id,
            customer_name=customer_name,
            content=content,
            created_at=utc_now(),
            assigned_user_id=assigned_user_id,
        )
        db.add(feedback)
        db.commit()
        return feedback

    return _add


@pytest.fixture()
def add_token(db):
    def _add(user_id, fcm_token, platform="ios", days_old=0):
        stamp = utc_now() - timedelta(days=days_old)
        token = UserToken(
            user_id=user_id,
            fcm_token=fcm_token,
            platform=platform,
            created_at=stamp,
            updated_at=stamp,
        )
        db.add(token)
        db.commit()
        return token

    return _add


@pytest.fixture()
def client(db, push):
    """Test client with the push provider replaced by ``push``."""

    from fastapi.testclient import TestClient

    from app.api.dependencies import get_push_provider
    from app.main import create_app

    app = create_app()
    app.dependency_overrides[get_push_provider] = lambda: push
    with TestClient(app) as test_client:
        yield test_client
