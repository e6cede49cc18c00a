"""Token registry behaviour against a real SQLite database."""

from app import crud_tokens
from app.models import UserToken


def test_repeat_registration_updates_platform_instead_of_duplicating(db):
    first = crud_tokens.save_user_token(db, "user-1", "token-a", "ios")
    second = crud_tokens.save_user_token(db, "user-1", "token-a", "android")

    rows = db.query(UserToken).filter(UserToken.user_id == "user-1").all()
    assert len(rows) == 1
    assert rows[0].platform == "android"
    assert second.id == first.id
    assert second.updated_at >= second.created_at


def test_same_token_for_different_users_is_a_separate_row(db):
    crud_tokens.save_user_token(db, "user-1", "shared", "ios")
    crud_tokens.save_user_token(db, "user-2", "shared", "ios")

    assert db.query(UserToken).count() == 2


def test_active_tokens_are_fresh_and_most_recently_updated_first(db, add_token):
    add_token("user-1", "old-but-fresh", days_old=10)
    add_token("user-1", "newest", days_old=1)
    add_token("user-1", "stale", days_old=31)
    add_token("user-2", "someone-else")

    tokens = [t.fcm_token for t in crud_tokens.get_active_tokens(db, "user-1")]

    assert tokens == ["newest", "old-but-fresh"]


def test_unregister_is_idempotent(db, add_token):
    add_token("user-1", "token-a")

    assert crud_tokens.remove_user_token(db, "user-1", "token-a") is True
    assert crud_tokens.remove_user_token(db, "user-1", "token-a") is False
    assert db.query(UserToken).count() == 0


def test_cleanup_removes_31_day_old_token_and_keeps_29_day_old(db, add_token):
    add_token("user-1", "aged-31", days_old=31)
    add_token("user-1", "aged-29", days_old=29)

    deleted = crud_tokens.cleanup_old_tokens(db)

    assert deleted == 1
    remaining = [t.fcm_token for t in db.query(UserToken).all()]
    assert remaining == ["aged-29"]


def test_cleanup_respects_custom_ttl(db, add_token):
    add_token("user-1", "aged-8", days_old=8)
    add_token("user-1", "aged-2", days_old=2)

    assert crud_tokens.cleanup_old_tokens(db, ttl_days=7) == 1
