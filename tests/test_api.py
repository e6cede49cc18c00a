"""HTTP surface: request validation, response shapes and status codes."""

from app.config import settings
from app.models import NotificationHistory, UserToken


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["scheduler"]["running"] is False


def test_register_token_validates_with_provider_and_upserts(client, push, db):
    payload = {"user_id": "user-1", "fcm_token": "token-a", "platform": "ios"}

    assert client.post("/api/user/fcm-token", json=payload).status_code == 200
    response = client.post("/api/user/fcm-token", json={**payload, "platform": "android"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "FCM token saved successfully"}
    assert push.validated == ["token-a", "token-a"]
    db.expire_all()
    rows = db.query(UserToken).all()
    assert [(r.user_id, r.platform) for r in rows] == [("user-1", "android")]


def test_register_rejects_token_the_provider_does_not_accept(client, push, db):
    push.invalid_tokens.add("bogus")

    response = client.post(
        "/api/user/fcm-token", json={"user_id": "user-1", "fcm_token": "bogus", "platform": "ios"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid FCM token"
    assert db.query(UserToken).count() == 0


def test_register_rejects_unknown_platform_and_missing_fields(client, push):
    bad_platform = client.post(
        "/api/user/fcm-token", json={"user_id": "user-1", "fcm_token": "t", "platform": "web"}
    )
    missing_user = client.post("/api/user/fcm-token", json={"fcm_token": "t", "platform": "ios"})
    empty_token = client.post(
        "/api/user/fcm-token", json={"user_id": "user-1", "fcm_token": "", "platform": "ios"}
    )

    for response in (bad_platform, missing_user, empty_token):
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"] == "Invalid request"
    assert "platform" in bad_platform.json()["message"]
    assert "user_id" in missing_user.json()["message"]
    assert push.validated == []


def test_remove_token_is_idempotent(client, add_token):
    add_token("user-1", "token-a")
    payload = {"user_id": "user-1", "fcm_token": "token-a"}

    first = client.request("DELETE", "/api/user/fcm-token", json=payload)
    second = client.request("DELETE", "/api/user/fcm-token", json=payload)

    assert first.status_code == 200 and first.json()["removed"] is True
    assert second.status_code == 200 and second.json()["removed"] is False


def test_list_and_cleanup_tokens(client, add_token):
    add_token("user-1", "fresh", platform="android", days_old=1)
    add_token("user-1", "stale", days_old=40)

    listed = client.get("/api/user/user-1/fcm-tokens").json()
    assert listed["count"] == 1
    assert listed["data"][0]["fcm_token"] == "fresh"
    assert listed["data"][0]["platform"] == "android"

    cleanup = client.post("/api/user/fcm-tokens/cleanup").json()
    assert cleanup["deleted_count"] == 1


def test_new_feedback_for_unknown_id_is_404_without_sends(client, push):
    response = client.post("/api/notifications/new-feedback", json={"feedback_id": "missing"})

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Feedback not found",
        "message": "The specified feedback does not exist",
    }
    assert push.sent == []


def test_new_feedback_requires_feedback_id(client):
    response = client.post("/api/notifications/new-feedback", json={})

    assert response.status_code == 400
    assert "feedback_id" in response.json()["message"]


def test_new_feedback_without_recipients(client, push, add_feedback, monkeypatch):
    monkeypatch.setattr(settings, "NOTIFY_ALWAYS_USER_IDS", [])
    add_feedback(assigned_user_id=None)

    response = client.post("/api/notifications/new-feedback", json={"feedback_id": "fb-1"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "No users to notify for this feedback"}
    assert push.sent == []


def test_new_feedback_reports_partial_failure(client, push, add_feedback, add_token, monkeypatch):
    monkeypatch.setattr(settings, "NOTIFY_ALWAYS_USER_IDS", ["admin"])
    add_feedback()
    add_token("manager-1", "token-manager")

    response = client.post("/api/notifications/new-feedback", json={"feedback_id": "fb-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == {"total": 2, "success_count": 1, "failure_count": 1}
    assert body["details"][0]["user_id"] == "manager-1"
    assert body["details"][0]["success"] is True
    assert body["details"][1] == {
        "user_id": "admin",
        "success": False,
        "message_id": None,
        "error": "No active FCM tokens for user",
    }


def test_history_mark_read_and_stats(client, db, add_token):
    add_token("user-1", "token-1")
    sent = client.post(
        "/api/notifications/send",
        json={"user_id": "user-1", "title": "Hi", "body": "There", "data": {"kind": "manual"}},
    )
    assert sent.status_code == 200
    assert sent.json()["details"]["success"] is True

    history = client.get("/api/notifications", params={"user_id": "user-1"}).json()
    assert history["count"] == 1
    item = history["data"][0]
    assert item["data"] == {"kind": "manual"}
    assert item["is_read"] is False
    assert item["created_at"].endswith("+00:00")

    for _ in range(2):
        marked = client.put(f"/api/notifications/{item['id']}/read", json={"user_id": "user-1"})
        assert marked.status_code == 200
        assert marked.json()["data"]["is_read"] is True
        assert marked.json()["data"]["read_at"] is not None

    stats = client.get("/api/notifications/stats", params={"user_id": "user-1"}).json()["data"]
    assert stats == {"total": 1, "unread": 0, "read": 1, "this_week": 1, "this_month": 1}


def test_mark_read_of_foreign_notification_is_404(client, db):
    db.add(NotificationHistory(user_id="owner", title="t", body="b"))
    db.commit()
    notification_id = db.query(NotificationHistory).one().id

    response = client.put(f"/api/notifications/{notification_id}/read", json={"user_id": "intruder"})

    assert response.status_code == 404


def test_history_requires_user_id(client):
    assert client.get("/api/notifications").status_code == 400


def test_send_to_user_without_tokens_is_400(client, push):
    response = client.post(
        "/api/notifications/send", json={"user_id": "nobody", "title": "Hi", "body": "There"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Failed to send notification"
    assert push.sent == []


def test_test_notification_uses_defaults_and_reports_provider_errors(client, push):
    ok = client.post("/api/notifications/test", json={"fcm_token": "token-ok"})
    assert ok.status_code == 200
    assert ok.json()["message_id"] == "projects/test/messages/token-ok"
    token, notification, data = push.sent[0]
    assert notification["title"] == "Test Notification"
    assert data == {"type": "test"}

    push.failing_tokens.add("token-bad")
    failed = client.post("/api/notifications/test", json={"fcm_token": "token-bad"})
    assert failed.status_code == 400
    assert failed.json()["success"] is False


def test_send_coerces_json_booleans_to_lowercase_strings(client, push, add_token):
    add_token("user-1", "token-1")

    response = client.post(
        "/api/notifications/send",
        json={"user_id": "user-1", "title": "Hi", "body": "There", "data": {"urgent": True, "n": 1.0}},
    )

    assert response.status_code == 200
    assert push.sent[0][2] == {"urgent": "true", "n": "1.0"}
    history = client.get("/api/notifications", params={"user_id": "user-1"}).json()
    assert history["data"][0]["data"] == {"urgent": "true", "n": "1.0"}
