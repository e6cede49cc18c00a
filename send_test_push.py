"""
Тестова відправка пушу на конкретний пристрій через запущений сервер

Використання: python send_test_push.py <fcm_token> [base_url]
"""
import sys
import json

import httpx

BASE_URL = sys.argv[2] if len(sys.argv) > 2 else "http://localhost:8000"

if len(sys.argv) < 2:
    print("Використання: python send_test_push.py <fcm_token> [base_url]")
    sys.exit(1)

notification = {
    "fcm_token": sys.argv[1],
    "title": "🧪 Test push",
    "body": "If you can see this, push delivery works ✅",
    "data": {
        "source": "send_test_push.py"
    }
}

print("=" * 60)
print("ВІДПРАВКА ТЕСТОВОГО ПУШУ")
print("=" * 60)
print(f"FCM Token: {notification['fcm_token'][:50]}...")
print(f"Title: {notification['title']}")
print("=" * 60)

try:
    response = httpx.post(
        f"{BASE_URL}/api/notifications/test",
        json=notification,
        timeout=30.0
    )

    if response.status_code == 200:
        print("✅ УСПІШНО ВІДПРАВЛЕНО!")
        print(json.dumps(response.json(), indent=2, ensure_ascii=False))
    else:
        print(f"❌ ПОМИЛКА: {response.status_code}")
        print(response.text)

except httpx.HTTPError as e:
    print(f"❌ ПОМИЛКА: {e}")
