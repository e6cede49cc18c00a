"""
Міграція: унікальна пара (user_id, fcm_token) в таблиці user_tokens
"""
import sqlite3
import sys


def migrate(db_path: str):
    """Прибирає дублікати пар (user_id, fcm_token) і додає unique index"""

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    try:
        print("🔧 Міграція: unique index на (user_id, fcm_token)")
        print("="*70)

        # Крок 1: Шукаємо дублікати
        print("\n1️⃣ Перевірка дублікатів...")
        cursor.execute('''
            SELECT user_id, fcm_token, COUNT(*) as count
            FROM user_tokens
            GROUP BY user_id, fcm_token
            HAVING COUNT(*) > 1
        ''')
        duplicates = cursor.fetchall()

        if duplicates:
            print(f"⚠️ Знайдено {len(duplicates)} дублікатів!")
            for user_id, token, count in duplicates:
                print(f"   {user_id}: token {token[:40]}... зустрічається {count} разів")

                # Залишаємо найновіший запис
                cursor.execute('''
                    DELETE FROM user_tokens
                    WHERE user_id = ? AND fcm_token = ?
                    AND id NOT IN (
                        SELECT id FROM user_tokens
                        WHERE user_id = ? AND fcm_token = ?
                        ORDER BY updated_at DESC, id DESC
                        LIMIT 1
                    )
                ''', (user_id, token, user_id, token))
                print(f"   ✅ Видалено {cursor.rowcount} старих записів")
        else:
            print("✅ Дублікатів немає")

        # Крок 2: Індекс
        print("\n2️⃣ Створення індексу...")
        cursor.execute('''
            CREATE UNIQUE INDEX IF NOT EXISTS uq_user_tokens_user_token
            ON user_tokens (user_id, fcm_token)
        ''')
        print("✅ Індекс створено")

        conn.commit()

        print("\n" + "="*70)
        print("✅ Міграція завершена успішно!")

    except sqlite3.Error as e:
        conn.rollback()
        print(f"\n❌ Помилка: {e}")
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    migrate(sys.argv[1] if len(sys.argv) > 1 else './feedback_push.db')
