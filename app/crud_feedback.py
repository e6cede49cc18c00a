"""
Читання відгуків клієнтів та визначення отримувачів сповіщень
"""

from sqlalchemy.orm import Session
from typing import Iterable, List, Optional

from app.models import Feedback


def get_feedback(db: Session, feedback_id: str) -> Optional[Feedback]:
    """Отримання відгуку за ID"""
    return db.query(Feedback).filter(Feedback.id == feedback_id).first()


def get_users_for_feedback_notification(
    db: Session,
    feedback_id: str,
    notify_always: Iterable[str] = ()
) -> List[str]:
    """
    Користувачі, яким треба надіслати сповіщення про відгук:
    відповідальний за відгук + завжди-сповіщувані ID з налаштувань.
    Без дублікатів, відповідальний першим.
    """
    assigned = db.query(Feedback.assigned_user_id).filter(
        Feedback.id == feedback_id,
        Feedback.assigned_user_id.isnot(None)
    ).scalar()

    user_ids: List[str] = []
    for user_id in [assigned, *notify_always]:
        if user_id and user_id not in user_ids:
            user_ids.append(user_id)
    return user_ids
