"""
Розсилка push-сповіщень про нові відгуки

Один запит проходить кроки: відгук -> отримувачі -> відправка кожному -> підсумок.
Помилка одного отримувача не зупиняє відправку іншим.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import crud_feedback, crud_notifications, crud_tokens
from app.crud_notifications import as_utc
from app.config import settings
from app.exceptions import NotFoundError, StoreError
from app.models import Feedback
from app.schemas import DispatchOutcome, DispatchSummary, data_to_strings
from app.services import firebase_service
from app.services.firebase_service import PushResult

logger = logging.getLogger(__name__)

BODY_PREVIEW_LENGTH = 100


@dataclass
class _Recipient:
    user_id: str
    tokens: List[str] = field(default_factory=list)
    error: Optional[str] = None


def build_feedback_notification(feedback: Feedback) -> Tuple[str, str, Dict[str, str]]:
    """
    Заголовок, текст та data для сповіщення про відгук
    """
    customer_name = feedback.customer_name or "Customer"
    content = feedback.content or ""
    if len(content) > BODY_PREVIEW_LENGTH:
        content = content[:BODY_PREVIEW_LENGTH].rstrip() + "..."

    data = {
        "type": "new_feedback",
        "feedback_id": str(feedback.id),
        "customer_name": customer_name,
        "created_at": as_utc(feedback.created_at).isoformat() if feedback.created_at else "",
    }
    return f"New feedback from {customer_name}", content or "New customer feedback", data


def summarize(outcomes: List[DispatchOutcome]) -> DispatchSummary:
    success_count = sum(1 for outcome in outcomes if outcome.success)
    return DispatchSummary(
        total=len(outcomes),
        success_count=success_count,
        failure_count=len(outcomes) - success_count,
        details=outcomes,
    )


class FeedbackNotificationDispatcher:
    """
    Відправляє сповіщення списку користувачів і записує історію.

    push - будь-який об'єкт з send_to_token(token, notification, data) -> PushResult,
    за замовчуванням firebase_service.
    """

    def __init__(
        self,
        db: Session,
        push=firebase_service,
        notify_always: Optional[Iterable[str]] = None,
        max_workers: Optional[int] = None,
    ):
        self.db = db
        self.push = push
        self.notify_always = list(settings.NOTIFY_ALWAYS_USER_IDS if notify_always is None else notify_always)
        self.max_workers = max(1, settings.DISPATCH_MAX_WORKERS if max_workers is None else max_workers)

    # ============= Resolve =============

    def resolve_feedback(self, feedback_id: str) -> Feedback:
        try:
            feedback = crud_feedback.get_feedback(self.db, feedback_id)
        except SQLAlchemyError as e:
            raise StoreError("Failed to load feedback details") from e

        if feedback is None:
            raise NotFoundError("The specified feedback does not exist", error="Feedback not found")
        return feedback

    def resolve_recipients(self, feedback_id: str) -> List[str]:
        try:
            return crud_feedback.get_users_for_feedback_notification(
                self.db, feedback_id, self.notify_always
            )
        except SQLAlchemyError as e:
            raise StoreError("Failed to resolve notification recipients") from e

    # ============= Dispatch =============

    def _load_recipient(self, user_id: str) -> _Recipient:
        try:
            tokens = [t.fcm_token for t in crud_tokens.get_active_tokens(self.db, user_id)]
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to load tokens for user {user_id}: {e}")
            return _Recipient(user_id, error=f"Failed to load FCM tokens: {e}")

        if not tokens:
            return _Recipient(user_id, error="No active FCM tokens for user")
        return _Recipient(user_id, tokens=tokens)

    def _send(self, recipient: _Recipient, notification: Dict[str, str], data: Dict[str, str]) -> PushResult:
        """Відправка на всі токени користувача. Успіх - хоча б один токен прийняв."""
        if recipient.error:
            return PushResult(success=False, error=recipient.error)

        first_success: Optional[PushResult] = None
        errors = []
        for token in recipient.tokens:
            try:
                result = self.push.send_to_token(token, notification, data)
            except Exception as e:
                logger.error(f"Push provider raised for user {recipient.user_id}: {e}")
                result = PushResult(success=False, error=str(e))

            if result.success:
                first_success = first_success or result
            else:
                errors.append(result.error or "Unknown push error")

        if first_success is not None:
            return first_success
        return PushResult(success=False, error="; ".join(errors))

    def _attempts(
        self,
        recipients: Iterable[_Recipient],
        notification: Dict[str, str],
        data: Dict[str, str],
    ) -> Iterator[Tuple[_Recipient, PushResult]]:
        def attempt(recipient: _Recipient) -> Tuple[_Recipient, PushResult]:
            return recipient, self._send(recipient, notification, data)

        if self.max_workers == 1:
            yield from map(attempt, recipients)
            return

        # pool.map повертає результати в порядку отримувачів
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            yield from pool.map(attempt, recipients)

    def _record(
        self,
        recipient: _Recipient,
        result: PushResult,
        title: str,
        body: str,
        data: Dict[str, str],
        feedback_id: Optional[str],
    ) -> DispatchOutcome:
        if not result.success:
            logger.warning(f"Notification to user {recipient.user_id} failed: {result.error}")
            return DispatchOutcome(user_id=recipient.user_id, success=False, error=result.error)

        try:
            crud_notifications.save_notification_history(
                self.db, recipient.user_id, title, body, data=data, feedback_id=feedback_id
            )
        except SQLAlchemyError as e:
            # Push вже доставлено, але запис в історію не вдався
            self.db.rollback()
            logger.error(f"Sent to user {recipient.user_id} but failed to save history: {e}")
            return DispatchOutcome(
                user_id=recipient.user_id,
                success=False,
                message_id=result.message_id,
                error=f"Failed to save notification history: {e}",
            )

        return DispatchOutcome(user_id=recipient.user_id, success=True, message_id=result.message_id)

    def dispatch(
        self,
        recipient_ids: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
        feedback_id: Optional[str] = None,
    ) -> List[DispatchOutcome]:
        """
        Відправляє одне повідомлення кожному отримувачу.
        Токени читаються і історія пишеться в потоці запиту, паралельно йдуть тільки виклики FCM.
        """
        notification = {"title": title, "body": body}
        payload = data_to_strings(data)

        if self.max_workers == 1:
            recipients = (self._load_recipient(user_id) for user_id in recipient_ids)
        else:
            recipients = [self._load_recipient(user_id) for user_id in recipient_ids]

        outcomes = [
            self._record(recipient, result, title, body, payload, feedback_id)
            for recipient, result in self._attempts(recipients, notification, payload)
        ]
        return outcomes

    # ============= Entry points =============

    def notify_new_feedback(self, feedback_id: str) -> Optional[DispatchSummary]:
        """
        Повертає None, якщо для відгуку немає кого сповіщати
        """
        feedback = self.resolve_feedback(feedback_id)
        recipient_ids = self.resolve_recipients(feedback_id)
        logger.info(f"Feedback {feedback_id}: {len(recipient_ids)} recipient(s)")

        if not recipient_ids:
            return None

        title, body, data = build_feedback_notification(feedback)
        summary = summarize(self.dispatch(recipient_ids, title, body, data, feedback_id=str(feedback.id)))

        logger.info(
            f"Feedback {feedback_id} notifications: total={summary.total}, "
            f"success={summary.success_count}, failed={summary.failure_count}"
        )
        return summary

    def send_to_user(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> DispatchOutcome:
        """
        Довільне повідомлення одному користувачу. feedback_id з data має існувати.
        """
        feedback_id = (data or {}).get("feedback_id")
        if feedback_id:
            self.resolve_feedback(str(feedback_id))

        return self.dispatch(
            [user_id], title, body, data, feedback_id=str(feedback_id) if feedback_id else None
        )[0]
