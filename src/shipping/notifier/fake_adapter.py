"""Fake notifier adapter — records emitted notifications for testing."""

from uuid import uuid4

from shipping.notifier.port import NotifierPort


class FakeNotifier(NotifierPort):
    """Notifier that keeps messages in memory for test assertions."""

    def __init__(self):
        self.sent_notifications: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Configure the fake notifier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def emit(
        self,
        title: str,
        message: str,
        type: str,
        related_id: str,
        user_id: str,
    ) -> dict:
        if not self.should_succeed:
            return {
                "notification_id": None,
                "status": "failed",
                "error": self.failure_reason,
            }

        notification_id = f"ntf-{uuid4().hex[:12]}"
        self.sent_notifications.append(
            {
                "notification_id": notification_id,
                "title": title,
                "message": message,
                "type": type,
                "related_id": related_id,
                "user_id": user_id,
            }
        )
        return {"notification_id": notification_id, "status": "queued"}

    def reset(self):
        """Clear recorded notifications (useful between tests)."""
        self.sent_notifications.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
