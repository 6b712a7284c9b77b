"""Notifier port — abstract interface for customer notification delivery.

The shipping domain only emits notifications; it never waits on or
inspects delivery. Adapters decide whether a notification becomes an
in-app message, an email or an SMS.
"""

from abc import ABC, abstractmethod


class NotifierPort(ABC):
    """Abstract interface for notifier adapters."""

    @abstractmethod
    def emit(
        self,
        title: str,
        message: str,
        type: str,
        related_id: str,
        user_id: str,
    ) -> dict:
        """Hand a notification over for delivery.

        Returns:
            dict with keys: notification_id, status ("queued" or "failed"), error (on failure)
        """
        ...
