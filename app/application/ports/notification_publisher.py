"""Contract for delivering notification events to live client sessions."""

from typing import Protocol

from app.domain.entities import Notification


class NotificationPublisher(Protocol):
    """Best-effort, at-most-once push of notification events.

    Implementations must never raise: a failed push is logged and dropped, the
    persisted store stays the source of truth.
    """

    def push_notification(self, user_id: int, notification: Notification) -> None:
        ...

    def push_unread_count(self, user_id: int, count: int) -> None:
        ...


class NullNotificationPublisher:
    """Publisher used when no realtime channel is running (scripts, workers)."""

    def push_notification(self, user_id: int, notification: Notification) -> None:
        return None

    def push_unread_count(self, user_id: int, count: int) -> None:
        return None


__all__ = ["NotificationPublisher", "NullNotificationPublisher"]
