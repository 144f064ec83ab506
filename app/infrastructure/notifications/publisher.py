"""Utility helpers to push notifications to websocket subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Final

from anyio import from_thread

from app.domain.entities import Notification
from app.utils import isoformat_or_none

from .manager import NotificationConnectionManager

logger = logging.getLogger(__name__)

NEW_NOTIFICATION_EVENT: Final[str] = "newNotification"
UNREAD_COUNT_EVENT: Final[str] = "notificationCountUpdate"


class WebSocketNotificationPublisher:
    """Serialize notification events and queue them on the user's sessions.

    Delivery is fire-and-forget: users without a live session are skipped and
    any scheduling failure is logged instead of raised.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    def push_notification(self, user_id: int, notification: Notification) -> None:
        self._publish(
            user_id,
            {"type": NEW_NOTIFICATION_EVENT, "data": serialize_notification(notification)},
        )

    def push_unread_count(self, user_id: int, count: int) -> None:
        self._publish(user_id, unread_count_message(count))

    def _publish(self, user_id: int, message: dict[str, Any]) -> None:
        if not user_id or self._manager.session_count(user_id) == 0:
            logger.debug("No live session for user %s; %s dropped", user_id, message["type"])
            return
        try:
            self._schedule(user_id, message)
        except RuntimeError as exc:
            logger.warning(
                "Event loop unreachable, %s for user %s dropped: %s",
                message["type"],
                user_id,
                exc,
            )
        except Exception:  # pragma: no cover - push must never fail the caller
            logger.exception("Unexpected error pushing %s to user %s", message["type"], user_id)

    def _schedule(self, user_id: int, message: dict[str, Any]) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Sync route handlers run in AnyIO worker threads; hop onto the loop
            # so the queue is only touched from its own thread.
            from_thread.run_sync(self._manager.enqueue, user_id, message)
        else:
            self._manager.enqueue(user_id, message)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON payload representation for ``notification``."""

    related = notification.related
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "title": notification.title,
        "message": notification.message,
        "category": notification.category,
        "read": notification.read,
        "read_at": isoformat_or_none(notification.read_at),
        "related_task_id": related.task_id,
        "related_application_id": related.application_id,
        "related_payment_id": related.payment_id,
        "action_url": notification.action_url,
        "action_text": notification.action_text,
        "icon": notification.icon,
        "priority": notification.priority,
        "expires_at": isoformat_or_none(notification.expires_at),
        "created_at": isoformat_or_none(notification.created_at),
        "updated_at": isoformat_or_none(notification.updated_at),
    }


def unread_count_message(count: int) -> dict[str, Any]:
    return {"type": UNREAD_COUNT_EVENT, "data": {"unread_count": count}}


__all__ = [
    "NEW_NOTIFICATION_EVENT",
    "UNREAD_COUNT_EVENT",
    "WebSocketNotificationPublisher",
    "serialize_notification",
    "unread_count_message",
]
