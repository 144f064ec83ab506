"""Realtime notification helpers for the infrastructure layer."""

from .manager import NotificationConnectionManager, PushSession
from .publisher import (
    NEW_NOTIFICATION_EVENT,
    UNREAD_COUNT_EVENT,
    WebSocketNotificationPublisher,
    serialize_notification,
    unread_count_message,
)

__all__ = [
    "NotificationConnectionManager",
    "PushSession",
    "NEW_NOTIFICATION_EVENT",
    "UNREAD_COUNT_EVENT",
    "WebSocketNotificationPublisher",
    "serialize_notification",
    "unread_count_message",
]
