"""Interfaces the application layer depends on."""

from .notification_publisher import NotificationPublisher, NullNotificationPublisher

__all__ = ["NotificationPublisher", "NullNotificationPublisher"]
