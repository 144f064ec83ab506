"""Domain entities exposed by the application."""

from .notification import (
    NOTIFICATION_CATEGORIES,
    NOTIFICATION_CATEGORY_ERROR,
    NOTIFICATION_CATEGORY_INFO,
    NOTIFICATION_CATEGORY_SUCCESS,
    NOTIFICATION_CATEGORY_WARNING,
    NOTIFICATION_PRIORITIES,
    NOTIFICATION_PRIORITY_HIGH,
    NOTIFICATION_PRIORITY_LOW,
    NOTIFICATION_PRIORITY_MEDIUM,
    Notification,
    NotificationFilter,
    NotificationPage,
    RelatedRefs,
)
from .user import (
    ROLE_ADMIN,
    ROLE_AGENT,
    ROLE_ENTERPRISE,
    SELF_SERVICE_ROLES,
    USER_ROLES,
    User,
)

__all__ = [
    "NOTIFICATION_CATEGORIES",
    "NOTIFICATION_CATEGORY_ERROR",
    "NOTIFICATION_CATEGORY_INFO",
    "NOTIFICATION_CATEGORY_SUCCESS",
    "NOTIFICATION_CATEGORY_WARNING",
    "NOTIFICATION_PRIORITIES",
    "NOTIFICATION_PRIORITY_HIGH",
    "NOTIFICATION_PRIORITY_LOW",
    "NOTIFICATION_PRIORITY_MEDIUM",
    "Notification",
    "NotificationFilter",
    "NotificationPage",
    "RelatedRefs",
    "ROLE_ADMIN",
    "ROLE_AGENT",
    "ROLE_ENTERPRISE",
    "SELF_SERVICE_ROLES",
    "USER_ROLES",
    "User",
]
