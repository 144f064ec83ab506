"""Domain entity representing a user notification."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Final

NOTIFICATION_CATEGORY_INFO: Final[str] = "info"
NOTIFICATION_CATEGORY_SUCCESS: Final[str] = "success"
NOTIFICATION_CATEGORY_WARNING: Final[str] = "warning"
NOTIFICATION_CATEGORY_ERROR: Final[str] = "error"

NOTIFICATION_CATEGORIES: Final[frozenset[str]] = frozenset(
    {
        NOTIFICATION_CATEGORY_INFO,
        NOTIFICATION_CATEGORY_SUCCESS,
        NOTIFICATION_CATEGORY_WARNING,
        NOTIFICATION_CATEGORY_ERROR,
    }
)

NOTIFICATION_PRIORITY_LOW: Final[str] = "low"
NOTIFICATION_PRIORITY_MEDIUM: Final[str] = "medium"
NOTIFICATION_PRIORITY_HIGH: Final[str] = "high"

NOTIFICATION_PRIORITIES: Final[frozenset[str]] = frozenset(
    {NOTIFICATION_PRIORITY_LOW, NOTIFICATION_PRIORITY_MEDIUM, NOTIFICATION_PRIORITY_HIGH}
)

TITLE_MAX_LENGTH: Final[int] = 100
MESSAGE_MAX_LENGTH: Final[int] = 500
ACTION_URL_MAX_LENGTH: Final[int] = 255
ACTION_TEXT_MAX_LENGTH: Final[int] = 100
ICON_MAX_LENGTH: Final[int] = 50
DEFAULT_ICON: Final[str] = "bell"


@dataclass(frozen=True)
class RelatedRefs:
    """Optional links from a notification to the marketplace entity behind it."""

    task_id: int | None = None
    application_id: int | None = None
    payment_id: int | None = None

    def is_empty(self) -> bool:
        return (
            self.task_id is None
            and self.application_id is None
            and self.payment_id is None
        )


@dataclass
class Notification:
    """Information message delivered to a specific user.

    ``read`` and ``read_at`` always move together: a notification is read
    exactly when ``read_at`` holds the moment it was first marked as read.
    """

    id: int | None
    user_id: int
    title: str
    message: str
    category: str = NOTIFICATION_CATEGORY_INFO
    read: bool = False
    read_at: datetime | None = None
    related: RelatedRefs = field(default_factory=RelatedRefs)
    action_url: str | None = None
    action_text: str | None = None
    icon: str = DEFAULT_ICON
    priority: str = NOTIFICATION_PRIORITY_MEDIUM
    expires_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_owned_by(self, user_id: int) -> bool:
        return self.user_id == user_id


@dataclass(frozen=True)
class NotificationFilter:
    """Optional constraints applied when listing or bulk-deleting notifications."""

    category: str | None = None
    read: bool | None = None


@dataclass
class NotificationPage:
    """One page of a user's notifications plus the live unread counter."""

    items: list[Notification]
    page: int
    limit: int
    total: int
    unread_count: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


__all__ = [
    "ACTION_TEXT_MAX_LENGTH",
    "ACTION_URL_MAX_LENGTH",
    "DEFAULT_ICON",
    "ICON_MAX_LENGTH",
    "MESSAGE_MAX_LENGTH",
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
    "TITLE_MAX_LENGTH",
]
