"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.entities import Notification


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: int
    title: str
    message: str
    category: str
    read: bool
    read_at: datetime | None = None
    related_task_id: int | None = None
    related_application_id: int | None = None
    related_payment_id: int | None = None
    action_url: str | None = None
    action_text: str | None = None
    icon: str = "bell"
    priority: str = "medium"
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        related = notification.related
        return cls(
            id=notification.id or 0,
            user_id=notification.user_id,
            title=notification.title,
            message=notification.message,
            category=notification.category,
            read=notification.read,
            read_at=notification.read_at,
            related_task_id=related.task_id,
            related_application_id=related.application_id,
            related_payment_id=related.payment_id,
            action_url=notification.action_url,
            action_text=notification.action_text,
            icon=notification.icon,
            priority=notification.priority,
            expires_at=notification.expires_at,
            created_at=notification.created_at,
            updated_at=notification.updated_at,
        )


class PaginationRead(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class NotificationPageRead(BaseModel):
    """A page of notifications together with the live unread counter."""

    notifications: list[NotificationRead] = Field(default_factory=list)
    pagination: PaginationRead
    unread_count: int


class UnreadCountRead(BaseModel):
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int
    unread_count: int


class BulkDeleteResponse(BaseModel):
    deleted: int
    unread_count: int


__all__ = [
    "BulkDeleteResponse",
    "MarkAllReadResponse",
    "NotificationPageRead",
    "NotificationRead",
    "PaginationRead",
    "UnreadCountRead",
]
