"""Public helpers for raising and managing notifications."""

from .events import (
    APPLICATION_ACCEPTED,
    APPLICATION_REJECTED,
    notify_application_reviewed,
    notify_application_submitted,
    notify_payment_confirmed,
    notify_payment_disputed,
    notify_payment_received,
    notify_rating_received,
    notify_task_published,
    notify_task_published_to_agents,
    on_task_deleted,
)
from .service import NotificationService

__all__ = [
    "APPLICATION_ACCEPTED",
    "APPLICATION_REJECTED",
    "NotificationService",
    "notify_application_reviewed",
    "notify_application_submitted",
    "notify_payment_confirmed",
    "notify_payment_disputed",
    "notify_payment_received",
    "notify_rating_received",
    "notify_task_published",
    "notify_task_published_to_agents",
    "on_task_deleted",
]
