"""Helpers the marketplace workflows use to raise domain notifications.

Task, application, payment and rating workflows depend only on the injected
:class:`NotificationService`. A failure to notify is logged and reported as
``None`` so the business action that triggered it can still succeed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.exc import SQLAlchemyError

from app.domain.entities import (
    NOTIFICATION_CATEGORY_INFO,
    NOTIFICATION_CATEGORY_SUCCESS,
    NOTIFICATION_CATEGORY_WARNING,
    NOTIFICATION_PRIORITY_HIGH,
    Notification,
    RelatedRefs,
)

from .service import NotificationService

logger = logging.getLogger(__name__)

APPLICATION_ACCEPTED = "accepted"
APPLICATION_REJECTED = "rejected"


def _safe_notify(
    service: NotificationService, user_id: int, **kwargs
) -> Notification | None:
    try:
        return service.notify(user_id, **kwargs)
    except (ValueError, SQLAlchemyError) as exc:
        logger.warning(
            "Notification '%s' for user %s was not created: %s",
            kwargs.get("title"),
            user_id,
            exc,
        )
        return None


def notify_task_published(
    service: NotificationService, *, enterprise_id: int, task_id: int, task_title: str
) -> Notification | None:
    """Confirm to the enterprise that its task is now visible to agents."""

    return _safe_notify(
        service,
        enterprise_id,
        title="Tarea publicada",
        message=f"Tu tarea \"{task_title}\" se publicó correctamente",
        category=NOTIFICATION_CATEGORY_SUCCESS,
        related=RelatedRefs(task_id=task_id),
    )


def notify_task_published_to_agents(
    service: NotificationService,
    *,
    agent_ids: Iterable[int],
    task_id: int,
    task_title: str,
) -> list[Notification]:
    """Announce a new task to the interested agents; partial delivery is fine."""

    try:
        return service.notify_many(
            agent_ids,
            title="Nueva tarea disponible",
            message=f"Se publicó la tarea \"{task_title}\"",
            category=NOTIFICATION_CATEGORY_INFO,
            related=RelatedRefs(task_id=task_id),
            action_url=f"/tasks/{task_id}",
            action_text="Ver tarea",
        )
    except ValueError as exc:
        logger.warning("Task %s announcement was not created: %s", task_id, exc)
        return []


def notify_application_submitted(
    service: NotificationService,
    *,
    enterprise_id: int,
    agent_name: str,
    task_id: int,
    task_title: str,
    application_id: int,
) -> Notification | None:
    """Tell the enterprise that an agent applied to one of its tasks."""

    return _safe_notify(
        service,
        enterprise_id,
        title="Nueva postulación",
        message=f"{agent_name} se postuló a tu tarea \"{task_title}\"",
        category=NOTIFICATION_CATEGORY_INFO,
        related=RelatedRefs(task_id=task_id, application_id=application_id),
        action_url=f"/tasks/{task_id}/applications/{application_id}",
        action_text="Revisar postulación",
    )


def notify_application_reviewed(
    service: NotificationService,
    *,
    agent_id: int,
    status: str,
    task_id: int,
    task_title: str,
    application_id: int,
) -> Notification | None:
    """Tell the agent whether the enterprise accepted or rejected the application."""

    if status == APPLICATION_ACCEPTED:
        title = "Postulación aceptada"
        message = f"¡Tu postulación para \"{task_title}\" fue aceptada!"
        category = NOTIFICATION_CATEGORY_SUCCESS
    elif status == APPLICATION_REJECTED:
        title = "Postulación rechazada"
        message = f"Tu postulación para \"{task_title}\" fue rechazada."
        category = NOTIFICATION_CATEGORY_WARNING
    else:
        return None

    return _safe_notify(
        service,
        agent_id,
        title=title,
        message=message,
        category=category,
        related=RelatedRefs(task_id=task_id, application_id=application_id),
    )


def notify_payment_received(
    service: NotificationService,
    *,
    agent_id: int,
    amount: float,
    currency: str,
    task_id: int,
    task_title: str,
    payment_id: int,
) -> Notification | None:
    return _safe_notify(
        service,
        agent_id,
        title="Pago recibido",
        message=(
            f"Recibiste un pago de {amount:.2f} {currency} por la tarea \"{task_title}\""
        ),
        category=NOTIFICATION_CATEGORY_SUCCESS,
        related=RelatedRefs(task_id=task_id, payment_id=payment_id),
        priority=NOTIFICATION_PRIORITY_HIGH,
    )


def notify_payment_confirmed(
    service: NotificationService,
    *,
    payer_id: int,
    task_id: int,
    task_title: str,
    payment_id: int,
) -> Notification | None:
    return _safe_notify(
        service,
        payer_id,
        title="Pago confirmado",
        message=f"Tu pago por \"{task_title}\" fue confirmado",
        category=NOTIFICATION_CATEGORY_SUCCESS,
        related=RelatedRefs(task_id=task_id, payment_id=payment_id),
    )


def notify_payment_disputed(
    service: NotificationService,
    *,
    counterpart_id: int,
    task_id: int,
    task_title: str,
    payment_id: int,
) -> Notification | None:
    """Warn the other party of a payment that it has been disputed."""

    return _safe_notify(
        service,
        counterpart_id,
        title="Pago en disputa",
        message=f"El pago por \"{task_title}\" fue impugnado",
        category=NOTIFICATION_CATEGORY_WARNING,
        related=RelatedRefs(task_id=task_id, payment_id=payment_id),
        priority=NOTIFICATION_PRIORITY_HIGH,
    )


def notify_rating_received(
    service: NotificationService,
    *,
    user_id: int,
    score: int,
    task_id: int,
    task_title: str,
) -> Notification | None:
    return _safe_notify(
        service,
        user_id,
        title="Nueva calificación recibida",
        message=f"Recibiste una calificación de {score}/5 por la tarea \"{task_title}\"",
        category=NOTIFICATION_CATEGORY_INFO,
        related=RelatedRefs(task_id=task_id),
    )


def on_task_deleted(service: NotificationService, *, task_id: int) -> int:
    """Remove every notification that points at the deleted task."""

    try:
        return service.delete_related(task_id=task_id)
    except SQLAlchemyError:
        logger.exception("Could not remove notifications of deleted task %s", task_id)
        return 0


__all__ = [
    "APPLICATION_ACCEPTED",
    "APPLICATION_REJECTED",
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
