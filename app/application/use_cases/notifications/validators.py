"""Validation helpers for notification use cases."""

from __future__ import annotations

from app.domain.entities import NOTIFICATION_CATEGORIES, NOTIFICATION_PRIORITIES
from app.domain.entities.notification import (
    ACTION_TEXT_MAX_LENGTH,
    ACTION_URL_MAX_LENGTH,
    ICON_MAX_LENGTH,
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)
from app.domain.errors import NotificationValidationError


def ensure_required_text(value: str | None, *, field: str, max_length: int) -> str:
    """Return ``value`` stripped or raise when it is empty or too long."""

    if value is None or not str(value).strip():
        raise NotificationValidationError(f"El campo '{field}' es obligatorio")
    normalized = str(value).strip()
    if len(normalized) > max_length:
        raise NotificationValidationError(
            f"El campo '{field}' no puede superar {max_length} caracteres"
        )
    return normalized


def ensure_optional_text(value: str | None, *, field: str, max_length: int) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip()
    if not normalized:
        return None
    if len(normalized) > max_length:
        raise NotificationValidationError(
            f"El campo '{field}' no puede superar {max_length} caracteres"
        )
    return normalized


def ensure_valid_category(category: str | None) -> str:
    normalized = (category or "").strip().lower()
    if normalized not in NOTIFICATION_CATEGORIES:
        allowed = ", ".join(sorted(NOTIFICATION_CATEGORIES))
        raise NotificationValidationError(
            f"Categoría de notificación no válida: '{category}'. Valores permitidos: {allowed}"
        )
    return normalized


def ensure_valid_priority(priority: str | None) -> str:
    normalized = (priority or "").strip().lower()
    if normalized not in NOTIFICATION_PRIORITIES:
        allowed = ", ".join(sorted(NOTIFICATION_PRIORITIES))
        raise NotificationValidationError(
            f"Prioridad de notificación no válida: '{priority}'. Valores permitidos: {allowed}"
        )
    return normalized


def validate_title(title: str | None) -> str:
    return ensure_required_text(title, field="title", max_length=TITLE_MAX_LENGTH)


def validate_message(message: str | None) -> str:
    return ensure_required_text(message, field="message", max_length=MESSAGE_MAX_LENGTH)


def validate_action_url(action_url: str | None) -> str | None:
    return ensure_optional_text(
        action_url, field="action_url", max_length=ACTION_URL_MAX_LENGTH
    )


def validate_action_text(action_text: str | None) -> str | None:
    return ensure_optional_text(
        action_text, field="action_text", max_length=ACTION_TEXT_MAX_LENGTH
    )


def validate_icon(icon: str | None) -> str | None:
    return ensure_optional_text(icon, field="icon", max_length=ICON_MAX_LENGTH)


def validate_pagination(page: int, limit: int, *, max_limit: int = 100) -> tuple[int, int]:
    if page < 1:
        raise NotificationValidationError("La página debe ser mayor o igual a 1")
    if limit < 1 or limit > max_limit:
        raise NotificationValidationError(
            f"El límite debe estar entre 1 y {max_limit}"
        )
    return page, limit


__all__ = [
    "ensure_optional_text",
    "ensure_required_text",
    "ensure_valid_category",
    "ensure_valid_priority",
    "validate_action_text",
    "validate_action_url",
    "validate_icon",
    "validate_message",
    "validate_pagination",
    "validate_title",
]
