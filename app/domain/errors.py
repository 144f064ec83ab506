"""Exceptions raised by the notification domain.

They subclass :class:`ValueError` so use cases keep raising ``ValueError``
family errors that routes translate into HTTP responses.
"""


class NotificationError(ValueError):
    """Base class for notification failures caused by the caller."""


class NotificationValidationError(NotificationError):
    """Raised when a notification field is missing, too long or not allowed."""


class NotificationNotFoundError(NotificationError):
    """Raised when the referenced notification does not exist."""


class NotificationAccessDeniedError(NotificationError):
    """Raised when the notification exists but belongs to another user."""


class UserNotFoundError(ValueError):
    """Raised when the addressed user does not exist."""


class PushDeliveryError(RuntimeError):
    """Transport failure while pushing an event to a live session.

    Always handled inside the push channel; it never reaches a REST caller.
    """


__all__ = [
    "NotificationAccessDeniedError",
    "NotificationError",
    "NotificationNotFoundError",
    "NotificationValidationError",
    "PushDeliveryError",
    "UserNotFoundError",
]
