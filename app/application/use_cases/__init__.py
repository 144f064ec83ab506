"""Aggregate application use cases."""

from .notifications import NotificationService
from .users import authenticate_user, create_user, record_login

__all__ = [
    "NotificationService",
    "authenticate_user",
    "create_user",
    "record_login",
]
