from .auth import RegisterRequest, Token
from .notification import (
    BulkDeleteResponse,
    MarkAllReadResponse,
    NotificationPageRead,
    NotificationRead,
    PaginationRead,
    UnreadCountRead,
)
from .user import UserRead

__all__ = [
    "BulkDeleteResponse",
    "MarkAllReadResponse",
    "NotificationPageRead",
    "NotificationRead",
    "PaginationRead",
    "RegisterRequest",
    "Token",
    "UnreadCountRead",
    "UserRead",
]
