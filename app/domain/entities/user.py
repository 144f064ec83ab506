"""Domain entity representing a marketplace user."""

from dataclasses import dataclass
from datetime import datetime
from typing import Final

ROLE_AGENT: Final[str] = "agent"
ROLE_ENTERPRISE: Final[str] = "enterprise"
ROLE_ADMIN: Final[str] = "admin"

USER_ROLES: Final[frozenset[str]] = frozenset({ROLE_AGENT, ROLE_ENTERPRISE, ROLE_ADMIN})
SELF_SERVICE_ROLES: Final[frozenset[str]] = frozenset({ROLE_AGENT, ROLE_ENTERPRISE})


@dataclass
class User:
    """Core attributes describing an agent, an enterprise or an administrator."""

    id: int | None
    role: str
    name: str
    email: str
    password: str
    is_active: bool
    last_login: datetime | None
    created_at: datetime | None
    updated_at: datetime | None


__all__ = [
    "ROLE_ADMIN",
    "ROLE_AGENT",
    "ROLE_ENTERPRISE",
    "SELF_SERVICE_ROLES",
    "USER_ROLES",
    "User",
]
