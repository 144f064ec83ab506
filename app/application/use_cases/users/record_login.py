"""Use case for stamping the last successful login of a user."""

from sqlalchemy.orm import Session

from app.domain.entities import User
from app.infrastructure.repositories import UserRepository
from app.utils import now_in_app_timezone


def record_login(session: Session, user: User) -> User:
    """Persist ``last_login`` for ``user`` and return the refreshed entity."""

    user.last_login = now_in_app_timezone()
    return UserRepository(session).update(user)
