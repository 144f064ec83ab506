"""Use case for registering marketplace users."""

from sqlalchemy.orm import Session

from app.domain.entities import SELF_SERVICE_ROLES, USER_ROLES, User
from app.infrastructure.repositories import UserRepository
from app.infrastructure.security import get_password_hash
from app.utils import now_in_app_timezone


def create_user(
    session: Session,
    *,
    name: str,
    email: str,
    password: str,
    role: str,
    allow_admin: bool = False,
) -> User:
    """Create a new agent or enterprise account ensuring unique email addresses.

    ``allow_admin`` is only set by the seeding script; the public sign-up never
    creates administrators.
    """

    normalized_role = role.strip().lower()
    allowed_roles = USER_ROLES if allow_admin else SELF_SERVICE_ROLES
    if normalized_role not in allowed_roles:
        raise ValueError("Rol no permitido")

    normalized_email = email.strip().lower()
    repository = UserRepository(session)
    if repository.get_by_email(normalized_email):
        raise ValueError("El correo electrónico ya está registrado")

    user = User(
        id=None,
        role=normalized_role,
        name=name.strip(),
        email=normalized_email,
        password=get_password_hash(password),
        is_active=True,
        last_login=None,
        created_at=now_in_app_timezone(),
        updated_at=None,
    )
    return repository.create(user)
