"""Shared fixtures: a throwaway SQLite database and fake notification publishers."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "marketplace_notifications_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["APP_TIMEZONE"] = "UTC"

from app.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from app.domain.errors import PushDeliveryError  # noqa: E402
from app.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)
from app.infrastructure.models import UserModel  # noqa: E402
from app.infrastructure.security import get_password_hash  # noqa: E402


class RecordingPublisher:
    """Publisher double that remembers every push in call order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, int, object]] = []

    def push_notification(self, user_id, notification) -> None:
        self.events.append(("notification", user_id, notification.id))

    def push_unread_count(self, user_id, count) -> None:
        self.events.append(("count", user_id, count))

    def counts_for(self, user_id: int) -> list[int]:
        return [value for kind, uid, value in self.events if kind == "count" and uid == user_id]


class FailingPublisher:
    """Publisher double simulating a broken realtime transport."""

    def push_notification(self, user_id, notification) -> None:
        raise PushDeliveryError("transport down")

    def push_unread_count(self, user_id, count) -> None:
        raise PushDeliveryError("transport down")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_database():
    """Ensure the test database starts from a clean state for each test."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def recording_publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def failing_publisher() -> FailingPublisher:
    return FailingPublisher()


def create_user_record(
    *,
    email: str,
    password: str | None = None,
    name: str = "Test User",
    role: str = "agent",
    is_active: bool = True,
) -> int:
    """Insert a user row directly; the password is only hashed when provided."""

    hashed_password = get_password_hash(password) if password else "not-a-real-hash"
    with SessionLocal() as session:
        user = UserModel(
            role=role,
            name=name,
            email=email,
            password=hashed_password,
            is_active=is_active,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user.id


@pytest.fixture
def make_user():
    return create_user_record
