from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import anyio
import pytest

from app.domain.entities import Notification, RelatedRefs
from app.infrastructure.notifications import (
    NEW_NOTIFICATION_EVENT,
    UNREAD_COUNT_EVENT,
    WebSocketNotificationPublisher,
    serialize_notification,
)


class StubManager:
    def __init__(self, sessions: int = 1) -> None:
        self.sessions = sessions
        self.enqueued: list[tuple[int, dict]] = []

    def session_count(self, user_id: int) -> int:
        return self.sessions

    def enqueue(self, user_id: int, message: dict) -> int:
        self.enqueued.append((user_id, message))
        return self.sessions


def _notification(**overrides) -> Notification:
    created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    values = dict(
        id=10,
        user_id=2,
        title="Pago recibido",
        message="Recibiste un pago",
        category="success",
        read=False,
        read_at=None,
        related=RelatedRefs(task_id=1, payment_id=4),
        action_url=None,
        action_text=None,
        icon="bell",
        priority="high",
        expires_at=None,
        created_at=created,
        updated_at=created,
    )
    values.update(overrides)
    return Notification(**values)


def test_serialize_notification_flattens_related_references():
    payload = serialize_notification(_notification())

    assert payload["id"] == 10
    assert payload["read"] is False
    assert payload["read_at"] is None
    assert payload["related_task_id"] == 1
    assert payload["related_application_id"] is None
    assert payload["related_payment_id"] == 4
    assert payload["created_at"] == "2024-05-01T12:30:00+00:00"


def test_users_without_sessions_are_skipped():
    manager = StubManager(sessions=0)
    publisher = WebSocketNotificationPublisher(manager)

    publisher.push_unread_count(2, 3)

    assert manager.enqueued == []


def test_push_outside_any_event_loop_is_dropped_and_logged(caplog):
    manager = StubManager()
    publisher = WebSocketNotificationPublisher(manager)

    with caplog.at_level("WARNING"):
        publisher.push_notification(2, _notification())

    assert manager.enqueued == []
    assert "dropped" in caplog.text


@pytest.mark.anyio
async def test_push_from_the_loop_enqueues_directly():
    manager = StubManager()
    publisher = WebSocketNotificationPublisher(manager)

    publisher.push_notification(2, _notification())
    publisher.push_unread_count(2, 1)

    assert [message["type"] for _, message in manager.enqueued] == [
        NEW_NOTIFICATION_EVENT,
        UNREAD_COUNT_EVENT,
    ]
    assert manager.enqueued[1][1]["data"] == {"unread_count": 1}


@pytest.mark.anyio
async def test_push_from_a_worker_thread_runs_on_the_loop():
    loop_thread_ids: list[bool] = []
    loop = asyncio.get_running_loop()

    class LoopCheckingManager(StubManager):
        def enqueue(self, user_id, message):
            loop_thread_ids.append(asyncio.get_running_loop() is loop)
            return super().enqueue(user_id, message)

    manager = LoopCheckingManager()
    publisher = WebSocketNotificationPublisher(manager)

    await anyio.to_thread.run_sync(publisher.push_unread_count, 2, 5)

    assert loop_thread_ids == [True]
    assert manager.enqueued == [
        (2, {"type": UNREAD_COUNT_EVENT, "data": {"unread_count": 5}})
    ]
