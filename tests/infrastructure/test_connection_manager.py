from __future__ import annotations

import asyncio

import pytest

from app.infrastructure.notifications import NotificationConnectionManager

pytestmark = pytest.mark.anyio


class FakeWebSocket:
    def __init__(self, *, fail_after: int | None = None) -> None:
        self.accepted = False
        self.sent: list[dict] = []
        self._fail_after = fail_after

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict) -> None:
        if self._fail_after is not None and len(self.sent) >= self._fail_after:
            raise ConnectionResetError("client went away")
        # Yield so a slow transport interleaves with producers.
        await asyncio.sleep(0)
        self.sent.append(message)


async def _settle() -> None:
    for _ in range(20):
        await asyncio.sleep(0)


async def test_connect_accepts_and_registers_session():
    manager = NotificationConnectionManager()
    websocket = FakeWebSocket()

    session = await manager.connect(7, websocket)

    assert websocket.accepted is True
    assert session.user_id == 7
    assert manager.session_count(7) == 1
    await manager.close()


async def test_events_are_delivered_in_enqueue_order():
    manager = NotificationConnectionManager()
    websocket = FakeWebSocket()
    await manager.connect(1, websocket)

    for index in range(10):
        manager.enqueue(1, {"type": "event", "data": index})
    await _settle()

    assert [message["data"] for message in websocket.sent] == list(range(10))
    await manager.close()


async def test_every_session_of_a_user_receives_the_event():
    manager = NotificationConnectionManager()
    laptop, phone, stranger = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
    await manager.connect(1, laptop)
    await manager.connect(1, phone)
    await manager.connect(2, stranger)

    delivered = manager.enqueue(1, {"type": "event", "data": "hola"})
    await _settle()

    assert delivered == 2
    assert laptop.sent == phone.sent == [{"type": "event", "data": "hola"}]
    assert stranger.sent == []
    await manager.close()


async def test_enqueue_without_sessions_is_a_no_op():
    manager = NotificationConnectionManager()

    assert manager.enqueue(99, {"type": "event"}) == 0


async def test_failed_send_drops_only_that_session():
    manager = NotificationConnectionManager()
    broken = FakeWebSocket(fail_after=0)
    healthy = FakeWebSocket()
    await manager.connect(3, broken)
    await manager.connect(3, healthy)

    manager.enqueue(3, {"type": "event", "data": 1})
    await _settle()

    assert manager.session_count(3) == 1
    manager.enqueue(3, {"type": "event", "data": 2})
    await _settle()
    assert [message["data"] for message in healthy.sent] == [1, 2]
    assert broken.sent == []
    await manager.close()


async def test_disconnect_stops_delivery():
    manager = NotificationConnectionManager()
    websocket = FakeWebSocket()
    session = await manager.connect(4, websocket)

    manager.disconnect(session)
    await session.wait_closed()

    assert session.closed is True
    assert manager.session_count(4) == 0
    assert manager.enqueue(4, {"type": "event"}) == 0
    assert websocket.sent == []


async def test_close_flushes_queued_events_and_clears_registry():
    manager = NotificationConnectionManager()
    websocket = FakeWebSocket()
    await manager.connect(5, websocket)
    manager.enqueue(5, {"type": "event", "data": "a"})
    manager.enqueue(5, {"type": "event", "data": "b"})

    await manager.close()

    assert [message["data"] for message in websocket.sent] == ["a", "b"]
    assert manager.session_count(5) == 0


class StalledWebSocket(FakeWebSocket):
    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def send_json(self, message: dict) -> None:
        await self.release.wait()
        self.sent.append(message)


async def test_stalled_client_queue_is_bounded(caplog):
    manager = NotificationConnectionManager(max_pending_events=2)
    websocket = StalledWebSocket()
    await manager.connect(6, websocket)

    manager.enqueue(6, {"type": "event", "data": "a"})
    await _settle()
    with caplog.at_level("WARNING"):
        queued = [manager.enqueue(6, {"type": "event", "data": item}) for item in "bcd"]

    assert queued == [1, 1, 0]
    assert "Push queue full for user 6" in caplog.text

    websocket.release.set()
    await _settle()
    await manager.close()

    assert [message["data"] for message in websocket.sent] == ["a", "b", "c"]


async def test_close_does_not_hang_on_a_stalled_full_queue():
    manager = NotificationConnectionManager(max_pending_events=1)
    websocket = StalledWebSocket()
    session = await manager.connect(8, websocket)
    manager.enqueue(8, {"type": "event", "data": "a"})
    await _settle()
    manager.enqueue(8, {"type": "event", "data": "b"})

    await manager.close()

    assert session.closed is True
    assert websocket.sent == []
