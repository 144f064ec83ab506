"""Connection management helpers for notification websockets."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Callable, DefaultDict, Set

from fastapi import WebSocket

from app.domain.errors import PushDeliveryError

logger = logging.getLogger(__name__)

_CLOSE_SENTINEL = None
DEFAULT_MAX_PENDING_EVENTS = 100


class PushSession:
    """One live websocket plus the ordered queue of events waiting for it.

    A single writer task drains the queue, so events reach the client in the
    order they were enqueued. The queue is bounded: once a stalled client has
    ``max_pending`` events waiting, newer events are dropped and logged.
    """

    def __init__(
        self,
        user_id: int,
        websocket: WebSocket,
        *,
        on_failure: Callable[["PushSession"], None],
        max_pending: int = DEFAULT_MAX_PENDING_EVENTS,
    ) -> None:
        self.user_id = user_id
        self.websocket = websocket
        self._on_failure = on_failure
        self._queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue(maxsize=max_pending)
        self._writer: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Spawn the writer task on the running event loop."""

        self._writer = asyncio.get_running_loop().create_task(self._drain())
        self._writer.add_done_callback(self._log_writer_error)

    def enqueue(self, message: dict[str, Any]) -> bool:
        """Queue ``message`` for delivery. Must run on the event loop thread.

        Returns ``False`` when the session is closed or its queue is full.
        """

        if self._closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Push queue full for user %s; %s dropped",
                self.user_id,
                message.get("type"),
            )
            return False
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSE_SENTINEL)
        except asyncio.QueueFull:
            # The writer is stuck on a stalled client; pending events are lost.
            if self._writer is not None:
                self._writer.cancel()

    async def wait_closed(self) -> None:
        if self._writer is not None:
            await asyncio.gather(self._writer, return_exceptions=True)

    async def _drain(self) -> None:
        while True:
            message = await self._queue.get()
            if message is _CLOSE_SENTINEL:
                return
            try:
                await self.websocket.send_json(message)
            except Exception as exc:  # transport failures end the session
                error = PushDeliveryError(
                    f"Could not push '{message.get('type')}' to user {self.user_id}"
                )
                logger.warning("%s: %s", error, exc)
                self._closed = True
                self._on_failure(self)
                return

    @staticmethod
    def _log_writer_error(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Push session writer stopped unexpectedly: %s", exc, exc_info=exc)


class NotificationConnectionManager:
    """Manage active websocket sessions grouped by user.

    Handshakes, disconnects and pushes issued from request threads all touch
    the mapping, so every access goes through ``_lock``.
    """

    def __init__(self, *, max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS) -> None:
        self._max_pending_events = max_pending_events
        self._connections: DefaultDict[int, Set[PushSession]] = defaultdict(set)
        self._lock = threading.Lock()

    async def connect(self, user_id: int, websocket: WebSocket) -> PushSession:
        """Accept the websocket connection and register it for ``user_id``."""

        await websocket.accept()
        session = PushSession(
            user_id,
            websocket,
            on_failure=self._drop_session,
            max_pending=self._max_pending_events,
        )
        session.start()
        with self._lock:
            self._connections[user_id].add(session)
        logger.info(
            "Push session opened for user %s (%s active)",
            user_id,
            self.session_count(user_id),
        )
        return session

    def disconnect(self, session: PushSession) -> None:
        """Remove ``session`` from the pool and stop its writer."""

        self._forget(session)
        session.close()
        logger.info("Push session closed for user %s", session.user_id)

    def enqueue(self, user_id: int, message: dict[str, Any]) -> int:
        """Queue ``message`` on every live session of ``user_id``.

        Returns the number of sessions the message was queued on.
        """

        with self._lock:
            sessions = list(self._connections.get(user_id, ()))
        return sum(1 for session in sessions if session.enqueue(dict(message)))

    def session_count(self, user_id: int) -> int:
        with self._lock:
            return len(self._connections.get(user_id, ()))

    async def close(self) -> None:
        """Stop every session; used when the application shuts down."""

        with self._lock:
            sessions = [
                session for group in self._connections.values() for session in group
            ]
            self._connections.clear()
        for session in sessions:
            session.close()
        for session in sessions:
            await session.wait_closed()

    def _drop_session(self, session: PushSession) -> None:
        self._forget(session)

    def _forget(self, session: PushSession) -> None:
        with self._lock:
            connections = self._connections.get(session.user_id)
            if connections is None:
                return
            connections.discard(session)
            if not connections:
                self._connections.pop(session.user_id, None)


__all__ = ["DEFAULT_MAX_PENDING_EVENTS", "NotificationConnectionManager", "PushSession"]
