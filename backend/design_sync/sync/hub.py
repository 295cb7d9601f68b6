"""Fan-out of watch events to live-sync subscribers."""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING, Any, AsyncIterator

import orjson

from design_sync.core.logging import get_logger
from design_sync.core.metrics import DELIVERY_FAILURES, EVENTS_BROADCAST, SUBSCRIBERS

if TYPE_CHECKING:
    from design_sync.sync.watcher import WatchSession

logger = get_logger(__name__)

_CLOSED = object()


def format_event(event: str, data: dict[str, Any]) -> str:
    """Frame an event for an event-stream response."""
    body = orjson.dumps({"event": event, "data": data}).decode("utf-8")
    return f"data: {body}\n\n"


class Subscriber:
    """A connected viewer with a bounded queue of pending frames."""

    def __init__(self, max_queue: int = 256, client_id: str | None = None) -> None:
        self.id = client_id or f"sub_{uuid.uuid4().hex[:12]}"
        self.closed = False
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=max_queue)

    def send(self, message: str) -> None:
        """Queue one frame; raises when the subscriber is closed or saturated."""
        if self.closed:
            raise ConnectionError(f"subscriber {self.id} is closed")
        self._queue.put_nowait(message)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> list[str]:
        """Return queued frames without waiting."""
        frames: list[str] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not _CLOSED:
                frames.append(item)
        return frames

    async def receive(self) -> str | None:
        """Wait for the next frame; ``None`` once the subscriber is closed."""
        item = await self._queue.get()
        if item is _CLOSED:
            # keep the marker so later receivers also see the close
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    async def messages(self) -> AsyncIterator[str]:
        """Yield frames in order until the subscriber is closed."""
        while True:
            frame = await self.receive()
            if frame is None:
                return
            yield frame


class NotificationHub:
    """Deliver events to every subscriber of a watch session.

    Delivery is best-effort per subscriber: a subscriber that cannot accept
    a frame is unsubscribed and the remaining subscribers still receive it.
    """

    def subscribe(self, session: "WatchSession", client: Subscriber) -> None:
        if client not in session.subscribers:
            session.subscribers.add(client)
            SUBSCRIBERS.inc()
            logger.debug("Subscriber %s joined %s", client.id, session.directory)

    def unsubscribe(self, session: "WatchSession", client: Subscriber) -> bool:
        if client not in session.subscribers:
            return False
        session.subscribers.discard(client)
        SUBSCRIBERS.dec()
        logger.debug("Subscriber %s left %s", client.id, session.directory)
        return True

    def send(self, client: Subscriber, event: str, data: dict[str, Any]) -> bool:
        try:
            client.send(format_event(event, data))
        except (ConnectionError, asyncio.QueueFull):
            return False
        return True

    def broadcast(self, session: "WatchSession", event: str, data: dict[str, Any]) -> int:
        """Send one event to all subscribers; returns the number reached."""
        message = format_event(event, data)
        EVENTS_BROADCAST.labels(event=event).inc()
        delivered = 0
        for client in list(session.subscribers):
            try:
                client.send(message)
            except (ConnectionError, asyncio.QueueFull) as exc:
                logger.warning("Dropping subscriber %s: %s", client.id, str(exc) or "queue full")
                DELIVERY_FAILURES.inc()
                self.unsubscribe(session, client)
                client.close()
                continue
            delivered += 1
        return delivered

    def close_all(self, session: "WatchSession") -> None:
        for client in list(session.subscribers):
            self.unsubscribe(session, client)
            client.close()


__all__ = ["NotificationHub", "Subscriber", "format_event"]
