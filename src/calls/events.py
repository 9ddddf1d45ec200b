from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Literal

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallStatusEvent:
    kind: Literal["call", "dial"]
    call_sid: str
    status: str
    to_number: str | None = None
    from_number: str | None = None
    direction: str | None = None
    duration_seconds: int | None = None

    def to_message(self) -> dict[str, Any]:
        payload = asdict(self)
        return {
            "type": f"{self.kind}-status",
            "callSid": payload["call_sid"],
            "status": payload["status"],
            "to": payload["to_number"],
            "from": payload["from_number"],
            "direction": payload["direction"],
            "duration": payload["duration_seconds"],
        }


class CallStatusHub:
    """In-memory fan-out of status events to live WebSocket clients.

    Note: This is a single-process hub. For multi-worker deployments, replace
    with Redis pub/sub or another shared broker.
    """

    def __init__(self, *, queue_size: int = 100) -> None:
        self._lock = asyncio.Lock()
        self._subscribers: set[asyncio.Queue[dict[str, Any]]] = set()
        self._queue_size = queue_size

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self) -> asyncio.Queue[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._queue_size)
        async with self._lock:
            self._subscribers.add(queue)
        return queue

    async def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        async with self._lock:
            self._subscribers.discard(queue)

    async def publish(self, event: CallStatusEvent) -> int:
        """Queue ``event`` for every subscriber; returns how many received it."""

        message = event.to_message()
        delivered = 0
        async with self._lock:
            for queue in self._subscribers:
                try:
                    queue.put_nowait(message)
                except asyncio.QueueFull:
                    LOGGER.warning("Dropping %s event for slow subscriber", message["type"])
                    continue
                delivered += 1
        return delivered


GLOBAL_CALL_STATUS_HUB = CallStatusHub()
