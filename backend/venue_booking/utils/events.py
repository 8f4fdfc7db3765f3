from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Literal

EventName = Literal[
    "reservation.created",
    "reservation.confirmed",
    "reservation.cancelled",
    "reservation.completed",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationEvent:
    name: EventName
    reservation_id: int
    venue_id: int
    holder_id: int
    status: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    payload: dict[str, Any] = field(default_factory=dict)


EventHandler = Callable[[ReservationEvent], Awaitable[None]]


class EventPublisher:
    """Fan events out to subscribers without making the caller wait."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []
        self._pending: set[asyncio.Task[None]] = set()

    def subscribe(self, handler: EventHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def publish(self, event: ReservationEvent) -> None:
        loop = asyncio.get_running_loop()
        for handler in self._handlers:
            task = loop.create_task(self._deliver(handler, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _deliver(self, handler: EventHandler, event: ReservationEvent) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception("event handler %r failed for %s #%s", handler, event.name, event.reservation_id)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown and tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


async def log_event(event: ReservationEvent) -> None:
    logger.info("%s reservation=%s venue=%s status=%s", event.name, event.reservation_id, event.venue_id, event.status)
