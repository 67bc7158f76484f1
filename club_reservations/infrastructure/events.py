"""Outbound event queue"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from club_reservations.domain.events import DomainEvent
from club_reservations.domain.repositories import EventPublisher

logger = logging.getLogger(__name__)


class InMemoryEventBus(EventPublisher):
    """
    Buffers domain events on an asyncio queue.

    Notification and billing adapters consume with ``get()`` or ``drain()``;
    publishing never waits on them.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: "asyncio.Queue[DomainEvent]" = asyncio.Queue(maxsize=maxsize)

    async def publish(self, event: DomainEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.error("Event queue full, dropping %s for %s", event.event_type.value, event.reservation_code)
            return
        logger.info("Event published: %s (%s)", event.event_type.value, event.reservation_code)

    async def get(self) -> DomainEvent:
        return await self._queue.get()

    def drain(self) -> List[DomainEvent]:
        """Remove and return every buffered event"""
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def pending(self) -> int:
        return self._queue.qsize()


EventHandler = Callable[[DomainEvent], Awaitable[None]]


async def log_event(event: DomainEvent) -> None:
    logger.info(
        "Dispatched %s for reservation %s (member %s)",
        event.event_type.value, event.reservation_code, event.member_id
    )


class EventDispatcher:
    """Background consumer that hands every queued event to a handler"""

    def __init__(self, bus: InMemoryEventBus, handler: Optional[EventHandler] = None):
        self.bus = bus
        self.handler = handler or log_event
        self._task: Optional[asyncio.Task] = None

    async def _handle(self, event: DomainEvent) -> None:
        try:
            await self.handler(event)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Event handler failed for %s", event.event_id)

    async def _loop(self) -> None:
        while True:
            await self._handle(await self.bus.get())

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info("Event dispatcher started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        for event in self.bus.drain():
            await self._handle(event)
        logger.info("Event dispatcher stopped")
