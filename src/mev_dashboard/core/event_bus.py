"""
Internal event bus for decoupled communication.

Provides typed publish/subscribe channels between the price cache,
opportunity feed, execution simulator and their consumers. Every
subscription returns a handle so consumers can tear down deterministically.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from mev_dashboard.utils.time import get_timestamp_us


logger = logging.getLogger(__name__)


class EventType(Enum):
    """System event types."""

    # Market data events
    PRICES_UPDATED = auto()
    GAS_UPDATED = auto()

    # Strategy events
    OPPORTUNITIES_UPDATED = auto()

    # Execution events
    TRADE_EXECUTED = auto()

    # System events
    SETTINGS_CHANGED = auto()
    ENGINE_STARTED = auto()
    ENGINE_STOPPED = auto()


T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class Event(Generic[T]):
    """Generic event with typed payload."""

    type: EventType
    payload: T
    timestamp_us: int = 0
    source: str = ""


# Type alias for event handlers
EventHandler = Callable[[Event[Any]], Awaitable[None]]
SyncEventHandler = Callable[[Event[Any]], None]


class Subscription:
    """
    Handle returned by a subscribe call.

    Calling cancel() removes the handler; repeated calls are no-ops.
    """

    __slots__ = ("_bus", "_event_type", "_handler", "_active")

    def __init__(
        self,
        bus: "EventBus",
        event_type: EventType,
        handler: EventHandler | SyncEventHandler,
    ) -> None:
        self._bus = bus
        self._event_type = event_type
        self._handler = handler
        self._active = True

    def cancel(self) -> bool:
        """
        Unsubscribe the handler.

        Returns:
            True if the handler was still registered.
        """
        if not self._active:
            return False
        self._active = False
        return self._bus.unsubscribe(self._event_type, self._handler)

    @property
    def active(self) -> bool:
        """Whether the handler is still subscribed."""
        return self._active

    @property
    def event_type(self) -> EventType:
        """Event type the handler listens to."""
        return self._event_type


class EventBus:
    """
    Async-safe event bus for internal messaging.

    Features:
    - Type-safe publish/subscribe
    - Async and sync handler support
    - Priority-based handler ordering
    - Error isolation per handler
    - Unsubscribe handles for deterministic teardown
    """

    def __init__(self) -> None:
        """Initialize event bus."""
        self._handlers: dict[EventType, list[tuple[int, EventHandler]]] = defaultdict(list)
        self._sync_handlers: dict[EventType, list[tuple[int, SyncEventHandler]]] = defaultdict(list)
        self._published = 0

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
        priority: int = 0,
    ) -> Subscription:
        """
        Subscribe an async handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Async handler function.
            priority: Handler priority (higher = earlier execution).

        Returns:
            Subscription handle.
        """
        self._handlers[event_type].append((priority, handler))
        # Sort by priority (descending)
        self._handlers[event_type].sort(key=lambda x: x[0], reverse=True)
        return Subscription(self, event_type, handler)

    def subscribe_sync(
        self,
        event_type: EventType,
        handler: SyncEventHandler,
        priority: int = 0,
    ) -> Subscription:
        """
        Subscribe a sync handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Sync handler function.
            priority: Handler priority.

        Returns:
            Subscription handle.
        """
        self._sync_handlers[event_type].append((priority, handler))
        self._sync_handlers[event_type].sort(key=lambda x: x[0], reverse=True)
        return Subscription(self, event_type, handler)

    def unsubscribe(
        self,
        event_type: EventType,
        handler: EventHandler | SyncEventHandler,
    ) -> bool:
        """
        Unsubscribe a handler.

        Args:
            event_type: Event type.
            handler: Handler to remove.

        Returns:
            True if handler was found and removed.
        """
        for i, (_, ah) in enumerate(self._handlers[event_type]):
            if ah is handler:
                self._handlers[event_type].pop(i)
                return True

        for i, (_, sh) in enumerate(self._sync_handlers[event_type]):
            if sh is handler:
                self._sync_handlers[event_type].pop(i)
                return True

        return False

    async def publish(self, event: Event[Any]) -> None:
        """
        Publish an event to all subscribers.

        Handlers see the same payload object. Handler lists are copied
        first so a handler may unsubscribe itself while being called.

        Args:
            event: Event to publish.
        """
        self._published += 1

        # Run sync handlers first (they're typically faster)
        for _, sync_handler in list(self._sync_handlers[event.type]):
            try:
                sync_handler(event)
            except Exception as e:
                logger.error(f"Sync handler error for {event.type.name}: {e}")

        for _, async_handler in list(self._handlers[event.type]):
            try:
                await async_handler(event)
            except Exception as e:
                logger.error(f"Async handler error for {event.type.name}: {e}")

    async def emit(self, event_type: EventType, payload: Any, source: str = "") -> None:
        """
        Build and publish an event stamped with the current time.

        Args:
            event_type: Event type.
            payload: Event payload.
            source: Name of the publishing component.
        """
        await self.publish(
            Event(type=event_type, payload=payload, timestamp_us=get_timestamp_us(), source=source)
        )

    def clear(self, event_type: EventType | None = None) -> None:
        """
        Clear handlers.

        Args:
            event_type: Specific type to clear, or None for all.
        """
        if event_type:
            self._handlers[event_type].clear()
            self._sync_handlers[event_type].clear()
        else:
            self._handlers.clear()
            self._sync_handlers.clear()

    def handler_count(self, event_type: EventType) -> int:
        """Get number of handlers for an event type."""
        return len(self._handlers[event_type]) + len(self._sync_handlers[event_type])

    @property
    def published_count(self) -> int:
        """Number of events published so far."""
        return self._published
