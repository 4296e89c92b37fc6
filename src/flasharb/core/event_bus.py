"""
Internal event bus for decoupled communication.

The scan engine publishes here; the dashboard websocket and the
headless CLI subscribe without the engine knowing about either.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from flasharb.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """System event types, valued as sent to dashboard clients."""

    # Scanning
    OPPORTUNITIES_UPDATED = "opportunities"
    SCAN_COMPLETED = "scan"
    STATUS_CHANGED = "status"

    # Profitability / execution
    PROFITABILITY_CHECKED = "profitability"
    EXECUTION_STARTED = "execution_started"
    EXECUTION_COMPLETE = "execution"

    # Configuration
    SETTINGS_CHANGED = "settings"


@dataclass
class Event:
    """Event with a JSON-serializable payload."""

    type: EventType
    payload: Any
    timestamp_ms: int = 0
    source: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp_ms:
            self.timestamp_ms = get_timestamp_ms()

    def to_message(self) -> dict[str, Any]:
        """Wire form for websocket clients."""
        return {"type": self.type.value, "data": self.payload, "timestamp": self.timestamp_ms}


EventHandler = Callable[[Event], Awaitable[None]]


class EventBus:
    """
    Async event bus for internal messaging.

    Features:
    - Priority-based handler ordering
    - Error isolation per handler
    - Pause / resume delivery
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[tuple[int, EventHandler]]] = defaultdict(list)
        self._paused = False

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
        priority: int = 0,
    ) -> None:
        """
        Subscribe an async handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Async handler function.
            priority: Handler priority (higher = earlier execution).
        """
        self._handlers[event_type].append((priority, handler))
        self._handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def subscribe_all(self, handler: EventHandler, priority: int = 0) -> None:
        """Subscribe a handler to every event type."""
        for event_type in EventType:
            self.subscribe(event_type, handler, priority)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if handler was found and removed.
        """
        for i, (_, h) in enumerate(self._handlers[event_type]):
            if h is handler:
                self._handlers[event_type].pop(i)
                return True
        return False

    async def publish(self, event: Event) -> None:
        """Publish an event to all subscribers, in priority order."""
        if self._paused:
            return

        for _, handler in list(self._handlers[event.type]):
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Handler error for {event.type.name}: {e}")

    async def emit(self, event_type: EventType, payload: Any, source: str = "") -> None:
        """Build and publish an event."""
        await self.publish(Event(type=event_type, payload=payload, source=source))

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def handler_count(self, event_type: EventType) -> int:
        """Get number of handlers for an event type."""
        return len(self._handlers[event_type])

    @property
    def is_paused(self) -> bool:
        return self._paused
