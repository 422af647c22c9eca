"""In-process notifications for board changes.

Engines emit after their transaction commits, so a listener always sees the
change already persisted. Listeners are awaited in registration order, type
listeners before board-wide ones.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from mural.events.types import EventType

logger = logging.getLogger(__name__)

Listener = Callable[[EventType, dict[str, Any]], Coroutine[Any, Any, None]]


class EventBus:
    """Fan-out of board events to async listeners."""

    def __init__(self) -> None:
        self._by_type: dict[EventType, list[Listener]] = {}
        self._board_wide: list[Listener] = []

    def on(self, event_type: EventType, listener: Listener) -> None:
        """Listen for one event type. Registering the same listener twice is a no-op."""
        listeners = self._by_type.setdefault(event_type, [])
        if listener not in listeners:
            listeners.append(listener)

    def on_all(self, listener: Listener) -> None:
        """Listen for every board event."""
        if listener not in self._board_wide:
            self._board_wide.append(listener)

    def off(self, event_type: EventType, listener: Listener) -> None:
        listeners = self._by_type.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def off_all(self, listener: Listener) -> None:
        """Remove a listener registered with on_all."""
        if listener in self._board_wide:
            self._board_wide.remove(listener)

    def listener_count(self, event_type: EventType | None = None) -> int:
        """Listeners that would receive event_type, or board-wide ones when None."""
        if event_type is None:
            return len(self._board_wide)
        return len(self._by_type.get(event_type, [])) + len(self._board_wide)

    async def emit(self, event_type: EventType, data: dict[str, Any] | None = None) -> int:
        """Deliver an event and return how many listeners handled it.

        A failing listener is logged and skipped. Listeners may unsubscribe
        while the event is being delivered.
        """
        payload = dict(data or {})
        recipients = [*self._by_type.get(event_type, ()), *self._board_wide]

        delivered = 0
        for listener in recipients:
            try:
                await listener(event_type, payload)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(
                    "Listener %r failed on %s (suggestion %s)",
                    listener,
                    event_type,
                    payload.get("suggestion_id"),
                )
            else:
                delivered += 1
        return delivered

    def clear(self) -> None:
        self._by_type.clear()
        self._board_wide.clear()
