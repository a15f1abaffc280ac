"""In-process publish/subscribe hub used for cross-window change notifications.

Updates:
  v0.2.0 - 2026-10-12 - Make the hub generic so stores reuse it for their own events.
  v0.1.0 - 2026-10-06 - Introduce prompts-changed bus tagged with a source id.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("promptbook.events")


@dataclass(frozen=True, slots=True)
class PromptsChangedEvent:
    """Broadcast after a successful write; *source* identifies the writer."""
    source: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class Subscription[T]:
    """Disposable handle that removes its callback when closed."""
    def __init__(self, hub: EventHub[T], callback: Callable[[T], None]) -> None:
        self._hub = hub
        self._callback = callback
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Detach the stored callback if it is still active."""
        if self._closed:
            return
        self._closed = True
        self._hub.unsubscribe(self._callback)

    def __enter__(self) -> Subscription[T]:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class EventHub[T]:
    """Thread-safe publish/subscribe hub delivering events to listeners in order."""
    def __init__(self, history_limit: int = 100) -> None:
        """Initialise the subscriber registry and bounded history queue."""
        self._subscribers: list[Callable[[T], None]] = []
        self._lock = threading.RLock()
        self._history: deque[T] = deque(maxlen=history_limit)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription[T]:
        """Register *callback* to receive future events."""
        with self._lock:
            self._subscribers.append(callback)
        return Subscription(self, callback)

    def unsubscribe(self, callback: Callable[[T], None]) -> None:
        """Remove a previously subscribed callback if present."""
        with self._lock:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

    def publish(self, event: T) -> None:
        """Deliver *event* to all registered subscribers."""
        with self._lock:
            self._history.append(event)
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception("Event subscriber raised an exception")

    def history(self) -> tuple[T, ...]:
        """Return a snapshot of recently published events."""
        with self._lock:
            return tuple(self._history)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


PromptsChangedBus = EventHub[PromptsChangedEvent]

prompts_changed_bus: PromptsChangedBus = EventHub()


__all__ = [
    "EventHub",
    "PromptsChangedBus",
    "PromptsChangedEvent",
    "Subscription",
    "prompts_changed_bus",
]
