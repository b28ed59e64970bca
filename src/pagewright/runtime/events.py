"""Notifications emitted by the render engine and the event executor.

Notifications are frozen dataclasses published on a ``NotificationBus``.
Hosts subscribe to the types they care about, for example to feed devtools
or metrics:

    bus.subscribe(RenderCompleted, lambda n: print(n.schema_id, n.duration_ms))
"""

from __future__ import annotations

import time
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pagewright.logging import get_logger

__all__ = [
    "RenderStarted",
    "RenderCompleted",
    "RenderCached",
    "RenderFailed",
    "CacheCleared",
    "EventTriggered",
    "HandlerFailed",
    "Notification",
    "NotificationBus",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RenderStarted:
    schema_id: str
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class RenderCompleted:
    """Emitted after a fresh (non-cached) render finishes."""

    schema_id: str
    duration_ms: float
    node_count: int
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class RenderCached:
    """Emitted when a render is answered from the cache."""

    schema_id: str
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class RenderFailed:
    schema_id: str
    error: str
    error_type: str
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class CacheCleared:
    entries_removed: int
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class EventTriggered:
    """Emitted when an event is dispatched, before any handler runs."""

    event: str
    data: Any
    handler_count: int
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class HandlerFailed:
    """Emitted when a handler's action chain aborts."""

    event: str
    node_id: str
    error: str
    action_type: str | None = None
    timestamp: float = field(default_factory=time.time)


Notification = (
    RenderStarted
    | RenderCompleted
    | RenderCached
    | RenderFailed
    | CacheCleared
    | EventTriggered
    | HandlerFailed
)

N = TypeVar("N")
Listener = Callable[[Any], None]


class NotificationBus:
    """Synchronous publish/subscribe channel for notifications.

    One bus is owned by each engine (and shared with its executor); there is
    no process-wide instance. Listener exceptions are logged and do not
    interrupt rendering or dispatch.
    """

    def __init__(self) -> None:
        self._listeners: dict[type, list[Listener]] = defaultdict(list)
        self._catch_all: list[Listener] = []

    def subscribe(
        self, kind: type[N] | None, listener: Callable[[N], None]
    ) -> Callable[[], None]:
        """Register ``listener`` for notifications of type ``kind``.

        Args:
            kind: Notification class, or None to receive every notification.
            listener: Called synchronously with each notification.

        Returns:
            A function that removes the subscription.
        """
        bucket = self._catch_all if kind is None else self._listeners[kind]
        bucket.append(listener)

        def unsubscribe() -> None:
            if listener in bucket:
                bucket.remove(listener)

        return unsubscribe

    def emit(self, notification: Notification) -> None:
        listeners = [*self._listeners.get(type(notification), ()), *self._catch_all]
        for listener in listeners:
            try:
                listener(notification)
            except Exception:
                logger.exception(
                    "notification_listener_failed",
                    notification=type(notification).__name__,
                )
