"""Revalidation signals and the event bus the engine listens on.

The engine never talks to a concrete environment. Hosts forward their
own "window focused" or "network online" notifications into an
``EventBus``; ``LocalEventBus`` is the in-process implementation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class Signal(str, Enum):
    """Zero-payload notifications that request a revalidation."""

    FOCUS = "focus"
    RECONNECT = "reconnect"


@runtime_checkable
class EventBus(Protocol):
    """Anything that can deliver signals to subscribers."""

    def subscribe(self, signal: Signal, callback: Listener) -> Unsubscribe:
        """Register ``callback`` for ``signal``. Returns an unsubscribe handle."""
        ...


class LocalEventBus:
    """Synchronous in-process event bus.

    Usage:
        bus = LocalEventBus()
        engine = Engine(event_bus=bus)
        ...
        bus.emit(Signal.FOCUS)  # e.g. from a window focus handler
    """

    def __init__(self) -> None:
        self._listeners: dict[Signal, list[Listener]] = {signal: [] for signal in Signal}

    def subscribe(self, signal: Signal, callback: Listener) -> Unsubscribe:
        """Register ``callback`` for ``signal``. Returns an unsubscribe handle."""
        signal = Signal(signal)
        self._listeners[signal].append(callback)
        unsubscribed = False

        def unsubscribe() -> None:
            nonlocal unsubscribed
            if unsubscribed:
                return
            unsubscribed = True
            self._listeners[signal].remove(callback)

        return unsubscribe

    def emit(self, signal: Signal) -> int:
        """Deliver ``signal`` to every current subscriber.

        Returns the number of callbacks invoked.
        """
        signal = Signal(signal)
        # Snapshot: callbacks may unsubscribe while we iterate
        listeners = list(self._listeners[signal])
        logger.debug("Emitting %s to %d listener(s)", signal.value, len(listeners))
        for callback in listeners:
            try:
                callback()
            except Exception:
                logger.exception("Listener for %s failed", signal.value)
        return len(listeners)

    def listener_count(self, signal: Signal) -> int:
        """Number of callbacks currently subscribed to ``signal``."""
        return len(self._listeners[Signal(signal)])
