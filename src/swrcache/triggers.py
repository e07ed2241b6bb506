"""Revalidation triggers: interval timer, focus and reconnect signals."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import ExitStack

from swrcache.events import EventBus, Signal
from swrcache.types import Policy

logger = logging.getLogger(__name__)

INTERVAL = "interval"
FOCUS = Signal.FOCUS.value
RECONNECT = Signal.RECONNECT.value


class TriggerSet:
    """The triggers armed for one activation.

    ``on_trigger`` is called with the trigger name every time one fires.
    Each ``arm()`` starts from a clean slate; ``disarm()`` releases every
    timer and subscription and may be called any number of times.
    """

    def __init__(
        self,
        on_trigger: Callable[[str], None],
        event_bus: EventBus | None = None,
    ) -> None:
        self._on_trigger = on_trigger
        self._event_bus = event_bus
        self._stack = ExitStack()
        self._armed: list[str] = []

    @property
    def armed(self) -> list[str]:
        """Names of the triggers currently armed."""
        return list(self._armed)

    def arm(self, policy: Policy) -> None:
        """Arm the triggers ``policy`` enables, replacing any armed ones."""
        self.disarm()
        armed: list[str] = []
        with ExitStack() as stack:
            if policy.refresh_ms > 0:
                task = asyncio.get_running_loop().create_task(
                    self._tick(policy.refresh_ms)
                )
                stack.callback(task.cancel)
                armed.append(INTERVAL)

            if self._event_bus is not None:
                if policy.revalidate_on_focus:
                    stack.callback(
                        self._event_bus.subscribe(Signal.FOCUS, self._fire_focus)
                    )
                    armed.append(FOCUS)
                if policy.revalidate_on_reconnect:
                    stack.callback(
                        self._event_bus.subscribe(
                            Signal.RECONNECT, self._fire_reconnect
                        )
                    )
                    armed.append(RECONNECT)

            # Everything acquired; keep it past the with-block
            self._stack = stack.pop_all()
            self._armed = armed
        logger.debug("Armed triggers: %s", ", ".join(self._armed) or "none")

    def disarm(self) -> None:
        """Cancel the timer and drop the subscriptions."""
        if self._armed:
            logger.debug("Disarming triggers: %s", ", ".join(self._armed))
        self._armed = []
        self._stack.close()

    async def _tick(self, interval_ms: int) -> None:
        while True:
            await asyncio.sleep(interval_ms / 1000)
            self._on_trigger(INTERVAL)

    def _fire_focus(self) -> None:
        self._on_trigger(FOCUS)

    def _fire_reconnect(self) -> None:
        self._on_trigger(RECONNECT)
