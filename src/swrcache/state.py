"""Per-activation request state and its observers."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from swrcache.types import RequestState

logger = logging.getLogger(__name__)

T = TypeVar("T")

StateListener = Callable[[RequestState[Any]], None]


class StateProjection(Generic[T]):
    """Holds one activation's ``RequestState`` and notifies listeners.

    Every transition goes through ``update()``. Listeners are called
    synchronously, once per transition, and only when a field changed.
    """

    def __init__(
        self, initial: RequestState[T] | None = None, *, has_value: bool = False
    ) -> None:
        self._state: RequestState[T] = initial if initial is not None else RequestState()
        self._check(self._state)
        self._has_value = has_value or self._state.value is not None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> RequestState[T]:
        return self._state

    @property
    def has_value(self) -> bool:
        """Whether any value has been produced for this activation."""
        return self._has_value

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener``. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **changes: Any) -> bool:
        """Apply a transition. Returns True if the state changed."""
        new_state = dataclasses.replace(self._state, **changes)
        self._check(new_state)
        if "value" in changes:
            self._has_value = True
        if new_state == self._state:
            return False
        self._state = new_state
        self._notify(new_state)
        return True

    def reset(self, initial: RequestState[T], *, has_value: bool = False) -> None:
        """Start over for a new key, notifying listeners of the new state."""
        self._has_value = has_value or initial.value is not None
        self._check(initial)
        if initial != self._state:
            self._state = initial
            self._notify(initial)

    def _notify(self, state: RequestState[T]) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    @staticmethod
    def _check(state: RequestState[Any]) -> None:
        if state.is_loading and state.value is not None:
            raise ValueError("is_loading requires value to be None")
        if state.is_loading and state.is_validating:
            raise ValueError("is_loading and is_validating are mutually exclusive")
