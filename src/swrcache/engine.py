"""Engine and activations - the public entry points.

Usage:
    engine = Engine(default_policy=Policy(deduping_interval="2s"))

    async with engine.activate("user:1", fetch_user, refresh_interval="5s") as user:
        user.subscribe(render)
        ...
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Generator
from typing import Any, Generic, TypeVar

from swrcache.adapters.base import AsyncStorageAdapter
from swrcache.adapters.memory import AsyncMemoryAdapter
from swrcache.coordinator import Clock, FetchCoordinator, now_ms
from swrcache.events import EventBus, LocalEventBus
from swrcache.state import StateListener, StateProjection
from swrcache.triggers import TriggerSet
from swrcache.types import Fetcher, Policy, RequestState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Activation(Generic[T]):
    """One caller's live subscription to a key.

    Await it (or enter it with ``async with``) to start: the cached value
    becomes visible, the initial fetch is scheduled and the triggers are
    armed. ``deactivate()`` disarms the triggers; fetches already running
    are left to finish.
    """

    def __init__(
        self,
        engine: Engine,
        key: str,
        fetcher: Fetcher[T],
        policy: Policy,
    ) -> None:
        self._engine = engine
        self._key = key
        self._fetcher = fetcher
        self._policy = policy
        self._projection: StateProjection[T] = StateProjection()
        self._triggers = TriggerSet(self._on_trigger, engine.event_bus)
        self._tasks: set[asyncio.Task[None]] = set()
        self._generation = 0
        self._started = False
        self._active = True

    def __repr__(self) -> str:
        status = "active" if self._active else "inactive"
        return f"<Activation key={self._key!r} {status}>"

    def __await__(self) -> Generator[Any, None, Activation[T]]:
        return self.start().__await__()

    async def __aenter__(self) -> Activation[T]:
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        self.deactivate()

    @property
    def key(self) -> str:
        return self._key

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def state(self) -> RequestState[T]:
        """The current request state."""
        return self._projection.state

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def armed_triggers(self) -> list[str]:
        return self._triggers.armed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener(state)`` on every state change. Returns an unsubscribe."""
        return self._projection.subscribe(listener)

    async def start(self) -> Activation[T]:
        """Show the cached value, fetch once and arm the triggers."""
        if not self._active:
            raise RuntimeError(f"{self!r} has been deactivated")
        if self._started:
            return self
        self._engine._register(self)
        self._started = True
        await self._bind()
        return self

    async def rebind(
        self,
        *,
        key: str | None = None,
        fetcher: Fetcher[T] | None = None,
        policy: Policy | None = None,
    ) -> None:
        """Switch key, fetcher or policy. Triggers are torn down and rearmed.

        Fetches started under the previous binding never update this
        activation again. With ``keep_updating_after_deactivate`` their
        results are still stored under the previous key.
        """
        if not self._active:
            raise RuntimeError(f"{self!r} has been deactivated")
        if not self._started:
            self._engine._register(self)
        self._generation += 1
        self._triggers.disarm()
        if key is not None:
            self._key = key
        if fetcher is not None:
            self._fetcher = fetcher
        if policy is not None:
            self._policy = policy
        self._started = True
        await self._bind()

    async def revalidate(self) -> None:
        """Reconcile now, as a trigger would, and wait for it.

        Cancelling the wait leaves the reconcile running.
        """
        task = self._schedule()
        if task is not None:
            await asyncio.shield(task)

    async def settle(self) -> None:
        """Wait for the reconciles scheduled before this call.

        Reconciles that triggers schedule while waiting are not included.
        """
        pending = list(self._tasks)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def deactivate(self) -> None:
        """Disarm the triggers and detach from the engine. Idempotent."""
        if not self._active:
            return
        self._active = False
        self._triggers.disarm()
        self._engine._release(self)
        logger.debug("Deactivated %s", self._key)

    async def _bind(self) -> None:
        generation = self._generation
        if not self._key:
            # Empty key: nothing to fetch, nothing to arm
            self._projection.reset(RequestState())
            return

        entry = await self._engine.adapter.get(self._key)
        if generation != self._generation or not self._active:
            return
        if entry is None:
            self._projection.reset(RequestState(is_loading=True))
        else:
            self._projection.reset(RequestState(value=entry.value), has_value=True)

        logger.debug("Activated %s", self._key)
        self._schedule()
        self._triggers.arm(self._policy)

    def _on_trigger(self, trigger: str) -> None:
        logger.debug("Trigger %s fired for %s", trigger, self._key)
        self._schedule()

    def _schedule(self) -> asyncio.Task[None] | None:
        if not self._active or not self._key:
            return None
        generation = self._generation

        def is_current() -> bool:
            return self._generation == generation

        def is_active() -> bool:
            return self._active

        task = asyncio.get_running_loop().create_task(
            self._engine.coordinator.reconcile(
                self._key,
                self._fetcher,
                self._policy,
                self._projection,
                is_current=is_current,
                is_active=is_active,
            )
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task


class Engine:
    """Stale-while-revalidate engine.

    Owns the cache store, the event bus and the fetch coordinator shared
    by every activation it creates. Separate engines share nothing.
    """

    def __init__(
        self,
        adapter: AsyncStorageAdapter | None = None,
        *,
        event_bus: EventBus | None = None,
        default_policy: Policy | None = None,
        clock: Clock | None = None,
        coalesce: bool = True,
    ) -> None:
        self._adapter = adapter if adapter is not None else AsyncMemoryAdapter()
        self._event_bus = event_bus if event_bus is not None else LocalEventBus()
        self._default_policy = default_policy or Policy()
        self._coordinator = FetchCoordinator(
            self._adapter, clock=clock or now_ms, coalesce=coalesce
        )
        self._activations: list[Activation[Any]] = []
        self._closed = False

    @property
    def adapter(self) -> AsyncStorageAdapter:
        return self._adapter

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def coordinator(self) -> FetchCoordinator:
        return self._coordinator

    @property
    def default_policy(self) -> Policy:
        return self._default_policy

    @property
    def activations(self) -> list[Activation[Any]]:
        """Live activations, oldest first."""
        return list(self._activations)

    def activate(
        self,
        key: str,
        fetcher: Fetcher[T],
        policy: Policy | None = None,
        **overrides: Any,
    ) -> Activation[T]:
        """Create an activation for ``key``. Await it or use ``async with``.

        Keyword overrides (``refresh_interval="5s"``, ``on_error=...``) are
        applied on top of ``policy`` or the engine default.
        """
        if self._closed:
            raise RuntimeError("Engine is closed")
        resolved = policy or self._default_policy
        if overrides:
            resolved = resolved.merge(**overrides)
        return Activation(self, key, fetcher, resolved)

    async def cached(self, key: str) -> Any | None:
        """Peek at the stored value for ``key`` without fetching."""
        entry = await self._adapter.get(key)
        return entry.value if entry is not None else None

    def close(self) -> None:
        """Deactivate every live activation and refuse new ones."""
        self._closed = True
        for activation in list(self._activations):
            activation.deactivate()

    def _register(self, activation: Activation[Any]) -> None:
        if self._closed:
            raise RuntimeError("Engine is closed")
        self._activations.append(activation)

    def _release(self, activation: Activation[Any]) -> None:
        if activation in self._activations:
            self._activations.remove(activation)
