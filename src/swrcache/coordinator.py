"""Fetch coordination: dedupe, coalesce, fetch, store, project.

``FetchCoordinator.reconcile`` is the single path every revalidation
takes, whichever trigger asked for it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from swrcache.adapters.base import AsyncStorageAdapter
from swrcache.state import StateProjection
from swrcache.types import CacheEntry, Fetcher, FetchFailure, Policy

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    """Monotonic clock in milliseconds."""
    return int(time.monotonic() * 1000)


def _always_true() -> bool:
    return True


class FetchCoordinator:
    """Decides per key whether to serve, dedupe or fetch.

    Within ``policy.deduping_interval`` of the last successful fetch the
    cached value is served without calling the fetcher. With
    ``coalesce=True`` a reconcile that arrives while a fetch for the same
    key is still running joins that fetch instead of starting another.
    """

    def __init__(
        self,
        adapter: AsyncStorageAdapter,
        *,
        clock: Clock | None = None,
        coalesce: bool = True,
    ) -> None:
        self._adapter = adapter
        self._clock = clock or now_ms
        self._coalesce_enabled = coalesce
        self._in_flight: dict[str, asyncio.Task[CacheEntry[Any]]] = {}

    @property
    def in_flight(self) -> list[str]:
        """Keys with a fetch currently running."""
        return list(self._in_flight)

    async def reconcile(
        self,
        key: str,
        fetcher: Fetcher[Any],
        policy: Policy,
        projection: StateProjection[Any],
        *,
        is_current: Callable[[], bool] = _always_true,
        is_active: Callable[[], bool] = _always_true,
    ) -> None:
        """Bring ``projection`` up to date for ``key``.

        Never raises for fetcher errors; they are projected and handed to
        ``policy.on_error``. ``is_current`` reports whether ``projection``
        is still bound to this key and fetcher; once it returns False
        nothing more is projected. ``is_active`` reports whether the owner
        is still activated; once it returns False results are dropped
        unless the policy keeps updating after deactivation.
        """
        if not key:
            return

        def may_project() -> bool:
            return is_current() and (
                policy.keep_updating_after_deactivate or is_active()
            )

        def may_store() -> bool:
            return policy.keep_updating_after_deactivate or (
                is_current() and is_active()
            )

        entry = await self._adapter.get(key)
        if not may_project():
            return

        if entry is not None and not projection.has_value:
            # Another activation filled the cache since we started
            projection.update(value=entry.value, is_loading=False)
        elif entry is None and not projection.has_value:
            projection.update(is_loading=True)

        if entry is not None and self._clock() - entry.fetched_at < policy.deduping_ms:
            logger.debug("Deduped fetch for %s", key)
            projection.update(value=entry.value, is_loading=False)
            return

        if projection.has_value:
            projection.update(is_validating=True)

        try:
            fresh = await self._fetch(key, fetcher)
        except asyncio.CancelledError:
            if may_project():
                projection.update(is_loading=False, is_validating=False)
            raise
        except Exception as exc:
            if not may_project():
                logger.debug("Dropping failure for %s after deactivation", key)
                return
            logger.warning("Fetch failed for %s: %s", key, exc)
            projection.update(
                error=FetchFailure(exc), is_loading=False, is_validating=False
            )
            self._report(policy, exc)
            return

        if may_store():
            await self._adapter.set(key, fresh)
        if not may_project():
            logger.debug("Dropping result for %s after deactivation", key)
            return
        projection.update(
            value=fresh.value, error=None, is_loading=False, is_validating=False
        )

    async def _fetch(self, key: str, fetcher: Fetcher[Any]) -> CacheEntry[Any]:
        """Run ``fetcher`` or join the fetch already running for ``key``.

        The fetch runs in its own task, so a cancelled caller leaves it
        running for everyone else.
        """
        task = self._in_flight.get(key) if self._coalesce_enabled else None
        if task is not None and not task.done():
            logger.debug("Joining in-flight fetch for %s", key)
        else:
            task = asyncio.get_running_loop().create_task(self._call(key, fetcher))
            task.add_done_callback(lambda t: self._release(key, t))
            if self._coalesce_enabled:
                self._in_flight[key] = task
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task[CacheEntry[Any]]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark the outcome retrieved even when every caller went away
        if not task.cancelled():
            task.exception()

    async def _call(self, key: str, fetcher: Fetcher[Any]) -> CacheEntry[Any]:
        logger.debug("Fetching %s", key)
        value = await fetcher()
        return CacheEntry(value=value, fetched_at=self._clock())

    @staticmethod
    def _report(policy: Policy, exc: BaseException) -> None:
        if policy.on_error is None:
            return
        try:
            policy.on_error(exc)
        except Exception:
            logger.exception("on_error callback failed")
