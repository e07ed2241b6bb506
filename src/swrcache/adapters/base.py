"""Base adapter protocol for the cache store."""

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from swrcache.types import CacheEntry


@runtime_checkable
class AsyncStorageAdapter(Protocol):
    """Async cache store interface.

    Each call is atomic for its key. Writes replace the whole entry, so
    concurrent writers to the same key resolve last-write-wins.
    """

    async def get(self, key: str) -> CacheEntry[object] | None:
        """Get a cache entry by key."""
        ...

    async def set(self, key: str, entry: CacheEntry[object]) -> None:
        """Store a cache entry, replacing any previous one."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a cache entry."""
        ...

    async def keys(self) -> Iterable[str]:
        """List the keys currently stored."""
        ...

    async def clear(self) -> None:
        """Clear all cached entries."""
        ...
