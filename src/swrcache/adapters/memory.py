"""In-memory cache store (async only)."""

import asyncio

from swrcache.types import CacheEntry


class AsyncMemoryAdapter:
    """Process-local cache store. Entries live until deleted or cleared."""

    def __init__(self) -> None:
        self._cache: dict[str, CacheEntry[object]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._cache)

    async def get(self, key: str) -> CacheEntry[object] | None:
        """Get a cache entry by key."""
        async with self._lock:
            return self._cache.get(key)

    async def set(self, key: str, entry: CacheEntry[object]) -> None:
        """Store a cache entry, replacing any previous one."""
        async with self._lock:
            self._cache[key] = entry

    async def delete(self, key: str) -> None:
        """Delete a cache entry."""
        async with self._lock:
            self._cache.pop(key, None)

    async def keys(self) -> list[str]:
        """List the keys currently stored."""
        async with self._lock:
            return list(self._cache)

    async def clear(self) -> None:
        """Clear all cached entries."""
        async with self._lock:
            self._cache.clear()
