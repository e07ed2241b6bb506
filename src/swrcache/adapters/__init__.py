"""Cache store adapters for swrcache (async only)."""

from swrcache.adapters.base import AsyncStorageAdapter
from swrcache.adapters.memory import AsyncMemoryAdapter

__all__ = [
    "AsyncMemoryAdapter",
    "AsyncStorageAdapter",
]
