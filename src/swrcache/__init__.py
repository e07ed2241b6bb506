"""swrcache - stale-while-revalidate data fetching for asyncio."""

# Cache stores (async only)
from swrcache.adapters import (
    AsyncMemoryAdapter,
    AsyncStorageAdapter,
)

# Fetch coordination
from swrcache.coordinator import FetchCoordinator

# Duration parsing
from swrcache.duration import parse_duration

# Engine API
from swrcache.engine import Activation, Engine

# Signals
from swrcache.events import EventBus, LocalEventBus, Signal
from swrcache.fetchers import json_fetcher
from swrcache.state import StateProjection
from swrcache.triggers import TriggerSet

# Core types
from swrcache.types import (
    CacheEntry,
    Duration,
    Fetcher,
    FetchFailure,
    Policy,
    RequestState,
)

__version__ = "0.1.0"

__all__ = [
    "Activation",
    "AsyncMemoryAdapter",
    "AsyncStorageAdapter",
    "CacheEntry",
    "Duration",
    "Engine",
    "EventBus",
    "FetchCoordinator",
    "FetchFailure",
    "Fetcher",
    "LocalEventBus",
    "Policy",
    "RequestState",
    "Signal",
    "StateProjection",
    "TriggerSet",
    "json_fetcher",
    "parse_duration",
]
