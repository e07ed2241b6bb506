"""Core types for the swrcache engine."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from swrcache.duration import parse_duration

T = TypeVar("T")

# Duration type alias
Duration = str | int  # "500ms", "2s", "5m" or milliseconds

Fetcher = Callable[[], Awaitable[T]]
ErrorCallback = Callable[[BaseException], None]


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached value with the time it was fetched."""

    value: T
    fetched_at: int  # Engine clock, ms


@dataclass(frozen=True, slots=True)
class FetchFailure:
    """The error raised by a fetcher, as seen by the state projection."""

    error: BaseException

    def __str__(self) -> str:
        return str(self.error)


@dataclass(frozen=True, slots=True)
class RequestState(Generic[T]):
    """What one activation currently knows about its key."""

    value: T | None = None
    error: FetchFailure | None = None
    is_loading: bool = False
    is_validating: bool = False


@dataclass(frozen=True, slots=True)
class Policy:
    """Revalidation options for one activation.

    Intervals accept a duration string or milliseconds and are stored as
    milliseconds. A refresh interval of 0 disables polling.
    """

    refresh_interval: Duration = 0
    deduping_interval: Duration = "2s"
    revalidate_on_focus: bool = True
    revalidate_on_reconnect: bool = True
    on_error: ErrorCallback | None = field(default=None, compare=False)
    keep_updating_after_deactivate: bool = False

    def __post_init__(self) -> None:
        # frozen, so normalise through object.__setattr__
        for name in ("refresh_interval", "deduping_interval"):
            ms = parse_duration(getattr(self, name))
            if ms < 0:
                raise ValueError(f"{name} must be >= 0, got {ms}")
            object.__setattr__(self, name, ms)

    @property
    def refresh_ms(self) -> int:
        return int(self.refresh_interval)

    @property
    def deduping_ms(self) -> int:
        return int(self.deduping_interval)

    def merge(self, **overrides: Any) -> "Policy":
        """Return a copy with the given options replaced."""
        unknown = set(overrides) - set(self.__dataclass_fields__)
        if unknown:
            raise TypeError(f"Unknown policy options: {sorted(unknown)}")
        values = {name: getattr(self, name) for name in self.__dataclass_fields__}
        values.update(overrides)
        return Policy(**values)
