"""Duration parsing utilities."""

import re

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)\s*$")
_UNITS: dict[str, int] = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_duration(duration: str | int) -> int:
    """Parse a duration string to milliseconds. Passthrough if already int.

    Fractional values are allowed ("1.5s") and rounded to whole ms.
    """
    if isinstance(duration, bool):
        raise TypeError(f"Invalid duration: {duration!r}")
    if isinstance(duration, int):
        return duration
    if not isinstance(duration, str):
        raise TypeError(f"Invalid duration: {duration!r}")

    match = _DURATION_PATTERN.match(duration)
    if not match:
        raise ValueError(f"Invalid duration: {duration!r}")

    value, unit = match.groups()
    return round(float(value) * _UNITS[unit])
