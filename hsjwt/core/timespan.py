from __future__ import annotations

import re
from datetime import timedelta

_MINUTE = 60
_HOUR = _MINUTE * 60
_DAY = _HOUR * 24
_WEEK = _DAY * 7
_YEAR = _DAY * 365.25

_SPAN = re.compile(
    r"^(?P<value>\d+|\d+\.\d+) ?"
    r"(?P<unit>seconds?|secs?|s|minutes?|mins?|m|hours?|hrs?|h|days?|d|weeks?|w|years?|yrs?|y)$",
    re.IGNORECASE,
)


def _unit_seconds(unit: str) -> float:
    unit = unit.lower()
    if unit.startswith("s"):
        return 1
    if unit.startswith("m"):
        return _MINUTE
    if unit.startswith("h"):
        return _HOUR
    if unit.startswith("d"):
        return _DAY
    if unit.startswith("w"):
        return _WEEK
    return _YEAR


def to_seconds(value: int | float | str | timedelta | None) -> int:
    """Normalize a duration to whole seconds.

    Accepts numbers, ``timedelta`` and spans such as ``"5 seconds"``,
    ``"2m"`` or ``"1.5 hours"``. ``None`` means zero.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise TypeError("Duration cannot be a boolean")
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)):
        seconds = value
    elif isinstance(value, str):
        match = _SPAN.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid time span {value!r}")
        seconds = float(match.group("value")) * _unit_seconds(match.group("unit"))
    else:
        raise TypeError(f"Unsupported duration type {type(value).__name__}")
    if seconds < 0:
        raise ValueError("Duration cannot be negative")
    return round(seconds)
