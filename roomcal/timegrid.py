"""Timestamp helpers: step rounding, grid checks and boundary parsing.

Rounding works on the timestamp's own wall clock (its minute of day), so a
value keeps its UTC offset through every helper here.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Literal

Direction = Literal["down", "up"]


def _minute_of_day(ts: datetime) -> int:
    return ts.hour * 60 + ts.minute


def round_to_step(ts: datetime, step_minutes: int, direction: Direction = "down") -> datetime:
    """Snap ``ts`` to a multiple of ``step_minutes`` within its day.

    Seconds and microseconds are always dropped. Rounding up past the last
    step of the day lands on the following midnight.
    """
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")
    minutes = _minute_of_day(ts)
    if direction == "down":
        rounded = (minutes // step_minutes) * step_minutes
    elif direction == "up":
        # Anything past the minute boundary counts toward the next step.
        if ts.second or ts.microsecond:
            minutes += 1
        rounded = -(-minutes // step_minutes) * step_minutes
    else:
        raise ValueError(f"unknown rounding direction {direction!r}")
    midnight = ts.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(minutes=rounded)


def is_on_step(ts: datetime, step_minutes: int) -> bool:
    """Return True if ``ts`` lies exactly on the ``step_minutes`` grid."""
    return _minute_of_day(ts) % step_minutes == 0 and ts.second == 0 and ts.microsecond == 0


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp that carries an explicit UTC offset.

    Raises:
        ValueError: if the string is malformed or has no offset.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"invalid timestamp: {value!r}")
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"invalid timestamp: {value!r}") from exc
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise ValueError(f"timestamp must carry a UTC offset: {value!r}")
    return parsed


def iso(ts: datetime) -> str:
    return ts.isoformat()


def utc_stamp(ts: datetime) -> str:
    """Return ``ts`` in UTC as ``YYYYMMDDTHHMMSSZ``."""
    return ts.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def utcnow() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)
