"""Minimum/maximum booking horizon checks."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from .models import RoomCalendar
from .results import CheckResult, Failure, FailureKind, Ok
from .timegrid import utcnow


def within_lead_times(calendar: RoomCalendar, start: datetime, now: Optional[datetime] = None) -> CheckResult:
    """Check that ``start`` falls inside the calendar's booking horizon.

    ``now`` defaults to the current time, expressed in the room timezone.
    """
    now = (now or utcnow()).astimezone(calendar.tz)
    if start < now + timedelta(minutes=calendar.minLeadTimeMins):
        return Failure(
            kind=FailureKind.LEAD_TIME_VIOLATION,
            reason=f"Inside minimum lead time ({calendar.minLeadTimeMins} mins)",
        )
    if start > now + timedelta(days=calendar.maxLeadTimeDays):
        return Failure(
            kind=FailureKind.LEAD_TIME_VIOLATION,
            reason=f"Beyond maximum lead time ({calendar.maxLeadTimeDays} days)",
        )
    return Ok()
