"""Out-of-opening-hours detection.

An event is out of hours (OOH) when any part of it, viewed in the room's
local timezone, falls outside that weekday's opening ranges. The interval is
cut at local midnights and each day segment must be covered by the union of
the day's open ranges.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, List, Tuple

from .models import WEEKDAYS, RoomCalendar, RoomEvent

Interval = Tuple[datetime, datetime]


def _day_segments(start: datetime, end: datetime, calendar: RoomCalendar) -> Iterator[Tuple[date, Interval]]:
    """Yield ``(local_date, (seg_start, seg_end))`` pieces split at local midnight."""
    tz = calendar.tz
    cursor = start.astimezone(tz)
    end_utc = end.astimezone(timezone.utc)
    while cursor.astimezone(timezone.utc) < end_utc:
        day = cursor.date()
        next_midnight = datetime.combine(day + timedelta(days=1), time(0), tzinfo=tz)
        seg_end = min(end_utc, next_midnight.astimezone(timezone.utc))
        yield day, (cursor.astimezone(timezone.utc), seg_end)
        cursor = seg_end.astimezone(tz)


def _open_intervals(calendar: RoomCalendar, day: date) -> List[Interval]:
    tz = calendar.tz
    ranges = (calendar.openingHours or {}).get(WEEKDAYS[day.weekday()], [])
    intervals = []
    for opening in ranges:
        open_at, close_at = opening.bounds(day, tz)
        intervals.append((open_at.astimezone(timezone.utc), close_at.astimezone(timezone.utc)))
    intervals.sort()
    return intervals


def _covered(segment: Interval, intervals: List[Interval]) -> bool:
    """Return True if the union of ``intervals`` covers ``segment`` entirely."""
    reached, seg_end = segment
    for open_start, open_end in intervals:
        if open_start > reached:
            break
        if open_end > reached:
            reached = open_end
        if reached >= seg_end:
            return True
    return reached >= seg_end


def detect_ooh(calendar: RoomCalendar, event: RoomEvent) -> bool:
    """Return True if any part of ``event`` lies outside opening hours.

    A calendar without ``openingHours`` is always open. A weekday missing from
    the mapping (or mapped to an empty list) is closed all day.
    """
    if calendar.openingHours is None:
        return False
    for day, segment in _day_segments(event.startsAt, event.endsAt, calendar):
        if not _covered(segment, _open_intervals(calendar, day)):
            return True
    return False
