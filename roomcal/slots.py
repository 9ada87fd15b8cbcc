"""Free slot enumeration on a fixed step grid."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from .availability import is_available, probe_event
from .models import RoomCalendar, Slot
from .opening_hours import detect_ooh
from .timegrid import iso, round_to_step


def list_free_slots(
    calendar: RoomCalendar,
    range_start: datetime,
    range_end: datetime,
    step_minutes: int,
    now: Optional[datetime] = None,
) -> List[Slot]:
    """Return every free ``step_minutes`` slot starting inside the range.

    The walk starts at ``range_start`` rounded up to the step. Each slot is
    judged on its own (lead time, buffered overlap and opening hours);
    adjacent free slots are not merged.
    """
    step = timedelta(minutes=step_minutes)
    free: List[Slot] = []
    cursor = round_to_step(range_start, step_minutes, "up")
    while cursor < range_end:
        slot_end = cursor + step
        if is_available(calendar, cursor, slot_end, now=now).available and not detect_ooh(
            calendar, probe_event(calendar, cursor, slot_end)
        ):
            free.append(Slot(start=iso(cursor), end=iso(slot_end)))
        cursor = slot_end
    return free
