"""Availability probing and multi-room availability search.

``is_available`` answers the booker-facing question for a single room and
window. ``get_availability`` runs that probe over a set of rooms, proposes
the same window on nearby days for rooms that are taken, and attaches the
pricing signals (out-of-hours flag and billable hours) for every room.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .conflicts import check_overlap
from .lead_time import within_lead_times
from .models import (
    AvailabilityQuery,
    AvailabilityResponse,
    EventStatus,
    EventType,
    PricingFlag,
    RoomCalendar,
    RoomEvent,
    Slot,
    Suggestion,
)
from .opening_hours import detect_ooh
from .results import Availability
from .timegrid import iso, utcnow

logger = logging.getLogger(__name__)

PROBE_ID = "_probe_"


def probe_event(calendar: RoomCalendar, start: datetime, end: datetime) -> RoomEvent:
    """Build the transient provisional booking used to test a window."""
    return RoomEvent(
        id=PROBE_ID,
        roomId=calendar.roomId,
        type=EventType.BOOKING,
        status=EventStatus.PROVISIONAL,
        startsAt=start,
        endsAt=end,
        createdBy="system",
        createdAt=utcnow(),
    )


def is_available(
    calendar: RoomCalendar,
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None,
) -> Availability:
    """Return whether ``[start, end)`` can be booked in ``calendar``.

    Lead time is checked first, then buffered overlap against live events.
    """
    lead = within_lead_times(calendar, start, now=now)
    if not lead.ok:
        return Availability.from_failure(lead)
    overlap = check_overlap(calendar, probe_event(calendar, start, end))
    if not overlap.ok:
        return Availability.from_failure(overlap)
    return Availability(available=True)


def shift_days(calendar: RoomCalendar, start: datetime, days: int) -> datetime:
    """Move ``start`` by whole local days, keeping the room's wall-clock time."""
    local = start.astimezone(calendar.tz)
    return local + timedelta(days=days)


def billable_hours(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / 3600)


def _alternatives(
    calendar: RoomCalendar,
    start: datetime,
    end: datetime,
    suggest_days: int,
    now: Optional[datetime],
) -> List[Slot]:
    duration = end - start
    found: List[Slot] = []
    for d in range(1, suggest_days + 1):
        for offset in (-d, d):
            alt_start = shift_days(calendar, start, offset)
            alt_end = (alt_start.astimezone(timezone.utc) + duration).astimezone(calendar.tz)
            if is_available(calendar, alt_start, alt_end, now=now).available:
                found.append(Slot(start=iso(alt_start), end=iso(alt_end)))
    return found


def get_availability(
    calendars: Iterable[RoomCalendar],
    query: AvailabilityQuery,
    now: Optional[datetime] = None,
) -> AvailabilityResponse:
    """Search the requested rooms for the query window.

    Rooms are reported in the order given. When ``query.roomIds`` is empty
    every calendar is searched.
    """
    start, end = query.from_, query.to
    wanted = set(query.roomIds)
    rooms = [c for c in calendars if not wanted or c.roomId in wanted]

    free_rooms: List[str] = []
    suggestions: List[Suggestion] = []
    pricing: List[PricingFlag] = []
    for calendar in rooms:
        if is_available(calendar, start, end, now=now).available:
            free_rooms.append(calendar.roomId)
        else:
            alternatives = _alternatives(calendar, start, end, query.suggestDays, now)
            if alternatives:
                suggestions.append(Suggestion(roomId=calendar.roomId, alternative=alternatives))

        pricing.append(
            PricingFlag(
                roomId=calendar.roomId,
                ooh=detect_ooh(calendar, probe_event(calendar, start, end)),
                billableHours=billable_hours(start, end),
            )
        )

    logger.debug(
        "Availability %s..%s: %d rooms searched, %d free", iso(start), iso(end), len(rooms), len(free_rooms)
    )
    return AvailabilityResponse(
        from_=iso(start),
        to=iso(end),
        freeRooms=free_rooms,
        suggestions=suggestions or None,
        pricingFlags=pricing,
    )
