"""Buffered overlap detection between room events."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Tuple

from .models import RoomCalendar, RoomEvent
from .results import CheckResult, Failure, FailureKind, Ok

logger = logging.getLogger(__name__)


def apply_buffers(event: RoomEvent, calendar: RoomCalendar) -> Tuple[datetime, datetime]:
    """Return the event's interval widened by its pre/post buffers.

    Per-event buffers win over the calendar defaults; an explicit ``0`` on
    the event disables the default.
    """
    pre = event.preBufferMins if event.preBufferMins is not None else calendar.defaultPreBufferMins
    post = event.postBufferMins if event.postBufferMins is not None else calendar.defaultPostBufferMins
    start = event.startsAt.astimezone(timezone.utc)
    end = event.endsAt.astimezone(timezone.utc)
    return start - timedelta(minutes=pre), end + timedelta(minutes=post)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Strict half-open overlap test. Touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end


def check_overlap(calendar: RoomCalendar, candidate: RoomEvent) -> CheckResult:
    """Check ``candidate`` against every live event of ``calendar``.

    Events are scanned in stored order and the first buffered overlap is
    reported. Cancelled events and the event sharing the candidate's id are
    skipped, so an update can be checked against its own calendar.
    """
    start, end = apply_buffers(candidate, calendar)
    if end <= start:
        return Failure(kind=FailureKind.INVALID_RANGE, reason="Invalid time range")
    for event in calendar.events:
        if event.is_cancelled or event.id == candidate.id:
            continue
        other_start, other_end = apply_buffers(event, calendar)
        if intervals_overlap(start, end, other_start, other_end):
            logger.debug("Event %s conflicts with %s in room %s", candidate.id, event.id, calendar.roomId)
            return Failure(
                kind=FailureKind.CONFLICT,
                reason=f"Conflicts with {event.type.value} ({event.title or event.id}) after buffers",
                conflictingEvent=event,
            )
    return Ok()
