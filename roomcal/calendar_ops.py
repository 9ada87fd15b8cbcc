"""Copy-on-write mutations and JSON import/export for room calendars.

Every function takes a calendar value and returns a new one (wrapped in a
:class:`~roomcal.results.Mutation`) or a :class:`~roomcal.results.Failure`.
The input calendar is never modified, so callers must treat the returned
calendar as the new authoritative snapshot and serialise writers per room.

``add_event`` validates the rounding grid and lead time before the overlap
check. ``update_event`` only re-checks overlap: admins may edit events that
have already started or were created on an older grid.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from .conflicts import check_overlap
from .lead_time import within_lead_times
from .models import EventStatus, RoomCalendar, RoomEvent
from .results import Failure, FailureKind, Mutation, MutationResult
from .timegrid import is_on_step

logger = logging.getLogger(__name__)


def _room_mismatch(calendar: RoomCalendar, room_id: str) -> Failure:
    return Failure(
        kind=FailureKind.ROOM_MISMATCH,
        reason=f"Room mismatch: expected {calendar.roomId}, got {room_id}",
    )


def add_event(calendar: RoomCalendar, event: RoomEvent, now: Optional[datetime] = None) -> MutationResult:
    """Append ``event`` if it passes grid, lead-time and overlap checks."""
    if event.roomId != calendar.roomId:
        return _room_mismatch(calendar, event.roomId)
    if calendar.find_event(event.id) is not None:
        return Failure(kind=FailureKind.DUPLICATE_EVENT, reason=f"Event {event.id} already exists")

    step = calendar.roundingStepMins
    if not is_on_step(event.startsAt, step) or not is_on_step(event.endsAt, step):
        return Failure(kind=FailureKind.STEP_MISALIGNMENT, reason=f"Times must align to {step}-minute steps")

    lead = within_lead_times(calendar, event.startsAt, now=now)
    if not lead.ok:
        return lead

    overlap = check_overlap(calendar, event)
    if not overlap.ok:
        return overlap

    logger.info("Added %s event %s to room %s", event.type.value, event.id, calendar.roomId)
    return Mutation(calendar=calendar.model_copy(update={"events": calendar.events + (event,)}))


def update_event(calendar: RoomCalendar, event: RoomEvent) -> MutationResult:
    """Replace the event sharing ``event.id``, keeping its list position."""
    index = next((i for i, existing in enumerate(calendar.events) if existing.id == event.id), None)
    if index is None:
        return Failure(kind=FailureKind.NOT_FOUND, reason="Event not found")
    if event.roomId != calendar.roomId:
        return _room_mismatch(calendar, event.roomId)

    overlap = check_overlap(calendar, event)
    if not overlap.ok:
        return overlap

    events = calendar.events[:index] + (event,) + calendar.events[index + 1 :]
    logger.info("Updated event %s in room %s", event.id, calendar.roomId)
    return Mutation(calendar=calendar.model_copy(update={"events": events}))


def cancel_event(calendar: RoomCalendar, event_id: str) -> MutationResult:
    """Soft-delete: mark the event cancelled but keep it in the list."""
    existing = calendar.find_event(event_id)
    if existing is None:
        return Failure(kind=FailureKind.NOT_FOUND, reason="Event not found")
    cancelled = existing.model_copy(update={"status": EventStatus.CANCELLED})
    events = tuple(cancelled if e.id == event_id else e for e in calendar.events)
    logger.info("Cancelled event %s in room %s", event_id, calendar.roomId)
    return Mutation(calendar=calendar.model_copy(update={"events": events}))


def delete_event(calendar: RoomCalendar, event_id: str) -> RoomCalendar:
    """Hard-remove the event with ``event_id``; unknown ids are a no-op."""
    return calendar.model_copy(update={"events": tuple(e for e in calendar.events if e.id != event_id)})


def export_calendar(calendar: RoomCalendar) -> str:
    """Serialise ``calendar`` to a JSON object string."""
    return calendar.model_dump_json(indent=2)


def import_calendar(target: RoomCalendar, payload: Union[str, bytes, Mapping[str, Any]]) -> MutationResult:
    """Parse ``payload`` as a calendar destined for ``target``'s room.

    Raises:
        pydantic.ValidationError: if the payload is not a valid calendar.
    """
    if isinstance(payload, (str, bytes)):
        data = json.loads(payload)
    else:
        data = dict(payload)
    if not isinstance(data, dict):
        raise ValueError("calendar payload must be a JSON object")
    if data.get("roomId") != target.roomId:
        logger.debug("Rejected import of room %r into %s", data.get("roomId"), target.roomId)
        return Failure(kind=FailureKind.ROOM_MISMATCH, reason="Room mismatch")
    imported = RoomCalendar.model_validate(data)
    stray = next((e for e in imported.events if e.roomId != target.roomId), None)
    if stray is not None:
        return _room_mismatch(target, stray.roomId)
    logger.info("Imported %d events into room %s", len(imported.events), target.roomId)
    return Mutation(calendar=imported)
