"""Main application entry point for the room calendar service.

This module defines the FastAPI application, configures logging, holds the
in-memory calendar store and exposes the availability engine over HTTP.
Calendars are seeded from the fixture file named in settings the first
time the store is touched.

Endpoints:
  - ``/availability``: multi-room availability search with suggestions.
  - ``/rooms``: list configured rooms.
  - ``/rooms/{roomId}/calendar``: export (GET) or import (PUT) calendar JSON.
  - ``/rooms/{roomId}/events``: add, update, cancel and delete events.
  - ``/rooms/{roomId}/slots``: free step-aligned slots in a range.
  - ``/rooms/{roomId}/calendar.ics``: read-only iCalendar export.
  - ``/healthz``: simple health check endpoint.

Writers are serialised with a single lock: each mutation reads the current
calendar snapshot, runs the pure engine operation and swaps in the result.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import ValidationError

from .availability import get_availability
from .calendar_ops import add_event, cancel_event, delete_event, import_calendar, update_event
from .config import settings
from .fixtures import load_calendars
from .ics import to_ics
from .models import AvailabilityQuery, RoomCalendar, RoomEvent
from .results import Failure, FailureKind, MutationResult
from .slots import list_free_slots
from .timegrid import parse_timestamp, utcnow

logger = logging.getLogger("room_calendar")
logging.basicConfig(
    level=settings.log_level.upper(), format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

app = FastAPI(title="Room Calendar Service")

# CORS is disabled by default because the admin and booking UIs are served from
# the same origin. Set ENABLE_CORS=yes to apply the middleware.
if settings.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

_FAILURE_STATUS: Dict[FailureKind, int] = {
    FailureKind.CONFLICT: 409,
    FailureKind.DUPLICATE_EVENT: 409,
    FailureKind.ROOM_MISMATCH: 409,
    FailureKind.NOT_FOUND: 404,
    FailureKind.INVALID_RANGE: 422,
    FailureKind.STEP_MISALIGNMENT: 422,
    FailureKind.LEAD_TIME_VIOLATION: 422,
}

_store_lock = threading.Lock()
_store: Dict[str, RoomCalendar] = {}
_store_loaded = False


def _fill_store(calendars: Iterable[RoomCalendar]) -> None:
    # Caller holds _store_lock.
    global _store_loaded
    _store.clear()
    for calendar in calendars:
        _store[calendar.roomId] = calendar
    _store_loaded = True


def load_store(calendars: Iterable[RoomCalendar]) -> None:
    """Replace the store contents with ``calendars``."""
    with _store_lock:
        _fill_store(calendars)


def _ensure_loaded() -> None:
    if _store_loaded:
        return
    with _store_lock:
        # Another request may have seeded the store while we waited.
        if _store_loaded:
            return
        try:
            calendars = load_calendars(settings.fixtures_path)
        except Exception as exc:
            logger.exception("Error loading room fixtures from %s: %s", settings.fixtures_path, exc)
            raise HTTPException(status_code=500, detail=f"FIXTURES_ERROR: {exc}")
        _fill_store(calendars)


def _all_calendars() -> List[RoomCalendar]:
    _ensure_loaded()
    with _store_lock:
        return list(_store.values())


def _get_calendar(room_id: str) -> RoomCalendar:
    _ensure_loaded()
    with _store_lock:
        calendar = _store.get(room_id)
    if calendar is None:
        raise HTTPException(status_code=404, detail=f"Unknown room {room_id}")
    return calendar


def _parse(value: str, name: str) -> datetime:
    """Parse a query timestamp, failing fast with 422 on malformed input."""
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"{name}: {exc}")


def _raise_failure(failure: Failure) -> None:
    detail: Dict[str, Any] = {"kind": failure.kind.value, "reason": failure.reason}
    if failure.conflictingEvent is not None:
        detail["conflictingEvent"] = failure.conflictingEvent.model_dump(mode="json")
    raise HTTPException(status_code=_FAILURE_STATUS[failure.kind], detail=detail)


def _mutate(room_id: str, operation: Callable[[RoomCalendar], MutationResult]) -> RoomCalendar:
    """Apply ``operation`` to the room's calendar and store the new snapshot."""
    _ensure_loaded()
    with _store_lock:
        current = _store.get(room_id)
        if current is None:
            raise HTTPException(status_code=404, detail=f"Unknown room {room_id}")
        result = operation(current)
        if result.ok:
            _store[room_id] = result.calendar
    if not result.ok:
        logger.info("Rejected change to room %s: %s", room_id, result.reason)
        _raise_failure(result)
    return result.calendar


@app.get("/availability")
def api_availability(
    from_: str = Query(..., alias="from"),
    to: str = Query(...),
    roomIds: Optional[str] = Query(None),
    suggestDays: Optional[int] = Query(None, ge=0),
) -> Dict[str, Any]:
    """Search rooms for a window, with alternatives and pricing flags."""
    suggest_days = settings.default_suggest_days if suggestDays is None else suggestDays
    if suggest_days > settings.max_suggest_days:
        raise HTTPException(status_code=422, detail=f"suggestDays must be <= {settings.max_suggest_days}")
    query = AvailabilityQuery(
        from_=_parse(from_, "from"),
        to=_parse(to, "to"),
        roomIds=[r.strip() for r in (roomIds or "").split(",") if r.strip()],
        suggestDays=suggest_days,
    )
    response = get_availability(_all_calendars(), query)
    return response.model_dump(by_alias=True, exclude_none=True)


@app.get("/rooms")
def api_rooms() -> Dict[str, Any]:
    """Return the configured rooms."""
    calendars = _all_calendars()
    items = [{"roomId": c.roomId, "timezone": c.timezone} for c in calendars]
    return {"count": len(items), "items": items}


@app.get("/rooms/{room_id}/calendar")
def api_get_calendar(room_id: str) -> Dict[str, Any]:
    """Export the room calendar as JSON."""
    return _get_calendar(room_id).model_dump(mode="json")


@app.put("/rooms/{room_id}/calendar")
def api_import_calendar(room_id: str, payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Replace the room calendar with an imported JSON payload."""
    try:
        calendar = _mutate(room_id, lambda current: import_calendar(current, payload))
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        raise HTTPException(status_code=422, detail=errors)
    return calendar.model_dump(mode="json")


@app.post("/rooms/{room_id}/events", status_code=201)
def api_add_event(room_id: str, event: RoomEvent) -> Dict[str, Any]:
    """Add an event after grid, lead time and overlap validation."""
    _mutate(room_id, lambda current: add_event(current, event))
    return event.model_dump(mode="json")


@app.put("/rooms/{room_id}/events/{event_id}")
def api_update_event(room_id: str, event_id: str, event: RoomEvent) -> Dict[str, Any]:
    """Replace an existing event, keeping its position in the calendar."""
    if event.id != event_id:
        raise HTTPException(status_code=422, detail="Event id in body does not match path")
    _mutate(room_id, lambda current: update_event(current, event))
    return event.model_dump(mode="json")


@app.post("/rooms/{room_id}/events/{event_id}/cancel")
def api_cancel_event(room_id: str, event_id: str) -> Dict[str, Any]:
    """Mark an event cancelled; it stays in the calendar but frees its slot."""
    calendar = _mutate(room_id, lambda current: cancel_event(current, event_id))
    return calendar.find_event(event_id).model_dump(mode="json")


@app.delete("/rooms/{room_id}/events/{event_id}", status_code=204)
def api_delete_event(room_id: str, event_id: str) -> Response:
    """Hard-delete an event. Unknown event ids are ignored."""
    _ensure_loaded()
    with _store_lock:
        current = _store.get(room_id)
        if current is None:
            raise HTTPException(status_code=404, detail=f"Unknown room {room_id}")
        _store[room_id] = delete_event(current, event_id)
    logger.info("Deleted event %s from room %s", event_id, room_id)
    return Response(status_code=204)


@app.get("/rooms/{room_id}/slots")
def api_free_slots(
    room_id: str,
    from_: str = Query(..., alias="from"),
    to: str = Query(...),
    step: Optional[int] = Query(None, gt=0, le=1440),
) -> Dict[str, Any]:
    """List free, non-merged slots of ``step`` minutes in the range."""
    calendar = _get_calendar(room_id)
    step_minutes = step or settings.default_slot_step_minutes
    slots = list_free_slots(calendar, _parse(from_, "from"), _parse(to, "to"), step_minutes)
    return {"roomId": room_id, "step": step_minutes, "items": [s.model_dump() for s in slots]}


@app.get("/rooms/{room_id}/calendar.ics")
def api_calendar_ics(room_id: str) -> Response:
    """Export non-cancelled events as an iCalendar file."""
    calendar = _get_calendar(room_id)
    return Response(
        content=to_ics(calendar),
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{room_id}.ics"'},
    )


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    """Health check endpoint for monitoring."""
    return {"ok": True, "time": utcnow().isoformat().replace("+00:00", "Z")}
