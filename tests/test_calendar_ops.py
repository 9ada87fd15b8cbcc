from __future__ import annotations

import json
from itertools import combinations

import pytest
from pydantic import ValidationError

from roomcal.calendar_ops import (
    add_event,
    cancel_event,
    delete_event,
    export_calendar,
    import_calendar,
    update_event,
)
from roomcal.conflicts import apply_buffers, intervals_overlap
from roomcal.models import EventStatus
from roomcal.results import FailureKind

from .builders import NOW, at, make_calendar, make_event

pytestmark = pytest.mark.unit


def _assert_no_live_overlaps(calendar):
    live = [e for e in calendar.events if not e.is_cancelled]
    for a, b in combinations(live, 2):
        assert not intervals_overlap(*apply_buffers(a, calendar), *apply_buffers(b, calendar)), (a.id, b.id)


class TestAddEvent:
    def test_appends_event(self, calendar):
        result = add_event(calendar, make_event("a"), now=NOW)
        assert result.ok
        assert [e.id for e in result.calendar.events] == ["a"]

    def test_input_calendar_is_untouched(self, calendar):
        add_event(calendar, make_event("a"), now=NOW)
        assert calendar.events == ()

    def test_buffered_conflict(self, calendar):
        first = add_event(calendar, make_event("a", preBufferMins=15, postBufferMins=15), now=NOW)
        second = add_event(
            first.calendar, make_event("b", "10:00", "11:00", preBufferMins=15, postBufferMins=15), now=NOW
        )
        assert not second.ok
        assert second.kind == FailureKind.CONFLICT
        assert second.conflictingEvent.id == "a"

    def test_step_misalignment(self, calendar):
        result = add_event(calendar, make_event("a", "09:05", "10:00"), now=NOW)
        assert not result.ok
        assert result.kind == FailureKind.STEP_MISALIGNMENT
        assert result.reason == "Times must align to 15-minute steps"

    def test_misaligned_end(self):
        cal = make_calendar(roundingStepMins=30)
        result = add_event(cal, make_event("a", "09:00", "09:45"), now=NOW)
        assert result.kind == FailureKind.STEP_MISALIGNMENT

    def test_lead_time_checked_before_overlap(self):
        cal = make_calendar(make_event("a"), minLeadTimeMins=60 * 24 * 30)
        result = add_event(cal, make_event("b"), now=NOW)
        assert result.kind == FailureKind.LEAD_TIME_VIOLATION

    def test_rejects_duplicate_id(self, calendar):
        first = add_event(calendar, make_event("a"), now=NOW)
        result = add_event(first.calendar, make_event("a", "12:00", "13:00"), now=NOW)
        assert result.kind == FailureKind.DUPLICATE_EVENT

    def test_rejects_foreign_room(self, calendar):
        result = add_event(calendar, make_event("a", roomId="Room-Y"), now=NOW)
        assert result.kind == FailureKind.ROOM_MISMATCH

    def test_cancelled_events_do_not_block(self):
        cal = make_calendar(make_event("a", status=EventStatus.CANCELLED))
        assert add_event(cal, make_event("b"), now=NOW).ok


class TestUpdateEvent:
    def test_unknown_id(self, calendar):
        result = update_event(calendar, make_event("missing"))
        assert not result.ok
        assert result.kind == FailureKind.NOT_FOUND
        assert result.reason == "Event not found"

    def test_replaces_in_place(self):
        cal = make_calendar(make_event("a"), make_event("b", "12:00", "13:00"), make_event("c", "15:00", "16:00"))
        result = update_event(cal, make_event("b", "12:30", "13:30", title="moved"))
        assert result.ok
        assert [e.id for e in result.calendar.events] == ["a", "b", "c"]
        assert result.calendar.events[1].title == "moved"
        assert cal.events[1].title is None

    def test_may_overlap_its_own_previous_interval(self):
        cal = make_calendar(make_event("a"))
        assert update_event(cal, make_event("a", "09:30", "10:30")).ok

    def test_conflict_with_other_event(self):
        cal = make_calendar(make_event("a"), make_event("b", "11:00", "12:00"))
        result = update_event(cal, make_event("b", "09:30", "10:30"))
        assert result.kind == FailureKind.CONFLICT
        assert result.conflictingEvent.id == "a"

    def test_skips_grid_and_lead_time_checks(self):
        cal = make_calendar(make_event("a"), minLeadTimeMins=60 * 24 * 365)
        assert update_event(cal, make_event("a", "09:07", "10:03")).ok


class TestDeleteAndCancel:
    def test_delete_removes_event(self):
        cal = make_calendar(make_event("a"), make_event("b", "12:00", "13:00"))
        assert [e.id for e in delete_event(cal, "a").events] == ["b"]

    def test_delete_unknown_is_noop(self):
        cal = make_calendar(make_event("a"))
        assert delete_event(cal, "zzz") == cal

    def test_cancel_keeps_event_and_frees_slot(self):
        cal = make_calendar(make_event("a"))
        cancelled = cancel_event(cal, "a")
        assert cancelled.ok
        assert cancelled.calendar.events[0].status == EventStatus.CANCELLED
        assert add_event(cancelled.calendar, make_event("b"), now=NOW).ok

    def test_cancel_unknown(self, calendar):
        assert cancel_event(calendar, "nope").kind == FailureKind.NOT_FOUND


def test_successful_mutations_never_leave_overlaps():
    cal = make_calendar(defaultPreBufferMins=15, defaultPostBufferMins=15)
    attempts = [
        ("add", make_event("a", "09:00", "10:00")),
        ("add", make_event("b", "10:00", "11:00")),
        ("add", make_event("c", "10:30", "11:30")),
        ("add", make_event("d", "08:00", "08:30", preBufferMins=0)),
        ("update", make_event("c", "09:15", "09:45")),
        ("update", make_event("a", "12:00", "13:00")),
        ("add", make_event("e", "13:30", "14:00")),
        ("update", make_event("e", "12:30", "13:30")),
    ]
    for action, event in attempts:
        result = add_event(cal, event, now=NOW) if action == "add" else update_event(cal, event)
        if result.ok:
            cal = result.calendar
        _assert_no_live_overlaps(cal)
    assert {e.id for e in cal.events} == {"a", "c", "d", "e"}


class TestJsonRoundTrip:
    def test_export_then_import_is_equal(self):
        cal = make_calendar(
            make_event("a", title="Board, meeting", notes="bring; snacks"),
            make_event("b", "12:00", "13:00", status=EventStatus.CANCELLED, preBufferMins=5),
            make_event(
                "c",
                "15:00",
                "16:00",
                recurrence={"type": "WEEKLY", "byWeekday": ["MO", "WE"], "until": at("00:00", day="2025-06-30")},
            ),
            openingHours={"MO": [{"start": "07:00", "end": "22:00"}]},
            halfDayCutoffHour=13,
            dayCutoffHour=18,
        )
        result = import_calendar(cal, export_calendar(cal))
        assert result.ok
        assert result.calendar == cal

    def test_export_is_a_json_object(self):
        data = json.loads(export_calendar(make_calendar(make_event("a"))))
        assert data["roomId"] == "Room-X"
        assert data["events"][0]["id"] == "a"

    def test_import_into_other_room_is_rejected(self, calendar):
        other = make_calendar(roomId="Room-Y")
        result = import_calendar(calendar, export_calendar(other))
        assert not result.ok
        assert result.kind == FailureKind.ROOM_MISMATCH
        assert result.reason == "Room mismatch"

    def test_import_rejects_events_from_other_rooms(self, calendar):
        payload = json.loads(export_calendar(make_calendar(make_event("a"))))
        payload["events"][0]["roomId"] = "Room-Y"
        assert import_calendar(calendar, payload).kind == FailureKind.ROOM_MISMATCH

    def test_import_rejects_invalid_payload(self, calendar):
        with pytest.raises(ValidationError):
            import_calendar(calendar, {"roomId": "Room-X", "timezone": "Europe/Dublin", "roundingStepMins": 7})

    def test_import_rejects_naive_timestamps(self, calendar):
        payload = json.loads(export_calendar(make_calendar(make_event("a"))))
        payload["events"][0]["startsAt"] = "2025-03-10T09:00:00"
        with pytest.raises(ValidationError):
            import_calendar(calendar, payload)

    def test_import_rejects_duplicate_event_ids(self, calendar):
        payload = json.loads(export_calendar(make_calendar(make_event("a"), make_event("b", "12:00", "13:00"))))
        payload["events"][1]["id"] = "a"
        with pytest.raises(ValidationError, match="duplicate event id 'a'"):
            import_calendar(calendar, payload)
