from __future__ import annotations

from datetime import timedelta

import pytest

from roomcal.slots import list_free_slots
from roomcal.timegrid import parse_timestamp

from .builders import NOW, at, make_calendar, make_event

pytestmark = pytest.mark.unit


def _starts(slots):
    return [parse_timestamp(s.start) for s in slots]


def test_skips_slots_touching_a_booking_only_where_they_overlap():
    cal = make_calendar(make_event("a", "09:30", "10:00"), roundingStepMins=30)
    slots = list_free_slots(cal, at("09:00"), at("11:00"), 30, now=NOW)
    assert [(s.start, s.end) for s in slots] == [
        ("2025-03-10T09:00:00+00:00", "2025-03-10T09:30:00+00:00"),
        ("2025-03-10T10:00:00+00:00", "2025-03-10T10:30:00+00:00"),
        ("2025-03-10T10:30:00+00:00", "2025-03-10T11:00:00+00:00"),
    ]


def test_range_start_rounds_up_to_the_grid():
    slots = list_free_slots(make_calendar(), at("09:10"), at("10:30"), 30, now=NOW)
    assert _starts(slots) == [at("09:30"), at("10:00")]


def test_last_slot_may_run_past_range_end():
    slots = list_free_slots(make_calendar(), at("09:00"), at("09:45"), 30, now=NOW)
    assert [s.end for s in slots] == ["2025-03-10T09:30:00+00:00", "2025-03-10T10:00:00+00:00"]


def test_buffers_block_neighbouring_slots():
    cal = make_calendar(make_event("a", "10:00", "11:00"), defaultPreBufferMins=15, defaultPostBufferMins=15)
    slots = list_free_slots(cal, at("09:00"), at("12:00"), 30, now=NOW)
    assert _starts(slots) == [at("09:00"), at("11:30")]


def test_out_of_hours_slots_are_excluded():
    cal = make_calendar(openingHours={"MO": [{"start": "10:00", "end": "11:00"}]})
    slots = list_free_slots(cal, at("09:00"), at("12:00"), 30, now=NOW)
    assert _starts(slots) == [at("10:00"), at("10:30")]


def test_lead_time_excludes_early_slots():
    cal = make_calendar(minLeadTimeMins=60)
    start = NOW
    slots = list_free_slots(cal, start, start + timedelta(hours=2), 30, now=NOW)
    assert _starts(slots) == [NOW + timedelta(hours=1), NOW + timedelta(minutes=90)]


def test_slots_are_not_merged():
    slots = list_free_slots(make_calendar(), at("09:00"), at("10:00"), 15, now=NOW)
    assert len(slots) == 4
