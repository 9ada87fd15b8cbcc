"""Shared fixtures for the roomcal test suite."""

from __future__ import annotations

import pytest

from roomcal.models import RoomCalendar

from .builders import make_calendar


@pytest.fixture
def calendar() -> RoomCalendar:
    """An empty Europe/Dublin calendar on a 15-minute grid."""
    return make_calendar()
