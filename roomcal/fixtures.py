"""Loading of seed room calendars from a JSON fixture file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Union

from pydantic import TypeAdapter

from .models import RoomCalendar

logger = logging.getLogger(__name__)

_CALENDARS = TypeAdapter(List[RoomCalendar])


def load_calendars(path: Union[str, Path]) -> List[RoomCalendar]:
    """Read a JSON array of room calendars.

    Raises:
        OSError: if the file cannot be read.
        pydantic.ValidationError: if an entry is not a valid calendar.
        ValueError: if two calendars share a ``roomId``.
    """
    with open(path, "r", encoding="utf-8") as fh:
        calendars = _CALENDARS.validate_python(json.load(fh))
    seen = set()
    for calendar in calendars:
        if calendar.roomId in seen:
            raise ValueError(f"duplicate roomId {calendar.roomId!r} in {path}")
        seen.add(calendar.roomId)
    logger.info("Loaded %d room calendars from %s", len(calendars), path)
    return calendars
