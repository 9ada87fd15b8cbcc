"""Read-only iCalendar export of a room calendar."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from .models import RoomCalendar
from .timegrid import utc_stamp, utcnow

_ESCAPES = {"\\": "\\\\", ";": "\\;", ",": "\\,", "\n": "\\n"}


def escape_text(value: str) -> str:
    """Escape backslash, semicolon, comma and newline for TEXT values."""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def to_ics(calendar: RoomCalendar, now: Optional[datetime] = None) -> str:
    """Render the calendar's non-cancelled events as a VCALENDAR document.

    All timestamps are emitted in UTC; ``now`` stamps every VEVENT's DTSTAMP.
    """
    stamp = utc_stamp(now or utcnow())
    lines: List[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//roomcal//{escape_text(calendar.roomId)}//EN",
    ]
    for event in calendar.events:
        if event.is_cancelled:
            continue
        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{escape_text(event.id)}@{escape_text(calendar.roomId)}")
        lines.append(f"DTSTAMP:{stamp}")
        lines.append(f"DTSTART:{utc_stamp(event.startsAt)}")
        lines.append(f"DTEND:{utc_stamp(event.endsAt)}")
        lines.append(f"SUMMARY:{escape_text(event.title or event.type.value)}")
        if event.notes:
            lines.append(f"DESCRIPTION:{escape_text(event.notes)}")
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"
