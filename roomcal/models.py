"""Pydantic data models for room calendars and availability responses.

Calendars and events are frozen values: engine operations never mutate
them and instead return copies built with ``model_copy``. Field names are
camelCase so the models serialise directly to the JSON shape exchanged
with the booking and admin front ends.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator, model_validator

Weekday = Literal["MO", "TU", "WE", "TH", "FR", "SA", "SU"]

# Indexed by ``date.weekday()`` (Monday == 0).
WEEKDAYS: Tuple[Weekday, ...] = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")

ROUNDING_STEPS = (5, 10, 15, 20, 30, 60)

_HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"
# Closing times may also be ``24:00``, the end of the local day.
_CLOSING_HHMM = r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$"
END_OF_DAY = "24:00"


class EventType(str, Enum):
    BOOKING = "BOOKING"
    HOLD = "HOLD"
    BLACKOUT = "BLACKOUT"
    MAINTENANCE = "MAINTENANCE"


class EventStatus(str, Enum):
    PROVISIONAL = "provisional"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Recurrence(BaseModel):
    """Weekly recurrence descriptor.

    Carried on events for the admin tools; no engine operation expands it
    into concrete occurrences.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["WEEKLY"] = "WEEKLY"
    byWeekday: List[Weekday] = []
    until: Optional[AwareDatetime] = None


class TimeRange(BaseModel):
    """A local ``HH:mm`` opening range within a single day."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: str = Field(pattern=_HHMM)
    end: str = Field(pattern=_CLOSING_HHMM)

    @model_validator(mode="after")
    def _end_after_start(self) -> "TimeRange":
        # Zero-padded HH:mm strings order the same way as the times they encode.
        if self.end <= self.start:
            raise ValueError(f"opening range end {self.end} must be after start {self.start}")
        return self

    def bounds(self, day: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
        """Return the range on local ``day`` as aware datetimes in ``tz``.

        An ``end`` of ``24:00`` closes at the following local midnight.
        """
        open_at = datetime.combine(day, time.fromisoformat(self.start), tzinfo=tz)
        if self.end == END_OF_DAY:
            close_at = datetime.combine(day + timedelta(days=1), time(0), tzinfo=tz)
        else:
            close_at = datetime.combine(day, time.fromisoformat(self.end), tzinfo=tz)
        return open_at, close_at


class RoomEvent(BaseModel):
    """One scheduled occupation of a room."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    roomId: str
    type: EventType = EventType.BOOKING
    status: EventStatus = EventStatus.PROVISIONAL
    startsAt: AwareDatetime
    endsAt: AwareDatetime
    title: Optional[str] = None
    notes: Optional[str] = None
    createdBy: str
    createdAt: AwareDatetime
    recurrence: Optional[Recurrence] = None
    preBufferMins: Optional[int] = Field(default=None, ge=0)
    postBufferMins: Optional[int] = Field(default=None, ge=0)

    @property
    def is_cancelled(self) -> bool:
        return self.status == EventStatus.CANCELLED


class RoomCalendar(BaseModel):
    """One room's schedule and booking policy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    roomId: str
    timezone: str
    defaultPreBufferMins: int = Field(default=0, ge=0)
    defaultPostBufferMins: int = Field(default=0, ge=0)
    roundingStepMins: Literal[5, 10, 15, 20, 30, 60] = 15
    halfDayCutoffHour: Optional[int] = Field(default=None, ge=0, le=23)
    dayCutoffHour: Optional[int] = Field(default=None, ge=0, le=23)
    minLeadTimeMins: int = Field(default=0, ge=0)
    maxLeadTimeDays: int = Field(default=365, ge=0)
    openingHours: Optional[Dict[Weekday, List[TimeRange]]] = None
    events: Tuple[RoomEvent, ...] = ()

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @model_validator(mode="after")
    def _unique_event_ids(self) -> "RoomCalendar":
        seen = set()
        for event in self.events:
            if event.id in seen:
                raise ValueError(f"duplicate event id {event.id!r}")
            seen.add(event.id)
        return self

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def find_event(self, event_id: str) -> Optional[RoomEvent]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None


class Slot(BaseModel):
    """A concrete ``[start, end)`` window rendered as ISO 8601 strings."""

    start: str
    end: str


class Suggestion(BaseModel):
    roomId: str
    alternative: List[Slot]


class PricingFlag(BaseModel):
    """Pricing signals for a requested window; pricing itself happens elsewhere."""

    roomId: str
    ooh: bool
    billableHours: int


class AvailabilityQuery(BaseModel):
    """Multi-room availability search parameters."""

    model_config = ConfigDict(populate_by_name=True)

    from_: AwareDatetime = Field(alias="from")
    to: AwareDatetime
    roomIds: List[str] = []
    suggestDays: int = Field(default=2, ge=0)


class AvailabilityResponse(BaseModel):
    """Result of an availability search.

    ``suggestions`` stays ``None`` (and is dropped from the JSON) when no
    room produced an alternative window.
    """

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    freeRooms: List[str] = []
    suggestions: Optional[List[Suggestion]] = None
    pricingFlags: List[PricingFlag] = []
