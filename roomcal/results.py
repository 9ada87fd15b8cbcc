"""Discriminated success/failure values returned by the engine.

Business-rule violations are expected outcomes, so engine operations return
a :class:`Failure` carrying a user-facing ``reason`` instead of raising.
Callers branch on ``result.ok``.
"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel

from .models import RoomCalendar, RoomEvent


class FailureKind(str, Enum):
    INVALID_RANGE = "InvalidRange"
    STEP_MISALIGNMENT = "StepMisalignment"
    LEAD_TIME_VIOLATION = "LeadTimeViolation"
    CONFLICT = "Conflict"
    NOT_FOUND = "NotFound"
    ROOM_MISMATCH = "RoomMismatch"
    DUPLICATE_EVENT = "DuplicateEvent"


class Ok(BaseModel):
    ok: Literal[True] = True


class Failure(BaseModel):
    ok: Literal[False] = False
    kind: FailureKind
    reason: str
    conflictingEvent: Optional[RoomEvent] = None


class Mutation(BaseModel):
    """A successful calendar transform; ``calendar`` is the new snapshot."""

    ok: Literal[True] = True
    calendar: RoomCalendar


class Availability(BaseModel):
    available: bool
    kind: Optional[FailureKind] = None
    reason: Optional[str] = None
    conflictingEvent: Optional[RoomEvent] = None

    @classmethod
    def from_failure(cls, failure: Failure) -> "Availability":
        return cls(
            available=False,
            kind=failure.kind,
            reason=failure.reason,
            conflictingEvent=failure.conflictingEvent,
        )


CheckResult = Union[Ok, Failure]
MutationResult = Union[Mutation, Failure]
