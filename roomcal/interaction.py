"""Pointer interaction state for the admin calendar grid.

The grid turns drag gestures into explicit states and, on release, a
:class:`Commit` describing what the caller should do with the calendar
engine. Nothing here touches a calendar: the caller maps ``create`` to
``add_event`` and ``update`` to ``update_event``.

Pointer positions arrive as grid boundaries (timestamps) and are snapped
down to the rounding step. Moves that would invert the working interval
are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Literal, Optional, Tuple, Union

from .timegrid import round_to_step


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Creating:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class Moving:
    event_id: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class ResizingStart:
    event_id: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class ResizingEnd:
    event_id: str
    start: datetime
    end: datetime


State = Union[Idle, Creating, Moving, ResizingStart, ResizingEnd]


@dataclass(frozen=True)
class PressSlot:
    """Pointer down on an empty grid slot starting at ``at``."""

    at: datetime


@dataclass(frozen=True)
class PressEvent:
    """Pointer down on an event's body or one of its edges."""

    event_id: str
    start: datetime
    end: datetime
    grip: Literal["body", "start", "end"] = "body"


@dataclass(frozen=True)
class PointerMove:
    at: datetime


@dataclass(frozen=True)
class Release:
    pass


@dataclass(frozen=True)
class Escape:
    pass


Input = Union[PressSlot, PressEvent, PointerMove, Release, Escape]


@dataclass(frozen=True)
class Commit:
    action: Literal["create", "update"]
    start: datetime
    end: datetime
    event_id: Optional[str] = None


def _press(signal: Union[PressSlot, PressEvent], step: timedelta, step_minutes: int) -> State:
    if isinstance(signal, PressSlot):
        start = round_to_step(signal.at, step_minutes, "down")
        return Creating(start=start, end=start + step)
    if signal.grip == "start":
        return ResizingStart(event_id=signal.event_id, start=signal.start, end=signal.end)
    if signal.grip == "end":
        return ResizingEnd(event_id=signal.event_id, start=signal.start, end=signal.end)
    return Moving(event_id=signal.event_id, start=signal.start, end=signal.end)


def _drag(state: State, at: datetime) -> State:
    if isinstance(state, Creating):
        return replace(state, end=at) if at > state.start else state
    if isinstance(state, Moving):
        return replace(state, start=at, end=at + (state.end - state.start))
    if isinstance(state, ResizingStart):
        return replace(state, start=at) if at < state.end else state
    if isinstance(state, ResizingEnd):
        return replace(state, end=at) if at > state.start else state
    return state


def transition(state: State, signal: Input, step_minutes: int) -> Tuple[State, Optional[Commit]]:
    """Advance the interaction by one input.

    Returns the next state and, when a gesture finishes, the commit to apply.
    Presses while a gesture is already running are ignored.
    """
    if isinstance(signal, (PressSlot, PressEvent)):
        if not isinstance(state, Idle):
            return state, None
        return _press(signal, timedelta(minutes=step_minutes), step_minutes), None

    if isinstance(signal, PointerMove):
        return _drag(state, round_to_step(signal.at, step_minutes, "down")), None

    if isinstance(signal, Escape):
        return Idle(), None

    if isinstance(signal, Release):
        if isinstance(state, Creating):
            return Idle(), Commit(action="create", start=state.start, end=state.end)
        if isinstance(state, (Moving, ResizingStart, ResizingEnd)):
            return Idle(), Commit(action="update", start=state.start, end=state.end, event_id=state.event_id)
        return Idle(), None

    raise TypeError(f"unsupported interaction input: {signal!r}")
