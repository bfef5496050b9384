# hospitalms/modules/appointments/scheduling.py
"""
Time-slot arithmetic for appointment booking.

All ranges are wall-clock ``HH:MM`` values within a single calendar date and
are compared as minutes since midnight. Ranges are half-open: ``[start, end)``,
so back-to-back bookings (09:00-09:30 then 09:30-10:00) never conflict.

Nothing here touches the database; the appointment service feeds it the
doctor's schedule and the day's active bookings.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, time
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# Index matches date.weekday() (Monday == 0)
WEEKDAYS: Tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

MINUTES_PER_DAY = 24 * 60
DEFAULT_SLOT_MINUTES = 30
DEFAULT_WORK_START = "09:00"
DEFAULT_WORK_END = "17:00"

T = TypeVar("T")


def is_valid_time(value: Optional[str]) -> bool:
    return isinstance(value, str) and TIME_RE.match(value) is not None


def to_minutes(value: str) -> int:
    """'09:30' -> 570. Raises ValueError on anything that is not HH:MM."""
    m = TIME_RE.match(value or "")
    if not m:
        raise ValueError(f"invalid time: {value!r}")
    return int(m.group(1)) * 60 + int(m.group(2))


def from_minutes(minutes: int) -> str:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_of(t: time) -> int:
    return t.hour * 60 + t.minute


def to_time(value: str) -> time:
    minutes = to_minutes(value)
    return time(minutes // 60, minutes % 60)


def format_time(t: Optional[time]) -> Optional[str]:
    return t.strftime("%H:%M") if t is not None else None


def shift_time(value: str, minutes: int) -> Optional[str]:
    """Add minutes to an HH:MM value; None when the result would pass midnight."""
    total = to_minutes(value) + minutes
    if total >= MINUTES_PER_DAY:
        return None
    return from_minutes(total)


def normalize_time_range(
    start_time: Optional[str],
    end_time: Optional[str],
    legacy_time: Optional[str],
    duration: int = DEFAULT_SLOT_MINUTES,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Produce the canonical (start, end) pair for a booking request.

    Older clients send a single ``appointmentTime``; it becomes the start and
    the end is ``duration`` minutes later. Explicit start/end win when given.
    A malformed legacy value is passed through as the start so the format
    check reports it.
    """
    if not start_time and legacy_time:
        start_time = legacy_time
        if not end_time and is_valid_time(start_time):
            end_time = shift_time(start_time, duration)
    return start_time, end_time


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


@dataclass(frozen=True)
class WorkingHours:
    available: bool
    start_time: str
    end_time: str

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end_time)

    def contains(self, start: int, end: int) -> bool:
        return self.available and self.start_minutes <= start and end <= self.end_minutes


def working_hours_on(
    schedule: Optional[Mapping[str, Any]],
    weekday: str,
    default_start: str = DEFAULT_WORK_START,
    default_end: str = DEFAULT_WORK_END,
) -> WorkingHours:
    """
    Resolve the doctor's window for a weekday name.

    A missing schedule, a missing weekday entry or missing times fall back to
    the default window, available.
    """
    entry = (schedule or {}).get(weekday) or {}
    start = entry.get("startTime")
    end = entry.get("endTime")
    return WorkingHours(
        available=bool(entry.get("available", True)),
        start_time=start if is_valid_time(start) else default_start,
        end_time=end if is_valid_time(end) else default_end,
    )


def working_hours_for(
    schedule: Optional[Mapping[str, Any]],
    day: date,
    default_start: str = DEFAULT_WORK_START,
    default_end: str = DEFAULT_WORK_END,
) -> WorkingHours:
    return working_hours_on(schedule, weekday_name(day), default_start, default_end)


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def effective_interval(
    start: time, end: Optional[time], default_duration: int = DEFAULT_SLOT_MINUTES
) -> Tuple[int, int]:
    """
    Minute interval of a stored booking. Legacy rows carry no end time and
    are taken to last ``default_duration`` minutes.
    """
    s = minutes_of(start)
    e = minutes_of(end) if end is not None else s + default_duration
    return s, e


def find_conflict(
    start: int,
    end: int,
    bookings: Iterable[T],
    interval: Callable[[T], Tuple[int, int]],
) -> Optional[T]:
    """First booking whose interval overlaps [start, end), or None."""
    for booking in bookings:
        b_start, b_end = interval(booking)
        if overlaps(start, end, b_start, b_end):
            return booking
    return None


@dataclass(frozen=True)
class Slot:
    start_time: str
    end_time: str

    @property
    def display(self) -> str:
        return f"{self.start_time} - {self.end_time}"


def free_slots(
    hours: WorkingHours,
    busy: Sequence[Tuple[int, int]],
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[Slot]:
    """
    Fixed-length slots from the window's open time that fit entirely before
    close and overlap none of the ``busy`` intervals.
    """
    if not hours.available:
        return []

    slots: List[Slot] = []
    cursor = hours.start_minutes
    close = hours.end_minutes
    while cursor + slot_minutes <= close:
        slot_end = cursor + slot_minutes
        if not any(overlaps(cursor, slot_end, b_start, b_end) for b_start, b_end in busy):
            slots.append(Slot(from_minutes(cursor), from_minutes(slot_end)))
        cursor = slot_end
    return slots
