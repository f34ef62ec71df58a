"""
Availability calculation.

Turns a professional's working hours, a service duration and the day's
booked intervals into the ordered list of candidate start times, each
tagged as available or not. Everything here is a pure function of its
arguments so it can be recomputed whenever the selection changes.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, NamedTuple

from salon.core import config
from salon.scheduling.errors import InvalidSchedulingInput
from salon.scheduling.working_hours import OpenWindow, WorkingHours, format_clock, weekday_index


class BookedInterval(NamedTuple):
    start_minute: int
    duration: int

    @property
    def end_minute(self) -> int:
        return self.start_minute + self.duration


@dataclass(frozen=True)
class Slot:
    time: int
    available: bool

    @property
    def label(self) -> str:
        return format_clock(self.time)


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open overlap test; intervals that only touch do not overlap."""
    return start_a < end_b and end_a > start_b


def day_window(working_hours: WorkingHours, on_date: date) -> OpenWindow | None:
    """Return the open window for ``on_date``, or None when the professional is closed."""
    return working_hours.get(weekday_index(on_date))


def _require_positive_minutes(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidSchedulingInput(f'{name} must be a positive number of minutes, got {value!r}.')


def generate_slots(
    working_hours: WorkingHours,
    on_date: date,
    service_duration_minutes: int,
    existing: Iterable[tuple[int, int]] = (),
    granularity_minutes: int | None = None,
) -> list[Slot]:
    """
    Generate the candidate slots of one professional for one day.

    Args:
        working_hours: weekly schedule of the professional
        on_date: day being booked
        service_duration_minutes: length of the requested service
        existing: (start_minute, duration) of appointments already booked
            for the same professional and day
        granularity_minutes: step between candidate starts; defaults to
            SLOT_GRANULARITY_MINUTES

    Returns:
        list[Slot] ordered by time. A slot is only generated when the whole
        service fits before closing, and is unavailable when it overlaps any
        existing appointment. Closed days produce an empty list.
    """
    if granularity_minutes is None:
        granularity_minutes = config.SLOT_GRANULARITY_MINUTES
    _require_positive_minutes('service_duration_minutes', service_duration_minutes)
    _require_positive_minutes('granularity_minutes', granularity_minutes)

    window = day_window(working_hours, on_date)
    if window is None:
        return []

    booked = [BookedInterval(start, duration) for start, duration in existing]

    slots: list[Slot] = []
    current = window.start
    while current + service_duration_minutes <= window.end:
        slot_end = current + service_duration_minutes
        available = not any(
            intervals_overlap(current, slot_end, interval.start_minute, interval.end_minute)
            for interval in booked
        )
        slots.append(Slot(time=current, available=available))
        current += granularity_minutes

    return slots


def bookable_slots(slots: Iterable[Slot]) -> list[Slot]:
    return [slot for slot in slots if slot.available]


def offerable_slots(slots: list[Slot]) -> list[Slot]:
    """Available slots, or every slot when none is free so the day stays visible."""
    available = bookable_slots(slots)
    return available if available else list(slots)


def fits_window(window: OpenWindow | None, start_minute: int, duration: int) -> bool:
    return window is not None and window.start <= start_minute and start_minute + duration <= window.end
