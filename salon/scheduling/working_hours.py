from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping

from salon.scheduling.errors import InvalidSchedulingInput

MINUTES_PER_DAY = 24 * 60
WEEKDAYS = range(7)


@dataclass(frozen=True)
class OpenWindow:
    """Opening window of one weekday, in minutes since midnight."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start < MINUTES_PER_DAY or not 0 <= self.end < MINUTES_PER_DAY:
            raise InvalidSchedulingInput(f'Working hours must fall within the day, got {self.start}-{self.end}.')
        if self.start >= self.end:
            raise InvalidSchedulingInput(f'Working hours must start before they end, got {self.start}-{self.end}.')


# Weekday index (0 = Sunday) to its open window, or None when closed.
WorkingHours = dict[int, OpenWindow | None]


def parse_clock(value: str) -> int:
    """Convert "HH:MM" or "HH:MM:SS" into minutes since midnight."""
    parts = value.strip().split(':') if isinstance(value, str) else []
    if len(parts) not in (2, 3) or not all(part.isascii() and part.isdigit() for part in parts):
        raise InvalidSchedulingInput(f'Invalid clock time: {value!r}.')

    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if hours > 23 or minutes > 59 or seconds > 59:
        raise InvalidSchedulingInput(f'Invalid clock time: {value!r}.')

    return hours * 60 + minutes


def format_clock(minute_of_day: int) -> str:
    hours, minutes = divmod(minute_of_day, 60)
    return f'{hours:02d}:{minutes:02d}'


def weekday_index(on_date: date) -> int:
    # date.weekday() counts from Monday; working hours count from Sunday.
    return (on_date.weekday() + 1) % 7


def parse_working_hours(raw: Mapping[str, Any] | None) -> WorkingHours:
    """Build WorkingHours from the JSON stored on a professional.

    Both ``null`` and ``{"closed": true}`` mark a day as closed. A missing
    configuration yields an empty mapping, which closes every day.
    """
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise InvalidSchedulingInput('Working hours must be an object keyed by weekday.')

    hours: WorkingHours = {}
    for key, day in raw.items():
        try:
            weekday = int(key)
        except (TypeError, ValueError) as exc:
            raise InvalidSchedulingInput(f'Invalid weekday key: {key!r}.') from exc
        if weekday not in WEEKDAYS:
            raise InvalidSchedulingInput(f'Weekday must be between 0 (Sunday) and 6 (Saturday), got {weekday}.')

        if day is None or (isinstance(day, Mapping) and day.get('closed')):
            hours[weekday] = None
            continue
        if not isinstance(day, Mapping) or 'start' not in day or 'end' not in day:
            raise InvalidSchedulingInput(f'Working hours for weekday {weekday} need a start and an end.')

        hours[weekday] = OpenWindow(start=parse_clock(day['start']), end=parse_clock(day['end']))

    return hours


def dump_working_hours(hours: WorkingHours) -> dict[str, dict[str, str] | None]:
    return {
        str(weekday): None if window is None else {'start': format_clock(window.start), 'end': format_clock(window.end)}
        for weekday, window in sorted(hours.items())
    }
