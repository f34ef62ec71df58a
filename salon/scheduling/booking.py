"""
Booking guard.

Turns a selected slot into a stored appointment. The guard does not look at
existing appointments itself: it issues a single insert and lets the store's
atomic overlap check decide, then maps the answer onto a BookingOutcome.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum

from salon.scheduling.errors import AppointmentConflictError, InvalidSchedulingInput, StoreError
from salon.scheduling.working_hours import MINUTES_PER_DAY

logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE_MESSAGE = 'The professional already has an appointment at that time.'
BOOKING_FAILED_MESSAGE = 'The appointment could not be created. Please try again later.'


class BookingOutcome(str, Enum):
    COMMITTED = 'committed'
    SLOT_UNAVAILABLE = 'slot_unavailable'
    BOOKING_FAILED = 'booking_failed'


@dataclass(frozen=True)
class BookingRequest:
    professional_id: int
    client_id: int
    service_id: int | None
    date: date
    start_minute: int
    duration: int
    notes: str | None = None
    user_id: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.duration, bool) or not isinstance(self.duration, int) or self.duration <= 0:
            raise InvalidSchedulingInput(f'duration must be a positive number of minutes, got {self.duration!r}.')
        if not 0 <= self.start_minute < MINUTES_PER_DAY:
            raise InvalidSchedulingInput(f'start_minute must fall within the day, got {self.start_minute!r}.')

    @property
    def end_minute(self) -> int:
        return self.start_minute + self.duration


@dataclass(frozen=True)
class BookingResult:
    outcome: BookingOutcome
    appointment_id: int | None = None
    message: str | None = None

    @property
    def committed(self) -> bool:
        return self.outcome is BookingOutcome.COMMITTED


def book_appointment(store, request: BookingRequest) -> BookingResult:
    try:
        appointment_id = store.create_appointment(request)
    except AppointmentConflictError:
        logger.info(
            'Slot no longer available for professional %s on %s at minute %s.',
            request.professional_id,
            request.date,
            request.start_minute,
        )
        return BookingResult(outcome=BookingOutcome.SLOT_UNAVAILABLE, message=SLOT_UNAVAILABLE_MESSAGE)
    except StoreError:
        logger.exception('Booking failed for professional %s on %s.', request.professional_id, request.date)
        return BookingResult(outcome=BookingOutcome.BOOKING_FAILED, message=BOOKING_FAILED_MESSAGE)

    logger.info(
        'Booked appointment %s for professional %s on %s at minute %s.',
        appointment_id,
        request.professional_id,
        request.date,
        request.start_minute,
    )
    return BookingResult(outcome=BookingOutcome.COMMITTED, appointment_id=appointment_id)


def reschedule_appointment(store, appointment_id: int, request: BookingRequest) -> BookingResult:
    try:
        store.update_appointment(appointment_id, request)
    except AppointmentConflictError:
        logger.info(
            'Cannot move appointment %s: professional %s is busy on %s at minute %s.',
            appointment_id,
            request.professional_id,
            request.date,
            request.start_minute,
        )
        return BookingResult(outcome=BookingOutcome.SLOT_UNAVAILABLE, message=SLOT_UNAVAILABLE_MESSAGE)
    except StoreError:
        logger.exception('Updating appointment %s failed.', appointment_id)
        return BookingResult(outcome=BookingOutcome.BOOKING_FAILED, message=BOOKING_FAILED_MESSAGE)

    logger.info('Moved appointment %s to %s at minute %s.', appointment_id, request.date, request.start_minute)
    return BookingResult(outcome=BookingOutcome.COMMITTED, appointment_id=appointment_id)
