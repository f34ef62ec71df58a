"""
Appointment store.

SQLAlchemy-backed implementation of the three operations the scheduling
core needs: read a professional's working hours, read the intervals booked
for a professional on a day, and insert an appointment atomically. The
overlap check on insert is performed by the database (see
``salon.database.ensure_appointment_schema``); this module only classifies
the database's answer.
"""

import logging
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from salon.database import APPOINTMENT_OVERLAP_CONSTRAINT, APPOINTMENT_START_CONSTRAINT
from salon.models.appointment import Appointment
from salon.models.professional import Professional
from salon.scheduling.availability import BookedInterval
from salon.scheduling.errors import AppointmentConflictError, ProfessionalNotFoundError, StoreError
from salon.scheduling.working_hours import WorkingHours, parse_working_hours

logger = logging.getLogger(__name__)

EXCLUSION_VIOLATION = '23P01'
UNIQUE_VIOLATION = '23505'
SQLITE_CONFLICT_ERRORS = {'SQLITE_CONSTRAINT_TRIGGER', 'SQLITE_CONSTRAINT_UNIQUE'}
APPOINTMENT_CONSTRAINTS = {APPOINTMENT_OVERLAP_CONSTRAINT, APPOINTMENT_START_CONSTRAINT}


def is_overlap_violation(exc: IntegrityError) -> bool:
    """Tell overlap rejections apart from other integrity errors using driver error codes."""
    original = exc.orig

    sqlite_error = getattr(original, 'sqlite_errorname', None)
    if sqlite_error is not None:
        return sqlite_error in SQLITE_CONFLICT_ERRORS

    sqlstate = getattr(original, 'pgcode', None) or getattr(original, 'sqlstate', None)
    if sqlstate == EXCLUSION_VIOLATION:
        return True
    if sqlstate == UNIQUE_VIOLATION:
        diag = getattr(original, 'diag', None)
        return getattr(diag, 'constraint_name', None) in APPOINTMENT_CONSTRAINTS

    return False


class AppointmentStore:
    def __init__(self, db: Session):
        self.db = db

    def get_working_hours(self, professional_id: int) -> WorkingHours:
        try:
            professional = self.db.get(Professional, professional_id)
        except SQLAlchemyError as exc:
            raise StoreError('Could not load working hours.') from exc

        if professional is None:
            raise ProfessionalNotFoundError(f'Professional {professional_id} does not exist.')

        return parse_working_hours(professional.working_hours)

    def get_appointments(self, professional_id: int, on_date: date) -> list[BookedInterval]:
        try:
            rows = self.db.query(Appointment.start_minute, Appointment.duration).filter(
                Appointment.professional_id == professional_id,
                Appointment.date == on_date,
            ).order_by(Appointment.start_minute.asc()).all()
        except SQLAlchemyError as exc:
            raise StoreError('Could not load appointments.') from exc

        return [BookedInterval(start_minute, duration) for start_minute, duration in rows]

    def create_appointment(self, request) -> int:
        """Insert the appointment described by ``request`` and return its id.

        Raises AppointmentConflictError when the database rejects the row
        because it overlaps an appointment of the same professional and day,
        and StoreError for any other failure. Nothing is written unless the
        insert commits.
        """
        appointment = Appointment(
            user_id=request.user_id,
            professional_id=request.professional_id,
            client_id=request.client_id,
            service_id=request.service_id,
            date=request.date,
            start_minute=request.start_minute,
            duration=request.duration,
            notes=request.notes,
            status='booked',
        )

        try:
            self.db.add(appointment)
            self.db.flush()
            appointment_id = appointment.id
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if is_overlap_violation(exc):
                raise AppointmentConflictError(
                    f'Professional {request.professional_id} already has an appointment overlapping '
                    f'{request.date} minute {request.start_minute}.'
                ) from exc
            raise StoreError('The appointment was rejected by the database.') from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError('Database unavailable.') from exc

        return appointment_id

    def update_appointment(self, appointment_id: int, request) -> None:
        """Move or edit an existing appointment in a single write.

        The overlap guard ignores the row being updated, so an appointment
        may be shifted within its own current interval. Errors are reported
        the same way as create_appointment.
        """
        try:
            appointment = self.db.get(Appointment, appointment_id)
            if appointment is None:
                raise StoreError(f'Appointment {appointment_id} does not exist.')

            appointment.professional_id = request.professional_id
            appointment.client_id = request.client_id
            appointment.service_id = request.service_id
            appointment.date = request.date
            appointment.start_minute = request.start_minute
            appointment.duration = request.duration
            appointment.notes = request.notes
            self.db.flush()
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if is_overlap_violation(exc):
                raise AppointmentConflictError(
                    f'Professional {request.professional_id} already has an appointment overlapping '
                    f'{request.date} minute {request.start_minute}.'
                ) from exc
            raise StoreError('The appointment change was rejected by the database.') from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError('Database unavailable.') from exc
