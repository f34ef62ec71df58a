import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.auth.dependencies import get_current_user
from salon.core import config
from salon.database import get_db
from salon.models.appointment import Appointment
from salon.models.client import Client
from salon.models.professional import Professional
from salon.models.service import Service
from salon.models.user import User
from salon.routes.common import database_unavailable, ensure_database_ready, get_owned_or_404
from salon.scheduling.availability import day_window, fits_window
from salon.scheduling.booking import (
    BookingOutcome,
    BookingRequest,
    BookingResult,
    book_appointment,
    reschedule_appointment,
)
from salon.scheduling.errors import InvalidSchedulingInput
from salon.scheduling.store import AppointmentStore
from salon.scheduling.working_hours import format_clock, parse_clock, parse_working_hours

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)


class CreateAppointmentRequest(BaseModel):
    client_id: int
    service_id: int
    professional_id: int
    date: date
    start_time: str
    notes: str | None = None

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        return format_clock(parse_clock(value))

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class AppointmentResponse(BaseModel):
    id: int
    professional_id: int
    client_id: int
    service_id: int | None = None
    date: date
    start_time: str
    end_time: str
    duration: int
    status: str
    notes: str | None = None
    client_name: str | None = None
    service_name: str | None = None
    professional_name: str | None = None


def to_appointment_response(
    appointment: Appointment,
    client_name: str | None = None,
    service_name: str | None = None,
    professional_name: str | None = None,
) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        professional_id=appointment.professional_id,
        client_id=appointment.client_id,
        service_id=appointment.service_id,
        date=appointment.date,
        start_time=format_clock(appointment.start_minute),
        end_time=format_clock(appointment.start_minute + appointment.duration),
        duration=appointment.duration,
        status=appointment.status or 'booked',
        notes=appointment.notes,
        client_name=client_name,
        service_name=service_name,
        professional_name=professional_name,
    )


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    professional_id: int | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        query = db.query(Appointment, Client.name, Service.name, Professional.name).outerjoin(
            Client, Client.id == Appointment.client_id,
        ).outerjoin(
            Service, Service.id == Appointment.service_id,
        ).outerjoin(
            Professional, Professional.id == Appointment.professional_id,
        ).filter(Appointment.user_id == current_user.id)

        if date_from is not None:
            query = query.filter(Appointment.date >= date_from)
        if date_to is not None:
            query = query.filter(Appointment.date <= date_to)
        if professional_id is not None:
            query = query.filter(Appointment.professional_id == professional_id)

        rows = query.order_by(Appointment.date.desc(), Appointment.start_minute.asc()).all()

        return [
            to_appointment_response(appointment, client_name, service_name, professional_name)
            for appointment, client_name, service_name, professional_name in rows
        ]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def resolve_booking_request(
    data: CreateAppointmentRequest,
    current_user: User,
    db: Session,
) -> tuple[BookingRequest, tuple[str, str, str]]:
    """Check ownership and working hours, and build the write request with display names."""
    try:
        professional = get_owned_or_404(db, Professional, data.professional_id, current_user.id, 'Professional not found.')
        service = get_owned_or_404(db, Service, data.service_id, current_user.id, 'Service not found.')
        client = get_owned_or_404(db, Client, data.client_id, current_user.id, 'Client not found.')
        names = (client.name, service.name, professional.name)
        duration = service.duration
        working_hours = parse_working_hours(professional.working_hours)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
    except InvalidSchedulingInput as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='The professional has invalid working hours configured.',
        ) from exc

    start_minute = parse_clock(data.start_time)
    window = day_window(working_hours, data.date)
    if window is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='The professional does not work on that day.',
        )
    if not fits_window(window, start_minute, duration):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Appointment is outside the professional's working hours.",
        )

    request = BookingRequest(
        professional_id=data.professional_id,
        client_id=data.client_id,
        service_id=data.service_id,
        date=data.date,
        start_minute=start_minute,
        duration=duration,
        notes=data.notes,
        user_id=current_user.id,
    )
    return request, names


def raise_for_outcome(result: BookingResult) -> None:
    if result.outcome is BookingOutcome.SLOT_UNAVAILABLE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.message)
    if result.outcome is BookingOutcome.BOOKING_FAILED:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result.message)


def reload_appointment(db: Session, appointment_id: int, names: tuple[str, str, str]) -> AppointmentResponse:
    try:
        appointment = db.get(Appointment, appointment_id)
    except SQLAlchemyError as exc:
        logger.exception('Appointment %s was saved but could not be reloaded.', appointment_id)
        raise database_unavailable() from exc

    return to_appointment_response(appointment, *names)


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    request, names = resolve_booking_request(data, current_user, db)
    result = book_appointment(AppointmentStore(db), request)
    raise_for_outcome(result)

    return reload_appointment(db, result.appointment_id, names)


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        get_owned_or_404(db, Appointment, appointment_id, current_user.id, 'Appointment not found.')
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    request, names = resolve_booking_request(data, current_user, db)
    result = reschedule_appointment(AppointmentStore(db), appointment_id, request)
    raise_for_outcome(result)

    return reload_appointment(db, appointment_id, names)


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = get_owned_or_404(db, Appointment, appointment_id, current_user.id, 'Appointment not found.')
        db.delete(appointment)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
