from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.auth.dependencies import get_current_user
from salon.database import get_db
from salon.models.professional import Professional
from salon.models.service import Service
from salon.models.user import User
from salon.routes.common import database_unavailable, ensure_database_ready, get_owned_or_404
from salon.scheduling.availability import Slot, day_window, generate_slots, offerable_slots
from salon.scheduling.errors import InvalidSchedulingInput, StoreError
from salon.scheduling.store import AppointmentStore

router = APIRouter(tags=['availability'])


class SlotResponse(BaseModel):
    time: str
    start_minute: int
    available: bool


class AvailabilityResponse(BaseModel):
    professional_id: int
    service_id: int
    date: date
    duration_minutes: int
    closed: bool
    slots: list[SlotResponse]


def to_slot_response(slot: Slot) -> SlotResponse:
    return SlotResponse(time=slot.label, start_minute=slot.time, available=slot.available)


@router.get('/slots', response_model=AvailabilityResponse)
def list_slots(
    professional_id: int = Query(...),
    service_id: int = Query(...),
    slot_date: date = Query(..., alias='date'),
    only_available: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        get_owned_or_404(db, Professional, professional_id, current_user.id, 'Professional not found.')
        service = get_owned_or_404(db, Service, service_id, current_user.id, 'Service not found.')

        store = AppointmentStore(db)
        working_hours = store.get_working_hours(professional_id)
        existing = store.get_appointments(professional_id, slot_date)
    except (SQLAlchemyError, StoreError) as exc:
        raise database_unavailable() from exc
    except InvalidSchedulingInput as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='The professional has invalid working hours configured.',
        ) from exc

    slots = generate_slots(working_hours, slot_date, service.duration, existing)
    if only_available:
        slots = offerable_slots(slots)

    return AvailabilityResponse(
        professional_id=professional_id,
        service_id=service_id,
        date=slot_date,
        duration_minutes=service.duration,
        closed=day_window(working_hours, slot_date) is None,
        slots=[to_slot_response(slot) for slot in slots],
    )
