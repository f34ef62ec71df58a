from datetime import date

import pytest
from fastapi import HTTPException

from salon.models.appointment import Appointment
from salon.models.professional import Professional
from salon.models.user import User
from salon.routes.availability_routes import list_slots

MONDAY = date(2026, 1, 5)
SATURDAY = date(2026, 1, 10)
SUNDAY = date(2026, 1, 4)


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('salon.routes.availability_routes.ensure_database_ready', lambda: None)


def _list(db, owner, professional, service, slot_date: date, only_available: bool = False):
    return list_slots(
        professional_id=professional.id,
        service_id=service.id,
        slot_date=slot_date,
        only_available=only_available,
        current_user=owner,
        db=db,
    )


def test_list_slots_covers_working_day(db, owner, professional, service) -> None:
    response = _list(db, owner, professional, service, MONDAY)

    assert response.closed is False
    assert response.duration_minutes == 30
    assert response.slots[0].time == '09:00'
    assert response.slots[-1].time == '17:30'
    assert all(slot.available for slot in response.slots)


def test_list_slots_marks_booked_intervals(db, owner, professional, service, salon_client) -> None:
    db.add(
        Appointment(
            user_id=owner.id,
            professional_id=professional.id,
            client_id=salon_client.id,
            service_id=service.id,
            date=MONDAY,
            start_minute=600,
            duration=45,
        )
    )
    db.commit()

    response = _list(db, owner, professional, service, MONDAY)
    by_time = {slot.time: slot.available for slot in response.slots}

    assert by_time['10:15'] is False
    assert by_time['10:45'] is True
    assert by_time['09:30'] is True


def test_list_slots_returns_empty_list_for_closed_days(db, owner, professional, service) -> None:
    for closed_day in (SUNDAY, SATURDAY):
        response = _list(db, owner, professional, service, closed_day)

        assert response.closed is True
        assert response.slots == []


def test_list_slots_only_available_falls_back_to_full_day(db, owner, professional, service, salon_client) -> None:
    professional.working_hours = {'1': {'start': '09:00', 'end': '10:00'}}
    db.add(
        Appointment(
            user_id=owner.id,
            professional_id=professional.id,
            client_id=salon_client.id,
            service_id=service.id,
            date=MONDAY,
            start_minute=540,
            duration=60,
        )
    )
    db.commit()

    response = _list(db, owner, professional, service, MONDAY, only_available=True)

    assert [slot.time for slot in response.slots] == ['09:00', '09:15', '09:30']
    assert not any(slot.available for slot in response.slots)


def test_list_slots_hides_other_owners_professionals(db, owner, service) -> None:
    other_owner = User(email='other@salon.test', business_name='Other', role='owner')
    db.add(other_owner)
    db.commit()
    foreign = Professional(user_id=other_owner.id, name='Nora', specialty='Nails', working_hours={})
    db.add(foreign)
    db.commit()

    with pytest.raises(HTTPException) as exception_info:
        _list(db, owner, foreign, service, MONDAY)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Professional not found.'


def test_list_slots_reports_invalid_working_hours(db, owner, professional, service) -> None:
    professional.working_hours = {'1': {'start': '18:00', 'end': '09:00'}}
    db.commit()

    with pytest.raises(HTTPException) as exception_info:
        _list(db, owner, professional, service, MONDAY)

    assert exception_info.value.status_code == 500
