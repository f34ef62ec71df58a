import threading
from datetime import date

import pytest

from salon.models.appointment import Appointment
from salon.scheduling.booking import (
    BOOKING_FAILED_MESSAGE,
    SLOT_UNAVAILABLE_MESSAGE,
    BookingOutcome,
    BookingRequest,
    book_appointment,
    reschedule_appointment,
)
from salon.scheduling.errors import (
    AppointmentConflictError,
    InvalidSchedulingInput,
    ProfessionalNotFoundError,
    StoreError,
)
from salon.scheduling.store import AppointmentStore

MONDAY = date(2026, 1, 5)


class FakeStore:
    def __init__(self, error: Exception | None = None, appointment_id: int = 41):
        self.error = error
        self.appointment_id = appointment_id
        self.requests = []

    def create_appointment(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.appointment_id

    def update_appointment(self, appointment_id, request):
        self.requests.append((appointment_id, request))
        if self.error is not None:
            raise self.error

    def get_appointments(self, professional_id, on_date):
        raise AssertionError('the booking guard must not read appointments')


def make_request(**overrides) -> BookingRequest:
    values = {
        'professional_id': 1,
        'client_id': 2,
        'service_id': 3,
        'date': MONDAY,
        'start_minute': 660,
        'duration': 30,
    }
    values.update(overrides)
    return BookingRequest(**values)


def test_book_appointment_returns_committed_result() -> None:
    store = FakeStore(appointment_id=7)

    result = book_appointment(store, make_request())

    assert result.outcome is BookingOutcome.COMMITTED
    assert result.appointment_id == 7
    assert result.committed
    assert len(store.requests) == 1


def test_book_appointment_maps_conflict_to_slot_unavailable() -> None:
    store = FakeStore(error=AppointmentConflictError('overlap'))

    result = book_appointment(store, make_request())

    assert result.outcome is BookingOutcome.SLOT_UNAVAILABLE
    assert result.appointment_id is None
    assert result.message == SLOT_UNAVAILABLE_MESSAGE
    assert not result.committed


def test_book_appointment_maps_store_errors_to_booking_failed() -> None:
    store = FakeStore(error=StoreError('connection refused'))

    result = book_appointment(store, make_request())

    assert result.outcome is BookingOutcome.BOOKING_FAILED
    assert result.message == BOOKING_FAILED_MESSAGE
    assert len(store.requests) == 1


@pytest.mark.parametrize(
    'overrides',
    [{'duration': 0}, {'duration': -15}, {'start_minute': -1}, {'start_minute': 1440}],
)
def test_booking_request_rejects_invalid_values(overrides) -> None:
    with pytest.raises(InvalidSchedulingInput):
        make_request(**overrides)


def _store_request(professional, service, salon_client, owner, **overrides) -> BookingRequest:
    values = {
        'professional_id': professional.id,
        'client_id': salon_client.id,
        'service_id': service.id,
        'date': MONDAY,
        'start_minute': 11 * 60,
        'duration': 30,
        'user_id': owner.id,
    }
    values.update(overrides)
    return BookingRequest(**values)


def test_store_commits_and_lists_appointment(db, professional, service, salon_client, owner) -> None:
    store = AppointmentStore(db)

    result = book_appointment(store, _store_request(professional, service, salon_client, owner, notes='First visit'))

    assert result.committed
    saved = db.get(Appointment, result.appointment_id)
    assert saved.start_minute == 660
    assert saved.notes == 'First visit'
    assert store.get_appointments(professional.id, MONDAY) == [(660, 30)]


def test_store_rejects_overlap_and_keeps_first_appointment(db, professional, service, salon_client, owner) -> None:
    store = AppointmentStore(db)
    first = book_appointment(store, _store_request(professional, service, salon_client, owner, duration=45))

    second = book_appointment(
        store,
        _store_request(professional, service, salon_client, owner, start_minute=11 * 60 + 15),
    )

    assert first.committed
    assert second.outcome is BookingOutcome.SLOT_UNAVAILABLE
    assert db.query(Appointment).count() == 1


def test_store_accepts_adjacent_appointments(db, professional, service, salon_client, owner) -> None:
    store = AppointmentStore(db)

    first = book_appointment(store, _store_request(professional, service, salon_client, owner, start_minute=600, duration=45))
    second = book_appointment(store, _store_request(professional, service, salon_client, owner, start_minute=645))
    third = book_appointment(store, _store_request(professional, service, salon_client, owner, start_minute=570))

    assert [first.outcome, second.outcome, third.outcome] == [BookingOutcome.COMMITTED] * 3
    assert store.get_appointments(professional.id, MONDAY) == [(570, 30), (600, 45), (645, 30)]


def test_store_allows_same_time_on_another_day(db, professional, service, salon_client, owner) -> None:
    store = AppointmentStore(db)

    monday = book_appointment(store, _store_request(professional, service, salon_client, owner))
    tuesday = book_appointment(store, _store_request(professional, service, salon_client, owner, date=date(2026, 1, 6)))

    assert monday.committed
    assert tuesday.committed


def test_store_reports_unknown_client_as_booking_failed(db, professional, service, owner) -> None:
    store = AppointmentStore(db)
    request = BookingRequest(
        professional_id=professional.id,
        client_id=9999,
        service_id=service.id,
        date=MONDAY,
        start_minute=600,
        duration=30,
        user_id=owner.id,
    )

    result = book_appointment(store, request)

    assert result.outcome is BookingOutcome.BOOKING_FAILED
    assert store.get_appointments(professional.id, MONDAY) == []


@pytest.mark.parametrize('second_start', [11 * 60, 11 * 60 + 15])
def test_concurrent_overlapping_bookings_commit_exactly_once(
    db,
    session_factory,
    professional,
    service,
    salon_client,
    owner,
    second_start: int,
) -> None:
    requests = [
        _store_request(professional, service, salon_client, owner),
        _store_request(professional, service, salon_client, owner, start_minute=second_start),
    ]
    # Release the fixture session's write transaction before racing.
    db.rollback()

    barrier = threading.Barrier(len(requests))
    results = []
    errors = []

    def attempt(request: BookingRequest) -> None:
        session = session_factory()
        try:
            barrier.wait(timeout=10)
            results.append(book_appointment(AppointmentStore(session), request))
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=attempt, args=(request,)) for request in requests]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert errors == []
    assert sorted(result.outcome.value for result in results) == ['committed', 'slot_unavailable']
    assert db.query(Appointment).filter(Appointment.professional_id == professional.id).count() == 1


def test_get_working_hours_raises_for_unknown_professional(db) -> None:
    with pytest.raises(ProfessionalNotFoundError):
        AppointmentStore(db).get_working_hours(12345)


@pytest.mark.parametrize(
    ('error', 'outcome', 'message'),
    [
        (None, BookingOutcome.COMMITTED, None),
        (AppointmentConflictError('overlap'), BookingOutcome.SLOT_UNAVAILABLE, SLOT_UNAVAILABLE_MESSAGE),
        (StoreError('connection refused'), BookingOutcome.BOOKING_FAILED, BOOKING_FAILED_MESSAGE),
    ],
)
def test_reschedule_appointment_maps_store_outcomes(error, outcome, message) -> None:
    store = FakeStore(error=error)

    result = reschedule_appointment(store, 12, make_request(start_minute=900))

    assert result.outcome is outcome
    assert result.message == message
    assert store.requests[0][0] == 12
    assert (result.appointment_id == 12) is (outcome is BookingOutcome.COMMITTED)
