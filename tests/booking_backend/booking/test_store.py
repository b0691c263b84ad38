from datetime import timedelta

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from booking_backend.booking.errors import ConflictError
from booking_backend.booking.store import AppointmentStore, is_slot_violation
from booking_backend.database import ensure_appointment_schema
from booking_backend.models.appointment import Appointment, AppointmentStatus


def make_appointment(customer, scheduled_at, status=AppointmentStatus.SCHEDULED) -> Appointment:
    return Appointment(customer_id=customer.id, scheduled_at=scheduled_at, status=status)


def test_insert_assigns_identifier(db, customer, slot) -> None:
    store = AppointmentStore(db)

    appointment = store.insert(make_appointment(customer, slot))

    assert appointment.id is not None
    assert store.find_by_id(appointment.id) is appointment
    assert appointment.created_at is not None


def test_slot_index_rejects_raw_double_booking(db, customer, other_customer, slot) -> None:
    store = AppointmentStore(db)
    store.insert(make_appointment(customer, slot))

    with pytest.raises(ConflictError):
        store.insert(make_appointment(other_customer, slot))

    assert db.query(Appointment).count() == 1


def test_other_integrity_errors_are_not_reported_as_slot_conflicts(db, customer, slot) -> None:
    store = AppointmentStore(db)

    with pytest.raises(IntegrityError, match='NOT NULL'):
        store.insert(Appointment(customer_id=None, scheduled_at=slot, status=AppointmentStatus.SCHEDULED))

    assert db.query(Appointment).count() == 0
    assert store.insert(make_appointment(customer, slot)).id is not None


@pytest.mark.parametrize(
    ('message', 'expected'),
    [
        ('UNIQUE constraint failed: appointments.scheduled_at', True),
        ('duplicate key value violates unique constraint "uq_appointments_scheduled_slot"', True),
        ('UNIQUE constraint failed: customers.email', False),
        ('NOT NULL constraint failed: appointments.customer_id', False),
    ],
)
def test_is_slot_violation_matches_only_the_slot_index(message: str, expected: bool) -> None:
    exc = IntegrityError('INSERT INTO appointments ...', {}, Exception(message))

    assert is_slot_violation(exc) is expected


def test_slot_index_only_covers_scheduled_rows(db, customer, other_customer, slot) -> None:
    store = AppointmentStore(db)
    store.insert(make_appointment(customer, slot, AppointmentStatus.CANCELLED))
    store.insert(make_appointment(customer, slot, AppointmentStatus.COMPLETED))

    scheduled = store.insert(make_appointment(other_customer, slot))

    assert store.find_scheduled_at(slot) is scheduled


def test_find_scheduled_at_can_exclude_an_appointment(db, customer, slot) -> None:
    store = AppointmentStore(db)
    appointment = store.insert(make_appointment(customer, slot))

    assert store.find_scheduled_at(slot, exclude_id=appointment.id) is None
    assert store.find_scheduled_at(slot + timedelta(minutes=15)) is None


def test_find_scheduled_in_range_skips_inactive_rows(db, customer, slot) -> None:
    store = AppointmentStore(db)
    cancelled = store.insert(make_appointment(customer, slot, AppointmentStatus.CANCELLED))
    second = store.insert(make_appointment(customer, slot + timedelta(hours=1)))
    first = store.insert(make_appointment(customer, slot))

    in_range = store.find_scheduled_in_range(slot, slot + timedelta(days=1))

    assert cancelled not in in_range
    assert in_range == [first, second]


def test_find_by_customer_and_status(db, customer, other_customer, slot) -> None:
    store = AppointmentStore(db)
    mine = store.insert(make_appointment(customer, slot))
    theirs = store.insert(make_appointment(other_customer, slot + timedelta(hours=1), AppointmentStatus.COMPLETED))

    assert store.find_by_customer(customer.id) == [mine]
    assert store.find_by_status(AppointmentStatus.COMPLETED) == [theirs]
    assert store.find_all() == [mine, theirs]


def test_ensure_appointment_schema_is_idempotent(db, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('booking_backend.database._appointment_schema_checked', False)
    bind = db.get_bind()

    ensure_appointment_schema(bind)
    monkeypatch.setattr('booking_backend.database._appointment_schema_checked', False)
    ensure_appointment_schema(bind)

    index_names = {index['name'] for index in inspect(bind).get_indexes('appointments')}
    assert 'uq_appointments_scheduled_slot' in index_names
