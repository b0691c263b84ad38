"""Booking engine - the only writer of appointment state.

Guarantees that at most one SCHEDULED appointment exists for any instant and
that status changes follow the state machine in ``booking.state``. The
check-then-write sequences run while holding a process-wide lock keyed by the
slot; the partial unique index on ``appointments.scheduled_at`` catches any
writer outside this process.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from booking_backend.booking.customers import CustomerDirectory
from booking_backend.booking.errors import ConflictError, InvalidArgumentError, NotFoundError
from booking_backend.booking.locks import KeyedLock
from booking_backend.booking.patch import AppointmentPatch
from booking_backend.booking.state import INITIAL_STATUS, ensure_can_cancel, ensure_can_complete, ensure_transition
from booking_backend.booking.store import SLOT_TAKEN_MESSAGE, AppointmentStore
from booking_backend.models.appointment import Appointment, AppointmentStatus, utc_now

logger = logging.getLogger(__name__)

_booking_locks = KeyedLock()


def normalize_timestamp(value: datetime) -> datetime:
    """Store instants as naive UTC. Naive input is taken to be UTC already."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _slot_key(scheduled_at: datetime) -> tuple[str, datetime]:
    return ('slot', scheduled_at)


def _appointment_key(appointment_id: int) -> tuple[str, int]:
    return ('appointment', appointment_id)


class BookingEngine:
    def __init__(
        self,
        db: Session,
        store: Optional[AppointmentStore] = None,
        customers: Optional[CustomerDirectory] = None,
        clock: Callable[[], datetime] = utc_now,
        locks: Optional[KeyedLock] = None,
    ):
        self.store = store or AppointmentStore(db)
        self.customers = customers or CustomerDirectory(db)
        self.clock = clock
        self.locks = locks or _booking_locks

    # Mutations

    def create(self, customer_id: int, scheduled_at: datetime, notes: Optional[str] = None) -> Appointment:
        scheduled_at = normalize_timestamp(scheduled_at)
        self._ensure_future(scheduled_at)
        self._ensure_customer(customer_id)

        with self.locks.hold(_slot_key(scheduled_at)):
            if not self.is_slot_available(scheduled_at):
                logger.warning('Rejected booking for customer %s: slot %s is taken', customer_id, scheduled_at)
                raise ConflictError(SLOT_TAKEN_MESSAGE)

            appointment = self.store.insert(
                Appointment(
                    customer_id=customer_id,
                    scheduled_at=scheduled_at,
                    notes=notes,
                    status=INITIAL_STATUS,
                )
            )

        logger.info('Created appointment %s for customer %s at %s', appointment.id, customer_id, scheduled_at)
        return appointment

    def update(self, appointment_id: int, patch: AppointmentPatch) -> Appointment:
        if patch.is_empty():
            return self._get_or_raise(appointment_id)

        with self.locks.hold(_appointment_key(appointment_id)):
            appointment = self._get_or_raise(appointment_id)
            changes = {}

            if patch.is_set('customer_id'):
                if patch.customer_id is None:
                    raise InvalidArgumentError('customer_id cannot be null')
                self._ensure_customer(patch.customer_id)
                changes['customer_id'] = patch.customer_id

            new_scheduled_at = None
            if patch.is_set('scheduled_at'):
                if patch.scheduled_at is None:
                    raise InvalidArgumentError('scheduled_at cannot be null')
                candidate = normalize_timestamp(patch.scheduled_at)
                if candidate != appointment.scheduled_at:
                    self._ensure_future(candidate)
                    new_scheduled_at = candidate

            if patch.is_set('notes'):
                changes['notes'] = patch.notes

            if patch.is_set('status'):
                if patch.status is None:
                    raise InvalidArgumentError('status cannot be null')
                try:
                    target = AppointmentStatus(patch.status)
                except ValueError as exc:
                    raise InvalidArgumentError(f'Unknown appointment status: {patch.status!r}') from exc
                if target != appointment.status:
                    ensure_transition(appointment.status, target)
                    changes['status'] = target

            if new_scheduled_at is None:
                return self._apply(appointment, changes)

            with self.locks.hold(_slot_key(new_scheduled_at)):
                if self.store.find_scheduled_at(new_scheduled_at, exclude_id=appointment.id) is not None:
                    logger.warning(
                        'Rejected reschedule of appointment %s: slot %s is taken',
                        appointment.id,
                        new_scheduled_at,
                    )
                    raise ConflictError(SLOT_TAKEN_MESSAGE)
                changes['scheduled_at'] = new_scheduled_at
                return self._apply(appointment, changes)

    def cancel(self, appointment_id: int) -> Appointment:
        with self.locks.hold(_appointment_key(appointment_id)):
            appointment = self._get_or_raise(appointment_id)
            ensure_can_cancel(appointment.status)
            appointment.status = AppointmentStatus.CANCELLED
            appointment = self.store.update(appointment)

        logger.info('Cancelled appointment %s', appointment_id)
        return appointment

    def complete(self, appointment_id: int) -> Appointment:
        with self.locks.hold(_appointment_key(appointment_id)):
            appointment = self._get_or_raise(appointment_id)
            ensure_can_complete(appointment.status)
            appointment.status = AppointmentStatus.COMPLETED
            appointment = self.store.update(appointment)

        logger.info('Completed appointment %s', appointment_id)
        return appointment

    # Queries

    def is_slot_available(self, scheduled_at: datetime) -> bool:
        return self.store.find_scheduled_at(normalize_timestamp(scheduled_at)) is None

    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        return self.store.find_by_id(appointment_id)

    def list_all(self) -> list[Appointment]:
        return self.store.find_all()

    def list_by_customer(self, customer_id: int) -> list[Appointment]:
        return self.store.find_by_customer(customer_id)

    def list_by_status(self, status: AppointmentStatus) -> list[Appointment]:
        return self.store.find_by_status(status)

    def list_by_date(self, day: date) -> list[Appointment]:
        start_of_day = datetime.combine(day, time.min)
        return self.store.find_scheduled_in_range(start_of_day, start_of_day + timedelta(days=1))

    def list_in_range(self, start: datetime, end: datetime) -> list[Appointment]:
        return self.store.find_scheduled_in_range(normalize_timestamp(start), normalize_timestamp(end))

    # Helpers

    def _get_or_raise(self, appointment_id: int) -> Appointment:
        appointment = self.store.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError('Appointment not found')
        return appointment

    def _ensure_customer(self, customer_id: int) -> None:
        if not self.customers.exists(customer_id):
            raise NotFoundError('Customer not found')

    def _ensure_future(self, scheduled_at: datetime) -> None:
        if scheduled_at <= self.clock():
            raise InvalidArgumentError('Appointment date must be in the future')

    def _apply(self, appointment: Appointment, changes: dict) -> Appointment:
        changes = {name: value for name, value in changes.items() if getattr(appointment, name) != value}
        if not changes:
            return appointment

        for name, value in changes.items():
            setattr(appointment, name, value)
        appointment = self.store.update(appointment)

        logger.info('Updated appointment %s: %s', appointment.id, ', '.join(sorted(changes)))
        return appointment
