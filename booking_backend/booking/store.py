"""Appointment store - database operations for appointments"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_backend.booking.errors import ConflictError
from booking_backend.models.appointment import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = 'Time slot is already booked. Please select another time.'

# PostgreSQL names the violated index; SQLite names the indexed column.
SLOT_INDEX_MARKERS = ('uq_appointments_scheduled_slot', 'UNIQUE constraint failed: appointments.scheduled_at')


def is_slot_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in SLOT_INDEX_MARKERS)


class AppointmentStore:
    """Durable collection of appointments backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        return self._commit(appointment)

    def update(self, appointment: Appointment) -> Appointment:
        return self._commit(appointment)

    def find_by_id(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.get(Appointment, appointment_id, populate_existing=True)

    def find_all(self) -> list[Appointment]:
        return self.db.query(Appointment).order_by(Appointment.scheduled_at.asc(), Appointment.id.asc()).all()

    def find_by_customer(self, customer_id: int) -> list[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.customer_id == customer_id)
            .order_by(Appointment.scheduled_at.asc(), Appointment.id.asc())
            .all()
        )

    def find_by_status(self, status: AppointmentStatus) -> list[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.status == status)
            .order_by(Appointment.scheduled_at.asc(), Appointment.id.asc())
            .all()
        )

    def find_scheduled_at(self, scheduled_at: datetime, exclude_id: Optional[int] = None) -> Optional[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.scheduled_at == scheduled_at,
            Appointment.status == AppointmentStatus.SCHEDULED,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.first()

    def find_scheduled_in_range(self, start: datetime, end: datetime) -> list[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < end,
                Appointment.status == AppointmentStatus.SCHEDULED,
            )
            .order_by(Appointment.scheduled_at.asc())
            .all()
        )

    def _commit(self, appointment: Appointment) -> Appointment:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if not is_slot_violation(exc):
                raise
            logger.warning('Slot index rejected a write for %s', appointment.scheduled_at)
            raise ConflictError(SLOT_TAKEN_MESSAGE) from exc
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(appointment)
        return appointment
