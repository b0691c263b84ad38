"""Appointment model definitions."""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from booking_backend.database import Base
from booking_backend.models.customer import Customer


def utc_now() -> datetime:
    """Current UTC time without tzinfo; every stored timestamp uses this form."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Appointment(Base):
    """Represents a booking of a single instant for a customer."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_scheduled_slot",
            "scheduled_at",
            unique=True,
            sqlite_where=text("status = 'SCHEDULED'"),
            postgresql_where=text("status = 'SCHEDULED'"),
        ),
        Index("idx_appointments_scheduled_at", "scheduled_at"),
        Index("idx_appointments_customer", "customer_id"),
    )

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    notes = Column(String, nullable=True)
    status = Column(
        Enum(AppointmentStatus, native_enum=False, length=16),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    customer = relationship(Customer, lazy="joined")
