"""Appointment status state machine."""

from booking_backend.booking.errors import FailedPreconditionError
from booking_backend.models.appointment import AppointmentStatus

INITIAL_STATUS = AppointmentStatus.SCHEDULED

# Completed -> Cancelled is allowed by current policy.
ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset({AppointmentStatus.CANCELLED}),
    AppointmentStatus.CANCELLED: frozenset(),
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_can_cancel(current: AppointmentStatus) -> None:
    if current == AppointmentStatus.CANCELLED:
        raise FailedPreconditionError('Appointment is already cancelled')


def ensure_can_complete(current: AppointmentStatus) -> None:
    if current == AppointmentStatus.COMPLETED:
        raise FailedPreconditionError('Appointment is already completed')
    if current == AppointmentStatus.CANCELLED:
        raise FailedPreconditionError('Cannot complete a cancelled appointment')


def ensure_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """Validate a status change requested through a patch."""
    if target == AppointmentStatus.CANCELLED:
        ensure_can_cancel(current)
    elif target == AppointmentStatus.COMPLETED:
        ensure_can_complete(current)

    if not can_transition(current, target):
        raise FailedPreconditionError(
            f'Cannot move appointment from {current.value} to {target.value}'
        )
