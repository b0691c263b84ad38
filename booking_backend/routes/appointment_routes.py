from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from booking_backend.auth.dependencies import get_current_admin
from booking_backend.booking.engine import BookingEngine
from booking_backend.booking.patch import AppointmentPatch
from booking_backend.database import get_db
from booking_backend.models.appointment import AppointmentStatus

router = APIRouter(tags=['appointments'], dependencies=[Depends(get_current_admin)])

MAX_APPOINTMENT_NOTES_LENGTH = 600


def normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class CreateAppointmentRequest(BaseModel):
    customer_id: int
    scheduled_at: datetime
    notes: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return normalize_notes(value)


class UpdateAppointmentRequest(BaseModel):
    customer_id: int | None = None
    scheduled_at: datetime | None = None
    notes: str | None = None
    status: AppointmentStatus | None = None

    class Config:
        extra = 'forbid'

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return normalize_notes(value)

    def to_patch(self) -> AppointmentPatch:
        return AppointmentPatch.from_mapping(self.model_dump(exclude_unset=True))


class CustomerSummaryResponse(BaseModel):
    id: int
    name: str
    phone_number: str
    email: str

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: int
    customer_id: int
    customer: CustomerSummaryResponse | None = None
    scheduled_at: datetime
    notes: str | None = None
    status: AppointmentStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class SlotAvailabilityResponse(BaseModel):
    scheduled_at: datetime
    available: bool


def get_booking_engine(db: Session = Depends(get_db)) -> BookingEngine:
    return BookingEngine(db)


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, engine: BookingEngine = Depends(get_booking_engine)):
    return engine.create(data.customer_id, data.scheduled_at, data.notes)


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(engine: BookingEngine = Depends(get_booking_engine)):
    return engine.list_all()


@router.get('/availability', response_model=SlotAvailabilityResponse)
def check_availability(
    scheduled_at: datetime = Query(...),
    engine: BookingEngine = Depends(get_booking_engine),
):
    return SlotAvailabilityResponse(scheduled_at=scheduled_at, available=engine.is_slot_available(scheduled_at))


@router.get('/range', response_model=list[AppointmentResponse])
def list_appointments_in_range(
    start: datetime = Query(...),
    end: datetime = Query(...),
    engine: BookingEngine = Depends(get_booking_engine),
):
    if end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Range end must not be before range start.',
        )
    return engine.list_in_range(start, end)


@router.get('/customer/{customer_id}', response_model=list[AppointmentResponse])
def list_customer_appointments(customer_id: int, engine: BookingEngine = Depends(get_booking_engine)):
    return engine.list_by_customer(customer_id)


@router.get('/status/{appointment_status}', response_model=list[AppointmentResponse])
def list_appointments_by_status(
    appointment_status: AppointmentStatus,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.list_by_status(appointment_status)


@router.get('/date/{day}', response_model=list[AppointmentResponse])
def list_appointments_by_date(day: date, engine: BookingEngine = Depends(get_booking_engine)):
    return engine.list_by_date(day)


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, engine: BookingEngine = Depends(get_booking_engine)):
    appointment = engine.get_by_id(appointment_id)
    if appointment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found',
        )
    return appointment


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.update(appointment_id, data.to_patch())


@router.put('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(appointment_id: int, engine: BookingEngine = Depends(get_booking_engine)):
    return engine.cancel(appointment_id)


@router.put('/{appointment_id}/complete', response_model=AppointmentResponse)
def complete_appointment(appointment_id: int, engine: BookingEngine = Depends(get_booking_engine)):
    return engine.complete(appointment_id)
