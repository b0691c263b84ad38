from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_backend.auth.dependencies import get_current_admin
from booking_backend.booking.customers import CustomerDirectory
from booking_backend.database import get_db
from booking_backend.models.customer import Customer

router = APIRouter(tags=['customers'], dependencies=[Depends(get_current_admin)])


class CreateCustomerRequest(BaseModel):
    name: str
    phone_number: str
    email: str

    @field_validator('name', 'phone_number')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Email is required.')
        local, _, domain = normalized.partition('@')
        if not local or '.' not in domain:
            raise ValueError('Email must be valid.')
        return normalized


class CustomerResponse(BaseModel):
    id: int
    name: str
    phone_number: str
    email: str

    class Config:
        from_attributes = True


def email_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail='Email already exists',
    )


@router.post('', response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(data: CreateCustomerRequest, db: Session = Depends(get_db)):
    if db.query(Customer).filter(Customer.email == data.email).first():
        raise email_taken()

    customer = Customer(name=data.name, phone_number=data.phone_number, email=data.email)
    db.add(customer)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise email_taken() from exc
    db.refresh(customer)

    return customer


@router.get('', response_model=list[CustomerResponse])
def list_customers(db: Session = Depends(get_db)):
    return db.query(Customer).order_by(Customer.id.asc()).all()


@router.get('/{customer_id}', response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = CustomerDirectory(db).get(customer_id)
    if customer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Customer not found',
        )
    return customer
