"""Customer model definitions."""

from sqlalchemy import Column, Integer, String
from booking_backend.database import Base


class Customer(Base):
    """Represents a customer who can hold appointments."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    phone_number = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
