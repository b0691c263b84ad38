"""Administrator model definitions."""

from sqlalchemy import Column, Integer, String
from booking_backend.database import Base


class Admin(Base):
    """Represents an administrator allowed to manage bookings."""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
