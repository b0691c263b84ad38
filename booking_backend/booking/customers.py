from typing import Optional

from sqlalchemy.orm import Session

from booking_backend.models.customer import Customer


class CustomerDirectory:
    """Resolves customer identifiers for the booking engine."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, customer_id: int) -> Optional[Customer]:
        return self.db.get(Customer, customer_id)

    def exists(self, customer_id: int) -> bool:
        return self.get(customer_id) is not None
