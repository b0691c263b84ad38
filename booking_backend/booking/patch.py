"""Partial update values for appointments.

A field that was not supplied is ``UNSET``; ``None`` is a real value and
means "clear" where the field allows it.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

from booking_backend.models.appointment import AppointmentStatus


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNSET'

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class AppointmentPatch:
    customer_id: int | None = UNSET
    scheduled_at: datetime | None = UNSET
    notes: str | None = UNSET
    status: AppointmentStatus | None = UNSET

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> 'AppointmentPatch':
        known = {field.name for field in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f'Unknown appointment fields: {", ".join(sorted(unknown))}')
        return cls(**values)

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    def present_fields(self) -> dict[str, Any]:
        return {
            field.name: getattr(self, field.name)
            for field in fields(self)
            if self.is_set(field.name)
        }

    def is_empty(self) -> bool:
        return not self.present_fields()
