"""
Booking request schemas: new booking drafts and partial edits.
"""

from datetime import date as Date
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field, field_validator

from busdesk.schemas.common.base import BaseCreateSchema, BaseUpdateSchema
from busdesk.schemas.common.enums import BookingStatus, PaymentStatus

__all__ = [
    "BookingDraft",
    "BookingEdit",
]


def _seat_field(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class BookingDraft(BaseCreateSchema):
    """
    A booking about to be created.

    Customers submit seat counts ('2'); operators adding a booking directly
    type seat numbers ('A1,A2').
    """

    name: str = Field(..., min_length=1)
    phone: str = Field(..., description="Contact number in any format")
    bus_service: str
    journey_date: Date
    departure_time: Optional[str] = Field(
        None,
        description="Defaults to the bus service's usual departure time",
    )
    pickup: str = ""
    destination: str = ""
    male_seats: str = ""
    female_seats: str = ""
    total_amount: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Operator override; computed from the price table when omitted",
    )
    payment_status: Optional[PaymentStatus] = None
    conductor: Optional[str] = None

    @field_validator("male_seats", "female_seats", mode="before")
    @classmethod
    def coerce_seat_field(cls, v: Any) -> Any:
        return _seat_field(v)


class BookingEdit(BaseUpdateSchema):
    """Partial update of an existing booking; only set fields are applied."""

    name: Optional[str] = None
    phone: Optional[str] = None
    bus_service: Optional[str] = None
    journey_date: Optional[Date] = None
    departure_time: Optional[str] = None
    pickup: Optional[str] = None
    destination: Optional[str] = None
    male_seats: Optional[str] = None
    female_seats: Optional[str] = None
    total_amount: Optional[Decimal] = Field(None, ge=0)
    payment_status: Optional[PaymentStatus] = None
    booking_status: Optional[BookingStatus] = None
    conductor: Optional[str] = None

    @field_validator("male_seats", "female_seats", mode="before")
    @classmethod
    def coerce_seat_field(cls, v: Any) -> Any:
        return _seat_field(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
