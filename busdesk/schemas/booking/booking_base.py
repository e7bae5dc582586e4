"""
Canonical booking schema.

Every record the engine holds, whatever shape the remote store delivered
it in, is a `Booking`. Display formats are derived, never stored.
"""

from datetime import date as Date
from decimal import Decimal
from typing import Optional

from pydantic import Field, computed_field

from busdesk.schemas.common.base import BaseSchema
from busdesk.schemas.common.enums import BookingStatus, PaymentStatus, Stage
from busdesk.utils.date_utils import format_display_date
from busdesk.utils.string_utils import count_seat_entries

__all__ = [
    "Booking",
]


class Booking(BaseSchema):
    """
    Canonical booking record.

    `male_seats` / `female_seats` hold a requested count before seat
    assignment and a comma separated seat list afterwards.
    """

    id: str = Field(
        "",
        description="Booking reference assigned by the remote store; empty until assigned",
    )
    row_index: Optional[int] = Field(
        None,
        description="Row of the record in its remote stage table",
    )

    name: str = ""
    phone: str = ""
    bus_service: str = Field("", description="Key into the bus service table")

    journey_date: Optional[Date] = Field(
        None,
        description="Calendar date of travel; None when the source was unparseable",
    )
    journey_date_raw: str = Field("", description="Date text as received")
    departure_time: str = Field("", description="Departure time as 'HH.MM AM/PM'")

    pickup: str = ""
    destination: str = ""

    male_seats: str = ""
    female_seats: str = ""

    total_amount: Decimal = Field(Decimal("0"), ge=0)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    booking_status: BookingStatus = BookingStatus.PENDING

    stage: Stage = Field(
        Stage.PENDING,
        description="Set by the reconciliation store when the record is placed",
    )
    conductor: Optional[str] = None

    @computed_field  # type: ignore[misc]
    @property
    def journey_date_display(self) -> str:
        return format_display_date(self.journey_date, self.journey_date_raw)

    @property
    def key(self) -> str:
        """Identity used for matching and in-flight tracking."""
        if self.id:
            return self.id
        if self.row_index is not None:
            return f"row:{self.row_index}"
        return ""

    @property
    def has_reference(self) -> bool:
        return bool(self.id) or self.row_index is not None

    @property
    def seat_count(self) -> int:
        return count_seat_entries(self.male_seats) + count_seat_entries(self.female_seats)

    def __str__(self) -> str:
        return f"Booking({self.key or 'unassigned'}, {self.stage.value}, {self.name})"
