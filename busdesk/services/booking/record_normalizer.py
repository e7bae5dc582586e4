# busdesk/services/booking/record_normalizer.py
"""
Record normalizer.

Maps raw records from the remote store, whose keys may be sheet labels
("Booking ID", "Male Seat") or camelCase identifiers ("maleSeats"), onto the
canonical `Booking`. Missing or unparseable values degrade to defaults;
nothing here raises on bad input.
"""

from typing import Any, Dict, Mapping, Optional
import logging

from busdesk.core.constants import FIELD_ALIASES, FIRST_DATA_ROW
from busdesk.schemas.booking.booking_base import Booking
from busdesk.schemas.common.enums import BookingStatus, PaymentStatus, Stage
from busdesk.utils.date_utils import format_remote_date, normalize_time, parse_calendar_date
from busdesk.utils.string_utils import format_amount, parse_amount

logger = logging.getLogger(__name__)


def resolve_field(record: Mapping[str, Any], attribute: str) -> Any:
    """First present, non-empty alias value for a canonical attribute, else None."""
    for alias in FIELD_ALIASES[attribute]:
        value = record.get(alias)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def parse_booking_status(value: Any) -> BookingStatus:
    text = str(value or "").lower()
    if "confirmed" in text:
        return BookingStatus.CONFIRMED
    if "cancel" in text:
        return BookingStatus.CANCELLED
    return BookingStatus.PENDING


def parse_payment_status(value: Any) -> PaymentStatus:
    return PaymentStatus.PAID if "paid" in str(value or "").lower() else PaymentStatus.PENDING


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _row_index(value: Any) -> Optional[int]:
    try:
        row = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return row if row > 0 else None


class RecordNormalizer:
    """
    Service turning raw remote records into canonical bookings.

    Responsibilities:
    - Resolve each attribute through its ordered alias list
    - Normalize dates, times, amounts and status values
    - Assign positional row handles when the store omits them
    - Render a booking back into the store's lowercase write fields
    """

    def __init__(self, tz_name: str = "UTC"):
        self.tz_name = tz_name

    # ==================== READ PATH ====================

    def normalize(
        self,
        record: Mapping[str, Any],
        stage: Stage,
        position: Optional[int] = None,
    ) -> Booking:
        """
        Normalize one raw record.

        Args:
            record: Raw mapping as delivered by the store
            stage: Stage table the record came from
            position: Zero-based position within that table, used for the
                row handle when the record has none

        Returns:
            Canonical booking
        """
        row_index = _row_index(resolve_field(record, "row_index"))
        if row_index is None and position is not None:
            row_index = position + FIRST_DATA_ROW

        raw_date = resolve_field(record, "journey_date")
        conductor = resolve_field(record, "conductor")

        booking = Booking(
            id=_text(resolve_field(record, "id")),
            row_index=row_index,
            name=_text(resolve_field(record, "name")),
            phone=_text(resolve_field(record, "phone")),
            bus_service=_text(resolve_field(record, "bus_service")),
            journey_date=parse_calendar_date(raw_date, self.tz_name),
            journey_date_raw=_text(raw_date),
            departure_time=normalize_time(resolve_field(record, "departure_time"), self.tz_name),
            pickup=_text(resolve_field(record, "pickup")),
            destination=_text(resolve_field(record, "destination")),
            male_seats=_text(resolve_field(record, "male_seats")),
            female_seats=_text(resolve_field(record, "female_seats")),
            total_amount=parse_amount(resolve_field(record, "total_amount")),
            payment_status=parse_payment_status(resolve_field(record, "payment_status")),
            booking_status=parse_booking_status(resolve_field(record, "booking_status")),
            stage=stage,
            conductor=_text(conductor) or None,
        )

        if booking.journey_date is None and booking.journey_date_raw:
            logger.debug(
                f"Keeping raw journey date '{booking.journey_date_raw}'",
                extra={"booking_id": booking.id, "stage": stage.value},
            )
        return booking

    def normalize_many(self, records, stage: Stage) -> list:
        return [
            self.normalize(record, stage, position)
            for position, record in enumerate(records)
        ]

    # ==================== WRITE PATH ====================

    def to_remote_fields(self, booking: Booking) -> Dict[str, str]:
        """Lowercase field set the store expects on add/update."""
        return {
            "name": booking.name,
            "phone": booking.phone,
            "bus": booking.bus_service,
            "time": booking.departure_time,
            "date": format_remote_date(booking.journey_date, booking.journey_date_raw),
            "pickup": booking.pickup,
            "destination": booking.destination,
            "maleSeats": booking.male_seats,
            "femaleSeats": booking.female_seats,
            "payment": booking.payment_status.value,
            "total": format_amount(booking.total_amount),
            "status": booking.booking_status.value,
        }
