from datetime import date
from decimal import Decimal

import pytest

from busdesk.schemas.common.enums import BookingStatus, PaymentStatus, Stage
from busdesk.services.booking.record_normalizer import (
    RecordNormalizer,
    parse_booking_status,
    parse_payment_status,
    resolve_field,
)


@pytest.fixture
def normalizer():
    return RecordNormalizer("Asia/Colombo")


def test_sheet_labels_normalize_to_canonical_booking(normalizer):
    booking = normalizer.normalize({"Date": "2025-03-05", "Time": "9:00 PM"}, Stage.ACTIVE, 0)

    assert booking.journey_date == date(2025, 3, 5)
    assert booking.departure_time == "09.00 PM"
    assert booking.journey_date_display == "2025/03/05"
    assert booking.stage == Stage.ACTIVE


def test_camel_case_keys_resolve_through_aliases(normalizer):
    booking = normalizer.normalize(
        {
            "bookingId": "BK-0042",
            "name": "Rizwan",
            "phone": "0777000111",
            "bus": "Star Travels",
            "dateFormatted": "03/20/2025",
            "time": "21:30",
            "maleSeats": "A1,A2",
            "femaleSeats": "B1",
            "totalAmount": 4800,
            "payment": "Paid",
            "status": "Confirmed",
        },
        Stage.ACTIVE,
        3,
    )

    assert booking.id == "BK-0042"
    assert booking.bus_service == "Star Travels"
    assert booking.journey_date == date(2025, 3, 20)
    assert booking.departure_time == "09.30 PM"
    assert booking.seat_count == 3
    assert booking.total_amount == Decimal("4800")
    assert booking.payment_status == PaymentStatus.PAID
    assert booking.booking_status == BookingStatus.CONFIRMED
    assert booking.row_index == 5


def test_first_non_empty_alias_wins():
    assert resolve_field({"Name": "  ", "name": "Fathima"}, "name") == "Fathima"
    assert resolve_field({"Booking ID": "BK-1", "id": "other"}, "id") == "BK-1"
    assert resolve_field({}, "name") is None


def test_missing_fields_degrade_to_defaults(normalizer):
    booking = normalizer.normalize({}, Stage.PENDING, 0)

    assert booking.id == ""
    assert booking.row_index == 2
    assert booking.journey_date is None
    assert booking.journey_date_display == "-"
    assert booking.total_amount == Decimal("0")
    assert booking.booking_status == BookingStatus.PENDING
    assert booking.seat_count == 0


def test_explicit_row_index_overrides_position(normalizer):
    booking = normalizer.normalize({"rowIndex": 17}, Stage.PENDING, 0)
    assert booking.row_index == 17


def test_unparseable_date_keeps_raw_text(normalizer):
    booking = normalizer.normalize({"Date": "TBD-later"}, Stage.ACTIVE, 0)

    assert booking.journey_date is None
    assert booking.journey_date_raw == "TBD-later"
    assert booking.journey_date_display == "TBD/later"


def test_grouped_totals_are_parsed(normalizer):
    booking = normalizer.normalize({"Total": "5,400"}, Stage.ACTIVE, 0)
    assert booking.total_amount == Decimal("5400")


def test_normalization_is_idempotent(normalizer, make_record):
    first = normalizer.normalize(make_record("BK-7"), Stage.PENDING, 0)
    again = normalizer.normalize(
        {
            "Booking ID": first.id,
            "rowIndex": first.row_index,
            "Date": first.journey_date.isoformat(),
            "Time": first.departure_time,
            "Total": str(first.total_amount),
        },
        Stage.PENDING,
    )

    assert again.journey_date == first.journey_date
    assert again.departure_time == first.departure_time
    assert again.total_amount == first.total_amount
    assert again.row_index == first.row_index


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Confirmed", BookingStatus.CONFIRMED),
        ("confirmed ", BookingStatus.CONFIRMED),
        ("Cancelled", BookingStatus.CANCELLED),
        ("Pending", BookingStatus.PENDING),
        (None, BookingStatus.PENDING),
    ],
)
def test_booking_status_parsing(raw, expected):
    assert parse_booking_status(raw) == expected


def test_payment_status_parsing():
    assert parse_payment_status("PAID") == PaymentStatus.PAID
    assert parse_payment_status("") == PaymentStatus.PENDING


def test_remote_fields_use_store_formats(normalizer, make_record):
    booking = normalizer.normalize(make_record("BK-1", total="5,400.00"), Stage.PENDING, 0)

    fields = normalizer.to_remote_fields(booking)

    assert fields == {
        "name": "Ayesha Fernando",
        "phone": "0771234567",
        "bus": "Sakeer Express",
        "time": "09.00 PM",
        "date": "03/15/2025",
        "pickup": "Colombo",
        "destination": "Kattankudy",
        "maleSeats": "2",
        "femaleSeats": "",
        "payment": "Pending",
        "total": "5400",
        "status": "Pending",
    }
