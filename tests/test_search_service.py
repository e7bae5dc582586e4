import asyncio

from busdesk.schemas.common.enums import BookingStatus, Stage
from busdesk.services.base import ErrorCode


def test_lookup_uses_last_nine_digits(service, fake_store, make_record):
    fake_store.search_payload = {"success": True, "booking": make_record("BK-0007")}

    result = asyncio.run(service.find_by_phone("+94 77 123 4567"))

    assert result.is_success
    assert result.data.id == "BK-0007"
    assert fake_store.reads == [{"phone": "771234567", "method": "search"}]


def test_first_of_all_bookings_without_success_flag(service, fake_store, make_record):
    fake_store.search_payload = {
        "allBookings": [
            make_record("BK-0009", status="Confirmed"),
            make_record("BK-0004"),
        ]
    }

    result = asyncio.run(service.find_by_phone("0771234567"))

    assert result.data.id == "BK-0009"
    assert result.data.booking_status == BookingStatus.CONFIRMED
    assert result.data.stage == Stage.ACTIVE


def test_pending_ticket_stays_pending(service, fake_store, make_record):
    fake_store.search_payload = {"booking": make_record("BK-0004")}

    result = asyncio.run(service.find_by_phone("0771234567"))

    assert result.data.stage == Stage.PENDING
    assert result.data.departure_time == "09.00 PM"


def test_no_match_is_not_found(service, fake_store):
    fake_store.search_payload = {"success": False, "allBookings": []}

    result = asyncio.run(service.find_by_phone("0771234567"))

    assert result.error.code == ErrorCode.NOT_FOUND
    assert "771234567" in result.message


def test_short_phone_is_rejected_without_request(service, fake_store):
    result = asyncio.run(service.find_by_phone("12-34"))

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.field == "phone"
    assert fake_store.requests == []


def test_unreachable_store_on_lookup(service, fake_store):
    fake_store.unreachable = True

    result = asyncio.run(service.find_by_phone("0771234567"))

    assert result.error.code == ErrorCode.EXTERNAL_SERVICE_ERROR
