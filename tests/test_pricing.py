from decimal import Decimal

import pytest

from busdesk.schemas.booking import Booking, load_bus_services
from busdesk.services.booking import PricingCalculator


@pytest.fixture
def pricing(settings):
    return PricingCalculator.from_settings(settings)


def test_quote_multiplies_price_by_seats(pricing):
    quote = pricing.quote("Sakeer Express", 2, 1)

    assert quote.total == Decimal("8100")
    assert quote.notice is None


def test_unknown_bus_quotes_zero_with_notice(pricing):
    quote = pricing.quote("Mystery Coach", 3, 0)

    assert quote.total == Decimal("0")
    assert "Mystery Coach" in quote.notice


def test_recalculate_counts_seat_lists(pricing):
    booking = Booking(bus_service="Star Travels", male_seats="A1,A2", female_seats="5")
    assert pricing.recalculate(booking).total == Decimal("4800")


def test_recalculate_is_idempotent(pricing):
    booking = Booking(bus_service="RS Express", male_seats="1,2,3", female_seats="")

    first = pricing.recalculate(booking)
    updated = booking.model_copy(update={"total_amount": first.total})

    assert pricing.recalculate(updated).total == first.total == Decimal("8700")


def test_default_time_from_price_table(pricing):
    assert pricing.default_time("Myown Express") == "8:45 PM"
    assert pricing.default_time("Mystery Coach") == ""


def test_price_table_from_custom_mapping():
    pricing = PricingCalculator(load_bus_services({"Night Rider": {"price": 1000, "time": "10:00 PM"}}))
    assert pricing.quote("Night Rider", 1, 1).total == Decimal("2000")
