# busdesk/services/booking/booking_pricing_service.py
"""
Booking pricing: per-seat price from the bus service table times seats.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional
import logging

from busdesk.config.settings import Settings
from busdesk.schemas.booking.booking_base import Booking
from busdesk.schemas.booking.bus_service import BusService, load_bus_services
from busdesk.utils.string_utils import count_seat_entries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceQuote:
    total: Decimal
    notice: Optional[str] = None


class PricingCalculator:
    """
    Service for booking price calculations.

    Responsibilities:
    - Quote a total from bus service and seat counts
    - Recompute a stored booking's total from its seat fields
    - Resolve a bus service's default departure time
    """

    def __init__(self, bus_services: Dict[str, BusService]):
        self.bus_services = bus_services

    @classmethod
    def from_settings(cls, settings: Settings) -> "PricingCalculator":
        return cls(load_bus_services(settings.BUS_SERVICES))

    # ==================== PRICE CALCULATION ====================

    def quote(self, bus_service: str, male_count: int, female_count: int) -> PriceQuote:
        """
        Price a number of seats on a bus service.

        Args:
            bus_service: Bus service name
            male_count: Seats in the male group
            female_count: Seats in the female group

        Returns:
            PriceQuote; an unknown service quotes 0 with a notice
        """
        service = self.bus_services.get(bus_service)
        if service is None:
            logger.info(f"No rate for bus service '{bus_service}'")
            return PriceQuote(
                total=Decimal("0"),
                notice=f"Bus service '{bus_service}' not found in the price list; total set to 0",
            )

        seats = max(male_count, 0) + max(female_count, 0)
        return PriceQuote(total=Decimal(service.price) * seats)

    def recalculate(self, booking: Booking) -> PriceQuote:
        """Total for a stored booking, counting seat fields as seat lists."""
        return self.quote(
            booking.bus_service,
            count_seat_entries(booking.male_seats),
            count_seat_entries(booking.female_seats),
        )

    def default_time(self, bus_service: str) -> str:
        service = self.bus_services.get(bus_service)
        return service.default_time if service else ""
