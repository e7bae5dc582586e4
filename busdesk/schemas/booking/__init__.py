from busdesk.schemas.booking.booking_base import Booking
from busdesk.schemas.booking.booking_request import BookingDraft, BookingEdit
from busdesk.schemas.booking.bus_service import BusService, load_bus_services

__all__ = [
    "Booking",
    "BookingDraft",
    "BookingEdit",
    "BusService",
    "load_bus_services",
]
