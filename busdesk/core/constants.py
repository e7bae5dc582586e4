# busdesk/core/constants.py
from __future__ import annotations

"""
Core engine constants.

These values centralize the fixed parts of the remote store protocol and
the defaults the settings fall back to:
- Remote command names and stage table names.
- The alias table used to read externally-sourced records.
- Default bus service price table.
"""

from typing import Dict, Tuple

# Remote store commands
METHOD_GET_ALL: str = "getAll"
METHOD_SEARCH: str = "search"
METHOD_ADD: str = "add"
METHOD_UPDATE: str = "update"
METHOD_DELETE: str = "delete"
METHOD_CLEAR_ARCHIVE: str = "clearArchive"
METHOD_AUTO_ARCHIVE: str = "autoArchive"

# Stage name -> remote table name
REMOTE_STAGE_TYPES: Dict[str, str] = {
    "pending": "pending",
    "active": "active",
    "archived": "archive",
}

# The remote tables have a header row; data rows start at 2
FIRST_DATA_ROW: int = 2

# Ordered aliases per canonical attribute; first present, non-empty wins
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "id": ("Booking ID", "Booking Id", "bookingId", "id"),
    "row_index": ("rowIndex", "row"),
    "name": ("Name", "name"),
    "phone": ("Phone", "phone"),
    "bus_service": ("Bus", "bus"),
    "journey_date": ("Date", "dateFormatted", "date"),
    "departure_time": ("Time", "time"),
    "pickup": ("Pickup", "pickup"),
    "destination": ("Destination", "destination"),
    "male_seats": ("Male Seat", "maleSeats"),
    "female_seats": ("Female Seat", "femaleSeats"),
    "total_amount": ("Total", "totalAmount", "estimatedTotal", "total"),
    "payment_status": ("Payment", "payment"),
    "booking_status": ("Status", "status"),
    "conductor": ("Conductor", "conductor"),
}

# Date format the remote store expects on writes
REMOTE_DATE_FORMAT: str = "%m/%d/%Y"
DISPLAY_DATE_FORMAT: str = "%Y/%m/%d"

# Customer form limits
MAX_SEATS_PER_GROUP: int = 10

DEFAULT_BUS_SERVICES: Dict[str, Dict[str, object]] = {
    "Sakeer Express": {"price": 2700, "time": "9:00 PM"},
    "RS Express": {"price": 2900, "time": "9:00 PM"},
    "Myown Express": {"price": 2700, "time": "8:45 PM"},
    "Al Ahla": {"price": 2800, "time": "8:30 PM"},
    "Al Rashith": {"price": 2700, "time": "8:00 PM"},
    "Star Travels": {"price": 1600, "time": "9:30 PM"},
    "Lloyds Travels": {"price": 2700, "time": "9:00 PM"},
    "Super Line": {"price": 2800, "time": "9:00 PM"},
    "RN Express": {"price": 2500, "time": "8:30 PM"},
    "Anaaf Travels": {"price": 2700, "time": "9:00 PM"},
}
