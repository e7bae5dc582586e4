"""
Enumerations shared across booking schemas.

Status values are the exact strings the remote store reads and writes.
"""

from enum import Enum

__all__ = [
    "Stage",
    "BookingStatus",
    "PaymentStatus",
]


class Stage(str, Enum):
    """Lifecycle bucket a booking currently occupies."""

    PENDING = "pending"
    ACTIVE = "active"
    ARCHIVED = "archived"


class BookingStatus(str, Enum):
    """Booking status enumeration."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    PENDING = "Pending"
    PAID = "Paid"
