"""
Bus service reference schema.
"""

from typing import Any, Dict

from pydantic import Field

from busdesk.schemas.common.base import BaseSchema

__all__ = [
    "BusService",
    "load_bus_services",
]


class BusService(BaseSchema):
    """A bus operator with its per-seat price and usual departure time."""

    name: str
    price: int = Field(..., ge=0, description="Price per seat")
    default_time: str = Field("", description="Usual departure time, e.g. '9:00 PM'")


def load_bus_services(table: Dict[str, Dict[str, Any]]) -> Dict[str, BusService]:
    """Build the price table from settings' `BUS_SERVICES` mapping."""
    return {
        name: BusService(
            name=name,
            price=info.get("price", 0),
            default_time=info.get("time") or info.get("default_time") or "",
        )
        for name, info in table.items()
    }
