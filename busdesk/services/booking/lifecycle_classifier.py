# busdesk/services/booking/lifecycle_classifier.py
"""
Lifecycle classifier.

An active booking stays visible until the morning after its journey, at the
configured cutoff, in the operator's timezone.
"""

from datetime import datetime, time
from typing import Callable, Iterable, List, Optional
import logging

from busdesk.schemas.booking.booking_base import Booking
from busdesk.schemas.common.enums import Stage
from busdesk.utils.date_utils import expiry_moment, now_in

logger = logging.getLogger(__name__)


class LifecycleClassifier:
    """Hides expired active bookings; other stages pass through untouched."""

    def __init__(
        self,
        tz_name: str,
        cutoff: time = time(5, 30),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.tz_name = tz_name
        self.cutoff = cutoff
        self._clock = clock or (lambda: now_in(tz_name))

    def is_expired(self, booking: Booking) -> bool:
        # Unparseable dates never hide a record
        if booking.journey_date is None:
            return False
        return self._clock() > expiry_moment(booking.journey_date, self.cutoff, self.tz_name)

    def classify(self, bookings: Iterable[Booking], stage: Stage) -> List[Booking]:
        """
        Visible subset of one stage's bookings.

        Args:
            bookings: Normalized bookings of the stage
            stage: The stage they belong to

        Returns:
            The bookings that should be shown, order preserved
        """
        bookings = list(bookings)
        if stage != Stage.ACTIVE:
            return bookings

        visible = [booking for booking in bookings if not self.is_expired(booking)]
        hidden = len(bookings) - len(visible)
        if hidden:
            logger.info(
                f"Hid {hidden} expired active bookings",
                extra={"stage": stage.value},
            )
        return visible
