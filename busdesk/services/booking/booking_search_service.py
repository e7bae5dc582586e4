"""
Customer ticket lookup by phone number.

Phones are matched on their trailing digits only, so '+94 77 123 4567' and
'0771234567' find the same booking.
"""

from typing import Any, Dict, Optional
import logging

from busdesk.config.settings import Settings
from busdesk.integrations.remote_store import RemoteStoreClient
from busdesk.schemas.booking.booking_base import Booking
from busdesk.schemas.common.enums import BookingStatus, Stage
from busdesk.services.base import BaseService, ServiceResult
from busdesk.services.booking.record_normalizer import RecordNormalizer
from busdesk.utils.string_utils import digits_only, phone_match_key

logger = logging.getLogger(__name__)


class BookingSearchService(BaseService):
    """
    Phone-based booking lookup against the remote store.

    Features:
    - Format-tolerant phone matching
    - Accepts a single `booking` or an `allBookings` list in the answer
    - Distinct not-found result
    """

    def __init__(
        self,
        client: RemoteStoreClient,
        normalizer: RecordNormalizer,
        settings: Settings,
    ):
        super().__init__()
        self.client = client
        self.normalizer = normalizer
        self.settings = settings

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_phone(self, phone: str) -> Optional[str]:
        if len(digits_only(phone)) < self.settings.PHONE_MIN_DIGITS:
            return f"Please enter at least {self.settings.PHONE_MIN_DIGITS} digits of your phone number"
        return None

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @staticmethod
    def _pick_record(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        record = payload.get("booking")
        if isinstance(record, dict) and record:
            return record
        matches = payload.get("allBookings")
        if isinstance(matches, list):
            for candidate in matches:
                if isinstance(candidate, dict):
                    return candidate
        return None

    async def find_by_phone(self, phone: str) -> ServiceResult[Booking]:
        """
        Find the booking made with a phone number.

        Args:
            phone: Phone number in any format

        Returns:
            ServiceResult containing the normalized booking, or NOT_FOUND
        """
        validation_error = self._validate_phone(phone)
        if validation_error:
            return ServiceResult.validation_failure(validation_error, field="phone")

        phone_key = phone_match_key(phone, self.settings.PHONE_MATCH_DIGITS)
        try:
            self._logger.debug(f"Searching bookings for ...{phone_key}")
            payload = await self.client.search(phone_key)

            record = self._pick_record(payload)
            if record is None:
                self._logger.info(
                    f"No booking found for ...{phone_key}",
                    extra={"operation": "search"},
                )
                return ServiceResult.not_found("Booking", f"...{phone_key}")

            booking = self.normalizer.normalize(record, Stage.PENDING)
            if booking.booking_status == BookingStatus.CONFIRMED:
                booking = booking.model_copy(update={"stage": Stage.ACTIVE})

            return ServiceResult.success(booking, message="Booking found")

        except Exception as e:
            return self._handle_exception(e, "search bookings", f"...{phone_key}")
