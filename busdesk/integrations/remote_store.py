"""
HTTP client for the spreadsheet-backed booking store.

Reads are JSON over GET. Writes are form-encoded POSTs whose response body
is never inspected; only transport failures are observable on that path.
"""

from typing import Any, Dict, List, Optional
import logging

import httpx

from busdesk.config.settings import Settings
from busdesk.core.constants import (
    METHOD_AUTO_ARCHIVE,
    METHOD_GET_ALL,
    METHOD_SEARCH,
    REMOTE_STAGE_TYPES,
)
from busdesk.core.exceptions import (
    ConfigurationError,
    ErrorCode,
    RemoteStoreError,
)
from busdesk.schemas.common.enums import Stage

logger = logging.getLogger(__name__)


class RemoteStoreClient:
    """Client for the remote booking store"""

    def __init__(
        self,
        base_url: Optional[str],
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url:
            raise ConfigurationError("REMOTE_STORE_URL")

        self.base_url = base_url
        # The store answers through a redirect to the script's content host
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RemoteStoreClient":
        return cls(
            settings.REMOTE_STORE_URL,
            timeout=settings.REMOTE_STORE_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "RemoteStoreClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def fetch_stage(self, stage: Stage) -> List[Dict[str, Any]]:
        """
        Fetch every raw record of one stage table.

        Args:
            stage: Stage whose table to read

        Returns:
            Raw record mappings in table order

        Raises:
            RemoteStoreError: transport failure, non-2xx status or a body
                that is not JSON
        """
        payload = await self._get_json(
            {"method": METHOD_GET_ALL, "type": REMOTE_STAGE_TYPES[stage.value]}
        )
        records = self._unwrap_bookings(payload)
        logger.debug(
            f"Fetched {len(records)} records",
            extra={"stage": stage.value},
        )
        return records

    async def search(self, phone_key: str) -> Dict[str, Any]:
        """Run the phone search command; returns the decoded response body."""
        payload = await self._get_json({"phone": phone_key, "method": METHOD_SEARCH})
        if not isinstance(payload, dict):
            raise RemoteStoreError(
                "Unexpected search response from the booking store",
                error_code=ErrorCode.MALFORMED_RESPONSE,
            )
        return payload

    async def trigger_auto_archive(self) -> None:
        """Ask the store to sweep expired active rows into the archive."""
        response = await self._request("GET", params={"method": METHOD_AUTO_ARCHIVE})
        logger.debug(f"Auto-archive sweep answered {response.status_code}")

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def send(self, method: str, fields: Optional[Dict[str, Any]] = None) -> None:
        """
        Send a write command.

        Args:
            method: Remote command name (add, update, delete, clearArchive)
            fields: Command fields; None values are dropped

        Raises:
            RemoteStoreError: the request could not be delivered
        """
        data = {"method": method}
        for name, value in (fields or {}).items():
            if value is None:
                continue
            data[name] = str(value)

        await self._request("POST", data=data)
        logger.info(
            f"Sent {method} command",
            extra={"operation": method, "booking_id": data.get("id")},
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _request(self, http_method: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(http_method, self.base_url, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"Booking store unreachable: {e}")
            raise RemoteStoreError(
                details={"method": http_method},
                error_code=ErrorCode.CONNECTION_ERROR,
            ) from e

    async def _get_json(self, params: Dict[str, str]) -> Any:
        response = await self._request("GET", params=params)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteStoreError(
                f"Booking store answered {response.status_code}",
                status_code=response.status_code,
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise RemoteStoreError(
                "Booking store returned a malformed response",
                error_code=ErrorCode.MALFORMED_RESPONSE,
                details={"params": params},
            ) from e

    @staticmethod
    def _unwrap_bookings(payload: Any) -> List[Dict[str, Any]]:
        """
        Accept both read envelopes:
        - {"bookings": [...]}
        - {"success": true, "bookings" | "allBookings": [...]}
        """
        if not isinstance(payload, dict):
            raise RemoteStoreError(
                "Booking store returned a malformed response",
                error_code=ErrorCode.MALFORMED_RESPONSE,
            )

        records = payload.get("bookings")
        if not records and payload.get("success"):
            records = payload.get("bookings") or payload.get("allBookings")

        if not isinstance(records, list):
            return []
        return [record for record in records if isinstance(record, dict)]
