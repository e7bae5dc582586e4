"""
Booking engine facade: wires the engine from settings and exposes its read
views and operation set.

Enhanced with:
- Operation timing logs
- Async context-manager lifecycle for the remote client
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Union
import logging
from functools import wraps

import httpx

from busdesk.config.settings import Settings, get_settings
from busdesk.integrations.remote_store import RemoteStoreClient
from busdesk.schemas.booking.booking_base import Booking
from busdesk.schemas.booking.booking_request import BookingDraft, BookingEdit
from busdesk.schemas.common.enums import Stage
from busdesk.services.base import ServiceResult
from busdesk.services.booking.booking_pricing_service import PriceQuote, PricingCalculator
from busdesk.services.booking.booking_search_service import BookingSearchService
from busdesk.services.booking.lifecycle_classifier import LifecycleClassifier
from busdesk.services.booking.mutation_coordinator import BookingMutationCoordinator, ConfirmCallback
from busdesk.services.booking.reconciliation_store import ReconciliationStore
from busdesk.services.booking.record_normalizer import RecordNormalizer

logger = logging.getLogger(__name__)


def track_performance(operation_name: str):
    """Decorator to time async operations returning a ServiceResult."""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = datetime.now(timezone.utc)
            result = await func(*args, **kwargs)
            duration = (datetime.now(timezone.utc) - start_time).total_seconds()
            logger.info(
                f"Operation '{operation_name}' completed in {duration:.3f}s",
                extra={
                    "operation": operation_name,
                    "duration_seconds": duration,
                    "success": result.is_success if hasattr(result, "is_success") else True,
                },
            )
            return result
        return wrapper
    return decorator


class BookingService:
    """
    Booking lifecycle engine.

    Responsibilities:
    - Build client, normalizer, classifier, store, pricing and coordinator
      from one settings object
    - Read views over the reconciliation store
    - Forward mutations to the coordinator
    - Customer ticket lookup
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        confirm: Optional[ConfirmCallback] = None,
        client: Optional[RemoteStoreClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        classifier: Optional[LifecycleClassifier] = None,
    ):
        self.settings = settings or get_settings()
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.client = client or RemoteStoreClient.from_settings(self.settings, transport=transport)
        self.normalizer = RecordNormalizer(self.settings.TIMEZONE)
        self.classifier = classifier or LifecycleClassifier(
            self.settings.TIMEZONE,
            cutoff=self.settings.expiry_cutoff_time,
        )
        self.store = ReconciliationStore()
        self.pricing = PricingCalculator.from_settings(self.settings)

        self.coordinator = BookingMutationCoordinator(
            client=self.client,
            store=self.store,
            pricing=self.pricing,
            normalizer=self.normalizer,
            classifier=self.classifier,
            settings=self.settings,
            confirm=confirm,
        )
        self.search_service = BookingSearchService(self.client, self.normalizer, self.settings)

    async def __aenter__(self) -> "BookingService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    # -------------------------------------------------------------------------
    # Read views
    # -------------------------------------------------------------------------

    @property
    def visible_stage(self) -> Stage:
        return self.store.visible_stage

    def show(self, stage: Stage) -> None:
        self.store.visible_stage = stage

    def list(self, stage: Optional[Stage] = None) -> List[Booking]:
        return self.store.list(stage or self.store.visible_stage)

    def filter(
        self,
        stage: Optional[Stage] = None,
        search_term: str = "",
        date_filter: Optional[Union[date, str]] = None,
    ) -> List[Booking]:
        return self.store.filter(stage or self.store.visible_stage, search_term, date_filter)

    def counts(self) -> Dict[str, int]:
        return self.store.counts()

    def total_revenue(self) -> Decimal:
        return self.store.total_revenue()

    def total_passengers(self) -> int:
        return self.store.total_passengers()

    def quote(self, bus_service: str, male_count: int, female_count: int) -> PriceQuote:
        return self.pricing.quote(bus_service, male_count, female_count)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    @track_performance("refresh")
    async def refresh(self) -> ServiceResult[Dict[str, int]]:
        return await self.coordinator.refresh()

    @track_performance("submit")
    async def submit(self, draft: BookingDraft) -> ServiceResult[Booking]:
        """Customer booking request; lands in pending."""
        return await self.coordinator.submit(draft, operator=False)

    @track_performance("add")
    async def add(self, draft: BookingDraft) -> ServiceResult[Booking]:
        """Operator addition; lands in active as confirmed."""
        return await self.coordinator.submit(draft, operator=True)

    @track_performance("approve")
    async def approve(self, booking: Booking) -> ServiceResult[Booking]:
        return await self.coordinator.approve(booking)

    @track_performance("update")
    async def update(self, booking: Booking, edits: BookingEdit) -> ServiceResult[Booking]:
        return await self.coordinator.update(booking, edits)

    @track_performance("delete")
    async def delete(self, booking: Booking) -> ServiceResult[Booking]:
        return await self.coordinator.delete(booking)

    @track_performance("clear_archive")
    async def clear_archive(self) -> ServiceResult[int]:
        return await self.coordinator.clear_archive()

    @track_performance("find_by_phone")
    async def find_by_phone(self, phone: str) -> ServiceResult[Booking]:
        return await self.search_service.find_by_phone(phone)
