"""
Booking lifecycle & reconciliation engine.

Provides:
- Record normalization of heterogeneous remote records
- Lifecycle classification (expiry of active bookings)
- The in-memory reconciliation store
- Mutations synchronized to the remote store
- Pricing and customer ticket lookup
"""

from busdesk.services.booking.booking_service import BookingService
from busdesk.services.booking.booking_search_service import BookingSearchService
from busdesk.services.booking.booking_pricing_service import PricingCalculator, PriceQuote
from busdesk.services.booking.lifecycle_classifier import LifecycleClassifier
from busdesk.services.booking.mutation_coordinator import BookingMutationCoordinator
from busdesk.services.booking.optimistic_sync import OptimisticSync
from busdesk.services.booking.reconciliation_store import ReconciliationStore
from busdesk.services.booking.record_normalizer import RecordNormalizer

__all__ = [
    "BookingService",
    "BookingSearchService",
    "PricingCalculator",
    "PriceQuote",
    "LifecycleClassifier",
    "BookingMutationCoordinator",
    "OptimisticSync",
    "ReconciliationStore",
    "RecordNormalizer",
]
