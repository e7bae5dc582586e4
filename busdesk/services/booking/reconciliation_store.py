# busdesk/services/booking/reconciliation_store.py
"""
Reconciliation store.

Volatile, per-stage ordered collections of canonical bookings. Rebuilt from
the remote store on every refresh and mutated in between by the mutation
coordinator only.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Union
import logging

from busdesk.schemas.booking.booking_base import Booking
from busdesk.schemas.common.enums import Stage

logger = logging.getLogger(__name__)


def sort_newest_first(bookings: Iterable[Booking]) -> List[Booking]:
    """
    Order by id descending, lexically.

    Bookings without an id keep their fetch position; only the slots held
    by id'd bookings are reordered.
    """
    bookings = list(bookings)
    slots = [i for i, booking in enumerate(bookings) if booking.id]
    ordered = sorted((bookings[i] for i in slots), key=lambda b: b.id, reverse=True)

    result = list(bookings)
    for slot, booking in zip(slots, ordered):
        result[slot] = booking
    return result


def _same_booking(candidate: Booking, target: Booking) -> bool:
    if target.id:
        return candidate.id == target.id
    return target.row_index is not None and candidate.row_index == target.row_index


class ReconciliationStore:
    """
    In-memory stage collections.

    Matching is by id first, row handle as fallback. Every booking held in a
    collection carries that collection's stage.
    """

    def __init__(self):
        self._collections: Dict[Stage, List[Booking]] = {stage: [] for stage in Stage}
        self.visible_stage: Stage = Stage.ACTIVE

    # ==================== READS ====================

    def list(self, stage: Stage) -> List[Booking]:
        return list(self._collections[stage])

    def counts(self) -> Dict[str, int]:
        return {stage.value: len(items) for stage, items in self._collections.items()}

    def find(self, booking: Booking, stage: Optional[Stage] = None) -> Optional[Booking]:
        """Locate a held booking by id, or by row handle when it has no id."""
        stages = [stage] if stage is not None else list(Stage)
        for current in stages:
            for candidate in self._collections[current]:
                if _same_booking(candidate, booking):
                    return candidate
        return None

    def contains(self, booking: Booking, stage: Optional[Stage] = None) -> bool:
        return self.find(booking, stage) is not None

    def filter(
        self,
        stage: Stage,
        search_term: str = "",
        date_filter: Optional[Union[date, str]] = None,
    ) -> List[Booking]:
        """
        Filtered view of one stage.

        Args:
            stage: Stage to read
            search_term: Case-insensitive substring of name or id, or a
                substring of the phone
            date_filter: Journey date (a date or 'YYYY-MM-DD'); compared as a
                calendar date, or as a substring of the raw date text when the
                booking's date did not parse

        Returns:
            Matching bookings in display order
        """
        needle = (search_term or "").strip().lower()
        wanted_date, wanted_text = self._date_filter_parts(date_filter)

        results = []
        for booking in self._collections[stage]:
            if needle and not (
                needle in booking.name.lower()
                or needle in booking.phone
                or needle in booking.id.lower()
            ):
                continue
            if wanted_text:
                if booking.journey_date is not None:
                    if booking.journey_date != wanted_date:
                        continue
                elif wanted_text not in booking.journey_date_raw:
                    continue
            results.append(booking)
        return results

    @staticmethod
    def _date_filter_parts(date_filter):
        if date_filter is None or date_filter == "":
            return None, ""
        if isinstance(date_filter, date):
            return date_filter, date_filter.isoformat()
        text = str(date_filter).strip()
        try:
            return date.fromisoformat(text), text
        except ValueError:
            return None, text

    # ==================== AGGREGATES ====================

    def _billed(self) -> List[Booking]:
        return self._collections[Stage.ACTIVE] + self._collections[Stage.ARCHIVED]

    def total_revenue(self) -> Decimal:
        """Sum of totals over active and archived bookings."""
        return sum((booking.total_amount for booking in self._billed()), Decimal("0"))

    def total_passengers(self) -> int:
        """Seat entries over active and archived bookings."""
        return sum(booking.seat_count for booking in self._billed())

    # ==================== WRITES ====================

    def replace(self, stage: Stage, bookings: Iterable[Booking]) -> None:
        placed = [booking.model_copy(update={"stage": stage}) for booking in bookings]
        self._collections[stage] = sort_newest_first(placed)

    def replace_all(self, collections: Dict[Stage, Iterable[Booking]]) -> None:
        """Swap every stage at once; stages missing from the mapping are emptied."""
        for stage in Stage:
            self.replace(stage, collections.get(stage, []))
        logger.debug("Replaced stage collections", extra={"operation": "replace_all"})

    def prepend(self, stage: Stage, booking: Booking) -> Booking:
        placed = booking.model_copy(update={"stage": stage})
        self._collections[stage].insert(0, placed)
        return placed

    def remove(self, stage: Stage, booking: Booking) -> Optional[Booking]:
        items = self._collections[stage]
        for index, candidate in enumerate(items):
            if _same_booking(candidate, booking):
                return items.pop(index)
        return None

    def patch(self, stage: Stage, booking: Booking, changes: Dict) -> Optional[Booking]:
        """Apply field changes to the held booking in place of its old copy."""
        items = self._collections[stage]
        for index, candidate in enumerate(items):
            if _same_booking(candidate, booking):
                items[index] = candidate.model_copy(update={**changes, "stage": stage})
                return items[index]
        return None

    def clear(self, stage: Stage) -> int:
        removed = len(self._collections[stage])
        self._collections[stage] = []
        return removed
