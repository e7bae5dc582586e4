# busdesk/services/booking/mutation_coordinator.py
"""
Booking mutation coordinator.

Every state-changing operation writes to the remote store first and then
mutates the reconciliation store through the optimistic sync strategy. A
failed write leaves local state untouched; a delivered one is trusted until
the next refresh.

Enhanced with:
- Validation before any remote call
- Per-booking in-flight deduplication
- Operator confirmation for destructive operations
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
import asyncio
import logging

from busdesk.config.settings import Settings
from busdesk.core.constants import (
    MAX_SEATS_PER_GROUP,
    METHOD_ADD,
    METHOD_CLEAR_ARCHIVE,
    METHOD_DELETE,
    METHOD_UPDATE,
    REMOTE_STAGE_TYPES,
)
from busdesk.core.exceptions import DuplicateOperationError, ValidationError
from busdesk.integrations.remote_store import RemoteStoreClient
from busdesk.schemas.booking.booking_base import Booking
from busdesk.schemas.booking.booking_request import BookingDraft, BookingEdit
from busdesk.schemas.common.enums import BookingStatus, PaymentStatus, Stage
from busdesk.services.base import BaseService, ErrorCode, ErrorSeverity, ServiceError, ServiceResult
from busdesk.services.booking.booking_pricing_service import PricingCalculator
from busdesk.services.booking.lifecycle_classifier import LifecycleClassifier
from busdesk.services.booking.optimistic_sync import OptimisticSync
from busdesk.services.booking.reconciliation_store import ReconciliationStore
from busdesk.services.booking.record_normalizer import RecordNormalizer
from busdesk.utils.date_utils import normalize_time
from busdesk.utils.string_utils import (
    count_seat_entries,
    digits_only,
    phone_match_key,
    requested_seat_count,
)

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str, str], Awaitable[bool]]

_PRICED_FIELDS = ("bus_service", "male_seats", "female_seats")

# approve, update and delete exclude each other on the same booking
_BOOKING_SCOPE = "booking"


def _remote_type(stage: Stage) -> str:
    return REMOTE_STAGE_TYPES[stage.value]


class BookingMutationCoordinator(BaseService):
    """
    Execute stage transitions and field updates against the remote store.

    Features:
    - Customer submissions and operator additions
    - Two-step approve (save fields, then move)
    - Edits with total recomputation or override
    - Confirmed delete and archive clearing
    - Full refresh with expiry filtering
    """

    def __init__(
        self,
        client: RemoteStoreClient,
        store: ReconciliationStore,
        pricing: PricingCalculator,
        normalizer: RecordNormalizer,
        classifier: LifecycleClassifier,
        settings: Settings,
        confirm: Optional[ConfirmCallback] = None,
        sync: Optional[OptimisticSync] = None,
    ):
        super().__init__()
        self.client = client
        self.store = store
        self.pricing = pricing
        self.normalizer = normalizer
        self.classifier = classifier
        self.settings = settings
        self._confirm = confirm
        self._sync = sync or OptimisticSync()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_phone(self, phone: str) -> None:
        if len(digits_only(phone)) < self.settings.PHONE_MIN_DIGITS:
            raise ValidationError(
                f"Please enter a valid phone number (at least {self.settings.PHONE_MIN_DIGITS} digits)",
                field_errors={"phone": ["too few digits"]},
            )

    def _seat_counts(self, draft: BookingDraft, operator: bool) -> Tuple[int, int]:
        """Seat counts of a draft; operators type seat numbers, customers type counts."""
        if operator:
            male = count_seat_entries(draft.male_seats)
            female = count_seat_entries(draft.female_seats)
        else:
            male = requested_seat_count(draft.male_seats)
            female = requested_seat_count(draft.female_seats)
            for field, count in (("male_seats", male), ("female_seats", female)):
                if count > MAX_SEATS_PER_GROUP:
                    raise ValidationError(
                        f"At most {MAX_SEATS_PER_GROUP} seats can be requested per group",
                        field_errors={field: ["too many seats"]},
                    )

        if male + female <= 0:
            raise ValidationError(
                "Please select at least one seat",
                field_errors={"male_seats": ["no seats selected"], "female_seats": ["no seats selected"]},
            )
        return male, female

    @staticmethod
    def _validation_result(error: ValidationError) -> ServiceResult:
        field_errors = error.details.get("field_errors") or {}
        return ServiceResult.validation_failure(
            error.message,
            field=next(iter(field_errors), None),
            details=error.details,
        )

    # -------------------------------------------------------------------------
    # Confirmation
    # -------------------------------------------------------------------------

    async def _confirmed(self, title: str, text: str) -> bool:
        if self._confirm is None:
            self._logger.warning(f"No confirmation handler; declining '{title}'")
            return False
        return bool(await self._confirm(title, text))

    # -------------------------------------------------------------------------
    # Remote command payloads
    # -------------------------------------------------------------------------

    def _save_fields(self, booking: Booking, stage: Stage, status: BookingStatus) -> Dict[str, Any]:
        fields = {
            "id": booking.id,
            "row": booking.row_index,
            "type": _remote_type(stage),
        }
        fields.update(self.normalizer.to_remote_fields(booking))
        fields["status"] = status.value
        return fields

    @staticmethod
    def _move_fields(booking: Booking) -> Dict[str, Any]:
        return {
            "id": booking.id,
            "row": booking.row_index,
            "type": _remote_type(Stage.PENDING),
            "status": BookingStatus.CONFIRMED.value,
        }

    def _move_to_active(self, booking: Booking):
        """Remote steps of a pending -> active move: save fields, then transition."""
        save = self._save_fields(booking, Stage.PENDING, BookingStatus.PENDING)
        move = self._move_fields(booking)
        return [
            lambda: self.client.send(METHOD_UPDATE, save),
            lambda: self.client.send(METHOD_UPDATE, move),
        ]

    def _apply_move(self, held: Booking, booking: Booking) -> Optional[Booking]:
        if self.store.remove(Stage.PENDING, held) is None:
            return None
        return self.store.prepend(
            Stage.ACTIVE,
            booking.model_copy(update={"booking_status": BookingStatus.CONFIRMED}),
        )

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def _compose(self, draft: BookingDraft, operator: bool) -> Tuple[Booking, Optional[str]]:
        self._validate_phone(draft.phone)
        male, female = self._seat_counts(draft, operator)

        notice = None
        if draft.total_amount is not None:
            total = draft.total_amount
        else:
            quote = self.pricing.quote(draft.bus_service, male, female)
            total, notice = quote.total, quote.notice

        if operator:
            stage = Stage.ACTIVE
            status = BookingStatus.CONFIRMED
            payment = draft.payment_status or PaymentStatus.PAID
        else:
            stage = Stage.PENDING
            status = BookingStatus.PENDING
            payment = PaymentStatus.PENDING

        booking = Booking(
            name=draft.name,
            phone=draft.phone,
            bus_service=draft.bus_service,
            journey_date=draft.journey_date,
            journey_date_raw=draft.journey_date.isoformat(),
            departure_time=normalize_time(
                draft.departure_time or self.pricing.default_time(draft.bus_service)
            ),
            pickup=draft.pickup,
            destination=draft.destination,
            male_seats=draft.male_seats,
            female_seats=draft.female_seats,
            total_amount=total,
            payment_status=payment,
            booking_status=status,
            stage=stage,
            conductor=draft.conductor,
        )
        return booking, notice

    async def submit(self, draft: BookingDraft, operator: bool = False) -> ServiceResult[Booking]:
        """
        Create a booking.

        Customers land in pending; operator additions go straight to active
        as confirmed.

        Args:
            draft: New booking data
            operator: True for the operator "add" path

        Returns:
            ServiceResult containing the locally placed booking; a pricing
            notice, if any, is in `metadata["notice"]`
        """
        operation = "add booking" if operator else "submit booking"
        try:
            booking, notice = self._compose(draft, operator)
            submission_key = ":".join(
                (phone_match_key(draft.phone, self.settings.PHONE_MATCH_DIGITS),
                 draft.journey_date.isoformat(),
                 draft.bus_service)
            )

            with self.in_flight(operation, submission_key):
                self._logger.info(
                    f"Submitting booking for {booking.name}",
                    extra={"operation": operation, "stage": booking.stage.value},
                )
                fields = {"type": _remote_type(booking.stage)}
                fields.update(self.normalizer.to_remote_fields(booking))

                placed = await self._sync.run(
                    [lambda: self.client.send(METHOD_ADD, fields)],
                    lambda: self.store.prepend(booking.stage, booking),
                )

            message = "Booking added" if operator else "Booking request sent"
            return ServiceResult.success(placed, message=message, metadata={"notice": notice})

        except ValidationError as e:
            return self._validation_result(e)
        except DuplicateOperationError as e:
            return ServiceResult.conflict(e.message, details=e.details)
        except Exception as e:
            return self._handle_exception(e, operation)

    # -------------------------------------------------------------------------
    # Stage transitions and edits
    # -------------------------------------------------------------------------

    async def approve(self, booking: Booking) -> ServiceResult[Booking]:
        """
        Approve a pending booking.

        Fields are saved with status Pending first, then the move to active
        is sent; the second call is only issued after the first resolved.

        Args:
            booking: Pending booking, possibly carrying unsaved field edits

        Returns:
            ServiceResult containing the booking as now held in active
        """
        try:
            held = self.store.find(booking, Stage.PENDING)
            if held is None:
                if self.store.contains(booking):
                    return self._invalid_state("Only pending bookings can be approved", booking)
                return ServiceResult.not_found("Booking", booking.key or None)
            if not held.has_reference:
                return self._invalid_state(
                    "Booking has no reference yet; refresh before approving", booking
                )

            with self.in_flight("approve", held.key, scope=_BOOKING_SCOPE):
                self._logger.info(
                    f"Approving booking {held.key}",
                    extra={"booking_id": held.id, "stage": Stage.PENDING.value},
                )
                source = booking.model_copy(update={"id": held.id, "row_index": held.row_index})
                placed = await self._sync.run(
                    self._move_to_active(source),
                    lambda: self._apply_move(held, source),
                )

            if placed is None:
                return self._changed_meanwhile("approve", held)
            return ServiceResult.success(placed, message="Booking approved")

        except DuplicateOperationError as e:
            return ServiceResult.conflict(e.message, details=e.details)
        except Exception as e:
            return self._handle_exception(e, "approve booking", booking.key)

    async def update(self, booking: Booking, edits: BookingEdit) -> ServiceResult[Booking]:
        """
        Apply field edits to a booking.

        Setting status Confirmed on a pending booking moves it to active with
        the same two-step sequence as approve. Otherwise a single update is
        sent. The total is the explicit override when given, recomputed when
        bus or seats changed, and kept as is otherwise.

        Args:
            booking: Booking being edited
            edits: Changed fields

        Returns:
            ServiceResult containing the updated booking
        """
        try:
            held = self.store.find(booking, booking.stage)
            if held is None:
                return ServiceResult.not_found("Booking", booking.key or None)
            if not held.has_reference:
                return self._invalid_state(
                    "Booking has no reference yet; refresh before editing", booking
                )

            changes = edits.changes()
            override = changes.pop("total_amount", None)
            if changes.get("journey_date") is not None:
                changes["journey_date_raw"] = changes["journey_date"].isoformat()
            if changes.get("departure_time") is not None:
                changes["departure_time"] = normalize_time(changes["departure_time"])
            changes = {name: value for name, value in changes.items() if value is not None}

            merged = held.model_copy(update=changes)

            notice = None
            if override is not None:
                merged = merged.model_copy(update={"total_amount": override})
            elif any(name in changes for name in _PRICED_FIELDS):
                quote = self.pricing.recalculate(merged)
                merged = merged.model_copy(update={"total_amount": quote.total})
                notice = quote.notice

            target_status = merged.booking_status
            moving = held.stage == Stage.PENDING and target_status == BookingStatus.CONFIRMED

            with self.in_flight("update", held.key, scope=_BOOKING_SCOPE):
                self._logger.info(
                    f"Updating booking {held.key}",
                    extra={
                        "booking_id": held.id,
                        "stage": held.stage.value,
                        "operation": "move" if moving else "update",
                    },
                )
                if moving:
                    placed = await self._sync.run(
                        self._move_to_active(merged),
                        lambda: self._apply_move(held, merged),
                    )
                else:
                    fields = self._save_fields(merged, held.stage, target_status)
                    local_changes = dict(changes)
                    local_changes["total_amount"] = merged.total_amount
                    placed = await self._sync.run(
                        [lambda: self.client.send(METHOD_UPDATE, fields)],
                        lambda: self.store.patch(held.stage, held, local_changes),
                    )

            if placed is None:
                return self._changed_meanwhile("update", held)
            return ServiceResult.success(
                placed,
                message="Booking moved to active" if moving else "Booking updated",
                metadata={"notice": notice, "moved": moving},
            )

        except DuplicateOperationError as e:
            return ServiceResult.conflict(e.message, details=e.details)
        except Exception as e:
            return self._handle_exception(e, "update booking", booking.key)

    # -------------------------------------------------------------------------
    # Destructive operations
    # -------------------------------------------------------------------------

    async def delete(self, booking: Booking) -> ServiceResult[Booking]:
        """
        Delete a booking from whichever stage holds it, after confirmation.

        Returns:
            ServiceResult containing the removed booking
        """
        try:
            held = self.store.find(booking, booking.stage)
            if held is None:
                return ServiceResult.not_found("Booking", booking.key or None)
            if not held.has_reference:
                return self._invalid_state(
                    "Booking has no reference yet; refresh before deleting", booking
                )

            with self.in_flight("delete", held.key, scope=_BOOKING_SCOPE):
                if not await self._confirmed("Delete Booking?", "This cannot be undone."):
                    return ServiceResult.cancelled("Delete booking")
                # A refresh may have landed while the prompt was open
                if self.store.find(held, held.stage) is None:
                    return ServiceResult.not_found("Booking", held.key)

                self._logger.info(
                    f"Deleting booking {held.key}",
                    extra={"booking_id": held.id, "stage": held.stage.value},
                )
                fields = {
                    "id": held.id,
                    "row": held.row_index,
                    "type": _remote_type(held.stage),
                }
                removed = await self._sync.run(
                    [lambda: self.client.send(METHOD_DELETE, fields)],
                    lambda: self.store.remove(held.stage, held),
                )

            if removed is None:
                return self._changed_meanwhile("delete", held)
            return ServiceResult.success(removed, message="Booking deleted")

        except DuplicateOperationError as e:
            return ServiceResult.conflict(e.message, details=e.details)
        except Exception as e:
            return self._handle_exception(e, "delete booking", booking.key)

    async def clear_archive(self) -> ServiceResult[int]:
        """
        Empty the archive, after confirmation.

        Returns:
            ServiceResult containing the number of bookings dropped locally
        """
        try:
            if not await self._confirmed(
                "Clear Archive?", "All archived bookings will be permanently deleted."
            ):
                return ServiceResult.cancelled("Clear archive")

            with self.in_flight("clear_archive", Stage.ARCHIVED.value):
                removed = await self._sync.run(
                    [lambda: self.client.send(METHOD_CLEAR_ARCHIVE)],
                    lambda: self.store.clear(Stage.ARCHIVED),
                )

            self._logger.info(
                f"Cleared {removed} archived bookings",
                extra={"stage": Stage.ARCHIVED.value},
            )
            return ServiceResult.success(removed, message="Archive cleared")

        except DuplicateOperationError as e:
            return ServiceResult.conflict(e.message, details=e.details)
        except Exception as e:
            return self._handle_exception(e, "clear archive")

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    async def refresh(self) -> ServiceResult[Dict[str, int]]:
        """
        Rebuild every stage from the remote store.

        The remote auto-archive sweep runs first. The three stage fetches run
        concurrently; if any fails nothing is replaced.

        Returns:
            ServiceResult containing per-stage counts; metadata carries
            `switched_to_pending` and `expired_hidden`
        """
        try:
            with self.in_flight("refresh", "all"):
                await self.client.trigger_auto_archive()

                stages = list(Stage)
                fetched: List[List[Dict[str, Any]]] = await asyncio.gather(
                    *(self.client.fetch_stage(stage) for stage in stages)
                )

                collections = {}
                expired_hidden = 0
                for stage, records in zip(stages, fetched):
                    normalized = self.normalizer.normalize_many(records, stage)
                    visible = self.classifier.classify(normalized, stage)
                    expired_hidden += len(normalized) - len(visible)
                    collections[stage] = visible

                self.store.replace_all(collections)

            switched = (
                bool(collections[Stage.PENDING])
                and not collections[Stage.ACTIVE]
                and self.store.visible_stage == Stage.ACTIVE
            )
            if switched:
                self.store.visible_stage = Stage.PENDING

            counts = self.store.counts()
            self._logger.info(
                f"Refreshed bookings: {counts}",
                extra={"operation": "refresh"},
            )
            return ServiceResult.success(
                counts,
                message="Bookings refreshed",
                metadata={"switched_to_pending": switched, "expired_hidden": expired_hidden},
            )

        except DuplicateOperationError as e:
            return ServiceResult.conflict(e.message, details=e.details)
        except Exception as e:
            return self._handle_exception(e, "refresh bookings")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _invalid_state(self, message: str, booking: Booking) -> ServiceResult:
        self._logger.warning(message, extra={"booking_key": booking.key})
        return ServiceResult.failure(
            ServiceError(
                code=ErrorCode.INVALID_STATE,
                message=message,
                severity=ErrorSeverity.WARNING,
                details={"booking_key": booking.key, "stage": booking.stage.value},
            )
        )

    def _changed_meanwhile(self, operation: str, held: Booking) -> ServiceResult:
        """The write went out but the booking left its stage before the local step."""
        self._logger.warning(
            f"Booking {held.key} left {held.stage.value} during {operation}; local state not changed",
            extra={"booking_key": held.key, "stage": held.stage.value, "operation": operation},
        )
        return ServiceResult.conflict(
            "The booking changed while this was being saved. Refresh to see its current state.",
            details={"booking_key": held.key, "stage": held.stage.value, "operation": operation},
        )
