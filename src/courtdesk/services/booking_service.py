"""
Booking lifecycle service.

Every entry point validates the whole request first and only then issues
document numbers and replaces the store's reservation collection, so a
rejected call leaves the store exactly as it was.
"""

import random
import string
import uuid
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from courtdesk.exceptions import (
    BookingConflictError,
    InvalidStateTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from courtdesk.models.court import court_label
from courtdesk.models.reservation import BookingRequest, PaymentStatus, Reservation
from courtdesk.models.user import Authorizer, Capability, allow_all
from courtdesk.services.conflicts import find_conflict
from courtdesk.services.numbering import DocumentNumberingService
from courtdesk.services.pricing import PricingEngine, validate_interval
from courtdesk.services.results import BookingResult, reports_failures
from courtdesk.store import BookingStore
from courtdesk.utils.logging_utils import EnhancedLoggerMixin, log_execution
from courtdesk.utils.time_utils import format_date, format_time


def new_reservation_id() -> str:
    return uuid.uuid4().hex


def new_batch_id() -> str:
    """Short operator-readable group id, e.g. ``BID-4KQ7ZP``."""
    return "BID-" + "".join(random.choices(string.ascii_uppercase + string.digits, k=6))


def allocate_partial_payment(costs: Sequence[float], total_paid: float) -> list[float]:
    """Split a partial payment greedily across reservations in order.

    Each reservation absorbs as much as it costs until the money runs out;
    the rest get zero.

    >>> allocate_partial_payment([40, 40, 40], 50)
    [40.0, 10.0, 0.0]
    """
    remaining = max(float(total_paid or 0), 0.0)
    allocation = []
    for cost in costs:
        take = min(remaining, cost)
        allocation.append(round(take, 2))
        remaining -= take
    return allocation


def conflict_message(proposed: Reservation, conflict: Reservation, courts: Iterable = ()) -> str:
    return (
        f"Conflict detected on {format_date(proposed.date)} at {format_time(proposed.start_time)} "
        f"(Court: {court_label(list(courts), proposed.court_id)}). "
        f"Slot is held by {conflict.customer_name} "
        f"({format_time(conflict.start_time)}-{format_time(conflict.end_time)})."
    )


def mark_refunded(reservation: Reservation, voucher_number: str) -> Reservation:
    """Close a paid reservation with a refund voucher."""
    return reservation.evolve(
        payment_status=PaymentStatus.REFUNDED,
        voucher_number=voucher_number,
        refund_amount=reservation.collected_amount,
        paid_amount=None
    )


class BookingService(EnhancedLoggerMixin):
    """Create, edit and move reservations through their payment lifecycle."""

    def __init__(
        self,
        store: BookingStore,
        numbering: DocumentNumberingService | None = None,
        authorize: Authorizer = allow_all,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] | None = None,
        batch_id_factory: Callable[[], str] | None = None
    ):
        super().__init__()
        self.store = store
        self.numbering = numbering or DocumentNumberingService(store)
        self.pricing = PricingEngine(store)
        self.authorize = authorize
        self.clock = clock
        self.id_factory = id_factory or new_reservation_id
        self.batch_id_factory = batch_id_factory or new_batch_id
        self.set_log_context(service="booking")

    def _require(self, capability: Capability) -> None:
        if not self.authorize(capability):
            raise PermissionDeniedError(f"Permission denied: {capability.value}", capability.value)

    def _fetch_all(self, ids: Iterable[str]) -> list[Reservation]:
        """Resolve ids in order, dropping duplicates. Unknown ids raise."""
        seen: set[str] = set()
        found = []
        for reservation_id in ids:
            if reservation_id in seen:
                continue
            seen.add(reservation_id)
            found.append(self.store.get(reservation_id))
        if not found:
            raise ValidationError("No reservations selected")
        return found

    def _commit_updates(self, updated: Iterable[Reservation]) -> None:
        by_id = {r.id: r for r in updated}
        self.store.replace_reservations(by_id.get(r.id, r) for r in self.store.reservations)

    # Create and edit

    @log_execution(level='DEBUG')
    @reports_failures("Create reservation")
    def create_reservation(self, request: BookingRequest) -> BookingResult:
        """Book every date x slot combination in the request as one batch."""
        self._require(Capability.MANAGE_BOOKINGS)
        return self._save(request, editing=None)

    @log_execution(level='DEBUG')
    @reports_failures("Edit reservation")
    def edit_reservation(self, reservation_id: str, request: BookingRequest) -> BookingResult:
        """Rewrite an existing reservation from a new request.

        A single date with a single slot edits in place and keeps the id,
        batch id and creation time. Larger requests replace the original
        with the expanded set; the first candidate inherits the original id
        and every candidate joins the original batch.
        """
        self._require(Capability.MANAGE_BOOKINGS)
        editing = self.store.get(reservation_id)
        if editing.payment_status.is_terminal:
            raise InvalidStateTransitionError(
                f"Cannot edit a {editing.payment_status.value.lower()} reservation",
                {"reservation_id": reservation_id, "status": editing.payment_status.value}
            )
        return self._save(request, editing=editing)

    def _validate_request(self, request: BookingRequest) -> None:
        if not request.customer_name.strip():
            raise ValidationError("Customer name is required")
        if not request.dates:
            raise ValidationError("At least one date is required")
        if not request.slots:
            raise ValidationError("At least one court slot is required")
        if request.payment_status.is_terminal:
            raise InvalidStateTransitionError(
                f"Cannot book directly into status {request.payment_status.value}",
                {"status": request.payment_status.value}
            )
        if request.payment_status == PaymentStatus.PARTIAL and (request.paid_amount or 0) < 0:
            raise ValidationError("Paid amount cannot be negative", {"paid_amount": request.paid_amount})
        for slot in request.slots:
            validate_interval(slot.start_time, slot.duration)

    def _save(self, request: BookingRequest, editing: Reservation | None) -> BookingResult:
        self._validate_request(request)

        now = self.clock()
        rate = self.pricing.base_rate
        status = request.payment_status
        in_place = editing is not None and len(request.dates) == 1 and len(request.slots) == 1

        if editing is not None:
            batch_id = editing.batch_id if in_place else (editing.batch_id or self.batch_id_factory())
            created_at = editing.created_at
        else:
            batch_id = self.batch_id_factory()
            created_at = now

        pairs = [(day, slot) for day in request.dates for slot in request.slots]
        costs = [self.pricing.price(slot.start_time, slot.duration) for _, slot in pairs]
        paid_split = (
            allocate_partial_payment(costs, request.paid_amount or 0)
            if status == PaymentStatus.PARTIAL else [None] * len(pairs)
        )

        candidates = []
        for index, ((day, slot), cost, paid) in enumerate(zip(pairs, costs, paid_split)):
            reservation_id = editing.id if (editing is not None and index == 0) else self.id_factory()
            candidates.append(Reservation(
                id=reservation_id,
                batch_id=batch_id,
                customer_name=request.customer_name.strip(),
                phone_number=request.phone_number.strip(),
                resident_unit_no=request.resident_unit_no,
                date=day,
                start_time=slot.start_time,
                duration=slot.duration,
                court_id=slot.court_id,
                payment_status=status,
                notes=request.notes,
                created_at=created_at,
                hourly_rate=rate,
                total_amount=cost,
                paid_amount=paid,
            ))

        # Check against everything else and against earlier candidates of the same request
        exclude_id = editing.id if editing is not None else None
        others = [r for r in self.store.reservations if r.id != exclude_id]
        for candidate in candidates:
            conflict = find_conflict(candidate, others, exclude_id=candidate.id)
            if conflict is not None:
                raise BookingConflictError(
                    conflict_message(candidate, conflict, self.store.courts),
                    conflict,
                    {"date": candidate.date.isoformat(), "court_id": candidate.court_id}
                )
            others.append(candidate)

        receipt_number, payment_date, reconciled = self._payment_stamp(status, editing, now)
        candidates = [
            c.evolve(receipt_number=receipt_number, payment_date=payment_date, is_reconciled=reconciled)
            for c in candidates
        ]

        if editing is None:
            self.store.replace_reservations([*self.store.reservations, *candidates])
        else:
            replaced = [candidates[0] if r.id == editing.id else r for r in self.store.reservations]
            self.store.replace_reservations([*replaced, *candidates[1:]])

        self.info(
            "Saved reservations",
            count=len(candidates),
            batch_id=batch_id,
            status=status.value,
            receipt=receipt_number,
            edited=editing.id if editing else None
        )
        return BookingResult.ok(candidates, receipt_number=receipt_number)

    def _payment_stamp(
        self,
        status: PaymentStatus,
        editing: Reservation | None,
        now: datetime
    ) -> tuple[str | None, datetime | None, bool]:
        """Receipt number, payment date and reconciliation flag for saved candidates."""
        if not status.takes_payment:
            return None, None, False
        if editing is not None and editing.payment_status == status and editing.receipt_number:
            return editing.receipt_number, editing.payment_date or now, editing.is_reconciled
        return self.numbering.next_receipt_number(), now, False

    # Status transitions

    @reports_failures("Cancel reservation")
    def cancel_reservation(self, reservation_id: str) -> BookingResult:
        """Cancel an open reservation, freeing its slot. Cancelling twice is a no-op."""
        self._require(Capability.MANAGE_BOOKINGS)
        reservation = self.store.get(reservation_id)
        if reservation.payment_status == PaymentStatus.CANCELLED:
            return BookingResult.ok([reservation])
        if reservation.payment_status == PaymentStatus.REFUNDED:
            raise InvalidStateTransitionError(
                "Cannot cancel a refunded reservation",
                {"reservation_id": reservation_id}
            )

        cancelled = reservation.evolve(payment_status=PaymentStatus.CANCELLED, paid_amount=None)
        self._commit_updates([cancelled])
        self.info("Cancelled reservation", reservation_id=reservation_id)
        return BookingResult.ok([cancelled])

    @reports_failures("Refund reservation")
    def refund_reservation(self, reservation_id: str) -> BookingResult:
        """Refund a paid or partially paid reservation under a new voucher."""
        self._require(Capability.MANAGE_PAYMENTS)
        reservation = self.store.get(reservation_id)
        if not reservation.payment_status.is_refundable:
            raise InvalidStateTransitionError(
                f"Only paid or partially paid reservations can be refunded "
                f"(status is {reservation.payment_status.value})",
                {"reservation_id": reservation_id, "status": reservation.payment_status.value}
            )

        voucher = self.numbering.next_voucher_number()
        refunded = mark_refunded(reservation, voucher)
        self._commit_updates([refunded])
        self.info("Refunded reservation", reservation_id=reservation_id, voucher=voucher)
        return BookingResult.ok([refunded], voucher_number=voucher)

    @reports_failures("Bulk settle")
    def bulk_settle(self, ids: Sequence[str]) -> BookingResult:
        """Mark every selected reservation PAID under one shared receipt.

        Cancelled and refunded reservations are refused rather than forced
        back to PAID, since their slot may already be booked again. Settled
        reservations are marked unreconciled because the new payment has not
        been counted yet.
        """
        self._require(Capability.MANAGE_PAYMENTS)
        selected = self._fetch_all(ids)
        closed = [r.id for r in selected if r.payment_status.is_terminal]
        if closed:
            raise InvalidStateTransitionError(
                "Cancelled or refunded reservations cannot be settled",
                {"reservation_ids": closed}
            )

        receipt = self.numbering.next_receipt_number()
        now = self.clock()
        settled = [
            r.evolve(
                payment_status=PaymentStatus.PAID,
                paid_amount=None,
                receipt_number=receipt,
                payment_date=now,
                is_reconciled=False
            )
            for r in selected
        ]
        self._commit_updates(settled)
        self.info("Settled reservations", count=len(settled), receipt=receipt)
        return BookingResult.ok(settled, receipt_number=receipt)

    @reports_failures("Reconcile")
    def reconcile(self, ids: Sequence[str]) -> BookingResult:
        """Mark collected payments as counted and deposited."""
        self._require(Capability.MANAGE_PAYMENTS)
        selected = self._fetch_all(ids)
        closed = [r.id for r in selected if r.payment_status.is_terminal]
        if closed:
            raise InvalidStateTransitionError(
                "Cancelled or refunded reservations cannot be reconciled",
                {"reservation_ids": closed}
            )

        now = self.clock()
        reconciled = [
            r.evolve(is_reconciled=True, payment_date=r.payment_date or now)
            for r in selected
        ]
        self._commit_updates(reconciled)
        self.info("Reconciled reservations", count=len(reconciled))
        return BookingResult.ok(reconciled)

    @reports_failures("Delete reservation")
    def delete_reservation(self, reservation_id: str) -> BookingResult:
        """Remove a reservation outright, whatever its status."""
        self._require(Capability.MANAGE_BOOKINGS)
        reservation = self.store.get(reservation_id)
        self.store.replace_reservations(r for r in self.store.reservations if r.id != reservation_id)
        self.info("Deleted reservation", reservation_id=reservation_id, status=reservation.payment_status.value)
        return BookingResult.ok([reservation])
