"""
Batch amendment of existing reservations.

An amendment is planned against a snapshot of the store: the engine applies
the requested changes to the selection, predicts the whole post-amendment
collection and checks every changed reservation against it. Only a clean
plan computed from the current store revision can be committed, and it is
committed in one replacement of the collection.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum

from courtdesk.error_codes import ErrorCode
from courtdesk.exceptions import (
    BookingConflictError,
    InvalidStateTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from courtdesk.models.reservation import PaymentStatus, Reservation
from courtdesk.models.user import Authorizer, Capability, allow_all
from courtdesk.services.booking_service import conflict_message, mark_refunded
from courtdesk.services.conflicts import find_conflict
from courtdesk.services.numbering import DocumentNumberingService
from courtdesk.services.pricing import PricingEngine, validate_interval
from courtdesk.services.results import EXPECTED_ERRORS, BookingResult, reports_failures
from courtdesk.store import BookingStore
from courtdesk.utils.logging_utils import EnhancedLoggerMixin, log_execution

AmendmentResult = BookingResult


class DateMode(str, Enum):
    """How the batch-wide change moves dates."""

    NONE = 'none'
    SHIFT = 'shift'
    FIXED = 'fixed'
    PICK = 'pick'


@dataclass(frozen=True)
class DateChange:
    mode: DateMode = DateMode.NONE
    shift_days: int = 0
    target_dates: tuple[date, ...] = ()
    date: date | None = None

    @classmethod
    def shift(cls, days: int) -> "DateChange":
        return cls(mode=DateMode.SHIFT, shift_days=days)

    @classmethod
    def fixed(cls, day: date) -> "DateChange":
        return cls(mode=DateMode.FIXED, date=day)

    @classmethod
    def pick(cls, days: Sequence[date]) -> "DateChange":
        return cls(mode=DateMode.PICK, target_dates=tuple(days))


@dataclass(frozen=True)
class SlotOverride:
    """Per-reservation values that win over the batch-wide change."""
    date: date | None = None
    court_id: str | None = None
    start_time: float | None = None
    duration: float | None = None


@dataclass(frozen=True)
class GlobalChange:
    """Change applied to every selected reservation."""
    date_change: DateChange = field(default_factory=DateChange)
    court_id: str | None = None
    start_time: float | None = None
    duration: float | None = None


@dataclass(frozen=True)
class AmendmentPlan:
    """Predicted collection after an amendment, or the reason it cannot happen."""
    base_revision: int
    reservations: tuple[Reservation, ...] = ()
    changed_ids: tuple[str, ...] = ()
    error: str | None = None
    error_code: ErrorCode | None = None
    conflict: Reservation | None = None
    conflicting_reservation_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def changed(self) -> list[Reservation]:
        wanted = set(self.changed_ids)
        return [r for r in self.reservations if r.id in wanted]


def map_pick_dates(original_dates: Sequence[date], target_dates: Sequence[date]) -> dict[date, date]:
    """Pair the sorted distinct original dates with the sorted target dates.

    >>> map_pick_dates([date(2024, 1, 2), date(2024, 1, 1)], [date(2024, 2, 5), date(2024, 2, 1)])
    {datetime.date(2024, 1, 1): datetime.date(2024, 2, 1), datetime.date(2024, 1, 2): datetime.date(2024, 2, 5)}

    Raises:
        InvalidStateTransitionError: If the counts differ
    """
    originals = sorted(set(original_dates))
    targets = sorted(target_dates)
    if len(originals) != len(targets):
        raise InvalidStateTransitionError(
            f"Please pick exactly {len(originals)} dates to match the original schedule "
            f"(got {len(targets)})",
            {"original_days": len(originals), "target_days": len(targets)}
        )
    return dict(zip(originals, targets))


class BatchAmendmentEngine(EnhancedLoggerMixin):
    """Moves groups of reservations without ever committing a partial change."""

    def __init__(
        self,
        store: BookingStore,
        numbering: DocumentNumberingService | None = None,
        authorize: Authorizer = allow_all
    ):
        super().__init__()
        self.store = store
        self.numbering = numbering or DocumentNumberingService(store)
        self.pricing = PricingEngine(store)
        self.authorize = authorize
        self.set_log_context(service="batch")

    def _require(self, capability: Capability) -> None:
        if not self.authorize(capability):
            raise PermissionDeniedError(f"Permission denied: {capability.value}", capability.value)

    def _selection(self, ids: Sequence[str]) -> list[Reservation]:
        unique = list(dict.fromkeys(ids))
        if not unique:
            raise ValidationError("No reservations selected")
        return [self.store.get(reservation_id) for reservation_id in unique]

    def _new_date(self, reservation: Reservation, change: DateChange, picked: Mapping[date, date]) -> date:
        if change.mode == DateMode.SHIFT:
            return reservation.date + timedelta(days=change.shift_days)
        if change.mode == DateMode.FIXED and change.date is not None:
            return change.date
        if change.mode == DateMode.PICK:
            return picked[reservation.date]
        return reservation.date

    def _amend(
        self,
        reservation: Reservation,
        change: GlobalChange,
        override: SlotOverride,
        picked: Mapping[date, date]
    ) -> Reservation:
        new_date = override.date or self._new_date(reservation, change.date_change, picked)
        court_id = override.court_id or change.court_id or reservation.court_id
        start_time = next(
            v for v in (override.start_time, change.start_time, reservation.start_time) if v is not None
        )
        duration = next(
            v for v in (override.duration, change.duration, reservation.duration) if v is not None
        )
        validate_interval(start_time, duration)

        amended = reservation.evolve(date=new_date, court_id=court_id, start_time=start_time, duration=duration)
        if (start_time, duration) == (reservation.start_time, reservation.duration):
            return amended

        total = self.pricing.price(start_time, duration)
        paid = reservation.paid_amount
        if reservation.payment_status == PaymentStatus.PARTIAL and paid is not None:
            paid = min(paid, total)
        return amended.evolve(total_amount=total, hourly_rate=self.pricing.base_rate, paid_amount=paid)

    def _plan(
        self,
        ids: Sequence[str],
        change: GlobalChange,
        overrides: Mapping[str, SlotOverride]
    ) -> AmendmentPlan:
        revision = self.store.revision
        selected = self._selection(ids)

        closed = [r.id for r in selected if r.payment_status.is_terminal]
        if closed:
            raise InvalidStateTransitionError(
                "Cancelled or refunded reservations cannot be amended",
                {"reservation_ids": closed}
            )

        picked: dict[date, date] = {}
        if change.date_change.mode == DateMode.PICK:
            picked = map_pick_dates([r.date for r in selected], change.date_change.target_dates)

        amended: dict[str, Reservation] = {}
        for reservation in selected:
            updated = self._amend(reservation, change, overrides.get(reservation.id, SlotOverride()), picked)
            if updated != reservation:
                amended[reservation.id] = updated

        predicted = tuple(amended.get(r.id, r) for r in self.store.reservations)
        for reservation_id, proposed in amended.items():
            conflict = find_conflict(proposed, predicted)
            if conflict is not None:
                raise BookingConflictError(
                    conflict_message(proposed, conflict, self.store.courts),
                    conflict,
                    {"reservation_id": reservation_id}
                )

        return AmendmentPlan(base_revision=revision, reservations=predicted, changed_ids=tuple(amended))

    def plan_amendment(
        self,
        ids: Sequence[str],
        change: GlobalChange,
        overrides: Mapping[str, SlotOverride] | None = None
    ) -> AmendmentPlan:
        """Predict the amended collection without touching the store."""
        try:
            return self._plan(ids, change, overrides or {})
        except EXPECTED_ERRORS as e:
            self.warning(f"Batch amendment rejected: {e.message}", code=e.code.value)
            conflicting_id = None
            if isinstance(e, BookingConflictError) and e.details:
                conflicting_id = e.details.get("reservation_id")
            return AmendmentPlan(
                base_revision=self.store.revision,
                error=e.message,
                error_code=e.code,
                conflict=getattr(e, 'conflict', None),
                conflicting_reservation_id=conflicting_id
            )

    def commit(self, plan: AmendmentPlan) -> AmendmentResult:
        """Apply a clean plan, unless the store moved on since it was computed."""
        if not plan.ok:
            return AmendmentResult.failed(
                plan.error or "Invalid plan",
                plan.error_code or ErrorCode.VALIDATION_FAILED,
                plan.conflict
            )
        if plan.base_revision != self.store.revision:
            self.warning("Stale amendment plan", plan_revision=plan.base_revision, store_revision=self.store.revision)
            return AmendmentResult.failed(
                "Reservations changed since the amendment was planned; plan again",
                ErrorCode.STALE_PLAN
            )

        if plan.changed_ids:
            self.store.replace_reservations(plan.reservations)
        self.info("Committed batch amendment", changed=len(plan.changed_ids), revision=self.store.revision)
        return AmendmentResult.ok(plan.changed)

    @log_execution(level='DEBUG')
    def batch_amend(
        self,
        ids: Sequence[str],
        change: GlobalChange,
        overrides: Mapping[str, SlotOverride] | None = None
    ) -> AmendmentResult:
        """Plan and commit in one step."""
        if not self.authorize(Capability.BATCH_TOOLS):
            self.warning("Batch amendment rejected: permission denied")
            return AmendmentResult.failed(
                f"Permission denied: {Capability.BATCH_TOOLS.value}",
                ErrorCode.PERMISSION_DENIED
            )
        return self.commit(self.plan_amendment(ids, change, overrides))

    @reports_failures("Batch refund")
    def batch_refund(self, ids: Sequence[str]) -> BookingResult:
        """Refund the paid and partially paid reservations in the selection under one voucher."""
        self._require(Capability.BATCH_TOOLS)
        eligible = [r for r in self._selection(ids) if r.payment_status.is_refundable]
        if not eligible:
            raise InvalidStateTransitionError("No refundable bookings selected", {"selected": len(ids)})

        voucher = self.numbering.next_voucher_number()
        refunded = {r.id: mark_refunded(r, voucher) for r in eligible}
        self.store.replace_reservations(refunded.get(r.id, r) for r in self.store.reservations)
        self.info("Batch refunded", count=len(refunded), voucher=voucher)
        return BookingResult.ok(list(refunded.values()), voucher_number=voucher)
