"""
Read-only views over the reservation collection.

These feed the report and settlement screens: who owes what, what cash was
taken on a day, sales per day and month, and refunds issued. Nothing here
mutates the store.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from courtdesk.models.reservation import Customer, PaymentStatus, Reservation


def _chronological(reservations: Iterable[Reservation]) -> list[Reservation]:
    return sorted(reservations, key=lambda r: (r.date, r.start_time))


def _in_range(r: Reservation, start: date | None, end: date | None) -> bool:
    return (start is None or r.date >= start) and (end is None or r.date <= end)


def _month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


@dataclass
class CustomerEntry:
    customer: Customer
    batch_ids: set[str] = field(default_factory=set)


@dataclass
class OutstandingStatement:
    customer: Customer
    reservations: list[Reservation]

    @property
    def total_due(self) -> float:
        return round(sum(r.outstanding_amount for r in self.reservations), 2)


@dataclass
class CashCollection:
    day: date
    reservations: list[Reservation]

    @property
    def system_total(self) -> float:
        return round(sum(r.collected_amount for r in self.reservations), 2)


@dataclass
class SalesSummary:
    """Totals for the open and paid reservations of a period."""
    label: str
    bookings: int = 0
    hours: float = 0.0
    billed: float = 0.0
    collected: float = 0.0
    outstanding: float = 0.0
    cancelled: int = 0
    refunded: int = 0
    by_court: dict[str, float] = field(default_factory=dict)

    def add(self, reservation: Reservation) -> None:
        if reservation.payment_status == PaymentStatus.CANCELLED:
            self.cancelled += 1
            return
        if reservation.payment_status == PaymentStatus.REFUNDED:
            self.refunded += 1
            return
        self.bookings += 1
        self.hours += reservation.duration
        self.billed = round(self.billed + reservation.total_amount, 2)
        self.collected = round(self.collected + reservation.collected_amount, 2)
        self.outstanding = round(self.outstanding + reservation.outstanding_amount, 2)
        self.by_court[reservation.court_id] = round(
            self.by_court.get(reservation.court_id, 0.0) + reservation.total_amount, 2
        )


@dataclass
class RefundReport:
    reservations: list[Reservation]

    @property
    def total_refunded(self) -> float:
        return round(sum(r.refund_amount or 0.0 for r in self.reservations), 2)

    @property
    def vouchers(self) -> list[str]:
        return sorted({r.voucher_number for r in self.reservations if r.voucher_number})


def customer_directory(reservations: Iterable[Reservation]) -> list[CustomerEntry]:
    """Distinct customers by trimmed (name, phone), sorted by name."""
    entries: dict[Customer, CustomerEntry] = {}
    for r in reservations:
        entry = entries.setdefault(r.customer, CustomerEntry(r.customer))
        if r.batch_id:
            entry.batch_ids.add(r.batch_id)
    return sorted(entries.values(), key=lambda e: (e.customer.name.lower(), e.customer.phone))


def search_customers(reservations: Iterable[Reservation], term: str) -> list[CustomerEntry]:
    """Match on name, phone or any batch id, case-insensitively."""
    needle = term.strip().lower()
    return [
        e for e in customer_directory(reservations)
        if needle in e.customer.name.lower()
        or needle in e.customer.phone.lower()
        or any(needle in batch_id.lower() for batch_id in e.batch_ids)
    ]


def outstanding_for(
    reservations: Iterable[Reservation],
    customer: Customer,
    month: str | None = None
) -> OutstandingStatement:
    """Unpaid and partial reservations of one customer, optionally within a ``YYYY-MM`` month."""
    owed = [
        r for r in reservations
        if r.customer == customer
        and r.payment_status in (PaymentStatus.UNPAID, PaymentStatus.PARTIAL)
        and (month is None or _month_key(r.date) == month)
    ]
    return OutstandingStatement(customer, _chronological(owed))


def cash_collection(reservations: Iterable[Reservation], day: date) -> CashCollection:
    """Payments taken on ``day`` that have not been reconciled yet."""
    def collected_on_day(r: Reservation) -> bool:
        if r.payment_status == PaymentStatus.PARTIAL and not (r.paid_amount or 0) > 0:
            return False
        stamp = r.payment_date or r.created_at
        return stamp.date() == day

    items = [
        r for r in reservations
        if r.payment_status.takes_payment and not r.is_reconciled and collected_on_day(r)
    ]
    items.sort(key=lambda r: r.payment_date or r.created_at)
    return CashCollection(day, items)


def daily_summary(reservations: Iterable[Reservation], day: date) -> SalesSummary:
    summary = SalesSummary(day.isoformat())
    for r in reservations:
        if r.date == day:
            summary.add(r)
    return summary


def monthly_summary(reservations: Iterable[Reservation], month: str) -> list[SalesSummary]:
    """One summary per booked day of the month plus a trailing month total."""
    days: dict[date, SalesSummary] = defaultdict(lambda: SalesSummary(""))
    total = SalesSummary(month)
    for r in reservations:
        if _month_key(r.date) != month:
            continue
        days[r.date].add(r)
        total.add(r)
    rows = []
    for day in sorted(days):
        days[day].label = day.isoformat()
        rows.append(days[day])
    rows.append(total)
    return rows


def refund_report(
    reservations: Iterable[Reservation],
    customer: Customer | None = None,
    start: date | None = None,
    end: date | None = None
) -> RefundReport:
    refunded = [
        r for r in reservations
        if r.payment_status == PaymentStatus.REFUNDED
        and (customer is None or r.customer == customer)
        and _in_range(r, start, end)
    ]
    return RefundReport(_chronological(refunded))


def customer_history(
    reservations: Iterable[Reservation],
    customer: Customer,
    start: date | None = None,
    end: date | None = None
) -> list[Reservation]:
    """Every reservation of a customer in date order, whatever its status."""
    return _chronological(r for r in reservations if r.customer == customer and _in_range(r, start, end))
