"""
Reservation model for the court booking application.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, NamedTuple

from courtdesk.utils.time_utils import from_epoch_millis, parse_date, to_epoch_millis


class PaymentStatus(str, Enum):
    """Payment status of a reservation."""

    PAID = 'Paid'
    UNPAID = 'Unpaid'
    PARTIAL = 'Partial'
    CANCELLED = 'Cancelled'
    REFUNDED = 'Refunded'

    @property
    def is_terminal(self) -> bool:
        return self in (PaymentStatus.CANCELLED, PaymentStatus.REFUNDED)

    @property
    def is_open(self) -> bool:
        return not self.is_terminal

    @property
    def is_refundable(self) -> bool:
        return self in (PaymentStatus.PAID, PaymentStatus.PARTIAL)

    @property
    def takes_payment(self) -> bool:
        """Whether entering this status issues a receipt."""
        return self in (PaymentStatus.PAID, PaymentStatus.PARTIAL)


class Customer(NamedTuple):
    """Customers are identified by their (name, phone) pair."""
    name: str
    phone: str

    @classmethod
    def of(cls, name: str, phone: str) -> "Customer":
        return cls(name.strip(), phone.strip())


@dataclass(frozen=True)
class Reservation:
    """One customer's claim on a court for a date and time interval.

    Instances are immutable; lifecycle operations produce updated copies
    with :meth:`evolve`.
    """
    id: str
    customer_name: str
    phone_number: str
    date: date
    start_time: float
    duration: float
    court_id: str
    payment_status: PaymentStatus
    created_at: datetime
    total_amount: float
    batch_id: str | None = None
    resident_unit_no: str = ""
    notes: str = ""
    payment_date: datetime | None = None
    is_reconciled: bool = False
    hourly_rate: float | None = None
    paid_amount: float | None = None
    receipt_number: str | None = None
    voucher_number: str | None = None
    refund_amount: float | None = None

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    @property
    def customer(self) -> Customer:
        return Customer.of(self.customer_name, self.phone_number)

    @property
    def blocks_slot(self) -> bool:
        """Cancelled and refunded reservations free their slot."""
        return not self.payment_status.is_terminal

    @property
    def collected_amount(self) -> float:
        """Money actually taken for this reservation."""
        if self.payment_status == PaymentStatus.PAID:
            return self.total_amount
        if self.payment_status == PaymentStatus.PARTIAL:
            return self.paid_amount or 0.0
        return 0.0

    @property
    def outstanding_amount(self) -> float:
        """Balance still owed; zero once paid or closed."""
        if self.payment_status == PaymentStatus.UNPAID:
            return self.total_amount
        if self.payment_status == PaymentStatus.PARTIAL:
            return self.total_amount - (self.paid_amount or 0.0)
        return 0.0

    def evolve(self, **changes: Any) -> "Reservation":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the persisted JSON layout."""
        data: dict[str, Any] = {
            'id': self.id,
            'batchId': self.batch_id,
            'customerName': self.customer_name,
            'phoneNumber': self.phone_number,
            'residentUnitNo': self.resident_unit_no,
            'date': self.date.isoformat(),
            'startTime': self.start_time,
            'duration': self.duration,
            'courtId': self.court_id,
            'paymentStatus': self.payment_status.value,
            'notes': self.notes,
            'createdAt': to_epoch_millis(self.created_at),
            'paymentDate': to_epoch_millis(self.payment_date),
            'isReconciled': self.is_reconciled,
            'hourlyRate': self.hourly_rate,
            'totalAmount': self.total_amount,
            'paidAmount': self.paid_amount,
            'receiptNumber': self.receipt_number,
            'voucherNumber': self.voucher_number,
            'refundAmount': self.refund_amount,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Reservation":
        """Load from the persisted JSON layout."""
        created_at = from_epoch_millis(data.get('createdAt')) or datetime.fromtimestamp(0)
        paid_amount = data.get('paidAmount')
        hourly_rate = data.get('hourlyRate')
        refund_amount = data.get('refundAmount')
        return cls(
            id=str(data['id']),
            batch_id=data.get('batchId'),
            customer_name=data.get('customerName', ''),
            phone_number=data.get('phoneNumber', ''),
            resident_unit_no=data.get('residentUnitNo', '') or '',
            date=parse_date(data['date']),
            start_time=float(data['startTime']),
            duration=float(data['duration']),
            court_id=data['courtId'],
            payment_status=PaymentStatus(data.get('paymentStatus', PaymentStatus.UNPAID.value)),
            notes=data.get('notes', '') or '',
            created_at=created_at,
            payment_date=from_epoch_millis(data.get('paymentDate')),
            is_reconciled=bool(data.get('isReconciled', False)),
            hourly_rate=float(hourly_rate) if hourly_rate is not None else None,
            total_amount=float(data.get('totalAmount', 0)),
            paid_amount=float(paid_amount) if paid_amount is not None else None,
            receipt_number=data.get('receiptNumber'),
            voucher_number=data.get('voucherNumber'),
            refund_amount=float(refund_amount) if refund_amount is not None else None,
        )


@dataclass(frozen=True)
class Slot:
    """Court occupancy independent of the date it is applied to."""
    court_id: str
    start_time: float
    duration: float

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


@dataclass
class BookingRequest:
    """Operator submission for creating or editing reservations.

    ``dates`` x ``slots`` expands into one reservation per pair.
    ``paid_amount`` is the total money handed over when the status is
    PARTIAL.
    """
    customer_name: str
    phone_number: str
    dates: list[date]
    slots: list[Slot]
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    resident_unit_no: str = ""
    notes: str = ""
    paid_amount: float | None = None
