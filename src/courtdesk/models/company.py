"""Company profile and document numbering settings."""

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class DocumentSettings:
    """Prefixes and next sequence values for receipts and vouchers."""
    receipt_prefix: str = 'OR-'
    receipt_next_number: int = 1000
    voucher_prefix: str = 'PV-'
    voucher_next_number: int = 5000

    def to_dict(self) -> dict[str, Any]:
        return {
            'receiptPrefix': self.receipt_prefix,
            'receiptNextNumber': self.receipt_next_number,
            'voucherPrefix': self.voucher_prefix,
            'voucherNextNumber': self.voucher_next_number,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DocumentSettings":
        data = data or {}
        defaults = cls()
        return cls(
            receipt_prefix=data.get('receiptPrefix') or defaults.receipt_prefix,
            receipt_next_number=int(data.get('receiptNextNumber') or defaults.receipt_next_number),
            voucher_prefix=data.get('voucherPrefix') or defaults.voucher_prefix,
            voucher_next_number=int(data.get('voucherNextNumber') or defaults.voucher_next_number),
        )

    @classmethod
    def from_config(cls, data: dict[str, Any] | None) -> "DocumentSettings":
        data = data or {}
        return replace(cls(), **{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class CompanyProfile:
    """Venue details printed on receipts and reports."""
    name: str = 'Court Booking'
    address: str = ''
    phone: str = ''
    document_settings: DocumentSettings = field(default_factory=DocumentSettings)
    date_format: str = 'YYYY-MM-DD'
    time_format: str = '24h'
    footer_message: str = ''

    def to_dict(self) -> dict[str, Any]:
        return {
            'name': self.name,
            'address': self.address,
            'phone': self.phone,
            'documentSettings': self.document_settings.to_dict(),
            'dateFormat': self.date_format,
            'timeFormat': self.time_format,
            'footerMessage': self.footer_message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "CompanyProfile":
        data = data or {}
        defaults = cls()
        return cls(
            name=data.get('name', defaults.name),
            address=data.get('address', ''),
            phone=data.get('phone', ''),
            document_settings=DocumentSettings.from_dict(data.get('documentSettings')),
            date_format=data.get('dateFormat', defaults.date_format),
            time_format=data.get('timeFormat', defaults.time_format),
            footer_message=data.get('footerMessage', ''),
        )
