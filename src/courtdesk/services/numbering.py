"""Receipt and payment voucher numbering."""

from dataclasses import replace

from courtdesk.store import BookingStore
from courtdesk.utils.logging_utils import EnhancedLoggerMixin


class DocumentNumberingService(EnhancedLoggerMixin):
    """Issues strictly increasing document numbers.

    Each call returns ``prefix + counter`` and persists the incremented
    counter before returning, so a number handed out is never reissued.
    Callers only ask for a number once the operation it belongs to has
    passed validation.
    """

    def __init__(self, store: BookingStore):
        super().__init__()
        self.store = store
        self.set_log_context(service="numbering")

    def peek_receipt_number(self) -> str:
        settings = self.store.document_settings
        return f"{settings.receipt_prefix}{settings.receipt_next_number}"

    def peek_voucher_number(self) -> str:
        settings = self.store.document_settings
        return f"{settings.voucher_prefix}{settings.voucher_next_number}"

    def next_receipt_number(self) -> str:
        number = self.peek_receipt_number()
        settings = self.store.document_settings
        self.store.update_document_settings(
            replace(settings, receipt_next_number=settings.receipt_next_number + 1)
        )
        self.info("Issued receipt number", number=number)
        return number

    def next_voucher_number(self) -> str:
        number = self.peek_voucher_number()
        settings = self.store.document_settings
        self.store.update_document_settings(
            replace(settings, voucher_next_number=settings.voucher_next_number + 1)
        )
        self.info("Issued voucher number", number=number)
        return number
