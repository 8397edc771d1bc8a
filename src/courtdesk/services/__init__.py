"""Service implementations."""

from .batch_amendment import BatchAmendmentEngine
from .booking_service import BookingService
from .maintenance import MaintenanceService
from .numbering import DocumentNumberingService
from .pricing import PricingEngine


__all__ = [
    'BatchAmendmentEngine',
    'BookingService',
    'DocumentNumberingService',
    'MaintenanceService',
    'PricingEngine',
]
