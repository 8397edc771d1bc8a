"""Data maintenance operations."""

from courtdesk.exceptions import PermissionDeniedError
from courtdesk.models.user import Authorizer, Capability, allow_all
from courtdesk.services.results import BookingResult, reports_failures
from courtdesk.store import BookingStore
from courtdesk.utils.logging_utils import EnhancedLoggerMixin


class MaintenanceService(EnhancedLoggerMixin):
    """Housekeeping on the reservation collection."""

    def __init__(self, store: BookingStore, authorize: Authorizer = allow_all):
        super().__init__()
        self.store = store
        self.authorize = authorize
        self.set_log_context(service="maintenance")

    def _require(self, capability: Capability) -> None:
        if not self.authorize(capability):
            raise PermissionDeniedError(f"Permission denied: {capability.value}", capability.value)

    @reports_failures("Re-index")
    def reindex(self) -> BookingResult:
        """Sort reservations by date and start time."""
        self._require(Capability.SYSTEM_MAINTENANCE)
        ordered = sorted(self.store.reservations, key=lambda r: (r.date, r.start_time))
        self.store.replace_reservations(ordered)
        self.info("Re-indexed reservations", count=len(ordered))
        return BookingResult.ok(ordered)

    @reports_failures("Wipe")
    def wipe_reservations(self) -> BookingResult:
        """Delete every reservation. Courts, rates and numbering are kept."""
        self._require(Capability.SYSTEM_MAINTENANCE)
        count = len(self.store.reservations)
        self.store.replace_reservations(())
        self.warning("Wiped all reservations", count=count)
        return BookingResult.ok(count=count)
