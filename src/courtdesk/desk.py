"""Wiring of the store and services behind one operator session."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from courtdesk.config.types import AppConfig
from courtdesk.models.user import Authorizer, User, allow_all, authorizer_for
from courtdesk.services.batch_amendment import BatchAmendmentEngine
from courtdesk.services.booking_service import BookingService
from courtdesk.services.maintenance import MaintenanceService
from courtdesk.services.numbering import DocumentNumberingService
from courtdesk.services.pricing import PricingEngine
from courtdesk.store import BookingStore, StorageBackend


@dataclass
class BookingDesk:
    store: BookingStore
    numbering: DocumentNumberingService
    pricing: PricingEngine
    bookings: BookingService
    batch: BatchAmendmentEngine
    maintenance: MaintenanceService
    operator: User | None = None

    @classmethod
    def create(
        cls,
        store: BookingStore,
        authorize: Authorizer = allow_all,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] | None = None,
        operator: User | None = None
    ) -> "BookingDesk":
        numbering = DocumentNumberingService(store)
        return cls(
            store=store,
            numbering=numbering,
            pricing=PricingEngine(store),
            bookings=BookingService(store, numbering, authorize=authorize, clock=clock, id_factory=id_factory),
            batch=BatchAmendmentEngine(store, numbering, authorize=authorize),
            maintenance=MaintenanceService(store, authorize=authorize),
            operator=operator
        )

    @classmethod
    def from_config(cls, config: AppConfig, backend: StorageBackend | None = None) -> "BookingDesk":
        """Open the configured data directory as the configured operator.

        Raises:
            ValueError: If the operator lists an unknown permission
        """
        operator = User.from_config(dict(config.operator))
        store = BookingStore.from_config(config, backend)
        return cls.create(store, authorize=authorizer_for(operator), operator=operator)
