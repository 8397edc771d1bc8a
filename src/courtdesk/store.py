"""
Reservation store and its JSON persistence.

The store owns the live reservation collection, the court list, the rate
schedule and the company profile. Every successful mutation replaces the
reservation tuple wholesale and bumps ``revision`` so that precomputed
amendment plans can detect that they are stale.
"""

import json
import os
import tempfile
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path
from typing import Any, Protocol

from courtdesk.config.types import AppConfig
from courtdesk.error_codes import ErrorCode
from courtdesk.exceptions import ReservationNotFoundError, StoreError, handle_errors
from courtdesk.models.company import CompanyProfile, DocumentSettings
from courtdesk.models.court import Court
from courtdesk.models.promotion import PromotionRule
from courtdesk.models.reservation import Reservation
from courtdesk.utils.logging_utils import EnhancedLoggerMixin

RESERVATIONS_KEY = 'reservations'
COURTS_KEY = 'courts'
PROMOTIONS_KEY = 'promotion_rules'
SETTINGS_KEY = 'settings'
COMPANY_KEY = 'company_profile'


class StorageBackend(Protocol):
    """Key/value persistence of JSON-compatible blobs."""

    def load(self, key: str, default: Any = None) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...


class MemoryBackend:
    """Keeps blobs in a dict. Used when no data directory is configured."""

    def __init__(self, blobs: dict[str, Any] | None = None):
        self.blobs: dict[str, Any] = dict(blobs or {})

    def load(self, key: str, default: Any = None) -> Any:
        return json.loads(self.blobs[key]) if key in self.blobs else default

    def save(self, key: str, value: Any) -> None:
        self.blobs[key] = json.dumps(value)


class JsonBlobBackend(EnhancedLoggerMixin):
    """One JSON file per collection inside ``data_dir``."""

    def __init__(self, data_dir: str | Path):
        super().__init__()
        self.data_dir = Path(data_dir)
        self.set_log_context(service="store", data_dir=str(self.data_dir))

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def load(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            self.debug("No stored blob, using default", key=key)
            return default

        with handle_errors(StoreError, "store", f"load {key}"):
            try:
                with open(path, encoding='utf-8') as f:
                    return json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise StoreError(
                    f"Failed to read {path}: {e}",
                    ErrorCode.STORE_READ_FAILED,
                    {"key": key, "path": str(path)}
                ) from e

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        with handle_errors(StoreError, "store", f"save {key}"):
            try:
                self.data_dir.mkdir(parents=True, exist_ok=True)
                # Write next to the target and swap so readers never see half a file
                fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix='.tmp')
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(value, f, indent=2)
                os.replace(tmp_name, path)
            except OSError as e:
                raise StoreError(
                    f"Failed to write {path}: {e}",
                    ErrorCode.STORE_WRITE_FAILED,
                    {"key": key, "path": str(path)}
                ) from e
        self.debug("Saved blob", key=key)


class BookingStore(EnhancedLoggerMixin):
    """Single source of truth for reservations and their rate schedule."""

    def __init__(
        self,
        reservations: Iterable[Reservation] = (),
        courts: Iterable[Court] = (),
        promotion_rules: Iterable[PromotionRule] = (),
        base_rate: float = 20.0,
        company: CompanyProfile | None = None,
        currency: str = 'USD',
        backend: StorageBackend | None = None
    ):
        super().__init__()
        self._reservations: tuple[Reservation, ...] = tuple(reservations)
        self._courts: tuple[Court, ...] = tuple(courts)
        self._promotion_rules: tuple[PromotionRule, ...] = tuple(promotion_rules)
        self._base_rate = base_rate
        self._company = company or CompanyProfile()
        self.currency = currency
        self.backend: StorageBackend = backend or MemoryBackend()
        self.revision = 0
        self.set_log_context(service="store")

    @classmethod
    def from_config(cls, config: AppConfig, backend: StorageBackend | None = None) -> "BookingStore":
        """Build a store from configuration, preferring previously persisted state.

        Configured courts, rates and company details act as defaults for a
        fresh data directory. Once the store has saved its own copy, that
        copy wins.
        """
        if backend is None:
            backend = JsonBlobBackend(config.data_dir)

        courts = backend.load(COURTS_KEY)
        if courts is None:
            courts = [dict(c) for c in config.courts]
        promotions = backend.load(PROMOTIONS_KEY)
        if promotions is None:
            promotions = [
                PromotionRule.from_config(dict(p), i).to_dict()
                for i, p in enumerate(config.promotion_rules)
            ]
        settings = backend.load(SETTINGS_KEY) or {}
        company = backend.load(COMPANY_KEY)
        if company is None:
            fields = CompanyProfile.__dataclass_fields__
            company_profile = CompanyProfile(
                **{k: v for k, v in dict(config.company).items() if k in fields and k != 'document_settings'},
                document_settings=DocumentSettings.from_config(dict(config.document_settings))
            )
        else:
            company_profile = CompanyProfile.from_dict(company)

        store = cls(
            reservations=[Reservation.from_dict(r) for r in backend.load(RESERVATIONS_KEY, [])],
            courts=[Court.from_dict(c) for c in courts],
            promotion_rules=[PromotionRule.from_dict(p) for p in promotions],
            base_rate=float(settings.get('hourlyRate', config.base_hourly_rate)),
            company=company_profile,
            currency=settings.get('currencyCode', config.currency),
            backend=backend
        )
        store.info("Loaded store", reservations=len(store.reservations), courts=len(store.courts))
        return store

    # Read side

    @property
    def reservations(self) -> tuple[Reservation, ...]:
        return self._reservations

    @property
    def courts(self) -> tuple[Court, ...]:
        return self._courts

    @property
    def company_profile(self) -> CompanyProfile:
        return self._company

    @property
    def document_settings(self) -> DocumentSettings:
        return self._company.document_settings

    def list_courts(self) -> list[Court]:
        return list(self._courts)

    def list_promotion_rules(self) -> list[PromotionRule]:
        return list(self._promotion_rules)

    def base_hourly_rate(self) -> float:
        return self._base_rate

    def find(self, reservation_id: str) -> Reservation | None:
        for reservation in self._reservations:
            if reservation.id == reservation_id:
                return reservation
        return None

    def get(self, reservation_id: str) -> Reservation:
        """Look up a reservation.

        Raises:
            ReservationNotFoundError: If the id is unknown
        """
        reservation = self.find(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    def snapshot(self) -> dict[str, Any]:
        """Full serialisable state, used to compare before and after a failed call."""
        return {
            RESERVATIONS_KEY: [r.to_dict() for r in self._reservations],
            COURTS_KEY: [c.to_dict() for c in self._courts],
            PROMOTIONS_KEY: [p.to_dict() for p in self._promotion_rules],
            SETTINGS_KEY: self._settings_blob(),
            COMPANY_KEY: self._company.to_dict(),
        }

    # Write side

    def replace_reservations(self, reservations: Iterable[Reservation]) -> tuple[Reservation, ...]:
        """Swap in a new reservation collection and persist it."""
        new = tuple(reservations)
        ids = [r.id for r in new]
        if len(ids) != len(set(ids)):
            raise StoreError(
                "Refusing to store duplicate reservation ids",
                ErrorCode.VALIDATION_FAILED,
                {"count": len(ids)}
            )
        self.backend.save(RESERVATIONS_KEY, [r.to_dict() for r in new])
        self._reservations = new
        self.revision += 1
        self.debug("Replaced reservations", count=len(new), revision=self.revision)
        return new

    def update_document_settings(self, settings: DocumentSettings) -> None:
        company = replace(self._company, document_settings=settings)
        self.backend.save(COMPANY_KEY, company.to_dict())
        self._company = company

    def update_company_profile(self, company: CompanyProfile) -> None:
        self.backend.save(COMPANY_KEY, company.to_dict())
        self._company = company

    def set_courts(self, courts: Iterable[Court]) -> None:
        courts = tuple(courts)
        self.backend.save(COURTS_KEY, [c.to_dict() for c in courts])
        self._courts = courts

    def set_promotion_rules(self, rules: Iterable[PromotionRule]) -> None:
        rules = tuple(rules)
        self.backend.save(PROMOTIONS_KEY, [r.to_dict() for r in rules])
        self._promotion_rules = rules

    def set_base_rate(self, rate: float) -> None:
        if rate <= 0:
            raise StoreError("Hourly rate must be positive", ErrorCode.VALIDATION_FAILED, {"rate": rate})
        self._base_rate = rate
        self.backend.save(SETTINGS_KEY, self._settings_blob())

    def _settings_blob(self) -> dict[str, Any]:
        return {'hourlyRate': self._base_rate, 'currencyCode': self.currency}
