"""Pytest configuration and shared fixtures."""

import itertools
from datetime import date, datetime

import pytest

from courtdesk.config import error_aggregator
from courtdesk.config.settings import ConfigurationManager
from courtdesk.desk import BookingDesk
from courtdesk.models.court import Court
from courtdesk.models.reservation import PaymentStatus, Reservation
from courtdesk.store import BookingStore

FIXED_NOW = datetime(2024, 1, 1, 9, 0)
DAY = date(2024, 1, 1)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path):
    """Isolate configuration and error aggregation per test."""
    for var in ('COURTDESK_DATA_DIR', 'COURTDESK_CURRENCY', 'COURTDESK_BASE_RATE',
                'COURTDESK_LOG_LEVEL', 'COURTDESK_LOG_FILE'):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("COURTDESK_CONFIG_DIR", str(tmp_path))
    monkeypatch.setattr(ConfigurationManager, "_instance", None)
    monkeypatch.setattr(error_aggregator, "_error_aggregator", None)
    yield


@pytest.fixture
def courts():
    return [Court('Court 1', 'Court 1'), Court('Court 2', 'Court 2')]


@pytest.fixture
def store(courts):
    """In-memory store at 20/hr with no promotions."""
    return BookingStore(courts=courts, base_rate=20.0)


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"res-{next(counter)}"


@pytest.fixture
def desk(store, id_factory):
    return BookingDesk.create(store, clock=lambda: FIXED_NOW, id_factory=id_factory)


@pytest.fixture
def make_reservation():
    """Build a reservation with sensible defaults for the fields a test does not care about."""
    def _make(
        reservation_id,
        day=DAY,
        start=10.0,
        duration=2.0,
        court='Court 1',
        status=PaymentStatus.UNPAID,
        total=None,
        **kwargs
    ):
        kwargs.setdefault('customer_name', 'Alice')
        kwargs.setdefault('phone_number', '555-0100')
        return Reservation(
            id=reservation_id,
            date=day,
            start_time=start,
            duration=duration,
            court_id=court,
            payment_status=status,
            created_at=FIXED_NOW,
            total_amount=total if total is not None else duration * 20,
            **kwargs
        )
    return _make


@pytest.fixture
def seed(store):
    """Add reservations to the store, bypassing the booking rules."""
    def _seed(*reservations):
        store.replace_reservations([*store.reservations, *reservations])
        return list(reservations)
    return _seed
