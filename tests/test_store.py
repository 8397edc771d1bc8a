"""Tests for the reservation store and its persistence."""

import json

import pytest

from courtdesk.config.types import AppConfig
from courtdesk.error_codes import ErrorCode
from courtdesk.exceptions import ReservationNotFoundError, StoreError
from courtdesk.models.promotion import PromotionRule
from courtdesk.store import BookingStore, JsonBlobBackend, MemoryBackend


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        global_config={},
        data_dir=str(tmp_path / 'data'),
        currency='PHP',
        base_hourly_rate=250.0,
        courts=[{'id': 'A', 'name': 'Court A'}],
        promotion_rules=[{'name': 'Night', 'start_time': 18, 'end_time': 22, 'rate': 300}],
        document_settings={'receipt_prefix': 'R-', 'receipt_next_number': 1},
        company={'name': 'Riverside Courts', 'phone': '555-9000', 'unknown_key': 'ignored'},
    )


class TestJsonBlobBackend:

    def test_round_trip(self, tmp_path):
        backend = JsonBlobBackend(tmp_path / 'data')

        backend.save('courts', [{'id': 'A'}])

        assert backend.load('courts') == [{'id': 'A'}]
        assert json.loads((tmp_path / 'data' / 'courts.json').read_text()) == [{'id': 'A'}]
        assert list((tmp_path / 'data').glob('*.tmp')) == []

    def test_missing_key_returns_default(self, tmp_path):
        assert JsonBlobBackend(tmp_path).load('reservations', []) == []

    def test_corrupt_file_raises(self, tmp_path):
        (tmp_path / 'reservations.json').write_text('{not json')

        with pytest.raises(StoreError) as exc_info:
            JsonBlobBackend(tmp_path).load('reservations')

        assert exc_info.value.code == ErrorCode.STORE_READ_FAILED
        assert exc_info.value.details['key'] == 'reservations'


class TestFromConfig:

    def test_fresh_directory_uses_config(self, app_config):
        store = BookingStore.from_config(app_config)

        assert [c.name for c in store.courts] == ['Court A']
        assert store.base_hourly_rate() == 250.0
        assert store.currency == 'PHP'
        assert store.list_promotion_rules()[0] == PromotionRule('promo-1', 'Night', 18.0, 22.0, 300.0)
        assert store.company_profile.name == 'Riverside Courts'
        assert store.document_settings.receipt_prefix == 'R-'
        assert store.document_settings.receipt_next_number == 1
        assert store.document_settings.voucher_prefix == 'PV-'

    def test_persisted_state_wins(self, app_config, make_reservation):
        store = BookingStore.from_config(app_config)
        store.replace_reservations([make_reservation('r1', court='A')])
        store.set_base_rate(275.0)
        store.set_promotion_rules([])

        reloaded = BookingStore.from_config(app_config)

        assert reloaded.reservations == store.reservations
        assert reloaded.base_hourly_rate() == 275.0
        assert reloaded.list_promotion_rules() == []
        assert reloaded.revision == 0


def test_replace_bumps_revision(store, make_reservation):
    store.replace_reservations([make_reservation('r1')])
    store.replace_reservations([])

    assert store.revision == 2
    assert store.reservations == ()


def test_duplicate_ids_rejected(store, make_reservation):
    with pytest.raises(StoreError):
        store.replace_reservations([make_reservation('r1'), make_reservation('r1', start=14)])

    assert store.revision == 0


def test_get_and_find(store, seed, make_reservation):
    held, = seed(make_reservation('r1'))

    assert store.get('r1') == held
    assert store.find('nope') is None
    with pytest.raises(ReservationNotFoundError):
        store.get('nope')


def test_failed_save_keeps_previous_collection(store, make_reservation, monkeypatch):
    def broken_save(key, value):
        raise StoreError("disk full")

    monkeypatch.setattr(store.backend, 'save', broken_save)

    with pytest.raises(StoreError):
        store.replace_reservations([make_reservation('r1')])

    assert store.reservations == ()
    assert store.revision == 0


@pytest.mark.parametrize("rate", [0, -5])
def test_base_rate_must_be_positive(store, rate):
    with pytest.raises(StoreError):
        store.set_base_rate(rate)
    assert store.base_hourly_rate() == 20.0


def test_memory_backend_stores_copies():
    backend = MemoryBackend()
    value = {'receiptNextNumber': 1}

    backend.save('company_profile', value)
    value['receiptNextNumber'] = 2

    assert backend.load('company_profile') == {'receiptNextNumber': 1}
