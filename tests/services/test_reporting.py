"""Tests for read-only reporting views."""

from datetime import date, datetime

import pytest

from courtdesk.models.reservation import Customer, PaymentStatus
from courtdesk.services import reporting

from conftest import DAY, FIXED_NOW

ALICE = Customer('Alice', '555-0100')
BOB = Customer('Bob', '555-0200')


@pytest.fixture
def ledger(make_reservation):
    """A small month of mixed activity for two customers."""
    bob = {'customer_name': 'Bob', 'phone_number': '555-0200'}
    return [
        make_reservation('a1', batch_id='BID-AAA111'),
        make_reservation('a2', day=date(2024, 1, 2), status=PaymentStatus.PARTIAL, paid_amount=15.0,
                         batch_id='BID-AAA111', payment_date=datetime(2024, 1, 2, 10, 0)),
        make_reservation('a3', day=date(2024, 2, 1)),
        make_reservation('b1', court='Court 2', status=PaymentStatus.PAID, payment_date=FIXED_NOW, **bob),
        make_reservation('b2', start=14, status=PaymentStatus.CANCELLED, **bob),
        make_reservation('b3', start=16, status=PaymentStatus.REFUNDED, refund_amount=40.0,
                         voucher_number='PV-5000', **bob),
    ]


def test_customer_directory_dedupes_on_trimmed_identity(make_reservation):
    reservations = [
        make_reservation('r1', customer_name=' Alice ', batch_id='BID-1'),
        make_reservation('r2', customer_name='Alice', phone_number='555-0100 ', batch_id='BID-2'),
        make_reservation('r3', customer_name='aaron', phone_number='1'),
    ]

    directory = reporting.customer_directory(reservations)

    assert [e.customer for e in directory] == [Customer('aaron', '1'), ALICE]
    assert directory[1].batch_ids == {'BID-1', 'BID-2'}


@pytest.mark.parametrize("term,expected", [
    ('bob', [BOB]),
    ('0100', [ALICE]),
    ('aaa111', [ALICE]),
    ('555', [ALICE, BOB]),
    ('nobody', []),
])
def test_search_customers(ledger, term, expected):
    assert [e.customer for e in reporting.search_customers(ledger, term)] == expected


def test_outstanding_balance(ledger):
    statement = reporting.outstanding_for(ledger, ALICE)

    assert [r.id for r in statement.reservations] == ['a1', 'a2', 'a3']
    assert statement.total_due == 40 + 25 + 40

    january = reporting.outstanding_for(ledger, ALICE, month='2024-01')
    assert january.total_due == 65
    assert reporting.outstanding_for(ledger, BOB).reservations == []


def test_cash_collection_for_day(ledger, make_reservation):
    extra = [
        make_reservation('counted', status=PaymentStatus.PAID, payment_date=FIXED_NOW, is_reconciled=True),
        make_reservation('nothing', status=PaymentStatus.PARTIAL, paid_amount=0.0),
        make_reservation('no-stamp', status=PaymentStatus.PAID),
    ]

    cash = reporting.cash_collection(ledger + extra, DAY)

    assert [r.id for r in cash.reservations] == ['b1', 'no-stamp']
    assert cash.system_total == 80
    assert [r.id for r in reporting.cash_collection(ledger, date(2024, 1, 2)).reservations] == ['a2']


def test_daily_summary(ledger):
    summary = reporting.daily_summary(ledger, DAY)

    assert summary.bookings == 2
    assert summary.hours == 4
    assert summary.billed == 80
    assert summary.collected == 40
    assert summary.outstanding == 40
    assert (summary.cancelled, summary.refunded) == (1, 1)
    assert summary.by_court == {'Court 1': 40, 'Court 2': 40}


def test_monthly_summary_rows_and_total(ledger):
    rows = reporting.monthly_summary(ledger, '2024-01')

    assert [row.label for row in rows] == ['2024-01-01', '2024-01-02', '2024-01']
    total = rows[-1]
    assert total.bookings == 3
    assert total.billed == 120
    assert total.collected == 55
    assert total.outstanding == 65


def test_refund_report(ledger):
    report = reporting.refund_report(ledger)

    assert [r.id for r in report.reservations] == ['b3']
    assert report.total_refunded == 40
    assert report.vouchers == ['PV-5000']
    assert reporting.refund_report(ledger, customer=ALICE).reservations == []
    assert reporting.refund_report(ledger, start=date(2024, 1, 2)).reservations == []


def test_customer_history_includes_every_status(ledger):
    history = reporting.customer_history(ledger, BOB)

    assert [r.id for r in history] == ['b1', 'b2', 'b3']
    assert reporting.customer_history(ledger, ALICE, end=DAY)[0].id == 'a1'
