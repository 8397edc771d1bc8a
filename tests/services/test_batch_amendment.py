"""Tests for batch amendment and batch refund."""

from datetime import date, timedelta
from typing import get_args, get_type_hints

import pytest

from courtdesk.error_codes import ErrorCode
from courtdesk.exceptions import InvalidStateTransitionError
from courtdesk.models.promotion import PromotionRule
from courtdesk.models.reservation import PaymentStatus
from courtdesk.services.batch_amendment import (
    BatchAmendmentEngine,
    DateChange,
    GlobalChange,
    SlotOverride,
    map_pick_dates,
)

from conftest import DAY

MON, WED, FRI = date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 5)


@pytest.fixture
def engine(desk):
    return desk.batch


@pytest.fixture
def weekly(seed, make_reservation):
    """Monday, Wednesday and Friday at 10:00 on Court 1."""
    return seed(*[make_reservation(f"r{i}", day=day) for i, day in enumerate((MON, WED, FRI), 1)])


class TestDateModes:

    def test_pick_maps_sorted_dates(self, engine, store, weekly):
        targets = [date(2024, 1, 12), date(2024, 1, 8), date(2024, 1, 10)]

        result = engine.batch_amend(['r3', 'r1', 'r2'], GlobalChange(DateChange.pick(targets)))

        assert result.success
        assert [store.get(f"r{i}").date for i in (1, 2, 3)] == [
            date(2024, 1, 8), date(2024, 1, 10), date(2024, 1, 12)
        ]

    def test_pick_count_mismatch_fails(self, engine, store, weekly):
        before = store.snapshot()

        plan = engine.plan_amendment(['r1', 'r2', 'r3'], GlobalChange(DateChange.pick([date(2024, 1, 8)])))

        assert not plan.ok
        assert plan.error_code == ErrorCode.INVALID_STATE_TRANSITION
        assert 'exactly 3 dates' in plan.error
        assert store.snapshot() == before

    def test_shift_moves_every_date(self, engine, store, weekly):
        result = engine.batch_amend(['r1', 'r2', 'r3'], GlobalChange(DateChange.shift(7)))

        assert result.count == 3
        assert [r.date for r in store.reservations] == [d + timedelta(days=7) for d in (MON, WED, FRI)]

    def test_fixed_moves_to_one_day(self, engine, store, seed, make_reservation):
        seed(make_reservation('a', day=MON, start=10), make_reservation('b', day=WED, start=14))

        result = engine.batch_amend(['a', 'b'], GlobalChange(DateChange.fixed(FRI)))

        assert result.success
        assert {r.date for r in store.reservations} == {FRI}

    def test_no_change_commits_nothing(self, engine, store, weekly):
        revision = store.revision

        result = engine.batch_amend(['r1', 'r2'], GlobalChange())

        assert result.success
        assert result.count == 0
        assert store.revision == revision


def test_pick_dates_pair_after_sorting(engine, store, seed, make_reservation):
    seed(*[make_reservation(f"d{day}", day=date(2024, 1, day)) for day in (1, 2, 3)])
    targets = [date(2024, 2, 5), date(2024, 2, 1), date(2024, 2, 10)]

    result = engine.batch_amend(['d1', 'd2', 'd3'], GlobalChange(DateChange.pick(targets)))

    assert result.success
    assert {r.id: r.date for r in store.reservations} == {
        'd1': date(2024, 2, 1), 'd2': date(2024, 2, 5), 'd3': date(2024, 2, 10)
    }


def test_date_fields_annotated_with_calendar_date():
    assert DateChange.fixed(FRI).date == FRI
    for cls in (DateChange, SlotOverride):
        assert date in get_args(get_type_hints(cls)['date'])


def test_map_pick_dates_counts_distinct_originals():
    mapping = map_pick_dates([MON, MON, WED], [date(2024, 2, 7), date(2024, 2, 5)])
    assert mapping == {MON: date(2024, 2, 5), WED: date(2024, 2, 7)}

    with pytest.raises(InvalidStateTransitionError):
        map_pick_dates([MON, WED], [date(2024, 2, 5)])


def test_override_beats_global_change(engine, store, weekly):
    change = GlobalChange(DateChange.shift(1), court_id='Court 2', start_time=15.0)
    overrides = {'r2': SlotOverride(date=date(2024, 2, 1), court_id='Court 1', start_time=8.0)}

    result = engine.batch_amend(['r1', 'r2'], change, overrides)

    assert result.success
    r1, r2, r3 = (store.get(i) for i in ('r1', 'r2', 'r3'))
    assert (r1.date, r1.court_id, r1.start_time) == (date(2024, 1, 2), 'Court 2', 15.0)
    assert (r2.date, r2.court_id, r2.start_time) == (date(2024, 2, 1), 'Court 1', 8.0)
    assert r3 == weekly[2]


def test_conflict_reports_offending_reservation(engine, store, seed, make_reservation):
    """Ten weekly bookings moved onto a court where the fifth week is taken."""
    seed(*[make_reservation(f"w{i}", day=DAY + timedelta(weeks=i)) for i in range(10)])
    seed(make_reservation('blocker', day=DAY + timedelta(weeks=4), court='Court 2', start=11, duration=1,
                          customer_name='Bob'))
    before = store.snapshot()

    plan = engine.plan_amendment([f"w{i}" for i in range(10)], GlobalChange(court_id='Court 2'))

    assert not plan.ok
    assert plan.error_code == ErrorCode.CONFLICT
    assert plan.conflicting_reservation_id == 'w4'
    assert plan.conflict.id == 'blocker'
    assert 'Bob' in plan.error
    assert engine.commit(plan).error_code == ErrorCode.CONFLICT
    assert store.snapshot() == before


def test_moved_reservations_checked_against_each_other(engine, store, seed, make_reservation):
    seed(make_reservation('a', start=10, duration=1), make_reservation('b', start=14, duration=1))

    plan = engine.plan_amendment(['a', 'b'], GlobalChange(start_time=9.0))

    assert plan.error_code == ErrorCode.CONFLICT


def test_swap_courts_with_overrides(engine, store, seed, make_reservation):
    seed(make_reservation('a', court='Court 1'), make_reservation('b', court='Court 2'))

    result = engine.batch_amend(
        ['a', 'b'],
        GlobalChange(),
        {'a': SlotOverride(court_id='Court 2'), 'b': SlotOverride(court_id='Court 1')}
    )

    assert result.success
    assert store.get('a').court_id == 'Court 2'
    assert store.get('b').court_id == 'Court 1'


def test_new_time_reprices_and_clamps_partial(engine, store, seed, make_reservation):
    store.set_promotion_rules([PromotionRule('p1', 'Happy Hour', 18.0, 20.0, 10.0)])
    seed(
        make_reservation('full', start=10, duration=2, status=PaymentStatus.PAID),
        make_reservation('part', start=14, duration=2, court='Court 2',
                         status=PaymentStatus.PARTIAL, paid_amount=35.0),
    )

    result = engine.batch_amend(['full', 'part'], GlobalChange(DateChange.shift(1), start_time=18.0))

    assert result.success
    full, part = store.get('full'), store.get('part')
    assert full.total_amount == 20
    assert full.hourly_rate == 20
    assert part.total_amount == 20
    assert part.paid_amount == 20
    assert part.payment_status == PaymentStatus.PARTIAL


def test_date_only_change_keeps_price(engine, store, seed, make_reservation):
    seed(make_reservation('r1', total=55.0))

    engine.batch_amend(['r1'], GlobalChange(DateChange.shift(2)))

    assert store.get('r1').total_amount == 55.0


def test_stale_plan_is_refused(engine, desk, store, weekly):
    plan = engine.plan_amendment(['r1'], GlobalChange(DateChange.shift(1)))
    assert plan.ok

    desk.bookings.cancel_reservation('r3')
    snapshot = store.snapshot()

    result = engine.commit(plan)

    assert result.error_code == ErrorCode.STALE_PLAN
    assert store.snapshot() == snapshot


@pytest.mark.parametrize("status", [PaymentStatus.CANCELLED, PaymentStatus.REFUNDED])
def test_closed_reservations_cannot_be_amended(engine, seed, make_reservation, status):
    seed(make_reservation('open'), make_reservation('closed', start=14, status=status))

    plan = engine.plan_amendment(['open', 'closed'], GlobalChange(DateChange.shift(1)))

    assert plan.error_code == ErrorCode.INVALID_STATE_TRANSITION


def test_invalid_new_interval(engine, weekly):
    plan = engine.plan_amendment(['r1'], GlobalChange(start_time=23.0))

    assert plan.error_code == ErrorCode.VALIDATION_FAILED


def test_batch_tools_capability_required(store, weekly):
    engine = BatchAmendmentEngine(store, authorize=lambda capability: False)

    assert engine.batch_amend(['r1'], GlobalChange(DateChange.shift(1))).error_code == ErrorCode.PERMISSION_DENIED
    assert engine.batch_refund(['r1']).error_code == ErrorCode.PERMISSION_DENIED
    assert store.get('r1').date == MON


class TestBatchRefund:

    def test_only_paid_states_refunded(self, engine, desk, store, seed, make_reservation):
        seed(
            make_reservation('paid', status=PaymentStatus.PAID),
            make_reservation('part', start=14, status=PaymentStatus.PARTIAL, paid_amount=12.0),
            make_reservation('unpaid', start=17),
        )

        result = engine.batch_refund(['paid', 'part', 'unpaid'])

        assert result.success
        assert result.count == 2
        assert result.voucher_number == 'PV-5000'
        assert store.get('paid').refund_amount == 40
        assert store.get('part').refund_amount == 12.0
        assert {store.get(i).voucher_number for i in ('paid', 'part')} == {'PV-5000'}
        assert store.get('unpaid').payment_status == PaymentStatus.UNPAID
        assert desk.numbering.peek_voucher_number() == 'PV-5001'

    def test_nothing_refundable(self, engine, desk, store, seed, make_reservation):
        seed(make_reservation('unpaid'), make_reservation('gone', start=14, status=PaymentStatus.CANCELLED))

        result = engine.batch_refund(['unpaid', 'gone'])

        assert not result.success
        assert result.error == "No refundable bookings selected"
        assert desk.numbering.peek_voucher_number() == 'PV-5000'
