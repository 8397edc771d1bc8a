"""Tests for the pricing engine."""

import pytest

from courtdesk.exceptions import ValidationError
from courtdesk.models.promotion import PromotionRule
from courtdesk.services.pricing import (
    PricingEngine,
    calculate_price,
    find_overlapping_promotions,
    price_breakdown,
    validate_interval,
)
from courtdesk.store import BookingStore

HAPPY_HOUR = PromotionRule('p1', 'Happy Hour', 18.0, 20.0, 10.0)


def test_base_rate_only():
    """Two hours at 20/hr with no promotions."""
    assert calculate_price(10, 2, 20) == 40


def test_promotion_applies_per_half_hour():
    """17:00 for three hours: one hour at base rate, two in happy hour."""
    assert calculate_price(17, 3, 20, [HAPPY_HOUR]) == 40


def test_promotion_starting_mid_booking():
    assert calculate_price(17.5, 1, 20, [HAPPY_HOUR]) == 15


def test_promotion_end_is_exclusive():
    assert calculate_price(20, 1, 20, [HAPPY_HOUR]) == 20


def test_inactive_promotion_is_ignored():
    inactive = PromotionRule('p2', 'Off', 18.0, 20.0, 10.0, is_active=False)
    assert calculate_price(18, 2, 20, [inactive]) == 40


def test_first_matching_rule_wins():
    early = PromotionRule('a', 'Early', 18.0, 20.0, 10.0)
    late = PromotionRule('b', 'Late', 19.0, 21.0, 4.0)

    assert calculate_price(19, 1, 20, [early, late]) == 10
    assert calculate_price(19, 1, 20, [late, early]) == 4


def test_price_is_deterministic():
    rules = [HAPPY_HOUR]
    assert calculate_price(16, 4.5, 20, rules) == calculate_price(16, 4.5, 20, rules)


@pytest.mark.parametrize("start,first,second", [
    (8.0, 1.5, 2.0),
    (6.0, 0.5, 0.5),
    (18.0, 1.0, 1.0),
    (20.0, 2.5, 1.5),
])
def test_segment_additivity(start, first, second):
    rules = [HAPPY_HOUR]
    whole = calculate_price(start, first + second, 20, rules)
    assert calculate_price(start, first, 20, rules) + calculate_price(start + first, second, 20, rules) == whole


def test_breakdown_names_rule_per_segment():
    segments = price_breakdown(17.5, 1, 20, [HAPPY_HOUR])

    assert [s.start for s in segments] == [17.5, 18.0]
    assert [s.rule_name for s in segments] == [None, 'Happy Hour']
    assert [s.amount for s in segments] == [10.0, 5.0]


@pytest.mark.parametrize("start,duration", [
    (-1, 1),
    (24, 1),
    (10, 0),
    (10, -1),
    (10.25, 1),
    (10, 0.75),
    (23, 2),
])
def test_invalid_intervals_rejected(start, duration):
    with pytest.raises(ValidationError):
        validate_interval(start, duration)


def test_interval_may_end_at_midnight():
    validate_interval(23, 1)
    assert calculate_price(23, 1, 20) == 20


def test_non_positive_base_rate_rejected():
    with pytest.raises(ValidationError):
        calculate_price(10, 1, 0)


def test_find_overlapping_promotions():
    other = PromotionRule('p2', 'Evening', 19.0, 22.0, 12.0)
    morning = PromotionRule('p3', 'Morning', 6.0, 9.0, 8.0)
    disabled = PromotionRule('p4', 'Disabled', 18.0, 19.0, 1.0, is_active=False)

    assert find_overlapping_promotions([HAPPY_HOUR, other, morning, disabled]) == [(HAPPY_HOUR, other)]


def test_touching_promotions_do_not_overlap():
    after = PromotionRule('p2', 'After', 20.0, 22.0, 12.0)
    assert find_overlapping_promotions([HAPPY_HOUR, after]) == []


def test_engine_reads_live_schedule(courts):
    store = BookingStore(courts=courts, base_rate=20.0)
    engine = PricingEngine(store)
    assert engine.price(18, 2) == 40

    store.set_promotion_rules([HAPPY_HOUR])
    store.set_base_rate(30.0)

    assert engine.base_rate == 30.0
    assert engine.price(17, 3) == 50
