"""Time-of-day pricing for court reservations.

Bookings are billed in 30-minute segments. Each segment is charged half the
hourly rate of the first active promotion covering the segment's start, or
half the base rate when no promotion applies. Overlapping promotions are
resolved by list order.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from courtdesk.exceptions import ValidationError
from courtdesk.models.promotion import PromotionRule
from courtdesk.utils.time_utils import CLOSING_HOUR, SLOT_STEP, half_hour_steps, is_half_hour


class RateSchedule(Protocol):
    """Source of the rates in effect right now."""

    def base_hourly_rate(self) -> float: ...

    def list_promotion_rules(self) -> list[PromotionRule]: ...


@dataclass(frozen=True)
class PriceSegment:
    """Charge for one half-hour of a booking."""
    start: float
    rate: float
    amount: float
    rule_name: str | None = None


def validate_interval(start_time: float, duration: float) -> None:
    """Reject intervals that are off the half-hour grid or leave the day.

    Raises:
        ValidationError: If the interval cannot be booked
    """
    details = {"start_time": start_time, "duration": duration}
    if not (0 <= start_time < CLOSING_HOUR):
        raise ValidationError("Start time must be within [0, 24)", details)
    if duration <= 0:
        raise ValidationError("Duration must be positive", details)
    if not (is_half_hour(start_time) and is_half_hour(duration)):
        raise ValidationError("Start time and duration must be multiples of 30 minutes", details)
    if start_time + duration > CLOSING_HOUR:
        raise ValidationError("Booking may not run past midnight", details)


def _matching_rule(instant: float, rules: Sequence[PromotionRule]) -> PromotionRule | None:
    for rule in rules:
        if rule.is_active and rule.covers(instant):
            return rule
    return None


def price_breakdown(
    start_time: float,
    duration: float,
    base_rate: float,
    rules: Sequence[PromotionRule] = ()
) -> list[PriceSegment]:
    """Per half-hour charges for an interval."""
    validate_interval(start_time, duration)
    if base_rate <= 0:
        raise ValidationError("Base hourly rate must be positive", {"base_rate": base_rate})

    segments = []
    for step in range(half_hour_steps(duration)):
        instant = start_time + step * SLOT_STEP
        rule = _matching_rule(instant, rules)
        rate = rule.rate if rule else base_rate
        segments.append(PriceSegment(
            start=instant,
            rate=rate,
            amount=rate / 2,
            rule_name=rule.name if rule else None
        ))
    return segments


def calculate_price(
    start_time: float,
    duration: float,
    base_rate: float,
    rules: Sequence[PromotionRule] = ()
) -> float:
    """Total cost of occupying one court for the interval.

    >>> calculate_price(10, 2, 20)
    40.0
    """
    total = sum(segment.amount for segment in price_breakdown(start_time, duration, base_rate, rules))
    return round(total, 2)


def find_overlapping_promotions(rules: Sequence[PromotionRule]) -> list[tuple[PromotionRule, PromotionRule]]:
    """Pairs of active rules whose windows overlap, earlier rule first."""
    active = [rule for rule in rules if rule.is_active]
    overlaps = []
    for index, first in enumerate(active):
        for second in active[index + 1:]:
            if first.overlaps(second):
                overlaps.append((first, second))
    return overlaps


class PricingEngine:
    """Prices intervals against the live rate schedule."""

    def __init__(self, schedule: RateSchedule):
        self.schedule = schedule

    @property
    def base_rate(self) -> float:
        return self.schedule.base_hourly_rate()

    def price(self, start_time: float, duration: float) -> float:
        return calculate_price(
            start_time,
            duration,
            self.schedule.base_hourly_rate(),
            self.schedule.list_promotion_rules()
        )

    def breakdown(self, start_time: float, duration: float) -> list[PriceSegment]:
        return price_breakdown(
            start_time,
            duration,
            self.schedule.base_hourly_rate(),
            self.schedule.list_promotion_rules()
        )
