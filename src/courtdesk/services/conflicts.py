"""Double-booking detection."""

from collections.abc import Iterable
from datetime import date

from courtdesk.models.reservation import Reservation
from courtdesk.utils.time_utils import SLOT_STEP, half_hour_steps


def intervals_overlap(a_start: float, a_end: float, b_start: float, b_end: float) -> bool:
    """Strict overlap of half-open intervals; touching endpoints do not collide."""
    return a_start < b_end and a_end > b_start


def find_conflict(
    proposed: Reservation,
    reservations: Iterable[Reservation],
    exclude_id: str | None = None
) -> Reservation | None:
    """First reservation that blocks ``proposed``, in collection order.

    Cancelled and refunded reservations never block. ``exclude_id`` skips
    the reservation being edited so it does not collide with itself.
    """
    exclude_id = exclude_id if exclude_id is not None else proposed.id
    for existing in reservations:
        if existing.id == exclude_id:
            continue
        if not existing.blocks_slot:
            continue
        if existing.date != proposed.date or existing.court_id != proposed.court_id:
            continue
        if intervals_overlap(proposed.start_time, proposed.end_time, existing.start_time, existing.end_time):
            return existing
    return None


def is_occupied(day: date, court_id: str, instant: float, reservations: Iterable[Reservation]) -> bool:
    """Whether a court is taken at a single instant."""
    return any(
        r.blocks_slot and r.date == day and r.court_id == court_id
        and r.start_time <= instant < r.end_time
        for r in reservations
    )


def is_slot_free(
    day: date,
    court_id: str,
    start_time: float,
    duration: float,
    reservations: Iterable[Reservation]
) -> bool:
    """Whether every half-hour of the interval is free on the court."""
    taken = [r for r in reservations if r.blocks_slot and r.date == day and r.court_id == court_id]
    for step in range(half_hour_steps(duration)):
        if is_occupied(day, court_id, start_time + step * SLOT_STEP, taken):
            return False
    return True
