"""Free-slot search across courts and dates."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from courtdesk.exceptions import ValidationError
from courtdesk.models.court import Court
from courtdesk.models.reservation import Reservation
from courtdesk.services.conflicts import is_slot_free
from courtdesk.services.pricing import validate_interval
from courtdesk.utils.time_utils import CLOSING_HOUR, HALF_HOURS


@dataclass(frozen=True)
class AvailableSlot:
    date: date
    start_time: float
    duration: float
    court_id: str
    court_name: str

    @property
    def id(self) -> str:
        return f"{self.date.isoformat()}-{self.start_time}-{self.court_id}"

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


def date_range(start_date: date, end_date: date) -> list[date]:
    """Inclusive list of days."""
    return [start_date + timedelta(days=i) for i in range((end_date - start_date).days + 1)]


def find_available_slots(
    reservations: Iterable[Reservation],
    courts: Sequence[Court],
    start_date: date,
    end_date: date,
    window_start: float,
    window_end: float,
    duration: float
) -> list[AvailableSlot]:
    """Every start time where a court is free for the whole duration.

    Results are ordered by date, then court, then start time. Candidate
    starts lie on the half-hour grid and the slot must fit inside
    ``[window_start, window_end]``.

    Raises:
        ValidationError: If the search window is inverted or off the grid
    """
    if end_date < start_date:
        raise ValidationError("End date is before start date", {"start": start_date, "end": end_date})
    if window_end <= window_start or window_end > CLOSING_HOUR:
        raise ValidationError("Invalid time window", {"start": window_start, "end": window_end})
    validate_interval(window_start, duration)

    reservations = [r for r in reservations if r.blocks_slot and start_date <= r.date <= end_date]
    found = []
    for day in date_range(start_date, end_date):
        todays = [r for r in reservations if r.date == day]
        for court in courts:
            for start in HALF_HOURS:
                if start < window_start or start + duration > window_end:
                    continue
                if is_slot_free(day, court.id, start, duration, todays):
                    found.append(AvailableSlot(day, start, duration, court.id, court.name))
    return found
