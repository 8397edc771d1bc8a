"""Time and date helpers for half-hour booking slots."""

from datetime import date, datetime
from typing import Union

OPENING_HOUR = 0.0
CLOSING_HOUR = 24.0
SLOT_STEP = 0.5

# Every bookable start time: 0.0, 0.5, ..., 23.5
HALF_HOURS = [OPENING_HOUR + i * SLOT_STEP for i in range(int((CLOSING_HOUR - OPENING_HOUR) / SLOT_STEP))]

DATE_FORMATS = {
    'YYYY-MM-DD': '%Y-%m-%d',
    'DD/MM/YYYY': '%d/%m/%Y',
    'MM/DD/YYYY': '%m/%d/%Y',
}

def is_half_hour(value: float) -> bool:
    """Check that a value sits on the 30-minute grid."""
    return float(value * 2).is_integer()

def half_hour_steps(duration: float) -> int:
    """Number of 30-minute segments in a duration."""
    return int(round(duration / SLOT_STEP))

def format_time(hours: float, time_format: str = '24h') -> str:
    """Render fractional hours as a clock time.

    10.5 -> "10:30"; with the 12h format 13.0 -> "1:00 PM". 24.0 wraps to
    midnight.
    """
    display = hours % 24
    hour = int(display)
    minutes = '30' if display - hour == 0.5 else '00'

    if time_format == '12h':
        suffix = 'PM' if hour >= 12 else 'AM'
        return f"{hour % 12 or 12}:{minutes} {suffix}"

    return f"{hour:02d}:{minutes}"

def parse_time(value: Union[str, float, int]) -> float:
    """Parse "HH:MM" or a number of hours into fractional hours."""
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    if ':' in text:
        hour_text, minute_text = text.split(':', 1)
        hour, minute = int(hour_text), int(minute_text)
        if minute not in (0, 30):
            raise ValueError(f"Time must be on the hour or half hour: {value}")
        return hour + minute / 60
    return float(text)

def parse_date(value: Union[str, date]) -> date:
    """Parse an ISO date string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())

def format_date(value: date, date_format: str = 'YYYY-MM-DD') -> str:
    """Render a date in one of the supported display formats."""
    return value.strftime(DATE_FORMATS.get(date_format, DATE_FORMATS['YYYY-MM-DD']))

def to_epoch_millis(value: datetime | None) -> int | None:
    """Convert a datetime to epoch milliseconds for persisted blobs."""
    if value is None:
        return None
    return int(value.timestamp() * 1000)

def from_epoch_millis(value: int | float | None) -> datetime | None:
    """Convert epoch milliseconds back to a local naive datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000)
