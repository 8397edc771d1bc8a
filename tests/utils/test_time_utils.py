"""Tests for slot time helpers."""

from datetime import date, datetime

import pytest

from courtdesk.utils.time_utils import (
    HALF_HOURS,
    format_date,
    format_time,
    from_epoch_millis,
    half_hour_steps,
    is_half_hour,
    parse_date,
    parse_time,
    to_epoch_millis,
)


@pytest.mark.parametrize("hours,expected_24h,expected_12h", [
    (0.0, '00:00', '12:00 AM'),
    (10.5, '10:30', '10:30 AM'),
    (13.0, '13:00', '1:00 PM'),
    (24.0, '00:00', '12:00 AM'),
])
def test_format_time(hours, expected_24h, expected_12h):
    assert format_time(hours) == expected_24h
    assert format_time(hours, '12h') == expected_12h


def test_parse_time():
    assert parse_time('09:30') == 9.5
    assert parse_time('18') == 18.0
    assert parse_time(7) == 7.0
    with pytest.raises(ValueError):
        parse_time('09:15')


def test_half_hour_grid():
    assert len(HALF_HOURS) == 48
    assert HALF_HOURS[0] == 0.0 and HALF_HOURS[-1] == 23.5
    assert is_half_hour(10.5) and not is_half_hour(10.25)
    assert half_hour_steps(2.5) == 5


def test_dates():
    assert parse_date(' 2024-01-31 ') == date(2024, 1, 31)
    assert parse_date(datetime(2024, 1, 31, 8, 0)) == date(2024, 1, 31)
    assert format_date(date(2024, 1, 31), 'DD/MM/YYYY') == '31/01/2024'
    assert format_date(date(2024, 1, 31), 'unknown') == '2024-01-31'


def test_epoch_millis_round_trip():
    moment = datetime(2024, 1, 1, 9, 30, 15)
    assert from_epoch_millis(to_epoch_millis(moment)) == moment
    assert to_epoch_millis(None) is None
    assert from_epoch_millis(None) is None
