"""Unit tests for CLI argument parsing and command execution."""

import json
import logging
from datetime import date

import pytest

from courtdesk.cli import create_parser, main, parse_slot
from courtdesk.models.reservation import Slot


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def run_json(capsys, *argv):
    code = main([*argv, '--format', 'json'])
    return code, json.loads(capsys.readouterr().out)


def test_global_options():
    """Test global CLI options."""
    parser = create_parser()

    args = parser.parse_args(['-c', '/etc/courtdesk', 'list', 'courts'])
    assert args.config_dir == '/etc/courtdesk'

    args = parser.parse_args(['--dev', '-v', '--log-file', 'desk.log', 'list', 'courts'])
    assert args.dev is True
    assert args.verbose is True
    assert args.log_file == 'desk.log'


def test_book_command():
    parser = create_parser()

    args = parser.parse_args([
        'book', '--name', 'Alice', '--phone', '555-0100',
        '--date', '2024-01-01', '--date', '2024-01-08',
        '--slot', 'Court 1,10:00,2', '--slot', 'Court 2,18:30,1.5',
    ])

    assert args.command == 'book'
    assert args.date == [date(2024, 1, 1), date(2024, 1, 8)]
    assert args.slot == [Slot('Court 1', 10.0, 2.0), Slot('Court 2', 18.5, 1.5)]
    assert args.status == 'unpaid'
    assert args.format == 'text'


def test_book_requires_customer():
    with pytest.raises(SystemExit):
        create_parser().parse_args(['book', '--date', '2024-01-01', '--slot', 'Court 1,10:00,2'])


def test_parse_slot_keeps_commas_in_court_name():
    assert parse_slot('Court A, North,09:30,1') == Slot('Court A, North', 9.5, 1.0)


def test_nested_commands():
    parser = create_parser()

    args = parser.parse_args(['report', 'monthly', '--month', '2024-01'])
    assert args.command == 'report'
    assert args.report_subcommand == 'monthly'

    args = parser.parse_args(['amend', 'r1', 'r2', '--pick-dates', '2024-02-01', '2024-02-03'])
    assert args.ids == ['r1', 'r2']
    assert args.pick_dates == [date(2024, 2, 1), date(2024, 2, 3)]

    args = parser.parse_args(['search', '--from', '2024-01-01', '--start', '09:00', '--end', '13:00',
                              '--duration', '1'])
    assert getattr(args, 'from') == date(2024, 1, 1)
    assert args.to is None
    assert (args.start, args.end) == (9.0, 13.0)


def test_book_then_list(capsys, tmp_path):
    code, booked = run_json(
        capsys, 'book', '--name', 'Alice', '--phone', '555-0100',
        '--date', '2024-01-01', '--slot', 'Court 1,10:00,2', '--status', 'paid'
    )

    assert code == 0
    assert booked['success'] is True
    assert booked['receipt_number'] == 'OR-1000'
    assert booked['reservations'][0]['totalAmount'] == 40
    assert (tmp_path / 'data' / 'reservations.json').exists()

    code, listed = run_json(capsys, 'list', 'reservations')
    assert code == 0
    assert [r['id'] for r in listed] == [booked['reservations'][0]['id']]


def test_conflicting_booking_fails(capsys):
    book = ['book', '--name', 'Alice', '--phone', '555-0100', '--date', '2024-01-01']
    assert main([*book, '--slot', 'Court 1,10:00,2']) == 0
    capsys.readouterr()

    code, output = run_json(capsys, *book, '--slot', 'Court 1,11:00,1')

    assert code == 1
    assert output['error'].startswith('Conflict detected on 2024-01-01 at 11:00 (Court: Court 1)')


def test_price_command(capsys, tmp_path):
    (tmp_path / 'config.yaml').write_text(
        "base_hourly_rate: 20\n"
        "promotion_rules:\n"
        "  - name: Happy Hour\n"
        "    start_time: 18\n"
        "    end_time: 20\n"
        "    rate: 10\n"
    )

    code, output = run_json(capsys, 'price', '--start', '17:00', '--duration', '3')

    assert code == 0
    assert output['total'] == 40
    assert [s['rule_name'] for s in output['segments']] == [None, None, 'Happy Hour', 'Happy Hour', 'Happy Hour', 'Happy Hour']


def test_invalid_duration_rejected(capsys):
    assert main(['price', '--start', '10:00', '--duration', '0.75']) == 1


def test_wipe_needs_confirmation():
    assert main(['maintain', 'wipe']) == 1
    assert main(['maintain', 'wipe', '--yes']) == 0


def test_invalid_config_fails_startup(tmp_path):
    (tmp_path / 'config.yaml').write_text("courts: [unclosed\n")

    assert main(['list', 'courts']) == 1


def test_operator_without_permission(capsys, tmp_path):
    (tmp_path / 'config.yaml').write_text(
        "operator:\n"
        "  username: frontdesk\n"
        "  role: staff\n"
        "  permissions: [view_reports]\n"
    )

    code = main(['book', '--name', 'Alice', '--phone', '1', '--date', '2024-01-01', '--slot', 'Court 1,10:00,1'])

    assert code == 1
