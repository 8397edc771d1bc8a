"""
Command line interface for the court booking desk.
"""

import argparse
import sys
from typing import Any

from courtdesk.config.error_aggregator import get_error_aggregator, init_error_aggregator
from courtdesk.config.logging import setup_logging
from courtdesk.config.logging_config import ErrorAggregationConfig
from courtdesk.config.logging_filters import with_correlation_id
from courtdesk.config.settings import ConfigurationManager
from courtdesk.config.validation import ConfigValidationError, validate_config
from courtdesk.desk import BookingDesk
from courtdesk.exceptions import CourtDeskError
from courtdesk.models.court import court_label
from courtdesk.models.reservation import BookingRequest, Customer, PaymentStatus, Reservation, Slot
from courtdesk.services import reporting
from courtdesk.services.availability import find_available_slots
from courtdesk.services.batch_amendment import DateChange, GlobalChange
from courtdesk.services.results import BookingResult
from courtdesk.utils.cli_utils import (
    ArgumentValidator,
    CLIBuilder,
    CLIContext,
    CLIOptionFactory,
    CommandCategory,
    CommandRegistry,
    print_output,
)
from courtdesk.utils.logging_utils import get_logger
from courtdesk.utils.time_utils import format_date, format_time, parse_date, parse_time

STATUS_CHOICES = [s.name.lower() for s in PaymentStatus if s.is_open]


def parse_slot(value: str) -> Slot:
    """Parse ``COURT,HH:MM,HOURS`` into a slot."""
    try:
        court_id, start, duration = (part.strip() for part in value.rsplit(',', 2))
        return Slot(court_id, parse_time(start), float(duration))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Slot must look like 'Court 1,10:00,2': {value}") from e


def reservation_rows(ctx: CLIContext, reservations: list[Reservation]) -> list[list[Any]]:
    profile = ctx.desk.store.company_profile
    courts = ctx.desk.store.list_courts()
    return [
        [
            r.id,
            format_date(r.date, profile.date_format),
            f"{format_time(r.start_time, profile.time_format)}-{format_time(r.end_time, profile.time_format)}",
            court_label(courts, r.court_id),
            r.customer_name,
            r.payment_status.value,
            f"{r.total_amount:.2f}",
            r.receipt_number or r.voucher_number or '',
        ]
        for r in reservations
    ]


RESERVATION_HEADERS = ['ID', 'Date', 'Time', 'Court', 'Customer', 'Status', 'Amount', 'Document']


def report_result(ctx: CLIContext, result: BookingResult, title: str) -> int:
    """Print an operation outcome; failures go to the log and exit 1."""
    if not result.success:
        ctx.logger.error(result.error)
        if result.conflict is not None:
            print_output(ctx, reservation_rows(ctx, [result.conflict]), RESERVATION_HEADERS,
                         payload={'error': result.error, 'conflict': result.conflict}, title="Conflicting reservation")
        return 1

    extra = []
    if result.receipt_number:
        extra.append(f"Receipt: {result.receipt_number}")
    if result.voucher_number:
        extra.append(f"Voucher: {result.voucher_number}")
    print_output(ctx, reservation_rows(ctx, result.reservations), RESERVATION_HEADERS,
                 payload=result, title=" | ".join([title, *extra]))
    return 0


def _customer(ctx: CLIContext) -> Customer | None:
    if ctx.args.name is None and ctx.args.phone is None:
        return None
    return Customer.of(ctx.args.name or '', ctx.args.phone or '')


class ListCommands:
    """List command implementations."""

    @staticmethod
    @CommandRegistry.register(
        name='courts',
        help_text='List configured courts',
        category=CommandCategory.LIST,
        options=[CLIOptionFactory.create_format_option()],
        parent_command='list'
    )
    def list_courts(ctx: CLIContext) -> int:
        courts = ctx.desk.store.list_courts()
        print_output(ctx, [[c.id, c.name] for c in courts], ['ID', 'Name'], payload=courts, title="Courts")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='reservations',
        help_text='List reservations',
        category=CommandCategory.LIST,
        options=[
            CLIOptionFactory.create_format_option(),
            CLIOptionFactory.create_date_option(help_text='Only reservations on this date'),
            *CLIOptionFactory.create_customer_options(),
            {
                'name': '--status',
                'choices': [s.name.lower() for s in PaymentStatus],
                'help': 'Only reservations with this payment status'
            }
        ],
        parent_command='list'
    )
    def list_reservations(ctx: CLIContext) -> int:
        customer = _customer(ctx)
        reservations = [
            r for r in ctx.desk.store.reservations
            if (ctx.args.date is None or r.date == ctx.args.date)
            and (ctx.args.status is None or r.payment_status == PaymentStatus[ctx.args.status.upper()])
            and (customer is None or r.customer == customer)
        ]
        reservations.sort(key=lambda r: (r.date, r.start_time, r.court_id))
        print_output(ctx, reservation_rows(ctx, reservations), RESERVATION_HEADERS,
                     payload=reservations, title="Reservations")
        return 0


class BookingCommands:
    """Single reservation commands."""

    @staticmethod
    @CommandRegistry.register(
        name='price',
        help_text='Show the price of an interval at the current rates',
        category=CommandCategory.BOOK,
        options=[
            CLIOptionFactory.create_format_option(),
            CLIOptionFactory.create_time_option('--start', required=True),
            CLIOptionFactory.create_duration_option(required=True),
        ]
    )
    def price(ctx: CLIContext) -> int:
        segments = ctx.desk.pricing.breakdown(ctx.args.start, ctx.args.duration)
        rows = [
            [format_time(s.start), format_time(s.start + 0.5), s.rule_name or 'Base rate', f"{s.rate:.2f}", f"{s.amount:.2f}"]
            for s in segments
        ]
        total = ctx.desk.pricing.price(ctx.args.start, ctx.args.duration)
        print_output(ctx, rows, ['From', 'To', 'Rate source', 'Hourly rate', 'Amount'],
                     payload={'total': total, 'segments': segments},
                     title=f"Total: {total:.2f} {ctx.desk.store.currency}")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='book',
        help_text='Create reservations for every date and slot given',
        category=CommandCategory.BOOK,
        options=[
            CLIOptionFactory.create_format_option(),
            *CLIOptionFactory.create_customer_options(required=True),
            {
                'name': '--date',
                'type': parse_date,
                'action': 'append',
                'required': True,
                'help': 'Booking date in YYYY-MM-DD format; repeat for recurring bookings'
            },
            {
                'name': '--slot',
                'type': parse_slot,
                'action': 'append',
                'required': True,
                'help': "Court, start and hours, e.g. 'Court 1,10:00,2'; repeat for more courts"
            },
            {'name': '--status', 'choices': STATUS_CHOICES, 'default': 'unpaid', 'help': 'Payment status'},
            {'name': '--paid', 'type': float, 'help': 'Amount handed over for a partial payment'},
            {'name': '--unit', 'default': '', 'help': 'Resident unit number'},
            {'name': '--notes', 'default': '', 'help': 'Free-text notes'},
        ]
    )
    def book(ctx: CLIContext) -> int:
        request = BookingRequest(
            customer_name=ctx.args.name,
            phone_number=ctx.args.phone,
            dates=ctx.args.date,
            slots=ctx.args.slot,
            payment_status=PaymentStatus[ctx.args.status.upper()],
            resident_unit_no=ctx.args.unit,
            notes=ctx.args.notes,
            paid_amount=ctx.args.paid
        )
        return report_result(ctx, ctx.desk.bookings.create_reservation(request), "Booked")

    @staticmethod
    @CommandRegistry.register(
        name='cancel',
        help_text='Cancel a reservation and free its slot',
        category=CommandCategory.BOOK,
        options=[CLIOptionFactory.create_format_option(), {'name': 'id', 'help': 'Reservation id'}]
    )
    def cancel(ctx: CLIContext) -> int:
        return report_result(ctx, ctx.desk.bookings.cancel_reservation(ctx.args.id), "Cancelled")

    @staticmethod
    @CommandRegistry.register(
        name='delete',
        help_text='Remove a reservation outright',
        category=CommandCategory.BOOK,
        options=[CLIOptionFactory.create_format_option(), {'name': 'id', 'help': 'Reservation id'}]
    )
    def delete(ctx: CLIContext) -> int:
        return report_result(ctx, ctx.desk.bookings.delete_reservation(ctx.args.id), "Deleted")


class PaymentCommands:
    """Payment lifecycle commands."""

    @staticmethod
    @CommandRegistry.register(
        name='refund',
        help_text='Refund a paid reservation',
        category=CommandCategory.PAYMENT,
        options=[CLIOptionFactory.create_format_option(), {'name': 'id', 'help': 'Reservation id'}]
    )
    def refund(ctx: CLIContext) -> int:
        return report_result(ctx, ctx.desk.bookings.refund_reservation(ctx.args.id), "Refunded")

    @staticmethod
    @CommandRegistry.register(
        name='settle',
        help_text='Mark reservations paid under one receipt',
        category=CommandCategory.PAYMENT,
        options=[CLIOptionFactory.create_format_option(), CLIOptionFactory.create_ids_argument()]
    )
    def settle(ctx: CLIContext) -> int:
        return report_result(ctx, ctx.desk.bookings.bulk_settle(ctx.args.ids), "Settled")

    @staticmethod
    @CommandRegistry.register(
        name='reconcile',
        help_text='Mark collected payments as counted',
        category=CommandCategory.PAYMENT,
        options=[CLIOptionFactory.create_format_option(), CLIOptionFactory.create_ids_argument()]
    )
    def reconcile(ctx: CLIContext) -> int:
        return report_result(ctx, ctx.desk.bookings.reconcile(ctx.args.ids), "Reconciled")


class BatchCommands:
    """Batch tools."""

    @staticmethod
    @CommandRegistry.register(
        name='amend',
        help_text='Move a group of reservations together',
        category=CommandCategory.BATCH,
        options=[
            CLIOptionFactory.create_format_option(),
            CLIOptionFactory.create_ids_argument(),
            {'name': '--shift-days', 'type': int, 'help': 'Move every reservation by this many days'},
            CLIOptionFactory.create_date_option('--to-date', help_text='Move every reservation to this date'),
            {
                'name': '--pick-dates',
                'type': parse_date,
                'nargs': '+',
                'help': 'New dates, one per distinct original date, matched in order'
            },
            {'name': '--court', 'help': 'Move every reservation to this court'},
            CLIOptionFactory.create_time_option('--start', help_text='New start time as HH:MM'),
            CLIOptionFactory.create_duration_option(),
        ]
    )
    def amend(ctx: CLIContext) -> int:
        modes = [m for m in (ctx.args.shift_days, ctx.args.to_date, ctx.args.pick_dates) if m is not None]
        if len(modes) > 1:
            ctx.logger.error("Use only one of --shift-days, --to-date and --pick-dates")
            return 1

        if ctx.args.shift_days is not None:
            date_change = DateChange.shift(ctx.args.shift_days)
        elif ctx.args.to_date is not None:
            date_change = DateChange.fixed(ctx.args.to_date)
        elif ctx.args.pick_dates is not None:
            date_change = DateChange.pick(ctx.args.pick_dates)
        else:
            date_change = DateChange()

        change = GlobalChange(
            date_change=date_change,
            court_id=ctx.args.court,
            start_time=ctx.args.start,
            duration=ctx.args.duration
        )
        return report_result(ctx, ctx.desk.batch.batch_amend(ctx.args.ids, change), "Amended")

    @staticmethod
    @CommandRegistry.register(
        name='batch-refund',
        help_text='Refund every paid reservation in the selection under one voucher',
        category=CommandCategory.BATCH,
        options=[CLIOptionFactory.create_format_option(), CLIOptionFactory.create_ids_argument()]
    )
    def batch_refund(ctx: CLIContext) -> int:
        return report_result(ctx, ctx.desk.batch.batch_refund(ctx.args.ids), "Refunded")

    @staticmethod
    @CommandRegistry.register(
        name='search',
        help_text='Find free court slots',
        category=CommandCategory.BATCH,
        options=[
            CLIOptionFactory.create_format_option(),
            CLIOptionFactory.create_date_option('--from', required=True, help_text='First date to search'),
            CLIOptionFactory.create_date_option('--to', help_text='Last date to search (default: --from)'),
            CLIOptionFactory.create_time_option('--start', required=True, help_text='Earliest start as HH:MM'),
            CLIOptionFactory.create_time_option('--end', required=True, help_text='Latest end as HH:MM'),
            CLIOptionFactory.create_duration_option(required=True),
        ]
    )
    def search(ctx: CLIContext) -> int:
        start_date = getattr(ctx.args, 'from')
        slots = find_available_slots(
            ctx.desk.store.reservations,
            ctx.desk.store.list_courts(),
            start_date,
            ctx.args.to or start_date,
            ctx.args.start,
            ctx.args.end,
            ctx.args.duration
        )
        rows = [
            [s.date.isoformat(), f"{format_time(s.start_time)}-{format_time(s.end_time)}", s.court_name]
            for s in slots
        ]
        print_output(ctx, rows, ['Date', 'Time', 'Court'], payload=slots, title=f"{len(slots)} free slots")
        return 0


class ReportCommands:
    """Reports over the reservation collection."""

    @staticmethod
    @CommandRegistry.register(
        name='daily',
        help_text='Sales summary for one day',
        category=CommandCategory.REPORT,
        options=[CLIOptionFactory.create_format_option(), CLIOptionFactory.create_date_option(required=True)],
        parent_command='report'
    )
    def daily(ctx: CLIContext) -> int:
        summary = reporting.daily_summary(ctx.desk.store.reservations, ctx.args.date)
        ReportCommands._print_summaries(ctx, [summary], f"Daily sales {summary.label}")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='monthly',
        help_text='Sales summary per day of a month',
        category=CommandCategory.REPORT,
        options=[CLIOptionFactory.create_format_option(), CLIOptionFactory.create_month_option(required=True)],
        parent_command='report'
    )
    def monthly(ctx: CLIContext) -> int:
        rows = reporting.monthly_summary(ctx.desk.store.reservations, ctx.args.month)
        ReportCommands._print_summaries(ctx, rows, f"Monthly sales {ctx.args.month}")
        return 0

    @staticmethod
    def _print_summaries(ctx: CLIContext, summaries: list[reporting.SalesSummary], title: str) -> None:
        rows = [
            [s.label, s.bookings, s.hours, f"{s.billed:.2f}", f"{s.collected:.2f}", f"{s.outstanding:.2f}",
             s.cancelled, s.refunded]
            for s in summaries
        ]
        headers = ['Period', 'Bookings', 'Hours', 'Billed', 'Collected', 'Outstanding', 'Cancelled', 'Refunded']
        print_output(ctx, rows, headers, payload=summaries, title=title)

    @staticmethod
    @CommandRegistry.register(
        name='outstanding',
        help_text="A customer's unpaid and partially paid reservations",
        category=CommandCategory.REPORT,
        options=[
            CLIOptionFactory.create_format_option(),
            *CLIOptionFactory.create_customer_options(required=True),
            CLIOptionFactory.create_month_option(),
        ],
        parent_command='report'
    )
    def outstanding(ctx: CLIContext) -> int:
        statement = reporting.outstanding_for(
            ctx.desk.store.reservations,
            Customer.of(ctx.args.name, ctx.args.phone),
            ctx.args.month
        )
        print_output(ctx, reservation_rows(ctx, statement.reservations), RESERVATION_HEADERS,
                     payload={'total_due': statement.total_due, 'reservations': statement.reservations},
                     title=f"Outstanding for {statement.customer.name}: {statement.total_due:.2f}")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='cash',
        help_text='Unreconciled payments collected on a day',
        category=CommandCategory.REPORT,
        options=[CLIOptionFactory.create_format_option(), CLIOptionFactory.create_date_option(required=True)],
        parent_command='report'
    )
    def cash(ctx: CLIContext) -> int:
        collection = reporting.cash_collection(ctx.desk.store.reservations, ctx.args.date)
        rows = [
            [r.id, r.receipt_number or '', r.customer_name, r.payment_status.value, f"{r.collected_amount:.2f}"]
            for r in collection.reservations
        ]
        print_output(ctx, rows, ['ID', 'Receipt', 'Customer', 'Status', 'Collected'],
                     payload={'system_total': collection.system_total, 'reservations': collection.reservations},
                     title=f"Cash collection {ctx.args.date.isoformat()}: {collection.system_total:.2f}")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='refunds',
        help_text='Refunded reservations',
        category=CommandCategory.REPORT,
        options=[
            CLIOptionFactory.create_format_option(),
            *CLIOptionFactory.create_customer_options(),
            CLIOptionFactory.create_date_option('--from', help_text='First booking date'),
            CLIOptionFactory.create_date_option('--to', help_text='Last booking date'),
        ],
        parent_command='report'
    )
    def refunds(ctx: CLIContext) -> int:
        report = reporting.refund_report(
            ctx.desk.store.reservations,
            _customer(ctx),
            getattr(ctx.args, 'from'),
            ctx.args.to
        )
        rows = [
            [r.id, r.date.isoformat(), r.customer_name, r.voucher_number or '', f"{r.refund_amount or 0:.2f}"]
            for r in report.reservations
        ]
        print_output(ctx, rows, ['ID', 'Date', 'Customer', 'Voucher', 'Refunded'],
                     payload={'total_refunded': report.total_refunded, 'reservations': report.reservations},
                     title=f"Refunds: {report.total_refunded:.2f}")
        return 0


class MaintenanceCommands:
    """Data maintenance."""

    @staticmethod
    @CommandRegistry.register(
        name='reindex',
        help_text='Sort reservations by date and start time',
        category=CommandCategory.MAINTAIN,
        options=[CLIOptionFactory.create_format_option()],
        parent_command='maintain'
    )
    def reindex(ctx: CLIContext) -> int:
        result = ctx.desk.maintenance.reindex()
        if not result.success:
            ctx.logger.error(result.error)
            return 1
        print(f"Re-indexed {result.count} reservations")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='wipe',
        help_text='Delete every reservation',
        category=CommandCategory.MAINTAIN,
        options=[{'name': '--yes', 'action': 'store_true', 'help': 'Confirm the wipe'}],
        parent_command='maintain'
    )
    def wipe(ctx: CLIContext) -> int:
        if not ctx.args.yes:
            ctx.logger.error("Refusing to wipe reservations without --yes")
            return 1
        result = ctx.desk.maintenance.wipe_reservations()
        if not result.success:
            ctx.logger.error(result.error)
            return 1
        print(f"Deleted {result.count} reservations")
        return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser from the registered commands."""
    builder = CLIBuilder(description='Court reservation and billing desk')
    return builder.build(CommandRegistry.commands())


@with_correlation_id
def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    logger = get_logger(__name__)

    try:
        config_manager = ConfigurationManager()
        config = config_manager.load_config(args.config_dir)

        setup_logging(config, dev_mode=args.dev, verbose=args.verbose, log_file=args.log_file)

        init_error_aggregator(ErrorAggregationConfig(
            enabled=True,
            report_interval=int(config.global_config.get('error_report_interval', 3600)),
            error_threshold=int(config.global_config.get('error_threshold', 5)),
            time_threshold=int(config.global_config.get('error_time_threshold', 300)),
            categorize_by=['service', 'error_type']
        ))

        try:
            validate_config(config)
            desk = BookingDesk.from_config(config)
        except (CourtDeskError, ConfigValidationError, ValueError) as e:
            logger.error(f"Failed to start: {e}")
            return 1

        command = args.command_metadata
        errors = ArgumentValidator.validate_args(args, command)
        if errors:
            for error in errors:
                logger.error(error)
            return 1

        ctx = CLIContext(args=args, logger=logger, config=config, parser=parser, desk=desk)
        return command.handler(ctx)
    except CourtDeskError as e:
        logger.error(str(e))
        return 1
    except Exception:
        logger.exception("Unhandled exception")
        return 1
    finally:
        aggregator = get_error_aggregator()
        if aggregator is not None:
            aggregator.shutdown()


if __name__ == '__main__':
    sys.exit(main())
