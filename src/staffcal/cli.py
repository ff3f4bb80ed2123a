"""Command-line interface for the staffcal schedule engine."""

import argparse
import logging
import sys
from datetime import date, timedelta
from typing import Any, Optional

from staffcal.domain.calendar_util import as_date, month_dates, start_of_week
from staffcal.output.pdf_generator import PDFGenerator
from staffcal.output.text_generator import TextGenerator
from staffcal.scheduling.schedule_service import (
    DAY_VIEW,
    MONTH_VIEW,
    MY_SCHEDULE_VIEW,
    WEEK_VIEW,
    ScheduleService,
    view_range,
)
from staffcal.stores.json_store import JsonDataSource
from staffcal.validation.validator import RuleSetValidator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def create_sample_data(anchor: date) -> dict[str, Any]:
    """Create a small sample roster with rules and overrides for a week.

    Args:
        anchor: Any date in the week the overrides should land in.
    """
    sunday = start_of_week(anchor)

    def key(offset: int) -> str:
        return (sunday + timedelta(days=offset)).isoformat()

    names = [
        "Alice Moreno", "Bob Nguyen", "Carol Ortiz", "David Park",
        "Eve Quinn", "Frank Reyes", "Grace Silva", "Henry Tran",
    ]
    zones = ["North", "South"]
    roster = [
        {"id": f"T{i + 1:03d}", "name": name, "zoneName": zones[i % 2]}
        for i, name in enumerate(names)
    ]
    # One trainee, so staffing counts differ from the working list.
    roster[-1]["inTraining"] = True
    roster[-1]["trainingEndDate"] = key(14)

    rules = [
        # Alice works every Saturday.
        {"technicianId": "T001", "days": [6], "frequency": "weekly",
         "status": "Scheduled", "hours": "8-4"},
        # Bob has every other Friday off.
        {"technicianId": "T002", "days": [5], "frequency": "every-other",
         "weekAnchor": 2, "status": "Off"},
        # Carol works short Mondays and Wednesdays.
        {"technicianId": "T003", "days": [1, 3], "frequency": "weekly",
         "hours": "7-1"},
        # David works Sundays in the odd weeks.
        {"technicianId": "T004", "days": 0, "frequency": "every-other-week",
         "weekAnchor": "1", "status": "Scheduled"},
    ]

    schedules = [
        {"date": key(2), "notes": "Inventory count in the afternoon",
         "staffList": [
             {"technicianId": "T005", "status": "Vacation"},
             {"technicianId": "T003", "status": "Scheduled", "hours": "9-5"},
         ]},
        {"date": key(4), "notes": "",
         "staffList": [
             {"id": "T006", "status": "sick"},
         ]},
        {"date": key(6), "notes": "",
         "staffList": [
             {"technicianId": "T007", "status": "Scheduled", "hours": "10-2"},
         ]},
    ]

    return {"roster": roster, "rules": rules, "schedules": schedules}


def _date_arg(value: str) -> date:
    try:
        return as_date(value)
    except (TypeError, ValueError):
        raise argparse.ArgumentTypeError(f"not a date (YYYY-MM-DD): {value!r}")


def _configure_logging(args: argparse.Namespace) -> None:
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _load_source(path: str) -> Optional[JsonDataSource]:
    try:
        return JsonDataSource.from_file(path)
    except (OSError, ValueError) as e:
        print(f"Error: cannot load data file {path}: {e}", file=sys.stderr)
        return None


def _person_name(source: JsonDataSource, person_id: str) -> str:
    for person in source.roster.get_all():
        if person.id == person_id:
            return person.name
    return ""


def run_view(
    source: JsonDataSource,
    view: str,
    anchor: date,
    today: Optional[date] = None,
    person_id: Optional[str] = None,
    output_path: Optional[str] = None,
) -> int:
    """Compute a view, print it and optionally write it to a file."""
    service = ScheduleService(source.roster, source.rules, source.overrides)
    start, end = view_range(view, anchor)
    snapshot = service.load_snapshot(start, end)
    result = service.build_view(view, anchor, snapshot, person_id=person_id, today=today)

    text = TextGenerator(config=service.config)
    if view == MONTH_VIEW:
        staffing = service.aggregator.staffing_for_month(
            snapshot.roster, anchor, snapshot.rules, snapshot.overrides
        )
        content = text.render_month(result.data, staffing)
    else:
        content = text.generate_to_string(
            result, _person_name(source, person_id) if person_id else ""
        )
    print(content)

    if output_path:
        if output_path.lower().endswith(".pdf"):
            if view not in (WEEK_VIEW, MONTH_VIEW):
                print("Error: PDF sheets are available for week and month views",
                      file=sys.stderr)
                return 1
            PDFGenerator(config=service.config).generate(result, output_path)
        else:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(content)
        logger.info("Wrote %s view to %s", view, output_path)

    return 0


def run_staffing(source: JsonDataSource, anchor: date) -> int:
    """Print the working headcount for each day of the month."""
    service = ScheduleService(source.roster, source.rules, source.overrides)
    staffing = service.get_month_staffing(anchor)
    for d, count in zip(month_dates(anchor), staffing):
        print(f"{d.isoformat()} {d.strftime('%a')}  {count:>3}")
    return 0


def run_check(source: JsonDataSource) -> int:
    """Validate the data file's rules and day schedules."""
    validator = RuleSetValidator()
    result = validator.validate(
        source.raw_rules, source.raw_schedules, source.roster.get_all()
    )

    if result.is_valid:
        print("Validation: PASSED")
    else:
        print(f"Validation: FAILED ({len(result.errors)} errors)")
        for error in result.errors:
            print(f"  - {error}")

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  - {warning}")

    return 0 if result.is_valid else 1


def run_demo(anchor: date, today: Optional[date] = None) -> int:
    """Show the week view and data check for the built-in sample data."""
    source = JsonDataSource(create_sample_data(anchor))
    print(f"Sample roster: {len(source.roster.get_all())} people\n")
    status = run_view(source, WEEK_VIEW, anchor, today=today)
    print()
    run_check(source)
    return status


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging",
    )
    common.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only show warnings and errors",
    )
    common.add_argument(
        "--date", "-d",
        type=_date_arg,
        help="Date to show, YYYY-MM-DD (default: today)",
    )
    common.add_argument(
        "--today",
        type=_date_arg,
        help="Date to highlight as today (default: today)",
    )

    data = argparse.ArgumentParser(add_help=False)
    data.add_argument(
        "--data", "-f",
        type=str,
        required=True,
        help="JSON data file with roster, rules and schedules",
    )

    parser = argparse.ArgumentParser(
        prog="staffcal",
        description="staffcal - Staff Schedule Resolution Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                                   Week view of sample data
  %(prog)s day --data team.json --date 2024-02-07 One day, grouped
  %(prog)s week --data team.json -o week.pdf      Week view plus PDF sheet
  %(prog)s month --data team.json                 Month grid with headcounts
  %(prog)s my-schedule --data team.json --person T001
  %(prog)s staffing --data team.json              Daily working counts
  %(prog)s check --data team.json                 Validate rules and overrides
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    for view, help_text in (
        (DAY_VIEW, "Show one day's schedule"),
        (WEEK_VIEW, "Show a Sunday-Saturday week"),
        (MONTH_VIEW, "Show a month grid"),
    ):
        view_parser = subparsers.add_parser(view, parents=[common, data], help=help_text)
        view_parser.add_argument(
            "--output", "-o",
            type=str,
            help="Output file (.pdf for a printable sheet, otherwise text)",
        )

    my_parser = subparsers.add_parser(
        MY_SCHEDULE_VIEW, parents=[common, data], help="Show one person's week"
    )
    my_parser.add_argument(
        "--person", "-p",
        type=str,
        required=True,
        help="Roster ID of the person",
    )
    my_parser.add_argument("--output", "-o", type=str, help="Output text file")

    subparsers.add_parser(
        "staffing", parents=[common, data], help="Daily working counts for a month"
    )
    subparsers.add_parser(
        "check", parents=[common, data], help="Validate rules and day schedules"
    )
    subparsers.add_parser("demo", parents=[common], help="Run with built-in sample data")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _configure_logging(args)
    anchor = args.date or date.today()
    today = args.today or date.today()

    if args.command == "demo":
        return run_demo(anchor, today)

    source = _load_source(args.data)
    if source is None:
        return 1

    if args.command in (DAY_VIEW, WEEK_VIEW, MONTH_VIEW):
        return run_view(source, args.command, anchor, today=today, output_path=args.output)
    elif args.command == MY_SCHEDULE_VIEW:
        return run_view(
            source,
            MY_SCHEDULE_VIEW,
            anchor,
            today=today,
            person_id=args.person,
            output_path=args.output,
        )
    elif args.command == "staffing":
        return run_staffing(source, anchor)
    elif args.command == "check":
        return run_check(source)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
