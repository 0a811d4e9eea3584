"""Command-line interface for Ramadan Timer."""

import argparse
import asyncio
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

from ramadan_timer import __version__
from ramadan_timer.domain.models import CalculationMethod


def _year_month(value: str) -> tuple[int, int]:
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM, got {value!r}") from e
    return parsed.year, parsed.month


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="ramadan-timer",
        description="Sehri and Iftar countdown with local reminders",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"ramadan-timer {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the web server")
    serve_parser.add_argument(
        "--host",
        "-H",
        default=None,
        help="Bind address (default: RAMADAN_TIMER_HOST or 0.0.0.0)",
    )
    serve_parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Port (default: RAMADAN_TIMER_PORT or 8080)",
    )
    serve_parser.add_argument(
        "--state",
        "-s",
        type=Path,
        help="Persisted state file",
    )
    serve_parser.add_argument(
        "--ephemeral",
        action="store_true",
        help="Keep state in memory only",
    )
    serve_parser.add_argument(
        "--log-level",
        "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: INFO)",
    )

    # times command
    times_parser = subparsers.add_parser("times", help="Print Sehri and Iftar times")
    times_parser.add_argument(
        "--lat",
        type=float,
        required=True,
        help="Latitude",
    )
    times_parser.add_argument(
        "--lng",
        type=float,
        required=True,
        help="Longitude",
    )
    range_group = times_parser.add_mutually_exclusive_group()
    range_group.add_argument(
        "--days",
        "-d",
        type=int,
        default=1,
        help="Number of days starting today (default: 1)",
    )
    range_group.add_argument(
        "--month",
        "-m",
        type=_year_month,
        help="Whole month, YYYY-MM",
    )
    times_parser.add_argument(
        "--method",
        choices=[m.value for m in CalculationMethod],
        default=CalculationMethod.KARACHI.value,
        help="Calculation method (default: karachi)",
    )

    # methods command
    subparsers.add_parser("methods", help="List calculation methods")

    return parser


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the web server."""
    import uvicorn

    from ramadan_timer.api.app import create_app
    from ramadan_timer.config import get_config, setup_logging
    from ramadan_timer.infrastructure.state_store import InMemoryStateStore

    config = get_config()
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.state is not None:
        config.state_path = args.state
    if args.log_level is not None:
        config.log_level = args.log_level

    setup_logging(config.log_level)

    store = InMemoryStateStore() if args.ephemeral else None
    app = create_app(config=config, store=store)

    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


def cmd_times(args: argparse.Namespace) -> None:
    """Show Sehri and Iftar times."""
    from ramadan_timer.config import get_config
    from ramadan_timer.domain.errors import RamadanTimerError
    from ramadan_timer.domain.models import Location
    from ramadan_timer.services.prayer_service import (
        PrayerTimesFetcher,
        resolve_timezone,
        resolve_timezone_name,
    )

    location = Location(latitude=args.lat, longitude=args.lng)
    tz = resolve_timezone(location.latitude, location.longitude)
    config = get_config()

    async def _fetch():
        async with PrayerTimesFetcher(
            base_url=config.api_base_url, timeout=config.http_timeout
        ) as fetcher:
            if args.month is not None:
                year, month = args.month
                return await fetcher.fetch_month(
                    location.latitude, location.longitude, year, month, args.method
                )
            today: date = datetime.now(tz).date()
            return await fetcher.fetch_range(
                location.latitude, location.longitude, today, args.days, args.method
            )

    try:
        records = asyncio.run(_fetch())
    except RamadanTimerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\nLocation: {args.lat:.4f}, {args.lng:.4f}")
    print(f"Timezone: {resolve_timezone_name(location.latitude, location.longitude) or 'UTC'}")
    print(f"Method:   {CalculationMethod(args.method).display_name}")
    print()

    print("=" * 64)
    print(f"{'Date':<12} {'Sehri':>7} {'Iftar':>7}  {'Fast':>6}  {'Hijri'}")
    print("-" * 64)

    for record in records:
        fast = record.iftar_time - record.sehri_time
        hours, remainder = divmod(int(fast / timedelta(minutes=1)), 60)
        print(
            f"{record.date.strftime('%d.%m.%Y'):<12} "
            f"{record.sehri_time.strftime('%H:%M'):>7} "
            f"{record.iftar_time.strftime('%H:%M'):>7}  "
            f"{hours:>2}h{remainder:02d}  "
            f"{record.hijri_date}"
        )

    print("=" * 64)


def cmd_methods(args: argparse.Namespace) -> None:
    """List calculation methods."""
    for method in CalculationMethod:
        print(f"{method.value:<8} {method.method_id:>2}  {method.display_name}")


def main() -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        # Serve by default
        args.command = "serve"
        args.host = None
        args.port = None
        args.state = None
        args.ephemeral = False
        args.log_level = None

    commands = {
        "serve": cmd_serve,
        "times": cmd_times,
        "methods": cmd_methods,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        cmd_func(args)
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
