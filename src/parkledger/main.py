# File: src/parkledger/main.py
"""
Command-line entry point for the Parking Stay Ledger

Subcommands:
    fare      fare for a finished stay between two timestamps
    estimate  live estimate for a stay that is still open
    demo      scripted entries and exits against an in-memory ledger
"""

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import List, Optional
import argparse
import logging
import os
import sys

from .application.commands import CommandProcessor, EnterVehicleCommand, ExitVehicleCommand
from .application.parking_service import utcnow
from .config import LedgerConfig, load_config
from .domain.exceptions import ParkingLedgerError
from .domain.models import Money, ensure_aware
from .domain.pricing import FareCalculator, RatePolicy
from .infrastructure.factories import ParkingServiceFactory
from .presentation.views import HistoryView, OccupancyView, ViewRefreshHandler, format_elapsed


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Setup application logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )
    return logging.getLogger("parkledger")


def _parse_time(value: str) -> datetime:
    try:
        return ensure_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value!r}")


def _parse_rate(value: str) -> Decimal:
    try:
        rate = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a decimal amount: {value!r}")
    if not rate.is_finite() or rate < 0:
        raise argparse.ArgumentTypeError(f"rate must be non-negative: {value!r}")
    return rate


def _calculator(config: LedgerConfig, rate: Optional[Decimal]) -> FareCalculator:
    if rate is None:
        return FareCalculator(config.rate_policy())
    return FareCalculator(RatePolicy(Money(rate, config.currency)))


def cmd_fare(args: argparse.Namespace, config: LedgerConfig) -> int:
    calculator = _calculator(config, args.rate)
    fare = calculator.final_fare(args.entry, args.exit)
    hours = calculator.billed_hours(args.entry, args.exit)
    print(f"Elapsed: {format_elapsed(args.exit - args.entry)}")
    print(f"Billed hours: {hours}")
    print(f"Fare: {fare.format()}")
    return 0


def cmd_estimate(args: argparse.Namespace, config: LedgerConfig) -> int:
    calculator = _calculator(config, args.rate)
    at = args.at or utcnow()
    estimate = calculator.estimate(args.entry, at)
    hours = calculator.billed_hours(args.entry, at, live=True)
    print(f"Elapsed: {format_elapsed(at - args.entry)}")
    print(f"Billed hours so far: {hours}")
    print(f"Estimated fare: {estimate.format()}")
    return 0


def cmd_demo(args: argparse.Namespace, config: LedgerConfig) -> int:
    """Scripted session on a simulated clock"""
    start = utcnow().replace(hour=8, minute=0, second=0, microsecond=0)
    clock_time = [start]

    def clock() -> datetime:
        return clock_time[0]

    factory = ParkingServiceFactory(config)
    service = factory.create_service(clock=clock)
    processor = CommandProcessor(service)

    occupancy = OccupancyView(service)
    history = HistoryView(service, all_days=True)
    ViewRefreshHandler(occupancy, history).attach(service.event_bus)

    script = [
        (0, EnterVehicleCommand("ABC1234")),
        (20, EnterVehicleCommand("BRA2E19")),
        (35, EnterVehicleCommand("abc-1234")),
        (135, ExitVehicleCommand("ABC1234")),
        (140, ExitVehicleCommand("XYZ9999")),
    ]
    for minutes, command in script:
        clock_time[0] = start + timedelta(minutes=minutes)
        result = processor.execute(command)
        status = "ok" if result["success"] else f"{result['error_code']}: {result['error']}"
        print(f"[{clock_time[0]:%H:%M}] {command.get_description()} -> {status}")

    print()
    print("Parked now")
    print(occupancy.render())
    print()
    print("History")
    print(history.render())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parkledger",
        description="Parking stay ledger and hourly fare calculator"
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--log-level", help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fare = subparsers.add_parser("fare", help="Fare for a finished stay")
    fare.add_argument("--entry", type=_parse_time, required=True, help="Entry time (ISO-8601)")
    fare.add_argument("--exit", type=_parse_time, required=True, help="Exit time (ISO-8601)")
    fare.add_argument("--rate", type=_parse_rate, help="Hourly rate (overrides configuration)")
    fare.set_defaults(handler=cmd_fare)

    estimate = subparsers.add_parser("estimate", help="Live estimate for an open stay")
    estimate.add_argument("--entry", type=_parse_time, required=True, help="Entry time (ISO-8601)")
    estimate.add_argument("--at", type=_parse_time, help="Reference time (defaults to now)")
    estimate.add_argument("--rate", type=_parse_rate, help="Hourly rate (overrides configuration)")
    estimate.set_defaults(handler=cmd_estimate)

    demo = subparsers.add_parser("demo", help="Run a scripted session")
    demo.set_defaults(handler=cmd_demo)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        if args.log_level:
            config.log_level = args.log_level.upper()
            config.validate()
        setup_logging(config.logging_level, config.log_file)
        return args.handler(args, config)
    except ParkingLedgerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
