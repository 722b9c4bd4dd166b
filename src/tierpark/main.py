# File: src/tierpark/main.py
"""
Main application entry point for the parking lot terminal

Wires the components together (settings -> lot -> service -> terminal)
and runs the interactive command loop.
"""

from typing import List, Optional, TextIO
import argparse
import logging
import sys

from pydantic import ValidationError

from .config import LotSettings
from .application.parking_service import ParkingService
from .infrastructure.messaging import EventBus, LoggingEventHandler
from .presentation.terminal import ParkingTerminal


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> logging.Logger:
    """Setup application logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )
    return logging.getLogger("tierpark")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tierpark",
        description="Interactive multi-floor parking lot terminal",
    )
    parser.add_argument("-f", "--floors", type=int, help="number of floors (>= 1)")
    parser.add_argument("-s", "--spots", type=int, help="number of spots per floor (>= 1)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    parser.add_argument("--log-file", help="also write log records to this file")
    return parser


def prompt_positive_int(question: str, stdin: TextIO, stdout: TextIO) -> int:
    """
    Ask for a positive integer on the given streams
    Raises: ValueError on end of input or a value that is not a positive integer
    """
    stdout.write(question)
    stdout.flush()
    answer = stdin.readline()
    if not answer:
        raise ValueError("No value given")
    value = int(answer.strip())
    if value < 1:
        raise ValueError(f"Value must be at least 1, got {value}")
    return value


def resolve_settings(args: argparse.Namespace) -> LotSettings:
    """Command line flags override environment and .env values"""
    overrides = {
        "num_floors": args.floors,
        "spots_per_floor": args.spots,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    return LotSettings(**{key: value for key, value in overrides.items() if value is not None})


def create_service(num_floors: int, spots_per_floor: int) -> ParkingService:
    """Build the parking service with event logging attached"""
    event_bus = EventBus()
    event_bus.subscribe(EventBus.WILDCARD, LoggingEventHandler())
    return ParkingService.create(num_floors, spots_per_floor, event_bus)


def main(
    argv: Optional[List[str]] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    args = build_parser().parse_args(argv)

    try:
        settings = resolve_settings(args)
    except ValidationError as e:
        sys.stderr.write(f"Invalid configuration:\n{e}\n")
        return 2

    logger = setup_logging(settings.log_level, settings.log_file)

    num_floors, spots_per_floor = settings.num_floors, settings.spots_per_floor
    if not settings.has_layout:
        # Prompts read the same stream as the terminal, piped or not
        try:
            if num_floors is None:
                num_floors = prompt_positive_int("Enter the number of floors: ", stdin, stdout)
            if spots_per_floor is None:
                spots_per_floor = prompt_positive_int(
                    "Enter the number of spots per floor: ", stdin, stdout
                )
        except ValueError as e:
            logger.error(f"Invalid lot layout: {e}")
            stdout.write("Invalid input. Floors and spots must be positive integers.\n")
            return 2

    logger.info(f"Starting parking lot with {num_floors} floor(s) x {spots_per_floor} spot(s)")
    service = create_service(num_floors, spots_per_floor)
    terminal = ParkingTerminal(service, stdin=stdin, stdout=stdout, prompt=settings.prompt)
    try:
        terminal.run()
    except KeyboardInterrupt:
        stdout.write("\n")
    finally:
        service.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
