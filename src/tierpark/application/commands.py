# File: src/tierpark/application/commands.py
"""
Command Pattern Implementation for the Parking Lot Terminal

Each terminal line is parsed into a command object that is executed
against the ParkingService. Commands never print; they hand
back a CommandResult that the presentation layer renders.

Command Types:
1. Mutations - park_vehicle, remove_vehicle
2. Queries - available_spots, is_full, find_vehicle, status
3. Session - help, exit
"""

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Tuple
import logging
import shlex

from ..domain.exceptions import UnknownVehicleClassError
from ..domain.models import VehicleClass
from .dtos import BaseDTO
from .parking_service import ParkingService


# ============================================================================
# COMMAND RESULTS
# ============================================================================

@dataclass
class CommandResult:
    """Outcome of executing a command"""
    command_name: str
    success: bool
    payload: Optional[BaseDTO] = None
    message: Optional[str] = None
    exit_requested: bool = False


class CommandParseError(ValueError):
    """Raised when a terminal line cannot be turned into a command"""


# ============================================================================
# COMMAND INTERFACES AND BASE CLASSES
# ============================================================================

class Command(ABC):
    """
    Abstract base class for all terminal commands

    Subclasses set `name` (the terminal keyword) and `usage`.
    """

    name: str = ""
    usage: str = ""
    summary: str = ""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    @abstractmethod
    def from_args(cls, args: List[str]) -> 'Command':
        """Build the command from the arguments following its keyword"""

    @abstractmethod
    def execute(self, service: ParkingService) -> CommandResult:
        """Execute the command using the provided service"""

    def get_description(self) -> str:
        """Get human-readable command description"""
        return self.__class__.__name__.replace("Command", "")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class _PlateCommand(Command):
    """Base for commands taking exactly one license plate"""

    def __init__(self, license_plate: str):
        super().__init__()
        self.license_plate = license_plate

    @classmethod
    def from_args(cls, args: List[str]) -> 'Command':
        if not args or not args[0]:
            raise CommandParseError(f"Usage: {cls.usage}")
        return cls(args[0])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(license_plate={self.license_plate!r})"


# ============================================================================
# PARKING COMMANDS
# ============================================================================

class ParkVehicleCommand(Command):
    """Park a vehicle of a given class"""

    name = "park_vehicle"
    usage = "park_vehicle <license_plate> <vehicle_type>"
    summary = "Park a Bike, Car or Truck"

    def __init__(self, license_plate: str, vehicle_class: VehicleClass):
        super().__init__()
        self.license_plate = license_plate
        self.vehicle_class = vehicle_class

    @classmethod
    def from_args(cls, args: List[str]) -> 'Command':
        # shlex turns '' into an empty token, which is no plate at all
        if len(args) < 2 or not args[0]:
            raise CommandParseError(f"Invalid input. Usage: {cls.usage}")
        try:
            vehicle_class = VehicleClass.from_label(args[1])
        except UnknownVehicleClassError:
            raise CommandParseError("Unknown vehicle type.") from None
        return cls(args[0], vehicle_class)

    def execute(self, service: ParkingService) -> CommandResult:
        result = service.park(self.license_plate, self.vehicle_class.value)
        return CommandResult(self.name, result.success, payload=result)

    def __repr__(self) -> str:
        return (
            f"ParkVehicleCommand(license_plate={self.license_plate!r}, "
            f"vehicle_class={self.vehicle_class.value})"
        )


class RemoveVehicleCommand(_PlateCommand):
    """Remove a parked vehicle"""

    name = "remove_vehicle"
    usage = "remove_vehicle <license_plate>"
    summary = "Remove a parked vehicle"

    def execute(self, service: ParkingService) -> CommandResult:
        result = service.remove(self.license_plate)
        return CommandResult(self.name, result.success, payload=result)


class FindVehicleCommand(_PlateCommand):
    """Look up where a vehicle is parked"""

    name = "find_vehicle"
    usage = "find_vehicle <license_plate>"
    summary = "Show the floor and spots of a parked vehicle"

    def execute(self, service: ParkingService) -> CommandResult:
        result = service.find(self.license_plate)
        return CommandResult(self.name, result.success, payload=result)


# ============================================================================
# QUERY COMMANDS
# ============================================================================

class _NoArgCommand(Command):
    @classmethod
    def from_args(cls, args: List[str]) -> 'Command':
        return cls()


class AvailableSpotsCommand(_NoArgCommand):
    """Free spots per floor"""

    name = "available_spots"
    usage = "available_spots"
    summary = "Show free spots on every floor"

    def execute(self, service: ParkingService) -> CommandResult:
        return CommandResult(self.name, True, payload=service.available_spots())


class IsFullCommand(_NoArgCommand):
    """Whether the lot is full"""

    name = "is_full"
    usage = "is_full"
    summary = "Check whether every spot is taken"

    def execute(self, service: ParkingService) -> CommandResult:
        return CommandResult(self.name, True, payload=service.is_full())


class StatusCommand(_NoArgCommand):
    """Occupancy summary with invariant check"""

    name = "status"
    usage = "status"
    summary = "Show occupancy summary and check consistency"

    def execute(self, service: ParkingService) -> CommandResult:
        status = service.get_status()
        return CommandResult(self.name, status.invariants_ok, payload=status)


# ============================================================================
# SESSION COMMANDS
# ============================================================================

class HelpCommand(_NoArgCommand):
    """List available commands"""

    name = "help"
    usage = "help"
    summary = "List commands"

    def execute(self, service: ParkingService) -> CommandResult:
        lines = ["Commands:"] + [
            f"  {command.usage:<45} {command.summary}" for command in COMMANDS.values()
        ]
        return CommandResult(self.name, True, message="\n".join(lines))


class ExitCommand(_NoArgCommand):
    """End the terminal session"""

    name = "exit"
    usage = "exit"
    summary = "Leave the terminal"

    def execute(self, service: ParkingService) -> CommandResult:
        return CommandResult(self.name, True, exit_requested=True)


COMMANDS: Dict[str, type] = {
    command.name: command
    for command in (
        ParkVehicleCommand, RemoveVehicleCommand, AvailableSpotsCommand,
        IsFullCommand, FindVehicleCommand, StatusCommand, HelpCommand, ExitCommand,
    )
}


# ============================================================================
# PARSER
# ============================================================================

class CommandParser:
    """
    Turns terminal lines such as "park_vehicle ABC Car" into commands

    Keywords and vehicle class labels are case-sensitive. Arguments past
    the ones a command needs are ignored.
    """

    def __init__(self, commands: Optional[Dict[str, type]] = None):
        self.commands = dict(commands or COMMANDS)

    def parse(self, line: str) -> Optional[Command]:
        """
        Parse one line
        Returns: the command, or None for a blank line
        Raises: CommandParseError with the message to show the user
        """
        tokens = self._tokenize(line)
        if not tokens:
            return None

        keyword, args = tokens[0], tokens[1:]
        command_class = self.commands.get(keyword)
        if command_class is None:
            raise CommandParseError("Invalid command.")
        return command_class.from_args(args)

    @staticmethod
    def _tokenize(line: str) -> List[str]:
        try:
            return shlex.split(line)
        except ValueError:
            return line.split()


class CommandInvoker:
    """
    Parses and executes lines against a service, keeping a history

    Parse errors become failed CommandResults so callers only deal with
    one result type. Only the most recent `history_limit` lines are kept.
    """

    HISTORY_LIMIT = 100

    def __init__(self, service: ParkingService, parser: Optional[CommandParser] = None,
                 history_limit: int = HISTORY_LIMIT):
        self.service = service
        self.parser = parser or CommandParser()
        self.history: Deque[Tuple[str, CommandResult]] = deque(maxlen=history_limit)
        self.logger = logging.getLogger(self.__class__.__name__)

    def run_line(self, line: str) -> Optional[CommandResult]:
        """Returns: the result, or None when the line was blank"""
        try:
            command = self.parser.parse(line)
        except CommandParseError as e:
            result = CommandResult("", False, message=str(e))
        else:
            if command is None:
                return None
            self.logger.debug(f"Executing {command!r}")
            result = command.execute(self.service)

        self.history.append((line, result))
        return result
