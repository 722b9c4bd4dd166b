# File: src/tierpark/presentation/terminal.py
"""
Interactive command terminal for the parking lot

ResponseRenderer turns CommandResults into the lines shown to the user;
ParkingTerminal runs the read-eval-print loop over any pair of text
streams so it can be driven from tests as easily as from a console.
"""

from typing import List, Optional, TextIO
import logging
import sys

from ..application.commands import CommandInvoker, CommandResult, COMMANDS
from ..application.dtos import (
    ResultStatus, OperationResultDTO, AvailabilityDTO, FullnessDTO, LotStatusDTO
)
from ..application.parking_service import ParkingService


class ResponseRenderer:
    """Formats command results as human-readable lines"""

    def render(self, result: CommandResult) -> List[str]:
        payload = result.payload
        if isinstance(payload, OperationResultDTO):
            return [self._render_operation(payload)]
        if isinstance(payload, AvailabilityDTO):
            return [
                f"Floor {floor_id}: {count} spots available."
                for floor_id, count in enumerate(payload.available_per_floor)
            ]
        if isinstance(payload, FullnessDTO):
            return ["Parking lot is full." if payload.is_full else "Parking lot has available spots."]
        if isinstance(payload, LotStatusDTO):
            return self._render_status(payload)
        if result.message:
            return result.message.splitlines()
        return []

    @staticmethod
    def _render_operation(result: OperationResultDTO) -> str:
        plate = result.license_plate
        status = result.status

        if status == ResultStatus.PARKED:
            return (
                f"Parked {plate} on floor {result.location.floor_id} "
                f"at spot(s): {result.location.format_spots()}"
            )
        if status == ResultStatus.REMOVED:
            return f"Vehicle {plate} removed from floor {result.location.floor_id}"
        if status == ResultStatus.FOUND:
            return (
                f"Vehicle {plate} is parked on floor {result.location.floor_id} "
                f"at spot(s): {result.location.format_spots()}"
            )
        if status == ResultStatus.DUPLICATE_PLATE:
            return f"Vehicle {plate} is already parked."
        if status == ResultStatus.FULL:
            return f"Parking Lot Full or no suitable spot available for {plate}"
        if status == ResultStatus.NOT_FOUND:
            return f"Vehicle {plate} not found."
        if status == ResultStatus.UNKNOWN_CLASS:
            return "Unknown vehicle type."
        return result.message or "Invalid input."

    @staticmethod
    def _render_status(status: LotStatusDTO) -> List[str]:
        lines = [
            f"Floors: {status.num_floors} x {status.spots_per_floor} spots "
            f"({status.total_capacity} total)",
            f"Occupied: {status.occupied} ({status.occupancy_rate:.0%}), "
            f"available: {status.available}, vehicles: {status.vehicles}",
        ]
        if status.invariants_ok:
            lines.append("Consistency check: OK")
        else:
            lines.append(f"Consistency check FAILED: {status.invariant_error}")
        return lines


class ParkingTerminal:
    """
    Read-eval-print loop over the command layer

    Reads until `exit` or end of input; blank lines are skipped.
    """

    def __init__(
        self,
        service: ParkingService,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        prompt: str = "\nEnter command: ",
        renderer: Optional[ResponseRenderer] = None,
    ):
        self.service = service
        self.invoker = CommandInvoker(service)
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.prompt = prompt
        self.renderer = renderer or ResponseRenderer()
        self.logger = logging.getLogger(self.__class__.__name__)

    def print_banner(self) -> None:
        self._write("Parking Lot System")
        self._write("Commands:")
        for command in COMMANDS.values():
            self._write(f"  {command.usage}")

    def execute(self, line: str) -> Optional[CommandResult]:
        """Run one line and write its rendering; returns None for blank lines"""
        result = self.invoker.run_line(line)
        if result is not None:
            for output in self.renderer.render(result):
                self._write(output)
        return result

    def run(self) -> int:
        """
        Run the loop until exit or end of input
        Returns: number of commands executed
        """
        self.print_banner()
        executed = 0
        while True:
            self.stdout.write(self.prompt)
            self.stdout.flush()

            line = self.stdin.readline()
            if not line:
                self.logger.debug("End of input")
                break

            result = self.execute(line.strip())
            if result is None:
                continue
            executed += 1
            if result.exit_requested:
                break
        return executed

    def _write(self, text: str) -> None:
        self.stdout.write(text + "\n")
