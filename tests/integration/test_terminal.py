# File: tests/integration/test_terminal.py
"""
Terminal session tests driven through in-memory text streams.
"""

import io
import logging
import os
import unittest
from unittest import mock

from tierpark.application.commands import CommandResult
from tierpark.application.dtos import LotStatusDTO
from tierpark.application.parking_service import ParkingService
from tierpark.main import main, prompt_positive_int
from tierpark.presentation.terminal import ParkingTerminal, ResponseRenderer


def session(service, *lines):
    stdin = io.StringIO("".join(line + "\n" for line in lines))
    stdout = io.StringIO()
    terminal = ParkingTerminal(service, stdin=stdin, stdout=stdout, prompt="> ")
    executed = terminal.run()
    return executed, stdout.getvalue()


class TestParkingTerminal(unittest.TestCase):

    def setUp(self):
        self.service = ParkingService.create(2, 2)

    def test_banner_lists_commands(self):
        _, output = session(self.service)
        self.assertTrue(output.startswith("Parking Lot System\nCommands:\n"))
        self.assertIn("  park_vehicle <license_plate> <vehicle_type>\n", output)
        self.assertIn("  exit\n", output)

    def test_full_session(self):
        executed, output = session(
            self.service,
            "park_vehicle T1 Truck",
            "park_vehicle C1 Car",
            "find_vehicle C1",
            "available_spots",
            "is_full",
            "remove_vehicle T1",
            "exit",
            "park_vehicle NEVER Car",
        )

        self.assertEqual(executed, 7)
        for expected in [
            "Parked T1 on floor 0 at spot(s): 0 1",
            "Parked C1 on floor 1 at spot(s): 0",
            "Vehicle C1 is parked on floor 1 at spot(s): 0",
            "Floor 0: 0 spots available.",
            "Floor 1: 1 spots available.",
            "Parking lot has available spots.",
            "Vehicle T1 removed from floor 0",
        ]:
            self.assertIn(expected + "\n", output)
        self.assertNotIn("NEVER", output)

    def test_rejections_are_reported(self):
        _, output = session(
            self.service,
            "park_vehicle T1 Truck",
            "park_vehicle T1 Truck",
            "park_vehicle T2 Truck",
            "park_vehicle T3 Truck",
            "remove_vehicle GONE",
            "park_vehicle B1 bike",
            "park_vehicle B1",
            "launch_rocket",
        )

        for expected in [
            "Vehicle T1 is already parked.",
            "Parking Lot Full or no suitable spot available for T3",
            "Vehicle GONE not found.",
            "Unknown vehicle type.",
            "Invalid input. Usage: park_vehicle <license_plate> <vehicle_type>",
            "Invalid command.",
        ]:
            self.assertIn(expected + "\n", output)

    def test_empty_quoted_plate_keeps_session_alive(self):
        executed, output = session(
            self.service,
            'park_vehicle "" Car',
            "remove_vehicle ''",
            "is_full",
        )

        self.assertEqual(executed, 3)
        self.assertIn("Invalid input. Usage: park_vehicle <license_plate> <vehicle_type>\n", output)
        self.assertIn("Usage: remove_vehicle <license_plate>\n", output)
        self.assertIn("Parking lot has available spots.\n", output)

    def test_blank_lines_skipped(self):
        executed, output = session(self.service, "", "   ", "is_full")
        self.assertEqual(executed, 1)
        self.assertIn("Parking lot has available spots.\n", output)

    def test_full_lot(self):
        _, output = session(ParkingService.create(1, 1), "park_vehicle B1 Bike", "is_full")
        self.assertIn("Parking lot is full.\n", output)

    def test_status_and_help(self):
        _, output = session(self.service, "park_vehicle T1 Truck", "status", "help")
        self.assertIn("Floors: 2 x 2 spots (4 total)\n", output)
        self.assertIn("Occupied: 2 (50%), available: 2, vehicles: 1\n", output)
        self.assertIn("Consistency check: OK\n", output)
        self.assertIn("Show free spots on every floor", output)


class TestResponseRenderer(unittest.TestCase):

    def test_failed_status(self):
        status = LotStatusDTO(
            num_floors=1, spots_per_floor=1, total_capacity=1, available_per_floor=[1],
            available=1, occupied=0, vehicles=1, is_full=False, version=2,
            invariants_ok=False, invariant_error="Plate X has no spots",
        )
        lines = ResponseRenderer().render(CommandResult("status", False, payload=status))
        self.assertEqual(lines[-1], "Consistency check FAILED: Plate X has no spots")

    def test_message_only(self):
        lines = ResponseRenderer().render(CommandResult("help", True, message="a\nb"))
        self.assertEqual(lines, ["a", "b"])


@mock.patch.dict(os.environ, {}, clear=True)
@mock.patch("tierpark.main.setup_logging", return_value=logging.getLogger("tierpark"))
class TestMain(unittest.TestCase):

    def test_layout_from_flags(self, _setup_logging):
        stdin = io.StringIO("park_vehicle C1 Car\nexit\n")
        stdout = io.StringIO()

        self.assertEqual(main(["--floors", "1", "--spots", "4"], stdin, stdout), 0)
        self.assertIn("Parked C1 on floor 0 at spot(s): 0\n", stdout.getvalue())
        self.assertNotIn("Enter the number", stdout.getvalue())

    def test_layout_from_environment(self, _setup_logging):
        stdout = io.StringIO()
        with mock.patch.dict(os.environ, {"TIERPARK_NUM_FLOORS": "3", "TIERPARK_SPOTS_PER_FLOOR": "1"}):
            self.assertEqual(main([], io.StringIO("available_spots\n"), stdout), 0)
        self.assertIn("Floor 2: 1 spots available.\n", stdout.getvalue())

    def test_layout_from_prompts(self, _setup_logging):
        stdin = io.StringIO("2\n3\npark_vehicle T1 Truck\n")
        stdout = io.StringIO()

        self.assertEqual(main([], stdin, stdout), 0)
        output = stdout.getvalue()
        self.assertIn("Enter the number of floors: ", output)
        self.assertIn("Enter the number of spots per floor: ", output)
        self.assertIn("Parked T1 on floor 0 at spot(s): 0 1\n", output)

    def test_only_missing_dimension_is_prompted(self, _setup_logging):
        stdin = io.StringIO("5\navailable_spots\n")
        stdout = io.StringIO()

        self.assertEqual(main(["--floors", "1"], stdin, stdout), 0)
        output = stdout.getvalue()
        self.assertNotIn("Enter the number of floors", output)
        self.assertIn("Enter the number of spots per floor: ", output)
        self.assertIn("Floor 0: 5 spots available.\n", output)

    def test_invalid_prompt_answer(self, _setup_logging):
        for answers in ["0\n", "two\n", "2\n-1\n", ""]:
            stdout = io.StringIO()
            self.assertEqual(main([], io.StringIO(answers), stdout), 2)
            self.assertIn("Invalid input. Floors and spots must be positive integers.", stdout.getvalue())

    def test_invalid_flag_value(self, _setup_logging):
        with mock.patch("sys.stderr", new_callable=io.StringIO) as stderr:
            self.assertEqual(main(["--floors", "0", "--spots", "2"], io.StringIO(), io.StringIO()), 2)
        self.assertIn("Invalid configuration", stderr.getvalue())


class TestPromptPositiveInt(unittest.TestCase):

    def test_accepts_padded_number(self):
        self.assertEqual(prompt_positive_int("? ", io.StringIO(" 7 \n"), io.StringIO()), 7)

    def test_end_of_input(self):
        with self.assertRaises(ValueError):
            prompt_positive_int("? ", io.StringIO(""), io.StringIO())


if __name__ == "__main__":
    unittest.main()
