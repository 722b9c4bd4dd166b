# File: tests/integration/test_concurrency.py
"""
Concurrency tests: many threads parking and removing against one lot.
"""

import threading
import unittest
from concurrent.futures import ThreadPoolExecutor

from tierpark.application.dtos import ResultStatus
from tierpark.application.parking_service import ParkingService
from tierpark.domain.aggregates import ParkingLot
from tierpark.domain.models import Vehicle, VehicleClass
from tierpark.domain.exceptions import DuplicatePlateError, LotFullError
from tierpark.infrastructure.messaging import EventBus


class TestConcurrentParking(unittest.TestCase):

    WORKERS = 16

    def run_together(self, tasks):
        """Start every task behind a barrier and collect results in order"""
        barrier = threading.Barrier(len(tasks))

        def gated(task):
            barrier.wait()
            return task()

        with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
            futures = [executor.submit(gated, task) for task in tasks]
            return [future.result() for future in futures]

    def assert_no_shared_spots(self, lot):
        claimed = set()
        for location in map(lot.find, lot.parked_plates()):
            for index in location.spot_indices:
                key = (location.floor_id, index)
                self.assertNotIn(key, claimed)
                claimed.add(key)
        return claimed

    def test_distinct_plates_all_park(self):
        lot = ParkingLot(4, 10)
        plates = [f"C{i}" for i in range(self.WORKERS)]

        locations = self.run_together(
            [lambda p=p: lot.park(Vehicle(p, VehicleClass.CAR)) for p in plates]
        )

        self.assertEqual(len(locations), self.WORKERS)
        self.assertEqual(lot.parked_plates(), sorted(plates))
        self.assertEqual(len(self.assert_no_shared_spots(lot)), self.WORKERS)
        lot.check_invariants()

    def test_mixed_classes_fill_lot_exactly(self):
        """Trucks and cars racing for 120 spots never double-book"""
        lot = ParkingLot(4, 30)
        vehicles = [
            Vehicle(f"T{i}", VehicleClass.TRUCK) if i % 2 else Vehicle(f"C{i}", VehicleClass.CAR)
            for i in range(80)
        ]

        def attempt(vehicle):
            try:
                lot.park(vehicle)
                return True
            except LotFullError:
                return False

        results = self.run_together([lambda v=v: attempt(v) for v in vehicles[:self.WORKERS]])
        results += [attempt(v) for v in vehicles[self.WORKERS:]]

        parked = [v for v, ok in zip(vehicles, results) if ok]
        used = sum(v.required_count for v in parked)
        self.assertEqual(used, lot.occupied_count())
        self.assertEqual(len(self.assert_no_shared_spots(lot)), used)
        self.assertLessEqual(used, lot.total_capacity)
        lot.check_invariants()

    def test_same_plate_race_has_one_winner(self):
        lot = ParkingLot(2, 8)

        def attempt():
            try:
                lot.park(Vehicle("SAME", VehicleClass.BIKE))
                return True
            except DuplicatePlateError:
                return False

        results = self.run_together([attempt] * self.WORKERS)

        self.assertEqual(results.count(True), 1)
        self.assertEqual(lot.occupied_count(), 1)
        lot.check_invariants()

    def test_park_and_remove_interleaved(self):
        lot = ParkingLot(2, 16)
        for i in range(8):
            lot.park(Vehicle(f"OLD{i}", VehicleClass.CAR))

        tasks = [lambda i=i: lot.remove(f"OLD{i}") for i in range(8)]
        tasks += [lambda i=i: lot.park(Vehicle(f"NEW{i}", VehicleClass.TRUCK)) for i in range(8)]
        self.run_together(tasks)

        self.assertEqual(lot.parked_plates(), sorted(f"NEW{i}" for i in range(8)))
        self.assertEqual(lot.occupied_count(), 16)
        lot.check_invariants()

    def test_service_publishes_every_event(self):
        event_bus = EventBus()
        received = []
        lock = threading.Lock()

        def record(event):
            with lock:
                received.append(event.event_type)

        event_bus.subscribe(EventBus.WILDCARD, record)
        service = ParkingService(ParkingLot(2, 10), event_bus)

        results = self.run_together(
            [lambda i=i: service.park(f"B{i}", "Bike") for i in range(self.WORKERS)]
        )

        self.assertTrue(all(r.status == ResultStatus.PARKED for r in results))
        self.assertEqual(received, ["vehicle.parked"] * self.WORKERS)
        self.assertTrue(service.get_status().invariants_ok)

    def test_events_delivered_in_commit_order(self):
        """A vehicle's removal is never delivered before its arrival"""
        event_bus = EventBus()
        delivered = []
        event_bus.subscribe(
            EventBus.WILDCARD,
            lambda event: delivered.append((event.event_type, event.vehicle.license_plate)),
        )
        service = ParkingService(ParkingLot(1, self.WORKERS), event_bus)

        def visit(plate):
            for _ in range(20):
                service.park(plate, "Car")
                service.remove(plate)

        self.run_together([lambda i=i: visit(f"V{i}") for i in range(self.WORKERS)])

        self.assertEqual(len(delivered), self.WORKERS * 40)
        for i in range(self.WORKERS):
            kinds = [kind for kind, plate in delivered if plate == f"V{i}"]
            self.assertEqual(kinds, ["vehicle.parked", "vehicle.removed"] * 20)


if __name__ == "__main__":
    unittest.main()
