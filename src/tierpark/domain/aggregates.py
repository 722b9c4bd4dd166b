# File: src/tierpark/domain/aggregates.py
"""
Aggregate Root for the Multi-Floor Parking Lot

Aggregates:
1. Floor - ordered run of ParkingSpots, owned by the lot
2. ParkingLot - root aggregate that owns floors and both plate indices

Key Concepts:
- Floors and spots are reachable only through the ParkingLot root
- Every public ParkingLot method runs under one mutually exclusive lock
- Placement is two-phase: Floor.find_available proposes, Floor.commit
  re-validates and assigns; both run under the same lock acquisition
- Domain events are buffered on the root and drained by the caller
"""

from typing import List, Dict, Any, Sequence
import logging
import threading

from .models import (
    ParkingSpot, Vehicle, SpotLocation,
    DomainEvent, VehicleParkedEvent, VehicleRemovedEvent
)
from .exceptions import (
    DuplicatePlateError, LotFullError, VehicleNotFoundError,
    LotCorruptedError, LotClosedError, SpotUnavailableError
)


# ============================================================================
# FLOOR
# ============================================================================

class Floor:
    """
    Entity: one floor of the lot
    Spots are indexed densely by spot_index in [0, capacity)
    """

    def __init__(self, floor_id: int, spots_per_floor: int):
        if spots_per_floor < 1:
            raise ValueError(f"A floor needs at least one spot, got {spots_per_floor}")

        self.floor_id = floor_id
        self._spots: List[ParkingSpot] = [
            ParkingSpot(floor_id, index) for index in range(spots_per_floor)
        ]

    @property
    def capacity(self) -> int:
        return len(self._spots)

    @property
    def spots(self) -> Sequence[ParkingSpot]:
        """Read-only view of the spots in index order"""
        return tuple(self._spots)

    def find_available(self, required_count: int) -> List[int]:
        """
        Find the first run of `required_count` free spots
        Returns: ascending indices starting at the smallest possible index,
        or an empty list when the floor has no such run
        """
        if required_count < 1:
            raise ValueError(f"Required count must be at least 1, got {required_count}")

        run_start = 0
        run_length = 0
        for spot in self._spots:
            if spot.is_free:
                if run_length == 0:
                    run_start = spot.spot_index
                run_length += 1
                if run_length == required_count:
                    return list(range(run_start, run_start + required_count))
            else:
                run_length = 0
        return []

    def commit(self, license_plate: str, spot_indices: Sequence[int]) -> None:
        """
        Assign every index in `spot_indices` to the plate
        All indices are re-checked first, so a failed commit changes nothing
        Raises: SpotUnavailableError if any index is out of range or taken
        """
        if not spot_indices or len(set(spot_indices)) != len(spot_indices):
            raise SpotUnavailableError(self.floor_id, spot_indices)

        for index in spot_indices:
            if not 0 <= index < len(self._spots) or not self._spots[index].is_free:
                raise SpotUnavailableError(self.floor_id, spot_indices)

        for index in spot_indices:
            self._spots[index].assign(license_plate)

    def release_plate(self, license_plate: str) -> int:
        """
        Release every spot held by the plate
        Returns: number of spots released (0 if the plate is not on this floor)
        """
        released = 0
        for spot in self._spots:
            if spot.plate == license_plate:
                spot.release()
                released += 1
        return released

    def spots_of(self, license_plate: str) -> List[int]:
        """Indices currently held by the plate, ascending"""
        return [spot.spot_index for spot in self._spots if spot.plate == license_plate]

    def free_count(self) -> int:
        return sum(1 for spot in self._spots if spot.is_free)

    def occupied_count(self) -> int:
        return len(self._spots) - self.free_count()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "floor_id": self.floor_id,
            "capacity": self.capacity,
            "free": self.free_count(),
            "spots": [spot.to_dict() for spot in self._spots],
        }

    def __repr__(self) -> str:
        return f"Floor(floor_id={self.floor_id}, capacity={self.capacity})"


# ============================================================================
# BASE AGGREGATE ROOT
# ============================================================================

class AggregateRoot:
    """
    Base class for aggregate roots
    Provides domain event collection and versioning
    """

    def __init__(self):
        self._version: int = 1
        self._changes: List[DomainEvent] = []
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def version(self) -> int:
        """Get current aggregate version"""
        return self._version

    def _increment_version(self) -> None:
        """Increment version after state change"""
        self._version += 1

    def _add_domain_event(self, event: DomainEvent) -> None:
        """Add a domain event to the list of changes"""
        self._changes.append(event)

    def _drain_events(self) -> List[DomainEvent]:
        events = self._changes.copy()
        self._changes.clear()
        return events

    @property
    def has_changes(self) -> bool:
        """Check if aggregate has pending domain events"""
        return len(self._changes) > 0


# ============================================================================
# PARKING LOT AGGREGATE
# ============================================================================

class ParkingLot(AggregateRoot):
    """
    Aggregate Root: multi-floor parking lot

    Owns the floors, the plate -> location index and the plate -> vehicle
    index. One lock guards all three; it is never held across I/O.
    Placement is first fit: lowest floor id, then lowest starting index.
    """

    def __init__(self, num_floors: int, spots_per_floor: int):
        super().__init__()
        for name, value in (("num_floors", num_floors), ("spots_per_floor", spots_per_floor)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ValueError(f"{name} must be at least 1, got {value}")

        self._num_floors = num_floors
        self._spots_per_floor = spots_per_floor
        self._lock = threading.Lock()
        self._closed = False

        # Internal state
        self._floors: List[Floor] = [Floor(floor_id, spots_per_floor) for floor_id in range(num_floors)]
        self._locations: Dict[str, SpotLocation] = {}  # plate -> location
        self._vehicles: Dict[str, Vehicle] = {}        # plate -> vehicle

        self._logger.debug(
            f"Created ParkingLot with {num_floors} floor(s) x {spots_per_floor} spot(s)"
        )

    # ========================================================================
    # PROPERTIES
    # ========================================================================

    @property
    def num_floors(self) -> int:
        return self._num_floors

    @property
    def spots_per_floor(self) -> int:
        return self._spots_per_floor

    @property
    def total_capacity(self) -> int:
        return self._num_floors * self._spots_per_floor

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ========================================================================
    # PUBLIC BUSINESS METHODS
    # ========================================================================

    def park(self, vehicle: Vehicle) -> SpotLocation:
        """
        Park a vehicle on the first floor that fits it
        Returns: SpotLocation of the committed placement
        Raises: DuplicatePlateError if the plate is already parked,
                LotFullError if no floor has the required contiguous run
        """
        with self._lock:
            self._ensure_open()
            plate = vehicle.license_plate

            if plate in self._locations:
                raise DuplicatePlateError(plate)

            required = vehicle.required_count
            for floor in self._floors:
                proposal = floor.find_available(required)
                if not proposal:
                    continue
                try:
                    floor.commit(plate, proposal)
                except SpotUnavailableError:
                    continue

                location = SpotLocation(floor.floor_id, tuple(proposal))
                self._locations[plate] = location
                self._vehicles[plate] = vehicle
                self._increment_version()
                self._add_domain_event(VehicleParkedEvent(vehicle, location))
                return location

            raise LotFullError(plate, required)

    def remove(self, license_plate: str) -> SpotLocation:
        """
        Remove a parked vehicle and free its spots
        Returns: SpotLocation the vehicle occupied
        Raises: VehicleNotFoundError if the plate is not parked,
                LotCorruptedError if the floor held no spot for the plate
        """
        with self._lock:
            self._ensure_open()
            location = self._locations.get(license_plate)
            if location is None:
                raise VehicleNotFoundError(license_plate)

            released = self._floors[location.floor_id].release_plate(license_plate)
            if released == 0:
                raise LotCorruptedError(
                    f"Vehicle {license_plate} indexed on floor {location.floor_id} "
                    f"but holds no spot there"
                )

            del self._locations[license_plate]
            vehicle = self._vehicles.pop(license_plate)
            self._increment_version()
            self._add_domain_event(VehicleRemovedEvent(vehicle, location))
            return location

    def find(self, license_plate: str) -> SpotLocation:
        """
        Look up where a vehicle is parked
        Raises: VehicleNotFoundError if the plate is not parked
        """
        with self._lock:
            self._ensure_open()
            location = self._locations.get(license_plate)
            if location is None:
                raise VehicleNotFoundError(license_plate)
            return location

    def available_per_floor(self) -> List[int]:
        """Free spot count for every floor, in floor id order"""
        with self._lock:
            self._ensure_open()
            return [floor.free_count() for floor in self._floors]

    def is_full(self) -> bool:
        """True when no floor has a single free spot"""
        with self._lock:
            self._ensure_open()
            return not any(floor.free_count() for floor in self._floors)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def occupied_count(self) -> int:
        with self._lock:
            self._ensure_open()
            return sum(floor.occupied_count() for floor in self._floors)

    def parked_plates(self) -> List[str]:
        """Plates currently parked, sorted"""
        with self._lock:
            self._ensure_open()
            return sorted(self._locations)

    def get_vehicle(self, license_plate: str) -> Vehicle:
        """
        Get the vehicle record held for a parked plate
        Raises: VehicleNotFoundError if the plate is not parked
        """
        with self._lock:
            self._ensure_open()
            vehicle = self._vehicles.get(license_plate)
            if vehicle is None:
                raise VehicleNotFoundError(license_plate)
            return vehicle

    def clear_events(self) -> List[DomainEvent]:
        """Clear and return all buffered domain events"""
        with self._lock:
            return self._drain_events()

    def get_status_report(self) -> Dict[str, Any]:
        """Consistent snapshot of occupancy, taken under one lock acquisition"""
        with self._lock:
            self._ensure_open()
            free = [floor.free_count() for floor in self._floors]
            return {
                "num_floors": self._num_floors,
                "spots_per_floor": self._spots_per_floor,
                "total_capacity": self.total_capacity,
                "available_per_floor": free,
                "available": sum(free),
                "occupied": self.total_capacity - sum(free),
                "vehicles": len(self._locations),
                "is_full": not any(free),
                "version": self._version,
            }

    # ========================================================================
    # INVARIANTS
    # ========================================================================

    def check_invariants(self) -> None:
        """
        Verify the spot grid and both plate indices agree
        Raises: LotCorruptedError describing the first violation found
        """
        with self._lock:
            self._ensure_open()
            self._validate_invariants()

    def _validate_invariants(self) -> None:
        # Both indices cover the same plates
        if self._locations.keys() != self._vehicles.keys():
            raise LotCorruptedError("Location index and vehicle index disagree on parked plates")

        claimed: Dict[tuple, str] = {}
        for plate, location in self._locations.items():
            vehicle = self._vehicles[plate]

            if not 0 <= location.floor_id < self._num_floors:
                raise LotCorruptedError(f"Vehicle {plate} indexed on unknown floor {location.floor_id}")

            if len(location.spot_indices) != vehicle.required_count:
                raise LotCorruptedError(
                    f"Vehicle {plate} holds {len(location.spot_indices)} spot(s), "
                    f"needs {vehicle.required_count}"
                )

            if not location.is_contiguous:
                raise LotCorruptedError(f"Vehicle {plate} holds non-contiguous spots {location.spot_indices}")

            for index in location.spot_indices:
                key = (location.floor_id, index)
                if key in claimed:
                    raise LotCorruptedError(
                        f"Spot {index} on floor {location.floor_id} claimed by "
                        f"{claimed[key]} and {plate}"
                    )
                claimed[key] = plate

        # Every occupied spot is claimed by exactly the plate occupying it
        for floor in self._floors:
            for spot in floor.spots:
                key = (floor.floor_id, spot.spot_index)
                if spot.plate != claimed.get(key):
                    raise LotCorruptedError(
                        f"Spot {spot.spot_index} on floor {floor.floor_id} holds "
                        f"{spot.plate!r}, index says {claimed.get(key)!r}"
                    )

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def close(self) -> None:
        """Drop remaining vehicles, then the floors and their spots"""
        with self._lock:
            if self._closed:
                return
            remaining = len(self._vehicles)
            self._vehicles.clear()
            self._locations.clear()
            self._floors.clear()
            self._changes.clear()
            self._closed = True
        self._logger.debug(f"Closed ParkingLot, dropped {remaining} vehicle(s)")

    def __enter__(self) -> 'ParkingLot':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise LotClosedError("Parking lot is closed")

    # Unlocked floor access, used by diagnostics and tests
    def _floor(self, floor_id: int) -> Floor:
        return self._floors[floor_id]

    def __repr__(self) -> str:
        return (
            f"ParkingLot(num_floors={self._num_floors}, "
            f"spots_per_floor={self._spots_per_floor})"
        )
