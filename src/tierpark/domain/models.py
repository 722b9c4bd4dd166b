# File: src/tierpark/domain/models.py
"""
Domain Models for the Multi-Floor Parking Lot

This module contains:
1. Enums: vehicle size classes and spot states
2. Value Objects: Vehicle and SpotLocation (immutable, validated)
3. Entities: ParkingSpot, the smallest unit of parking capacity
4. Domain Events: events recorded when vehicles arrive and leave

Spots are not synchronized on their own; the owning lot serializes
every access to them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any, Tuple
from datetime import datetime
from enum import Enum
import uuid

from .exceptions import (
    SpotAlreadyOccupiedError, SpotAlreadyFreeError, UnknownVehicleClassError
)


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class VehicleClass(Enum):
    """
    Enumeration of vehicle size classes
    Each class needs a fixed number of contiguous spots on one floor
    """
    BIKE = "Bike"
    CAR = "Car"
    TRUCK = "Truck"

    @property
    def required_count(self) -> int:
        """Number of contiguous spots a vehicle of this class occupies"""
        return _REQUIRED_SPOTS[self]

    @classmethod
    def from_label(cls, label: str) -> 'VehicleClass':
        """
        Resolve a class label such as "Truck" (case-sensitive)
        Raises: UnknownVehicleClassError for anything else
        """
        for vehicle_class in cls:
            if vehicle_class.value == label:
                return vehicle_class
        raise UnknownVehicleClassError(label)

    def __str__(self) -> str:
        return self.value


_REQUIRED_SPOTS = {
    VehicleClass.BIKE: 1,
    VehicleClass.CAR: 1,
    VehicleClass.TRUCK: 2,
}


class SpotState(Enum):
    """Occupancy state of a single parking spot"""
    FREE = "free"
    OCCUPIED = "occupied"


# ============================================================================
# VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)  # Value objects are immutable
class Vehicle:
    """
    Value Object: a vehicle presented for parking
    The license plate is opaque: it is neither trimmed nor case-folded
    """
    license_plate: str
    vehicle_class: VehicleClass

    def __post_init__(self):
        """Validate vehicle after initialization"""
        if not isinstance(self.license_plate, str) or not self.license_plate:
            raise ValueError("License plate cannot be empty")

        if not isinstance(self.vehicle_class, VehicleClass):
            raise TypeError(
                f"vehicle_class must be a VehicleClass, got {type(self.vehicle_class).__name__}"
            )

    @property
    def required_count(self) -> int:
        """Number of contiguous spots this vehicle needs"""
        return self.vehicle_class.required_count

    @classmethod
    def from_label(cls, license_plate: str, label: str) -> 'Vehicle':
        """Build a vehicle from a plate and a class label such as "Car" """
        return cls(license_plate, VehicleClass.from_label(label))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "license_plate": self.license_plate,
            "vehicle_class": self.vehicle_class.value,
            "required_count": self.required_count,
        }

    def __str__(self) -> str:
        return f"{self.vehicle_class} [{self.license_plate}]"


@dataclass(frozen=True)
class SpotLocation:
    """
    Value Object: where a vehicle is parked
    A floor id and the ascending, distinct spot indices it occupies there
    """
    floor_id: int
    spot_indices: Tuple[int, ...]

    def __post_init__(self):
        """Normalise indices to a tuple and validate them"""
        object.__setattr__(self, 'spot_indices', tuple(self.spot_indices))

        if self.floor_id < 0:
            raise ValueError(f"Floor id cannot be negative: {self.floor_id}")

        if not self.spot_indices:
            raise ValueError("A location needs at least one spot index")

        if any(index < 0 for index in self.spot_indices):
            raise ValueError(f"Spot indices cannot be negative: {self.spot_indices}")

        if any(a >= b for a, b in zip(self.spot_indices, self.spot_indices[1:])):
            raise ValueError(f"Spot indices must be strictly ascending: {self.spot_indices}")

    @property
    def is_contiguous(self) -> bool:
        """True when the indices form one unbroken run"""
        first = self.spot_indices[0]
        return self.spot_indices == tuple(range(first, first + len(self.spot_indices)))

    def format_spots(self) -> str:
        """Space separated spot indices, e.g. "1 2" """
        return " ".join(str(index) for index in self.spot_indices)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "floor_id": self.floor_id,
            "spot_indices": list(self.spot_indices),
        }

    def __str__(self) -> str:
        return f"floor {self.floor_id}, spot(s) {self.format_spots()}"


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

class ParkingSpot:
    """
    Entity: Individual parking space identified by (floor_id, spot_index)
    Identity is fixed at construction; only the occupancy changes
    """

    __slots__ = ("_floor_id", "_spot_index", "_plate")

    def __init__(self, floor_id: int, spot_index: int):
        self._floor_id = floor_id
        self._spot_index = spot_index
        self._plate: Optional[str] = None

    @property
    def floor_id(self) -> int:
        return self._floor_id

    @property
    def spot_index(self) -> int:
        return self._spot_index

    @property
    def plate(self) -> Optional[str]:
        """Plate of the occupying vehicle, None when free"""
        return self._plate

    @property
    def state(self) -> SpotState:
        return SpotState.FREE if self._plate is None else SpotState.OCCUPIED

    @property
    def is_free(self) -> bool:
        return self._plate is None

    @property
    def location_code(self) -> str:
        """Get location code for identification"""
        return f"F{self._floor_id:02d}S{self._spot_index:03d}"

    def assign(self, license_plate: str) -> None:
        """
        Occupy the spot with a vehicle
        Raises: SpotAlreadyOccupiedError if the spot is not free
        """
        if self._plate is not None:
            raise SpotAlreadyOccupiedError(self._floor_id, self._spot_index, self._plate)
        self._plate = license_plate

    def release(self) -> str:
        """
        Vacate the spot
        Returns: plate of the vehicle that was released
        Raises: SpotAlreadyFreeError if the spot is already free
        """
        if self._plate is None:
            raise SpotAlreadyFreeError(self._floor_id, self._spot_index)
        plate, self._plate = self._plate, None
        return plate

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "floor_id": self._floor_id,
            "spot_index": self._spot_index,
            "location_code": self.location_code,
            "state": self.state.value,
            "plate": self._plate,
        }

    def __repr__(self) -> str:
        return (
            f"ParkingSpot(floor_id={self._floor_id}, spot_index={self._spot_index}, "
            f"plate={self._plate!r})"
        )


# ============================================================================
# DOMAIN EVENTS
# ============================================================================

class DomainEvent(ABC):
    """
    Base class for all domain events
    Events represent something that happened in the domain
    """

    def __init__(self):
        self.event_id = str(uuid.uuid4())
        self.timestamp = datetime.now()

    @property
    @abstractmethod
    def event_type(self) -> str:
        """Dotted event name, e.g. vehicle.parked"""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization"""

    def __str__(self) -> str:
        return f"{self.__class__.__name__} at {self.timestamp}"


class VehicleParkedEvent(DomainEvent):
    """Event raised when a vehicle is parked"""

    event_type = "vehicle.parked"

    def __init__(self, vehicle: Vehicle, location: SpotLocation):
        super().__init__()
        self.vehicle = vehicle
        self.location = location

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "data": {
                "vehicle": self.vehicle.to_dict(),
                "location": self.location.to_dict(),
            },
        }


class VehicleRemovedEvent(DomainEvent):
    """Event raised when a vehicle leaves the lot"""

    event_type = "vehicle.removed"

    def __init__(self, vehicle: Vehicle, location: SpotLocation):
        super().__init__()
        self.vehicle = vehicle
        self.location = location

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "data": {
                "vehicle": self.vehicle.to_dict(),
                "location": self.location.to_dict(),
            },
        }
