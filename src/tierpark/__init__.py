"""
tierpark - in-memory, thread-safe multi-floor parking lot

The core lives in tierpark.domain; tierpark.application and
tierpark.presentation provide the command terminal built on top of it.
"""

from .domain.aggregates import ParkingLot, Floor
from .domain.models import Vehicle, VehicleClass, ParkingSpot, SpotLocation, SpotState
from .domain.exceptions import (
    ParkingError, DuplicatePlateError, LotFullError, VehicleNotFoundError,
    LotCorruptedError, UnknownVehicleClassError
)

__version__ = "1.0.0"

__all__ = [
    "ParkingLot", "Floor", "Vehicle", "VehicleClass", "ParkingSpot",
    "SpotLocation", "SpotState", "ParkingError", "DuplicatePlateError",
    "LotFullError", "VehicleNotFoundError", "LotCorruptedError",
    "UnknownVehicleClassError",
]
