# File: src/tierpark/domain/exceptions.py
"""
Domain Errors for the Parking Lot

Every error the core can raise derives from ParkingError so callers can
catch the whole family at the application boundary.

Error families:
1. Lot errors - DuplicatePlateError, LotFullError, VehicleNotFoundError
2. Spot errors - state transitions that were not allowed
3. Integrity errors - LotCorruptedError (a bug, never a user error)
"""

from typing import Optional, Sequence


class ParkingError(Exception):
    """Base class for all parking domain errors"""


# ============================================================================
# LOT ERRORS
# ============================================================================

class DuplicatePlateError(ParkingError):
    """Raised when a plate that is already parked is parked again"""

    def __init__(self, license_plate: str):
        super().__init__(f"Vehicle {license_plate} is already parked")
        self.license_plate = license_plate


class LotFullError(ParkingError):
    """Raised when no floor offers the required run of free spots"""

    def __init__(self, license_plate: str, required_count: int):
        super().__init__(
            f"No {required_count} contiguous free spot(s) available for {license_plate}"
        )
        self.license_plate = license_plate
        self.required_count = required_count


class VehicleNotFoundError(ParkingError):
    """Raised when an operation references a plate that is not parked"""

    def __init__(self, license_plate: str):
        super().__init__(f"Vehicle {license_plate} not found")
        self.license_plate = license_plate


class UnknownVehicleClassError(ParkingError, ValueError):
    """Raised when a vehicle class label cannot be resolved"""

    def __init__(self, label: str):
        super().__init__(f"Unknown vehicle type: {label!r}")
        self.label = label


class LotClosedError(ParkingError):
    """Raised when an operation is attempted on a closed lot"""


class LotCorruptedError(ParkingError):
    """
    Raised when an internal invariant of the lot no longer holds.
    Indicates a bug in the core, not a caller mistake.
    """


# ============================================================================
# SPOT ERRORS
# ============================================================================

class SpotAlreadyOccupiedError(ParkingError):
    """Raised when assigning a spot that is not free"""

    def __init__(self, floor_id: int, spot_index: int, occupant: Optional[str] = None):
        super().__init__(
            f"Spot {spot_index} on floor {floor_id} is already occupied by {occupant}"
        )
        self.floor_id = floor_id
        self.spot_index = spot_index
        self.occupant = occupant


class SpotAlreadyFreeError(ParkingError):
    """Raised when releasing a spot that is already free"""

    def __init__(self, floor_id: int, spot_index: int):
        super().__init__(f"Spot {spot_index} on floor {floor_id} is already free")
        self.floor_id = floor_id
        self.spot_index = spot_index


class SpotUnavailableError(ParkingError):
    """Raised by Floor.commit when a proposed placement no longer fits"""

    def __init__(self, floor_id: int, spot_indices: Sequence[int]):
        super().__init__(
            f"Spot(s) {list(spot_indices)} on floor {floor_id} cannot be committed"
        )
        self.floor_id = floor_id
        self.spot_indices = list(spot_indices)
