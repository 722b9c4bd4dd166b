# File: src/tierpark/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Parking Lot

This module defines DTOs for data transfer between the core and its callers:
1. Input DTOs - requests coming from the command layer
2. Output DTOs - results handed back for rendering

DTO Principles:
- Validation at creation
- Errors travel as a ResultStatus value, never as an exception
- No business logic, only data
- Serialization support through pydantic
"""

from typing import Dict, List, Optional, Any
from enum import Enum
import json

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.models import SpotLocation


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=False,
        frozen=True,
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        return self.model_dump(mode="json", exclude_none=exclude_none, **kwargs)

    def to_json(self, **kwargs) -> str:
        """Convert DTO to JSON string"""
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> 'BaseDTO':
        """Create DTO from JSON string"""
        return cls(**json.loads(json_str))


# ============================================================================
# ENUM DTOs
# ============================================================================

class ResultStatus(str, Enum):
    """Outcome of a parking operation"""
    PARKED = "parked"
    REMOVED = "removed"
    FOUND = "found"
    DUPLICATE_PLATE = "duplicate_plate"
    FULL = "full"
    NOT_FOUND = "not_found"
    UNKNOWN_CLASS = "unknown_class"
    INVALID = "invalid"

    @property
    def is_success(self) -> bool:
        return self in (ResultStatus.PARKED, ResultStatus.REMOVED, ResultStatus.FOUND)


# ============================================================================
# INPUT DTOs
# ============================================================================

class ParkRequestDTO(BaseDTO):
    """Request to park a vehicle"""
    license_plate: str = Field(min_length=1, description="Opaque license plate")
    vehicle_class: str = Field(min_length=1, description="Class label: Bike, Car or Truck")


class PlateRequestDTO(BaseDTO):
    """Request that targets one parked plate (remove, find)"""
    license_plate: str = Field(min_length=1, description="Opaque license plate")


# ============================================================================
# OUTPUT DTOs
# ============================================================================

class LocationDTO(BaseDTO):
    """Floor and spot indices occupied by a vehicle"""
    floor_id: int = Field(ge=0, description="Floor id")
    spot_indices: List[int] = Field(min_length=1, description="Ascending spot indices")

    @field_validator('spot_indices')
    @classmethod
    def validate_ascending(cls, v: List[int]) -> List[int]:
        if any(a >= b for a, b in zip(v, v[1:])):
            raise ValueError("Spot indices must be strictly ascending")
        return v

    @classmethod
    def from_location(cls, location: SpotLocation) -> 'LocationDTO':
        return cls(floor_id=location.floor_id, spot_indices=list(location.spot_indices))

    def format_spots(self) -> str:
        return " ".join(str(index) for index in self.spot_indices)


class OperationResultDTO(BaseDTO):
    """Result of park, remove and find"""
    status: ResultStatus
    license_plate: Optional[str] = None
    vehicle_class: Optional[str] = None
    location: Optional[LocationDTO] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status.is_success


class AvailabilityDTO(BaseDTO):
    """Free spots per floor"""
    available_per_floor: List[int] = Field(description="Free spot count per floor id")

    @property
    def total_available(self) -> int:
        return sum(self.available_per_floor)


class FullnessDTO(BaseDTO):
    """Whether the lot has any free spot left"""
    is_full: bool


class LotStatusDTO(BaseDTO):
    """Snapshot of lot occupancy"""
    num_floors: int = Field(ge=1)
    spots_per_floor: int = Field(ge=1)
    total_capacity: int = Field(ge=1)
    available_per_floor: List[int]
    available: int = Field(ge=0)
    occupied: int = Field(ge=0)
    vehicles: int = Field(ge=0)
    is_full: bool
    version: int = Field(ge=1)
    invariants_ok: bool = True
    invariant_error: Optional[str] = None

    @property
    def occupancy_rate(self) -> float:
        return self.occupied / self.total_capacity
