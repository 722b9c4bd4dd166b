# File: src/tierpark/application/parking_service.py
"""
Parking Lot Application Service

This module implements the application service layer on top of the
ParkingLot aggregate. It is the only caller the command layer talks to.

Responsibilities:
1. Translate request DTOs into domain calls
2. Turn expected domain errors into ResultStatus values
3. Log outcomes and publish domain events once the lot lock is released
4. Provide a clean API for the presentation layer

LotCorruptedError is never turned into a result: it means the core has a
bug, so it is logged and re-raised.
"""

from typing import Optional
import logging
import threading

from pydantic import ValidationError

from ..domain.aggregates import ParkingLot
from ..domain.exceptions import (
    DuplicatePlateError, LotFullError, VehicleNotFoundError,
    LotCorruptedError, UnknownVehicleClassError
)
from ..domain.models import Vehicle
from ..infrastructure.messaging import EventBus
from .dtos import (
    ResultStatus, ParkRequestDTO, PlateRequestDTO, LocationDTO,
    OperationResultDTO, AvailabilityDTO, FullnessDTO, LotStatusDTO
)


class ParkingService:
    """
    Main application service for the parking lot

    Use cases:
    1. Vehicle parking and removal
    2. Vehicle lookup
    3. Occupancy queries and status reporting
    """

    def __init__(self, parking_lot: ParkingLot, event_bus: Optional[EventBus] = None):
        self.parking_lot = parking_lot
        self.event_bus = event_bus or EventBus()
        self._publish_lock = threading.RLock()
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.info(
            f"ParkingService initialized for {parking_lot.num_floors} floor(s) x "
            f"{parking_lot.spots_per_floor} spot(s)"
        )

    @classmethod
    def create(cls, num_floors: int, spots_per_floor: int,
               event_bus: Optional[EventBus] = None) -> 'ParkingService':
        """Build a service around a fresh lot"""
        return cls(ParkingLot(num_floors, spots_per_floor), event_bus)

    # ========================================================================
    # COMMANDS
    # ========================================================================

    def park_vehicle(self, request: ParkRequestDTO) -> OperationResultDTO:
        """
        Park a vehicle

        Use Case: Vehicle Entry
        1. Resolve the vehicle class label
        2. Ask the lot for a first-fit placement
        3. Publish the resulting events

        Returns: PARKED, DUPLICATE_PLATE, FULL or UNKNOWN_CLASS result
        """
        plate = request.license_plate
        try:
            vehicle = Vehicle.from_label(plate, request.vehicle_class)
        except UnknownVehicleClassError as e:
            self.logger.warning(f"Rejected {plate}: {e}")
            return OperationResultDTO(
                status=ResultStatus.UNKNOWN_CLASS,
                license_plate=plate,
                vehicle_class=request.vehicle_class,
                message=str(e),
            )

        try:
            location = self.parking_lot.park(vehicle)
        except DuplicatePlateError as e:
            self.logger.warning(str(e))
            return self._failure(ResultStatus.DUPLICATE_PLATE, vehicle, str(e))
        except LotFullError as e:
            self.logger.warning(str(e))
            return self._failure(ResultStatus.FULL, vehicle, str(e))

        self._publish_events()
        self.logger.info(f"Parked {vehicle} at {location}")
        return OperationResultDTO(
            status=ResultStatus.PARKED,
            license_plate=plate,
            vehicle_class=vehicle.vehicle_class.value,
            location=LocationDTO.from_location(location),
        )

    def park(self, license_plate: str, vehicle_class: str) -> OperationResultDTO:
        """Shortcut for park_vehicle with plain arguments; bad input gives INVALID"""
        try:
            request = ParkRequestDTO(license_plate=license_plate, vehicle_class=vehicle_class)
        except ValidationError as e:
            return self._invalid(license_plate, e, vehicle_class)
        return self.park_vehicle(request)

    def remove_vehicle(self, request: PlateRequestDTO) -> OperationResultDTO:
        """
        Remove a vehicle

        Use Case: Vehicle Exit
        Returns: REMOVED or NOT_FOUND result
        Raises: LotCorruptedError if the lot indices disagree with its spots
        """
        plate = request.license_plate
        try:
            location = self.parking_lot.remove(plate)
        except VehicleNotFoundError as e:
            self.logger.warning(str(e))
            return OperationResultDTO(
                status=ResultStatus.NOT_FOUND, license_plate=plate, message=str(e)
            )
        except LotCorruptedError:
            self.logger.error(f"Lot corrupted while removing {plate}", exc_info=True)
            raise

        self._publish_events()
        self.logger.info(f"Removed {plate} from {location}")
        return OperationResultDTO(
            status=ResultStatus.REMOVED,
            license_plate=plate,
            location=LocationDTO.from_location(location),
        )

    def remove(self, license_plate: str) -> OperationResultDTO:
        """Shortcut for remove_vehicle with a plain plate"""
        try:
            request = PlateRequestDTO(license_plate=license_plate)
        except ValidationError as e:
            return self._invalid(license_plate, e)
        return self.remove_vehicle(request)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def find_vehicle(self, request: PlateRequestDTO) -> OperationResultDTO:
        """Returns: FOUND or NOT_FOUND result"""
        plate = request.license_plate
        try:
            location = self.parking_lot.find(plate)
        except VehicleNotFoundError as e:
            return OperationResultDTO(
                status=ResultStatus.NOT_FOUND, license_plate=plate, message=str(e)
            )

        return OperationResultDTO(
            status=ResultStatus.FOUND,
            license_plate=plate,
            location=LocationDTO.from_location(location),
        )

    def find(self, license_plate: str) -> OperationResultDTO:
        """Shortcut for find_vehicle with a plain plate"""
        try:
            request = PlateRequestDTO(license_plate=license_plate)
        except ValidationError as e:
            return self._invalid(license_plate, e)
        return self.find_vehicle(request)

    def available_spots(self) -> AvailabilityDTO:
        return AvailabilityDTO(available_per_floor=self.parking_lot.available_per_floor())

    def is_full(self) -> FullnessDTO:
        return FullnessDTO(is_full=self.parking_lot.is_full())

    def get_status(self) -> LotStatusDTO:
        """Occupancy snapshot plus the outcome of an invariant check"""
        report = self.parking_lot.get_status_report()
        try:
            self.parking_lot.check_invariants()
        except LotCorruptedError as e:
            self.logger.error(f"Invariant check failed: {e}")
            return LotStatusDTO(**report, invariants_ok=False, invariant_error=str(e))
        return LotStatusDTO(**report)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def shutdown(self) -> None:
        """Close the lot, dropping every parked vehicle"""
        self._publish_events()
        self.parking_lot.close()
        self.logger.info("ParkingService shut down")

    # ========================================================================
    # INTERNAL HELPER METHODS
    # ========================================================================

    def _publish_events(self) -> None:
        # Draining and delivering under one lock keeps delivery in commit order
        # across threads. A handler that calls back into the service publishes
        # its own events before the rest of the batch it was handed.
        with self._publish_lock:
            self.event_bus.publish_all(self.parking_lot.clear_events())

    def _invalid(self, license_plate: str, error: ValidationError,
                 vehicle_class: Optional[str] = None) -> OperationResultDTO:
        self.logger.warning(f"Rejected invalid request for {license_plate!r}: {error}")
        return OperationResultDTO(
            status=ResultStatus.INVALID,
            license_plate=str(license_plate) if license_plate else None,
            vehicle_class=str(vehicle_class) if vehicle_class else None,
            message="Invalid input.",
        )

    @staticmethod
    def _failure(status: ResultStatus, vehicle: Vehicle, message: str) -> OperationResultDTO:
        return OperationResultDTO(
            status=status,
            license_plate=vehicle.license_plate,
            vehicle_class=vehicle.vehicle_class.value,
            message=message,
        )
