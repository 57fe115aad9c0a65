# File: src/parkledger/application/parking_service.py
"""
Parking Stay Application Service

This module implements the application service layer for the stay ledger.
It orchestrates the domain objects and handles the use cases of the system.

Responsibilities:
1. Translate transport DTOs into ledger operations
2. Supply the current time for entries, exits and live estimates
3. Publish stay events after each mutation
4. Log every use case; domain failures are logged and re-raised for the
   caller to map
"""

from typing import Callable, List, Optional, Protocol
from datetime import date, datetime, timedelta, timezone, tzinfo
import logging

from ..domain.aggregates import StayLedger
from ..domain.exceptions import NotParked, ParkingLedgerError
from ..domain.models import LicensePlate, ensure_aware
from ..domain.pricing import FareCalculator
from ..infrastructure.messaging import EventBus
from .dtos import (
    StayEntryRequestDTO, StayExitRequestDTO, StayDTO,
    FareEstimateDTO, OccupancySummaryDTO
)


Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# SERVICE INTERFACES
# ============================================================================

class IParkingService(Protocol):
    """Interface for parking stay operations"""

    def register_entry(self, request: StayEntryRequestDTO) -> StayDTO:
        """Open a stay for an entering vehicle"""
        ...

    def register_exit(self, request: StayExitRequestDTO) -> StayDTO:
        """Close the stay of a leaving vehicle and fix its fare"""
        ...

    def list_parked(self) -> List[StayDTO]:
        """Stays that are currently open"""
        ...

    def list_history(self, day: Optional[date] = None) -> List[StayDTO]:
        """All stays, optionally restricted to one calendar day"""
        ...

    def estimate_fare(self, plate: str, at: Optional[datetime] = None) -> FareEstimateDTO:
        """Live fare estimate for a parked vehicle"""
        ...


# ============================================================================
# MAIN PARKING SERVICE
# ============================================================================

class ParkingService:
    """
    Main application service for the parking stay ledger

    Use cases:
    1. Vehicle entry
    2. Vehicle exit with fare
    3. Occupancy and history views
    4. Live fare estimates
    """

    def __init__(
        self,
        ledger: StayLedger,
        fare_calculator: Optional[FareCalculator] = None,
        event_bus: Optional[EventBus] = None,
        clock: Optional[Clock] = None,
        tz: Optional[tzinfo] = None
    ):
        """
        Initialize the parking service

        Args:
            ledger: the StayLedger owned by the host application
            fare_calculator: calculator for live estimates; defaults to the ledger's
            event_bus: optional bus receiving StayOpened/StayClosed events
            clock: callable returning the current aware datetime
            tz: timezone used to decide which calendar day a stay belongs to
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self.ledger = ledger
        self.fare_calculator = fare_calculator or ledger.fare_calculator
        self.event_bus = event_bus
        self.clock = clock or utcnow
        self.tz = tz or timezone.utc

        self.logger.info("ParkingService initialized")

    def _now(self) -> datetime:
        return ensure_aware(self.clock())

    def _publish_events(self) -> None:
        events = self.ledger.clear_events()
        if self.event_bus is not None:
            self.event_bus.publish_all(events)

    def register_entry(self, request: StayEntryRequestDTO) -> StayDTO:
        """
        Use Case: Vehicle Entry
        Raises: InvalidPlate, AlreadyParked
        """
        self.logger.info(f"Processing entry request for {request.plate}")
        entry_time = request.entry_time or self._now()

        try:
            stay = self.ledger.open(request.plate, entry_time)
        except ParkingLedgerError as e:
            self.logger.warning(f"Entry for {request.plate} failed: {e}")
            raise

        self._publish_events()
        return StayDTO.from_stay(stay)

    def register_exit(self, request: StayExitRequestDTO) -> StayDTO:
        """
        Use Case: Vehicle Exit
        Raises: InvalidPlate, NotParked, InvalidInterval
        """
        self.logger.info(f"Processing exit request for {request.plate}")
        exit_time = request.exit_time or self._now()

        try:
            stay = self.ledger.close(request.plate, exit_time)
        except ParkingLedgerError as e:
            self.logger.warning(f"Exit for {request.plate} failed: {e}")
            raise

        self._publish_events()
        return StayDTO.from_stay(stay)

    def list_parked(self) -> List[StayDTO]:
        stays = self.ledger.list_open()
        self.logger.debug(f"Listing {len(stays)} parked vehicles")
        return [StayDTO.from_stay(stay) for stay in stays]

    def list_history(self, day: Optional[date] = None) -> List[StayDTO]:
        """Full history, or only stays that entered on the given day"""
        if day is None:
            stays = self.ledger.list_all()
        else:
            stays = self.ledger.list_for_day(day, self.tz)
        return [StayDTO.from_stay(stay) for stay in stays]

    def list_today(self) -> List[StayDTO]:
        """Stays that entered today in the configured timezone"""
        return self.list_history(self._now().astimezone(self.tz).date())

    def estimate_fare(self, plate: str, at: Optional[datetime] = None) -> FareEstimateDTO:
        """
        Use Case: Live fare estimate for a parked vehicle
        Never mutates the ledger; clock skew is clamped to zero hours
        Raises: InvalidPlate, NotParked
        """
        license_plate = LicensePlate(plate, pattern=self.ledger.plate_pattern)
        stay = self.ledger.get_open(license_plate)
        if stay is None:
            raise NotParked(license_plate.value)

        reference_time = ensure_aware(at) if at else self._now()
        fare = self.fare_calculator.estimate(stay.entry_time, reference_time)
        hours = self.fare_calculator.billed_hours(stay.entry_time, reference_time, live=True)
        elapsed = max(reference_time - stay.entry_time, timedelta(0))

        return FareEstimateDTO(
            plate=license_plate.value,
            entry_time=stay.entry_time,
            reference_time=reference_time,
            billed_hours=hours,
            elapsed=elapsed,
            estimated_fare=fare.amount,
            currency=fare.currency
        )

    def get_occupancy_summary(self) -> OccupancySummaryDTO:
        report = self.ledger.get_status_report()
        revenue = self.ledger.total_revenue()
        return OccupancySummaryDTO(
            open_stays=report["open_stays"],
            closed_stays=report["closed_stays"],
            total_revenue=revenue.amount,
            hourly_rate=self.fare_calculator.hourly_rate.amount,
            currency=self.fare_calculator.hourly_rate.currency,
            generated_at=self._now()
        )
