# File: src/parkledger/infrastructure/factories.py
"""
Factory Pattern Implementation for the Parking Stay Ledger

The host application owns the ledger's lifecycle: it builds one ledger per
process through this factory and injects it wherever it is needed. Tests
build as many isolated ledgers as they like.
"""

from typing import Optional
import logging

from ..application.commands import CommandProcessor
from ..application.parking_service import ParkingService, Clock
from ..config import LedgerConfig
from ..domain.aggregates import StayLedger
from ..domain.pricing import FareCalculator
from .messaging import EventBus


class ParkingServiceFactory:
    """Wires rate policy, calculator, ledger, event bus and service from configuration"""

    def __init__(self, config: Optional[LedgerConfig] = None):
        self.config = config or LedgerConfig()
        self.logger = logging.getLogger(self.__class__.__name__)

    def create_fare_calculator(self) -> FareCalculator:
        return FareCalculator(self.config.rate_policy())

    def create_ledger(self, fare_calculator: Optional[FareCalculator] = None) -> StayLedger:
        return StayLedger(
            fare_calculator=fare_calculator or self.create_fare_calculator(),
            plate_pattern=self.config.plate_pattern
        )

    def create_service(
        self,
        event_bus: Optional[EventBus] = None,
        clock: Optional[Clock] = None
    ) -> ParkingService:
        """Create a ParkingService around a fresh ledger"""
        fare_calculator = self.create_fare_calculator()
        ledger = self.create_ledger(fare_calculator)
        service = ParkingService(
            ledger=ledger,
            fare_calculator=fare_calculator,
            event_bus=event_bus if event_bus is not None else EventBus(),
            clock=clock,
            tz=self.config.tzinfo
        )
        self.logger.info(
            f"Created parking service: {fare_calculator.rate_policy}, timezone {self.config.timezone}"
        )
        return service

    def create_command_processor(self, service: Optional[ParkingService] = None) -> CommandProcessor:
        return CommandProcessor(service or self.create_service())
