"""Domain layer: stays, money, fare computation and the stay ledger"""

from .exceptions import (
    ParkingLedgerError, InvalidPlate, AlreadyParked, NotParked,
    InvalidInterval, ConfigurationError
)
from .models import (
    LicensePlate, Money, Stay, StayStatus,
    DomainEvent, StayOpenedEvent, StayClosedEvent,
    DEFAULT_PLATE_PATTERN
)
from .pricing import FareCalculator, RatePolicy, compute_fare, billed_hours
from .aggregates import StayLedger

__all__ = [
    "ParkingLedgerError", "InvalidPlate", "AlreadyParked", "NotParked",
    "InvalidInterval", "ConfigurationError",
    "LicensePlate", "Money", "Stay", "StayStatus",
    "DomainEvent", "StayOpenedEvent", "StayClosedEvent",
    "DEFAULT_PLATE_PATTERN",
    "FareCalculator", "RatePolicy", "compute_fare", "billed_hours",
    "StayLedger",
]
