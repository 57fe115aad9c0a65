"""
parkledger - parking stay ledger and hourly fare engine

Tracks vehicles occupying a parking facility and bills each stay by the
hour, any started hour paid in full.
"""

from .domain import (
    ParkingLedgerError, InvalidPlate, AlreadyParked, NotParked,
    InvalidInterval, ConfigurationError,
    LicensePlate, Money, Stay, StayStatus,
    FareCalculator, RatePolicy, compute_fare, StayLedger
)
from .config import LedgerConfig, load_config

__version__ = "1.0.0"

__all__ = [
    "ParkingLedgerError", "InvalidPlate", "AlreadyParked", "NotParked",
    "InvalidInterval", "ConfigurationError",
    "LicensePlate", "Money", "Stay", "StayStatus",
    "FareCalculator", "RatePolicy", "compute_fare", "StayLedger",
    "LedgerConfig", "load_config",
]
