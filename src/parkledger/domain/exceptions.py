# File: src/parkledger/domain/exceptions.py
"""
Domain Exceptions for the Parking Stay Ledger

All failures raised by the ledger and the fare calculator are recoverable,
caller-visible conditions. Each carries a stable ``error_code`` so the
transport/command boundary can map it to a user-facing message.
"""

from typing import Optional


class ParkingLedgerError(Exception):
    """Base exception for parking ledger errors"""
    error_code = "ledger_error"


class InvalidPlate(ParkingLedgerError, ValueError):
    """Raised when a license plate is empty or malformed"""
    error_code = "invalid_plate"

    def __init__(self, plate: str, reason: Optional[str] = None):
        self.plate = plate
        message = f"Invalid license plate: {plate!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class AlreadyParked(ParkingLedgerError):
    """Raised when an entry is requested for a plate that is already parked"""
    error_code = "already_parked"

    def __init__(self, plate: str):
        self.plate = plate
        super().__init__(f"Vehicle {plate} is already parked")


class NotParked(ParkingLedgerError):
    """Raised when an exit is requested for a plate with no open stay"""
    error_code = "not_parked"

    def __init__(self, plate: str):
        self.plate = plate
        super().__init__(f"Vehicle {plate} is not parked")


class InvalidInterval(ParkingLedgerError):
    """Raised when the reference time precedes the entry time in final billing"""
    error_code = "invalid_interval"

    def __init__(self, entry_time, reference_time):
        self.entry_time = entry_time
        self.reference_time = reference_time
        super().__init__(
            f"Exit time {reference_time.isoformat()} precedes "
            f"entry time {entry_time.isoformat()}"
        )


class ConfigurationError(ParkingLedgerError):
    """Raised when ledger configuration is invalid"""
    error_code = "configuration_error"
