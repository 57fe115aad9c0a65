# File: src/parkledger/domain/models.py
"""
Domain Models for the Parking Stay Ledger
Following Domain-Driven Design (DDD) principles with rich domain models

This module contains:
1. Value Objects: LicensePlate and Money, immutable and validated
2. Entities: Stay, the occupancy record of one vehicle from entry to exit
3. Enums: StayStatus
4. Domain Events: StayOpenedEvent and StayClosedEvent

Stays are immutable. Checkout produces a new closed Stay carrying both the
exit time and the fare, so a reader can never observe one without the other.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
import re
import uuid

from .exceptions import InvalidPlate, InvalidInterval


# Legacy Brazilian format (AAA0000) or Mercosul format (AAA0A00)
DEFAULT_PLATE_PATTERN = r'^[A-Z]{3}[0-9][0-9A-Z][0-9]{2}$'

CENTS = Decimal('0.01')

CURRENCY_SYMBOLS = {
    "BRL": "R$",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC so every stored time is comparable"""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_plate(raw: str) -> str:
    """Uppercase and strip whitespace and hyphens"""
    return re.sub(r'[\s\-]+', '', raw or '').upper()


# ============================================================================
# DOMAIN PRIMITIVES / VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)  # Value objects are immutable
class LicensePlate:
    """
    Value Object: License plate number with validation
    Represents the natural key of a vehicle in the ledger
    """
    value: str
    pattern: str = field(default=DEFAULT_PLATE_PATTERN, compare=False, repr=False)

    def __post_init__(self):
        """Normalize and validate license plate after initialization"""
        if not isinstance(self.value, str):
            raise InvalidPlate(repr(self.value), "plate must be a string")

        normalized = normalize_plate(self.value)
        if not normalized:
            raise InvalidPlate(self.value, "plate cannot be empty")

        if not re.match(self.pattern, normalized):
            raise InvalidPlate(self.value, "expected format AAA0000 or AAA0A00")

        object.__setattr__(self, 'value', normalized)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Money:
    """
    Value Object: Monetary amount with currency
    Amounts are exact decimals; rounding happens only in format/to_string
    """
    amount: Decimal
    currency: str = "BRL"

    def __post_init__(self):
        """Validate money amount"""
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if self.amount < Decimal('0'):
            raise ValueError("Money amount cannot be negative")

        if len(self.currency) != 3 or not self.currency.isalpha():
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

        object.__setattr__(self, 'currency', self.currency.upper())

    @classmethod
    def zero(cls, currency: str = "BRL") -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money amounts (same currency only)"""
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency} to {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, multiplier) -> 'Money':
        """Multiply money by an integer or decimal factor"""
        if multiplier < 0:
            raise ValueError("Multiplier cannot be negative")
        return Money(self.amount * Decimal(multiplier), self.currency)

    def quantized(self) -> Decimal:
        """Amount rounded to cents for display and serialization"""
        return self.amount.quantize(CENTS, rounding=ROUND_HALF_UP)

    def to_string(self) -> str:
        """Plain decimal currency string, e.g. '30.00'"""
        return f"{self.quantized():.2f}"

    def format(self) -> str:
        """Format money for display"""
        symbol = CURRENCY_SYMBOLS.get(self.currency)
        if symbol:
            return f"{symbol} {self.to_string()}"
        return f"{self.to_string()} {self.currency}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "amount": self.to_string(),
            "currency": self.currency
        }


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class StayStatus(Enum):
    """
    Enumeration of stay statuses
    OPEN is the only state a stay can leave; CLOSED is terminal
    """
    OPEN = "open"          # Vehicle currently parked
    CLOSED = "closed"      # Vehicle left, fare fixed

    def __str__(self) -> str:
        return self.value.title()


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

@dataclass(frozen=True)
class Stay:
    """
    Entity: One vehicle's occupancy record from entry to exit

    exit_time and fare are set together, exactly once, by closed().
    """
    plate: LicensePlate
    entry_time: datetime
    exit_time: Optional[datetime] = None
    fare: Optional[Money] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        """Validate the open/closed lock-step and interval ordering"""
        object.__setattr__(self, 'entry_time', ensure_aware(self.entry_time))

        if (self.exit_time is None) != (self.fare is None):
            raise ValueError("Stay exit time and fare must be set together")

        if self.exit_time is not None:
            object.__setattr__(self, 'exit_time', ensure_aware(self.exit_time))
            if self.exit_time < self.entry_time:
                raise InvalidInterval(self.entry_time, self.exit_time)

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    @property
    def status(self) -> StayStatus:
        return StayStatus.OPEN if self.is_open else StayStatus.CLOSED

    def closed(self, exit_time: datetime, fare: Money) -> 'Stay':
        """
        Return the closed version of this stay
        Raises: ValueError if the stay is already closed
        """
        if not self.is_open:
            raise ValueError(f"Stay {self.id} for {self.plate} is already closed")
        return replace(self, exit_time=exit_time, fare=fare)

    def elapsed(self, reference_time: Optional[datetime] = None) -> timedelta:
        """Elapsed time up to exit, or up to reference_time for open stays"""
        if self.exit_time is not None:
            return self.exit_time - self.entry_time
        if reference_time is None:
            raise ValueError("reference_time is required for an open stay")
        return ensure_aware(reference_time) - self.entry_time

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "id": self.id,
            "plate": self.plate.value,
            "status": self.status.value,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat() if self.exit_time else None,
            "fare": self.fare.to_string() if self.fare else None,
            "currency": self.fare.currency if self.fare else None
        }

    def __str__(self) -> str:
        if self.is_open:
            return f"{self.plate} parked since {self.entry_time.isoformat()}"
        return f"{self.plate} {self.entry_time.isoformat()} -> {self.exit_time.isoformat()} ({self.fare.format()})"


# ============================================================================
# DOMAIN EVENTS (for event-driven architecture)
# ============================================================================

class DomainEvent(ABC):
    """
    Base class for all domain events
    Events represent something that happened in the domain
    """
    event_type = "domain.event"

    def __init__(self, timestamp: Optional[datetime] = None):
        self.event_id = str(uuid.uuid4())
        self.timestamp = timestamp or datetime.now(timezone.utc)
        self.version = "1.0"

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization"""
        pass

    def __str__(self) -> str:
        return f"{self.__class__.__name__} at {self.timestamp}"


class StayOpenedEvent(DomainEvent):
    """Event raised when a vehicle enters and its stay opens"""
    event_type = "stay.opened"

    def __init__(self, stay: Stay):
        super().__init__(stay.entry_time)
        self.stay = stay

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "data": self.stay.to_dict()
        }


class StayClosedEvent(DomainEvent):
    """Event raised when a vehicle exits and its fare is fixed"""
    event_type = "stay.closed"

    def __init__(self, stay: Stay):
        super().__init__(stay.exit_time)
        self.stay = stay

    def to_dict(self) -> Dict[str, Any]:
        data = self.stay.to_dict()
        data["duration_minutes"] = self.stay.elapsed().total_seconds() / 60
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "data": data
        }
