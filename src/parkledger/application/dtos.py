# File: src/parkledger/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Parking Stay Ledger

This module defines DTOs for data transfer between the core and its callers:
1. Input DTOs - entry and exit requests from the transport layer
2. Output DTOs - serialized stays, fare estimates and occupancy summaries

DTO Principles:
- Validation at creation
- No business logic, only data
- Fares travel as decimal strings ("30.00"), never as floats
"""

from typing import Dict, Any, Optional
from datetime import datetime, timedelta
from decimal import Decimal
import json

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..domain.models import Stay, Money, ensure_aware, normalize_plate


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        frozen=True
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to JSON-compatible dictionary"""
        return self.model_dump(mode="json", exclude_none=exclude_none, **kwargs)

    def to_json(self, **kwargs) -> str:
        """Convert DTO to JSON string"""
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseDTO':
        """Create DTO from dictionary"""
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> 'BaseDTO':
        """Create DTO from JSON string"""
        return cls(**json.loads(json_str))


def _format_amount(value: Optional[Decimal]) -> Optional[str]:
    if value is None:
        return None
    return Money(value).to_string()


# ============================================================================
# INPUT DTOs
# ============================================================================

class StayEntryRequestDTO(BaseDTO):
    """Vehicle entry request: { plate, entry_time }"""
    plate: str = Field(min_length=1, max_length=20, description="License plate")
    entry_time: Optional[datetime] = Field(default=None, description="Entry time (ISO-8601); defaults to now")

    @field_validator('plate')
    @classmethod
    def normalize(cls, v: str) -> str:
        """Remove whitespace and convert to uppercase"""
        return normalize_plate(v)

    @field_validator('entry_time')
    @classmethod
    def make_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(v) if v is not None else None


class StayExitRequestDTO(BaseDTO):
    """Vehicle exit request: { plate } plus the current time"""
    plate: str = Field(min_length=1, max_length=20, description="License plate")
    exit_time: Optional[datetime] = Field(default=None, description="Exit time (ISO-8601); defaults to now")

    @field_validator('plate')
    @classmethod
    def normalize(cls, v: str) -> str:
        """Remove whitespace and convert to uppercase"""
        return normalize_plate(v)

    @field_validator('exit_time')
    @classmethod
    def make_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(v) if v is not None else None


# ============================================================================
# OUTPUT DTOs
# ============================================================================

class StayDTO(BaseDTO):
    """Serialized stay; fare is absent while the stay is open"""
    id: str
    plate: str
    status: str
    entry_time: datetime
    exit_time: Optional[datetime] = None
    fare: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[str] = None

    @field_serializer('fare')
    def serialize_fare(self, value: Optional[Decimal]) -> Optional[str]:
        return _format_amount(value)

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    @classmethod
    def from_stay(cls, stay: Stay) -> 'StayDTO':
        return cls(
            id=stay.id,
            plate=stay.plate.value,
            status=stay.status.value,
            entry_time=stay.entry_time,
            exit_time=stay.exit_time,
            fare=stay.fare.amount if stay.fare else None,
            currency=stay.fare.currency if stay.fare else None
        )


class FareEstimateDTO(BaseDTO):
    """Live running estimate for an open stay"""
    plate: str
    entry_time: datetime
    reference_time: datetime
    billed_hours: int = Field(ge=0)
    elapsed: timedelta
    estimated_fare: Decimal = Field(ge=0)
    currency: str

    @field_serializer('estimated_fare')
    def serialize_estimated_fare(self, value: Decimal) -> str:
        return _format_amount(value)


class OccupancySummaryDTO(BaseDTO):
    """Counts of open and closed stays and the revenue fixed so far"""
    open_stays: int = Field(ge=0)
    closed_stays: int = Field(ge=0)
    total_revenue: Decimal = Field(ge=0)
    hourly_rate: Decimal = Field(ge=0)
    currency: str
    generated_at: datetime

    @field_serializer('total_revenue', 'hourly_rate')
    def serialize_amounts(self, value: Decimal) -> str:
        return _format_amount(value)
