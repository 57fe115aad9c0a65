# File: src/parkledger/domain/aggregates.py
"""
Aggregate Roots for the Parking Stay Ledger
Following Domain-Driven Design (DDD) Aggregate Pattern

Aggregates:
1. StayLedger - Root aggregate owning every Stay record, open and closed

Key Concepts:
- The ledger is the only component that creates or replaces Stay records
- At most one open stay exists per plate
- Checkout computes the fare and closes the stay in one step
- Domain events are raised for every entry and exit
"""

from collections import deque
from contextlib import contextmanager
from typing import Deque, Iterator, List, Optional, Dict, Any, Union
from datetime import date, datetime, timezone, tzinfo
import logging
import threading

from .exceptions import AlreadyParked, NotParked
from .models import (
    LicensePlate, Money, Stay, DomainEvent,
    StayOpenedEvent, StayClosedEvent,
    DEFAULT_PLATE_PATTERN, ensure_aware
)
from .pricing import FareCalculator


PlateLike = Union[str, LicensePlate]


# ============================================================================
# BASE AGGREGATE ROOT
# ============================================================================

class AggregateRoot:
    """
    Base class for all aggregate roots
    Provides domain event collection and versioning

    Pending events are capped at pending_event_limit; once the cap is
    reached the oldest undrained event is dropped.
    """

    def __init__(self, pending_event_limit: int = 10000):
        self._version: int = 1
        self._changes: Deque[DomainEvent] = deque(maxlen=pending_event_limit)
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def version(self) -> int:
        """Get current aggregate version"""
        return self._version

    def _increment_version(self) -> None:
        """Increment version after state change"""
        self._version += 1

    def _add_domain_event(self, event: DomainEvent) -> None:
        """Add a domain event to the list of changes"""
        if self._changes and len(self._changes) == self._changes.maxlen:
            self._logger.warning(f"Pending event limit reached, dropping {self._changes[0].__class__.__name__}")
        self._changes.append(event)
        self._logger.debug(f"Added domain event: {event.__class__.__name__}")

    def clear_events(self) -> List[DomainEvent]:
        """Clear and return all domain events"""
        events = list(self._changes)
        self._changes.clear()
        return events

    @property
    def has_changes(self) -> bool:
        """Check if aggregate has pending domain events"""
        return len(self._changes) > 0


# ============================================================================
# STAY LEDGER AGGREGATE
# ============================================================================

class StayLedger(AggregateRoot):
    """
    Aggregate Root: authoritative record of every vehicle stay

    open() and close() are serialized per plate; different plates never
    contend for the same plate lock. A short state lock guards only the
    dictionary updates and snapshot copies, so readers see either the open
    stay or its closed replacement and nothing in between.
    """

    def __init__(
        self,
        fare_calculator: FareCalculator,
        plate_pattern: str = DEFAULT_PLATE_PATTERN,
        pending_event_limit: int = 10000
    ):
        super().__init__(pending_event_limit)
        self.fare_calculator = fare_calculator
        self.plate_pattern = plate_pattern

        # Internal state
        self._stays: Dict[str, Stay] = {}          # stay_id -> Stay, entry order
        self._open_by_plate: Dict[str, str] = {}   # plate -> open stay_id
        self._plate_locks: Dict[str, List[Any]] = {}     # plate -> [lock, holders], in use only
        self._state_lock = threading.Lock()

        self._logger.info(f"Created StayLedger with {fare_calculator.rate_policy}")

    def _to_plate(self, plate: PlateLike) -> LicensePlate:
        if isinstance(plate, LicensePlate):
            plate = plate.value
        return LicensePlate(plate, pattern=self.plate_pattern)

    @contextmanager
    def _plate_guard(self, plate: LicensePlate) -> Iterator[None]:
        """Hold the plate lock; the entry is dropped once no caller holds or awaits it"""
        with self._state_lock:
            entry = self._plate_locks.get(plate.value)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._plate_locks[plate.value] = entry
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._state_lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._plate_locks[plate.value]

    def _snapshot(self) -> List[Stay]:
        with self._state_lock:
            return list(self._stays.values())

    # ========================================================================
    # PUBLIC BUSINESS METHODS
    # ========================================================================

    def open(self, plate: PlateLike, now: datetime) -> Stay:
        """
        Open a stay for a vehicle entering the facility
        Returns: the new open Stay
        Raises: InvalidPlate, AlreadyParked
        """
        license_plate = self._to_plate(plate)
        now = ensure_aware(now)

        with self._plate_guard(license_plate):
            with self._state_lock:
                if license_plate.value in self._open_by_plate:
                    self._logger.warning(f"Rejected entry: {license_plate} is already parked")
                    raise AlreadyParked(license_plate.value)

            stay = Stay(plate=license_plate, entry_time=now)

            with self._state_lock:
                self._stays[stay.id] = stay
                self._open_by_plate[license_plate.value] = stay.id
                self._increment_version()
                self._add_domain_event(StayOpenedEvent(stay))

        self._logger.info(f"Vehicle {license_plate} entered at {now.isoformat()} (Stay: {stay.id})")
        return stay

    def close(self, plate: PlateLike, now: datetime) -> Stay:
        """
        Close the open stay of a vehicle leaving the facility
        Returns: the closed Stay with exit time and fare set
        Raises: InvalidPlate, NotParked, InvalidInterval
        """
        license_plate = self._to_plate(plate)
        now = ensure_aware(now)

        with self._plate_guard(license_plate):
            with self._state_lock:
                stay_id = self._open_by_plate.get(license_plate.value)
                stay = self._stays.get(stay_id) if stay_id else None

            if stay is None:
                self._logger.warning(f"Rejected exit: {license_plate} is not parked")
                raise NotParked(license_plate.value)

            # Raises InvalidInterval before any state is touched
            fare = self.fare_calculator.final_fare(stay.entry_time, now)
            closed = stay.closed(now, fare)

            with self._state_lock:
                self._stays[closed.id] = closed
                del self._open_by_plate[license_plate.value]
                self._increment_version()
                self._add_domain_event(StayClosedEvent(closed))

        self._logger.info(
            f"Vehicle {license_plate} exited at {now.isoformat()}. Fare: {fare.format()}"
        )
        return closed

    def clear_events(self) -> List[DomainEvent]:
        with self._state_lock:
            return super().clear_events()

    # ========================================================================
    # QUERIES (read-only, snapshot based)
    # ========================================================================

    def list_open(self) -> List[Stay]:
        """All currently open stays, in entry order"""
        return [stay for stay in self._snapshot() if stay.is_open]

    def list_all(self) -> List[Stay]:
        """Full history including closed stays, in entry order"""
        return self._snapshot()

    def list_for_day(self, day: date, tz: Optional[tzinfo] = None) -> List[Stay]:
        """Stays whose entry falls on the given calendar day in tz (UTC if omitted)"""
        result = []
        for stay in self._snapshot():
            entry = stay.entry_time.astimezone(tz or timezone.utc)
            if entry.date() == day:
                result.append(stay)
        return result

    def get_open(self, plate: PlateLike) -> Optional[Stay]:
        """Open stay of a plate, if parked"""
        license_plate = self._to_plate(plate)
        with self._state_lock:
            stay_id = self._open_by_plate.get(license_plate.value)
            return self._stays.get(stay_id) if stay_id else None

    def is_parked(self, plate: PlateLike) -> bool:
        return self.get_open(plate) is not None

    def count_open(self) -> int:
        with self._state_lock:
            return len(self._open_by_plate)

    def total_revenue(self) -> Money:
        """Sum of the fares fixed by closed stays"""
        total = Money.zero(self.fare_calculator.rate_policy.currency)
        for stay in self._snapshot():
            if stay.fare is not None:
                total = total + stay.fare
        return total

    def get_status_report(self) -> Dict[str, Any]:
        """Occupancy and revenue summary"""
        stays = self._snapshot()
        open_count = sum(1 for stay in stays if stay.is_open)
        return {
            "open_stays": open_count,
            "closed_stays": len(stays) - open_count,
            "total_stays": len(stays),
            "total_revenue": self.total_revenue().to_dict(),
            "hourly_rate": self.fare_calculator.hourly_rate.to_dict(),
            "version": self.version
        }

    def __len__(self) -> int:
        with self._state_lock:
            return len(self._stays)

    def __str__(self) -> str:
        return f"StayLedger ({self.count_open()} parked, {len(self)} stays)"
