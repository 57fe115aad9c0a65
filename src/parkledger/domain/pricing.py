# File: src/parkledger/domain/pricing.py
"""
Fare computation for the Parking Stay Ledger

Billing policy: any started hour is paid for in full.

    billed_hours = ceil((reference_time - entry_time) / 1h)
    fare         = billed_hours * hourly_rate

Elapsed time is measured in integer microseconds and the charge is an exact
Decimal product, so no floating-point error reaches the final fare.

Two modes:
- final billing (checkout): a reference time before the entry time raises
  InvalidInterval
- live estimate (read views): a negative interval is clamped to zero hours
  to tolerate clock skew between display and ledger
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from .exceptions import InvalidInterval
from .models import Money, ensure_aware


MICROSECONDS_PER_HOUR = 3600 * 1000 * 1000


def _to_microseconds(delta: timedelta) -> int:
    return (delta.days * 86400 + delta.seconds) * 1000 * 1000 + delta.microseconds


def billed_hours(
    entry_time: datetime,
    reference_time: datetime,
    live: bool = False
) -> int:
    """
    Number of hours billed for the interval, partial hours rounded up
    Raises: InvalidInterval if reference_time < entry_time and not live
    """
    entry_time = ensure_aware(entry_time)
    reference_time = ensure_aware(reference_time)

    elapsed_us = _to_microseconds(reference_time - entry_time)
    if elapsed_us < 0:
        if not live:
            raise InvalidInterval(entry_time, reference_time)
        return 0

    # Integer ceiling division
    return -(-elapsed_us // MICROSECONDS_PER_HOUR)


def compute_fare(
    entry_time: datetime,
    reference_time: datetime,
    hourly_rate: Money,
    live: bool = False
) -> Money:
    """
    Convert an elapsed interval into a charge under the hourly rate
    Raises: InvalidInterval in final-billing mode for a negative interval
    """
    hours = billed_hours(entry_time, reference_time, live=live)
    return hourly_rate * hours


# ============================================================================
# RATE POLICY (configuration value object)
# ============================================================================

@dataclass(frozen=True)
class RatePolicy:
    """Value Object: the single global hourly rate applied to every stay"""
    hourly_rate: Money

    @property
    def currency(self) -> str:
        return self.hourly_rate.currency

    def __str__(self) -> str:
        return f"{self.hourly_rate.format()} per started hour"


# ============================================================================
# DOMAIN SERVICE
# ============================================================================

class FareCalculator:
    """
    Domain Service: Calculates parking fares from a rate policy
    Holds no state besides the configured policy; shared by the ledger
    (final billing) and read views (live estimates)
    """

    def __init__(self, rate_policy: RatePolicy):
        self.rate_policy = rate_policy
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def hourly_rate(self) -> Money:
        return self.rate_policy.hourly_rate

    def final_fare(self, entry_time: datetime, exit_time: datetime) -> Money:
        """Fare fixed at checkout; never clamps a negative interval"""
        fare = compute_fare(entry_time, exit_time, self.hourly_rate)
        self.logger.debug(f"Final fare {fare.format()} for {entry_time.isoformat()} -> {exit_time.isoformat()}")
        return fare

    def estimate(self, entry_time: datetime, now: datetime) -> Money:
        """Running estimate for a stay that is still open"""
        return compute_fare(entry_time, now, self.hourly_rate, live=True)

    def billed_hours(
        self,
        entry_time: datetime,
        reference_time: datetime,
        live: bool = False
    ) -> int:
        return billed_hours(entry_time, reference_time, live=live)

    def __str__(self) -> str:
        return f"FareCalculator({self.rate_policy})"
