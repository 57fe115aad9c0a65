"""
Integration Tests Package for the Parking Stay Ledger

Integration tests exercise the service, command processor, event bus,
views and CLI together against in-memory ledgers.

Test Categories:
- Service layer integration
- Command processing flow
- Event handling and view refresh
- Concurrent operations
- Command-line entry point
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional
import sys

# Add the src directory to Python path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))


class IntegrationTestConfig:
    """Configuration for integration tests"""

    HOURLY_RATE = Decimal("10.00")
    CURRENCY = "BRL"
    START_TIME = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

    PLATES = ["ABC1234", "BRA2E19", "XYZ9876", "DEF5678"]


class FakeClock:
    """Settable clock injected into ParkingService"""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or IntegrationTestConfig.START_TIME

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def create_service(clock: Optional[FakeClock] = None, **config_values):
    """Build a ParkingService through the factory with a fake clock"""
    from parkledger.config import LedgerConfig
    from parkledger.infrastructure.factories import ParkingServiceFactory

    config = LedgerConfig(**config_values)
    return ParkingServiceFactory(config).create_service(clock=clock or FakeClock())
