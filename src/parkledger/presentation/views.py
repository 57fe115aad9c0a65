# File: src/parkledger/presentation/views.py
"""
Text views for the Parking Stay Ledger

Two read-only views over the parking service:
- OccupancyView: vehicles parked now, with elapsed time and live estimate
- HistoryView: stays of a day (or all stays) with their fixed fares

Views only read. They are marked stale by ViewRefreshHandler when a stay
event is published and re-query on the next render.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional
import logging

from ..application.dtos import StayDTO
from ..application.parking_service import ParkingService
from ..domain.exceptions import NotParked
from ..domain.models import DomainEvent, Money
from ..infrastructure.messaging import EventBus, EventHandler, EventType


DATETIME_FORMAT = "%d/%m/%Y %H:%M"


def format_elapsed(elapsed: timedelta) -> str:
    """Whole hours and minutes, e.g. '2h 15m'; negative intervals show as '0h 0m'"""
    total_minutes = max(int(elapsed.total_seconds() // 60), 0)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"


def format_datetime(value: Optional[datetime], tz: Optional[tzinfo] = None) -> str:
    if value is None:
        return "-"
    return value.astimezone(tz or timezone.utc).strftime(DATETIME_FORMAT)


def render_table(headers: List[str], rows: List[List[str]]) -> str:
    """Plain-text table with left-aligned columns"""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def line(cells: List[str]) -> str:
        return "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)).rstrip()

    output = [line(headers), line(["-" * w for w in widths])]
    output.extend(line(row) for row in rows)
    return "\n".join(output)


@dataclass(frozen=True)
class StayRow:
    """One display row"""
    plate: str
    entry: str
    exit: str
    elapsed: str
    amount: str
    status: str

    def cells(self) -> List[str]:
        return [self.plate, self.entry, self.exit, self.elapsed, self.amount, self.status]


class StayView:
    """Base class for cached, re-queryable stay views"""

    headers = ["Plate", "Entry", "Exit", "Time", "Amount", "Status"]
    empty_message = "No stays"

    def __init__(self, service: ParkingService, tz: Optional[tzinfo] = None):
        self.service = service
        self.tz = tz or service.tz
        self.stale = True
        self._rows: List[StayRow] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def _query(self) -> List[StayRow]:
        raise NotImplementedError

    def refresh(self) -> List[StayRow]:
        self._rows = self._query()
        self.stale = False
        self.logger.debug(f"Refreshed {len(self._rows)} rows")
        return self._rows

    def rows(self) -> List[StayRow]:
        if self.stale:
            return self.refresh()
        return self._rows

    def render(self) -> str:
        rows = self.rows()
        if not rows:
            return self.empty_message
        return render_table(self.headers, [row.cells() for row in rows])

    def to_dict(self) -> List[Dict[str, Any]]:
        return [row.__dict__.copy() for row in self.rows()]


class OccupancyView(StayView):
    """Vehicles currently parked with a live fare estimate"""

    empty_message = "No vehicles parked"

    def _query(self) -> List[StayRow]:
        rows = []
        for stay in self.service.list_parked():
            try:
                estimate = self.service.estimate_fare(stay.plate)
            except NotParked:
                # Left between the listing and the estimate
                continue
            rows.append(StayRow(
                plate=stay.plate,
                entry=format_datetime(stay.entry_time, self.tz),
                exit="-",
                elapsed=format_elapsed(estimate.elapsed),
                amount=Money(estimate.estimated_fare, estimate.currency).format(),
                status="Parked"
            ))
        return rows


class HistoryView(StayView):
    """Stays that entered on one day (today by default), or all stays"""

    empty_message = "No stays recorded"

    def __init__(
        self,
        service: ParkingService,
        day: Optional[date] = None,
        all_days: bool = False,
        tz: Optional[tzinfo] = None
    ):
        super().__init__(service, tz)
        self.day = day
        self.all_days = all_days

    def _stays(self) -> List[StayDTO]:
        if self.all_days:
            return self.service.list_history()
        if self.day is not None:
            return self.service.list_history(self.day)
        return self.service.list_today()

    def _query(self) -> List[StayRow]:
        rows = []
        for stay in self._stays():
            if stay.is_open:
                rows.append(StayRow(
                    plate=stay.plate,
                    entry=format_datetime(stay.entry_time, self.tz),
                    exit="In progress",
                    elapsed="-",
                    amount="-",
                    status="Parked"
                ))
                continue
            rows.append(StayRow(
                plate=stay.plate,
                entry=format_datetime(stay.entry_time, self.tz),
                exit=format_datetime(stay.exit_time, self.tz),
                elapsed=format_elapsed(stay.exit_time - stay.entry_time),
                amount=Money(stay.fare, stay.currency).format(),
                status="Closed"
            ))
        return rows


# ============================================================================
# REFRESH ON STAY EVENTS
# ============================================================================

class ViewRefreshHandler(EventHandler):
    """Marks views stale whenever a stay opens or closes"""

    def __init__(self, *views: StayView):
        self.views = list(views)

    def handle(self, event: DomainEvent) -> None:
        for view in self.views:
            view.stale = True

    def attach(self, event_bus: EventBus) -> 'ViewRefreshHandler':
        event_bus.subscribe(EventType.STAY_OPENED, self)
        event_bus.subscribe(EventType.STAY_CLOSED, self)
        return self
