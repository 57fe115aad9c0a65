#!/usr/bin/env python3
"""
Service Layer Integration Tests

ParkingService wired through the factory with a fake clock and a real
event bus.
"""

import unittest
from datetime import date, timedelta
from decimal import Decimal

from parkledger.application.dtos import StayEntryRequestDTO, StayExitRequestDTO
from parkledger.domain.exceptions import AlreadyParked, InvalidInterval, InvalidPlate, NotParked
from parkledger.infrastructure.messaging import CallbackEventHandler, EventType

from tests.integration import FakeClock, IntegrationTestConfig, create_service


class TestParkingServiceFlow(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.service = create_service(self.clock)
        self.events = []
        handler = CallbackEventHandler(self.events.append)
        self.service.event_bus.subscribe(EventType.STAY_OPENED, handler)
        self.service.event_bus.subscribe(EventType.STAY_CLOSED, handler)

    def test_entry_and_exit_use_clock(self):
        entered = self.service.register_entry(StayEntryRequestDTO(plate="ABC1234"))
        self.assertEqual(entered.entry_time, IntegrationTestConfig.START_TIME)
        self.assertTrue(entered.is_open)

        self.clock.advance(hours=2, minutes=15)
        exited = self.service.register_exit(StayExitRequestDTO(plate="abc-1234"))

        self.assertEqual(exited.id, entered.id)
        self.assertEqual(exited.fare, Decimal("30.00"))
        self.assertEqual(exited.to_dict()["fare"], "30.00")
        self.assertEqual(exited.currency, "BRL")

    def test_explicit_times_override_clock(self):
        start = IntegrationTestConfig.START_TIME
        self.service.register_entry(StayEntryRequestDTO(plate="ABC1234", entry_time=start))
        exited = self.service.register_exit(
            StayExitRequestDTO(plate="ABC1234", exit_time=start + timedelta(seconds=1))
        )
        self.assertEqual(exited.to_dict()["fare"], "10.00")

    def test_events_published_after_each_mutation(self):
        self.service.register_entry(StayEntryRequestDTO(plate="ABC1234"))
        self.clock.advance(minutes=30)
        self.service.register_exit(StayExitRequestDTO(plate="ABC1234"))

        self.assertEqual([e.event_type for e in self.events], ["stay.opened", "stay.closed"])
        self.assertFalse(self.service.ledger.has_changes)

    def test_failures_propagate_and_publish_nothing(self):
        self.service.register_entry(StayEntryRequestDTO(plate="ABC1234"))
        self.events.clear()

        with self.assertRaises(AlreadyParked):
            self.service.register_entry(StayEntryRequestDTO(plate="ABC1234"))
        with self.assertRaises(NotParked):
            self.service.register_exit(StayExitRequestDTO(plate="XYZ9876"))
        with self.assertRaises(InvalidPlate):
            self.service.register_entry(StayEntryRequestDTO(plate="12"))
        with self.assertRaises(InvalidInterval):
            self.service.register_exit(StayExitRequestDTO(
                plate="ABC1234",
                exit_time=IntegrationTestConfig.START_TIME - timedelta(minutes=1)
            ))

        self.assertEqual(self.events, [])
        self.assertEqual(len(self.service.list_parked()), 1)

    def test_list_parked_and_history(self):
        self.service.register_entry(StayEntryRequestDTO(plate="ABC1234"))
        self.clock.advance(minutes=20)
        self.service.register_entry(StayEntryRequestDTO(plate="BRA2E19"))
        self.clock.advance(minutes=40)
        self.service.register_exit(StayExitRequestDTO(plate="ABC1234"))

        self.assertEqual([s.plate for s in self.service.list_parked()], ["BRA2E19"])
        history = self.service.list_history()
        self.assertEqual([s.plate for s in history], ["ABC1234", "BRA2E19"])
        self.assertEqual([s.status for s in history], ["closed", "open"])

    def test_list_today(self):
        self.service.register_entry(StayEntryRequestDTO(plate="ABC1234"))
        self.clock.advance(days=1)
        self.service.register_entry(StayEntryRequestDTO(plate="BRA2E19"))

        self.assertEqual([s.plate for s in self.service.list_today()], ["BRA2E19"])
        self.assertEqual(
            [s.plate for s in self.service.list_history(date(2024, 1, 15))],
            ["ABC1234"]
        )


class TestFareEstimate(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.service = create_service(self.clock)
        self.service.register_entry(StayEntryRequestDTO(plate="ABC1234"))

    def test_estimate_grows_with_time(self):
        self.clock.advance(minutes=30)
        self.assertEqual(self.service.estimate_fare("ABC1234").estimated_fare, Decimal("10.00"))

        self.clock.advance(minutes=31)
        estimate = self.service.estimate_fare("abc1234")
        self.assertEqual(estimate.billed_hours, 2)
        self.assertEqual(estimate.estimated_fare, Decimal("20.00"))
        self.assertEqual(estimate.elapsed, timedelta(minutes=61))

    def test_estimate_clamps_clock_skew(self):
        at = IntegrationTestConfig.START_TIME - timedelta(minutes=5)
        estimate = self.service.estimate_fare("ABC1234", at)
        self.assertEqual(estimate.billed_hours, 0)
        self.assertEqual(estimate.estimated_fare, Decimal("0"))
        self.assertEqual(estimate.elapsed, timedelta(0))

    def test_estimate_does_not_mutate(self):
        self.clock.advance(hours=3)
        self.service.estimate_fare("ABC1234")
        self.assertEqual(len(self.service.list_parked()), 1)
        self.assertEqual(self.service.ledger.version, 2)

    def test_estimate_not_parked(self):
        with self.assertRaises(NotParked):
            self.service.estimate_fare("XYZ9876")


class TestOccupancySummary(unittest.TestCase):

    def test_summary(self):
        clock = FakeClock()
        service = create_service(clock, hourly_rate="5.50")
        for plate in IntegrationTestConfig.PLATES[:3]:
            service.register_entry(StayEntryRequestDTO(plate=plate))
        clock.advance(minutes=90)
        service.register_exit(StayExitRequestDTO(plate=IntegrationTestConfig.PLATES[0]))

        summary = service.get_occupancy_summary()
        self.assertEqual(summary.open_stays, 2)
        self.assertEqual(summary.closed_stays, 1)
        self.assertEqual(summary.total_revenue, Decimal("11.00"))
        self.assertEqual(summary.to_dict()["hourly_rate"], "5.50")
        self.assertEqual(summary.generated_at, clock.now)


if __name__ == '__main__':
    unittest.main()
