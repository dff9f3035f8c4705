"""LeaveEventService: validation, listings with names and deletion."""
from __future__ import annotations

import asyncio
import datetime as dt
import unittest
from decimal import Decimal
from uuid import uuid4

from careops.core.exceptions import NotFoundError, ValidationError
from careops.services.leave_event_service import LeaveEventService
from careops.tests.memory_store import MemoryDB, MemoryLeaveEventRepository, MemoryUserRepository

UTC = dt.timezone.utc


def _run(coro):
    return asyncio.run(coro)


class _LeaveCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MemoryDB()
        self.agency = uuid4()
        self.worker = self.db.add_user("Sam Carer", agency_id=self.agency)
        self.svc = LeaveEventService(
            repo=MemoryLeaveEventRepository(self.db),
            users=MemoryUserRepository(self.db),
        )

    def _payload(self, **overrides):
        data = {
            "user_id": str(self.worker),
            "agency_id": str(self.agency),
            "start_date": "2024-06-03T00:00:00.000Z",
            "end_date": "2024-06-07T23:59:00.000Z",
            "event_type": "ANNUAL_LEAVE",
            "notes": "Summer break",
            "pay_rate": "12.50",
        }
        data.update(overrides)
        return data

    def _seed(self, start_day, end_day, **fields):
        return self.db.add_leave_event(
            agency_id=fields.pop("agency_id", self.agency),
            user_id=fields.pop("user_id", self.worker),
            start_date=dt.datetime(2024, 6, start_day, tzinfo=UTC),
            end_date=dt.datetime(2024, 6, end_day, 23, 0, tzinfo=UTC),
            **fields,
        )


class TestCreate(_LeaveCase):
    def test_created_with_default_color_and_name(self):
        view = _run(self.svc.create(self._payload()))

        stored = self.db.leave_events[view.id]
        self.assertEqual(stored.start_date, dt.datetime(2024, 6, 3, tzinfo=UTC))
        self.assertEqual(stored.pay_rate, Decimal("12.50"))
        self.assertEqual(view.color, "#4CAF50")
        self.assertEqual(view.title, "ANNUAL LEAVE")
        self.assertEqual(view.user_name, "Sam Carer")

    def test_type_is_case_insensitive_and_color_kept(self):
        view = _run(self.svc.create(self._payload(event_type="sick leave", color="#123456")))
        self.assertEqual(view.event_type, "SICK_LEAVE")
        self.assertEqual(view.color, "#123456")

    def test_single_instant_allowed(self):
        view = _run(self.svc.create(self._payload(end_date="2024-06-03T00:00:00Z", pay_rate=None)))
        self.assertEqual(view.start_date, view.end_date)
        self.assertIsNone(view.pay_rate)

    def test_missing_fields_listed(self):
        with self.assertRaises(ValidationError) as ctx:
            _run(self.svc.create(self._payload(user_id="", event_type=None)))
        self.assertEqual(ctx.exception.details["missing"], ["user_id", "event_type"])
        self.assertEqual(self.db.leave_events, {})

    def test_end_before_start_rejected(self):
        with self.assertRaises(ValidationError):
            _run(self.svc.create(self._payload(end_date="2024-06-02T10:00:00Z")))

    def test_unknown_type_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            _run(self.svc.create(self._payload(event_type="SABBATICAL")))
        self.assertIn("TOIL", ctx.exception.details["valid_types"])

    def test_negative_pay_rate_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            _run(self.svc.create(self._payload(pay_rate="-1")))
        self.assertEqual(ctx.exception.details["field"], "pay_rate")

    def test_malformed_dates_and_ids_rejected(self):
        with self.assertRaises(ValidationError):
            _run(self.svc.create(self._payload(start_date="next monday")))
        with self.assertRaises(ValidationError):
            _run(self.svc.create(self._payload(user_id="sam")))
        self.assertEqual(self.db.leave_events, {})


class TestListing(_LeaveCase):
    def test_agency_listing_ordered_and_scoped(self):
        later = self._seed(20, 21)
        earlier = self._seed(3, 7)
        self._seed(3, 7, agency_id=uuid4())

        views = _run(self.svc.list_for_agency(self.agency))

        self.assertEqual([v.id for v in views], [earlier.id, later.id])
        self.assertEqual(views[0].user_name, "Sam Carer")

    def test_agency_window_keeps_overlapping_leave(self):
        spanning = self._seed(1, 10)
        inside = self._seed(5, 5)
        self._seed(12, 14)

        views = _run(self.svc.list_for_agency(self.agency, date_from="2024-06-05", date_to="2024-06-05"))

        self.assertEqual({v.id for v in views}, {spanning.id, inside.id})

    def test_user_listing_and_unknown_name(self):
        stranger = uuid4()
        mine = self._seed(3, 4, user_id=stranger)
        self._seed(3, 4)

        views = _run(self.svc.list_for_user(stranger))

        self.assertEqual([v.id for v in views], [mine.id])
        self.assertEqual(views[0].user_name, "Unknown")
        self.assertEqual(views[0].color, "#9E9E9E")


class TestDelete(_LeaveCase):
    def test_delete(self):
        event = self._seed(3, 4)
        _run(self.svc.delete(event.id))
        self.assertNotIn(event.id, self.db.leave_events)

    def test_missing_event(self):
        with self.assertRaises(NotFoundError) as ctx:
            _run(self.svc.delete(uuid4()))
        self.assertEqual(ctx.exception.message, "Leave event not found")


if __name__ == "__main__":
    unittest.main()
