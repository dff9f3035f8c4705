"""TemplateMaterializer: weekday anchoring, visit filtering, all-or-nothing bulk insert."""
from __future__ import annotations

import asyncio
import datetime as dt
import unittest
from decimal import Decimal
from uuid import uuid4

from careops.core.exceptions import NotFoundError, NoValidVisitsError
from careops.services.template_materializer import TemplateMaterializer
from careops.tests.memory_store import (
    MemoryAppointmentRepository,
    MemoryDB,
    MemoryTemplateRepository,
)

WEDNESDAY = dt.date(2024, 6, 5)
NEXT_MONDAY = dt.date(2024, 6, 10)


def _run(coro):
    return asyncio.run(coro)


class _MaterializerCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MemoryDB()
        self.client = uuid4()
        self.worker = uuid4()
        self.materializer = TemplateMaterializer(
            templates=MemoryTemplateRepository(self.db),
            appointments=MemoryAppointmentRepository(self.db),
            clock=lambda: WEDNESDAY,
        )

    def _template(self, visits, **kwargs):
        return self.db.add_template(client_id=self.client, name="Weekdays", visits=visits, **kwargs)

    def _visit(self, **overrides):
        visit = {"day": "MONDAY", "start_time": "08:00", "end_time": "10:00", "worker_id": self.worker}
        visit.update(overrides)
        return visit


class TestApplyTemplate(_MaterializerCase):
    def test_monday_visit_on_wednesday_lands_next_monday(self):
        template = self._template([self._visit()])

        result = _run(self.materializer.apply_template(template.id))

        self.assertEqual(result.inserted_count, 1)
        self.assertEqual(result.reference_date, WEDNESDAY)
        appt = self.db.appointments[result.appointment_ids[0]]
        self.assertEqual(appt.date, NEXT_MONDAY)
        self.assertEqual((appt.start_time, appt.end_time), ("08:00", "10:00"))
        self.assertEqual(appt.worker_id, self.worker)
        self.assertEqual(appt.client_id, self.client)
        self.assertEqual(appt.agency_id, template.agency_id)

    def test_materialized_defaults(self):
        rate_sheet = uuid4()
        template = self._template([self._visit(rate_sheet_id=rate_sheet)])

        result = _run(self.materializer.apply_template(template.id))

        appt = self.db.appointments[result.appointment_ids[0]]
        self.assertEqual(appt.status, "PENDING")
        self.assertEqual(appt.category, "HOME_VISIT")
        self.assertEqual(appt.charge_rate, Decimal("0"))
        self.assertEqual(appt.notes, "Applied from template: Weekdays")
        self.assertEqual(appt.template_id, template.id)
        self.assertEqual(appt.rate_sheet_id, rate_sheet)

    def test_same_weekday_is_today(self):
        template = self._template([self._visit(day="WEDNESDAY")])
        result = _run(self.materializer.apply_template(template.id))
        self.assertEqual(self.db.appointments[result.appointment_ids[0]].date, WEDNESDAY)

    def test_reference_date_overrides_clock(self):
        template = self._template([self._visit(day="FRIDAY")])
        result = _run(self.materializer.apply_template(template.id, reference_date=dt.date(2024, 7, 1)))
        self.assertEqual(self.db.appointments[result.appointment_ids[0]].date, dt.date(2024, 7, 5))

    def test_invalid_visits_skipped_and_logged(self):
        template = self._template([
            self._visit(),
            self._visit(day=None),
            self._visit(start_time=None),
            self._visit(worker_id=None),
            self._visit(start_time="11:00", end_time="10:00"),
            self._visit(day="FUNDAY"),
        ])

        with self.assertLogs("careops.services.template_materializer", level="WARNING") as logs:
            result = _run(self.materializer.apply_template(template.id))

        self.assertEqual(result.inserted_count, 1)
        self.assertEqual(len(result.skipped), 5)
        self.assertEqual(len([line for line in logs.output if "skipping visit" in line]), 5)
        self.assertTrue(all(s.code == "INVALID_VISIT" for s in result.skipped))

    def test_no_valid_visits_inserts_nothing(self):
        template = self._template([self._visit(worker_id=None), self._visit(day=None)])

        with self.assertRaises(NoValidVisitsError) as ctx:
            _run(self.materializer.apply_template(template.id))

        self.assertEqual(ctx.exception.code, "NO_VALID_VISITS")
        self.assertEqual(ctx.exception.http_status, 422)
        self.assertEqual(len(ctx.exception.details["skipped"]), 2)
        self.assertEqual(self.db.appointments, {})

    def test_empty_template(self):
        template = self._template([])
        with self.assertRaises(NoValidVisitsError):
            _run(self.materializer.apply_template(template.id))

    def test_unknown_template(self):
        with self.assertRaises(NotFoundError):
            _run(self.materializer.apply_template(uuid4()))

    def test_bulk_insert_is_all_or_nothing(self):
        template = self._template([self._visit(), self._visit(day="TUESDAY"), self._visit(day="FRIDAY")])
        self.db.fail_bulk_after = 2

        with self.assertRaises(RuntimeError):
            _run(self.materializer.apply_template(template.id))

        self.assertEqual(self.db.appointments, {})

    def test_no_overlap_check_for_templates(self):
        self.db.add_appointment(
            worker_id=self.worker, date=NEXT_MONDAY, start_time="09:00", end_time="11:00"
        )
        template = self._template([self._visit()])

        result = _run(self.materializer.apply_template(template.id))

        self.assertEqual(result.inserted_count, 1)
        self.assertEqual(len(self.db.appointments), 2)
        self.assertEqual(self.db.locks, [])

    def test_single_digit_hours_normalized(self):
        template = self._template([self._visit(start_time="8:00", end_time="9:30")])
        result = _run(self.materializer.apply_template(template.id))
        appt = self.db.appointments[result.appointment_ids[0]]
        self.assertEqual((appt.start_time, appt.end_time), ("08:00", "09:30"))


if __name__ == "__main__":
    unittest.main()
