"""
Schedule CLI menu and I/O tests.

Run:
  python -m pytest careops/tests/test_schedule_cli.py -v
"""
from __future__ import annotations

import asyncio
import datetime as dt
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

from careops.core.exceptions import NotFoundError
from careops.scripts import schedule_cli
from careops.scripts.schedule_cli import (
    MAIN_ITEMS,
    MENU_WIDTH,
    _reset_io,
    _set_io,
    _show_menu,
    run_menu,
)


class TestScheduleCliMenu(unittest.TestCase):
    def tearDown(self) -> None:
        _reset_io()

    def test_show_menu_returns_user_choice(self) -> None:
        it = iter(["3", "0"])
        _set_io(input_fn=lambda p: next(it, "0"), print_fn=lambda s: None)
        self.assertEqual(_show_menu("Menu", ["1) A"]), "3")
        self.assertEqual(_show_menu("Menu", []), "0")

    def test_show_menu_displays_title_and_items(self) -> None:
        out: list[str] = []
        _set_io(input_fn=lambda p: "0", print_fn=out.append)
        _show_menu("careops Schedule CLI", MAIN_ITEMS)
        text = "\n".join(out)
        self.assertIn("careops Schedule CLI", text)
        self.assertIn("Apply template", text)
        self.assertIn("0) Exit", text)

    def test_show_menu_has_fixed_width_box(self) -> None:
        out: list[str] = []
        _set_io(input_fn=lambda p: "0", print_fn=out.append)
        _show_menu("Title", ["1) Option"])
        boxed = [line for line in out if line]
        self.assertTrue(boxed[0].startswith("╭") and boxed[0].endswith("╮"))
        self.assertTrue(boxed[-1].startswith("╰") and boxed[-1].endswith("╯"))
        self.assertTrue(all(len(line) == MENU_WIDTH for line in boxed))


class TestRunMenu(unittest.TestCase):
    def tearDown(self) -> None:
        _reset_io()

    def _drive(self, choices, handlers):
        it = iter(choices)
        out: list[str] = []
        _set_io(input_fn=lambda p: next(it, "0"), print_fn=out.append)
        with patch.dict(schedule_cli.MAIN_HANDLERS, handlers):
            asyncio.run(run_menu(sf=object()))
        return out

    def test_dispatches_and_exits(self) -> None:
        handler = AsyncMock()
        out = self._drive(["2", "0"], {"2": handler})
        handler.assert_awaited_once()
        self.assertEqual(out[-1], "\nBye.")

    def test_invalid_choice(self) -> None:
        out = self._drive(["9", "0"], {})
        self.assertIn("  Invalid choice.", out)

    def test_project_error_is_reported_and_loop_continues(self) -> None:
        failing = AsyncMock(side_effect=NotFoundError("Template not found"))
        out = self._drive(["3", "3", "0"], {"3": failing})
        self.assertEqual(failing.await_count, 2)
        self.assertIn("  Error [NOT_FOUND]: Template not found", out)


class TestApplyTemplateHandler(unittest.TestCase):
    def tearDown(self) -> None:
        _reset_io()

    def test_prints_inserted_and_skipped(self) -> None:
        template_id = uuid4()
        answers = iter([str(template_id), "2024-06-05"])
        out: list[str] = []
        _set_io(input_fn=lambda p: next(answers), print_fn=out.append)

        result = SimpleNamespace(
            inserted_count=2,
            reference_date=dt.date(2024, 6, 5),
            skipped=[SimpleNamespace(visit_id="v1", reason="Visit has no primary worker")],
        )
        session = SimpleNamespace(commit=AsyncMock())

        class _SessionCtx:
            async def __aenter__(self):
                return session

            async def __aexit__(self, *exc):
                return False

        with patch.object(schedule_cli, "TemplateMaterializer") as materializer_cls:
            materializer_cls.return_value.apply_template = AsyncMock(return_value=result)
            asyncio.run(schedule_cli._apply_template(lambda: _SessionCtx()))

        materializer_cls.return_value.apply_template.assert_awaited_once()
        session.commit.assert_awaited_once()
        self.assertIn("  ✓ 2 appointment(s) created from 2024-06-05", out)
        self.assertIn("    skipped visit v1: Visit has no primary worker", out)

    def test_bad_id_aborts(self) -> None:
        out: list[str] = []
        _set_io(input_fn=lambda p: "not-a-uuid", print_fn=out.append)
        with patch.object(schedule_cli, "TemplateMaterializer") as materializer_cls:
            asyncio.run(schedule_cli._apply_template(lambda: None))
        materializer_cls.assert_not_called()
        self.assertIn("  Invalid id.", out)



class TestListAgencyLeaveHandler(unittest.TestCase):
    def tearDown(self) -> None:
        _reset_io()

    def test_prints_leave_lines(self) -> None:
        agency_id = uuid4()
        answers = iter([str(agency_id), "2024-06-01", ""])
        out: list[str] = []
        _set_io(input_fn=lambda p: next(answers), print_fn=out.append)
        view = SimpleNamespace(
            id="e1",
            start_date=dt.datetime(2024, 6, 3, 0, 0, tzinfo=dt.timezone.utc),
            end_date=dt.datetime(2024, 6, 4, 23, 59, tzinfo=dt.timezone.utc),
            title="SICK LEAVE",
            user_name="Ayla Worker",
        )

        class _SessionCtx:
            async def __aenter__(self):
                return None

            async def __aexit__(self, *exc):
                return False

        with patch.object(schedule_cli, "LeaveEventService") as service_cls:
            service_cls.return_value.list_for_agency = AsyncMock(return_value=[view])
            asyncio.run(schedule_cli._list_agency_leave(lambda: _SessionCtx()))

        service_cls.return_value.list_for_agency.assert_awaited_once_with(
            agency_id, date_from="2024-06-01", date_to=None
        )
        self.assertEqual(len(out), 1)
        self.assertIn("2024-06-03 00:00 → 2024-06-04 23:59", out[0])
        self.assertIn("Ayla Worker  [e1]", out[0])

if __name__ == "__main__":
    unittest.main()
