#!/usr/bin/env python3
"""
careops schedule CLI – inspect agency schedules and leave, and manage weekly templates.

Usage:
  python -m careops.scripts.schedule_cli

Required env: DATABASE_URL
"""
from __future__ import annotations

import asyncio
import datetime as _dt
import logging
import os
import sys
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional
from uuid import UUID

from careops.config import load_postgres_config, load_scheduling_config
from careops.core.exceptions import ProjectError
from careops.core.logger import LoggerConfig, configure
from careops.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)
from careops.services import LeaveEventService, ScheduleService, TemplateMaterializer, TemplateService

logger = logging.getLogger(__name__)

# Swappable for tests
_input_fn = input
_print_fn = print
_default_input_fn = input
_default_print_fn = print


def _set_io(input_fn=None, print_fn=None) -> None:
    """Inject I/O for tests. None leaves the current function in place."""
    global _input_fn, _print_fn
    if input_fn is not None:
        _input_fn = input_fn
    if print_fn is not None:
        _print_fn = print_fn


def _reset_io() -> None:
    global _input_fn, _print_fn
    _input_fn = _default_input_fn
    _print_fn = _default_print_fn


def _out(msg: str = "") -> None:
    _print_fn(msg)


def _input(prompt: str, default: str = "") -> str:
    s = _input_fn(prompt).strip()
    return s if s else default


def _input_uuid(prompt: str) -> Optional[UUID]:
    s = _input_fn(prompt).strip()
    if not s:
        return None
    try:
        return UUID(s)
    except ValueError:
        _out("  Invalid id.")
        return None


def _input_date(prompt: str) -> Optional[_dt.date]:
    s = _input_fn(prompt).strip()
    if not s:
        return None
    try:
        return _dt.date.fromisoformat(s)
    except ValueError:
        _out("  Invalid date, expected YYYY-MM-DD.")
        return None


# Fixed width so test output is stable
MENU_WIDTH = 44


def _show_menu(title: str, items: List[str]) -> str:
    top = "╭" + "─" * (MENU_WIDTH - 2) + "╮"
    bot = "╰" + "─" * (MENU_WIDTH - 2) + "╯"
    sep = "├" + "─" * (MENU_WIDTH - 2) + "┤"
    _out()
    _out(top)
    _out("│ " + title.center(MENU_WIDTH - 4) + " │")
    _out(sep)
    for item in items:
        _out("│ " + item.ljust(MENU_WIDTH - 4) + " │")
    _out(bot)
    return _input_fn("  Choice: ").strip()


def _format_schedule_line(view) -> str:
    return (
        f"  {view.date.isoformat()} {view.start_time}-{view.end_time}  "
        f"{view.status:<9} {view.category:<14} {view.title}  [{view.id}]"
    )


# ─── Handlers ────────────────────────────────────────────────────

async def _list_agency_schedules(sf) -> None:
    agency_id = _input_uuid("  Agency id: ")
    if agency_id is None:
        return
    date_from = _input("  From (YYYY-MM-DD, empty = any): ") or None
    date_to = _input("  To (YYYY-MM-DD, empty = any): ") or None
    async with sf() as session:
        svc = ScheduleService(session, config=load_scheduling_config())
        items, total = await svc.list(agency_id=agency_id, date_from=date_from, date_to=date_to)
    if not items:
        _out("  No appointments.")
        return
    for view in items:
        _out(_format_schedule_line(view))
    _out(f"  {len(items)} of {total} shown")


async def _list_client_templates(sf) -> None:
    client_id = _input_uuid("  Client id: ")
    if client_id is None:
        return
    async with sf() as session:
        templates = await TemplateService(session).list(client_id)
    if not templates:
        _out("  No templates.")
        return
    for t in templates:
        marker = "●" if t.is_active else "○"
        _out(f"  {marker} {t.name}  ({len(t.visits)} visits)  [{t.id}]")


async def _apply_template(sf) -> None:
    template_id = _input_uuid("  Template id: ")
    if template_id is None:
        return
    reference_date = _input_date("  Reference date (YYYY-MM-DD, empty = today): ")
    async with sf() as session:
        materializer = TemplateMaterializer(session)
        result = await materializer.apply_template(template_id, reference_date=reference_date)
        await session.commit()
    _out(f"  ✓ {result.inserted_count} appointment(s) created from {result.reference_date.isoformat()}")
    for skipped in result.skipped:
        _out(f"    skipped visit {skipped.visit_id}: {skipped.reason}")


async def _activate_template(sf) -> None:
    template_id = _input_uuid("  Template id: ")
    client_id = _input_uuid("  Client id: ")
    if template_id is None or client_id is None:
        return
    async with sf() as session:
        await TemplateService(session).activate(template_id, client_id)
        await session.commit()
    _out("  ✓ Template activated.")


async def _deactivate_template(sf) -> None:
    template_id = _input_uuid("  Template id: ")
    if template_id is None:
        return
    async with sf() as session:
        await TemplateService(session).deactivate(template_id)
        await session.commit()
    _out("  ✓ Template deactivated.")


async def _list_agency_leave(sf) -> None:
    agency_id = _input_uuid("  Agency id: ")
    if agency_id is None:
        return
    date_from = _input("  From (YYYY-MM-DD, empty = any): ") or None
    date_to = _input("  To (YYYY-MM-DD, empty = any): ") or None
    async with sf() as session:
        events = await LeaveEventService(session).list_for_agency(
            agency_id, date_from=date_from, date_to=date_to
        )
    if not events:
        _out("  No leave.")
        return
    for e in events:
        _out(
            f"  {e.start_date:%Y-%m-%d %H:%M} → {e.end_date:%Y-%m-%d %H:%M}  "
            f"{e.title:<19} {e.user_name}  [{e.id}]"
        )

MAIN_ITEMS = [
    "1) List agency schedules",
    "2) List client templates",
    "3) Apply template",
    "4) Activate template",
    "5) Deactivate template",
    "6) List agency leave",
    "0) Exit",
]

MAIN_HANDLERS: Dict[str, Callable[..., Awaitable[None]]] = {
    "1": _list_agency_schedules,
    "2": _list_client_templates,
    "3": _apply_template,
    "4": _activate_template,
    "5": _deactivate_template,
    "6": _list_agency_leave,
}


async def run_menu(sf) -> None:
    """Main loop; returns when the operator picks 0."""
    while True:
        choice = _show_menu("careops Schedule CLI", MAIN_ITEMS)
        if choice == "0":
            break
        handler = MAIN_HANDLERS.get(choice)
        if handler is None:
            _out("  Invalid choice.")
            continue
        try:
            await handler(sf)
        except ProjectError as e:
            logger.info("CLI: choice %s failed: %s", choice, e.to_dict())
            _out(f"  Error [{e.code}]: {e.message}")
        except KeyboardInterrupt:
            _out("\n  Cancelled.")
    _out("\nBye.")


def _setup_logging() -> str:
    """Rotating file + console logging; log dir defaults to <project root>/logs. Returns log file path."""
    config = LoggerConfig.from_env()
    log_dir_raw = (config.log_dir or "").strip()
    if log_dir_raw:
        log_dir = Path(log_dir_raw)
    else:
        log_dir = Path(__file__).resolve().parent.parent.parent / "logs"
        config = config.with_overrides(log_dir=str(log_dir))
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError as e:
        _out(f"  Warning: cannot create log dir {log_dir} ({e})")
    configure(config)
    return str(log_dir / f"{config.log_file_basename}.log")


async def main() -> None:
    log_path = _setup_logging()
    _out(f"  Log file: {log_path}")
    _out("")

    try:
        pg = load_postgres_config()
    except ValueError as e:
        _out(f"Config error: {e}")
        _out("Required env: DATABASE_URL")
        sys.exit(1)

    _out("Checking database...")
    await ensure_database_exists(pg)
    engine = build_engine(pg, use_null_pool=True)
    sf = build_session_factory(engine)
    try:
        await init_db(pg)
    except OSError as e:
        _out(f"Database connection error: {e}")
        _out("Make sure PostgreSQL is running and DATABASE_URL is correct.")
        sys.exit(1)
    _out("Database ready.")

    try:
        await run_menu(sf)
    finally:
        await close_engine()


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
