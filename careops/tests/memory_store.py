"""In-memory stand-ins for the SQLAlchemy repositories.

They implement the same async methods the services call, over plain dicts,
so service tests run without PostgreSQL. ``transaction()`` snapshots every
table and restores it if the block raises, like a savepoint would.
"""
from __future__ import annotations

import copy
import datetime as _dt
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID, uuid4

_APPOINTMENT_DEFAULTS: Dict[str, Any] = {
    "status": "PENDING",
    "category": "APPOINTMENT",
    "notes": None,
    "charge_rate": None,
    "rate_sheet_id": None,
    "client_visit_type_id": None,
    "template_id": None,
}

_VISIT_DEFAULTS: Dict[str, Any] = {
    "day": None,
    "start_time": None,
    "end_time": None,
    "worker_id": None,
    "worker2_id": None,
    "worker3_id": None,
    "rate_sheet_id": None,
    "client_visit_type_id": None,
    "name": "Visit",
    "end_status": "SAME_DAY",
}


def _now() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


class MemoryDB:
    def __init__(self) -> None:
        self.appointments: Dict[UUID, SimpleNamespace] = {}
        self.templates: Dict[UUID, SimpleNamespace] = {}
        self.users: Dict[UUID, SimpleNamespace] = {}
        self.leave_events: Dict[UUID, SimpleNamespace] = {}
        self.locks: List[Tuple[str, Any]] = []
        self.fail_bulk_after: Optional[int] = None

    def snapshot(self) -> Tuple[Dict, Dict, Dict]:
        return (
            copy.deepcopy(self.appointments),
            copy.deepcopy(self.templates),
            copy.deepcopy(self.leave_events),
        )

    def restore(self, snap: Tuple[Dict, Dict, Dict]) -> None:
        self.appointments, self.templates, self.leave_events = snap

    # ── Seeding helpers ──────────────────────────────────────────

    def add_user(self, full_name: str, *, agency_id: Optional[UUID] = None, role: str = "CARE_WORKER") -> UUID:
        uid = uuid4()
        self.users[uid] = SimpleNamespace(
            id=uid, agency_id=agency_id or uuid4(), full_name=full_name, role=role
        )
        return uid

    def add_appointment(self, **fields: Any) -> SimpleNamespace:
        row = {**_APPOINTMENT_DEFAULTS, **fields}
        row.setdefault("id", uuid4())
        row.setdefault("agency_id", uuid4())
        row.setdefault("client_id", uuid4())
        row.setdefault("created_at", _now())
        row.setdefault("updated_at", _now())
        obj = SimpleNamespace(**row)
        self.appointments[obj.id] = obj
        return obj

    def add_template(
        self,
        *,
        client_id: UUID,
        agency_id: Optional[UUID] = None,
        name: str = "Weekly plan",
        is_active: bool = False,
        visits: Iterable[Dict[str, Any]] = (),
    ) -> SimpleNamespace:
        tid = uuid4()
        template = SimpleNamespace(
            id=tid,
            agency_id=agency_id or uuid4(),
            client_id=client_id,
            name=name,
            description="",
            is_active=is_active,
            visits=[],
            created_at=_now(),
            updated_at=_now(),
        )
        template.visits = [_make_visit(tid, v) for v in visits]
        self.templates[tid] = template
        return template

    def add_leave_event(self, **fields: Any) -> SimpleNamespace:
        row = {"notes": None, "pay_rate": None, "color": None, "event_type": "OTHER", **fields}
        row.setdefault("id", uuid4())
        row.setdefault("agency_id", uuid4())
        row.setdefault("created_at", _now())
        row.setdefault("updated_at", _now())
        obj = SimpleNamespace(**row)
        self.leave_events[obj.id] = obj
        return obj


def _make_visit(template_id: UUID, fields: Dict[str, Any]) -> SimpleNamespace:
    row = {**_VISIT_DEFAULTS, **fields}
    row.setdefault("id", uuid4())
    row["template_id"] = template_id
    return SimpleNamespace(**row)


class _MemoryRepository:
    def __init__(self, db: MemoryDB) -> None:
        self.db = db
        self.session = None

    @asynccontextmanager
    async def transaction(self):
        snap = self.db.snapshot()
        try:
            yield self
        except BaseException:
            self.db.restore(snap)
            raise


class MemoryAppointmentRepository(_MemoryRepository):
    async def get_by_id(self, id: UUID) -> Optional[SimpleNamespace]:
        return self.db.appointments.get(id)

    async def exists(self, id: UUID) -> bool:
        return id in self.db.appointments

    async def create(self, data: Dict[str, Any]) -> SimpleNamespace:
        return self.db.add_appointment(**data)

    async def update(self, id: UUID, data: Dict[str, Any]) -> Optional[SimpleNamespace]:
        obj = self.db.appointments.get(id)
        if obj is None:
            return None
        for key, value in data.items():
            setattr(obj, key, value)
        obj.updated_at = _now()
        return obj

    async def delete(self, id: UUID) -> bool:
        return self.db.appointments.pop(id, None) is not None

    async def bulk_create(self, items: List[Dict[str, Any]]) -> List[SimpleNamespace]:
        created = []
        for i, data in enumerate(items):
            if self.db.fail_bulk_after is not None and i >= self.db.fail_bulk_after:
                raise RuntimeError("simulated storage failure")
            created.append(self.db.add_appointment(**data))
        return created

    async def list_for_worker_on_date(
        self,
        worker_id: UUID,
        date: _dt.date,
        *,
        exclude_id: Optional[UUID] = None,
    ) -> List[SimpleNamespace]:
        rows = [
            a for a in self.db.appointments.values()
            if a.worker_id == worker_id and a.date == date and a.id != exclude_id
        ]
        return sorted(rows, key=lambda a: a.start_time)

    async def list_filtered(
        self,
        *,
        skip: int = 0,
        limit: Optional[int] = 100,
        agency_id: Optional[UUID] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        worker_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None,
        date_from: Optional[_dt.date] = None,
        date_to: Optional[_dt.date] = None,
    ) -> Tuple[List[SimpleNamespace], int]:
        def keep(a: SimpleNamespace) -> bool:
            return (
                (agency_id is None or a.agency_id == agency_id)
                and (status is None or a.status == status)
                and (category is None or a.category == category)
                and (worker_id is None or a.worker_id == worker_id)
                and (client_id is None or a.client_id == client_id)
                and (date_from is None or a.date >= date_from)
                and (date_to is None or a.date <= date_to)
            )

        rows = sorted(
            (a for a in self.db.appointments.values() if keep(a)),
            key=lambda a: (a.date, a.start_time, str(a.id)),
        )
        end = None if limit is None else skip + limit
        return rows[skip:end], len(rows)

    async def lock_worker_day(self, worker_id: UUID, date: _dt.date) -> None:
        self.db.locks.append(("worker_day", (worker_id, date)))


class MemoryTemplateRepository(_MemoryRepository):
    async def get_by_id(self, id: UUID) -> Optional[SimpleNamespace]:
        return self.db.templates.get(id)

    async def get_with_visits(self, id: UUID) -> Optional[SimpleNamespace]:
        return self.db.templates.get(id)

    async def create(self, data: Dict[str, Any]) -> SimpleNamespace:
        template = self.db.add_template(
            client_id=data["client_id"],
            agency_id=data["agency_id"],
            name=data["name"],
            is_active=data.get("is_active", False),
        )
        template.description = data.get("description", "")
        return template

    async def update(self, id: UUID, data: Dict[str, Any]) -> Optional[SimpleNamespace]:
        template = self.db.templates.get(id)
        if template is None:
            return None
        for key, value in data.items():
            setattr(template, key, value)
        template.updated_at = _now()
        return template

    async def delete(self, id: UUID) -> bool:
        return self.db.templates.pop(id, None) is not None

    async def list_for_client(
        self,
        client_id: UUID,
        agency_id: Optional[UUID] = None,
    ) -> List[SimpleNamespace]:
        rows = [
            t for t in self.db.templates.values()
            if t.client_id == client_id and (agency_id is None or t.agency_id == agency_id)
        ]
        return sorted(rows, key=lambda t: t.created_at)

    async def lock_client_templates(self, client_id: UUID) -> List[UUID]:
        self.db.locks.append(("client_templates", client_id))
        return [t.id for t in self.db.templates.values() if t.client_id == client_id]

    async def deactivate_all_for_client(self, client_id: UUID) -> int:
        n = 0
        for t in self.db.templates.values():
            if t.client_id == client_id and t.is_active:
                t.is_active = False
                n += 1
        return n

    async def set_active(self, id: UUID, is_active: bool) -> Optional[SimpleNamespace]:
        return await self.update(id, {"is_active": is_active})

    async def replace_visits(self, template_id: UUID, visits: List[Dict[str, Any]]) -> List[SimpleNamespace]:
        template = self.db.templates[template_id]
        template.visits = [_make_visit(template_id, v) for v in visits]
        return template.visits

    async def refresh_visits(self, template: SimpleNamespace) -> SimpleNamespace:
        return self.db.templates.get(template.id, template)


class MemoryUserRepository(_MemoryRepository):
    async def get_full_names(self, ids: Iterable[UUID]) -> Dict[UUID, str]:
        return {i: self.db.users[i].full_name for i in ids if i in self.db.users}


class MemoryLeaveEventRepository(_MemoryRepository):
    async def get_by_id(self, id: UUID) -> Optional[SimpleNamespace]:
        return self.db.leave_events.get(id)

    async def create(self, data: Dict[str, Any]) -> SimpleNamespace:
        return self.db.add_leave_event(**data)

    async def delete(self, id: UUID) -> bool:
        return self.db.leave_events.pop(id, None) is not None

    async def list_for_agency(
        self,
        agency_id: UUID,
        *,
        starts_before: Optional[_dt.datetime] = None,
        ends_after: Optional[_dt.datetime] = None,
    ) -> List[SimpleNamespace]:
        rows = [
            e for e in self.db.leave_events.values()
            if e.agency_id == agency_id
            and (starts_before is None or e.start_date <= starts_before)
            and (ends_after is None or e.end_date >= ends_after)
        ]
        return sorted(rows, key=lambda e: (e.start_date, str(e.id)))

    async def list_for_user(self, user_id: UUID) -> List[SimpleNamespace]:
        rows = [e for e in self.db.leave_events.values() if e.user_id == user_id]
        return sorted(rows, key=lambda e: (e.start_date, str(e.id)))
