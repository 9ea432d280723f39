from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Dict, List

import pytest

from src.nfc_attendance.nfc_attendance.attendance.model import AttendanceRecord
from src.nfc_attendance.nfc_attendance.container import build_services
from src.nfc_attendance.nfc_attendance.core.enums import AttendanceStatus, TagStatus
from src.nfc_attendance.nfc_attendance.core.exceptions import DuplicateRecordError
from src.nfc_attendance.nfc_attendance.employees.model import Employee
from src.nfc_attendance.nfc_attendance.tags.model import TagBinding


class FakeEmployeesRepo:
    def __init__(self, employees=None):
        self._employees: Dict[int, Employee] = {e.employee_id: e for e in (employees or [])}

    def get_by_id(self, employee_id):
        return self._employees.get(int(employee_id))


class FakeTagsRepo:
    def __init__(self, bindings=None):
        self._tags: Dict[str, TagBinding] = {b.tag_id: b for b in (bindings or [])}
        self.touches: List[tuple] = []

    def get_by_tag_id(self, tag_id):
        return self._tags.get(tag_id)

    def upsert(self, *, tag_id, employee_id, status, enrolled_at):
        self._tags[tag_id] = TagBinding(tag_id=tag_id, employee_id=employee_id, status=status, enrolled_at=enrolled_at)

    def set_status(self, *, tag_id, status):
        if tag_id not in self._tags:
            return False
        self._tags[tag_id] = replace(self._tags[tag_id], status=status)
        return True

    def touch(self, *, tag_id, used_at, reader_id):
        self.touches.append((tag_id, used_at, reader_id))
        b = self._tags[tag_id]
        self._tags[tag_id] = replace(b, last_used_at=used_at, reader_id=reader_id or b.reader_id)


class FakeAttendanceRepo:
    """In-memory store with the same uniqueness rules as the MySQL schema."""

    def __init__(self):
        self._next_id = 1
        self.records: Dict[int, AttendanceRecord] = {}
        self.create_calls = 0

    def get_by_id(self, attendance_id):
        return self.records.get(int(attendance_id))

    def get_by_key(self, key):
        if not key:
            return None
        for r in self.records.values():
            if r.idempotency_key == key or r.checkout_key == key:
                return r
        return None

    def get_for_employee_and_date(self, employee_id, work_date):
        for r in self.records.values():
            if r.employee_id == int(employee_id) and r.work_date == work_date:
                return r
        return None

    def get_recent_for_employee(self, employee_id, limit):
        rows = [r for r in self.records.values() if r.employee_id == int(employee_id)]
        rows.sort(key=lambda r: r.work_date, reverse=True)
        return rows[:limit]

    def create_open(self, *, employee_id, work_date, time_in, status, check_in_method, tag_id=None,
                    idempotency_key=None, reader_id=None, location=None):
        self.create_calls += 1
        if self.get_for_employee_and_date(employee_id, work_date) or self.get_by_key(idempotency_key):
            raise DuplicateRecordError(f"{employee_id}/{work_date}")
        rid = self._next_id
        self._next_id += 1
        self.records[rid] = AttendanceRecord(
            attendance_id=rid,
            employee_id=employee_id,
            work_date=work_date,
            time_in=time_in,
            time_out=None,
            duration_minutes=None,
            status=status,
            check_in_method=check_in_method,
            tag_id=tag_id,
            idempotency_key=idempotency_key,
            reader_id=reader_id,
            location=location,
        )
        return self.records[rid]

    def close_open(self, *, attendance_id, time_out, duration_minutes, status, checkout_key=None):
        r = self.records.get(attendance_id)
        if not r or r.time_out is not None:
            return False
        self.records[attendance_id] = replace(
            r, time_out=time_out, duration_minutes=duration_minutes, status=status, checkout_key=checkout_key
        )
        return True

    def move_time_in(self, *, attendance_id, time_in, duration_minutes, status):
        r = self.records.get(attendance_id)
        if not r or r.time_in <= time_in:
            return False
        self.records[attendance_id] = replace(r, time_in=time_in, duration_minutes=duration_minutes, status=status)
        return True

    def mark_open_as_leave(self, *, before):
        ids = []
        for rid, r in self.records.items():
            if r.time_out is None and r.work_date < before and r.status != AttendanceStatus.LEAVE:
                self.records[rid] = replace(r, status=AttendanceStatus.LEAVE)
                ids.append(rid)
        return ids


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 2, 8, 0, 0)


@pytest.fixture
def employees_repo():
    return FakeEmployeesRepo([Employee(employee_id=1, name="Ana"), Employee(employee_id=2, name="Binh")])


@pytest.fixture
def tags_repo(fixed_now):
    return FakeTagsRepo(
        [
            TagBinding(tag_id="NFC-1", employee_id=1, status=TagStatus.ACTIVE, enrolled_at=fixed_now),
            TagBinding(tag_id="04A332BC", employee_id=2, status=TagStatus.ACTIVE, enrolled_at=fixed_now),
            TagBinding(tag_id="NFC-LOST", employee_id=1, status=TagStatus.LOST, enrolled_at=fixed_now),
            TagBinding(tag_id="NFC-SPARE", employee_id=None, status=TagStatus.ACTIVE, enrolled_at=fixed_now),
        ]
    )


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def make_container(employees_repo, tags_repo, attendance_repo):
    def _make(**kwargs):
        return build_services(
            employees_repo=employees_repo,
            tags_repo=tags_repo,
            attendance_repo=attendance_repo,
            **kwargs,
        )

    return _make


@pytest.fixture
def container(make_container):
    return make_container()
