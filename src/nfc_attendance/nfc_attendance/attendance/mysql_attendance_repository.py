from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date, time_in, time_out, duration_minutes, status,
    check_in_method, tag_id, idempotency_key, checkout_key, reader_id, location
"""


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    duration = r.get("duration_minutes")
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        time_in=r["time_in"],
        time_out=r.get("time_out"),
        duration_minutes=int(duration) if duration is not None else None,
        status=AttendanceStatus(r["status"]),
        check_in_method=CheckInMethod(r["check_in_method"]),
        tag_id=r.get("tag_id"),
        idempotency_key=r.get("idempotency_key"),
        checkout_key=r.get("checkout_key"),
        reader_id=r.get("reader_id"),
        location=r.get("location"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """Attendance store backed by ``attendance_records``.

    UNIQUE(employee_id, work_date), UNIQUE(idempotency_key) and
    UNIQUE(checkout_key) make concurrent deliveries of the same tap collide
    in the database instead of producing a second record.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_by_key(self, key: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE idempotency_key=%s OR checkout_key=%s
                LIMIT 1
                """,
                (key, key),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND work_date=%s
                """,
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (int(employee_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create_open(
        self,
        *,
        employee_id: int,
        work_date: date,
        time_in: datetime,
        status: AttendanceStatus,
        check_in_method: CheckInMethod,
        tag_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
        reader_id: Optional[str] = None,
        location: Optional[str] = None,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    employee_id, work_date, time_in, status, check_in_method,
                    tag_id, idempotency_key, reader_id, location
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    work_date,
                    time_in,
                    status.value,
                    check_in_method.value,
                    tag_id,
                    idempotency_key,
                    reader_id,
                    location,
                ),
            )
            return AttendanceRecord(
                attendance_id=int(cur.lastrowid),
                employee_id=int(employee_id),
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

    def close_open(
        self,
        *,
        attendance_id: int,
        time_out: datetime,
        duration_minutes: int,
        status: AttendanceStatus,
        checkout_key: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET time_out=%s, duration_minutes=%s, status=%s, checkout_key=%s
                WHERE attendance_id=%s AND time_out IS NULL
                """,
                (time_out, int(duration_minutes), status.value, checkout_key, int(attendance_id)),
            )
            return cur.rowcount > 0

    def move_time_in(
        self,
        *,
        attendance_id: int,
        time_in: datetime,
        duration_minutes: Optional[int],
        status: AttendanceStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET time_in=%s, duration_minutes=%s, status=%s
                WHERE attendance_id=%s AND time_in > %s
                """,
                (time_in, duration_minutes, status.value, int(attendance_id), time_in),
            )
            return cur.rowcount > 0

    def mark_open_as_leave(self, *, before: date) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id
                FROM attendance_records
                WHERE time_out IS NULL AND work_date < %s AND status <> %s
                FOR UPDATE
                """,
                (before, AttendanceStatus.LEAVE.value),
            )
            ids = [int(r["attendance_id"]) for r in fetchall(cur)]
            if ids:
                placeholders = ",".join(["%s"] * len(ids))
                cur.execute(
                    f"UPDATE attendance_records SET status=%s WHERE attendance_id IN ({placeholders})",
                    (AttendanceStatus.LEAVE.value, *ids),
                )
            return ids
