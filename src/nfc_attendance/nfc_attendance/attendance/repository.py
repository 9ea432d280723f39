from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Durable keyed storage for attendance records.

    Implementations must reject a second record for the same
    ``(employee_id, work_date)`` or a reused key with ``DuplicateRecordError``.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_by_key(self, key: str) -> Optional[AttendanceRecord]:
        """Record whose open or close tap carried ``key``."""

        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

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
        raise NotImplementedError

    def close_open(
        self,
        *,
        attendance_id: int,
        time_out: datetime,
        duration_minutes: int,
        status: AttendanceStatus,
        checkout_key: Optional[str] = None,
    ) -> bool:
        """Set time-out only while the record is still open. False if it was not."""

        raise NotImplementedError

    def move_time_in(
        self,
        *,
        attendance_id: int,
        time_in: datetime,
        duration_minutes: Optional[int],
        status: AttendanceStatus,
    ) -> bool:
        """Move time-in earlier. False if the stored time-in is already at or before ``time_in``."""

        raise NotImplementedError

    def mark_open_as_leave(self, *, before: date) -> Sequence[int]:
        raise NotImplementedError
