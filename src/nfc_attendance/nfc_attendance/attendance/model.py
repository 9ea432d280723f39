from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import format_date
from ..core.enums import Action, AttendanceStatus, CheckInMethod


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the canonical attendance record of one employee for one day."""

    attendance_id: int
    employee_id: int
    work_date: date
    time_in: datetime
    time_out: Optional[datetime]
    duration_minutes: Optional[int]
    status: AttendanceStatus
    check_in_method: CheckInMethod
    tag_id: Optional[str] = None
    idempotency_key: Optional[str] = None
    checkout_key: Optional[str] = None
    reader_id: Optional[str] = None
    location: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.time_out is None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "employeeId": self.employee_id,
            "date": format_date(self.work_date),
            "timeIn": self.time_in.isoformat(),
            "timeOut": self.time_out.isoformat() if self.time_out else None,
            "durationMinutes": self.duration_minutes,
            "status": self.status.value,
            "checkInMethod": self.check_in_method.value,
            "tagId": self.tag_id,
            "idempotencyKey": self.idempotency_key,
            "readerId": self.reader_id,
            "location": self.location,
        }


@dataclass(frozen=True)
class ReconcileResult:
    """What the engine did with one event."""

    action: Action
    record: AttendanceRecord
    already_processed: bool = False
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "alreadyProcessed": self.already_processed,
            "message": self.message,
            "record": self.record.to_dict(),
        }


@dataclass(frozen=True)
class WorkdayPolicy:
    """Status policy applied on check-in/check-out.

    With no ``nominal_start`` every check-in is ``present``.
    """

    nominal_start: Optional[time] = None
    grace_minutes: int = 5
    half_day_after_minutes: Optional[int] = None
    min_full_day_minutes: Optional[int] = None
