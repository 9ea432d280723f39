from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ..model import WorkdayPolicy
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, time_in: datetime, work_date: date, policy: Optional[WorkdayPolicy]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE)

    def decide_checkout(self, *, worked_minutes: int, policy: Optional[WorkdayPolicy], current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
