from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.enums import AttendanceStatus
from .model import WorkdayPolicy
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, time_in: datetime, work_date: date, policy: Optional[WorkdayPolicy]) -> AttendanceStrategy:
        if not policy or policy.nominal_start is None:
            return PresentStrategy()

        start = datetime.combine(work_date, policy.nominal_start)
        if time_in <= start + timedelta(minutes=policy.grace_minutes):
            return PresentStrategy()
        if policy.half_day_after_minutes is not None and time_in > start + timedelta(minutes=policy.half_day_after_minutes):
            return HalfDayStrategy()
        return LateStrategy()

    def for_checkout(self, *, worked_minutes: int, policy: Optional[WorkdayPolicy], current: AttendanceStatus) -> AttendanceStrategy:
        if not policy or policy.min_full_day_minutes is None:
            return PresentStrategy()

        if worked_minutes < policy.min_full_day_minutes and current in (AttendanceStatus.PRESENT, AttendanceStatus.LATE):
            return HalfDayStrategy()
        return PresentStrategy()
