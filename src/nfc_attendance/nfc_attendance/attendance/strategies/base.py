from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ..model import WorkdayPolicy


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, time_in: datetime, work_date: date, policy: Optional[WorkdayPolicy]) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, worked_minutes: int, policy: Optional[WorkdayPolicy], current: AttendanceStatus) -> StatusDecision:
        raise NotImplementedError
