from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee whose taps are tracked."""

    employee_id: int
    name: str
    email: Optional[str] = None
    department: Optional[str] = None
    status: str = "active"
