from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import TagStatus


@dataclass(frozen=True)
class TagBinding:
    """Domain entity: a physical NFC tag and the employee it is bound to."""

    tag_id: str
    employee_id: Optional[int]
    status: TagStatus
    enrolled_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    reader_id: Optional[str] = None


@dataclass(frozen=True)
class TagResolution:
    """Successful directory lookup."""

    tag_id: str
    employee_id: int
    status: TagStatus
