from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import TagStatus
from .model import TagBinding


class TagRepository(Protocol):
    def get_by_tag_id(self, tag_id: str) -> Optional[TagBinding]:
        raise NotImplementedError

    def upsert(self, *, tag_id: str, employee_id: Optional[int], status: TagStatus, enrolled_at: datetime) -> None:
        raise NotImplementedError

    def set_status(self, *, tag_id: str, status: TagStatus) -> bool:
        raise NotImplementedError

    def touch(self, *, tag_id: str, used_at: datetime, reader_id: Optional[str]) -> None:
        """Record last use. Keeps the previous reader when ``reader_id`` is None."""

        raise NotImplementedError
