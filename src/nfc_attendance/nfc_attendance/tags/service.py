from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import clean_tag_id, require_positive_int
from ..core.enums import TagStatus
from ..core.exceptions import EmployeeNotFound, TagInactive, TagNotFound, TagUnassigned, ValidationError
from ..employees.repository import EmployeeRepository
from .model import TagBinding, TagResolution
from .repository import TagRepository

logger = logging.getLogger(__name__)


class TagDirectory:
    """Maps a physical tag to the employee it is bound to.

    Resolution never falls back to a guess: an unknown, inactive or unassigned
    tag raises, so no attendance record can be created for it.
    """

    def __init__(self, tags: TagRepository, employees: Optional[EmployeeRepository] = None):
        self._tags = tags
        self._employees = employees

    def resolve(self, tag_id: str, *, reader_id: Optional[str] = None, used_at: Optional[datetime] = None) -> TagResolution:
        tag_id = clean_tag_id(tag_id)
        binding = self._tags.get_by_tag_id(tag_id)
        if not binding:
            raise TagNotFound(f"NFC tag {tag_id} is not enrolled")
        if binding.status != TagStatus.ACTIVE:
            raise TagInactive(f"NFC tag {tag_id} is {binding.status.value}")
        if binding.employee_id is None:
            raise TagUnassigned(f"NFC tag {tag_id} is not assigned to any employee")

        self._touch(tag_id, used_at=used_at or now_local(), reader_id=reader_id)
        return TagResolution(tag_id=tag_id, employee_id=binding.employee_id, status=binding.status)

    def _touch(self, tag_id: str, *, used_at: datetime, reader_id: Optional[str]) -> None:
        # lastUsedAt is informational; a failed update must not reject the tap.
        try:
            self._tags.touch(tag_id=tag_id, used_at=used_at, reader_id=reader_id)
        except Exception:
            logger.warning("Could not update last use of tag %s", tag_id, exc_info=True)

    def get_binding(self, tag_id: str) -> TagBinding:
        tag_id = clean_tag_id(tag_id)
        binding = self._tags.get_by_tag_id(tag_id)
        if not binding:
            raise TagNotFound(f"NFC tag {tag_id} is not enrolled")
        return binding

    def enroll(self, tag_id: str, employee_id, *, now: Optional[datetime] = None) -> TagBinding:
        """Bind a tag to an employee and mark it active."""
        tag_id = clean_tag_id(tag_id)
        employee_id = require_positive_int(employee_id, "employeeId")
        if self._employees is not None and not self._employees.get_by_id(employee_id):
            raise EmployeeNotFound(f"Employee {employee_id} not found")

        self._tags.upsert(tag_id=tag_id, employee_id=employee_id, status=TagStatus.ACTIVE, enrolled_at=now or now_local())
        logger.info("Tag %s enrolled for employee %s", tag_id, employee_id)
        return self.get_binding(tag_id)

    def set_status(self, tag_id: str, status: str) -> TagBinding:
        tag_id = clean_tag_id(tag_id)
        try:
            new_status = TagStatus(str(status).strip().lower())
        except ValueError as e:
            allowed = ", ".join(s.value for s in TagStatus)
            raise ValidationError(f"status must be one of: {allowed}") from e

        self.get_binding(tag_id)
        self._tags.set_status(tag_id=tag_id, status=new_status)
        logger.info("Tag %s status set to %s", tag_id, new_status.value)
        return self.get_binding(tag_id)
