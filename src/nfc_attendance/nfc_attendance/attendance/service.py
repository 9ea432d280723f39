from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, tzinfo
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import require_positive_int
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import EventKind, EventSource
from ..core.exceptions import ValidationError
from ..events.model import ReaderTap
from ..events.normalizer import EventNormalizer, parse_raw
from .engine import ReconciliationEngine
from .model import AttendanceRecord, ReconcileResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use cases behind the attendance routes: tap ingestion and record queries."""

    def __init__(
        self,
        engine: ReconciliationEngine,
        normalizer: EventNormalizer,
        attendance: AttendanceRepository,
        *,
        local_tz: Optional[tzinfo] = None,
    ):
        self._engine = engine
        self._normalizer = normalizer
        self._attendance = attendance
        self._local_tz = local_tz

    def submit_tap(
        self,
        body: Mapping[str, Any],
        *,
        kind: Optional[EventKind] = None,
        source: EventSource = EventSource.READER,
    ) -> ReconcileResult:
        """Reconcile one reader/mobile tap. A missing ``occurredAt`` means now."""
        raw = parse_raw(body, source=source, kind=kind)
        if not isinstance(raw, ReaderTap):
            raise ValidationError("Expected a single tap; mirror payloads go to /api/mirror/sync")
        if not raw.occurred_at:
            raw = replace(raw, occurred_at=now_local(self._local_tz))
        return self._engine.submit(self._normalizer.normalize_tap(raw))

    def get_today_record(self, employee_id: int, today: Optional[date] = None) -> Optional[AttendanceRecord]:
        today = today or now_local(self._local_tz).date()
        return self._attendance.get_for_employee_and_date(int(employee_id), today)

    def get_history(self, employee_id: int, *, limit: Any = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        limit = min(require_positive_int(limit, "limit"), 366)
        return self._attendance.get_recent_for_employee(int(employee_id), limit)

    def mark_missing_timeouts_as_leave(self, cutoff_date: Optional[str] = None) -> Tuple[date, List[int]]:
        """Administrative correction: open records dated before the cutoff become ``leave``."""
        cutoff = parse_iso_date(cutoff_date) if cutoff_date else now_local(self._local_tz).date()
        ids = list(self._attendance.mark_open_as_leave(before=cutoff))
        logger.info("Marked %s open records before %s as leave", len(ids), cutoff)
        return cutoff, ids
