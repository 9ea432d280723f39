from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Tuple

from ..common.datetime_utils import duration_minutes
from ..core.enums import Action, AttendanceStatus, CheckInMethod, DispatchMode, EventKind
from ..core.exceptions import (
    DayAlreadyClosed,
    DuplicateRecordError,
    EmployeeNotFound,
    EventTypeRequired,
    InvalidTimestamp,
    NoActiveCheckIn,
    ValidationError,
)
from ..employees.repository import EmployeeRepository
from ..events.model import CanonicalEvent
from ..tags.service import TagDirectory
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, ReconcileResult, WorkdayPolicy
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Turns canonical tap events into one attendance record per employee per day.

    Per ``(employee, date)`` the record moves Absent -> Open -> Closed, and
    Closed is terminal. Every transition first checks whether its
    postcondition already holds; if so the stored record is returned with
    ``already_processed=True``, which makes replays from the offline queue and
    redeliveries from the mirror safe. Durations always come from the stored
    time-in and the event's own timestamp, never from arrival order.

    Lookups are bounded to the event's own calendar day, so an open record
    left over from a previous day is never closed by the next day's first tap.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        tags: TagDirectory,
        employees: EmployeeRepository,
        *,
        dispatch_mode: DispatchMode = DispatchMode.EXPLICIT,
        policy: Optional[WorkdayPolicy] = None,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
    ):
        self._attendance = attendance
        self._tags = tags
        self._employees = employees
        self._mode = DispatchMode(dispatch_mode)
        self._policy = policy
        self._factory = strategy_factory or AttendanceStrategyFactory()

    @property
    def dispatch_mode(self) -> DispatchMode:
        return self._mode

    def submit(self, event: CanonicalEvent) -> ReconcileResult:
        employee_id, method = self._identify(event)
        try:
            return self._apply(event, employee_id, method)
        except DuplicateRecordError:
            # A concurrent delivery of the same tap won the write; the re-read
            # below sees its record and answers already_processed.
            logger.info("Concurrent write for key %s, re-reading", event.log_key)
            return self._apply(event, employee_id, method)

    def _identify(self, event: CanonicalEvent) -> Tuple[int, CheckInMethod]:
        if event.tag_id:
            resolution = self._tags.resolve(event.tag_id, reader_id=event.reader_id, used_at=event.occurred_at)
            employee_id, method = resolution.employee_id, CheckInMethod.NFC
        elif event.employee_id is not None:
            employee_id, method = int(event.employee_id), CheckInMethod.MANUAL
        else:
            raise ValidationError("Either tagId or employeeId must be provided")

        if not self._employees.get_by_id(employee_id):
            raise EmployeeNotFound(f"Employee {employee_id} not found")
        return employee_id, method

    def _apply(self, event: CanonicalEvent, employee_id: int, method: CheckInMethod) -> ReconcileResult:
        existing = self._attendance.get_by_key(event.log_key)
        if existing is not None:
            action = Action.CHECKOUT if existing.checkout_key == event.log_key else Action.CHECKIN
            return self._already(existing, action, event)

        kind = self._dispatch(event, employee_id)
        if kind == EventKind.OPEN:
            return self._open(event, employee_id, method)
        return self._close(event, employee_id)

    def _dispatch(self, event: CanonicalEvent, employee_id: int) -> EventKind:
        if event.kind != EventKind.TAP:
            return event.kind
        if self._mode == DispatchMode.EXPLICIT:
            raise EventTypeRequired("Event type (checkin/checkout) is required in explicit dispatch mode")

        # Toggle: open record today -> close it, otherwise open. A tap older
        # than the stored time-in is the day's real first tap.
        current = self._attendance.get_for_employee_and_date(employee_id, event.work_date)
        if current is None or not current.is_open or event.occurred_at < current.time_in:
            return EventKind.OPEN
        return EventKind.CLOSE

    def _open(self, event: CanonicalEvent, employee_id: int, method: CheckInMethod) -> ReconcileResult:
        current = self._attendance.get_for_employee_and_date(employee_id, event.work_date)
        if current is None:
            status = self._checkin_status(event.occurred_at, event.work_date)
            record = self._attendance.create_open(
                employee_id=employee_id,
                work_date=event.work_date,
                time_in=event.occurred_at,
                status=status,
                check_in_method=method,
                tag_id=event.tag_id,
                idempotency_key=event.log_key,
                reader_id=event.reader_id,
                location=event.location,
            )
            logger.info(
                "Check-in employee=%s date=%s at %s (key=%s, source=%s)",
                employee_id,
                event.work_date,
                event.occurred_at.isoformat(),
                event.log_key,
                event.source.value,
            )
            return ReconcileResult(action=Action.CHECKIN, record=record, message="Time in recorded")

        if event.occurred_at >= current.time_in:
            if current.time_out is not None and event.occurred_at > current.time_out:
                raise DayAlreadyClosed(
                    f"Attendance for employee {employee_id} on {event.work_date} was closed at {current.time_out.time()}"
                )
            return self._already(current, Action.CHECKIN, event)

        return self._move_time_in(current, event)

    def _move_time_in(self, current: AttendanceRecord, event: CanonicalEvent) -> ReconcileResult:
        """An earlier open arrived late: the earliest tap of the day wins.

        In toggle mode a bare tap that lands before an open record's time-in
        pairs with it: the late-arriving tap becomes the time-in and the stored
        one becomes the time-out, keeping its own key as the checkout key.
        """
        time_in = event.occurred_at
        status = self._checkin_status(time_in, current.work_date)
        duration = None
        if current.time_out is not None:
            duration = duration_minutes(time_in, current.time_out)
            status = self._checkout_status(duration, status)

        if not self._attendance.move_time_in(
            attendance_id=current.attendance_id, time_in=time_in, duration_minutes=duration, status=status
        ):
            latest = self._attendance.get_by_id(current.attendance_id) or current
            return self._already(latest, Action.CHECKIN, event)

        updated = replace(current, time_in=time_in, duration_minutes=duration, status=status)
        logger.info(
            "Time-in of record %s moved earlier to %s (key=%s)",
            current.attendance_id,
            time_in.isoformat(),
            event.log_key,
        )
        if event.kind == EventKind.TAP and current.is_open:
            closed = self._record_time_out(updated, current.time_in, current.idempotency_key, event)
            if closed is None:
                latest = self._attendance.get_by_id(current.attendance_id) or updated
                return self._already(latest, Action.CHECKIN, event)
            return ReconcileResult(
                action=Action.CHECKIN,
                record=closed,
                message=f"Time in moved to an earlier tap. Duration: {closed.duration_minutes} minutes",
            )
        return ReconcileResult(action=Action.CHECKIN, record=updated, message="Time in moved to an earlier tap")

    def _close(self, event: CanonicalEvent, employee_id: int) -> ReconcileResult:
        record = self._attendance.get_by_key(event.anchor_key) if event.anchor_key else None
        if record is None or record.employee_id != employee_id:
            record = self._attendance.get_for_employee_and_date(employee_id, event.work_date)
        if record is None:
            raise NoActiveCheckIn(f"No active check-in for employee {employee_id} on {event.work_date}")

        if record.time_out is not None:
            return self._already(record, Action.CHECKOUT, event)
        if event.occurred_at <= record.time_in:
            raise InvalidTimestamp(
                f"Check-out at {event.occurred_at.isoformat()} is not after check-in at {record.time_in.isoformat()}"
            )

        updated = self._record_time_out(record, event.occurred_at, event.log_key, event)
        if updated is None:
            latest = self._attendance.get_by_id(record.attendance_id) or record
            return self._already(latest, Action.CHECKOUT, event)
        return ReconcileResult(
            action=Action.CHECKOUT,
            record=updated,
            message=f"Time out recorded. Duration: {updated.duration_minutes} minutes",
        )

    def _record_time_out(
        self,
        record: AttendanceRecord,
        time_out: datetime,
        checkout_key: Optional[str],
        event: CanonicalEvent,
    ) -> Optional[AttendanceRecord]:
        """Close ``record`` at ``time_out``; None when another writer closed it first."""
        duration = duration_minutes(record.time_in, time_out)
        current = record.status
        if current == AttendanceStatus.LEAVE:
            # Marked as leave for a missing time-out that has now arrived.
            current = self._checkin_status(record.time_in, record.work_date)
        status = self._checkout_status(duration, current)

        if not self._attendance.close_open(
            attendance_id=record.attendance_id,
            time_out=time_out,
            duration_minutes=duration,
            status=status,
            checkout_key=checkout_key,
        ):
            return None

        logger.info(
            "Check-out employee=%s date=%s at %s duration=%smin (key=%s, source=%s)",
            record.employee_id,
            record.work_date,
            time_out.isoformat(),
            duration,
            checkout_key,
            event.source.value,
        )
        return replace(record, time_out=time_out, duration_minutes=duration, status=status, checkout_key=checkout_key)

    def _checkin_status(self, time_in: datetime, work_date: date) -> AttendanceStatus:
        strategy = self._factory.for_checkin(time_in=time_in, work_date=work_date, policy=self._policy)
        return strategy.decide_checkin(time_in=time_in, work_date=work_date, policy=self._policy).status

    def _checkout_status(self, worked_minutes: int, current: AttendanceStatus) -> AttendanceStatus:
        strategy = self._factory.for_checkout(worked_minutes=worked_minutes, policy=self._policy, current=current)
        return strategy.decide_checkout(worked_minutes=worked_minutes, policy=self._policy, current=current).status

    def _already(self, record: AttendanceRecord, action: Action, event: CanonicalEvent) -> ReconcileResult:
        logger.debug("Already processed: key=%s record=%s action=%s", event.log_key, record.attendance_id, action.value)
        label = "Check-out" if action == Action.CHECKOUT else "Check-in"
        return ReconcileResult(
            action=action,
            record=record,
            already_processed=True,
            message=f"{label} already processed",
        )
