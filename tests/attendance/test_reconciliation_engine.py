from __future__ import annotations

from datetime import date, datetime, time

import pytest

from src.nfc_attendance.nfc_attendance.attendance.model import WorkdayPolicy
from src.nfc_attendance.nfc_attendance.core.enums import Action, AttendanceStatus, CheckInMethod, EventKind
from src.nfc_attendance.nfc_attendance.core.exceptions import (
    DayAlreadyClosed,
    DuplicateRecordError,
    EmployeeNotFound,
    EventTypeRequired,
    InvalidTimestamp,
    NoActiveCheckIn,
    TagInactive,
    TagNotFound,
    TagUnassigned,
    ValidationError,
)


def _tap(service, occurred_at, kind=None, tag_id="NFC-1", **extra):
    return service.submit_tap({"tagId": tag_id, "occurredAt": occurred_at, **extra}, kind=kind)


def test_checkin_then_checkout_records_whole_minutes(container, attendance_repo):
    service = container.attendance_service

    opened = _tap(service, "2026-03-02T08:02:00", EventKind.OPEN, readerId="R1", location="Lobby")
    closed = _tap(service, "2026-03-02T17:31:45", EventKind.CLOSE)

    assert opened.action == Action.CHECKIN and not opened.already_processed
    assert closed.action == Action.CHECKOUT and not closed.already_processed

    record = closed.record
    assert record.time_in == datetime(2026, 3, 2, 8, 2, 0)
    assert record.time_out == datetime(2026, 3, 2, 17, 31, 45)
    assert record.duration_minutes == 569
    assert record.status == AttendanceStatus.PRESENT
    assert record.check_in_method == CheckInMethod.NFC
    assert record.idempotency_key == "NFC-1_2026-03-02_08:02:00"
    assert record.reader_id == "R1"
    assert len(attendance_repo.records) == 1


def test_replayed_checkin_is_already_processed(container, attendance_repo):
    service = container.attendance_service

    first = _tap(service, "2026-03-02T08:02:00", EventKind.OPEN)
    second = _tap(service, "2026-03-02T08:02:00", EventKind.OPEN)

    assert not first.already_processed
    assert second.already_processed
    assert second.record.attendance_id == first.record.attendance_id
    assert attendance_repo.create_calls == 1


def test_replayed_checkout_is_already_processed(container, attendance_repo):
    service = container.attendance_service
    _tap(service, "2026-03-02T08:00:00", EventKind.OPEN)
    _tap(service, "2026-03-02T17:00:00", EventKind.CLOSE)

    replay = _tap(service, "2026-03-02T17:00:00", EventKind.CLOSE)
    later = _tap(service, "2026-03-02T17:45:00", EventKind.CLOSE)

    assert replay.already_processed and replay.action == Action.CHECKOUT
    assert later.already_processed
    record = attendance_repo.get_by_id(replay.record.attendance_id)
    assert record.time_out == datetime(2026, 3, 2, 17, 0, 0)
    assert record.duration_minutes == 540


@pytest.mark.parametrize(
    "tag_id, error",
    [("NFC-UNKNOWN", TagNotFound), ("NFC-LOST", TagInactive), ("NFC-SPARE", TagUnassigned)],
)
def test_unresolvable_tag_writes_nothing(container, attendance_repo, tag_id, error):
    with pytest.raises(error):
        _tap(container.attendance_service, "2026-03-02T08:00:00", EventKind.OPEN, tag_id=tag_id)
    assert attendance_repo.records == {}


def test_tag_id_is_cleaned_before_lookup(container):
    result = _tap(container.attendance_service, "2026-03-02T08:00:00", EventKind.OPEN, tag_id="04:a3:32:bc")

    assert result.record.employee_id == 2
    assert result.record.tag_id == "04A332BC"


def test_manual_tap_by_employee_id(container):
    result = container.attendance_service.submit_tap(
        {"employeeId": 2, "occurredAt": "2026-03-02T08:00:00"}, kind=EventKind.OPEN
    )

    assert result.record.check_in_method == CheckInMethod.MANUAL
    assert result.record.idempotency_key == "employee-2_2026-03-02_08:00:00"


def test_unknown_employee_is_rejected(container):
    with pytest.raises(EmployeeNotFound):
        container.attendance_service.submit_tap({"employeeId": 99, "occurredAt": "2026-03-02T08:00:00"}, kind=EventKind.OPEN)


def test_checkout_without_checkin_is_rejected(container):
    with pytest.raises(NoActiveCheckIn):
        _tap(container.attendance_service, "2026-03-02T17:00:00", EventKind.CLOSE)


def test_checkout_at_or_before_time_in_is_rejected(container):
    service = container.attendance_service
    _tap(service, "2026-03-02T08:00:00", EventKind.OPEN)

    with pytest.raises(InvalidTimestamp):
        _tap(service, "2026-03-02T07:59:00", EventKind.CLOSE)


def test_open_record_from_previous_day_is_not_closed(container):
    service = container.attendance_service
    _tap(service, "2026-03-01T08:00:00", EventKind.OPEN)

    with pytest.raises(NoActiveCheckIn):
        _tap(service, "2026-03-02T17:00:00", EventKind.CLOSE)


def test_out_of_order_delivery_converges(container, attendance_repo):
    service = container.attendance_service

    with pytest.raises(NoActiveCheckIn):
        _tap(service, "2026-03-02T17:31:45", EventKind.CLOSE)
    _tap(service, "2026-03-02T08:02:00", EventKind.OPEN)
    closed = _tap(service, "2026-03-02T17:31:45", EventKind.CLOSE)

    assert closed.record.duration_minutes == 569
    assert len(attendance_repo.records) == 1


def test_earliest_checkin_wins(container, attendance_repo):
    service = container.attendance_service
    _tap(service, "2026-03-02T08:10:00", EventKind.OPEN)

    moved = _tap(service, "2026-03-02T08:02:00", EventKind.OPEN)
    later = _tap(service, "2026-03-02T08:05:00", EventKind.OPEN)

    assert not moved.already_processed
    assert moved.record.time_in == datetime(2026, 3, 2, 8, 2, 0)
    assert later.already_processed
    assert attendance_repo.get_by_id(moved.record.attendance_id).time_in == datetime(2026, 3, 2, 8, 2, 0)


def test_earlier_checkin_after_close_recomputes_duration(container, attendance_repo):
    service = container.attendance_service
    _tap(service, "2026-03-02T09:00:00", EventKind.OPEN)
    _tap(service, "2026-03-02T17:00:00", EventKind.CLOSE)

    moved = _tap(service, "2026-03-02T08:00:00", EventKind.OPEN)

    assert moved.record.duration_minutes == 540


def test_checkin_after_day_closed_is_rejected(container):
    service = container.attendance_service
    _tap(service, "2026-03-02T08:00:00", EventKind.OPEN)
    _tap(service, "2026-03-02T17:00:00", EventKind.CLOSE)

    with pytest.raises(DayAlreadyClosed):
        _tap(service, "2026-03-02T18:00:00", EventKind.OPEN)


def test_explicit_mode_requires_type(container, attendance_repo):
    with pytest.raises(EventTypeRequired) as exc:
        _tap(container.attendance_service, "2026-03-02T08:00:00")

    assert isinstance(exc.value, ValidationError)
    assert exc.value.code == "EVENT_TYPE_REQUIRED"
    assert attendance_repo.records == {}


def test_type_field_selects_transition_in_explicit_mode(container):
    service = container.attendance_service
    _tap(service, "2026-03-02T08:00:00", type="checkin")

    closed = _tap(service, "2026-03-02T12:00:00", type="checkout")

    assert closed.action == Action.CHECKOUT
    assert closed.record.duration_minutes == 240


def test_toggle_mode_alternates_open_and_close(make_container, attendance_repo):
    service = make_container(dispatch_mode="toggle").attendance_service

    first = _tap(service, "2026-03-02T08:00:00")
    second = _tap(service, "2026-03-02T16:30:00")
    replay = _tap(service, "2026-03-02T16:30:00")

    assert first.action == Action.CHECKIN
    assert second.action == Action.CHECKOUT
    assert second.record.duration_minutes == 510
    assert replay.already_processed and replay.action == Action.CHECKOUT
    assert len(attendance_repo.records) == 1


def test_toggle_close_without_open_record_becomes_open(make_container, attendance_repo):
    service = make_container(dispatch_mode="toggle").attendance_service

    # Nothing recorded yet today, so the bare tap cannot close anything.
    first = _tap(service, "2026-03-02T17:00:00")

    assert first.action == Action.CHECKIN and not first.already_processed
    assert first.record.time_in == datetime(2026, 3, 2, 17, 0, 0)
    assert first.record.is_open
    assert len(attendance_repo.records) == 1


def test_toggle_earlier_tap_after_later_open_pairs_them(make_container, attendance_repo):
    service = make_container(dispatch_mode="toggle").attendance_service

    late = _tap(service, "2026-03-02T17:00:00")
    early = _tap(service, "2026-03-02T08:00:00")

    assert late.action == Action.CHECKIN
    assert early.action == Action.CHECKIN and not early.already_processed
    record = early.record
    assert record.time_in == datetime(2026, 3, 2, 8, 0, 0)
    assert record.time_out == datetime(2026, 3, 2, 17, 0, 0)
    assert record.duration_minutes == 540
    assert record.checkout_key == "NFC-1_2026-03-02_17:00:00"
    assert len(attendance_repo.records) == 1

    replay_late = _tap(service, "2026-03-02T17:00:00")
    replay_early = _tap(service, "2026-03-02T08:00:00")
    assert replay_late.already_processed and replay_late.action == Action.CHECKOUT
    assert replay_early.already_processed
    assert replay_early.record.duration_minutes == 540


def test_concurrent_duplicate_write_resolves_to_already_processed(container, attendance_repo, monkeypatch):
    create_open = attendance_repo.create_open

    def racing_create_open(**kwargs):
        # Another delivery of the same tap commits first.
        create_open(**kwargs)
        raise DuplicateRecordError("uq_attendance_employee_day")

    monkeypatch.setattr(attendance_repo, "create_open", racing_create_open)

    result = _tap(container.attendance_service, "2026-03-02T08:00:00", EventKind.OPEN)

    assert result.already_processed
    assert len(attendance_repo.records) == 1


def test_aware_timestamp_is_keyed_by_local_clock(make_container):
    service = make_container(timezone="Asia/Ho_Chi_Minh").attendance_service

    result = _tap(service, "2026-03-02T01:02:00Z", EventKind.OPEN)

    assert result.record.time_in == datetime(2026, 3, 2, 8, 2, 0)
    assert result.record.idempotency_key == "NFC-1_2026-03-02_08:02:00"


def test_workday_policy_sets_status(make_container):
    policy = WorkdayPolicy(nominal_start=time(8, 0), grace_minutes=5, half_day_after_minutes=240, min_full_day_minutes=480)
    service = make_container(policy=policy).attendance_service

    late = _tap(service, "2026-03-02T08:06:00", EventKind.OPEN)
    half = _tap(service, "2026-03-02T12:30:00", EventKind.OPEN, tag_id="04A332BC")
    short = _tap(service, "2026-03-02T13:00:00", EventKind.CLOSE)

    assert late.record.status == AttendanceStatus.LATE
    assert half.record.status == AttendanceStatus.HALF_DAY
    assert short.record.status == AttendanceStatus.HALF_DAY


def test_mark_missing_timeouts_as_leave_then_late_checkout(container, attendance_repo):
    service = container.attendance_service
    opened = _tap(service, "2026-03-01T08:00:00", EventKind.OPEN)
    _tap(service, "2026-03-02T08:00:00", EventKind.OPEN)

    cutoff, ids = service.mark_missing_timeouts_as_leave("2026-03-02")

    assert cutoff == date(2026, 3, 2)
    assert ids == [opened.record.attendance_id]
    assert attendance_repo.get_by_id(opened.record.attendance_id).status == AttendanceStatus.LEAVE

    closed = _tap(service, "2026-03-01T17:00:00", EventKind.CLOSE)
    assert closed.record.status == AttendanceStatus.PRESENT


def test_history_is_newest_first_and_limited(container):
    service = container.attendance_service
    for day in (1, 2, 3):
        _tap(service, f"2026-03-0{day}T08:00:00", EventKind.OPEN)

    records = service.get_history(1, limit=2)

    assert [r.work_date for r in records] == [date(2026, 3, 3), date(2026, 3, 2)]
    with pytest.raises(ValidationError):
        service.get_history(1, limit=0)


def test_today_record(container):
    service = container.attendance_service
    _tap(service, "2026-03-02T08:00:00", EventKind.OPEN)

    assert service.get_today_record(1, today=date(2026, 3, 2)).time_in == datetime(2026, 3, 2, 8, 0, 0)
    assert service.get_today_record(1, today=date(2026, 3, 3)) is None
