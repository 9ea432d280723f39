from datetime import date, datetime, time

from src.nfc_attendance.nfc_attendance.attendance.factory import AttendanceStrategyFactory
from src.nfc_attendance.nfc_attendance.attendance.model import WorkdayPolicy
from src.nfc_attendance.nfc_attendance.attendance.strategies.half_day_strategy import HalfDayStrategy
from src.nfc_attendance.nfc_attendance.attendance.strategies.late_strategy import LateStrategy
from src.nfc_attendance.nfc_attendance.attendance.strategies.normal_strategy import PresentStrategy
from src.nfc_attendance.nfc_attendance.core.enums import AttendanceStatus

POLICY = WorkdayPolicy(nominal_start=time(8, 0), grace_minutes=5, half_day_after_minutes=240, min_full_day_minutes=480)
TODAY = date(2025, 1, 1)


def test_factory_checkin_without_nominal_start_is_present():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(time_in=datetime(2025, 1, 1, 11, 0, 0), work_date=TODAY, policy=WorkdayPolicy())

    assert isinstance(strategy, PresentStrategy)


def test_factory_checkin_on_time_within_grace():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(time_in=datetime(2025, 1, 1, 8, 4, 59), work_date=TODAY, policy=POLICY)

    assert isinstance(strategy, PresentStrategy)


def test_factory_checkin_late_after_grace():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(time_in=datetime(2025, 1, 1, 8, 6, 0), work_date=TODAY, policy=POLICY)

    assert isinstance(strategy, LateStrategy)
    decision = strategy.decide_checkin(time_in=datetime(2025, 1, 1, 8, 6, 0), work_date=TODAY, policy=POLICY)
    assert decision.status == AttendanceStatus.LATE


def test_factory_checkin_half_day_after_threshold():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(time_in=datetime(2025, 1, 1, 12, 30, 0), work_date=TODAY, policy=POLICY)

    assert isinstance(strategy, HalfDayStrategy)


def test_factory_checkout_short_day_becomes_half_day():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkout(worked_minutes=300, policy=POLICY, current=AttendanceStatus.LATE)

    assert isinstance(strategy, HalfDayStrategy)


def test_factory_checkout_full_day_keeps_status():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkout(worked_minutes=540, policy=POLICY, current=AttendanceStatus.LATE)

    decision = strategy.decide_checkout(worked_minutes=540, policy=POLICY, current=AttendanceStatus.LATE)
    assert isinstance(strategy, PresentStrategy)
    assert decision.status == AttendanceStatus.LATE
