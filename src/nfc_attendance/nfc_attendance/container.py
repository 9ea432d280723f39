from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from zoneinfo import ZoneInfo

from .attendance.engine import ReconciliationEngine
from .attendance.factory import AttendanceStrategyFactory
from .attendance.model import WorkdayPolicy
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_TIMEZONE
from .core.enums import DispatchMode
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .events.normalizer import EventNormalizer
from .mirror.adapter import MirrorSyncAdapter
from .mirror.source import MirrorSource, RestMirrorSource
from .tags.mysql_tag_repository import MySQLTagRepository
from .tags.service import TagDirectory


@dataclass(frozen=True)
class Container:
    conn: Any

    employees_repo: Any
    tags_repo: Any
    attendance_repo: Any

    tag_directory: TagDirectory
    normalizer: EventNormalizer
    engine: ReconciliationEngine
    attendance_service: AttendanceService
    mirror_adapter: MirrorSyncAdapter
    mirror_source: Optional[MirrorSource] = None


def build_services(
    *,
    employees_repo,
    tags_repo,
    attendance_repo,
    conn=None,
    dispatch_mode: DispatchMode | str = DispatchMode.EXPLICIT,
    timezone: str = DEFAULT_TIMEZONE,
    policy: Optional[WorkdayPolicy] = None,
    mirror_source: Optional[MirrorSource] = None,
) -> Container:
    """Wire the domain services on top of any repository implementations."""
    local_tz = ZoneInfo(timezone)

    tag_directory = TagDirectory(tags_repo, employees_repo)
    normalizer = EventNormalizer(local_tz=local_tz)
    engine = ReconciliationEngine(
        attendance_repo,
        tag_directory,
        employees_repo,
        dispatch_mode=DispatchMode(dispatch_mode),
        policy=policy,
        strategy_factory=AttendanceStrategyFactory(),
    )
    attendance_service = AttendanceService(engine, normalizer, attendance_repo, local_tz=local_tz)
    mirror_adapter = MirrorSyncAdapter(normalizer, engine)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        tags_repo=tags_repo,
        attendance_repo=attendance_repo,
        tag_directory=tag_directory,
        normalizer=normalizer,
        engine=engine,
        attendance_service=attendance_service,
        mirror_adapter=mirror_adapter,
        mirror_source=mirror_source,
    )


def build_container(
    *,
    db_config: dict,
    dispatch_mode: DispatchMode | str = DispatchMode.EXPLICIT,
    timezone: str = DEFAULT_TIMEZONE,
    policy: Optional[WorkdayPolicy] = None,
    mirror_url: Optional[str] = None,
    mirror_path: str = "attendance",
    mirror_auth: Optional[str] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_settings(db_config))

    mirror_source = RestMirrorSource(mirror_url, path=mirror_path, auth=mirror_auth) if mirror_url else None

    return build_services(
        conn=conn,
        employees_repo=MySQLEmployeeRepository(conn),
        tags_repo=MySQLTagRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        dispatch_mode=dispatch_mode,
        timezone=timezone,
        policy=policy,
        mirror_source=mirror_source,
    )
