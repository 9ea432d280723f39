from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import TagStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import TagBinding
from .repository import TagRepository


class MySQLTagRepository(TagRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_tag_id(self, tag_id: str) -> Optional[TagBinding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT tag_id, employee_id, status, enrolled_at, last_used_at, reader_id
                FROM nfc_tags
                WHERE tag_id=%s
                """,
                (tag_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return TagBinding(
                tag_id=r["tag_id"],
                employee_id=int(r["employee_id"]) if r.get("employee_id") is not None else None,
                status=TagStatus(r["status"]),
                enrolled_at=r.get("enrolled_at"),
                last_used_at=r.get("last_used_at"),
                reader_id=r.get("reader_id"),
            )

    def upsert(self, *, tag_id: str, employee_id: Optional[int], status: TagStatus, enrolled_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO nfc_tags(tag_id, employee_id, status, enrolled_at)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE employee_id=VALUES(employee_id), status=VALUES(status)
                """,
                (tag_id, employee_id, status.value, enrolled_at),
            )

    def set_status(self, *, tag_id: str, status: TagStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE nfc_tags SET status=%s WHERE tag_id=%s",
                (status.value, tag_id),
            )
            return cur.rowcount > 0

    def touch(self, *, tag_id: str, used_at: datetime, reader_id: Optional[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE nfc_tags
                SET last_used_at=%s, reader_id=COALESCE(%s, reader_id)
                WHERE tag_id=%s
                """,
                (used_at, reader_id, tag_id),
            )
