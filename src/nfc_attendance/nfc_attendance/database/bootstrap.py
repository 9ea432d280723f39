from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

# schema.sql names its own database; the configured one wins.
_DATABASE_DIRECTIVES = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")
_COMMENT_LINE = re.compile(r"(?m)^\s*--.*$")


def load_schema_statements(schema_path: str | Path) -> List[str]:
    """Statements of ``schema.sql`` without comments or database directives.

    The schema holds only DDL, so splitting on ``;`` is enough.
    """
    sql = Path(schema_path).read_text(encoding="utf-8")
    sql = _COMMENT_LINE.sub("", _DATABASE_DIRECTIVES.sub("", sql))
    return [stmt.strip() for stmt in sql.split(";") if stmt.strip()]


def apply_schema(config: DBConfig, *, schema_path: str | Path) -> None:
    """Create the database if needed and run every (idempotent) schema statement."""
    statements = load_schema_statements(schema_path)

    conn = mysql.connector.connect(**config.connect_kwargs(with_database=False))
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        cur.execute(f"USE `{config.database}`")
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied %d schema statements to %s", len(statements), config.database)


def list_tables(config: DBConfig) -> List[str]:
    conn = mysql.connector.connect(**config.connect_kwargs())
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
