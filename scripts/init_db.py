"""Apply database/schema.sql to the database configured for APP_ENV."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import load_settings

from src.nfc_attendance.nfc_attendance.database.bootstrap import apply_schema, list_tables
from src.nfc_attendance.nfc_attendance.database.connection import DBConfig

logger = logging.getLogger("init_db")


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    target = DBConfig.from_settings(load_settings().DB_CONFIG)

    apply_schema(target, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = list_tables(target)
    logger.info(
        "Schema ready on %s@%s:%s/%s (tables: %s)",
        target.user,
        target.host,
        target.port,
        target.database,
        ", ".join(sorted(tables)),
    )


if __name__ == "__main__":
    main()
