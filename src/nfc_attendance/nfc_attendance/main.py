from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module, load_settings

from .attendance.controller import register as register_attendance
from .attendance.model import WorkdayPolicy
from .common.datetime_utils import parse_clock
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .mirror.controller import register as register_mirror
from .tags.controller import register as register_tags

logger = logging.getLogger(__name__)


def _policy_from(settings) -> WorkdayPolicy:
    nominal_start = getattr(settings, "NOMINAL_START", None)
    return WorkdayPolicy(
        nominal_start=parse_clock(nominal_start) if nominal_start else None,
        grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", 5)),
        half_day_after_minutes=getattr(settings, "HALF_DAY_AFTER_MINUTES", None),
        min_full_day_minutes=getattr(settings, "MIN_FULL_DAY_MINUTES", None),
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app. Pass ``container`` to skip MySQL wiring (tests)."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings = load_settings()
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MIRROR_SECRET"] = getattr(settings, "MIRROR_SECRET", None)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            get_settings_module(),
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            target = DBConfig.from_settings(db_config)
            apply_schema(target, schema_path=schema_path)
            logger.info("Schema ready (tables=%d)", len(list_tables(target)))

        container = build_container(
            db_config=db_config,
            dispatch_mode=getattr(settings, "DISPATCH_MODE", "explicit"),
            timezone=getattr(settings, "TIMEZONE", "UTC"),
            policy=_policy_from(settings),
            mirror_url=getattr(settings, "MIRROR_URL", None),
            mirror_path=getattr(settings, "MIRROR_PATH", "attendance"),
            mirror_auth=getattr(settings, "MIRROR_AUTH", None),
        )

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok", "dispatchMode": container.engine.dispatch_mode.value}), 200

    register_attendance(app, container)
    register_tags(app, container)
    register_mirror(app, container)

    return app
