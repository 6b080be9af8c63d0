from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import AppSettings, Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .schedules.controller import register as register_schedules
from .sessions.controller import register as register_sessions

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stdout handler on the root logger (only if none exists)."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)
    root_logger.setLevel(level)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(str(getattr(settings, "LOG_LEVEL", "INFO")).upper())
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        app_settings = AppSettings.from_module(settings)
        root = Path(__file__).resolve().parents[3]
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=root / "database" / "schema.sql")
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=root / "database" / "seed.sql")
            logger.info("demo seed ready")
        container = build_container(db_config=db_config, settings=app_settings)

    register_sessions(app, container)
    register_attendance(app, container)
    register_schedules(app, container)

    app.extensions["session_attendance"] = container

    if not app.config["TESTING"]:
        container.auto_lock.start()

    return app
