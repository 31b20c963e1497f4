from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging_config import configure_logging
from .common.responses import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_CODE_VALIDITY_MINUTES
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .database.connection import DBConfig, DatabaseConnection
from .leaves.controller import register as register_leaves

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _prepare_database(settings, db_config: dict) -> None:
    conn = DatabaseConnection(
        DBConfig.from_dict(
            db_config,
            connect_timeout=int(getattr(settings, "DB_CONNECT_TIMEOUT", 10)),
            query_timeout=int(getattr(settings, "DB_QUERY_TIMEOUT", 5)),
        )
    )
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(conn, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(conn)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(conn, seed_path=DATABASE_DIR / "seed.sql")
        logger.info("Demo seed ready")


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    A pre-built ``container`` skips every database step (tests use in-memory repositories).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.sort_keys = False

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        _prepare_database(settings, db_config)
        container = build_container(
            db_config=db_config,
            connect_timeout=int(getattr(settings, "DB_CONNECT_TIMEOUT", 10)),
            query_timeout=int(getattr(settings, "DB_QUERY_TIMEOUT", 5)),
            validity_minutes=int(getattr(settings, "CODE_VALIDITY_MINUTES", DEFAULT_CODE_VALIDITY_MINUTES)),
        )

    register_error_handlers(app)
    register_attendance(app, container)
    register_leaves(app, container)

    return app
