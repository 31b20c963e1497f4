from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.cohort_attendance.cohort_attendance.common.logging_config import configure_logging
from src.cohort_attendance.cohort_attendance.database.bootstrap import apply_schema, list_tables
from src.cohort_attendance.cohort_attendance.database.connection import DBConfig, DatabaseConnection


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    config = DBConfig.from_dict(
        dict(settings.DB_CONFIG),
        connect_timeout=getattr(settings, "DB_CONNECT_TIMEOUT", 10),
        query_timeout=getattr(settings, "DB_QUERY_TIMEOUT", 5),
    )
    conn = DatabaseConnection(config)

    apply_schema(conn, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = list_tables(conn)
    print(f"OK: Applied schema.sql -> {config.user}@{config.host}:{config.port}/{config.database} (tables={len(tables)})")


if __name__ == "__main__":
    main()
