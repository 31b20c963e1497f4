from __future__ import annotations

from dataclasses import dataclass

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10
    # upper bound, in seconds, for any single statement (reads and row-lock waits)
    query_timeout: int = 5

    @classmethod
    def from_dict(cls, db_config: dict, *, connect_timeout: int = 10, query_timeout: int = 5) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "cohort_attendance")),
            connect_timeout=int(db_config.get("connect_timeout", connect_timeout)),
            query_timeout=int(db_config.get("query_timeout", query_timeout)),
        )


class DatabaseConnection:
    """DB connection factory handed to every repository.

    Note: We create short-lived connections per operation (safe for simple Flask apps).
    Each connection is opened with session limits so no statement outlives ``query_timeout``.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self, *, with_database: bool = True):
        kwargs = dict(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            connection_timeout=int(self._config.connect_timeout),
            use_pure=True,
        )
        if with_database:
            kwargs["database"] = self._config.database
        conn = mysql.connector.connect(**kwargs)
        if self._config.query_timeout > 0:
            try:
                self._apply_session_limits(conn)
            except Exception:
                conn.close()
                raise
        return conn

    def _apply_session_limits(self, conn) -> None:
        seconds = int(self._config.query_timeout)
        cur = conn.cursor()
        try:
            # SELECT statements are cut off server-side; writes give up waiting on row locks
            cur.execute("SET SESSION MAX_EXECUTION_TIME = %s", (seconds * 1000,))
            cur.execute("SET SESSION innodb_lock_wait_timeout = %s", (seconds,))
        finally:
            cur.close()
