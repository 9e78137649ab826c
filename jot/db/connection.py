"""Cached connection - a DB-API connection that memoizes prepared statements."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Sequence

logger = logging.getLogger(__name__)


class PreparedStatement:
    """
    A SQL text bound to a dedicated cursor of one connection.

    DB-API drivers prepare statements implicitly; keeping one cursor per SQL
    text lets drivers that cache by cursor reuse the parsed statement.
    """

    def __init__(self, conn: Any, sql: str, generated_keys: bool = False):
        self._conn = conn
        self.sql = sql
        self.generated_keys = generated_keys
        self._cursor: Any = None
        self.generated_key: Optional[Any] = None

    def _get_cursor(self) -> Any:
        if self._cursor is None:
            self._cursor = self._conn.cursor()
        return self._cursor

    def execute_query(self, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a query and return every row as a column-name -> value dict."""
        cursor = self._get_cursor()
        cursor.execute(self.sql, tuple(params))
        columns = [d[0] for d in cursor.description or ()]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_update(self, params: Sequence[Any] = ()) -> int:
        """Run a mutation and return the affected-row count."""
        cursor = self._get_cursor()
        cursor.execute(self.sql, tuple(params))
        self.generated_key = None
        if self.generated_keys:
            self.generated_key = getattr(cursor, "lastrowid", None)
        return cursor.rowcount

    def execute_batch(self, param_sets: Iterable[Sequence[Any]]) -> int:
        cursor = self._get_cursor()
        cursor.executemany(self.sql, [tuple(p) for p in param_sets])
        return cursor.rowcount

    def close(self) -> None:
        if self._cursor is not None:
            try:
                self._cursor.close()
            finally:
                self._cursor = None


class CachedConnection:
    """Wraps one live database session; not safe for concurrent use."""

    def __init__(self, conn: Any):
        self._conn = conn
        self._statements: dict[tuple[str, bool], PreparedStatement] = {}

    @property
    def raw(self) -> Any:
        return self._conn

    def prepare(self, sql: str, generated_keys: bool = False) -> PreparedStatement:
        """Return the memoized statement for (sql, generated_keys)."""
        key = (sql, generated_keys)
        stmt = self._statements.get(key)
        if stmt is None:
            stmt = PreparedStatement(self._conn, sql, generated_keys)
            self._statements[key] = stmt
        return stmt

    def is_valid(self, timeout: int) -> bool:
        """
        Ask the driver whether the session is alive.

        Raises:
            NotImplementedError: if the driver has no liveness probe.
        """
        probe = getattr(self._conn, "is_valid", None)
        if probe is None:
            raise NotImplementedError("driver connection has no is_valid()")
        return bool(probe(timeout))

    # -- transaction control ---------------------------------------------------

    def set_auto_commit(self, enabled: bool) -> None:
        conn = self._conn
        if hasattr(conn, "isolation_level"):
            # sqlite3: None means auto-commit
            conn.isolation_level = None if enabled else "DEFERRED"
            return
        current = getattr(conn, "autocommit", None)
        if callable(current):
            current(enabled)
        else:
            conn.autocommit = enabled

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        for stmt in self._statements.values():
            try:
                stmt.close()
            except Exception as e:
                logger.debug(f"Ignoring statement close failure: {e}")
        self._statements.clear()
        self._conn.close()
