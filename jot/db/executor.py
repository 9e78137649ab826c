"""
Executors - CRUD over one entity type on top of the connection pool.

An ``Executor`` loans a connection per operation and always gives it back.
A ``TransactionExecutor`` pins one connection with auto-commit disabled
until it is closed; use it as a context manager:

    with TransactionExecutor(pool, User) as tx:
        tx.insert(user)
        tx.commit()
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Generator, Generic, Iterator, Optional, Sequence, TypeVar

from jot.db import mapper, sql
from jot.db.connection import CachedConnection
from jot.db.pool import ConnectionPool
from jot.errors import DAOError, DriverError, MapperError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Executor(Generic[T]):
    """Maps rows of one entity type; stateless across calls unless pinned."""

    def __init__(self, pool: ConnectionPool, cls: type[T]):
        self._pool = pool
        self.cls = cls
        self._pinned: Optional[CachedConnection] = None
        # Auto-generated key of the latest single-row insert.
        self.generated_key: Optional[Any] = None

    # -- connection handling ---------------------------------------------------

    @contextmanager
    def _connection(self) -> Generator[CachedConnection, None, None]:
        if self._pinned is not None:
            yield self._pinned
            return
        conn = self._pool.acquire()
        try:
            yield conn
        finally:
            self._pool.release(conn)

    @contextmanager
    def _errors(self) -> Iterator[None]:
        """Wrap driver and mapper failures as DAOError."""
        try:
            yield
        except DAOError:
            raise
        except MapperError as e:
            logger.error(f"Mapper error: {e}")
            raise DAOError("Mapper error") from e
        except DriverError as e:
            logger.error(f"Connection error: {e}")
            raise DAOError("Connection error") from e
        except self._pool.database_error as e:
            logger.error(f"SQL error: {e}")
            raise DAOError("SQL error") from e
        except (OverflowError, ValueError, TypeError) as e:
            # parameter binding failures raised outside the DB-API hierarchy
            logger.error(f"SQL parameter error: {e}")
            raise DAOError("SQL error") from e

    # -- reads -----------------------------------------------------------------

    def select(self, query: str, params: Optional[Sequence[Any]] = None) -> list[T]:
        with self._errors(), self._connection() as conn:
            rows = conn.prepare(query).execute_query(params or ())
            return [mapper.read_row(mapper.new_instance(self.cls), row) for row in rows]

    def select_all(
        self,
        constraints: Optional[str] = None,
        params: Optional[Sequence[Any]] = None,
    ) -> list[T]:
        with self._errors():
            query = sql.to_select_sql(self.cls, constraints)
        return self.select(query, params)

    def get(self, identity: Any) -> Optional[T]:
        with self._errors():
            query = sql.to_select_by_id_sql(self.cls)
        rows = self.select(query, [identity])
        return rows[0] if rows else None

    # -- writes ----------------------------------------------------------------

    def insert(self, obj: T) -> None:
        """Insert one entity and capture its auto-generated key, if any."""
        with self._errors(), self._connection() as conn:
            stmt = conn.prepare(sql.to_insert_sql(self.cls), generated_keys=True)
            count = stmt.execute_update(sql.to_sql_params(obj))
            if count != 1:
                raise DAOError(f"Failed to insert object: {count} rows affected")
            if stmt.generated_key is not None:
                self.generated_key = stmt.generated_key

    def insert_batch(self, objects: Sequence[T]) -> None:
        if not objects:
            return
        with self._errors(), self._connection() as conn:
            query = sql.to_insert_sql(self.cls)
            logger.debug(f"SQL batch ({len(objects)}): {query}")
            stmt = conn.prepare(query)
            stmt.execute_batch([sql.to_sql_params(obj) for obj in objects])

    def update(
        self,
        obj: T,
        constraints: Optional[str] = None,
        tail_params: Optional[Sequence[Any]] = None,
    ) -> None:
        """Update one entity by identity, optionally narrowed by *constraints*."""
        with self._errors(), self._connection() as conn:
            stmt = conn.prepare(sql.to_update_sql(self.cls, constraints))
            count = stmt.execute_update(sql.to_sql_params(obj, True, tail_params))
            if count != 1:
                raise DAOError(f"Failed to update object: {count} rows affected")

    def delete(self, obj: T) -> None:
        with self._errors(), self._connection() as conn:
            stmt = conn.prepare(sql.to_delete_sql(self.cls))
            count = stmt.execute_update(sql.to_id_params(obj))
            if count != 1:
                raise DAOError(f"Failed to delete object: {count} rows affected")

    def execute_update(self, query: str, params: Optional[Sequence[Any]] = None) -> int:
        """Run raw SQL and return the affected-row count."""
        with self._errors(), self._connection() as conn:
            return conn.prepare(query).execute_update(params or ())


class TransactionExecutor(Executor[T]):
    """
    Executor pinned to one connection with auto-commit disabled.

    Not safe for concurrent use; confine it to one thread.
    """

    def __init__(self, pool: ConnectionPool, cls: type[T]):
        super().__init__(pool, cls)
        self._close_lock = threading.Lock()
        self._closed = False
        with self._errors():
            conn = pool.acquire()
            try:
                conn.set_auto_commit(False)
            except BaseException:
                pool.release(conn)
                raise
        self._pinned = conn

    @contextmanager
    def _connection(self) -> Generator[CachedConnection, None, None]:
        if self._closed:
            raise DAOError("Transaction executor is closed")
        with super()._connection() as conn:
            yield conn

    def commit(self) -> None:
        with self._errors(), self._connection() as conn:
            conn.commit()

    def rollback(self) -> None:
        with self._errors(), self._connection() as conn:
            conn.rollback()

    def close(self) -> None:
        """
        Roll back uncommitted work, re-enable auto-commit and return the
        pinned connection. Idempotent.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            conn, self._pinned = self._pinned, None
            try:
                with self._errors():
                    conn.rollback()
                    conn.set_auto_commit(True)
            finally:
                self._pool.release(conn)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "TransactionExecutor[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None and not self._closed:
                self.rollback()
        finally:
            self.close()

    def __del__(self):
        if not getattr(self, "_closed", True) and getattr(self, "_pinned", None) is not None:
            logger.warning("TransactionExecutor was not closed; closing it now")
            self.close()


class Repository:
    """Base class for data-access objects sharing one connection pool."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    def executor(self, cls: type[T]) -> Executor[T]:
        return Executor(self._pool, cls)

    def transaction(self, cls: type[T]) -> TransactionExecutor[T]:
        return TransactionExecutor(self._pool, cls)
