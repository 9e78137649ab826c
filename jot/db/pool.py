"""
Bounded pool of cached DB-API connections.

One condition variable guards the idle queue and the issued counter.
``acquire`` revalidates idle connections before handing them out and blocks
while the pool is saturated; ``release`` puts a connection back and wakes
the waiters.
"""

from __future__ import annotations

import importlib
import logging
import threading
from collections import deque
from contextlib import contextmanager
from types import ModuleType
from typing import Any, Generator, Optional

from jot.db.connection import CachedConnection
from jot.errors import DriverError
from jot.utils.redact import redact

logger = logging.getLogger(__name__)


class ConnectionPool:
    """
    FIFO pool of at most ``max_size`` connections to ``url``.

    Args:
        url: First argument of the driver's ``connect()``.
        driver: Import name of a DB-API 2.0 module (default ``sqlite3``).
        max_size: Upper bound on connections issued at once (>= 1).
        validation_timeout: Hint in seconds passed to liveness probes.
        **connect_kwargs: Extra keyword arguments for ``connect()``.
    """

    def __init__(
        self,
        url: str,
        driver: Optional[str] = None,
        max_size: int = 1,
        validation_timeout: int = 1,
        **connect_kwargs: Any,
    ):
        if max_size < 1:
            raise ValueError(f"Invalid pool size: {max_size}")
        self.url = url
        self.driver_name = driver or "sqlite3"
        self.max_size = max_size
        self.validation_timeout = validation_timeout
        self._connect_kwargs = connect_kwargs

        self._driver: Optional[ModuleType] = None
        self._has_is_valid = True
        self._idle: deque[CachedConnection] = deque()
        self._issued = 0
        self._cond = threading.Condition()

    @classmethod
    def from_settings(cls, settings: Any = None, **connect_kwargs: Any) -> "ConnectionPool":
        if settings is None:
            from jot.config import settings
        return cls(
            settings.DATABASE_URL,
            driver=settings.DATABASE_DRIVER,
            max_size=settings.POOL_SIZE,
            validation_timeout=settings.VALIDATION_TIMEOUT,
            **connect_kwargs,
        )

    # -- introspection ---------------------------------------------------------

    @property
    def issued(self) -> int:
        with self._cond:
            return self._issued

    @property
    def idle_count(self) -> int:
        with self._cond:
            return len(self._idle)

    @property
    def driver(self) -> ModuleType:
        """The DB-API module, imported on first use."""
        if self._driver is None:
            try:
                self._driver = importlib.import_module(self.driver_name)
            except ImportError as e:
                raise DriverError(f"Could not load database driver '{self.driver_name}'") from e
        return self._driver

    @property
    def database_error(self) -> type:
        """Base exception class of the driver (DB-API ``Error``)."""
        return getattr(self.driver, "Error", Exception)

    # -- loan protocol ---------------------------------------------------------

    def acquire(self) -> CachedConnection:
        """Return a valid connection, creating or waiting for one as needed."""
        with self._cond:
            while True:
                while self._idle:
                    conn = self._idle.popleft()
                    if self._is_valid(conn):
                        return conn
                    logger.warning("Discarding invalid pooled connection")
                    self._discard(conn)
                if self._issued < self.max_size:
                    self._issued += 1
                    break
                self._cond.wait()

        try:
            return self._create()
        except BaseException:
            with self._cond:
                self._issued -= 1
                self._cond.notify_all()
            raise

    def release(self, conn: CachedConnection) -> None:
        with self._cond:
            self._idle.append(conn)
            self._cond.notify_all()

    @contextmanager
    def connection(self) -> Generator[CachedConnection, None, None]:
        """Loan a connection for the duration of a ``with`` block."""
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close every idle connection. Loaned connections are not touched."""
        with self._cond:
            while self._idle:
                self._discard(self._idle.popleft())

    # -- internal --------------------------------------------------------------

    def _create(self) -> CachedConnection:
        driver = self.driver
        kwargs = dict(self._connect_kwargs)
        if self.driver_name == "sqlite3":
            kwargs.setdefault("check_same_thread", False)
        logger.info(f"Opening database connection to {redact(self.url)}")
        try:
            raw = driver.connect(self.url, **kwargs)
        except getattr(driver, "Error", Exception) as e:
            raise DriverError(f"Could not connect to {redact(self.url)}: {e}") from e
        conn = CachedConnection(raw)
        conn.set_auto_commit(True)
        return conn

    def _discard(self, conn: CachedConnection) -> None:
        # caller holds the lock
        self._issued -= 1
        try:
            conn.close()
        except Exception as e:
            logger.debug(f"Ignoring close failure of discarded connection: {e}")

    def _is_valid(self, conn: CachedConnection) -> bool:
        try:
            if self._has_is_valid:
                try:
                    return conn.is_valid(self.validation_timeout)
                except NotImplementedError:
                    logger.debug(f"{self.driver_name} has no is_valid(); using 'select 1'")
                    self._has_is_valid = False
            conn.prepare("select 1").execute_query()
            return True
        except self.database_error:
            return False
