"""Exception types shared by the database, JSON and graph layers."""

from __future__ import annotations

from typing import Optional


class JotError(Exception):
    """Base class for all jot errors."""


class MapperError(JotError):
    """Entity declaration or value conversion failed."""


class DriverError(JotError):
    """The database driver could not be loaded or refused a connection."""


class DAOError(JotError, IOError):
    """
    A data-access operation failed.

    Database and mapping failures are wrapped into this type; the original
    exception is kept as ``__cause__``.
    """


class JSONParserError(JotError):
    """Raised when a JSON document cannot be tokenized or parsed."""

    def __init__(self, message: str, position: Optional[str] = None):
        self.message = message
        self.position = position
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.position}: {self.message}"


class GraphError(JotError, IOError):
    """The graph database rejected a request or returned garbage."""
