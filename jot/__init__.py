"""jot - pooled database mapping, streaming JSON parsing and a graph client."""

from jot.errors import (
    DAOError,
    DriverError,
    GraphError,
    JotError,
    JSONParserError,
    MapperError,
)

__version__ = "1.0.0"

__all__ = [
    "JotError", "MapperError", "DriverError", "DAOError",
    "JSONParserError", "GraphError",
]
