"""Database layer - entity mapping, connection pooling and executors."""

from jot.db.annotations import Char, column, record
from jot.db.connection import CachedConnection, PreparedStatement
from jot.db.descriptor import EntityDescriptor, FieldDescriptor, ScalarKind, describe
from jot.db.executor import Executor, Repository, TransactionExecutor
from jot.db.pool import ConnectionPool

__all__ = [
    "Char", "column", "record",
    "EntityDescriptor", "FieldDescriptor", "ScalarKind", "describe",
    "CachedConnection", "PreparedStatement", "ConnectionPool",
    "Executor", "TransactionExecutor", "Repository",
]
