"""
Entity descriptors - per-type mapping metadata built once and cached.

A descriptor is derived from a dataclass declared with ``record()`` and
``column()`` (see ``jot.db.annotations``). It drives SQL synthesis and row
marshalling. Descriptors are immutable and shared process-wide; the cache
is keyed by type identity and guarded by a single lock.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import typing
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from jot.db.annotations import COLUMN_KEY, RECORD_ATTR, Char, ColumnOptions, RecordOptions
from jot.errors import MapperError

logger = logging.getLogger(__name__)


class ScalarKind(str, Enum):
    INT = "int"
    INTEGER = "integer"
    CHAR = "char"
    CHARACTER = "character"
    STRING = "string"
    BOOLEAN = "boolean"
    INSTANT = "instant"


@dataclass(frozen=True)
class FieldDescriptor:
    """Mapping metadata of one entity field."""

    name: str
    kind: ScalarKind
    json_name: str
    db_name: str
    xml_name: str
    xml_attribute: bool = False
    is_id: bool = False
    id_auto_assign: bool = False
    read_only: bool = False
    date_format: Optional[str] = None

    @property
    def writable(self) -> bool:
        """Whether the field takes part in INSERT/UPDATE parameter lists."""
        if self.is_id and self.id_auto_assign:
            return False
        return not self.read_only


@dataclass(frozen=True)
class EntityDescriptor:
    """Mapping metadata of an entity type."""

    entity_type: type
    table_name: str
    fields: tuple[FieldDescriptor, ...]
    by_json_name: Mapping[str, FieldDescriptor]
    by_db_name: Mapping[str, FieldDescriptor]

    @property
    def id_field(self) -> Optional[FieldDescriptor]:
        for f in self.fields:
            if f.is_id:
                return f
        return None

    @property
    def writable_fields(self) -> tuple[FieldDescriptor, ...]:
        return tuple(f for f in self.fields if f.writable)

    def require_id_field(self, action: str) -> FieldDescriptor:
        id_field = self.id_field
        if id_field is None:
            raise MapperError(
                f"Can't {action} object {self.entity_type.__name__} without an ID field"
            )
        return id_field


# -- type resolution -----------------------------------------------------------

_PLAIN_KINDS: dict[Any, ScalarKind] = {
    int: ScalarKind.INT,
    Char: ScalarKind.CHAR,
    str: ScalarKind.STRING,
    bool: ScalarKind.BOOLEAN,
    datetime: ScalarKind.INSTANT,
}

_OPTIONAL_KINDS: dict[Any, ScalarKind] = {
    int: ScalarKind.INTEGER,
    Char: ScalarKind.CHARACTER,
    str: ScalarKind.STRING,
    bool: ScalarKind.BOOLEAN,
    datetime: ScalarKind.INSTANT,
}


def _scalar_kind(hint: Any) -> Optional[ScalarKind]:
    if hint in _PLAIN_KINDS:
        return _PLAIN_KINDS[hint]
    args = typing.get_args(hint)
    if type(None) in args:
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1:
            return _OPTIONAL_KINDS.get(rest[0])
    return None


def _describe_field(f: dataclasses.Field, hint: Any) -> FieldDescriptor:
    kind = _scalar_kind(hint)
    if kind is None:
        raise MapperError(f"Unsupported field type '{hint!r}' for field {f.name}")
    opts: ColumnOptions = f.metadata.get(COLUMN_KEY, ColumnOptions())
    return FieldDescriptor(
        name=f.name,
        kind=kind,
        json_name=opts.json_name or f.name,
        db_name=opts.db_name or f.name,
        xml_name=opts.xml_name or f.name,
        xml_attribute=opts.xml_attribute,
        is_id=opts.id,
        id_auto_assign=opts.id_auto_assign,
        read_only=opts.read_only,
        date_format=opts.date_format or None,
    )


def _build(cls: type) -> EntityDescriptor:
    if not isinstance(cls, type) or not dataclasses.is_dataclass(cls):
        raise MapperError(f"Could not access class '{getattr(cls, '__name__', cls)}'")

    rec: RecordOptions = getattr(cls, RECORD_ATTR, RecordOptions())
    table_name = rec.db_name or cls.__name__.lower() + "s"

    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        raise MapperError(f"Could not access class '{cls.__name__}'") from e

    fields: list[FieldDescriptor] = []
    for f in dataclasses.fields(cls):
        if f.name.startswith("_"):
            continue
        fields.append(_describe_field(f, hints.get(f.name)))

    ids = [f.name for f in fields if f.is_id]
    if len(ids) > 1:
        raise MapperError(f"Class '{cls.__name__}' declares more than one ID field: {ids}")

    return EntityDescriptor(
        entity_type=cls,
        table_name=table_name,
        fields=tuple(fields),
        by_json_name=MappingProxyType({f.json_name: f for f in fields}),
        by_db_name=MappingProxyType({f.db_name: f for f in fields}),
    )


# -- cache ---------------------------------------------------------------------

_cache: dict[type, EntityDescriptor] = {}
_cache_lock = threading.Lock()


def describe(cls: type) -> EntityDescriptor:
    """Return the (cached) descriptor of *cls*, building it on first use."""
    with _cache_lock:
        info = _cache.get(cls)
        if info is None:
            info = _build(cls)
            _cache[cls] = info
            logger.debug(f"Described {cls.__name__} -> table {info.table_name}")
        return info


def clear_cache() -> None:
    """Drop every cached descriptor (useful in tests and at shutdown)."""
    with _cache_lock:
        _cache.clear()
