"""
Declarations that turn a dataclass into a mapped entity.

    @record(db_name="people")
    @dataclass
    class Person:
        id: int = column(default=0, id=True, id_auto_assign=True)
        name: str = ""
        created: Optional[datetime] = column(default=None, read_only=True)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, NewType

# A single character stored as text in the database.
Char = NewType("Char", str)

RECORD_ATTR = "__jot_record__"
COLUMN_KEY = "jot"


@dataclass(frozen=True)
class RecordOptions:
    db_name: str = ""


@dataclass(frozen=True)
class ColumnOptions:
    id: bool = False
    id_auto_assign: bool = False
    read_only: bool = False
    json_name: str = ""
    db_name: str = ""
    xml_attribute: bool = False
    xml_name: str = ""
    date_format: str = ""


def record(db_name: str = ""):
    """Class decorator naming the table an entity type is stored in."""
    def decorator(cls):
        setattr(cls, RECORD_ATTR, RecordOptions(db_name=db_name))
        return cls
    return decorator


def column(
    *,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
    id: bool = False,
    id_auto_assign: bool = False,
    read_only: bool = False,
    json_name: str = "",
    db_name: str = "",
    xml_attribute: bool = False,
    xml_name: str = "",
    date_format: str = "",
) -> Any:
    """Dataclass field carrying mapping options in its metadata."""
    options = ColumnOptions(
        id=id,
        id_auto_assign=id_auto_assign,
        read_only=read_only,
        json_name=json_name,
        db_name=db_name,
        xml_attribute=xml_attribute,
        xml_name=xml_name,
        date_format=date_format,
    )
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata={COLUMN_KEY: options},
    )
