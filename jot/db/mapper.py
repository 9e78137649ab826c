"""
Mapper moving values between entities and rows, JSON objects, XML elements
and CSV rows.

Instants travel through the database and JSON as signed millisecond epoch
integers. Characters travel through JSON and XML as integer code points
and through the database as one-character text.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping
from xml.etree.ElementTree import Element

from jot.db.descriptor import FieldDescriptor, ScalarKind, describe
from jot.errors import MapperError

logger = logging.getLogger(__name__)


# -- scalar conversions --------------------------------------------------------

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def millis_to_instant(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=int(ms))


def instant_to_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // _MILLISECOND


def to_db_value(field: FieldDescriptor, value: Any) -> Any:
    """Convert a field value into a driver parameter."""
    if value is None:
        return None
    if field.kind is ScalarKind.INSTANT:
        return instant_to_millis(value)
    if field.kind is ScalarKind.BOOLEAN:
        return 1 if value else 0
    return value


def from_db_value(field: FieldDescriptor, raw: Any) -> Any:
    """Convert a raw column value to the field's scalar kind."""
    kind = field.kind
    if kind is ScalarKind.INT:
        return 0 if raw is None else int(raw)
    if kind is ScalarKind.INTEGER:
        return None if raw is None else int(raw)
    if kind in (ScalarKind.CHAR, ScalarKind.CHARACTER):
        if raw is None:
            if kind is ScalarKind.CHAR:
                raise ValueError("NULL character")
            return None
        text = str(raw)
        if not text:
            raise ValueError("empty character")
        return text[0]
    if kind is ScalarKind.STRING:
        return None if raw is None else str(raw)
    if kind is ScalarKind.BOOLEAN:
        if isinstance(raw, str):
            return raw.strip().lower() in ("1", "true", "t", "yes")
        return bool(raw)
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw
    return millis_to_instant(int(raw))


# -- readers -------------------------------------------------------------------

def read_row(obj: Any, row: Mapping[str, Any]) -> Any:
    """
    Assign the columns of *row* to *obj*.

    Columns without a matching field are ignored.

    Returns:
        The argument object.

    Raises:
        MapperError: when a value cannot be converted.
    """
    info = describe(type(obj))
    for column_name, raw in row.items():
        fi = info.by_db_name.get(column_name)
        if fi is None:
            continue
        try:
            setattr(obj, fi.name, from_db_value(fi, raw))
        except (TypeError, ValueError, OverflowError) as e:
            raise MapperError(f"Failed to read object field {fi.name} from row") from e
    return obj


def read_json(obj: Any, data: Mapping[str, Any]) -> Any:
    """Assign the properties of a decoded JSON object to *obj*."""
    info = describe(type(obj))
    for name, raw in data.items():
        fi = info.by_json_name.get(name)
        if fi is None:
            continue
        try:
            setattr(obj, fi.name, _from_json_value(fi, raw))
        except (TypeError, ValueError, OverflowError) as e:
            raise MapperError(f"Failed to set object field {fi.name}") from e
    return obj


def _from_json_value(fi: FieldDescriptor, raw: Any) -> Any:
    kind = fi.kind
    if raw is None:
        if kind in (ScalarKind.INT, ScalarKind.CHAR):
            raise ValueError(f"null is not a valid {kind.value}")
        if kind is ScalarKind.BOOLEAN:
            return False
        return None
    if kind in (ScalarKind.INT, ScalarKind.INTEGER):
        return int(raw)
    if kind in (ScalarKind.CHAR, ScalarKind.CHARACTER):
        return chr(int(raw))
    if kind is ScalarKind.STRING:
        return str(raw)
    if kind is ScalarKind.BOOLEAN:
        if not isinstance(raw, bool):
            raise TypeError(f"expected boolean, got {raw!r}")
        return raw
    return millis_to_instant(int(raw))


def read_element(obj: Any, element: Element) -> Any:
    """
    Assign fields of *obj* from an XML element.

    Attribute fields read the element attribute named by ``xml_name``;
    other fields read the concatenated text of every descendant element
    with that tag.
    """
    info = describe(type(obj))
    for fi in info.fields:
        if fi.xml_attribute:
            text = element.get(fi.xml_name, "")
        else:
            text = _child_content(element, fi.xml_name)
        kind = fi.kind
        try:
            if kind in (ScalarKind.INT, ScalarKind.INTEGER):
                setattr(obj, fi.name, int(text))
            elif kind in (ScalarKind.CHAR, ScalarKind.CHARACTER):
                setattr(obj, fi.name, chr(int(text)))
            elif kind is ScalarKind.STRING:
                setattr(obj, fi.name, text)
            elif kind is ScalarKind.BOOLEAN:
                setattr(obj, fi.name, text.strip().lower() == "true")
            elif fi.date_format is None:
                setattr(obj, fi.name, millis_to_instant(int(text)))
            elif text:
                parsed = datetime.strptime(text, fi.date_format)
                if parsed.tzinfo is None:
                    parsed = parsed.replace(tzinfo=timezone.utc)
                setattr(obj, fi.name, parsed)
        except ValueError as e:
            if kind is ScalarKind.INSTANT and fi.date_format is not None:
                raise MapperError(f"Invalid date value for field {fi.name}") from e
            raise MapperError(f"Invalid integer value for field {fi.name}") from e
    return obj


def _child_content(parent: Element, tag: str) -> str:
    parts: list[str] = []
    for child in parent.iter(tag):
        if child is parent:
            continue
        parts.append("".join(child.itertext()))
    return "".join(parts)


# -- writers -------------------------------------------------------------------

def to_json(obj: Any) -> dict[str, Any]:
    """Convert *obj* into a JSON-ready dict keyed by external names."""
    info = describe(type(obj))
    data: dict[str, Any] = {}
    for fi in info.fields:
        value = getattr(obj, fi.name)
        if fi.kind in (ScalarKind.CHAR, ScalarKind.CHARACTER):
            data[fi.json_name] = None if value is None else ord(value)
        elif fi.kind is ScalarKind.INSTANT:
            if value is not None:
                data[fi.json_name] = instant_to_millis(value)
        else:
            data[fi.json_name] = value
    return data


def to_csv_header(cls: type, writer: Any) -> None:
    """Write the XML names of *cls* as a header row to a ``csv.writer``."""
    writer.writerow([fi.xml_name for fi in describe(cls).fields])


def to_csv(obj: Any, writer: Any) -> None:
    """Write *obj* as one row to a ``csv.writer``."""
    info = describe(type(obj))
    writer.writerow([_csv_cell(fi, getattr(obj, fi.name)) for fi in info.fields])


def _csv_cell(fi: FieldDescriptor, value: Any) -> Any:
    if value is None:
        return ""
    if fi.kind is ScalarKind.CHAR:
        return ord(value)
    if fi.kind is ScalarKind.BOOLEAN:
        return "true" if value else "false"
    if fi.kind is ScalarKind.INSTANT:
        if fi.date_format is None:
            return instant_to_millis(value)
        return value.strftime(fi.date_format)
    return str(value)


def new_instance(cls: type) -> Any:
    """Instantiate an entity through its no-argument constructor."""
    try:
        return cls()
    except TypeError as e:
        raise MapperError(f"Could not create object instance of {cls.__name__}") from e
