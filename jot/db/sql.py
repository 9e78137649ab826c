"""SQL templates synthesized from entity descriptors.

Every statement uses positional ``?`` placeholders. Table and column names
are inserted verbatim; callers are responsible for using safe identifiers.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from jot.db.descriptor import describe
from jot.db.mapper import to_db_value


def to_insert_sql(cls: type) -> str:
    info = describe(cls)
    columns = [f.db_name for f in info.writable_fields]
    placeholders = ",".join("?" for _ in columns)
    return f"INSERT INTO {info.table_name} ({','.join(columns)}) VALUES ({placeholders})"


def to_update_sql(cls: type, constraints: Optional[str] = None) -> str:
    """UPDATE by identity, optionally narrowed by an AND-appended fragment."""
    info = describe(cls)
    id_field = info.require_id_field("update")
    assignments = ",".join(f"{f.db_name}=?" for f in info.writable_fields)
    sql = f"UPDATE {info.table_name} SET {assignments} WHERE {id_field.db_name}=?"
    if constraints:
        sql += f" AND {constraints}"
    return sql


def to_delete_sql(cls: type) -> str:
    info = describe(cls)
    id_field = info.require_id_field("delete")
    return f"DELETE FROM {info.table_name} WHERE {id_field.db_name}=?"


def to_select_sql(cls: type, constraints: Optional[str] = None) -> str:
    info = describe(cls)
    sql = f"SELECT {','.join(f.db_name for f in info.fields)} FROM {info.table_name}"
    if constraints:
        sql += f" WHERE {constraints}"
    return sql


def to_select_by_id_sql(cls: type) -> str:
    info = describe(cls)
    id_field = info.require_id_field("select")
    return to_select_sql(cls, f"{id_field.db_name}=?")


def to_sql_params(
    obj: Any,
    append_id: bool = False,
    tail_params: Optional[Sequence[Any]] = None,
) -> list[Any]:
    """
    Build the positional parameters of an INSERT or UPDATE.

    Values follow the column order of ``to_insert_sql``/``to_update_sql``.
    With *append_id* the identity value is added for the WHERE clause, then
    any *tail_params* bound by an extra constraint fragment.
    """
    info = describe(type(obj))
    params = [to_db_value(f, getattr(obj, f.name)) for f in info.writable_fields]
    if append_id:
        id_field = info.require_id_field("update")
        params.append(to_db_value(id_field, getattr(obj, id_field.name)))
    if tail_params:
        params.extend(tail_params)
    return params


def to_id_params(obj: Any) -> list[Any]:
    info = describe(type(obj))
    id_field = info.require_id_field("identify")
    return [to_db_value(id_field, getattr(obj, id_field.name))]
