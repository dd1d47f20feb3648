"""Metadata search: find data objects and collections matching AVU, timestamp and access criteria."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from baton.genquery import Column, Connection, GenQuery, sql_escape
from baton.model import (
    AccessQuery,
    AclLevel,
    AvuQuery,
    Collection,
    DataObject,
    MetaqueryInput,
    Operator,
    Target,
    TimestampQuery,
)

_OPERATOR_TOKENS = {
    Operator.EQUALS: "=",
    Operator.LIKE: "like",
    Operator.NOT_LIKE: "not like",
    Operator.IN: "in",
    Operator.GREATER_THAN: ">",
    Operator.NUMERIC_GREATER_THAN: "n>",
    Operator.LESS_THAN: "<",
    Operator.NUMERIC_LESS_THAN: "n<",
    Operator.GREATER_THAN_OR_EQUAL: ">=",
    Operator.NUMERIC_GREATER_THAN_OR_EQUAL: "n>=",
    Operator.LESS_THAN_OR_EQUAL: "<=",
    Operator.NUMERIC_LESS_THAN_OR_EQUAL: "n<=",
}

_IRODS_ACCESS_NAMES = {
    AclLevel.NULL: "null",
    AclLevel.READ: "read object",
    AclLevel.WRITE: "modify object",
    AclLevel.OWN: "own",
}


@dataclass(frozen=True)
class MetaqueryFlags:
    """Which kinds of objects to include in a search; both by default."""

    include_data_objects: bool = True
    include_collections: bool = True


@dataclass(frozen=True)
class _Columns:
    attr_name: Column
    attr_value: Column
    attr_units: Column
    create_time: Column
    modify_time: Column
    user_name: Column
    access_name: Column
    user_zone: Column


_DATA_OBJECT_COLUMNS = _Columns(
    attr_name=Column.META_DATA_ATTR_NAME,
    attr_value=Column.META_DATA_ATTR_VALUE,
    attr_units=Column.META_DATA_ATTR_UNITS,
    create_time=Column.D_CREATE_TIME,
    modify_time=Column.D_MODIFY_TIME,
    user_name=Column.USER_NAME,
    access_name=Column.DATA_ACCESS_NAME,
    user_zone=Column.USER_ZONE,
)

_COLLECTION_COLUMNS = _Columns(
    attr_name=Column.META_COLL_ATTR_NAME,
    attr_value=Column.META_COLL_ATTR_VALUE,
    attr_units=Column.META_COLL_ATTR_UNITS,
    create_time=Column.COLL_CREATE_TIME,
    modify_time=Column.COLL_MODIFY_TIME,
    user_name=Column.COLL_USER_NAME,
    access_name=Column.COLL_ACCESS_NAME,
    user_zone=Column.COLL_USER_ZONE,
)


def operator_token(op: Operator) -> str:
    """The leading token of a query condition for ``op``."""
    return _OPERATOR_TOKENS[op]


def condition_for(op: Operator, value: str) -> str:
    """Build a WHERE condition; ``in`` values pass through as a list literal,
    all others are quoted and escaped."""
    if op is Operator.IN:
        return f"{operator_token(op)} {value}"
    return f"{operator_token(op)} '{sql_escape(value)}'"


def acl_level_to_irods_name(level: AclLevel) -> str:
    """The catalog's stored access name for ``level``."""
    return _IRODS_ACCESS_NAMES[level]


def _apply_avus(q: GenQuery, cols: _Columns, avus: Iterable[AvuQuery]) -> None:
    for avu in avus:
        q.add_where(cols.attr_name, f"= '{sql_escape(avu.attribute)}'")
        q.add_where(cols.attr_value, condition_for(avu.operator, avu.value))
        if avu.units is not None:
            q.add_where(cols.attr_units, f"= '{sql_escape(avu.units)}'")


def _apply_timestamps(
    q: GenQuery, cols: _Columns, timestamps: Iterable[TimestampQuery]
) -> None:
    for ts in timestamps:
        if ts.created is not None:
            q.add_where(cols.create_time, condition_for(ts.operator, ts.created))
        if ts.modified is not None:
            q.add_where(cols.modify_time, condition_for(ts.operator, ts.modified))


def _apply_access(q: GenQuery, cols: _Columns, accesses: Iterable[AccessQuery]) -> None:
    for a in accesses:
        q.add_where(cols.user_name, f"= '{sql_escape(a.owner)}'")
        q.add_where(cols.access_name, f"= '{acl_level_to_irods_name(a.level)}'")
        if a.zone is not None:
            q.add_where(cols.user_zone, f"= '{sql_escape(a.zone)}'")


def _apply_collection_scope(q: GenQuery, scope: Optional[str]) -> None:
    # Zone scoping is not applied: queries run against the local zone.
    if scope is not None:
        q.add_where(Column.COLL_NAME, f"like '{sql_escape(scope)}%'")


def _cell(row: List[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def _data_object_paths(
    conn: Connection, query: MetaqueryInput, avus: List[AvuQuery]
) -> List[Tuple[str, str]]:
    q = GenQuery()
    q.add_select(Column.COLL_NAME)
    q.add_select(Column.DATA_NAME)
    _apply_avus(q, _DATA_OBJECT_COLUMNS, avus)
    _apply_timestamps(q, _DATA_OBJECT_COLUMNS, query.timestamps)
    _apply_access(q, _DATA_OBJECT_COLUMNS, query.access)
    _apply_collection_scope(q, query.collection)
    return [(_cell(row, 0), _cell(row, 1)) for row in conn.query(q)]


def _collection_paths(
    conn: Connection, query: MetaqueryInput, avus: List[AvuQuery]
) -> List[str]:
    q = GenQuery()
    q.add_select(Column.COLL_NAME)
    _apply_avus(q, _COLLECTION_COLUMNS, avus)
    _apply_timestamps(q, _COLLECTION_COLUMNS, query.timestamps)
    _apply_access(q, _COLLECTION_COLUMNS, query.access)
    _apply_collection_scope(q, query.collection)
    return [_cell(row, 0) for row in conn.query(q)]


def _intersect(conn: Connection, query: MetaqueryInput, fetch) -> Set:
    """Run one subquery per AVU and intersect the paths, stopping once empty."""
    running: Optional[Set] = None
    for avu in query.avus:
        found = set(fetch(conn, query, [avu]))
        running = found if running is None else running & found
        if not running:
            break
    return running or set()


def _query_data_objects(conn: Connection, query: MetaqueryInput) -> List[Target]:
    if len(query.avus) > 1:
        paths = _intersect(conn, query, _data_object_paths)
    else:
        paths = _data_object_paths(conn, query, query.avus)
    return [DataObject(collection=c, data_object=d) for c, d in paths]


def _query_collections(conn: Connection, query: MetaqueryInput) -> List[Target]:
    if len(query.avus) > 1:
        paths = _intersect(conn, query, _collection_paths)
    else:
        paths = _collection_paths(conn, query, query.avus)
    return [Collection(collection=c) for c in paths]


def metaquery(
    conn: Connection,
    query: MetaqueryInput,
    flags: MetaqueryFlags = MetaqueryFlags(),
) -> List[Target]:
    """Search the catalog for objects matching ``query``.

    Data objects come before collections; order within each kind is not
    guaranteed. A query with no criteria matches nothing and runs no query.
    Several AVU criteria are resolved by one subquery per AVU, intersected.
    """
    if not (query.avus or query.timestamps or query.access):
        return []

    results: List[Target] = []
    if flags.include_data_objects:
        results.extend(_query_data_objects(conn, query))
    if flags.include_collections:
        results.extend(_query_collections(conn, query))
    return results