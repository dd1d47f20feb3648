"""Listing logic: stat a target and enrich it with the metadata the caller asked for."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from baton.genquery import Column, Connection, GenQuery, sql_escape
from baton.model import (
    Acl,
    AclLevel,
    Avu,
    BatonError,
    Collection,
    DataObject,
    Replicate,
    Target,
    Timestamp,
)

_UINT_RE = re.compile(r"\+?[0-9]+")
_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1

_ACL_LEVELS = {
    "null": AclLevel.NULL,
    "read": AclLevel.READ,
    "read object": AclLevel.READ,
    "read_object": AclLevel.READ,
    "write": AclLevel.WRITE,
    "modify object": AclLevel.WRITE,
    "modify_object": AclLevel.WRITE,
    "own": AclLevel.OWN,
}


@dataclass(frozen=True)
class EnrichOptions:
    """Metadata flags shared by listing and metadata search."""

    avu: bool = False
    acl: bool = False
    replicate: bool = False
    timestamp: bool = False


@dataclass(frozen=True)
class ListOptions:
    """Which optional fields the caller wants populated in the output."""

    size: bool = False
    checksum: bool = False
    avu: bool = False
    acl: bool = False
    replicate: bool = False
    timestamp: bool = False
    contents: bool = False

    def enrich_options(self) -> EnrichOptions:
        """The subset of flags handled by :func:`enrich_with_metadata`."""
        return EnrichOptions(
            avu=self.avu,
            acl=self.acl,
            replicate=self.replicate,
            timestamp=self.timestamp,
        )


@dataclass(frozen=True)
class CanonicalReplicaState:
    """Size and checksum of the highest-numbered good replica."""

    size: int
    checksum: str


def _parse_uint(text: str, limit: int) -> Optional[int]:
    if not _UINT_RE.fullmatch(text):
        return None
    value = int(text)
    return value if value <= limit else None


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def parse_acl_level(s: str) -> AclLevel:
    """Map a catalog access-level string (compact or verbose) to an AclLevel."""
    try:
        return _ACL_LEVELS[s]
    except KeyError:
        raise BatonError(f"unknown iRODS access level: {s!r}") from None


def pick_canonical_replica(rows: Sequence[Sequence[str]]) -> Optional[CanonicalReplicaState]:
    """Pick the highest-numbered replica with status "1" from
    ``[repl_num, size, checksum, status]`` rows; malformed rows are skipped."""
    best: Optional[tuple] = None
    for row in rows:
        if len(row) < 4:
            continue
        number = _parse_uint(row[0], _U32_MAX)
        size = _parse_uint(row[1], _U64_MAX)
        if number is None or size is None or row[3] != "1":
            continue
        if best is None or number >= best[0]:
            best = (number, size, row[2])
    if best is None:
        return None
    return CanonicalReplicaState(size=best[1], checksum=best[2])


def _add_scope(q: GenQuery, target: Target) -> None:
    q.add_where(Column.COLL_NAME, f"= '{sql_escape(target.collection)}'")
    if isinstance(target, DataObject):
        q.add_where(Column.DATA_NAME, f"= '{sql_escape(target.data_object)}'")


def _fetch_avus(conn: Connection, target: Target) -> List[Avu]:
    q = GenQuery()
    if isinstance(target, DataObject):
        columns = (
            Column.META_DATA_ATTR_NAME,
            Column.META_DATA_ATTR_VALUE,
            Column.META_DATA_ATTR_UNITS,
        )
    else:
        columns = (
            Column.META_COLL_ATTR_NAME,
            Column.META_COLL_ATTR_VALUE,
            Column.META_COLL_ATTR_UNITS,
        )
    for column in columns:
        q.add_select(column)
    _add_scope(q, target)

    return [
        Avu(
            attribute=_cell(row, 0),
            value=_cell(row, 1),
            units=_cell(row, 2) or None,
        )
        for row in conn.query(q)
    ]


def _fetch_acl(conn: Connection, target: Target) -> List[Acl]:
    q = GenQuery()
    if isinstance(target, DataObject):
        columns = (Column.USER_NAME, Column.USER_ZONE, Column.DATA_ACCESS_NAME)
    else:
        columns = (Column.COLL_USER_NAME, Column.COLL_USER_ZONE, Column.COLL_ACCESS_NAME)
    for column in columns:
        q.add_select(column)
    _add_scope(q, target)

    return [
        Acl(
            owner=_cell(row, 0),
            level=parse_acl_level(_cell(row, 2)),
            zone=_cell(row, 1) or None,
        )
        for row in conn.query(q)
    ]


def _fetch_canonical_replica_state(
    conn: Connection, d: DataObject
) -> Optional[CanonicalReplicaState]:
    q = GenQuery()
    for column in (
        Column.DATA_REPL_NUM,
        Column.DATA_SIZE,
        Column.D_DATA_CHECKSUM,
        Column.D_REPL_STATUS,
    ):
        q.add_select(column)
    _add_scope(q, d)
    return pick_canonical_replica(conn.query(q))


def _fetch_replicates(conn: Connection, d: DataObject) -> List[Replicate]:
    q = GenQuery()
    for column in (
        Column.DATA_REPL_NUM,
        Column.D_DATA_CHECKSUM,
        Column.R_LOC,
        Column.D_RESC_NAME,
        Column.D_REPL_STATUS,
    ):
        q.add_select(column)
    _add_scope(q, d)

    replicates = []
    for row in conn.query(q):
        number_str = _cell(row, 0)
        number = _parse_uint(number_str, _U32_MAX)
        if number is None:
            raise BatonError(f"non-numeric replica number: {number_str!r}")
        replicates.append(
            Replicate(
                checksum=_cell(row, 1),
                location=_cell(row, 2),
                resource=_cell(row, 3),
                number=number,
                valid=_cell(row, 4) == "1",
            )
        )
    return replicates


def _fetch_timestamps(conn: Connection, target: Target) -> List[Timestamp]:
    q = GenQuery()
    with_replicate = isinstance(target, DataObject)
    if with_replicate:
        q.add_select(Column.D_CREATE_TIME)
        q.add_select(Column.D_MODIFY_TIME)
        q.add_select(Column.DATA_REPL_NUM)
    else:
        q.add_select(Column.COLL_CREATE_TIME)
        q.add_select(Column.COLL_MODIFY_TIME)
    _add_scope(q, target)

    timestamps = []
    for row in conn.query(q):
        replicate = _parse_uint(row[2], _U32_MAX) if with_replicate and len(row) > 2 else None
        timestamps.append(Timestamp(created=_cell(row, 0), replicate=replicate))
        timestamps.append(Timestamp(modified=_cell(row, 1), replicate=replicate))
    return timestamps


def _fetch_contents(conn: Connection, parent: str) -> List[Target]:
    items: List[Target] = []

    q = GenQuery()
    q.add_select(Column.COLL_NAME)
    q.add_where(Column.COLL_PARENT_NAME, f"= '{sql_escape(parent)}'")
    items.extend(Collection(collection=_cell(row, 0)) for row in conn.query(q))

    q = GenQuery()
    q.add_select(Column.DATA_NAME)
    q.add_where(Column.COLL_NAME, f"= '{sql_escape(parent)}'")
    items.extend(
        DataObject(collection=parent, data_object=_cell(row, 0)) for row in conn.query(q)
    )
    return items


def enrich_with_metadata(conn: Connection, target: Target, opts: EnrichOptions) -> None:
    """Populate the requested metadata fields of ``target`` in place.

    Replicates apply only to data objects and are ignored for collections.
    """
    if opts.avu:
        target.avus = _fetch_avus(conn, target)
    if opts.acl:
        target.access = _fetch_acl(conn, target)
    if opts.replicate and isinstance(target, DataObject):
        target.replicates = _fetch_replicates(conn, target)
    if opts.timestamp:
        target.timestamps = _fetch_timestamps(conn, target)


def list_one(conn: Connection, target: Target, opts: ListOptions) -> Target:
    """Stat ``target`` and fill in the fields selected by ``opts``.

    Size and checksum apply only to data objects and come from the canonical
    replica, falling back to stat when no replica is good. An empty checksum
    leaves the field unset. Contents apply only to collections.
    """
    stat = conn.stat(target.path())

    if isinstance(target, DataObject) and (opts.size or opts.checksum):
        canonical = _fetch_canonical_replica_state(conn, target)
        if canonical is not None:
            size, checksum = canonical.size, canonical.checksum
        else:
            size, checksum = stat.size, stat.checksum
        if opts.size:
            target.size = size
        if opts.checksum and checksum:
            target.checksum = checksum

    enrich_with_metadata(conn, target, opts.enrich_options())

    if opts.contents and isinstance(target, Collection):
        target.contents = _fetch_contents(conn, target.collection)

    return target


def list_one_annotated(conn: Connection, target: Target, opts: ListOptions) -> Target:
    """Like :func:`list_one`, but return the input annotated with the error on failure."""
    fallback = copy.deepcopy(target)
    try:
        return list_one(conn, target, opts)
    except BatonError as err:
        fallback.set_error(err)
        return fallback