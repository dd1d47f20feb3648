"""Catalog query building and the connection interface operations rely on."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Protocol, Tuple

from baton.model import Acl, Avu, BatonError, MetamodOperation, Target


class Column(Enum):
    """Catalog columns that queries select from or filter on."""

    COLL_NAME = "COL_COLL_NAME"
    COLL_PARENT_NAME = "COL_COLL_PARENT_NAME"
    DATA_NAME = "COL_DATA_NAME"
    DATA_SIZE = "COL_DATA_SIZE"
    DATA_REPL_NUM = "COL_DATA_REPL_NUM"
    D_DATA_CHECKSUM = "COL_D_DATA_CHECKSUM"
    D_RESC_NAME = "COL_D_RESC_NAME"
    D_REPL_STATUS = "COL_D_REPL_STATUS"
    R_LOC = "COL_R_LOC"
    D_CREATE_TIME = "COL_D_CREATE_TIME"
    D_MODIFY_TIME = "COL_D_MODIFY_TIME"
    COLL_CREATE_TIME = "COL_COLL_CREATE_TIME"
    COLL_MODIFY_TIME = "COL_COLL_MODIFY_TIME"
    META_DATA_ATTR_NAME = "COL_META_DATA_ATTR_NAME"
    META_DATA_ATTR_VALUE = "COL_META_DATA_ATTR_VALUE"
    META_DATA_ATTR_UNITS = "COL_META_DATA_ATTR_UNITS"
    META_COLL_ATTR_NAME = "COL_META_COLL_ATTR_NAME"
    META_COLL_ATTR_VALUE = "COL_META_COLL_ATTR_VALUE"
    META_COLL_ATTR_UNITS = "COL_META_COLL_ATTR_UNITS"
    USER_NAME = "COL_USER_NAME"
    USER_ZONE = "COL_USER_ZONE"
    DATA_ACCESS_NAME = "COL_DATA_ACCESS_NAME"
    COLL_USER_NAME = "COL_COLL_USER_NAME"
    COLL_USER_ZONE = "COL_COLL_USER_ZONE"
    COLL_ACCESS_NAME = "COL_COLL_ACCESS_NAME"


class ObjType(Enum):
    """Kind of object a stat call found."""

    DATA_OBJECT = "dataObject"
    COLLECTION = "collection"


class OpenMode(Enum):
    """Mode in which a data object is opened."""

    READ = "read"
    WRITE = "write"


@dataclass
class StatResult:
    """Result of stat on a catalog path."""

    obj_type: ObjType
    size: int = 0
    checksum: str = ""


def sql_escape(s: str) -> str:
    """Double single quotes so the text can sit inside a query literal."""
    return s.replace("'", "''")


@dataclass
class GenQuery:
    """A general catalog query: selected columns plus WHERE conditions."""

    selects: List[Column] = field(default_factory=list)
    conditions: List[Tuple[Column, str]] = field(default_factory=list)

    def add_select(self, column: Column) -> None:
        """Append a column to the selection; result rows follow this order."""
        self.selects.append(column)

    def add_where(self, column: Column, condition: str) -> None:
        """Append a condition such as ``= 'value'``; conditions are ANDed."""
        if "\0" in condition:
            raise BatonError(
                f"query condition on {column.value} contains a NUL byte: {condition!r}"
            )
        self.conditions.append((column, condition))


class Connection(Protocol):
    """Operations a catalog connection provides to the command logic."""

    def stat(self, path: str) -> StatResult:
        """Stat a path; raise BatonError if it does not exist."""
        ...

    def query(self, query: GenQuery) -> List[List[str]]:
        """Run a query and return rows of strings in selection order."""
        ...

    def open_data_object(self, path: str, mode: OpenMode) -> int:
        """Open a data object and return a handle."""
        ...

    def read_data_object(self, handle: int, size: int) -> bytes:
        """Read up to ``size`` bytes; empty bytes at end of object."""
        ...

    def write_data_object(self, handle: int, data: bytes) -> int:
        """Write bytes and return how many were accepted."""
        ...

    def close_data_object(self, handle: int) -> None:
        """Close a handle."""
        ...

    def checksum_data_object(self, path: str) -> str:
        """Compute and register the server-side checksum."""
        ...

    def mod_access_control(self, target: Target, acl: Acl, recursive: bool) -> None:
        """Apply one access-control entry to a target."""
        ...

    def mod_avu(self, operation: MetamodOperation, target: Target, avu: Avu) -> None:
        """Add or remove one AVU on a target."""
        ...