"""Data model for catalog targets, ACLs, AVUs and query inputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class BatonError(Exception):
    """An error from the catalog or from a local operation, with a numeric code."""

    def __init__(self, message: str, code: int = -1) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return f"{self.message} (code {self.code})"

    def __repr__(self) -> str:
        return f"BatonError(message={self.message!r}, code={self.code})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BatonError):
            return NotImplemented
        return (self.code, self.message) == (other.code, other.message)

    def __hash__(self) -> int:
        return hash((self.code, self.message))


class AclLevel(Enum):
    """Access level in its compact JSON form."""

    NULL = "null"
    READ = "read"
    WRITE = "write"
    OWN = "own"


class Operator(Enum):
    """Comparison operator of a metadata or timestamp query."""

    EQUALS = "="
    LIKE = "like"
    NOT_LIKE = "not like"
    IN = "in"
    GREATER_THAN = ">"
    NUMERIC_GREATER_THAN = "n>"
    LESS_THAN = "<"
    NUMERIC_LESS_THAN = "n<"
    GREATER_THAN_OR_EQUAL = ">="
    NUMERIC_GREATER_THAN_OR_EQUAL = "n>="
    LESS_THAN_OR_EQUAL = "<="
    NUMERIC_LESS_THAN_OR_EQUAL = "n<="


@dataclass
class Avu:
    """An attribute/value/units triple."""

    attribute: str
    value: str
    units: Optional[str] = None


@dataclass
class Acl:
    """One access-control entry."""

    owner: str
    level: AclLevel
    zone: Optional[str] = None


@dataclass
class Replicate:
    """One replica of a data object."""

    checksum: str
    location: str
    resource: str
    number: int
    valid: bool


@dataclass
class Timestamp:
    """A creation or modification event; exactly one of the two is usually set."""

    created: Optional[str] = None
    modified: Optional[str] = None
    replicate: Optional[int] = None


@dataclass
class DataObject:
    """A data object inside a collection."""

    collection: str
    data_object: str
    size: Optional[int] = None
    checksum: Optional[str] = None
    data: Optional[str] = None
    directory: Optional[str] = None
    avus: Optional[List[Avu]] = None
    access: Optional[List[Acl]] = None
    replicates: Optional[List[Replicate]] = None
    timestamps: Optional[List[Timestamp]] = None
    error: Optional[BatonError] = None

    def path(self) -> str:
        """Absolute catalog path of the data object."""
        return f"{self.collection}/{self.data_object}"

    def set_error(self, error: BatonError) -> None:
        """Attach an error to this record."""
        self.error = error


@dataclass
class Collection:
    """A collection, optionally with its direct contents."""

    collection: str
    avus: Optional[List[Avu]] = None
    access: Optional[List[Acl]] = None
    timestamps: Optional[List[Timestamp]] = None
    contents: Optional[List[Union["DataObject", "Collection"]]] = None
    error: Optional[BatonError] = None

    def path(self) -> str:
        """Absolute catalog path of the collection."""
        return self.collection

    def set_error(self, error: BatonError) -> None:
        """Attach an error to this record."""
        self.error = error


Target = Union[DataObject, Collection]


@dataclass
class AvuQuery:
    """One AVU criterion of a metadata query."""

    attribute: str
    value: str
    units: Optional[str] = None
    operator: Operator = Operator.EQUALS


@dataclass
class TimestampQuery:
    """A creation and/or modification time criterion."""

    created: Optional[str] = None
    modified: Optional[str] = None
    operator: Operator = Operator.EQUALS


@dataclass
class AccessQuery:
    """An access-control criterion."""

    owner: str
    level: AclLevel
    zone: Optional[str] = None


@dataclass
class MetaqueryInput:
    """Criteria for a catalog metadata search."""

    avus: List[AvuQuery] = field(default_factory=list)
    timestamps: List[TimestampQuery] = field(default_factory=list)
    access: List[AccessQuery] = field(default_factory=list)
    collection: Optional[str] = None
    zone: Optional[str] = None


class MetamodOperation(Enum):
    """Whether AVUs are added to or removed from a target."""

    ADD = "add"
    REMOVE = "rem"


@dataclass
class MetamodInput:
    """A request to add or remove AVUs on one target."""

    operation: MetamodOperation
    collection: str
    data_object: Optional[str] = None
    avus: List[Avu] = field(default_factory=list)
    error: Optional[BatonError] = None

    def target(self) -> Target:
        """The data object or collection this request applies to."""
        if self.data_object is not None:
            return DataObject(collection=self.collection, data_object=self.data_object)
        return Collection(collection=self.collection)