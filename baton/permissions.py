"""Access-control and metadata changes on catalog targets."""

from __future__ import annotations

import copy
from dataclasses import dataclass

from baton.genquery import Connection
from baton.model import BatonError, Collection, MetamodInput, Target


@dataclass(frozen=True)
class ChmodOptions:
    """Flags for :func:`chmod_one`.

    ``recursive`` applies the change to every descendant of a collection
    target; it is ignored for data objects, which have no children.
    """

    recursive: bool = False


def chmod_one(conn: Connection, target: Target, opts: ChmodOptions = ChmodOptions()) -> Target:
    """Apply each entry of ``target.access`` to the target.

    An empty or absent access list is a successful no-op. Stops at the first
    failing entry and raises its error; later entries are not applied. The
    target is returned unchanged on success.
    """
    recursive = opts.recursive and isinstance(target, Collection)
    for acl in list(target.access or ()):
        conn.mod_access_control(target, acl, recursive)
    return target


def chmod_one_annotated(
    conn: Connection, target: Target, opts: ChmodOptions = ChmodOptions()
) -> Target:
    """Like :func:`chmod_one`, but return the input annotated with the error on failure."""
    fallback = copy.deepcopy(target)
    try:
        return chmod_one(conn, target, opts)
    except BatonError as err:
        fallback.set_error(err)
        return fallback


def metamod_one(conn: Connection, request: MetamodInput) -> MetamodInput:
    """Add or remove every AVU of ``request`` on its target.

    An empty AVU list is a successful no-op. Stops at the first failure and
    raises it; AVUs already changed are not rolled back.
    """
    target = request.target()
    for avu in request.avus:
        conn.mod_avu(request.operation, target, avu)
    return request


def metamod_one_annotated(conn: Connection, request: MetamodInput) -> MetamodInput:
    """Like :func:`metamod_one`, but return the input annotated with the error on failure."""
    fallback = copy.deepcopy(request)
    try:
        return metamod_one(conn, request)
    except BatonError as err:
        fallback.error = err
        return fallback