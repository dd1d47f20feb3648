"""Moving data object bytes between the catalog and the local filesystem."""

from __future__ import annotations

import base64
import copy
import hashlib
import os
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from baton.genquery import Connection, OpenMode
from baton.model import BatonError, Collection, DataObject, Target

CHUNK_SIZE = 64 * 1024

_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


@dataclass(frozen=True)
class GetOptions:
    """Flags for :func:`get_one`.

    With ``save`` set, bytes are written to ``<directory>/<data_object>`` on
    the local host and the ``data`` field is left unset; otherwise they are
    returned base64-encoded in ``data``.
    """

    save: bool = False


@dataclass(frozen=True)
class PutOptions:
    """Flags for :func:`put_one`.

    ``checksum`` records the server-side checksum on the output. ``verify``
    also hashes the uploaded bytes locally and compares; it implies
    ``checksum`` on the output.
    """

    checksum: bool = False
    verify: bool = False


def _require_data_object(target: Target, command: str) -> DataObject:
    if isinstance(target, Collection):
        raise BatonError(
            f"{command}: target is a collection, not a data object: {target.collection}"
        )
    return target


def _local_path(d: DataObject, command: str, verb: str) -> Path:
    if d.directory is None:
        raise BatonError(
            f"{command} requires a `directory` field on each input record"
            if verb == "put"
            else f"{command} --save requires a `directory` field on each input record"
        )
    return Path(d.directory) / d.data_object


def _read_chunks(conn: Connection, handle: int) -> Iterator[bytes]:
    while True:
        chunk = conn.read_data_object(handle, CHUNK_SIZE)
        if not chunk:
            return
        yield chunk


def _close_quietly(conn: Connection, handle: int) -> None:
    with suppress(BatonError):
        conn.close_data_object(handle)


def _save_to_file(conn: Connection, path: str, local_path: Path) -> None:
    try:
        out = open(local_path, "wb")
    except OSError as e:
        raise BatonError(f"could not create local file {local_path}: {e}") from e

    with out:
        handle = conn.open_data_object(path, OpenMode.READ)
        try:
            for chunk in _read_chunks(conn, handle):
                try:
                    out.write(chunk)
                except OSError as e:
                    raise BatonError(f"writing local file: {e}") from e
        finally:
            _close_quietly(conn, handle)

        try:
            out.flush()
            os.fsync(out.fileno())
        except OSError as e:
            raise BatonError(f"flushing local file {local_path}: {e}") from e


def _read_inline(conn: Connection, path: str) -> bytes:
    handle = conn.open_data_object(path, OpenMode.READ)
    try:
        return b"".join(_read_chunks(conn, handle))
    finally:
        _close_quietly(conn, handle)


def get_one(conn: Connection, target: Target, opts: GetOptions = GetOptions()) -> Target:
    """Read a data object's bytes, inline as base64 or saved to a local file.

    Collections are rejected. In save mode the local directory must already
    exist.
    """
    d = _require_data_object(target, "baton-get")
    path = d.path()

    if opts.save:
        _save_to_file(conn, path, _local_path(d, "baton-get", "get"))
    else:
        d.data = base64.b64encode(_read_inline(conn, path)).decode("ascii")
    return d


def get_one_annotated(
    conn: Connection, target: Target, opts: GetOptions = GetOptions()
) -> Target:
    """Like :func:`get_one`, but return the input annotated with the error on failure."""
    fallback = copy.deepcopy(target)
    try:
        return get_one(conn, target, opts)
    except BatonError as err:
        fallback.set_error(err)
        return fallback


def _stream_file_to_handle(
    conn: Connection, handle: int, source: BinaryIO, digest: Optional["hashlib._Hash"]
) -> None:
    while True:
        try:
            chunk = source.read(CHUNK_SIZE)
        except OSError as e:
            raise BatonError(f"reading local file: {e}") from e
        if not chunk:
            return
        if digest is not None:
            digest.update(chunk)
        view = memoryview(chunk)
        while view:
            accepted = conn.write_data_object(handle, bytes(view))
            if accepted == 0:
                raise BatonError(
                    "rcDataObjWrite accepted 0 bytes; aborting to avoid spinning"
                )
            view = view[accepted:]


def put_one(conn: Connection, target: Target, opts: PutOptions = PutOptions()) -> Target:
    """Upload ``<directory>/<data_object>`` to the target data object.

    With ``checksum`` or ``verify`` the server's checksum is recorded on the
    output; with ``verify`` a mismatch against the local MD5 raises. Bytes
    already uploaded are left in place on failure.
    """
    d = _require_data_object(target, "baton-put")
    path = d.path()
    local_path = _local_path(d, "baton-put", "put")

    try:
        source = open(local_path, "rb")
    except OSError as e:
        raise BatonError(f"could not open local file {local_path}: {e}") from e

    digest = hashlib.md5(usedforsecurity=False) if opts.verify else None

    with source:
        handle = conn.open_data_object(path, OpenMode.WRITE)
        try:
            _stream_file_to_handle(conn, handle, source, digest)
        except BaseException:
            _close_quietly(conn, handle)
            raise
        conn.close_data_object(handle)

    if opts.checksum or opts.verify:
        server_checksum = conn.checksum_data_object(path)
        if digest is not None:
            verify_checksum(digest.hexdigest(), server_checksum)
        d.checksum = server_checksum
    return d


def put_one_annotated(
    conn: Connection, target: Target, opts: PutOptions = PutOptions()
) -> Target:
    """Like :func:`put_one`, but return the input annotated with the error on failure."""
    fallback = copy.deepcopy(target)
    try:
        return put_one(conn, target, opts)
    except BatonError as err:
        fallback.set_error(err)
        return fallback


def checksums_match(client_hex: str, server: str) -> bool:
    """Compare a client hex digest with a server checksum, ignoring ASCII case
    and any algorithm prefix before the first colon on the server side."""
    _, sep, rest = server.partition(":")
    server_digest = rest if sep else server
    return client_hex.translate(_ASCII_LOWER) == server_digest.translate(_ASCII_LOWER)


def verify_checksum(client_hex: str, server: str) -> None:
    """Raise BatonError naming both digests if they do not match."""
    if not checksums_match(client_hex, server):
        raise BatonError(
            f"checksum mismatch after put: client {client_hex} != server {server}"
        )