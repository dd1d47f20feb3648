# baton

Operations on iRODS data objects and collections. The package covers four
kinds of work:

- listing a record, with optional metadata
- searching the catalog by metadata, timestamps and access
- reading and writing data object contents
- changing access control lists and AVUs

Every operation takes a connection object. The package defines the interface
that connection must have, but it does not provide one (see
[What is not included](#what-is-not-included)).

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The connection

`baton.genquery.Connection` is a `typing.Protocol`. A connection must provide
these methods:

- `stat(path)` returns a `StatResult`.
- `query(genquery)` returns a list of rows. Each row is a list of strings, in
  the order the columns were selected.
- `open_data_object(path, mode)`, `read_data_object(handle, size)`,
  `write_data_object(handle, data)` and `close_data_object(handle)` handle the
  contents of a data object.
- `checksum_data_object(path)` returns the server-side checksum.
- `mod_access_control(target, acl, recursive)` applies one ACL entry.
- `mod_avu(operation, target, avu)` adds or removes one AVU.

A connection raises `baton.model.BatonError` to report a failure.

Catalog queries are built with `baton.genquery.GenQuery`:

- `add_select(column)` adds a `Column` to the selection.
- `add_where(column, condition)` adds a condition such as `= 'value'`. All
  conditions are ANDed. A condition that contains a NUL byte raises
  `BatonError`.
- `sql_escape(s)` doubles single quotes. Use it on text that goes inside a
  quoted literal.

## Records

Inputs and outputs are records from `baton.model`:

- `DataObject(collection, data_object, ...)` is a data object. Its `path()` is
  `collection/data_object`.
- `Collection(collection, ...)` is a collection. Its `path()` is the
  collection path.

Each record has optional fields that an operation fills in when asked:

- on both kinds: `avus`, `access`, `timestamps`
- on data objects only: `size`, `checksum`, `replicates`, `data`, `directory`
- on collections only: `contents`

Every operation has an `_annotated` variant. When the operation fails, the
variant does not raise. It returns a copy of the input record with its `error`
field set to the `BatonError`, so a stream of records can carry on past a bad
one.

## Listing

```python
from baton.listing import ListOptions, list_one_annotated
from baton.model import Collection

opts = ListOptions(acl=True, avu=True, contents=True)
result = list_one_annotated(conn, Collection(collection="/zone/home/user"), opts)
```

`list_one` stats the path first, then fills in the fields you asked for.

Size and checksum:

- `size` and `checksum` apply to data objects only.
- Their values come from the highest-numbered replica whose status is `"1"`.
- When no replica has that status, the values come from `stat`.
- An empty checksum leaves the field unset.

Other options:

- `avu` and `acl` fill in `avus` and `access`. Empty units and empty zones
  become `None`.
- `replicate` fills in `replicates`. It is ignored for collections.
- `timestamp` adds two `Timestamp` entries for each catalog row: one with
  `created` set and one with `modified` set. On data objects both entries are
  tagged with the replica number.
- `contents` lists the direct sub-collections of a collection, then its data
  objects. Each child carries only its path. This option is ignored for data
  objects.

`enrich_with_metadata(conn, target, opts)` applies only the `avu`, `acl`,
`replicate` and `timestamp` options. It takes an `EnrichOptions`, which you can
get from a `ListOptions` with `ListOptions.enrich_options()`.

`parse_acl_level` accepts the compact, verbose and underscore forms of access
level names, such as `read`, `read object` and `read_object`. Any other name
raises `BatonError`.

## Metadata search

```python
from baton.metaquery import MetaqueryFlags, metaquery
from baton.model import AvuQuery, MetaqueryInput, Operator

query = MetaqueryInput(avus=[AvuQuery(attribute="sample", value="12345",
                                      operator=Operator.EQUALS)])
matches = metaquery(conn, query, MetaqueryFlags(include_collections=False))
```

A query can combine three kinds of criteria:

- `AvuQuery`: an attribute and value, with optional units and an operator.
- `TimestampQuery`: `created` and/or `modified` with an operator. The values
  are passed to the catalog unchanged.
- `AccessQuery`: an owner and level, with an optional zone.

How the search runs:

- If `collection` is set, the search is limited to paths that start with it.
  The `zone` field is not applied.
- Each AVU criterion beyond the first runs as its own catalog query, and the
  results are intersected. The search stops early once the intersection is
  empty.
- A query with no criteria returns an empty list without contacting the
  catalog.
- Matching data objects come before matching collections.

How values are written into conditions:

- For `Operator.IN`, the value must already be a parenthesised list literal.
  It is passed through unescaped.
- For every other operator, the value is quoted and escaped.

## Transfer

`baton.transfer.get_one(conn, target, opts)` reads a data object:

- By default it returns the contents base64-encoded in `data`.
- With `GetOptions(save=True)` it writes the contents to
  `<directory>/<data_object>` and leaves `data` unset. The `directory` field
  is required, and the directory must already exist.

`put_one(conn, target, opts)` uploads `<directory>/<data_object>` to the data
object:

- `PutOptions(checksum=True)` records the server's checksum in `checksum`.
- `verify=True` also hashes the file with MD5 as it uploads and compares the
  result with the server's checksum. A mismatch raises `BatonError` naming both
  digests. The uploaded bytes are left in place.

Both functions reject collections.

`checksums_match(client_hex, server)` compares two checksums:

- Case is ignored (ASCII only).
- Any prefix up to the first colon in the server value is dropped, such as
  `MD5:`.

`verify_checksum` raises `BatonError` when the two do not match.

## Permissions and metadata changes

`baton.permissions.chmod_one(conn, target, opts)` applies each entry of the
record's `access` list:

- It stops at the first failing entry.
- `ChmodOptions(recursive=True)` only has an effect on collections.
- An empty or missing list does nothing.

`metamod_one(conn, request)` applies each AVU of a `MetamodInput`:

- `MetamodOperation.ADD` adds the AVUs and `MetamodOperation.REMOVE` removes
  them.
- The target is a data object when `data_object` is set, and otherwise a
  collection.
- It stops at the first failure. AVUs already changed stay changed.

## What is not included

This is a library only:

- It has no connection to an iRODS server. It does not authenticate or
  reconnect. You must supply a `Connection`.
- It has no command-line programs.
- It does not read or write a JSON stream of records.
- It does not convert records to or from JSON.