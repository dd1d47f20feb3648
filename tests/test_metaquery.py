from typing import Callable, List

import pytest

from baton.genquery import Column, GenQuery
from baton.metaquery import (
    MetaqueryFlags,
    acl_level_to_irods_name,
    condition_for,
    metaquery,
    operator_token,
)
from baton.model import (
    AccessQuery,
    AclLevel,
    AvuQuery,
    BatonError,
    Collection,
    DataObject,
    MetaqueryInput,
    Operator,
    TimestampQuery,
)


class FakeConnection:
    def __init__(self, responder: Callable[[GenQuery], List[List[str]]]):
        self.responder = responder
        self.queries: List[GenQuery] = []

    def query(self, query: GenQuery) -> List[List[str]]:
        self.queries.append(query)
        return self.responder(query)


def is_data_query(q: GenQuery) -> bool:
    return Column.DATA_NAME in q.selects


def attr_of(q: GenQuery) -> str:
    for column, cond in q.conditions:
        if column in (Column.META_DATA_ATTR_NAME, Column.META_COLL_ATTR_NAME):
            return cond
    return ""


def test_no_criteria_runs_no_query():
    conn = FakeConnection(lambda q: [["/z/c", "x"]])
    assert metaquery(conn, MetaqueryInput()) == []
    assert conn.queries == []


def test_operator_tokens():
    assert operator_token(Operator.EQUALS) == "="
    assert operator_token(Operator.NOT_LIKE) == "not like"
    assert operator_token(Operator.NUMERIC_GREATER_THAN_OR_EQUAL) == "n>="
    assert operator_token(Operator.LESS_THAN_OR_EQUAL) == "<="


def test_condition_for_escapes_literal():
    assert condition_for(Operator.EQUALS, "O'Brien") == "= 'O''Brien'"
    assert condition_for(Operator.LIKE, "a%") == "like 'a%'"


def test_condition_for_in_passes_list_through():
    assert condition_for(Operator.IN, "('a', 'b')") == "in ('a', 'b')"


def test_acl_level_names():
    assert acl_level_to_irods_name(AclLevel.READ) == "read object"
    assert acl_level_to_irods_name(AclLevel.WRITE) == "modify object"
    assert acl_level_to_irods_name(AclLevel.OWN) == "own"
    assert acl_level_to_irods_name(AclLevel.NULL) == "null"


def test_single_avu_searches_both_kinds():
    def responder(q):
        if is_data_query(q):
            return [["/z/c", "f1"]]
        return [["/z/c/sub"]]

    conn = FakeConnection(responder)
    query = MetaqueryInput(avus=[AvuQuery(attribute="a", value="v")])
    result = metaquery(conn, query)
    assert result == [
        DataObject(collection="/z/c", data_object="f1"),
        Collection(collection="/z/c/sub"),
    ]
    data_q, coll_q = conn.queries
    assert data_q.selects == [Column.COLL_NAME, Column.DATA_NAME]
    assert data_q.conditions == [
        (Column.META_DATA_ATTR_NAME, "= 'a'"),
        (Column.META_DATA_ATTR_VALUE, "= 'v'"),
    ]
    assert coll_q.selects == [Column.COLL_NAME]
    assert coll_q.conditions == [
        (Column.META_COLL_ATTR_NAME, "= 'a'"),
        (Column.META_COLL_ATTR_VALUE, "= 'v'"),
    ]


def test_units_and_operator_applied():
    conn = FakeConnection(lambda q: [])
    query = MetaqueryInput(
        avus=[AvuQuery(attribute="a", value="5", units="u", operator=Operator.NUMERIC_LESS_THAN)]
    )
    metaquery(conn, query, MetaqueryFlags(include_collections=False))
    assert len(conn.queries) == 1
    assert conn.queries[0].conditions == [
        (Column.META_DATA_ATTR_NAME, "= 'a'"),
        (Column.META_DATA_ATTR_VALUE, "n< '5'"),
        (Column.META_DATA_ATTR_UNITS, "= 'u'"),
    ]


def test_flags_restrict_to_collections():
    conn = FakeConnection(lambda q: [["/z/c"]])
    query = MetaqueryInput(avus=[AvuQuery(attribute="a", value="v")])
    result = metaquery(conn, query, MetaqueryFlags(include_data_objects=False))
    assert result == [Collection(collection="/z/c")]
    assert all(not is_data_query(q) for q in conn.queries)


def test_collection_scope_uses_like_prefix():
    conn = FakeConnection(lambda q: [])
    query = MetaqueryInput(avus=[AvuQuery(attribute="a", value="v")], collection="/z/it's")
    metaquery(conn, query)
    for q in conn.queries:
        assert (Column.COLL_NAME, "like '/z/it''s%'") in q.conditions


def test_timestamp_conditions_per_kind():
    conn = FakeConnection(lambda q: [])
    query = MetaqueryInput(
        timestamps=[
            TimestampQuery(created="01777320246", operator=Operator.GREATER_THAN),
            TimestampQuery(modified="01777320246", operator=Operator.LESS_THAN),
            TimestampQuery(),
        ]
    )
    metaquery(conn, query)
    data_q, coll_q = conn.queries
    assert data_q.conditions == [
        (Column.D_CREATE_TIME, "> '01777320246'"),
        (Column.D_MODIFY_TIME, "< '01777320246'"),
    ]
    assert coll_q.conditions == [
        (Column.COLL_CREATE_TIME, "> '01777320246'"),
        (Column.COLL_MODIFY_TIME, "< '01777320246'"),
    ]


def test_access_conditions_per_kind():
    conn = FakeConnection(lambda q: [])
    query = MetaqueryInput(
        access=[AccessQuery(owner="irods", level=AclLevel.READ, zone="testZone")]
    )
    metaquery(conn, query)
    data_q, coll_q = conn.queries
    assert data_q.conditions == [
        (Column.USER_NAME, "= 'irods'"),
        (Column.DATA_ACCESS_NAME, "= 'read object'"),
        (Column.USER_ZONE, "= 'testZone'"),
    ]
    assert coll_q.conditions == [
        (Column.COLL_USER_NAME, "= 'irods'"),
        (Column.COLL_ACCESS_NAME, "= 'read object'"),
        (Column.COLL_USER_ZONE, "= 'testZone'"),
    ]


def test_multi_avu_intersects_results():
    data_rows = {
        "= 'a'": [["/z/c", "f1"], ["/z/c", "f2"]],
        "= 'b'": [["/z/c", "f2"], ["/z/c", "f3"]],
    }
    coll_rows = {
        "= 'a'": [["/z/x"], ["/z/y"]],
        "= 'b'": [["/z/y"]],
    }

    def responder(q):
        table = data_rows if is_data_query(q) else coll_rows
        return table[attr_of(q)]

    conn = FakeConnection(responder)
    query = MetaqueryInput(
        avus=[AvuQuery(attribute="a", value="1"), AvuQuery(attribute="b", value="2")]
    )
    result = metaquery(conn, query)
    assert result == [
        DataObject(collection="/z/c", data_object="f2"),
        Collection(collection="/z/y"),
    ]
    # One subquery per AVU per kind, each with a single AVU criterion.
    assert len(conn.queries) == 4
    for q in conn.queries:
        names = [
            c for c, _ in q.conditions
            if c in (Column.META_DATA_ATTR_NAME, Column.META_COLL_ATTR_NAME)
        ]
        assert len(names) == 1


def test_multi_avu_short_circuits_on_empty():
    conn = FakeConnection(lambda q: [])
    query = MetaqueryInput(
        avus=[
            AvuQuery(attribute="a", value="1"),
            AvuQuery(attribute="b", value="2"),
            AvuQuery(attribute="c", value="3"),
        ]
    )
    assert metaquery(conn, query) == []
    assert len(conn.queries) == 2


def test_multi_avu_subqueries_carry_shared_criteria():
    conn = FakeConnection(lambda q: [["/z/c", "f"]] if is_data_query(q) else [["/z/c"]])
    query = MetaqueryInput(
        avus=[AvuQuery(attribute="a", value="1"), AvuQuery(attribute="b", value="2")],
        access=[AccessQuery(owner="irods", level=AclLevel.OWN)],
        collection="/z",
    )
    result = metaquery(conn, query)
    assert result == [
        DataObject(collection="/z/c", data_object="f"),
        Collection(collection="/z/c"),
    ]
    for q in conn.queries:
        assert (Column.COLL_NAME, "like '/z%'") in q.conditions
        assert any(cond == "= 'own'" for _, cond in q.conditions)


def test_nul_in_criterion_raises():
    conn = FakeConnection(lambda q: [])
    query = MetaqueryInput(avus=[AvuQuery(attribute="a\0b", value="v")])
    with pytest.raises(BatonError):
        metaquery(conn, query)
    assert conn.queries == []