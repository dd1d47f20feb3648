import pytest

from baton.genquery import Column, GenQuery, StatResult, ObjType, sql_escape
from baton.model import BatonError


def test_sql_escape_doubles_single_quotes():
    assert sql_escape("plain") == "plain"
    assert sql_escape("O'Brien") == "O''Brien"
    assert sql_escape("''") == "''''"


def test_sql_escape_leaves_other_characters():
    assert sql_escape("a\\b%_") == "a\\b%_"


def test_add_select_preserves_order():
    q = GenQuery()
    q.add_select(Column.DATA_REPL_NUM)
    q.add_select(Column.DATA_SIZE)
    q.add_select(Column.D_DATA_CHECKSUM)
    assert q.selects == [Column.DATA_REPL_NUM, Column.DATA_SIZE, Column.D_DATA_CHECKSUM]


def test_add_where_records_conditions_in_order():
    q = GenQuery()
    q.add_where(Column.COLL_NAME, "= '/testZone/home/irods'")
    q.add_where(Column.DATA_NAME, "= 'file.txt'")
    assert q.conditions == [
        (Column.COLL_NAME, "= '/testZone/home/irods'"),
        (Column.DATA_NAME, "= 'file.txt'"),
    ]


def test_add_where_rejects_nul():
    q = GenQuery()
    with pytest.raises(BatonError):
        q.add_where(Column.COLL_NAME, "= 'a\0b'")
    assert q.conditions == []


def test_fresh_queries_are_independent():
    a = GenQuery()
    b = GenQuery()
    a.add_select(Column.COLL_NAME)
    assert b.selects == []


def test_stat_result_defaults():
    s = StatResult(obj_type=ObjType.COLLECTION)
    assert (s.size, s.checksum) == (0, "")


def test_selected_columns_carry_catalog_names():
    q = GenQuery()
    q.add_select(Column.COLL_NAME)
    q.add_where(Column.DATA_NAME, "= 'f'")
    assert [c.value for c in q.selects] == ["COL_COLL_NAME"]
    assert q.conditions[0][0].value == "COL_DATA_NAME"