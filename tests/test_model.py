import pytest

from baton.model import (
    Acl,
    AclLevel,
    AvuQuery,
    Avu,
    BatonError,
    Collection,
    DataObject,
    MetamodInput,
    MetamodOperation,
    MetaqueryInput,
    Operator,
    TimestampQuery,
)


def test_data_object_path_joins_collection_and_name():
    d = DataObject(collection="/testZone/home/irods", data_object="file.txt")
    assert d.path() == "/testZone/home/irods/file.txt"


def test_collection_path_is_collection():
    c = Collection(collection="/testZone/home/irods")
    assert c.path() == "/testZone/home/irods"


def test_optional_fields_default_to_none():
    d = DataObject(collection="/a", data_object="b")
    assert (d.size, d.checksum, d.data, d.directory, d.error) == (None,) * 5
    c = Collection(collection="/a")
    assert (c.avus, c.access, c.timestamps, c.contents, c.error) == (None,) * 5


def test_set_error_attaches_error():
    err = BatonError("USER_FILE_DOES_NOT_EXIST", code=-310000)
    c = Collection(collection="/missing")
    c.set_error(err)
    assert c.error.code == -310000
    assert c.error.message == "USER_FILE_DOES_NOT_EXIST"

    d = DataObject(collection="/a", data_object="b")
    d.set_error(err)
    assert d.error == err


def test_baton_error_defaults():
    err = BatonError("boom")
    assert err.code == -1
    assert err.message == "boom"
    assert "boom" in str(err)


def test_baton_error_equality():
    assert BatonError("x", 2) == BatonError("x", 2)
    assert not (BatonError("x", 2) == BatonError("x", 3))


def test_acl_level_from_json_values():
    assert AclLevel("read") is AclLevel.READ
    assert AclLevel("write") is AclLevel.WRITE
    assert AclLevel("own") is AclLevel.OWN
    assert AclLevel("null") is AclLevel.NULL
    with pytest.raises(ValueError):
        AclLevel("inherit")


def test_operator_from_json_values():
    assert Operator("=") is Operator.EQUALS
    assert Operator("not like") is Operator.NOT_LIKE
    assert Operator("n>=") is Operator.NUMERIC_GREATER_THAN_OR_EQUAL


def test_query_defaults():
    q = AvuQuery(attribute="sample", value="12345")
    assert q.operator is Operator.EQUALS
    assert TimestampQuery(created="01777320246").operator is Operator.EQUALS
    m = MetaqueryInput()
    assert (m.avus, m.timestamps, m.access, m.collection) == ([], [], [], None)


def test_metaquery_input_lists_are_independent():
    a = MetaqueryInput()
    b = MetaqueryInput()
    a.avus.append(AvuQuery(attribute="x", value="y"))
    assert b.avus == []


def test_metamod_target_data_object():
    req = MetamodInput(
        operation=MetamodOperation.ADD,
        collection="/testZone/home/irods",
        data_object="f",
        avus=[Avu(attribute="lane", value="7")],
    )
    target = req.target()
    assert isinstance(target, DataObject)
    assert target.path() == "/testZone/home/irods/f"


def test_metamod_target_collection():
    req = MetamodInput(operation=MetamodOperation.REMOVE, collection="/testZone/c")
    target = req.target()
    assert isinstance(target, Collection)
    assert target.path() == "/testZone/c"


def test_acl_zone_optional():
    acl = Acl(owner="irods", level=AclLevel.OWN)
    assert acl.zone is None
    assert Acl(owner="irods", level=AclLevel.OWN, zone="testZone").zone == "testZone"