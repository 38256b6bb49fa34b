from __future__ import annotations

from dataclasses import dataclass, field, fields

import pytest

from boilquery.mapping import (
    assign_from_mapping,
    bind_mapping,
    get_boil_tag,
    make_struct_mapping,
    un_title_case,
    values_from_mapping,
)


@dataclass
class Nested2:
    nose: str = ""


@dataclass
class Nested:
    last_name: str = field(default="", metadata={"boil": "different"})
    awesome_name: str = field(default="", metadata={"boil": "awesome_name"})
    face: str = field(default="", metadata={"boil": "-"})
    nose: str = ""
    nested2: Nested2 = field(default_factory=Nested2, metadata={"boil": ",bind"})


@dataclass
class Outer:
    last_name: str = field(default="", metadata={"boil": "different"})
    awesome_name: str = field(default="", metadata={"boil": "awesome_name"})
    face: str = field(default="", metadata={"boil": "-"})
    nose: str = ""
    nested: Nested = field(default_factory=Nested, metadata={"boil": ",bind"})


@dataclass
class NestedPtrs:
    int_: int = field(default=0, metadata={"boil": "int"})
    int_p: int | None = None
    nested_ptrs_p: NestedPtrs | None = None


@dataclass
class TagStruct:
    first_name: str = field(default="", metadata={"boil": "test_one,bind"})
    last_name: str = field(default="", metadata={"boil": "test_two"})
    middle_name: str = field(default="", metadata={"boil": "middle_name,bind"})
    awesome_name: str = field(default="", metadata={"boil": "awesome_name"})
    age: str = field(default="", metadata={"boil": ",bind"})
    face: str = field(default="", metadata={"boil": "-"})
    nose: str = ""


def test_make_struct_mapping():
    got = make_struct_mapping(Outer)
    assert got == {
        "different": ("last_name",),
        "awesome_name": ("awesome_name",),
        "nose": ("nose",),
        "nested.different": ("nested", "last_name"),
        "nested.awesome_name": ("nested", "awesome_name"),
        "nested.nose": ("nested", "nose"),
        "nested.nested2.nose": ("nested", "nested2", "nose"),
    }


def test_make_struct_mapping_accepts_instance():
    assert make_struct_mapping(Outer()) == make_struct_mapping(Outer)


def test_make_struct_mapping_rejects_non_dataclass():
    with pytest.raises(TypeError):
        make_struct_mapping(int)


def test_get_boil_tag():
    expect = [
        ("test_one", True),
        ("test_two", False),
        ("middle_name", True),
        ("awesome_name", False),
        ("", True),
        ("-", False),
        ("", False),
    ]
    assert [get_boil_tag(f) for f in fields(TagStruct)] == expect


def test_bind_mapping_exact_suffix_and_missing():
    mapping = make_struct_mapping(Outer)
    got = bind_mapping(mapping, ["different", "awesome_name", "unknown", "nested2.nose"])
    assert got == [
        ("last_name",),
        ("awesome_name",),
        None,
        ("nested", "nested2", "nose"),
    ]


def test_values_from_mapping():
    val = NestedPtrs(int_=5, int_p=0, nested_ptrs_p=NestedPtrs(int_=6, int_p=0))
    mapping = [
        ("int_",),
        ("int_p",),
        ("nested_ptrs_p", "int_"),
        ("nested_ptrs_p", "int_p"),
        None,
    ]
    assert values_from_mapping(val, mapping) == [5, 0, 6, 0, None]


def test_values_from_mapping_missing_nested_reads_defaults():
    val = NestedPtrs(int_=5)
    assert values_from_mapping(val, [("nested_ptrs_p", "int_")]) == [0]
    assert val.nested_ptrs_p is None


def test_assign_from_mapping_creates_nested():
    val = NestedPtrs()
    mapping = [("int_",), ("nested_ptrs_p", "int_"), None]
    assign_from_mapping(val, mapping, [5, 6, "ignored"])
    assert val.int_ == 5
    assert val.nested_ptrs_p == NestedPtrs(int_=6)


def test_assign_then_read_round_trip():
    obj = Outer()
    paths = bind_mapping(make_struct_mapping(Outer), ["different", "nested.nose", "nested.nested2.nose"])
    assign_from_mapping(obj, paths, ["a", "b", "c"])
    assert values_from_mapping(obj, paths) == ["a", "b", "c"]


def test_assign_from_mapping_length_mismatch():
    with pytest.raises(ValueError):
        assign_from_mapping(NestedPtrs(), [("int_",)], [1, 2])


@pytest.mark.parametrize(
    "given, expected",
    [
        ("HelloThere", "hello_there"),
        ("", ""),
        ("AA", "aa"),
        ("FunID", "fun_id"),
        ("UID", "uid"),
        ("GUID", "guid"),
        ("UUID", "uuid"),
        ("SSN", "ssn"),
        ("TZ", "tz"),
        ("ThingGUID", "thing_guid"),
        ("GUIDThing", "guid_thing"),
        ("ThingGUIDThing", "thing_guid_thing"),
        ("ID", "id"),
        ("GVZXC", "gvzxc"),
        ("IDTRGBID", "id_trgb_id"),
        ("ThingZXCStuffVXZ", "thing_zxc_stuff_vxz"),
        ("ZXCThingVXZStuff", "zxc_thing_vxz_stuff"),
        ("ZXCVDF9C9Hello9", "zxcvdf9_c9_hello9"),
        ("ID9UID911GUID9E9", "id9_uid911_guid9_e9"),
        ("ZXCVDF0C0Hello0", "zxcvdf0_c0_hello0"),
        ("ID0UID000GUID0E0", "id0_uid000_guid0_e0"),
        ("Ab5ZXC5D5", "ab5_zxc5_d5"),
        ("Identifier", "identifier"),
    ],
)
def test_un_title_case(given, expected):
    assert un_title_case(given) == expected