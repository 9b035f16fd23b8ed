"""Pytest-based serializer tests."""

import enum
import uuid
import weakref
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal

import pytest

from mocks import (
    ADV_STR,
    ARRAY_STRUCT,
    AdvArrayJson,
    AdvJson,
    AnnotatedSample,
    BASIC_STR,
    BasicArrayJson,
    BasicJson,
    DEFAULT_DICTIONARY,
    DEFAULT_STRING_LIST,
    DateTimeJson,
    EmptyJson,
    JsonFile,
    JsonPropertySample,
    LoosePoint,
    MyEnumKind,
    Node,
    ObjectEnum,
    PlainPoint,
    SampleStruct,
    Temperature,
    WithPrivate,
)
from shapejson import (
    NameCase,
    SerializationContext,
    serialize,
    serialize_excluding,
    serialize_only,
    to_json,
)
from shapejson.serialize import Serializer, escape, format_number

BASIC_A_OBJ_STR = '{"Id": 1,"Properties": ["One","Two","Babu"]}'


def _adv_obj() -> AdvJson:
    default = BasicJson.get_default()
    return AdvJson(
        StringData=default.StringData,
        IntData=default.IntData,
        NegativeInt=default.NegativeInt,
        DecimalData=default.DecimalData,
        BoolData=default.BoolData,
        InnerChild=BasicJson.get_default(),
    )


# ── to_json wrapper ──────────────────────────────────────────


def test_to_json_compact_matches_control_value():
    assert to_json(BasicJson.get_default(), False) == BASIC_STR


def test_to_json_defaults_to_pretty():
    assert to_json(BasicJson.get_default()) != BASIC_STR
    assert "\n" in to_json(BasicJson.get_default())


def test_to_json_of_none_is_empty_text():
    assert to_json(None) == ""


# ── serialize ────────────────────────────────────────────────


def test_string_list():
    assert serialize(DEFAULT_STRING_LIST) == '["A","B","C"]'


def test_numeric_list():
    assert serialize([1, 2, 3]) == "[1,2,3]"


def test_object_with_list():
    value = BasicArrayJson(Id=1, Properties=["One", "Two", "Babu"])
    assert serialize(value) == BASIC_A_OBJ_STR


def test_list_of_objects():
    value = [BasicJson.get_default(), BasicJson.get_default()]
    assert serialize(value) == f"[{BASIC_STR},{BASIC_STR}]"


def test_nested_object():
    assert serialize(_adv_obj()) == ADV_STR


def test_object_with_list_of_objects():
    value = AdvArrayJson(Id=1, Properties=[BasicJson.get_default(), BasicJson.get_default()])
    assert serialize(value) == '{"Id": 1,"Properties": [' + BASIC_STR + "," + BASIC_STR + "]}"


@pytest.mark.parametrize(
    "value,expected",
    [
        (1, "1"),
        (1.0, "1"),
        (2.5, "2.5"),
        (Decimal("10.330"), "10.33"),
        ("string", "string"),
        (True, "true"),
        (False, "false"),
        (None, "null"),
        (MyEnumKind.Three, "Three"),
    ],
)
def test_top_level_primitive_is_literal_text(value: object, expected: str):
    assert serialize(value) == expected


def test_date_member_is_iso_text():
    value = DateTimeJson(Date=datetime(2010, 1, 1))
    assert serialize(value) == '{"Date": "2010-01-01T00:00:00"}'


def test_struct_array():
    value = [SampleStruct(Value=1, Name="A"), SampleStruct(Value=2, Name="B")]
    assert serialize(value) == ARRAY_STRUCT


def test_struct():
    assert serialize(SampleStruct(Value=1, Name="DefaultStruct")) == (
        '{"Value": 1,"Name": "DefaultStruct"}'
    )


def test_empty_class():
    assert serialize(EmptyJson()) == "{ }"


def test_empty_containers():
    assert serialize({}) == "{ }"
    assert serialize([]) == "[ ]"
    assert serialize(iter(())) == "[ ]"
    assert serialize(x for x in ()) == "[ ]"


def test_json_property_directive():
    value = JsonPropertySample(Data="OK", IgnoredData="OK")
    assert serialize(value) == '{"data": "OK"}'


def test_annotated_directive():
    value = AnnotatedSample()
    value.Identifier = 7
    value.Secret = "s"
    value.Label = "x"
    assert serialize(value) == '{"id": 7,"Label": "x"}'


def test_enum_member_is_quoted_name():
    assert serialize(ObjectEnum(Id=1, MyEnum=MyEnumKind.Three)) == '{"Id": 1,"MyEnum": "Three"}'


def test_bytes_member_is_text():
    assert serialize(JsonFile(Data=b"DATA1", Filename="a.txt")) == (
        '{"Data": "DATA1","Filename": "a.txt"}'
    )


def test_type_member_is_qualified_name():
    assert serialize({"kind": str}) == '{"kind": "builtins.str"}'


def test_uuid_member_is_quoted():
    value = uuid.UUID(int=1)
    assert serialize([value]) == '["00000000-0000-0000-0000-000000000001"]'


def test_properties_are_serialized():
    value = Temperature()
    value.Celsius = 20.0
    assert serialize(value) == '{"Celsius": 20,"Fahrenheit": 68}'


def test_plain_class_members():
    value = PlainPoint()
    value.X = 3
    assert serialize(value) == '{"X": 3,"Y": 0}'


def test_dynamic_class_uses_instance_attributes():
    assert serialize(LoosePoint()) == '{"x": 0,"y": 0,"label": "origin"}'


def test_non_public_members_need_opt_in():
    value = WithPrivate(Visible="v", _hidden="h")
    assert serialize(value) == '{"Visible": "v"}'
    assert serialize(value, include_non_public=True) == '{"Visible": "v","_hidden": "h"}'


def test_dictionary_keeps_insertion_order():
    value = OrderedDict([("z", 1), ("a", 2)])
    assert serialize(value) == '{"z": 1,"a": 2}'


def test_dictionary_with_non_string_keys():
    assert serialize({MyEnumKind.One: 1, 2: "b"}) == '{"One": 1,"2": "b"}'


def test_nested_null():
    assert serialize([None, {"a": None}]) == '[null,{"a": null}]'


def test_non_finite_floats_are_null():
    assert serialize([float("nan"), float("inf")]) == "[null,null]"


def test_type_specifier():
    value = SampleStruct(Value=1, Name="A")
    assert serialize(value, type_specifier="$type") == (
        '{"$type": "mocks.SampleStruct","Value": 1,"Name": "A"}'
    )


@pytest.mark.parametrize(
    "case,expected",
    [
        (NameCase.NONE, '{"Value": 1,"Name": "A"}'),
        (NameCase.CAMEL, '{"value": 1,"name": "A"}'),
        (NameCase.PASCAL, '{"Value": 1,"Name": "A"}'),
        (NameCase.SNAKE, '{"value": 1,"name": "A"}'),
        ("camel", '{"value": 1,"name": "A"}'),
    ],
)
def test_name_case(case, expected: str):
    assert serialize(SampleStruct(Value=1, Name="A"), name_case=case) == expected


def test_name_case_on_compound_names():
    value = BasicJson.get_default()
    text = serialize(value, name_case=NameCase.SNAKE)
    assert text.startswith('{"string_data": ')
    assert '"negative_int": -1' in text
    text = serialize(value, name_case=NameCase.CAMEL)
    assert text.startswith('{"stringData": ')


def test_unknown_name_case_is_rejected():
    with pytest.raises(ValueError):
        serialize(SampleStruct(), name_case="kebab")


def test_pretty_layout():
    value = BasicArrayJson(Id=1, Properties=["One", "Two"])
    assert serialize(value, pretty=True) == (
        "{\n"
        '    "Id": 1,\n'
        '    "Properties": [\n'
        '        "One",\n'
        '        "Two"\n'
        "    ]\n"
        "}"
    )


def test_pretty_keeps_empty_literals():
    value = {"a": {}, "b": []}
    assert serialize(value, pretty=True) == '{\n    "a": { },\n    "b": [ ]\n}'


# ── cycles ───────────────────────────────────────────────────


def test_supplied_ancestor_weak_reference():
    instance = BasicJson.get_default()
    data = serialize(instance, False, None, False, None, None, [weakref.ref(instance)], NameCase.NONE)
    assert data.startswith('{ "$circref":')


def test_self_reference_emits_marker():
    root = Node(Name="root")
    root.Parent = root
    assert serialize(root) == '{"Name": "root","Parent": { "$circref": 0 },"Children": [ ]}'


def test_back_reference_through_list():
    root = Node(Name="root")
    child = Node(Name="child", Parent=root)
    root.Children.append(child)
    assert serialize(root) == (
        '{"Name": "root","Parent": null,"Children": '
        '[{"Name": "child","Parent": { "$circref": 0 },"Children": [ ]}]}'
    )


def test_list_containing_itself():
    items: list = [1]
    items.append(items)
    assert serialize(items) == '[1,{ "$circref": 0 }]'


def test_shared_instance_on_sibling_paths_is_written_twice():
    shared = SampleStruct(Value=1, Name="S")
    assert serialize([shared, shared]) == (
        '[{"Value": 1,"Name": "S"},{"Value": 1,"Name": "S"}]'
    )


def test_deep_cyclic_graph_terminates():
    head = Node(Name="0")
    current = head
    for i in range(1, 50):
        nxt = Node(Name=str(i), Parent=current)
        current.Children.append(nxt)
        current = nxt
    current.Children.append(head)
    text = serialize(head)
    assert text.count('"$circref"') == 50


def test_ancestor_stack_is_empty_after_call():
    context = SerializationContext()
    root = Node(Name="root")
    root.Children.append(Node(Name="leaf"))
    Serializer(context).serialize(root)
    assert context.ancestors == []


# ── serialize_only / serialize_excluding ─────────────────────


def test_serialize_only_object():
    names = ["StringData", "IntData", "NegativeInt"]
    assert serialize_only(BasicJson.get_default(), False, names) == (
        '{"StringData": "string,\\r\\ndata\\\\","IntData": 1,"NegativeInt": -1}'
    )


def test_serialize_only_keeps_declaration_order():
    names = ["NegativeInt", "StringData"]
    assert serialize_only(BasicJson.get_default(), False, names) == (
        '{"StringData": "string,\\r\\ndata\\\\","NegativeInt": -1}'
    )


def test_serialize_only_string_is_quoted_and_escaped():
    assert serialize_only("\b\t\f\0", True, None) == '"\\b\\t\\f\\u0000"'


def test_serialize_only_empty_string():
    assert serialize_only("", True, None) == '""'


def test_serialize_only_type():
    assert serialize_only(str, True, None) == '"builtins.str"'


def test_serialize_only_empty_enumerable():
    assert serialize_only(iter([]), True, None) == "[ ]"


def test_serialize_only_empty_dictionary():
    assert serialize_only({}, True, None) == "{ }"


def test_serialize_only_dictionary_of_dictionaries():
    persons = {"A": {}, "B": DEFAULT_DICTIONARY}
    assert serialize_only(persons, False, None) == (
        '{"A": { },"B": {"1": "A","2": "B","3": "C","4": "D","5": "E"}}'
    )


def test_serialize_only_dictionary_of_arrays():
    words = {"A": [[], list(DEFAULT_STRING_LIST)]}
    assert serialize_only(words, False, None) == '{"A": [[ ],["A","B","C"]]}'


def test_serialize_excluding_object():
    names = ["StringData", "IntData", "NegativeInt"]
    assert serialize_excluding(BasicJson.get_default(), False, names) == (
        '{"DecimalData": 10.33,"BoolData": true,"StringNull": null}'
    )


def test_filters_apply_to_nested_objects():
    text = serialize_excluding(_adv_obj(), False, ["StringData", "IntData", "NegativeInt"])
    inner = '{"DecimalData": 10.33,"BoolData": true,"StringNull": null}'
    assert text == (
        '{"DecimalData": 10.33,"BoolData": true,"StringNull": null,"InnerChild": ' + inner + "}"
    )


def test_filters_are_mutually_exclusive():
    with pytest.raises(ValueError):
        serialize(BasicJson(), include_names=["IntData"], exclude_names=["BoolData"])


@pytest.mark.parametrize("value", ["x", 1, None, MyEnumKind.One])
def test_filters_are_mutually_exclusive_for_scalars(value: object):
    with pytest.raises(ValueError):
        serialize(value, include_names=["a"], exclude_names=["b"])


# ── helpers ──────────────────────────────────────────────────


def test_escape_control_and_unicode():
    assert escape('"\\\n\x01') == '\\"\\\\\\n\\u0001'
    assert escape("é") == "é"
    assert escape("é", escape_unicode=True) == "\\u00e9"
    assert escape("\U0001F600", escape_unicode=True) == "\\ud83d\\ude00"


@pytest.mark.parametrize(
    "value,expected",
    [
        (0, "0"),
        (-7, "-7"),
        (3.0, "3"),
        (-0.5, "-0.5"),
        (0.1, "0.1"),
        (1e20, "1e+20"),
        (Decimal("2.50"), "2.5"),
        (Decimal("100"), "100"),
    ],
)
def test_format_number(value, expected: str):
    assert format_number(value) == expected


def test_date_only():
    assert serialize([date(2020, 2, 29)]) == '["2020-02-29"]'


def test_int_enum_member():
    class Level(enum.IntEnum):
        LOW = 1

    assert serialize({"level": Level.LOW}) == '{"level": "LOW"}'
