"""
Tests for job records and option bags.
"""

import pytest

from jobstore.models import FieldKind, JobOptions, JobRecord, OptionField


def test_infer_field_kinds():
    """Plain values map to the matching field kind."""
    assert OptionField.infer("abc").kind is FieldKind.STRING
    assert OptionField.infer(3).kind is FieldKind.INT
    assert OptionField.infer(True).kind is FieldKind.BOOL
    assert OptionField.infer(["a", "b"]).kind is FieldKind.STRING_ARRAY


def test_bool_is_not_an_int_field():
    with pytest.raises(TypeError):
        OptionField(FieldKind.INT, True)


def test_array_elements_must_be_strings():
    with pytest.raises(TypeError):
        OptionField(FieldKind.STRING_ARRAY, ["a", 1])
    with pytest.raises(TypeError):
        OptionField(FieldKind.STRING_ARRAY, "not-a-list")


def test_array_is_stored_as_tuple():
    option = OptionField(FieldKind.STRING_ARRAY, ["-schema", "test"])
    assert option.value == ("-schema", "test")


def test_kind_accepts_plain_string():
    assert OptionField("int", 5).kind is FieldKind.INT


def test_options_mapping_behaviour():
    options = JobOptions.from_mapping({"table": "emp", "num_mappers": 8, "extra_args": []})
    
    assert "table" in options
    assert len(options) == 3
    assert options["num_mappers"] == 8
    assert options["extra_args"] == ()
    assert options.get("missing", "dflt") == "dflt"
    assert list(options) == ["table", "num_mappers", "extra_args"]
    assert options.field("table") == OptionField(FieldKind.STRING, "emp")


def test_options_equality_ignores_insertion_order():
    a = JobOptions.from_mapping({"x": "1", "y": 2})
    b = JobOptions.from_mapping({"y": 2, "x": "1"})
    assert a == b


def test_options_equality_respects_kind():
    """A string "1" and an int 1 are different options."""
    assert JobOptions.from_mapping({"x": "1"}) != JobOptions.from_mapping({"x": 1})


def test_option_name_must_be_non_empty():
    with pytest.raises(ValueError):
        JobOptions().set_string("", "x")


def test_remove_option():
    options = JobOptions.from_mapping({"x": "1"})
    options.remove("x")
    options.remove("never-there")
    assert len(options) == 0


def test_record_requires_tool():
    with pytest.raises(ValueError):
        JobRecord(tool="")


def test_record_accepts_plain_mapping():
    record = JobRecord(tool="import", options={"table": "emp"})
    assert isinstance(record.options, JobOptions)
    assert record.options["table"] == "emp"


def test_record_dict_conversion():
    record = JobRecord(tool="export", options={"direct": True, "extra_args": ["--", "-x"]})
    data = record.to_dict()
    
    assert data == {"tool": "export", "options": {"direct": True, "extra_args": ["--", "-x"]}}
    assert JobRecord.from_dict(data) == record
