"""
Tests for the job record codec.
"""

import random

import pytest

from jobstore.errors import CorruptRecordError
from jobstore.models import FieldKind, JobOptions, JobRecord
from jobstore.storage.codec import (
    SCHEMA_CLASS,
    TOOL_PROPERTY,
    PropertyRow,
    decode_job,
    encode_job,
)

from conftest import make_job


def test_encode_layout():
    """Tool row first, scalars with NULL index, arrays with header and positions."""
    record = JobRecord(tool="import", options={"table": "emp", "extra_args": ["-schema", "test"]})
    rows = encode_job("job1", record)
    
    assert rows == [
        PropertyRow("job1", TOOL_PROPERTY, "import", SCHEMA_CLASS, None),
        PropertyRow("job1", "table", "emp", "string", None),
        PropertyRow("job1", "extra_args", "2", "string_array", None),
        PropertyRow("job1", "extra_args", "-schema", "string_array", 0),
        PropertyRow("job1", "extra_args", "test", "string_array", 1),
    ]


def test_encode_bool_and_int():
    record = JobRecord(tool="import", options={"direct": True, "num_mappers": -3})
    values = {row.prop_name: row.prop_val for row in encode_job("j", record)}
    
    assert values["direct"] == "true"
    assert values["num_mappers"] == "-3"


def test_decode_restores_every_field():
    record = make_job()
    assert decode_job("job1", encode_job("job1", record)) == record


def test_decode_orders_array_by_position_not_arrival():
    args = [f"arg{i}" for i in range(12)]
    record = JobRecord(tool="import", options={"extra_args": args})
    rows = encode_job("job1", record)
    random.Random(7).shuffle(rows)
    
    decoded = decode_job("job1", rows)
    assert decoded.options["extra_args"] == tuple(args)


def test_empty_array_survives():
    record = JobRecord(tool="version", options={"extra_args": []})
    decoded = decode_job("j", encode_job("j", record))
    
    assert decoded.options.field("extra_args").kind is FieldKind.STRING_ARRAY
    assert decoded.options["extra_args"] == ()


def test_strings_are_kept_verbatim():
    """Empty strings and values that look like other kinds stay strings."""
    record = JobRecord(tool="import", options={"where": "", "limit": "10", "flag": "true"})
    assert decode_job("j", encode_job("j", record)) == record


def test_unknown_property_class_is_ignored():
    rows = encode_job("j", JobRecord(tool="import", options={"table": "emp"}))
    rows.append(PropertyRow("j", "hive.table", "x", "hive_config"))
    
    decoded = decode_job("j", rows)
    assert decoded.options == JobOptions.from_mapping({"table": "emp"})


def test_legacy_schema_property_is_ignored():
    rows = encode_job("j", JobRecord(tool="import"))
    rows.append(PropertyRow("j", "property.set.id", "0", SCHEMA_CLASS))
    
    assert decode_job("j", rows) == JobRecord(tool="import")


def test_plain_tuples_are_accepted():
    rows = [tuple(row) for row in encode_job("j", make_job())]
    assert decode_job("j", rows) == make_job()


@pytest.mark.parametrize(
    "rows",
    [
        pytest.param([], id="no-rows"),
        pytest.param([PropertyRow("j", "table", "emp", "string")], id="no-tool"),
        pytest.param(
            [PropertyRow("j", TOOL_PROPERTY, "", SCHEMA_CLASS)],
            id="empty-tool",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", TOOL_PROPERTY, "export", SCHEMA_CLASS),
            ],
            id="two-tools",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", "num_mappers", "four", "int"),
            ],
            id="bad-int",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", "direct", "yes", "bool"),
            ],
            id="bad-bool",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", "table", None, "string"),
            ],
            id="null-scalar",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", "table", "a", "string"),
                PropertyRow("j", "table", "b", "string"),
            ],
            id="duplicate-scalar",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", "table", "a", "string"),
                PropertyRow("j", "table", "1", "int"),
            ],
            id="mixed-kinds",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", "args", "3", "string_array"),
                PropertyRow("j", "args", "a", "string_array", 0),
                PropertyRow("j", "args", "c", "string_array", 2),
            ],
            id="array-gap",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", "args", "a", "string_array", 0),
            ],
            id="array-no-header",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", "extra_args", "-1", "string_array"),
            ],
            id="array-negative-length",
        ),
        pytest.param(
            [
                PropertyRow("j", TOOL_PROPERTY, "import", SCHEMA_CLASS),
                PropertyRow("j", "args", "1", "string_array"),
                PropertyRow("j", "args", "a", "string_array", 0),
                PropertyRow("j", "args", "b", "string_array", 0),
            ],
            id="array-duplicate-position",
        ),
        pytest.param(
            [PropertyRow("other", TOOL_PROPERTY, "import", SCHEMA_CLASS)],
            id="foreign-row",
        ),
    ],
)
def test_malformed_rows_raise(rows):
    with pytest.raises(CorruptRecordError) as excinfo:
        decode_job("j", rows)
    assert excinfo.value.job_name == "j"
