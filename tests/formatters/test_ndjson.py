"""Tests for NDJSONFormatter."""

import json
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from kusto_tool.formatters import Formatter, NDJSONFormatter, dumps_record


@pytest.mark.unit
def test_ndjson_formatter_implements_protocol():
    assert isinstance(NDJSONFormatter(), Formatter)


@pytest.mark.unit
def test_one_line_per_record():
    records = [{"a": 1}, {"a": 2}, {"a": 3}]
    lines = list(NDJSONFormatter().format(records))
    assert lines == ['{"a":1}', '{"a":2}', '{"a":3}']


@pytest.mark.unit
def test_lazy_over_input():
    def records():
        yield {"a": 1}
        raise AssertionError("second record should not be pulled")

    lines = NDJSONFormatter().format(records())
    assert next(lines) == '{"a":1}'


@pytest.mark.unit
def test_keys_sorted_and_compact():
    line = dumps_record({"b": 1, "_table": "T", "a": [1, 2], "_rowIndex": 0})
    assert line == '{"_rowIndex":0,"_table":"T","a":[1,2],"b":1}'


@pytest.mark.unit
def test_same_record_same_bytes():
    first = {"x": {"z": 1, "y": 2}, "w": None}
    second = {"w": None, "x": {"y": 2, "z": 1}}
    assert dumps_record(first) == dumps_record(second)


@pytest.mark.unit
def test_no_embedded_newlines():
    line = dumps_record({"text": "line one\nline two"})
    assert "\n" not in line
    assert json.loads(line)["text"] == "line one\nline two"


@pytest.mark.unit
def test_non_ascii_kept():
    assert dumps_record({"city": "Zürich"}) == '{"city":"Zürich"}'


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (datetime(2024, 3, 1, 12, 0, tzinfo=UTC), "2024-03-01T12:00:00+00:00"),
        (date(2024, 3, 1), "2024-03-01"),
        (timedelta(minutes=1, seconds=30), 90.0),
        (Decimal("1.10"), "1.10"),
        (b"\x00\x01", "AAE="),
    ],
)
def test_non_json_values(value, expected):
    assert json.loads(dumps_record({"v": value}))["v"] == expected
