"""Unit tests for observed trace parsing."""

from __future__ import annotations

import json

import pytest

from x11parity.oracle.observed import (
    ObservedOperation,
    parse_observed_record,
    parse_observed_trace,
)
from x11parity.protocol.errors import TraceFormatError


class TestParseObservedRecord:
    def test_full_record(self) -> None:
        op = parse_observed_record(
            {"type": "polyLine", "args": [1, {"Foreground": 255}, [0, 0]], "strokeStyle": "#0000ff"}
        )
        assert op == ObservedOperation("polyLine", (1, {"Foreground": 255}, [0, 0]), None, "#0000ff")
        assert op.style == "#0000ff"

    def test_fill_style_takes_precedence(self) -> None:
        op = parse_observed_record({"type": "fillPoly", "fillStyle": "red", "strokeStyle": "blue"})
        assert op.style == "red"

    def test_empty_style_is_absent(self) -> None:
        op = parse_observed_record({"type": "mapWindow", "args": [1], "fillStyle": ""})
        assert op.style is None

    def test_missing_and_null_args(self) -> None:
        assert parse_observed_record({"type": "mapWindow"}).args == ()
        assert parse_observed_record({"type": "mapWindow", "args": None}).args == ()

    def test_to_dict(self) -> None:
        op = ObservedOperation("mapWindow", (1,), "#fff", None)
        assert op.to_dict() == {"type": "mapWindow", "args": [1], "fillStyle": "#fff", "strokeStyle": None}

    @pytest.mark.parametrize(
        "record, message",
        [
            ("mapWindow", "expected an object"),
            ({"args": []}, "type must be"),
            ({"type": ""}, "type must be"),
            ({"type": "mapWindow", "args": {"a": 1}}, "args must be a list"),
            ({"type": "mapWindow", "args": [None]}, "null argument"),
            ({"type": "mapWindow", "args": [[1, None]]}, r"arg 0\[1\]"),
            ({"type": "mapWindow", "fillStyle": 5}, "fillStyle must be a string"),
        ],
    )
    def test_malformed(self, record, message) -> None:
        with pytest.raises(TraceFormatError, match=message):
            parse_observed_record(record)


class TestParseObservedTrace:
    def test_json_text(self) -> None:
        trace = parse_observed_trace(json.dumps([{"type": "mapWindow", "args": [1]}]))
        assert [op.type for op in trace] == ["mapWindow"]

    def test_json_bytes(self) -> None:
        assert len(parse_observed_trace(b"[]")) == 0

    def test_invalid_json(self) -> None:
        with pytest.raises(TraceFormatError, match="not valid JSON"):
            parse_observed_trace("[{")

    def test_not_a_list(self) -> None:
        with pytest.raises(TraceFormatError, match="must be a list"):
            parse_observed_trace({"operations": []})

    def test_error_names_record_index(self) -> None:
        with pytest.raises(TraceFormatError, match="record 1"):
            parse_observed_trace([{"type": "mapWindow"}, {"type": 3}])

    def test_trace_format_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_observed_trace("nope")
