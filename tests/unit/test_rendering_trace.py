"""Unit tests for trace argument kinds, the operation log and GC colors."""

from __future__ import annotations

import msgpack
import pytest

from x11parity.protocol.errors import TraceFormatError
from x11parity.rendering import (
    AttrMap,
    CoordList,
    GCColorTable,
    Operation,
    OperationLog,
    Scalar,
    Text,
    TextItem,
    TextItemList,
    coerce_arg,
)

# ======================================================================
# Argument kinds
# ======================================================================


class TestCoerceArg:
    def test_int_is_scalar(self) -> None:
        assert coerce_arg(5) == Scalar(5)

    def test_str_is_text(self) -> None:
        assert coerce_arg("fixed") == Text("fixed")

    def test_int_list_is_coord_list(self) -> None:
        assert coerce_arg([1, -2, 3]) == CoordList((1, -2, 3))

    def test_empty_list_is_coord_list(self) -> None:
        assert coerce_arg([]) == CoordList(())

    def test_dict_is_attr_map(self) -> None:
        assert coerce_arg({"Foreground": 255}) == AttrMap({"Foreground": 255})

    def test_list_of_dicts_is_text_item_list(self) -> None:
        arg = coerce_arg([{"delta": 0, "text": "a"}, {"delta": 10, "text": "b"}])
        assert arg == TextItemList((TextItem(0, "a"), TextItem(10, "b")))

    def test_wrapped_arg_unchanged(self) -> None:
        arg = CoordList((1, 2))
        assert coerce_arg(arg) is arg

    @pytest.mark.parametrize("value", [True, None, 1.5, object()])
    def test_unsupported_values_raise(self, value) -> None:
        with pytest.raises(TraceFormatError):
            coerce_arg(value)

    def test_mixed_list_raises(self) -> None:
        with pytest.raises(TraceFormatError, match="mixes"):
            coerce_arg([1, "a"])

    def test_text_item_with_extra_key_raises(self) -> None:
        with pytest.raises(TraceFormatError):
            coerce_arg([{"delta": 0, "text": "a", "font": 1}])

    def test_attr_map_with_list_value_raises(self) -> None:
        with pytest.raises(TraceFormatError):
            coerce_arg({"Dashes": [4, 4]})

    def test_attr_map_is_hashable(self) -> None:
        assert hash(AttrMap({"a": 1, "b": 2})) == hash(AttrMap({"b": 2, "a": 1}))


# ======================================================================
# Operation records
# ======================================================================


class TestOperation:
    def test_args_coerced(self) -> None:
        op = Operation("polyLine", (1, {"Foreground": 0xFF0000}, [0, 0, 10, 10]), 0xFF0000)
        assert op.args == (
            Scalar(1),
            AttrMap({"Foreground": 0xFF0000}),
            CoordList((0, 0, 10, 10)),
        )

    def test_to_dict(self) -> None:
        op = Operation("polyText8", (1, TextItemList((TextItem(10, "x"),))), 0xFFFF00)
        assert op.to_dict() == {
            "type": "polyText8",
            "args": [1, [{"delta": 10, "text": "x"}]],
            "color": 0xFFFF00,
        }

    def test_from_dict_inverts_to_dict(self) -> None:
        op = Operation("createGC", (99, 12, AttrMap({"Foreground": 1, "Background": 0})))
        assert Operation.from_dict(op.to_dict()) == op

    def test_from_dict_defaults(self) -> None:
        assert Operation.from_dict({"type": "mapWindow"}) == Operation("mapWindow")

    @pytest.mark.parametrize(
        "record",
        [
            [],
            {"args": []},
            {"type": 3},
            {"type": "mapWindow", "args": 1},
            {"type": "mapWindow", "color": "red"},
            {"type": "mapWindow", "color": -1},
            {"type": "mapWindow", "color": 0x1_0000_0000},
            {"type": "mapWindow", "args": [None]},
        ],
    )
    def test_from_dict_rejects_malformed(self, record) -> None:
        with pytest.raises(TraceFormatError):
            Operation.from_dict(record)


# ======================================================================
# OperationLog
# ======================================================================


class TestOperationLog:
    def test_record_appends_in_order(self) -> None:
        log = OperationLog()
        log.record("createWindow", (1, 0))
        log.record("mapWindow", (1,))
        assert [op.type for op in log] == ["createWindow", "mapWindow"]
        assert len(log) == 2
        assert log[1].args == (Scalar(1),)

    def test_record_returns_operation(self) -> None:
        op = OperationLog().record("polyPoint", (1, [0, 0]), 0xFF)
        assert op.color == 0xFF

    def test_snapshot_is_a_copy(self) -> None:
        log = OperationLog()
        log.record("mapWindow", (1,))
        snapshot = log.snapshot()
        log.record("mapWindow", (2,))
        assert len(snapshot) == 1

    def test_clear(self) -> None:
        log = OperationLog()
        log.record("mapWindow", (1,))
        log.clear()
        assert len(log) == 0

    def test_msgpack_file(self, tmp_path) -> None:
        log = OperationLog()
        log.record("createGC", (100, 12, {"Foreground": 0xFF0000, "Background": 0}))
        log.record("polyText16", (1, {"Foreground": 0xFF}, 50, 110, [{"delta": 10, "text": "é"}]), 0xFF)
        path = tmp_path / "reference.msgpack"
        log.dump_msgpack(path)

        loaded = OperationLog.load_msgpack(path)
        assert loaded.snapshot() == log.snapshot()
        with open(path, "rb") as f:
            assert msgpack.unpackb(f.read(), raw=False) == log.to_dict()

    def test_from_records_requires_list(self) -> None:
        with pytest.raises(TraceFormatError):
            OperationLog.from_records({"operations": []})


# ======================================================================
# GCColorTable
# ======================================================================


class TestGCColorTable:
    def test_set_and_resolve(self) -> None:
        table = GCColorTable()
        table.set(100, 0xFF0000)
        assert table.resolve(100) == 0xFF0000
        assert 100 in table

    def test_later_set_wins(self) -> None:
        table = GCColorTable()
        table.set(100, 0xFF0000)
        table.set(100, 0x00FF00)
        assert table.resolve(100) == 0x00FF00
        assert len(table) == 1

    def test_unknown_gc_resolves_to_zero(self, caplog) -> None:
        with caplog.at_level("WARNING"):
            assert GCColorTable().resolve(5) == 0
        assert any("GC 5" in r.getMessage() for r in caplog.records)

    def test_clear(self) -> None:
        table = GCColorTable()
        table.set(1, 2)
        table.clear()
        assert 1 not in table
