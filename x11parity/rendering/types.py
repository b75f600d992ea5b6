"""Data structures for the operation trace.

Every argument recorded with an Operation is one of a closed set of tagged
kinds.  The equivalence oracle dispatches on the kind of the reference
argument, so the kinds carry exactly the information the comparison needs.
"""

from __future__ import annotations

import dataclasses
import numbers
import typing

from x11parity.protocol.errors import TraceFormatError


@dataclasses.dataclass(frozen=True)
class Scalar:
    """An integer field: resource id, coordinate, mask, count."""

    value: int

    def to_wire(self) -> int:
        return self.value


@dataclasses.dataclass(frozen=True)
class Text:
    """A string field: window title, font name, pattern, encoded bytes."""

    value: str

    def to_wire(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True)
class CoordList:
    """A flat list of 16-bit values (points, rectangles, arcs, dashes)."""

    values: tuple[int, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.values, tuple):
            object.__setattr__(self, "values", tuple(self.values))

    def to_wire(self) -> list[int]:
        return list(self.values)


@dataclasses.dataclass(frozen=True)
class TextItem:
    """One PolyText item: a signed 8-bit x advance and its text."""

    delta: int
    text: str

    def to_wire(self) -> dict:
        return {"delta": self.delta, "text": self.text}


@dataclasses.dataclass(frozen=True)
class TextItemList:
    items: tuple[TextItem, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    def to_wire(self) -> list[dict]:
        return [item.to_wire() for item in self.items]


@dataclasses.dataclass(frozen=True)
class AttrMap:
    """Named graphics-context attributes, e.g. ``{"Foreground": 0xFF0000}``.

    Values are ints, or strings for attributes the client reports as text.
    """

    values: dict

    def __post_init__(self) -> None:
        # frozen dataclass prevents direct assignment; use object.__setattr__
        # to coerce values to a plain dict if a mapping subclass was passed in.
        if type(self.values) is not dict:
            object.__setattr__(self, "values", dict(self.values))

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.values.items(), key=lambda kv: kv[0])))

    def to_wire(self) -> dict:
        return dict(self.values)


Arg = typing.Union[Scalar, Text, CoordList, TextItemList, AttrMap]


def _is_int(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def coerce_arg(value) -> Arg:
    """Wrap a plain Python/JSON value in its argument kind.

    Already-wrapped arguments are returned unchanged.

    :raises TraceFormatError: For booleans, ``None``, floats, and lists that
        mix coordinates with text items.
    """
    if isinstance(value, (Scalar, Text, CoordList, TextItemList, AttrMap)):
        return value
    if _is_int(value):
        return Scalar(int(value))
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TraceFormatError(f"attribute names must be strings, got {key!r}")
            if not (_is_int(item) or isinstance(item, str)):
                raise TraceFormatError(
                    f"attribute {key!r} must be an int or string, got {item!r}"
                )
        return AttrMap(value)
    if isinstance(value, (list, tuple)):
        if all(_is_int(v) for v in value):
            return CoordList(tuple(int(v) for v in value))
        if all(isinstance(v, (dict, TextItem)) for v in value):
            return TextItemList(tuple(_coerce_text_item(v) for v in value))
        raise TraceFormatError(f"list argument mixes kinds: {value!r}")
    raise TraceFormatError(
        f"unsupported argument {value!r} of type {type(value).__name__}"
    )


def _coerce_text_item(value) -> TextItem:
    if isinstance(value, TextItem):
        return value
    if set(value) != {"delta", "text"}:
        raise TraceFormatError(f"text item needs exactly delta and text, got {value!r}")
    if not _is_int(value["delta"]) or not isinstance(value["text"], str):
        raise TraceFormatError(f"malformed text item {value!r}")
    return TextItem(int(value["delta"]), value["text"])


@dataclasses.dataclass(frozen=True)
class Operation:
    """One semantic action recorded by the simulator.

    :param type: camelCase operation tag shared with the rendering client.
    :param args: Ordered tagged arguments.
    :param color: Resolved foreground ``0xRRGGBB`` for color-bearing
        operations, 0 otherwise.
    """

    type: str
    args: tuple[Arg, ...] = ()
    color: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(coerce_arg(a) for a in self.args))

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "args": [arg.to_wire() for arg in self.args],
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, record: dict) -> Operation:
        """Rebuild an Operation from ``to_dict`` output.

        :raises TraceFormatError: If the record is malformed.
        """
        if not isinstance(record, dict):
            raise TraceFormatError(f"operation record must be an object, got {record!r}")
        op_type = record.get("type")
        if not isinstance(op_type, str):
            raise TraceFormatError(f"operation type must be a string, got {op_type!r}")
        args = record.get("args", [])
        if not isinstance(args, (list, tuple)):
            raise TraceFormatError(f"args of {op_type} must be a list, got {args!r}")
        color = record.get("color", 0)
        if not _is_int(color) or not 0 <= color <= 0xFFFFFFFF:
            raise TraceFormatError(
                f"color of {op_type} must be an unsigned 32-bit int, got {color!r}"
            )
        return cls(op_type, tuple(args), int(color))
