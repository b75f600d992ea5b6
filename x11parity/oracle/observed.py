"""Schema for the trace reported by the rendering client.

The client publishes a JSON list of ``{type, args, fillStyle, strokeStyle}``
records.  Argument values keep their JSON form; they are only normalized
when compared against the reference trace.
"""

from __future__ import annotations

import dataclasses
import json

from x11parity.protocol.errors import TraceFormatError


@dataclasses.dataclass(frozen=True)
class ObservedOperation:
    type: str
    args: tuple = ()
    fill_style: str | None = None
    stroke_style: str | None = None

    @property
    def style(self) -> str | None:
        """The color the client drew with, fill taking precedence."""
        return self.fill_style or self.stroke_style

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "args": list(self.args),
            "fillStyle": self.fill_style,
            "strokeStyle": self.stroke_style,
        }


def _check_json_value(value, where: str) -> None:
    if value is None:
        raise TraceFormatError(f"{where}: null argument")
    if isinstance(value, (bool, int, float, str)):
        return
    if isinstance(value, list):
        for i, item in enumerate(value):
            _check_json_value(item, f"{where}[{i}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TraceFormatError(f"{where}: non-string key {key!r}")
            _check_json_value(item, f"{where}.{key}")
        return
    raise TraceFormatError(f"{where}: unsupported value of type {type(value).__name__}")


def _optional_style(record: dict, key: str, index: int) -> str | None:
    value = record.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise TraceFormatError(f"record {index}: {key} must be a string, got {value!r}")
    return value


def parse_observed_record(record, index: int = 0) -> ObservedOperation:
    if not isinstance(record, dict):
        raise TraceFormatError(f"record {index}: expected an object, got {type(record).__name__}")

    op_type = record.get("type")
    if not isinstance(op_type, str) or not op_type:
        raise TraceFormatError(f"record {index}: type must be a non-empty string, got {op_type!r}")

    args = record.get("args", [])
    if args is None:
        args = []
    if not isinstance(args, list):
        raise TraceFormatError(f"record {index} ({op_type}): args must be a list, got {args!r}")
    for j, arg in enumerate(args):
        _check_json_value(arg, f"record {index} ({op_type}) arg {j}")

    return ObservedOperation(
        type=op_type,
        args=tuple(args),
        fill_style=_optional_style(record, "fillStyle", index),
        stroke_style=_optional_style(record, "strokeStyle", index),
    )


def parse_observed_trace(records: list | str | bytes) -> list[ObservedOperation]:
    """Validate and convert the client's trace.

    :param records: Decoded JSON list, or the JSON text itself.
    :raises TraceFormatError: On the first malformed record.
    """
    if isinstance(records, (str, bytes)):
        try:
            records = json.loads(records)
        except ValueError as e:
            raise TraceFormatError(f"observed trace is not valid JSON: {e}") from e
    if not isinstance(records, list):
        raise TraceFormatError(f"observed trace must be a list, got {type(records).__name__}")
    return [parse_observed_record(record, i) for i, record in enumerate(records)]
