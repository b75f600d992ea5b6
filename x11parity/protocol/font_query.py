"""QueryFont reply parsing and metric validation."""

from __future__ import annotations

import dataclasses
import struct

import numpy as np

from x11parity.protocol.errors import ProtocolError

QUERY_FONT_FIXED = struct.Struct("<BxHI12s4x12s4xHHHHBBBBhhI")

CHAR_INFO_DTYPE = np.dtype(
    [
        ("left_side_bearing", "<i2"),
        ("right_side_bearing", "<i2"),
        ("character_width", "<u2"),
        ("ascent", "<i2"),
        ("descent", "<i2"),
        ("attributes", "<u2"),
    ]
)

FONT_PROP_DTYPE = np.dtype([("name", "<u4"), ("value", "<u4")])


@dataclasses.dataclass(frozen=True)
class CharInfo:
    left_side_bearing: int
    right_side_bearing: int
    character_width: int
    ascent: int
    descent: int
    attributes: int

    @classmethod
    def from_bytes(cls, data: bytes) -> CharInfo:
        return cls._from_record(np.frombuffer(data, dtype=CHAR_INFO_DTYPE, count=1)[0])

    @classmethod
    def _from_record(cls, record) -> CharInfo:
        return cls(*(int(record[name]) for name in CHAR_INFO_DTYPE.names))


@dataclasses.dataclass(frozen=True)
class FontProp:
    name: int
    value: int


@dataclasses.dataclass(frozen=True)
class FontQueryResult:
    sequence: int
    min_bounds: CharInfo
    max_bounds: CharInfo
    min_char: int
    max_char: int
    default_char: int
    font_prop_count: int
    draw_direction: int
    min_byte1: int
    max_byte1: int
    all_chars_exist: bool
    font_ascent: int
    font_descent: int
    char_info_count: int
    font_props: tuple[FontProp, ...] = ()
    char_infos: tuple[CharInfo, ...] = ()


def _records(data: bytes, dtype: np.dtype, count: int, offset: int) -> np.ndarray:
    """Up to ``count`` records of ``dtype`` starting at ``offset``."""
    available = min(count, max(0, len(data) - offset) // dtype.itemsize)
    if available == 0:
        return np.empty(0, dtype=dtype)
    return np.frombuffer(data, dtype=dtype, count=available, offset=offset)


def parse_query_font_reply(data: bytes) -> FontQueryResult:
    """Decode a complete QueryFont reply (32-byte block plus trailing data).

    Font properties and char infos are decoded as far as the reply carries
    them; a reply truncated inside the fixed part raises.

    :raises ProtocolError: If the reply is shorter than its fixed part.
    """
    if len(data) < QUERY_FONT_FIXED.size:
        raise ProtocolError(
            f"QueryFont reply is {len(data)} bytes, need at least {QUERY_FONT_FIXED.size}"
        )
    (
        _reply_type,
        sequence,
        _length,
        min_bounds,
        max_bounds,
        min_char,
        max_char,
        default_char,
        font_prop_count,
        draw_direction,
        min_byte1,
        max_byte1,
        all_chars_exist,
        font_ascent,
        font_descent,
        char_info_count,
    ) = QUERY_FONT_FIXED.unpack_from(data)

    offset = QUERY_FONT_FIXED.size
    props = _records(data, FONT_PROP_DTYPE, font_prop_count, offset)
    offset += font_prop_count * FONT_PROP_DTYPE.itemsize
    infos = _records(data, CHAR_INFO_DTYPE, char_info_count, offset)

    return FontQueryResult(
        sequence=sequence,
        min_bounds=CharInfo.from_bytes(min_bounds),
        max_bounds=CharInfo.from_bytes(max_bounds),
        min_char=min_char,
        max_char=max_char,
        default_char=default_char,
        font_prop_count=font_prop_count,
        draw_direction=draw_direction,
        min_byte1=min_byte1,
        max_byte1=max_byte1,
        all_chars_exist=bool(all_chars_exist),
        font_ascent=font_ascent,
        font_descent=font_descent,
        char_info_count=char_info_count,
        font_props=tuple(FontProp(int(p["name"]), int(p["value"])) for p in props),
        char_infos=tuple(CharInfo._from_record(r) for r in infos),
    )


def validate_font_query(result: FontQueryResult) -> list[str]:
    """Check the metric invariants of a font query.

    Each violated invariant yields one message; an empty list means the
    reply is consistent.
    """
    findings = []

    expected_count = result.max_char - result.min_char + 1
    if result.char_info_count != expected_count:
        findings.append(
            f"char info count {result.char_info_count} does not match "
            f"character range {result.min_char}..{result.max_char} ({expected_count})"
        )

    if result.font_ascent <= 0:
        findings.append(f"font ascent {result.font_ascent} is not positive")
    if result.font_descent <= 0:
        findings.append(f"font descent {result.font_descent} is not positive")

    for label, bounds in (("min", result.min_bounds), ("max", result.max_bounds)):
        if bounds.ascent <= 0:
            findings.append(f"{label} bounds ascent {bounds.ascent} is not positive")
        if bounds.descent <= 0:
            findings.append(f"{label} bounds descent {bounds.descent} is not positive")

    for index, info in enumerate(result.char_infos):
        if info.ascent <= 0:
            findings.append(f"char info {index} ascent {info.ascent} is not positive")
        if info.descent <= 0:
            findings.append(f"char info {index} descent {info.descent} is not positive")

    return findings
