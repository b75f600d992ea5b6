"""Drawing and resource requests.

Each function records exactly one Operation on the session's log and then
writes the matching request.  Color-bearing operations resolve their color
through the GC color table at call time, so a later ``change_gc`` only
affects operations issued after it.

Coordinate lists are flat sequences of 16-bit values: ``[x, y, ...]`` for
points, ``[x, y, w, h, ...]`` for rectangles, ``[x1, y1, x2, y2, ...]`` for
segments and ``[x, y, w, h, angle1, angle2, ...]`` for arcs (angles in
1/64 degree).
"""

from __future__ import annotations

import base64
import dataclasses
import logging
import struct
from collections.abc import Mapping, Sequence

import numpy as np

from x11parity.configurations import configuration_constants as cc
from x11parity.configurations.configuration_constants import (
    CoordinateModes,
    GrabModes,
    ImageFormats,
    Opcodes,
    OperationTypes,
    PolyShapes,
    PropertyModes,
)
from x11parity.protocol.font_query import (
    FontQueryResult,
    parse_query_font_reply,
    validate_font_query,
)
from x11parity.protocol.framing import padding_for
from x11parity.rendering.types import AttrMap, CoordList, TextItem, TextItemList
from x11parity.server.session import Session

logger = logging.getLogger(__name__)


def _card16_list(values: Sequence[int]) -> bytes:
    """Pack signed or unsigned values as little-endian 16-bit words."""
    if len(values) == 0:
        return b""
    return (np.asarray(values, dtype=np.int64) & 0xFFFF).astype("<u2").tobytes()


def _card32_list(values: Sequence[int]) -> bytes:
    if len(values) == 0:
        return b""
    return (np.asarray(values, dtype=np.int64) & 0xFFFFFFFF).astype("<u4").tobytes()


def _check_groups(values: Sequence[int], group: int, what: str) -> None:
    if len(values) % group:
        raise ValueError(f"{what} needs a multiple of {group} values, got {len(values)}")


def _foreground(session: Session, gc: int) -> AttrMap:
    return AttrMap({"Foreground": session.colors.resolve(gc)})


def _text16_units(text: str) -> list[int]:
    """CHAR2B units for ``text``; characters outside the BMP are rejected."""
    units = [ord(ch) for ch in text]
    if any(unit > 0xFFFF for unit in units):
        raise ValueError(f"16-bit text holds only BMP characters, got {text!r}")
    return units


# ----------------------------------------------------------------------
# Windows and properties
# ----------------------------------------------------------------------


def create_window(
    session: Session,
    wid: int,
    parent: int,
    x: int,
    y: int,
    width: int,
    height: int,
    colormap: int = cc.COPY_FROM_PARENT,
    background_pixel: int = 0xFFFFFF,
) -> int:
    """Create an InputOutput window with a background pixel and colormap."""
    depth = cc.DEFAULT_WINDOW_DEPTH
    session.record(OperationTypes.CreateWindow, wid, parent, x, y, width, height, depth)

    payload = struct.pack(
        "<IIhhHHHHI",
        wid,
        parent,
        x,
        y,
        width,
        height,
        0,  # border width
        cc.WINDOW_CLASS_INPUT_OUTPUT,
        cc.COPY_FROM_PARENT,  # visual
    )
    value_mask = cc.CW_BACK_PIXEL | cc.CW_EVENT_MASK | cc.CW_COLORMAP
    # Values in mask-bit order: background pixel, event mask, colormap.
    payload += struct.pack("<IIII", value_mask, background_pixel, 0, colormap)
    return session.send(Opcodes.CreateWindow, depth, payload)


def map_window(session: Session, wid: int) -> int:
    session.record(OperationTypes.MapWindow, wid)
    return session.send(Opcodes.MapWindow, 0, struct.pack("<I", wid))


def change_property(
    session: Session,
    wid: int,
    property_atom: int,
    type_atom: int,
    data: bytes,
    format: int = 8,
    mode: int = PropertyModes.Replace,
) -> int:
    """Set a window property.

    :param format: Bits per unit of ``data``: 8, 16 or 32.
    """
    if format not in (8, 16, 32):
        raise ValueError(f"property format must be 8, 16 or 32, got {format}")
    session.record(
        OperationTypes.ChangeProperty,
        wid,
        property_atom,
        type_atom,
        format,
        data.decode("utf-8", errors="replace"),
    )
    unit_count = len(data) // (format // 8)
    payload = struct.pack(
        "<IIIB3xI", wid, property_atom, type_atom, format, unit_count
    )
    return session.send(Opcodes.ChangeProperty, mode, payload + data)


def set_window_title(session: Session, wid: int, title: str) -> int:
    return change_property(
        session, wid, cc.ATOM_WM_NAME, cc.ATOM_STRING, title.encode("utf-8")
    )


# ----------------------------------------------------------------------
# Graphics contexts
# ----------------------------------------------------------------------


def _gc_value_list(values: Mapping[int, int]) -> tuple[int, bytes, AttrMap]:
    mask = 0
    for bit in values:
        if bit not in cc.GC_ATTRIBUTE_NAMES:
            raise ValueError(f"unknown GC attribute mask bit {bit:#x}")
        mask |= bit
    ordered = sorted(values)
    value_bytes = _card32_list([values[bit] for bit in ordered])
    attributes = AttrMap({cc.GC_ATTRIBUTE_NAMES[bit]: values[bit] for bit in ordered})
    return mask, value_bytes, attributes


def create_gc_with_attributes(
    session: Session, gc: int, drawable: int, values: Mapping[int, int]
) -> int:
    """Create a graphics context from a ``{mask bit: value}`` mapping.

    Values are written in ascending mask-bit order.  A Foreground value is
    remembered for the color of later operations that use ``gc``.
    """
    mask, value_bytes, attributes = _gc_value_list(values)
    if cc.GC_FOREGROUND in values:
        session.colors.set(gc, values[cc.GC_FOREGROUND])

    session.record(OperationTypes.CreateGC, gc, mask, attributes)
    payload = struct.pack("<III", gc, drawable, mask) + value_bytes
    return session.send(Opcodes.CreateGC, 0, payload)


def create_gc(session: Session, gc: int, drawable: int, foreground: int) -> int:
    return create_gc_with_background(session, gc, drawable, foreground, 0)


def create_gc_with_background(
    session: Session, gc: int, drawable: int, foreground: int, background: int
) -> int:
    return create_gc_with_attributes(
        session,
        gc,
        drawable,
        {cc.GC_FOREGROUND: foreground, cc.GC_BACKGROUND: background},
    )


def create_gc_with_font(
    session: Session,
    gc: int,
    drawable: int,
    foreground: int,
    background: int,
    font: int,
) -> int:
    return create_gc_with_attributes(
        session,
        gc,
        drawable,
        {cc.GC_FOREGROUND: foreground, cc.GC_BACKGROUND: background, cc.GC_FONT: font},
    )


def change_gc(session: Session, gc: int, values: Mapping[int, int]) -> int:
    mask, value_bytes, attributes = _gc_value_list(values)
    if cc.GC_FOREGROUND in values:
        session.colors.set(gc, values[cc.GC_FOREGROUND])

    session.record(OperationTypes.ChangeGC, gc, mask, attributes)
    payload = struct.pack("<II", gc, mask) + value_bytes
    return session.send(Opcodes.ChangeGC, 0, payload)


def set_dashes(session: Session, gc: int, dash_offset: int, dashes: bytes) -> int:
    session.record(
        OperationTypes.SetDashes,
        gc,
        dash_offset,
        base64.b64encode(dashes).decode("ascii"),
    )
    payload = struct.pack("<IHH", gc, dash_offset, len(dashes)) + dashes
    return session.send(Opcodes.SetDashes, 0, payload)


def create_pixmap(
    session: Session, pid: int, drawable: int, width: int, height: int, depth: int
) -> int:
    session.record(OperationTypes.CreatePixmap, pid, drawable, width, height, depth)
    payload = struct.pack("<IIHH", pid, drawable, width, height)
    return session.send(Opcodes.CreatePixmap, depth, payload)


# ----------------------------------------------------------------------
# Drawing
# ----------------------------------------------------------------------


def _poly_request(
    session: Session,
    op_type: str,
    opcode: int,
    drawable: int,
    gc: int,
    values: Sequence[int],
    flag_byte: int = 0,
    fixed_extra: bytes = b"",
) -> int:
    session.record(op_type, drawable, _foreground(session, gc), CoordList(values), gc=gc)
    payload = struct.pack("<II", drawable, gc) + fixed_extra + _card16_list(values)
    return session.send(opcode, flag_byte, payload)


def poly_point(
    session: Session,
    drawable: int,
    gc: int,
    points: Sequence[int],
    coordinate_mode: int = CoordinateModes.Origin,
) -> int:
    _check_groups(points, 2, "polyPoint")
    return _poly_request(
        session, OperationTypes.PolyPoint, Opcodes.PolyPoint,
        drawable, gc, points, flag_byte=coordinate_mode,
    )


def poly_line(
    session: Session,
    drawable: int,
    gc: int,
    points: Sequence[int],
    coordinate_mode: int = CoordinateModes.Origin,
) -> int:
    _check_groups(points, 2, "polyLine")
    return _poly_request(
        session, OperationTypes.PolyLine, Opcodes.PolyLine,
        drawable, gc, points, flag_byte=coordinate_mode,
    )


def poly_segment(session: Session, drawable: int, gc: int, segments: Sequence[int]) -> int:
    _check_groups(segments, 4, "polySegment")
    return _poly_request(
        session, OperationTypes.PolySegment, Opcodes.PolySegment, drawable, gc, segments
    )


def poly_rectangle(session: Session, drawable: int, gc: int, rectangles: Sequence[int]) -> int:
    _check_groups(rectangles, 4, "polyRectangle")
    return _poly_request(
        session, OperationTypes.PolyRectangle, Opcodes.PolyRectangle, drawable, gc, rectangles
    )


def poly_arc(session: Session, drawable: int, gc: int, arcs: Sequence[int]) -> int:
    _check_groups(arcs, 6, "polyArc")
    return _poly_request(session, OperationTypes.PolyArc, Opcodes.PolyArc, drawable, gc, arcs)


def fill_poly(
    session: Session,
    drawable: int,
    gc: int,
    points: Sequence[int],
    shape: int = PolyShapes.Complex,
    coordinate_mode: int = CoordinateModes.Origin,
) -> int:
    _check_groups(points, 2, "fillPoly")
    return _poly_request(
        session, OperationTypes.FillPoly, Opcodes.FillPoly, drawable, gc, points,
        fixed_extra=struct.pack("<BB2x", shape, coordinate_mode),
    )


def poly_fill_rectangle(
    session: Session, drawable: int, gc: int, rectangles: Sequence[int]
) -> int:
    _check_groups(rectangles, 4, "polyFillRectangle")
    return _poly_request(
        session, OperationTypes.PolyFillRectangle, Opcodes.PolyFillRectangle,
        drawable, gc, rectangles,
    )


def poly_fill_arc(session: Session, drawable: int, gc: int, arcs: Sequence[int]) -> int:
    _check_groups(arcs, 6, "polyFillArc")
    return _poly_request(
        session, OperationTypes.PolyFillArc, Opcodes.PolyFillArc, drawable, gc, arcs
    )


def put_image(
    session: Session,
    drawable: int,
    gc: int,
    x: int,
    y: int,
    width: int,
    height: int,
    data: bytes,
    left_pad: int = 0,
    format: int = ImageFormats.ZPixmap,
    depth: int = cc.DEFAULT_WINDOW_DEPTH,
) -> int:
    session.record(
        OperationTypes.PutImage,
        drawable,
        _foreground(session, gc),
        x,
        y,
        width,
        height,
        left_pad,
        format,
        len(data),
        gc=gc,
    )
    payload = struct.pack(
        "<IIHHhhBB2x", drawable, gc, width, height, x, y, left_pad, depth
    )
    return session.send(Opcodes.PutImage, format, payload + data)


# ----------------------------------------------------------------------
# Text
# ----------------------------------------------------------------------


def image_text8(session: Session, drawable: int, gc: int, x: int, y: int, text: bytes | str) -> int:
    if isinstance(text, str):
        text = text.encode("latin-1")
    if len(text) > 255:
        raise ValueError(f"imageText8 holds at most 255 characters, got {len(text)}")
    session.record(
        OperationTypes.ImageText8,
        drawable,
        _foreground(session, gc),
        x,
        y,
        text.decode("latin-1"),
        gc=gc,
    )
    payload = struct.pack("<IIhh", drawable, gc, x, y) + text
    return session.send(Opcodes.ImageText8, len(text), payload)


def image_text16(session: Session, drawable: int, gc: int, x: int, y: int, text: str) -> int:
    units = _text16_units(text)
    if len(units) > 255:
        raise ValueError(f"imageText16 holds at most 255 characters, got {len(units)}")
    session.record(
        OperationTypes.ImageText16,
        drawable,
        _foreground(session, gc),
        x,
        y,
        "".join(chr(u) for u in units),
        gc=gc,
    )
    payload = struct.pack("<IIhh", drawable, gc, x, y) + _card16_list(units)
    return session.send(Opcodes.ImageText16, len(units), payload)


@dataclasses.dataclass(frozen=True)
class PolyTextItem:
    """Text run for poly_text8/poly_text16: x advance applied before ``text``."""

    text: str
    delta: int = 0


def encode_text8_item(item: PolyTextItem) -> bytes:
    """``len delta text`` padded to 4 from the item's own encoded length."""
    text = item.text.encode("latin-1")
    if len(text) > 254:
        raise ValueError(f"text item holds at most 254 characters, got {len(text)}")
    encoded = struct.pack("<Bb", len(text), item.delta) + text
    return encoded + b"\x00" * padding_for(len(encoded))


def encode_text16_item(item: PolyTextItem) -> bytes:
    units = _text16_units(item.text)
    if len(units) > 254:
        raise ValueError(f"text item holds at most 254 characters, got {len(units)}")
    encoded = struct.pack("<Bb", len(units), item.delta) + _card16_list(units)
    return encoded + b"\x00" * padding_for(len(encoded))


def _poly_text(
    session: Session,
    op_type: str,
    opcode: int,
    encode_item,
    drawable: int,
    gc: int,
    x: int,
    y: int,
    items: Sequence[PolyTextItem],
) -> int:
    encoded = b"".join(encode_item(item) for item in items)
    recorded = TextItemList(tuple(TextItem(item.delta, item.text) for item in items))
    session.record(op_type, drawable, _foreground(session, gc), x, y, recorded, gc=gc)
    payload = struct.pack("<IIhh", drawable, gc, x, y) + encoded
    return session.send(opcode, 0, payload)


def poly_text8(
    session: Session, drawable: int, gc: int, x: int, y: int, items: Sequence[PolyTextItem]
) -> int:
    return _poly_text(
        session, OperationTypes.PolyText8, Opcodes.PolyText8, encode_text8_item,
        drawable, gc, x, y, items,
    )


def poly_text16(
    session: Session, drawable: int, gc: int, x: int, y: int, items: Sequence[PolyTextItem]
) -> int:
    return _poly_text(
        session, OperationTypes.PolyText16, Opcodes.PolyText16, encode_text16_item,
        drawable, gc, x, y, items,
    )


# ----------------------------------------------------------------------
# Fonts
# ----------------------------------------------------------------------


def open_font(session: Session, fid: int, name: str) -> int:
    session.record(OperationTypes.OpenFont, fid, name)
    encoded = name.encode("latin-1")
    payload = struct.pack("<IH2x", fid, len(encoded)) + encoded
    return session.send(Opcodes.OpenFont, 0, payload)


def close_font(session: Session, fid: int) -> int:
    session.record(OperationTypes.CloseFont, fid)
    return session.send(Opcodes.CloseFont, 0, struct.pack("<I", fid))


def query_font(session: Session, fid: int) -> FontQueryResult:
    """Query font metrics and check them.

    Each metric invariant the reply violates is reported as a separate
    finding; the parsed result is returned either way.
    """
    session.record(OperationTypes.QueryFont, fid)
    sequence = session.send(Opcodes.QueryFont, 0, struct.pack("<I", fid))
    reply = session.await_reply(sequence, "QueryFont")

    result = parse_query_font_reply(reply.data)
    logger.info(
        f"[Requests] QueryFont {fid}: chars {result.min_char}..{result.max_char}, "
        f"ascent={result.font_ascent}, descent={result.font_descent}, "
        f"{result.font_prop_count} props, {result.char_info_count} char infos"
    )
    for message in validate_font_query(result):
        session.reporter.report("font_metrics", f"font {fid}: {message}")
    return result


def parse_list_fonts_reply(data: bytes) -> list[str]:
    """Font names from a ListFonts reply (count at 8, names from 32)."""
    (count,) = struct.unpack_from("<H", data, 8)
    names = []
    offset = 32
    for _ in range(count):
        if offset >= len(data):
            break
        length = data[offset]
        names.append(data[offset + 1 : offset + 1 + length].decode("latin-1"))
        offset += 1 + length
    return names


def list_fonts(session: Session, max_names: int, pattern: str) -> list[str]:
    session.record(OperationTypes.ListFonts, max_names, pattern)
    encoded = pattern.encode("latin-1")
    payload = struct.pack("<HH", max_names, len(encoded)) + encoded
    sequence = session.send(Opcodes.ListFonts, 0, payload)
    reply = session.await_reply(sequence, "ListFonts")
    names = parse_list_fonts_reply(reply.data)
    logger.info(f"[Requests] ListFonts {pattern!r}: {len(names)} names")
    return names


# ----------------------------------------------------------------------
# Pointer grabs
# ----------------------------------------------------------------------


def grab_pointer(
    session: Session,
    grab_window: int,
    event_mask: int,
    owner_events: bool = False,
    pointer_mode: int = GrabModes.Async,
    keyboard_mode: int = GrabModes.Async,
    confine_to: int = 0,
    cursor: int = 0,
    time: int = 0,
) -> int:
    """Actively grab the pointer; returns the GrabPointer status byte."""
    session.record(
        OperationTypes.GrabPointer,
        grab_window,
        int(owner_events),
        event_mask,
        pointer_mode,
        keyboard_mode,
        confine_to,
        cursor,
        time,
    )
    payload = struct.pack(
        "<IHBBIII",
        grab_window,
        event_mask,
        pointer_mode,
        keyboard_mode,
        confine_to,
        cursor,
        time,
    )
    sequence = session.send(Opcodes.GrabPointer, int(owner_events), payload)
    reply = session.await_reply(sequence, "GrabPointer")
    status = reply.data[1]
    logger.info(f"[Requests] GrabPointer on window {grab_window}: status {status}")
    return status


def ungrab_pointer(session: Session, time: int = 0) -> int:
    session.record(OperationTypes.UngrabPointer, time)
    return session.send(Opcodes.UngrabPointer, 0, struct.pack("<I", time))
