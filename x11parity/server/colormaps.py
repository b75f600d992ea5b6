"""Colormap requests.

These are resource bookkeeping rather than drawing, so unlike the functions
in ``requests`` they do not record operations on the session log.
"""

from __future__ import annotations

import dataclasses
import logging
import struct
from collections.abc import Sequence

import numpy as np

from x11parity.configurations.configuration_constants import Opcodes
from x11parity.protocol.errors import ProtocolError
from x11parity.server.session import Session

logger = logging.getLogger(__name__)

# List replies carry their entries after the 32-byte reply block.
_LIST_OFFSET = 32


@dataclasses.dataclass(frozen=True)
class AllocatedColor:
    """Pixel assigned by the server and the 16-bit RGB it actually holds."""

    pixel: int
    red: int
    green: int
    blue: int


def _check_length(data: bytes, needed: int, request_name: str) -> None:
    if len(data) < needed:
        raise ProtocolError(
            f"{request_name} reply is {len(data)} bytes, need {needed}"
        )


def create_colormap(session: Session, mid: int, window: int, visual: int = 0, alloc: int = 0) -> int:
    payload = struct.pack("<III", mid, window, visual)
    return session.send(Opcodes.CreateColormap, alloc, payload)


def free_colormap(session: Session, cmap: int) -> int:
    return session.send(Opcodes.FreeColormap, 0, struct.pack("<I", cmap))


def install_colormap(session: Session, cmap: int) -> int:
    return session.send(Opcodes.InstallColormap, 0, struct.pack("<I", cmap))


def alloc_color(session: Session, cmap: int, red: int, green: int, blue: int) -> AllocatedColor:
    payload = struct.pack("<IHHH2x", cmap, red, green, blue)
    sequence = session.send(Opcodes.AllocColor, 0, payload)
    reply = session.await_reply(sequence, "AllocColor")
    _check_length(reply.data, 20, "AllocColor")
    red, green, blue = struct.unpack_from("<HHH", reply.data, 8)
    (pixel,) = struct.unpack_from("<I", reply.data, 16)
    logger.info(f"[Colormaps] AllocColor ({red}, {green}, {blue}) -> pixel {pixel:#08x}")
    return AllocatedColor(pixel, red, green, blue)


def alloc_named_color(session: Session, cmap: int, name: str) -> AllocatedColor:
    """Allocate a color by name; the returned RGB is the exact color."""
    encoded = name.encode("latin-1")
    payload = struct.pack("<IH2x", cmap, len(encoded)) + encoded
    sequence = session.send(Opcodes.AllocNamedColor, 0, payload)
    reply = session.await_reply(sequence, "AllocNamedColor")
    _check_length(reply.data, 18, "AllocNamedColor")
    pixel, red, green, blue = struct.unpack_from("<IHHH", reply.data, 8)
    logger.info(f"[Colormaps] AllocNamedColor {name!r} -> pixel {pixel:#08x}")
    return AllocatedColor(pixel, red, green, blue)


def query_colors(session: Session, cmap: int, pixels: Sequence[int]) -> list[tuple[int, int, int]]:
    """RGB triples for ``pixels``, in request order."""
    payload = struct.pack("<I", cmap)
    if len(pixels):
        payload += np.asarray(pixels, dtype="<u4").tobytes()
    sequence = session.send(Opcodes.QueryColors, 0, payload)
    reply = session.await_reply(sequence, "QueryColors")
    _check_length(reply.data, _LIST_OFFSET, "QueryColors")

    (count,) = struct.unpack_from("<H", reply.data, 8)
    _check_length(reply.data, _LIST_OFFSET + 8 * count, "QueryColors")
    if count == 0:
        return []
    entries = np.frombuffer(
        reply.data, dtype="<u2", count=4 * count, offset=_LIST_OFFSET
    ).reshape(count, 4)
    # Each entry is red, green, blue and one unused word.
    return [tuple(int(v) for v in row[:3]) for row in entries]


def list_installed_colormaps(session: Session, window: int) -> list[int]:
    sequence = session.send(Opcodes.ListInstalledColormaps, 0, struct.pack("<I", window))
    reply = session.await_reply(sequence, "ListInstalledColormaps")
    _check_length(reply.data, _LIST_OFFSET, "ListInstalledColormaps")

    (count,) = struct.unpack_from("<H", reply.data, 8)
    _check_length(reply.data, _LIST_OFFSET + 4 * count, "ListInstalledColormaps")
    if count == 0:
        return []
    return [
        int(v)
        for v in np.frombuffer(reply.data, dtype="<u4", count=count, offset=_LIST_OFFSET)
    ]


def free_colors(session: Session, cmap: int, plane_mask: int, pixels: Sequence[int]) -> int:
    payload = struct.pack("<II", cmap, plane_mask)
    if len(pixels):
        payload += np.asarray(pixels, dtype="<u4").tobytes()
    return session.send(Opcodes.FreeColors, 0, payload)
