"""
In-process stand-in for the X server end of a session.

FakeXServer plays the server side of a ``socket.socketpair``: it answers
the setup request, splits the client's byte stream into requests, records
them, and answers reply-bearing requests with messages built by the
``build_*`` helpers below.  MemoryChannel is a byte channel with no peer
at all, for framing-level tests.
"""

from __future__ import annotations

import dataclasses
import socket
import struct
import threading
from collections.abc import Callable, Sequence

from x11parity.configurations.configuration_constants import Opcodes
from x11parity.protocol.channel import SocketChannel
from x11parity.protocol.errors import TransportError
from x11parity.protocol.framing import padding_for

# ---------------------------------------------------------------------------
# Server message builders
# ---------------------------------------------------------------------------


def build_reply(sequence: int, body: bytes = b"", detail: int = 0) -> bytes:
    """Reply message; ``body`` starts at byte 8 of the reply."""
    body = body.ljust(24, b"\x00")
    body += b"\x00" * padding_for(len(body))
    extra_units = (len(body) - 24) // 4
    return struct.pack("<BBHI", 1, detail, sequence & 0xFFFF, extra_units) + body


def build_error(code: int, sequence: int) -> bytes:
    return struct.pack("<BBH", 0, code, sequence & 0xFFFF).ljust(32, b"\x00")


def build_event(event_type: int, sequence: int = 0) -> bytes:
    return struct.pack("<BBH", event_type, 0, sequence & 0xFFFF).ljust(32, b"\x00")


def pack_char_info(
    left: int = 0, right: int = 6, width: int = 7, ascent: int = 9, descent: int = 2, attributes: int = 0
) -> bytes:
    return struct.pack("<hhHhhH", left, right, width, ascent, descent, attributes)


def build_query_font_reply(
    sequence: int,
    min_char: int = 32,
    max_char: int = 126,
    char_info_count: int | None = None,
    font_ascent: int = 10,
    font_descent: int = 3,
    min_bounds: bytes | None = None,
    max_bounds: bytes | None = None,
    props: Sequence[tuple[int, int]] = (),
    char_infos: Sequence[bytes] | None = None,
    default_char: int = 32,
) -> bytes:
    if char_infos is None:
        char_infos = [pack_char_info() for _ in range(max_char - min_char + 1)]
    if char_info_count is None:
        char_info_count = len(char_infos)
    fixed = struct.pack(
        "<12s4x12s4xHHHHBBBBhhI",
        min_bounds if min_bounds is not None else pack_char_info(width=5),
        max_bounds if max_bounds is not None else pack_char_info(width=9),
        min_char,
        max_char,
        default_char,
        len(props),
        0,  # left-to-right
        0,  # min byte1
        0,  # max byte1
        1,  # all chars exist
        font_ascent,
        font_descent,
        char_info_count,
    )
    body = fixed
    body += b"".join(struct.pack("<II", name, value) for name, value in props)
    body += b"".join(char_infos)
    return build_reply(sequence, body)


def build_list_fonts_reply(sequence: int, names: Sequence[str]) -> bytes:
    body = struct.pack("<H22x", len(names))
    for name in names:
        encoded = name.encode("latin-1")
        body += bytes([len(encoded)]) + encoded
    return build_reply(sequence, body)


def build_grab_pointer_reply(sequence: int, status: int = 0) -> bytes:
    return build_reply(sequence, detail=status)


def build_alloc_color_reply(sequence: int, red: int, green: int, blue: int, pixel: int) -> bytes:
    return build_reply(sequence, struct.pack("<HHH2xI", red, green, blue, pixel))


def build_alloc_named_color_reply(sequence: int, pixel: int, red: int, green: int, blue: int) -> bytes:
    # Exact color then visual color.
    return build_reply(
        sequence, struct.pack("<IHHHHHH", pixel, red, green, blue, red, green, blue)
    )


def build_query_colors_reply(sequence: int, colors: Sequence[tuple[int, int, int]]) -> bytes:
    body = struct.pack("<H22x", len(colors))
    body += b"".join(struct.pack("<HHH2x", *rgb) for rgb in colors)
    return build_reply(sequence, body)


def build_list_installed_colormaps_reply(sequence: int, colormaps: Sequence[int]) -> bytes:
    body = struct.pack("<H22x", len(colormaps))
    body += b"".join(struct.pack("<I", cmap) for cmap in colormaps)
    return build_reply(sequence, body)


def build_setup_response(
    status: int = 1, major: int = 11, minor: int = 0, data: bytes = b""
) -> bytes:
    """Setup response; on failure ``data`` is the reason text."""
    padded = data + b"\x00" * padding_for(len(data))
    reason_length = len(data) if status == 0 else 0
    return struct.pack("<BBHHH", status, reason_length, major, minor, len(padded) // 4) + padded


# ---------------------------------------------------------------------------
# Fake server
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class RecordedRequest:
    sequence: int
    opcode: int
    flag: int
    length: int
    payload: bytes


ReplyBuilder = Callable[[RecordedRequest], "bytes | None"]


def default_reply_builders() -> dict[int, ReplyBuilder]:
    """Replies that satisfy every synchronous request the scenarios make."""
    return {
        Opcodes.QueryFont: lambda r: build_query_font_reply(r.sequence),
        Opcodes.ListFonts: lambda r: build_list_fonts_reply(
            r.sequence, ["fixed", "-misc-fixed-medium-r-normal--13-120-75-75-c-70-iso8859-1"]
        ),
        Opcodes.GrabPointer: lambda r: build_grab_pointer_reply(r.sequence, 0),
        Opcodes.AllocColor: lambda r: build_alloc_color_reply(r.sequence, 0, 0, 0xFFFF, 0x0000FF),
        Opcodes.AllocNamedColor: lambda r: build_alloc_named_color_reply(
            r.sequence, 0x0000FF, 0, 0, 0xFFFF
        ),
        Opcodes.QueryColors: lambda r: build_query_colors_reply(r.sequence, [(0, 0, 0xFFFF)]),
        Opcodes.ListInstalledColormaps: lambda r: build_list_installed_colormaps_reply(
            r.sequence, [2]
        ),
    }


def _recv_exact(sock: socket.socket, n: int) -> bytes | None:
    buf = bytearray()
    while len(buf) < n:
        try:
            chunk = sock.recv(n - len(buf))
        except OSError:
            return None
        if not chunk:
            return None
        buf += chunk
    return bytes(buf)


class FakeXServer:
    """
    Server end of a socketpair speaking just enough X11.

    ``channel`` is the client end, ready to hand to a Session.
    """

    def __init__(
        self,
        setup_response: bytes | None = None,
        reply_builders: dict[int, ReplyBuilder] | None = None,
    ):
        client_sock, self.server_sock = socket.socketpair()
        self.channel = SocketChannel(client_sock)
        self.setup_response = (
            setup_response if setup_response is not None else build_setup_response(data=b"\x00" * 8)
        )
        self.reply_builders = (
            reply_builders if reply_builders is not None else default_reply_builders()
        )
        self.setup_request: bytes | None = None
        self.requests: list[RecordedRequest] = []
        self._send_lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, daemon=True)

    def start(self) -> FakeXServer:
        self._thread.start()
        return self

    def _run(self) -> None:
        self.setup_request = _recv_exact(self.server_sock, 12)
        if self.setup_request is None:
            return
        self.send_raw(self.setup_response)

        sequence = 0
        while True:
            header = _recv_exact(self.server_sock, 4)
            if header is None:
                return
            opcode, flag, length = struct.unpack("<BBH", header)
            payload = _recv_exact(self.server_sock, 4 * length - 4) if length > 1 else b""
            if payload is None:
                return
            sequence += 1
            request = RecordedRequest(sequence, opcode, flag, length, payload)
            self.requests.append(request)

            builder = self.reply_builders.get(opcode)
            if builder is not None:
                reply = builder(request)
                if reply:
                    self.send_raw(reply)

    def send_raw(self, data: bytes) -> None:
        with self._send_lock:
            try:
                self.server_sock.sendall(data)
            except OSError:
                pass

    def requests_with_opcode(self, opcode: int) -> list[RecordedRequest]:
        return [r for r in self.requests if r.opcode == opcode]

    def wait_for_requests(self, count: int, timeout: float = 2.0) -> list[RecordedRequest]:
        """Block until at least ``count`` requests have been parsed."""
        deadline = threading.Event()
        waited = 0.0
        while len(self.requests) < count and waited < timeout:
            deadline.wait(0.01)
            waited += 0.01
        return list(self.requests)

    def close(self) -> None:
        try:
            self.server_sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.server_sock.close()
        self._thread.join(timeout=2.0)


# ---------------------------------------------------------------------------
# Peerless channel
# ---------------------------------------------------------------------------


class MemoryChannel:
    """
    Byte channel backed by buffers.

    Reads drain ``incoming`` and then report EOF.  Writes append to
    ``written`` until ``fail_after_writes`` writes have happened, after
    which they raise TransportError.
    """

    def __init__(self, incoming: bytes = b"", fail_after_writes: int | None = None):
        self.incoming = bytearray(incoming)
        self.written = bytearray()
        self.writes: list[bytes] = []
        self.fail_after_writes = fail_after_writes
        self.closed = False

    def read(self, n: int) -> bytes:
        chunk = bytes(self.incoming[:n])
        del self.incoming[:n]
        return chunk

    def write(self, data: bytes) -> None:
        if self.fail_after_writes is not None and len(self.writes) >= self.fail_after_writes:
            raise TransportError("simulated write failure")
        self.writes.append(bytes(data))
        self.written += data

    def close(self) -> None:
        self.closed = True
