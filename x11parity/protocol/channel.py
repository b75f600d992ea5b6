"""Byte channel boundary between the simulator and its transport.

The simulation only needs an ordered, reliable, bidirectional byte stream.
How that stream was negotiated (an SSH ``x11`` channel, a TCP connection to
an X display, a socketpair in tests) is not its concern.
"""

from __future__ import annotations

import logging
import socket
import threading
import typing

from x11parity.configurations import configuration_constants
from x11parity.protocol.errors import ChannelClosedError, TransportError

logger = logging.getLogger(__name__)


class ByteChannel(typing.Protocol):
    def read(self, n: int) -> bytes:
        """Return up to ``n`` bytes; ``b""`` means the peer closed."""
        ...

    def write(self, data: bytes) -> None:
        ...

    def close(self) -> None:
        ...


class SocketChannel:
    """Adapts anything with ``recv``/``sendall``/``close`` to ``ByteChannel``.

    Works for plain sockets and for SSH channel objects exposing the socket
    API.  Read and write failures surface as ``TransportError``.

    :param sock: Connected socket-like object.
    """

    def __init__(self, sock) -> None:
        self._sock = sock
        self._closed = False
        self._close_lock = threading.Lock()

    @classmethod
    def connect(
        cls, host: str, display_number: int, timeout: float | None = 10.0
    ) -> SocketChannel:
        """Open a TCP connection to X display ``host:display_number``."""
        port = configuration_constants.X11_TCP_PORT_BASE + display_number
        logger.info(f"[Channel] Connecting to X display at {host}:{port}")
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            raise TransportError(f"failed to connect to {host}:{port}: {e}") from e
        # The reply reader blocks on recv for the lifetime of the session.
        sock.settimeout(None)
        logger.info("[Channel] Connected")
        return cls(sock)

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, n: int) -> bytes:
        try:
            return self._sock.recv(n)
        except OSError as e:
            if self._closed:
                return b""
            raise TransportError(f"channel read failed: {e}") from e

    def write(self, data: bytes) -> None:
        if self._closed:
            raise ChannelClosedError("write on closed channel")
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise TransportError(f"channel write failed: {e}") from e

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        # shutdown() wakes a reader thread blocked in recv().
        shutdown = getattr(self._sock, "shutdown", None)
        if shutdown is not None:
            try:
                shutdown(socket.SHUT_RDWR)
            except OSError:
                logger.debug("[Channel] shutdown on an already disconnected socket")
        self._sock.close()


def read_exact(channel: ByteChannel, n: int) -> bytes:
    """Read exactly ``n`` bytes from ``channel``.

    :raises ChannelClosedError: If the channel reaches EOF first.
    """
    buf = bytearray()
    while len(buf) < n:
        chunk = channel.read(n - len(buf))
        if not chunk:
            raise ChannelClosedError(
                f"channel closed after {len(buf)} of {n} bytes"
            )
        buf += chunk
    return bytes(buf)
