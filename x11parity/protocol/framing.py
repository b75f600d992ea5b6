"""Request framing for the X11 wire protocol.

Every request is a 4-byte header (opcode, flag byte, length in 4-byte units
including the header) followed by a payload zero-padded to a multiple of 4.
All multi-byte fields are little-endian.
"""

from __future__ import annotations

import logging
import struct

from x11parity.protocol.channel import ByteChannel
from x11parity.protocol.errors import ProtocolError

logger = logging.getLogger(__name__)

REQUEST_HEADER = struct.Struct("<BBH")

# Without BIG-REQUESTS the length field is a CARD16.
MAX_REQUEST_UNITS = 0xFFFF


def padding_for(length: int) -> int:
    """Number of zero bytes that bring ``length`` up to a multiple of 4."""
    return (4 - length % 4) % 4


def pad(payload: bytes) -> bytes:
    return payload + b"\x00" * padding_for(len(payload))


def encode_request(opcode: int, flag_byte: int, payload: bytes) -> tuple[bytes, bytes]:
    """Build the header and padded payload of one request.

    :param opcode: Major opcode, 0-255.
    :param flag_byte: Operation-specific second header byte (depth,
        coordinate mode, text length...).  Negative values are written in
        two's complement.
    :param payload: Request body without the 4-byte header.
    :returns: ``(header, padded_payload)``.
    :raises ProtocolError: If the request does not fit a 16-bit length.
    """
    padded = pad(payload)
    request_length = (4 + len(padded)) // 4
    if request_length > MAX_REQUEST_UNITS:
        raise ProtocolError(
            f"request length {request_length} units exceeds {MAX_REQUEST_UNITS}"
        )
    header = REQUEST_HEADER.pack(opcode & 0xFF, flag_byte & 0xFF, request_length)
    return header, padded


class Framer:
    """Writes framed requests onto a channel and counts sequence numbers.

    The counter starts at 0 and the first successful send returns 1.  A send
    that raises leaves the counter untouched.

    :param channel: The session's byte channel.
    """

    def __init__(self, channel: ByteChannel) -> None:
        self.channel = channel
        self._sequence = 0

    @property
    def sequence(self) -> int:
        """Sequence number of the last request sent (0 before any)."""
        return self._sequence

    def send(self, opcode: int, flag_byte: int, payload: bytes) -> int:
        """Frame and write one request.

        :returns: The request's sequence number.
        :raises TransportError: If either write fails.
        """
        header, padded = encode_request(opcode, flag_byte, payload)
        self.channel.write(header)
        self.channel.write(padded)
        self._sequence += 1
        logger.debug(
            f"[Framer] Sent request {self._sequence}: opcode={opcode}, "
            f"length={len(header) + len(padded)}"
        )
        return self._sequence
