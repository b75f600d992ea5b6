"""One simulated X11 client connection.

A Session owns everything a scenario mutates: the framer and its sequence
counter, the handshake state, the operation log, the GC color table, the
validation reporter and the reply reader.  Request functions take the
session as their first argument; separate sessions share nothing.
"""

from __future__ import annotations

import logging
import threading

from x11parity.configurations.simulation_config import SimulationConfig
from x11parity.protocol.channel import ByteChannel, SocketChannel
from x11parity.protocol.classifier import ReplyReader, ServerMessage
from x11parity.protocol.framing import Framer
from x11parity.protocol.handshake import Handshake, HandshakeState
from x11parity.rendering.operation_log import GCColorTable, OperationLog
from x11parity.rendering.types import Operation
from x11parity.server.reporting import ValidationReporter

logger = logging.getLogger(__name__)


class Session:
    """Client side of one X11 connection.

    :param channel: Byte channel to the X server (or to a client acting as
        one).
    :param config: Protocol, timeout and limit settings.
    """

    def __init__(self, channel: ByteChannel, config: SimulationConfig | None = None):
        self.config = config if config is not None else SimulationConfig()
        self.channel = channel
        self.framer = Framer(channel)
        self.handshake = Handshake(
            channel,
            byte_order=self.config.byte_order,
            major_version=self.config.protocol_major_version,
            minor_version=self.config.protocol_minor_version,
        )
        self.operations = OperationLog()
        self.colors = GCColorTable()
        self.reporter = ValidationReporter()
        self.reader = ReplyReader(
            channel, self.reporter, max_reply_bytes=self.config.max_reply_bytes
        )
        # Set once the scenarios have finished issuing requests.
        self.done = threading.Event()

    @classmethod
    def connect(cls, config: SimulationConfig) -> Session:
        """Open a TCP channel to the configured X display."""
        channel = SocketChannel.connect(
            config.display_host,
            config.display_number,
            timeout=config.connect_timeout_s,
        )
        return cls(channel, config)

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def state(self) -> HandshakeState:
        return self.handshake.state

    @property
    def sequence(self) -> int:
        return self.framer.sequence

    def establish(self) -> None:
        """Run the setup exchange, then start the reply reader.

        :raises SetupFailedError: If the server refuses the connection.
        :raises TransportError: If the channel fails during setup.
        """
        self.handshake.perform()
        self.reader.start()

    def clear(self) -> None:
        """Forget the trace of a previous scenario."""
        self.operations.clear()
        self.colors.clear()
        self.reporter.clear()
        logger.info("[Session] Operation log, GC colors and findings cleared")

    def record(self, op_type: str, *args, gc: int | None = None) -> Operation:
        """Append one operation, resolving its color through ``gc``.

        :raises SessionStateError: If the session is not established.
        """
        self.handshake.require_established()
        color = self.colors.resolve(gc) if gc is not None else 0
        return self.operations.record(op_type, args, color)

    def send(self, opcode: int, flag_byte: int, payload: bytes) -> int:
        """Write one request and return its sequence number.

        :raises SessionStateError: If the session is not established.
        :raises TransportError: If the write fails.
        """
        self.handshake.require_established()
        return self.framer.send(opcode, flag_byte, payload)

    def await_reply(self, expected_sequence: int, request_name: str) -> ServerMessage:
        """Wait for the reply to the request sent as ``expected_sequence``.

        A reply carrying another sequence number is reported and returned
        anyway.

        :raises ReplyTimeoutError: If no reply arrives in time.
        :raises ChannelClosedError: If the reader has stopped.
        """
        reply = self.reader.await_reply(self.config.reply_timeout_s)
        if reply.sequence != expected_sequence & 0xFFFF:
            self.reporter.report(
                "sequence_mismatch",
                f"{request_name} reply has sequence {reply.sequence}, "
                f"expected {expected_sequence & 0xFFFF}",
            )
        return reply

    def close(self) -> None:
        """Close the channel; the reply reader stops on the resulting EOF."""
        self.channel.close()
        self.handshake.close()
        self.reader.join(timeout=1.0)
        logger.info(f"[Session] Closed after {self.sequence} requests")
