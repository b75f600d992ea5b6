"""Connection setup exchange.

HandshakeState tracks the one-time setup that must complete before any
request is written:

    INIT -> REQUEST_SENT -> AWAITING_RESPONSE -> ESTABLISHED | FAILED -> CLOSED
"""

from __future__ import annotations

import logging
import struct
from enum import Enum, auto

from x11parity.configurations.configuration_constants import SetupStatus
from x11parity.protocol.channel import ByteChannel, read_exact
from x11parity.protocol.errors import (
    SessionStateError,
    SetupFailedError,
    X11ParityError,
)

logger = logging.getLogger(__name__)

# byte-order, unused, major, minor, auth-name length, auth-data length, unused
SETUP_REQUEST = struct.Struct("<cxHHHH2x")
# status, reason length (failure only), major, minor, additional data units
SETUP_RESPONSE_HEADER = struct.Struct("<BBHHH")


class HandshakeState(Enum):
    """Setup exchange states.

    - INIT: Nothing written yet
    - REQUEST_SENT: Setup request written
    - AWAITING_RESPONSE: Reading the response header
    - ESTABLISHED: Server accepted; requests may be sent
    - FAILED: Server refused or the exchange broke (terminal until closed)
    - CLOSED: Channel closed
    """
    INIT = auto()
    REQUEST_SENT = auto()
    AWAITING_RESPONSE = auto()
    ESTABLISHED = auto()
    FAILED = auto()
    CLOSED = auto()


VALID_TRANSITIONS = {
    HandshakeState.INIT: {
        HandshakeState.REQUEST_SENT,
        HandshakeState.FAILED,   # Setup request could not be written
        HandshakeState.CLOSED,   # Closed before connecting
    },
    HandshakeState.REQUEST_SENT: {
        HandshakeState.AWAITING_RESPONSE,
        HandshakeState.FAILED,
    },
    HandshakeState.AWAITING_RESPONSE: {
        HandshakeState.ESTABLISHED,
        HandshakeState.FAILED,
    },
    HandshakeState.ESTABLISHED: {HandshakeState.CLOSED},
    HandshakeState.FAILED: {HandshakeState.CLOSED},
    HandshakeState.CLOSED: set(),
}


def encode_setup_request(
    byte_order: bytes = b"l", major_version: int = 11, minor_version: int = 0
) -> bytes:
    """Build the 12-byte setup request (no authorization data)."""
    return SETUP_REQUEST.pack(byte_order, major_version, minor_version, 0, 0)


class Handshake:
    """Performs the setup exchange and guards the session state.

    Args:
        channel: Byte channel to the X server.
        byte_order: Byte-order marker written in the setup request.
        major_version: Requested protocol major version.
        minor_version: Requested protocol minor version.
    """

    def __init__(
        self,
        channel: ByteChannel,
        byte_order: bytes = b"l",
        major_version: int = 11,
        minor_version: int = 0,
    ):
        self.channel = channel
        self.byte_order = byte_order
        self.major_version = major_version
        self.minor_version = minor_version
        self.state = HandshakeState.INIT
        self.server_major_version: int | None = None
        self.server_minor_version: int | None = None

    def transition_to(self, new_state: HandshakeState) -> bool:
        """Validate and apply a state transition.

        Returns:
            True if the transition was applied, False if it is not allowed
        """
        valid_targets = VALID_TRANSITIONS.get(self.state, set())

        if new_state not in valid_targets:
            logger.error(
                f"[Handshake] Invalid transition: "
                f"{self.state.name} -> {new_state.name}. "
                f"Valid transitions: {[s.name for s in valid_targets]}"
            )
            return False

        logger.info(f"[Handshake] {self.state.name} -> {new_state.name}")
        self.state = new_state
        return True

    @property
    def established(self) -> bool:
        return self.state == HandshakeState.ESTABLISHED

    def require_established(self) -> None:
        """Raise unless requests may be sent on this session.

        Raises:
            SessionStateError: If the handshake has not completed successfully
        """
        if not self.established:
            raise SessionStateError(
                f"requests require an established session, state is {self.state.name}"
            )

    def perform(self) -> None:
        """Run the setup exchange.

        Raises:
            SessionStateError: If called outside INIT
            SetupFailedError: If the server answers with a non-success status
            TransportError: If the channel fails mid-exchange
        """
        if self.state != HandshakeState.INIT:
            raise SessionStateError(
                f"handshake already performed, state is {self.state.name}"
            )

        try:
            self.channel.write(
                encode_setup_request(
                    self.byte_order, self.major_version, self.minor_version
                )
            )
            self.transition_to(HandshakeState.REQUEST_SENT)

            self.transition_to(HandshakeState.AWAITING_RESPONSE)
            header = read_exact(self.channel, SETUP_RESPONSE_HEADER.size)
            status, reason_length, major, minor, extra_units = (
                SETUP_RESPONSE_HEADER.unpack(header)
            )
            # Success carries the server info block, failure the reason text.
            # Both are sized by the same field.
            additional = read_exact(self.channel, 4 * extra_units) if extra_units else b""
        except X11ParityError:
            self.transition_to(HandshakeState.FAILED)
            raise

        self.server_major_version = major
        self.server_minor_version = minor

        if status != SetupStatus.Success:
            self.transition_to(HandshakeState.FAILED)
            reason = ""
            if status == SetupStatus.Failed:
                reason = additional[:reason_length].decode("latin-1", errors="replace")
            logger.error(
                f"[Handshake] Setup refused with status {status}"
                + (f": {reason}" if reason else "")
            )
            raise SetupFailedError(status, reason)

        logger.info(
            f"[Handshake] Server protocol {major}.{minor}, "
            f"{len(additional)} bytes of setup data discarded"
        )
        self.transition_to(HandshakeState.ESTABLISHED)

    def close(self) -> None:
        if self.state == HandshakeState.CLOSED:
            return
        if self.state in (HandshakeState.REQUEST_SENT, HandshakeState.AWAITING_RESPONSE):
            self.transition_to(HandshakeState.FAILED)
        self.transition_to(HandshakeState.CLOSED)
