"""Exception hierarchy for the protocol simulation.

Transport and protocol errors are fatal for the current scenario and are
raised from the call that hit them.  Validation findings are never raised;
they are recorded on the session's ``ValidationReporter`` instead.
"""

from __future__ import annotations


class X11ParityError(Exception):
    """Base class for every error raised by x11parity."""


class TransportError(X11ParityError):
    """A read or write on the byte channel failed."""


class ChannelClosedError(TransportError):
    """The peer closed the channel (EOF) or the reader loop has exited."""


class ReplyTimeoutError(TransportError):
    """No reply arrived on the reply slot before the timeout."""


class ProtocolError(X11ParityError):
    """The peer sent something the protocol does not allow."""


class SessionStateError(ProtocolError):
    """A request was attempted in a session state that forbids it."""


class SetupFailedError(X11ParityError):
    """The setup response carried a non-success status."""

    def __init__(self, status: int, reason: str = ""):
        self.status = status
        self.reason = reason
        message = f"X11 setup failed with status {status}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class TraceFormatError(X11ParityError, ValueError):
    """An observed trace record does not match the expected schema."""
