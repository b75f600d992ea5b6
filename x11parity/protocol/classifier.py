"""Background reader that classifies server messages.

Every message from the server starts with a 32-byte block whose first byte
selects the kind: 0 is an Error, 1 is a Reply (possibly followed by trailing
data), 2..127 are Events.  Replies are handed to the issuing thread through
a single-slot queue; everything else is logged and discarded.
"""

from __future__ import annotations

import dataclasses
import logging
import queue
import struct
import threading

from x11parity.configurations.configuration_constants import MessageTypes
from x11parity.protocol.channel import ByteChannel, read_exact
from x11parity.protocol.errors import (
    ChannelClosedError,
    ProtocolError,
    ReplyTimeoutError,
    X11ParityError,
)

logger = logging.getLogger(__name__)

MESSAGE_SIZE = 32
DEFAULT_MAX_REPLY_BYTES = 4096

# Granularity at which await_reply notices that the reader has stopped.
_POLL_INTERVAL_S = 0.05


@dataclasses.dataclass(frozen=True)
class ServerMessage:
    """One classified message.

    ``data`` is the full message: the 32-byte block plus any reply trailing
    bytes, so reply offsets match the protocol documentation.
    """

    kind: int
    sequence: int
    data: bytes

    @property
    def is_error(self) -> bool:
        return self.kind == MessageTypes.Error

    @property
    def is_reply(self) -> bool:
        return self.kind == MessageTypes.Reply

    @property
    def is_event(self) -> bool:
        return MessageTypes.FirstEvent <= self.kind <= MessageTypes.LastEvent

    @property
    def error_code(self) -> int:
        return self.data[1]


def read_message(
    channel: ByteChannel, max_reply_bytes: int = DEFAULT_MAX_REPLY_BYTES
) -> ServerMessage:
    """Read and classify a single server message.

    :raises ChannelClosedError: On EOF.
    :raises ProtocolError: On an unknown message type or a reply whose
        trailing data exceeds ``max_reply_bytes``.
    """
    block = read_exact(channel, MESSAGE_SIZE)
    kind = block[0]
    sequence = struct.unpack_from("<H", block, 2)[0]

    if kind == MessageTypes.Reply:
        trailing = 4 * struct.unpack_from("<I", block, 4)[0]
        if trailing > max_reply_bytes:
            raise ProtocolError(
                f"reply {sequence} declares {trailing} trailing bytes, "
                f"limit is {max_reply_bytes}"
            )
        if trailing:
            block += read_exact(channel, trailing)
        return ServerMessage(kind, sequence, block)

    if kind == MessageTypes.Error or (
        MessageTypes.FirstEvent <= kind <= MessageTypes.LastEvent
    ):
        return ServerMessage(kind, sequence, block)

    raise ProtocolError(f"unknown server message type {kind}")


class ReplyReader:
    """Runs the classification loop on a daemon thread.

    :param channel: Channel to read from; it is shared with the framer,
        which only writes.
    :param reporter: Receives non-fatal findings (X11 Error messages,
        replies dropped because the slot was full).  Anything with a
        ``report(kind, message)`` method.
    :param max_reply_bytes: Sanity bound on reply trailing data.
    """

    def __init__(
        self,
        channel: ByteChannel,
        reporter=None,
        max_reply_bytes: int = DEFAULT_MAX_REPLY_BYTES,
    ) -> None:
        self.channel = channel
        self.reporter = reporter
        self.max_reply_bytes = max_reply_bytes
        self.replies: queue.Queue[ServerMessage] = queue.Queue(maxsize=1)
        self.failure: X11ParityError | None = None
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ReplyReader already started")
        self._thread = threading.Thread(
            target=self._run, name="x11-reply-reader", daemon=True
        )
        self._thread.start()
        logger.debug("[ReplyReader] Started")

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _report(self, kind: str, message: str) -> None:
        if self.reporter is not None:
            self.reporter.report(kind, message)
        else:
            logger.error(f"[ReplyReader] {message}")

    def _run(self) -> None:
        try:
            while True:
                message = read_message(self.channel, self.max_reply_bytes)
                self._dispatch(message)
        except ChannelClosedError:
            logger.info("[ReplyReader] Channel closed, stopping")
        except ProtocolError as e:
            logger.error(f"[ReplyReader] Protocol violation, stopping: {e}")
            self.failure = e
        except X11ParityError as e:
            logger.error(f"[ReplyReader] Read failed, stopping: {e}")
            self.failure = e
        finally:
            self._stopped.set()

    def _dispatch(self, message: ServerMessage) -> None:
        if message.is_error:
            self._report(
                "x11_error",
                f"X11 error code {message.error_code} for sequence {message.sequence}",
            )
        elif message.is_reply:
            logger.debug(
                f"[ReplyReader] Reply for sequence {message.sequence}, "
                f"{len(message.data)} bytes"
            )
            try:
                self.replies.put_nowait(message)
            except queue.Full:
                self._report(
                    "reply_slot_full",
                    f"Reply for sequence {message.sequence} dropped: "
                    f"previous reply was never consumed",
                )
        else:
            logger.debug(
                f"[ReplyReader] Event type {message.kind} "
                f"(sequence {message.sequence}) discarded"
            )

    def await_reply(self, timeout: float) -> ServerMessage:
        """Block until the next reply arrives.

        :raises ReplyTimeoutError: If nothing arrives within ``timeout``.
        :raises ChannelClosedError: If the reader has stopped on EOF.
        :raises ProtocolError: If the reader stopped on a protocol violation.
        """
        remaining = timeout
        while True:
            try:
                return self.replies.get(timeout=min(_POLL_INTERVAL_S, remaining))
            except queue.Empty:
                pass
            if self._stopped.is_set():
                # A reply may have landed between the get and the check.
                try:
                    return self.replies.get_nowait()
                except queue.Empty:
                    pass
                if self.failure is not None:
                    raise self.failure
                raise ChannelClosedError("reply reader has stopped")
            remaining -= _POLL_INTERVAL_S
            if remaining <= 0:
                raise ReplyTimeoutError(f"no reply within {timeout}s")
