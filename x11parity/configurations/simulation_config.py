from __future__ import annotations

import logging
import os

from x11parity.configurations import configuration_constants
from x11parity.utils.sentinels import NotProvided


class SimulationConfig:
    """Settings for one simulated X11 client session and its trace server.

    Every builder method returns ``self`` so settings can be chained::

        config = (
            SimulationConfig()
            .display(host="127.0.0.1", display_number=1)
            .timeouts(reply_timeout_s=2.0)
        )
    """

    def __init__(self):

        # X display the simulator connects to
        self.display_host: str = "127.0.0.1"
        self.display_number: int = 0

        # Scene
        self.window_width: int = 600
        self.window_height: int = 400

        # Protocol
        self.protocol_major_version: int = 11
        self.protocol_minor_version: int = 0
        self.byte_order: bytes = b"l"

        # Timing
        self.reply_timeout_s: float = 5.0
        self.idle_period_s: float = 2.0
        self.connect_timeout_s: float = 10.0

        # Sanity bound on reply trailing data
        self.max_reply_bytes: int = 4096

        # Trace server
        self.host: str | None = None
        self.port: int = 8000

        # Logging and output
        self.log_file: str = "./x11parity.log"
        self.log_level: int = logging.INFO
        self.output_dir: str | None = None

    @property
    def display_port(self) -> int:
        return configuration_constants.X11_TCP_PORT_BASE + self.display_number

    def display(
        self,
        host: str = NotProvided,
        display_number: int = NotProvided,
    ) -> SimulationConfig:
        if host is not NotProvided:
            self.display_host = host

        if display_number is not NotProvided:
            if display_number < 0:
                raise ValueError(
                    f"display_number must be >= 0, got {display_number}"
                )
            self.display_number = display_number

        return self

    def window(
        self,
        width: int = NotProvided,
        height: int = NotProvided,
    ) -> SimulationConfig:
        if width is not NotProvided:
            self.window_width = width

        if height is not NotProvided:
            self.window_height = height

        return self

    def protocol(
        self,
        major_version: int = NotProvided,
        minor_version: int = NotProvided,
        byte_order: bytes = NotProvided,
    ) -> SimulationConfig:
        """Configure the setup request.

        Only little-endian framing is implemented, so ``byte_order`` must be
        ``b"l"``.

        :raises ValueError: If a big-endian byte order is requested.
        """
        if major_version is not NotProvided:
            self.protocol_major_version = major_version

        if minor_version is not NotProvided:
            self.protocol_minor_version = minor_version

        if byte_order is not NotProvided:
            if byte_order != b"l":
                raise ValueError(
                    f"Only little-endian byte order b'l' is supported, got {byte_order!r}"
                )
            self.byte_order = byte_order

        return self

    def timeouts(
        self,
        reply_timeout_s: float = NotProvided,
        idle_period_s: float = NotProvided,
        connect_timeout_s: float = NotProvided,
    ) -> SimulationConfig:
        if reply_timeout_s is not NotProvided:
            self.reply_timeout_s = reply_timeout_s

        if idle_period_s is not NotProvided:
            self.idle_period_s = idle_period_s

        if connect_timeout_s is not NotProvided:
            self.connect_timeout_s = connect_timeout_s

        return self

    def limits(self, max_reply_bytes: int = NotProvided) -> SimulationConfig:
        if max_reply_bytes is not NotProvided:
            self.max_reply_bytes = max_reply_bytes

        return self

    def hosting(
        self,
        host: str | None = NotProvided,
        port: int | None = NotProvided,
    ) -> SimulationConfig:
        if host is not NotProvided:
            self.host = host

        if port is not NotProvided:
            self.port = port

        return self

    def logging(
        self,
        log_file: str = NotProvided,
        level: int = NotProvided,
    ) -> SimulationConfig:
        if log_file is not NotProvided:
            self.log_file = log_file

        if level is not NotProvided:
            self.log_level = level

        return self

    def output(self, output_dir: str | None = NotProvided) -> SimulationConfig:
        """Directory where trace files and discrepancy reports are written.

        Falls back to the ``X11PARITY_OUTPUT_DIR`` environment variable when
        no directory is given.
        """
        if output_dir is not NotProvided:
            self.output_dir = output_dir
        elif self.output_dir is None:
            self.output_dir = os.environ.get("X11PARITY_OUTPUT_DIR")

        return self
