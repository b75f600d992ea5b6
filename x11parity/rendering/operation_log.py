"""Per-session trace state: the ordered operation log and the GC color table.

Both are owned by one Session and written only by the drawing request
functions.  Neither is safe for concurrent writers.
"""

from __future__ import annotations

import logging
import os

import msgpack

from x11parity.protocol.errors import TraceFormatError
from x11parity.rendering.types import Arg, Operation

logger = logging.getLogger(__name__)


class OperationLog:
    """Append-only, ordered record of the operations a session issued."""

    def __init__(self) -> None:
        self._operations: list[Operation] = []

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self):
        return iter(self._operations)

    def __getitem__(self, index):
        return self._operations[index]

    def record(self, op_type: str, args: tuple[Arg, ...] | list = (), color: int = 0) -> Operation:
        operation = Operation(op_type, tuple(args), color)
        self._operations.append(operation)
        logger.debug(
            f"[OperationLog] #{len(self._operations) - 1} {op_type} "
            f"color=#{color:06x}"
        )
        return operation

    def clear(self) -> None:
        self._operations.clear()

    def snapshot(self) -> list[Operation]:
        """Copy of the operations recorded so far."""
        return list(self._operations)

    def to_dict(self) -> list[dict]:
        """JSON-ready trace, one dict per operation."""
        return [op.to_dict() for op in self._operations]

    def dump_msgpack(self, path: str | os.PathLike) -> None:
        with open(path, "wb") as f:
            f.write(msgpack.packb(self.to_dict(), use_bin_type=True))
        logger.info(f"[OperationLog] Wrote {len(self)} operations to {path}")

    @classmethod
    def from_records(cls, records: list[dict]) -> OperationLog:
        """Rebuild a log from ``to_dict`` output.

        :raises TraceFormatError: If the records are malformed.
        """
        if not isinstance(records, list):
            raise TraceFormatError(f"trace must be a list of operations, got {type(records).__name__}")
        log = cls()
        log._operations = [Operation.from_dict(record) for record in records]
        return log

    @classmethod
    def load_msgpack(cls, path: str | os.PathLike) -> OperationLog:
        with open(path, "rb") as f:
            records = msgpack.unpackb(f.read(), raw=False)
        return cls.from_records(records)


class GCColorTable:
    """Maps graphics-context ids to their foreground ``0xRRGGBB`` color."""

    def __init__(self) -> None:
        self._colors: dict[int, int] = {}

    def __contains__(self, gc: int) -> bool:
        return gc in self._colors

    def __len__(self) -> int:
        return len(self._colors)

    def set(self, gc: int, color: int) -> None:
        self._colors[gc] = color

    def resolve(self, gc: int) -> int:
        """Foreground of ``gc``; an unknown context resolves to 0."""
        color = self._colors.get(gc)
        if color is None:
            logger.warning(f"[GCColorTable] No foreground recorded for GC {gc}, using 0")
            return 0
        return color

    def clear(self) -> None:
        self._colors.clear()
