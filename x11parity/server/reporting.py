"""Non-fatal validation findings.

Findings come from both the issuing thread (sequence mismatches, font
metric checks, color checks) and the reply reader thread (X11 Error
messages, dropped replies), so the list is guarded by a lock.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from threading import Lock

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Finding:
    kind: str
    message: str
    timestamp: float = dataclasses.field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "timestamp": self.timestamp}


class ValidationReporter:
    def __init__(self) -> None:
        self.lock = Lock()
        self._findings: list[Finding] = []

    def report(self, kind: str, message: str) -> Finding:
        finding = Finding(kind, message)
        with self.lock:
            self._findings.append(finding)
        logger.error(f"[Validation] {kind}: {message}")
        return finding

    @property
    def findings(self) -> list[Finding]:
        with self.lock:
            return list(self._findings)

    def of_kind(self, kind: str) -> list[Finding]:
        return [f for f in self.findings if f.kind == kind]

    def clear(self) -> None:
        with self.lock:
            self._findings.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._findings)
