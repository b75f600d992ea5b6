"""Semantic equivalence between the simulator's trace and the client's.

The reference side is typed (see ``x11parity.rendering.types``); the
observed side is whatever the rendering client reported.  Values are
normalized only while comparing, and every mismatch is collected: a
comparison never stops at the first difference.
"""

from __future__ import annotations

import collections
import dataclasses
import logging
import math
from collections.abc import Sequence

from x11parity.oracle.observed import ObservedOperation, parse_observed_trace
from x11parity.rendering.color import format_color, parse_color
from x11parity.rendering.types import (
    AttrMap,
    CoordList,
    Operation,
    Scalar,
    Text,
    TextItemList,
)

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Discrepancy:
    """One difference between the traces.

    :param kind: ``count``, ``type``, ``color``, ``arg_count`` or ``arg``.
    :param op_index: Position in the traces; None for count differences.
    :param arg_index: Argument position for ``arg`` differences.
    :param op_type: Reference operation type (or the counted type).
    :param expected: Reference value (the signed delta for ``count``).
    :param actual: Observed value.
    """

    kind: str
    op_type: str
    expected: object = None
    actual: object = None
    op_index: int | None = None
    arg_index: int | None = None
    detail: str = ""

    def describe(self) -> str:
        if self.kind == "count":
            delta = self.expected
            side = "reference" if delta > 0 else "observed"
            return f"{self.op_type}: {delta:+d} ({side} has {abs(delta)} more)"
        where = f"op {self.op_index} ({self.op_type})"
        if self.arg_index is not None:
            where += f" arg {self.arg_index}"
        text = f"{where}: {self.kind} mismatch, expected {self.expected!r}, got {self.actual!r}"
        if self.detail:
            text += f" [{self.detail}]"
        return text

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "op_type": self.op_type,
            "op_index": self.op_index,
            "arg_index": self.arg_index,
            "expected": self.expected,
            "actual": self.actual,
            "detail": self.detail,
        }


@dataclasses.dataclass
class OracleResult:
    reference_count: int
    observed_count: int
    discrepancies: list[Discrepancy] = dataclasses.field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.discrepancies

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "reference_count": self.reference_count,
            "observed_count": self.observed_count,
            "discrepancies": [d.to_dict() for d in self.discrepancies],
        }


# ----------------------------------------------------------------------
# Value normalization
# ----------------------------------------------------------------------


def to_integer(value) -> int | None:
    """Integer meaning of a JSON value, or None if it has none.

    Accepts ints, integral floats and numeric strings.  Booleans and
    non-integral numbers have no integer meaning.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 10)
        except ValueError:
            pass
        try:
            return to_integer(float(text))
        except ValueError:
            return None
    return None


def to_int16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def to_int8(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


def _scalar_equal(expected: int, actual) -> bool:
    return to_integer(actual) == expected


def _attribute_equal(expected, actual) -> bool:
    if isinstance(expected, int):
        as_int = to_integer(actual)
        if as_int is not None:
            return as_int == expected
    return str(expected) == str(actual)


# ----------------------------------------------------------------------
# Comparison
# ----------------------------------------------------------------------


class _Collector:
    def __init__(self, result: OracleResult) -> None:
        self.result = result

    def add(self, discrepancy: Discrepancy) -> None:
        self.result.discrepancies.append(discrepancy)
        logger.error(f"[Oracle] {discrepancy.describe()}")


def _compare_count(reference: Sequence[Operation], observed: Sequence[ObservedOperation], out: _Collector) -> None:
    delta = collections.Counter(op.type for op in reference)
    delta.subtract(collections.Counter(op.type for op in observed))
    for op_type in sorted(delta):
        if delta[op_type]:
            out.add(
                Discrepancy(
                    "count",
                    op_type,
                    expected=delta[op_type],
                    detail=f"reference={len(reference)}, observed={len(observed)}",
                )
            )


def _compare_color(index: int, ref: Operation, obs: ObservedOperation, out: _Collector) -> None:
    if ref.color == 0 and obs.style is None:
        return
    expected = format_color(ref.color)
    if obs.style is None:
        out.add(Discrepancy("color", ref.type, expected, None, index, detail="no fillStyle or strokeStyle"))
        return
    try:
        actual = parse_color(obs.style)
    except (TypeError, ValueError):
        out.add(Discrepancy("color", ref.type, expected, obs.style, index, detail="unparseable color"))
        return
    if actual != ref.color & 0xFFFFFF:
        out.add(Discrepancy("color", ref.type, expected, obs.style, index))


def _compare_arg(index: int, arg_index: int, op_type: str, ref_arg, obs_arg, out: _Collector) -> None:
    def mismatch(detail: str = "") -> None:
        out.add(
            Discrepancy(
                "arg", op_type, ref_arg.to_wire(), obs_arg, index, arg_index, detail
            )
        )

    if isinstance(ref_arg, Scalar):
        if not _scalar_equal(ref_arg.value, obs_arg):
            mismatch()

    elif isinstance(ref_arg, Text):
        if not isinstance(obs_arg, str) or obs_arg != ref_arg.value:
            mismatch()

    elif isinstance(ref_arg, CoordList):
        if not isinstance(obs_arg, list):
            mismatch("expected a list")
            return
        if len(obs_arg) != len(ref_arg.values):
            mismatch(f"length {len(ref_arg.values)} vs {len(obs_arg)}")
            return
        for k, (expected, actual) in enumerate(zip(ref_arg.values, obs_arg)):
            actual_int = to_integer(actual)
            if actual_int is None or to_int16(actual_int) != to_int16(expected):
                mismatch(f"element {k}")

    elif isinstance(ref_arg, TextItemList):
        if not isinstance(obs_arg, list):
            mismatch("expected a list of text items")
            return
        if len(obs_arg) != len(ref_arg.items):
            mismatch(f"item count {len(ref_arg.items)} vs {len(obs_arg)}")
            return
        for k, (item, actual) in enumerate(zip(ref_arg.items, obs_arg)):
            if not isinstance(actual, dict):
                mismatch(f"item {k} is not an object")
                continue
            delta = to_integer(actual.get("delta"))
            if delta is None or to_int8(delta) != to_int8(item.delta):
                mismatch(f"item {k} delta")
            if actual.get("text") != item.text:
                mismatch(f"item {k} text")

    elif isinstance(ref_arg, AttrMap):
        if not isinstance(obs_arg, dict):
            mismatch("expected an attribute map")
            return
        for key, expected in ref_arg.values.items():
            if key not in obs_arg:
                mismatch(f"missing attribute {key}")
            elif not _attribute_equal(expected, obs_arg[key]):
                mismatch(f"attribute {key}")

    else:
        raise TypeError(f"unknown reference argument kind {type(ref_arg).__name__}")


def compare_operations(
    reference: Sequence[Operation],
    observed: Sequence[ObservedOperation] | list,
) -> OracleResult:
    """Compare the reference trace with the client's observed trace.

    :param reference: Operations recorded by the simulator.
    :param observed: Parsed observed operations, or raw JSON records which
        are parsed first.
    :raises TraceFormatError: If raw observed records are malformed.
    """
    reference = list(reference)
    observed = list(observed)
    if observed and not isinstance(observed[0], ObservedOperation):
        observed = parse_observed_trace(observed)

    result = OracleResult(len(reference), len(observed))
    out = _Collector(result)

    if len(reference) != len(observed):
        _compare_count(reference, observed, out)
        logger.error(
            f"[Oracle] Operation count mismatch: reference={len(reference)}, "
            f"observed={len(observed)}"
        )
        return result

    for index, (ref, obs) in enumerate(zip(reference, observed)):
        if ref.type != obs.type:
            out.add(Discrepancy("type", ref.type, ref.type, obs.type, index))

        _compare_color(index, ref, obs, out)

        if len(ref.args) != len(obs.args):
            out.add(
                Discrepancy("arg_count", ref.type, len(ref.args), len(obs.args), index)
            )
            continue

        for arg_index, (ref_arg, obs_arg) in enumerate(zip(ref.args, obs.args)):
            _compare_arg(index, arg_index, ref.type, ref_arg, obs_arg, out)

    if result.passed:
        logger.info(f"[Oracle] {len(reference)} operations equivalent")
    else:
        logger.error(f"[Oracle] {len(result.discrepancies)} discrepancies")
    return result
