#!/usr/bin/env python3
"""
Compare a reference X11 operation trace with a rendering client's trace.

The reference is the trace the simulator recorded, either the msgpack file
written by the trace server (``reference.msgpack``) or a JSON list of
operation records as served by ``GET /operations``.  The observed trace is
the JSON list the client published (``window.getCanvasOperations()``).

Usage:
    python scripts/compare_traces.py reference.msgpack observed.json
    python scripts/compare_traces.py reference.json observed.json --verbose
    python scripts/compare_traces.py reference.msgpack observed.json --report out.csv

Exit code: 0 if the traces are equivalent, 1 if they diverge or cannot be read.
"""

import argparse
import json
import sys
from collections import Counter
from pathlib import Path

from x11parity.oracle.compare import compare_operations
from x11parity.oracle.export import write_discrepancy_report
from x11parity.oracle.observed import parse_observed_trace
from x11parity.protocol.errors import TraceFormatError
from x11parity.rendering.operation_log import OperationLog


def load_reference(filepath: Path) -> OperationLog:
    """Load a reference trace from msgpack or JSON."""
    if filepath.suffix == ".msgpack":
        return OperationLog.load_msgpack(filepath)
    with open(filepath, "r", encoding="utf-8") as f:
        records = json.load(f)
    # GET /operations wraps the list
    if isinstance(records, dict):
        records = records.get("operations", [])
    return OperationLog.from_records(records)


def load_observed(filepath: Path):
    with open(filepath, "r", encoding="utf-8") as f:
        return parse_observed_trace(f.read())


def compare_files(
    reference_file: Path,
    observed_file: Path,
    verbose: bool = False,
    report: Path | None = None,
) -> int:
    """Compare two trace files and report divergences.

    Returns exit code: 0 if equivalent, 1 if different.
    """
    try:
        reference = load_reference(reference_file)
        observed = load_observed(observed_file)
    except (OSError, TraceFormatError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    result = compare_operations(list(reference), observed)

    print(f"Comparing: {reference_file.name} vs {observed_file.name}")
    print("=" * 70)
    print(f"Operations: {result.reference_count} vs {result.observed_count}")
    print()

    if result.passed:
        print("IDENTICAL: traces are equivalent")
        return 0

    by_kind = Counter(d.kind for d in result.discrepancies)
    print("DIVERGENCES FOUND:")
    for kind, count in sorted(by_kind.items()):
        print(f"  {kind}: {count}")

    shown = result.discrepancies if verbose else result.discrepancies[:10]
    print()
    for discrepancy in shown:
        print(f"  {discrepancy.describe()}")
    if len(shown) < len(result.discrepancies):
        print(f"  ... and {len(result.discrepancies) - len(shown)} more (use --verbose)")

    if report is not None:
        write_discrepancy_report(result, str(report))
        print(f"\nReport written to {report}")

    return 1


def main():
    parser = argparse.ArgumentParser(
        description="Compare a reference X11 operation trace with an observed canvas trace"
    )
    parser.add_argument("reference", type=str, help="Reference trace (.msgpack or .json)")
    parser.add_argument("observed", type=str, help="Observed trace (.json)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show every discrepancy")
    parser.add_argument("--report", type=str, help="Write a CSV discrepancy report to this path")
    args = parser.parse_args()

    reference_file, observed_file = Path(args.reference), Path(args.observed)
    for filepath in (reference_file, observed_file):
        if not filepath.exists():
            print(f"Error: File not found: {filepath}")
            sys.exit(1)

    report = Path(args.report) if args.report else None
    sys.exit(compare_files(reference_file, observed_file, args.verbose, report))


if __name__ == "__main__":
    main()
