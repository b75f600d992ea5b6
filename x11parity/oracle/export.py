"""CSV reports of oracle results."""

from __future__ import annotations

import json
import logging
import os

import flatten_dict
import pandas as pd

from x11parity.oracle.compare import OracleResult

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "kind",
    "op_index",
    "arg_index",
    "op_type",
    "expected",
    "actual",
    "detail",
]


def _cell(value):
    # Lists (coordinates, text items) stay readable in one CSV cell.
    if isinstance(value, list):
        return json.dumps(value)
    return value


def _flatten_row(discrepancy: dict) -> dict:
    """Attribute maps become ``expected.Foreground`` style columns."""
    flattened = flatten_dict.flatten(discrepancy, reducer="dot")
    return {key: _cell(value) for key, value in flattened.items()}


def discrepancies_to_frame(result: OracleResult) -> pd.DataFrame:
    rows = [_flatten_row(d.to_dict()) for d in result.discrepancies]
    df = pd.DataFrame(rows)
    for column in REPORT_COLUMNS:
        if column not in df.columns and not any(
            c.startswith(f"{column}.") for c in df.columns
        ):
            df[column] = None
    return df


def write_discrepancy_report(result: OracleResult, filename: str) -> pd.DataFrame:
    """Write one CSV row per discrepancy and return the frame."""
    df = discrepancies_to_frame(result)
    df["timestamp"] = pd.to_datetime("now")

    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    logger.info(f"Saving {filename}")
    df.to_csv(filename, index=False)
    return df
