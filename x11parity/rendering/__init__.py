"""Operation trace model shared by the simulator and the equivalence oracle."""

from __future__ import annotations

from .color import NAMED_COLORS, format_color, normalize_color, parse_color
from .operation_log import GCColorTable, OperationLog
from .types import (
    AttrMap,
    CoordList,
    Operation,
    Scalar,
    Text,
    TextItem,
    TextItemList,
    coerce_arg,
)

__all__ = [
    "AttrMap",
    "CoordList",
    "GCColorTable",
    "NAMED_COLORS",
    "Operation",
    "OperationLog",
    "Scalar",
    "Text",
    "TextItem",
    "TextItemList",
    "coerce_arg",
    "format_color",
    "normalize_color",
    "parse_color",
]
