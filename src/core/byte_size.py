"""Serialized size helpers for table statistics."""

from __future__ import annotations

import json
from typing import Sequence

from core.constants import BYTE_SIZE_BASE, BYTE_SIZE_UNITS
from core.types import Row


def serialized_size_bytes(rows: Sequence[Row]) -> int:
    """Return the UTF-8 byte length of the compact JSON encoding of rows.

    Args:
        rows: Table rows.

    Returns:
        Byte count used as a capacity signal.
    """
    payload = json.dumps([list(row) for row in rows], separators=(",", ":"), ensure_ascii=False)
    return len(payload.encode("utf-8"))


def format_bytes(size_bytes: int) -> str:
    """Render a byte count as a short human-readable label.

    Args:
        size_bytes: Non-negative byte count.

    Returns:
        Label such as ``"0 Bytes"`` or ``"1.5 KB"``.
    """
    if size_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while exponent < len(BYTE_SIZE_UNITS) - 1 and size_bytes >= BYTE_SIZE_BASE ** (exponent + 1):
        exponent += 1
    scaled = round(size_bytes / BYTE_SIZE_BASE**exponent, 2)
    # 1.0 -> "1", 1.5 -> "1.5"
    label = f"{scaled:g}"
    return f"{label} {BYTE_SIZE_UNITS[exponent]}"
