"""Unit tests for table size helpers."""

from __future__ import annotations

from core.byte_size import format_bytes, serialized_size_bytes


def test_format_bytes_zero() -> None:
    """Zero bytes should render without a unit prefix."""
    assert format_bytes(0) == "0 Bytes"


def test_format_bytes_scales_units() -> None:
    """Byte counts should scale into the largest fitting unit."""
    assert format_bytes(512) == "512 Bytes"
    assert format_bytes(1024) == "1 KB"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(1024**2) == "1 MB"


def test_serialized_size_counts_utf8_bytes() -> None:
    """Size should count encoded bytes of compact JSON."""
    assert serialized_size_bytes([("a", None)]) == len('[["a",null]]')
    assert serialized_size_bytes([("é",)]) == len('[["é"]]'.encode("utf-8"))
