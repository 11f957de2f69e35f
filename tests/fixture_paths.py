"""Shared fixture path helpers for tests."""

from __future__ import annotations

from pathlib import Path

FIXTURES_ROOT = Path(__file__).resolve().parent / "fixtures"


def fixture_path(relative_path: str) -> Path:
    """Resolve a CSV or backup-plan fixture under tests/fixtures.

    Args:
        relative_path: Path such as ``csv/orders.csv`` or ``plans/plan.yaml``.

    Returns:
        Absolute fixture path.
    """
    return FIXTURES_ROOT / relative_path
