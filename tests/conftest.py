"""Pytest configuration for tablevault test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src and tests directories to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    for import_root in (project_root / "src", project_root / "tests"):
        if str(import_root) not in sys.path:
            sys.path.insert(0, str(import_root))


@pytest.fixture(autouse=True)
def _isolated_vault_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer TABLEVAULT_* settings out of test configs."""
    for variable in (
        "TABLEVAULT_DATA_ROOT",
        "TABLEVAULT_BACKUP_RETENTION",
        "TABLEVAULT_AUTO_BACKUP_HOURS",
        "TABLEVAULT_CSV_DELIMITER",
        "TABLEVAULT_CSV_ENCODING",
    ):
        monkeypatch.delenv(variable, raising=False)
