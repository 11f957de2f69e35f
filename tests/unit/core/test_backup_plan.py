"""Unit tests for backup plan parsing."""

from __future__ import annotations

import pytest

from core.backup_plan import load_backup_plan
from core.errors import BackupPlanError
from fixture_paths import fixture_path


def test_load_backup_plan_applies_defaults_and_overrides() -> None:
    """Entries without an interval should inherit the plan default."""
    plan = load_backup_plan(str(fixture_path("plans/plan.yaml")), fallback_interval_hours=24.0)

    intervals = {entry.table_name: entry.interval_hours for entry in plan.entries}

    assert intervals == {"orders": 12.0, "customers": 1.5}


def test_load_backup_plan_uses_fallback_without_defaults(tmp_path) -> None:
    """Plan without defaults should use the configured interval."""
    plan_path = tmp_path / "plan.yaml"
    plan_path.write_text("version: 1\ntables:\n  - orders\n", encoding="utf-8")

    plan = load_backup_plan(str(plan_path), fallback_interval_hours=6.0)

    assert plan.entries[0].interval_hours == 6.0 and plan.default_interval_hours is None


def test_load_backup_plan_rejects_duplicate_tables() -> None:
    """A table listed twice should be rejected."""
    with pytest.raises(BackupPlanError):
        load_backup_plan(str(fixture_path("plans/duplicate_tables.yaml")), 24.0)


def test_load_backup_plan_rejects_unknown_root_key() -> None:
    """Unknown root fields should be rejected."""
    with pytest.raises(BackupPlanError, match="retention"):
        load_backup_plan(str(fixture_path("plans/unknown_key.yaml")), 24.0)


def test_load_backup_plan_rejects_zero_interval() -> None:
    """Non-positive intervals should be rejected."""
    with pytest.raises(BackupPlanError):
        load_backup_plan(str(fixture_path("plans/zero_interval.yaml")), 24.0)


def test_load_backup_plan_missing_file_raises_error(tmp_path) -> None:
    """Missing plan file should raise a plan error."""
    with pytest.raises(BackupPlanError):
        load_backup_plan(str(tmp_path / "absent.yaml"), 24.0)


def test_load_backup_plan_rejects_unsupported_version(tmp_path) -> None:
    """Plans must declare the supported version."""
    plan_path = tmp_path / "plan.yaml"
    plan_path.write_text("version: 2\ntables:\n  - orders\n", encoding="utf-8")

    with pytest.raises(BackupPlanError):
        load_backup_plan(str(plan_path), 24.0)
