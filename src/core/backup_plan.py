"""Typed YAML backup plans for scheduled auto-backups.

This module loads and validates YAML files that list which tables
should be backed up automatically and how often. The CLI consumes
the parsed plan to register one schedule per table.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence, cast

import yaml

from core.constants import BACKUP_PLAN_VERSION
from core.errors import BackupPlanError


@dataclass(frozen=True)
class BackupPlanEntry:
    """One table schedule from a backup plan."""

    table_name: str
    interval_hours: float


@dataclass(frozen=True)
class BackupPlan:
    """Validated backup plan root object."""

    version: int
    default_interval_hours: float | None
    entries: tuple[BackupPlanEntry, ...]


def load_backup_plan(plan_path: str, fallback_interval_hours: float) -> BackupPlan:
    """Load and validate a YAML backup plan from disk.

    Args:
        plan_path: File path to YAML plan.
        fallback_interval_hours: Interval used when neither the entry nor
            the plan defaults specify one.

    Returns:
        Fully validated backup plan.

    Raises:
        BackupPlanError: If file is unreadable or schema checks fail.
    """
    payload = _load_yaml_payload(plan_path)
    root_mapping = _expect_mapping(payload, "backup plan root")
    _validate_root_keys(root_mapping)
    version = _parse_version(root_mapping)
    default_interval = _parse_defaults(root_mapping)
    entries = _parse_entries(root_mapping, default_interval or fallback_interval_hours)
    return BackupPlan(version=version, default_interval_hours=default_interval, entries=entries)


def _load_yaml_payload(plan_path: str) -> object:
    plan_file = Path(plan_path).expanduser().resolve()
    if not plan_file.exists():
        raise BackupPlanError(
            f"Backup plan file does not exist at {plan_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(plan_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise BackupPlanError(
            f"Failed to read backup plan at {plan_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise BackupPlanError(
            f"Failed to parse YAML backup plan at {plan_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise BackupPlanError(f"Backup plan at {plan_file} is empty. Define 'version' and 'tables'.")
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise BackupPlanError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise BackupPlanError(f"Invalid {context}: expected object mapping, got {type(value).__name__}.")


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise BackupPlanError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise BackupPlanError(
            f"Backup plan field 'version' must be an integer. Set version: {BACKUP_PLAN_VERSION}."
        )
    if raw_version != BACKUP_PLAN_VERSION:
        raise BackupPlanError(
            f"Unsupported backup plan version {raw_version}. Use version: {BACKUP_PLAN_VERSION}."
        )
    return raw_version


def _parse_defaults(root_mapping: Mapping[str, object]) -> float | None:
    raw_defaults = root_mapping.get("defaults")
    if raw_defaults is None:
        return None
    defaults_mapping = _expect_mapping(raw_defaults, "backup plan defaults")
    unknown_keys = sorted(set(defaults_mapping) - {"interval_hours"})
    if unknown_keys:
        raise BackupPlanError(
            f"Backup plan defaults contain unknown fields: {', '.join(unknown_keys)}."
        )
    return _optional_interval(defaults_mapping, "backup plan defaults")


def _parse_entries(
    root_mapping: Mapping[str, object],
    default_interval_hours: float,
) -> tuple[BackupPlanEntry, ...]:
    raw_tables = root_mapping.get("tables")
    if raw_tables is None:
        raise BackupPlanError(
            "Backup plan missing required field 'tables'. Add a non-empty list of tables."
        )
    table_rows = _expect_sequence(raw_tables, "backup plan tables")
    if len(table_rows) == 0:
        raise BackupPlanError("Backup plan field 'tables' must include at least one table.")
    entries: list[BackupPlanEntry] = []
    seen_names: set[str] = set()
    for index, table_value in enumerate(table_rows):
        entry = _parse_entry(table_value, index, default_interval_hours)
        if entry.table_name in seen_names:
            raise BackupPlanError(
                f"Backup plan lists table '{entry.table_name}' more than once. "
                "Keep a single entry per table."
            )
        seen_names.add(entry.table_name)
        entries.append(entry)
    return tuple(entries)


def _parse_entry(
    table_value: object,
    entry_index: int,
    default_interval_hours: float,
) -> BackupPlanEntry:
    context = f"backup plan table #{entry_index + 1}"
    if isinstance(table_value, str):
        table_mapping: Mapping[str, object] = {"name": table_value}
    else:
        table_mapping = _expect_mapping(table_value, context)
    unknown_keys = sorted(set(table_mapping) - {"name", "interval_hours"})
    if unknown_keys:
        raise BackupPlanError(f"Invalid {context}: unknown fields {', '.join(unknown_keys)}.")
    raw_name = table_mapping.get("name")
    if not isinstance(raw_name, str) or not raw_name.strip():
        raise BackupPlanError(f"Invalid {context}: field 'name' must be a non-empty string.")
    interval_hours = _optional_interval(table_mapping, context)
    return BackupPlanEntry(
        table_name=raw_name.strip(),
        interval_hours=interval_hours if interval_hours is not None else default_interval_hours,
    )


def _optional_interval(mapping: Mapping[str, object], context: str) -> float | None:
    raw_value = mapping.get("interval_hours")
    if raw_value is None:
        return None
    if isinstance(raw_value, bool) or not isinstance(raw_value, (int, float)):
        raise BackupPlanError(f"Invalid {context}: 'interval_hours' must be a number.")
    if raw_value <= 0:
        raise BackupPlanError(f"Invalid {context}: 'interval_hours' must be greater than zero.")
    return float(raw_value)


def _validate_root_keys(root_mapping: Mapping[str, object]) -> None:
    allowed_keys = {"version", "defaults", "tables"}
    unknown_keys = sorted(set(root_mapping) - allowed_keys)
    if unknown_keys:
        raise BackupPlanError(
            f"Backup plan contains unknown root fields: {', '.join(unknown_keys)}."
        )
