"""Shared serialization for table and backup records.

This module centralizes conversion between SQLite rows and typed
records, and the portable JSON payload used by snapshot files.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Sequence

from core.types import Backup, Row, Table, normalize_columns, normalize_rows


def utc_now() -> datetime:
    """Return the current UTC timestamp."""
    return datetime.now(timezone.utc)


def format_timestamp(timestamp: datetime) -> str:
    """Render a timestamp with fixed microsecond precision so text order is time order."""
    return timestamp.isoformat(timespec="microseconds")


def encode_columns(columns: Sequence[str]) -> str:
    """Serialize header labels into JSON text."""
    return json.dumps(list(columns), ensure_ascii=False)


def encode_rows(rows: Sequence[Row]) -> str:
    """Serialize rows into JSON text, keeping ragged lengths."""
    return json.dumps([list(row) for row in rows], ensure_ascii=False)


def table_from_db_row(db_row: sqlite3.Row) -> Table:
    """Deserialize one ``tables`` row into a Table.

    Args:
        db_row: Row fetched from the tables collection.

    Returns:
        Typed table record.
    """
    return Table(
        id=int(db_row["id"]),
        name=str(db_row["name"]),
        columns=normalize_columns(json.loads(db_row["columns"])),
        rows=normalize_rows(json.loads(db_row["rows"])),
        row_count=int(db_row["row_count"]),
        created_at=datetime.fromisoformat(str(db_row["created_at"])),
        last_modified=datetime.fromisoformat(str(db_row["last_modified"])),
    )


def backup_from_db_row(db_row: sqlite3.Row) -> Backup:
    """Deserialize one ``backups`` row into a Backup.

    Args:
        db_row: Row fetched from the backups collection.

    Returns:
        Typed backup record.
    """
    return Backup(
        id=int(db_row["id"]),
        table_id=int(db_row["table_id"]),
        table_name=str(db_row["table_name"]),
        timestamp=datetime.fromisoformat(str(db_row["timestamp"])),
        description=str(db_row["description"]),
        version=str(db_row["version"]),
        columns=normalize_columns(json.loads(db_row["columns"])),
        rows=normalize_rows(json.loads(db_row["rows"])),
        row_count=int(db_row["row_count"]),
    )


def backup_to_payload(backup: Backup) -> dict[str, Any]:
    """Serialize a Backup into the portable snapshot-file payload.

    Args:
        backup: Backup record.

    Returns:
        JSON-safe dictionary with field-tagged metadata and data.
    """
    return {
        "id": backup.id,
        "tableName": backup.table_name,
        "tableId": backup.table_id,
        "timestamp": backup.timestamp.isoformat(),
        "description": backup.description,
        "version": backup.version,
        "rowCount": backup.row_count,
        "columns": list(backup.columns),
        "rows": [list(row) for row in backup.rows],
    }
