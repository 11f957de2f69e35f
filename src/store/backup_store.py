"""Backup store and retention policy.

This module persists immutable point-in-time copies of tables.
It provides create, list, restore, delete, snapshot-file export, and
per-table pruning used by the auto-backup scheduler.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from core.constants import (
    AUTO_BACKUP_DESCRIPTION,
    BACKUP_FILE_EXTENSION,
    BACKUP_FILE_PREFIX,
    BACKUP_FORMAT_VERSION,
    BACKUPS_COLLECTION,
    DEFAULT_BACKUP_RETENTION,
)
from core.errors import NotFoundError, VaultScheduleError
from core.logging_config import get_logger
from core.types import Backup, BackupFile
from store.database import VaultDatabase
from store.record_payload import (
    backup_from_db_row,
    backup_to_payload,
    encode_columns,
    encode_rows,
    format_timestamp,
    utc_now,
)
from store.table_store import TableStore

if TYPE_CHECKING:
    from store.backup_scheduler import AutoBackupScheduler, ScheduledBackup

_LOGGER = get_logger(__name__)


class BackupStore:
    """Immutable backup store implementation.

    Backups copy a table's columns and rows by value. Later edits,
    renames, or deletion of the source table never touch them.
    """

    def __init__(
        self,
        database: VaultDatabase,
        table_store: TableStore,
        retention: int = DEFAULT_BACKUP_RETENTION,
    ) -> None:
        """Initialize backup store.

        Args:
            database: Shared embedded database.
            table_store: Source of table data and mutation locks.
            retention: Backups kept per table after each auto-backup.
        """
        self._database = database
        self._table_store = table_store
        self._retention = retention
        self._scheduler: AutoBackupScheduler | None = None

    @property
    def retention(self) -> int:
        return self._retention

    def attach_scheduler(self, scheduler: "AutoBackupScheduler") -> None:
        """Bind the scheduler that runs periodic auto-backups."""
        self._scheduler = scheduler

    def create(self, table_id: int, description: str = "") -> int:
        """Capture a snapshot of a table.

        Args:
            table_id: Source table id.
            description: Free-text label.

        Returns:
            New backup id.

        Raises:
            NotFoundError: If the table does not exist.
            StorageError: If persistence fails.
        """
        with self._table_store.mutation_lock(table_id):
            table = self._table_store.require(table_id)
            timestamp = utc_now()
            with self._database.unit_of_work() as connection:
                cursor = connection.execute(
                    f"""
                    INSERT INTO {BACKUPS_COLLECTION}
                        (table_id, table_name, timestamp, description, version,
                         columns, rows, row_count)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        table.id,
                        table.name,
                        format_timestamp(timestamp),
                        description,
                        BACKUP_FORMAT_VERSION,
                        encode_columns(table.columns),
                        encode_rows(table.rows),
                        table.row_count,
                    ),
                )
                backup_id = int(cursor.lastrowid)
        _LOGGER.info(
            "backup_created",
            backup_id=backup_id,
            table_id=table.id,
            table_name=table.name,
            row_count=table.row_count,
        )
        return backup_id

    def get(self, backup_id: int) -> Backup | None:
        """Return one backup, or ``None`` when unknown."""
        with self._database.unit_of_work() as connection:
            db_row = connection.execute(
                f"SELECT * FROM {BACKUPS_COLLECTION} WHERE id = ?", (backup_id,)
            ).fetchone()
        return backup_from_db_row(db_row) if db_row is not None else None

    def require(self, backup_id: int) -> Backup:
        """Return one backup or raise.

        Raises:
            NotFoundError: If the backup does not exist.
        """
        backup = self.get(backup_id)
        if backup is None:
            raise NotFoundError(
                f"Backup with id {backup_id} not found. Use list() to discover valid backup ids."
            )
        return backup

    def list(self, table_name: str | None = None) -> list[Backup]:
        """List backups newest first.

        Args:
            table_name: Optional exact table name filter.

        Returns:
            Backups ordered by timestamp, then id, descending.
        """
        query = f"SELECT * FROM {BACKUPS_COLLECTION}"
        parameters: tuple[object, ...] = ()
        if table_name is not None:
            query += " WHERE table_name = ?"
            parameters = (table_name,)
        query += " ORDER BY timestamp DESC, id DESC"
        with self._database.unit_of_work() as connection:
            db_rows = connection.execute(query, parameters).fetchall()
        return [backup_from_db_row(db_row) for db_row in db_rows]

    def restore(self, backup_id: int) -> int:
        """Write a backup's data back into the table store.

        Overwrites the live table with the backup's name, keeping its id
        and creation time, or recreates the table when it is gone.

        Returns:
            Id of the restored table.

        Raises:
            NotFoundError: If the backup does not exist.
        """
        backup = self.require(backup_id)
        table_id = self._table_store.restore_contents(backup.table_name, backup.columns, backup.rows)
        _LOGGER.info(
            "backup_restored",
            backup_id=backup_id,
            table_id=table_id,
            table_name=backup.table_name,
            row_count=backup.row_count,
        )
        return table_id

    def delete(self, backup_id: int) -> None:
        """Delete one backup.

        Raises:
            NotFoundError: If the backup does not exist.
        """
        with self._database.unit_of_work(immediate=True) as connection:
            cursor = connection.execute(
                f"DELETE FROM {BACKUPS_COLLECTION} WHERE id = ?", (backup_id,)
            )
            deleted = cursor.rowcount
        if deleted == 0:
            raise NotFoundError(
                f"Backup with id {backup_id} not found. It may already have been deleted."
            )
        _LOGGER.info("backup_deleted", backup_id=backup_id)

    def export_to_file(self, backup_id: int) -> BackupFile:
        """Serialize a backup as a portable JSON snapshot file.

        Returns:
            File name ``backup_<table>_<capture-date>.json`` and content bytes.

        Raises:
            NotFoundError: If the backup does not exist.
        """
        backup = self.require(backup_id)
        content = json.dumps(backup_to_payload(backup), indent=2, ensure_ascii=False) + "\n"
        file_name = (
            f"{BACKUP_FILE_PREFIX}{safe_file_stem(backup.table_name)}_"
            f"{backup.timestamp.date().isoformat()}{BACKUP_FILE_EXTENSION}"
        )
        return BackupFile(file_name=file_name, content=content.encode("utf-8"))

    def prune(self, table_id: int, keep: int) -> list[int]:
        """Keep the newest backups of a table id and delete the rest.

        Args:
            table_id: Source table id the backups were captured from.
            keep: Number of most recent backups to keep.

        Returns:
            Ids of deleted backups.
        """
        with self._table_store.mutation_lock(table_id):
            with self._database.unit_of_work() as connection:
                db_rows = connection.execute(
                    f"""
                    SELECT id FROM {BACKUPS_COLLECTION}
                    WHERE table_id = ?
                    ORDER BY timestamp DESC, id DESC
                    """,
                    (table_id,),
                ).fetchall()
                stale_ids = [int(db_row["id"]) for db_row in db_rows[max(keep, 0) :]]
                connection.executemany(
                    f"DELETE FROM {BACKUPS_COLLECTION} WHERE id = ?",
                    [(stale_id,) for stale_id in stale_ids],
                )
        if stale_ids:
            _LOGGER.info("backups_pruned", table_id=table_id, deleted_ids=stale_ids, kept=keep)
        return stale_ids

    def run_auto_backup_cycle(self, table_id: int) -> int | None:
        """Run one scheduled backup and apply the retention policy.

        Failures are logged and swallowed so a schedule keeps running.

        Returns:
            New backup id, or ``None`` when the cycle failed.
        """
        try:
            backup_id = self.create(table_id, AUTO_BACKUP_DESCRIPTION)
            self.prune(table_id, self._retention)
        except Exception as error:
            _LOGGER.error(
                "auto_backup_failed",
                table_id=table_id,
                error_type=type(error).__name__,
                error=str(error),
            )
            return None
        return backup_id

    def schedule_auto_backup(
        self,
        table_id: int,
        interval_hours: float | None = None,
    ) -> "ScheduledBackup":
        """Back up now, then repeat every ``interval_hours`` until cancelled.

        Raises:
            VaultScheduleError: If no scheduler is attached or interval is invalid.
            NotFoundError: If the table does not exist.
        """
        if self._scheduler is None:
            raise VaultScheduleError(
                "No auto-backup scheduler is attached. Build the store through VaultClient."
            )
        return self._scheduler.schedule(table_id, interval_hours)


def safe_file_stem(name: str) -> str:
    """Replace path separators so a table name is usable in a file name."""
    return name.replace("/", "_").replace("\\", "_").strip() or "table"
