"""Python SDK for table and backup operations.

This module wires configuration, the embedded database, both stores,
and the auto-backup scheduler into one explicitly opened client, and
adds file-level helpers for CSV and snapshot files.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Sequence

from core.config import VaultConfig, parse_delimiter
from core.constants import CSV_FILE_EXTENSION, DEFAULT_PAGE_SIZE
from core.errors import NotFoundError, VaultIngestError
from core.logging_config import get_logger
from core.types import Backup, CsvImportOptions, Table, TablePage, TableStats
from ingest.csv_codec import write_csv_file
from ingest.csv_import import load_csv_files
from store.backup_scheduler import AutoBackupScheduler, ScheduledBackup
from store.backup_store import BackupStore, safe_file_stem
from store.database import VaultDatabase
from store.mutation_locks import MutationLockRegistry
from store.table_store import TableStore

_LOGGER = get_logger(__name__)


class VaultClient:
    """Primary SDK entry point.

    The client opens its database on construction and must be closed
    with ``close`` (or used as a context manager) to stop schedules and
    release the database file.
    """

    def __init__(self, config: VaultConfig | None = None) -> None:
        """Create SDK client and open its database.

        Args:
            config: Optional runtime configuration.

        Raises:
            StorageError: If the database cannot be opened.
        """
        self._config = config or VaultConfig.from_env()
        self._database = VaultDatabase(self._config.database_path).open()
        locks = MutationLockRegistry()
        self._tables = TableStore(self._database, locks)
        self._backups = BackupStore(
            self._database,
            self._tables,
            retention=self._config.backup_retention,
        )
        self._scheduler = AutoBackupScheduler(
            self._tables,
            self._backups,
            default_interval_hours=self._config.auto_backup_interval_hours,
        )

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def tables(self) -> TableStore:
        return self._tables

    @property
    def backups(self) -> BackupStore:
        return self._backups

    @property
    def scheduler(self) -> AutoBackupScheduler:
        return self._scheduler

    def table(self, table_name: str) -> "TableHandle":
        """Get a table handle by name.

        Raises:
            NotFoundError: If no live table has that name.
        """
        table = self._tables.get_by_name(table_name)
        if table is None:
            raise NotFoundError(
                f"Table '{table_name}' not found. Create or import it before opening a handle."
            )
        return TableHandle(table.id, self)

    def csv_options(
        self,
        delimiter: str | None = None,
        encoding: str | None = None,
        header_row: int | None = None,
    ) -> CsvImportOptions:
        """Build CSV read options, filling gaps from configuration.

        Args:
            delimiter: Delimiter setting; ``"auto"`` sniffs, ``None`` uses config.
            encoding: Text encoding; config default when omitted.
            header_row: One-based header row; first row when omitted.

        Raises:
            VaultConfigError: If the delimiter setting is invalid.
        """
        defaults = CsvImportOptions()
        return CsvImportOptions(
            delimiter=(
                self._config.csv_delimiter
                if delimiter is None
                else parse_delimiter(delimiter, source="delimiter")
            ),
            encoding=encoding or self._config.csv_encoding,
            header_row=header_row if header_row is not None else defaults.header_row,
        )

    def import_csv_files(
        self,
        table_name: str,
        file_paths: Sequence[Path],
        options: CsvImportOptions | None = None,
        append: bool = False,
    ) -> int:
        """Read CSV files and import them into one table.

        Args:
            table_name: Target table name.
            file_paths: CSV files, merged in order.
            options: Read options; configuration defaults when omitted.
            append: Append to an existing table of that name.

        Returns:
            Id of the created or appended table.

        Raises:
            VaultIngestError: If a file cannot be read.
            EmptyInputError: If the files hold no rows.
            DuplicateNameError: If creating and the name is taken.
        """
        header_plus_rows = load_csv_files(file_paths, options or self.csv_options())
        return self._tables.import_csv(table_name, header_plus_rows, append=append)

    def write_csv_export(self, table_id: int, output_dir: Path) -> Path:
        """Write a table to ``<name>_<YYYY-MM-DD>.csv`` in a directory.

        Returns:
            Path of the written file.

        Raises:
            NotFoundError: If the table does not exist.
            VaultIngestError: If the file cannot be written.
        """
        table = self._tables.require(table_id)
        rows = self._tables.export_csv(table_id)
        output_path = _prepare_output_dir(output_dir) / (
            f"{safe_file_stem(table.name)}_{date.today().isoformat()}{CSV_FILE_EXTENSION}"
        )
        write_csv_file(output_path, rows, self._config.csv_encoding)
        _LOGGER.info("csv_exported", table_id=table_id, output_path=str(output_path))
        return output_path

    def write_backup_file(self, backup_id: int, output_dir: Path) -> Path:
        """Write a backup snapshot file into a directory.

        Returns:
            Path of the written file.

        Raises:
            NotFoundError: If the backup does not exist.
            VaultIngestError: If the file cannot be written.
        """
        backup_file = self._backups.export_to_file(backup_id)
        output_path = _prepare_output_dir(output_dir) / backup_file.file_name
        try:
            output_path.write_bytes(backup_file.content)
        except OSError as error:
            raise VaultIngestError(
                f"Failed to write backup file {output_path}: {error}. Check the output directory."
            ) from error
        _LOGGER.info("backup_file_written", backup_id=backup_id, output_path=str(output_path))
        return output_path

    def delete_table(self, table_id: int) -> None:
        """Delete a table; its auto-backup schedule is cancelled too."""
        self._tables.delete(table_id)

    def with_data_root(self, data_root: str) -> "VaultClient":
        """Open a second client on a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance; the caller owns closing it.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        return VaultClient(replace(self._config, data_root=resolved_root))

    def close(self) -> None:
        """Cancel all schedules and close the database."""
        self._scheduler.shutdown()
        self._database.close()

    def __enter__(self) -> "VaultClient":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()


class TableHandle:
    """SDK handle bound to one live table id."""

    def __init__(self, table_id: int, client: VaultClient) -> None:
        self._table_id = table_id
        self._client = client

    @property
    def id(self) -> int:
        return self._table_id

    def load(self) -> Table:
        """Return the current table record."""
        return self._client.tables.require(self._table_id)

    def append_rows(self, rows: Sequence[Sequence[object]]) -> None:
        self._client.tables.append_rows(self._table_id, rows)

    def set_row(self, index: int, row: Sequence[object]) -> None:
        self._client.tables.set_row(self._table_id, index, row)

    def delete_row(self, index: int) -> None:
        self._client.tables.delete_row(self._table_id, index)

    def export_csv(self) -> list[list[str | None]]:
        return self._client.tables.export_csv(self._table_id)

    def stats(self) -> TableStats:
        return self._client.tables.stats(self._table_id)

    def page(self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> TablePage:
        return self._client.tables.page(self._table_id, page, page_size)

    def backup(self, description: str = "") -> int:
        """Capture a backup of this table and return its id."""
        return self._client.backups.create(self._table_id, description)

    def backups(self) -> list[Backup]:
        """List backups captured under this table's current name."""
        return self._client.backups.list(self.load().name)

    def schedule_auto_backup(self, interval_hours: float | None = None) -> ScheduledBackup:
        return self._client.scheduler.schedule(self._table_id, interval_hours)


def _prepare_output_dir(output_dir: Path) -> Path:
    resolved_dir = Path(output_dir).expanduser().resolve()
    try:
        resolved_dir.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise VaultIngestError(
            f"Failed to create output directory {resolved_dir}: {error}."
        ) from error
    return resolved_dir
