"""Public SDK surface for tablevault.

This module provides a stable import path for library users.
It re-exports the primary client, stores, typed models, and errors.
"""

from __future__ import annotations

from core.config import VaultConfig
from core.errors import (
    DuplicateNameError,
    EmptyInputError,
    IndexOutOfRangeError,
    NotFoundError,
    StorageError,
    VaultError,
)
from core.types import Backup, BackupFile, CsvImportOptions, Table, TablePage, TableStats
from ingest.csv_codec import parse_csv_text, serialize_csv
from store.backup_scheduler import AutoBackupScheduler, ScheduledBackup
from store.backup_store import BackupStore
from store.database import VaultDatabase
from store.table_store import TableStore
from store.vault_sdk import TableHandle, VaultClient

__all__ = [
    "AutoBackupScheduler",
    "Backup",
    "BackupFile",
    "BackupStore",
    "CsvImportOptions",
    "DuplicateNameError",
    "EmptyInputError",
    "IndexOutOfRangeError",
    "NotFoundError",
    "ScheduledBackup",
    "StorageError",
    "Table",
    "TableHandle",
    "TablePage",
    "TableStats",
    "TableStore",
    "VaultClient",
    "VaultConfig",
    "VaultDatabase",
    "VaultError",
    "parse_csv_text",
    "serialize_csv",
]
