"""Embedded SQLite database lifecycle.

This module owns the single database connection shared by the table
and backup stores. It is opened once, handed to collaborators by
reference, and closed deterministically by its owner.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from core.constants import BACKUPS_COLLECTION, DATABASE_BUSY_TIMEOUT_SECONDS, TABLES_COLLECTION
from core.errors import StorageError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

_SCHEMA_STATEMENTS = (
    f"""
    CREATE TABLE IF NOT EXISTS {TABLES_COLLECTION} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        columns TEXT NOT NULL,
        rows TEXT NOT NULL,
        row_count INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        last_modified TEXT NOT NULL
    );
    """,
    f"CREATE INDEX IF NOT EXISTS idx_tables_last_modified ON {TABLES_COLLECTION}(last_modified);",
    f"""
    CREATE TABLE IF NOT EXISTS {BACKUPS_COLLECTION} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        table_id INTEGER NOT NULL,
        table_name TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        description TEXT NOT NULL,
        version TEXT NOT NULL,
        columns TEXT NOT NULL,
        rows TEXT NOT NULL,
        row_count INTEGER NOT NULL
    );
    """,
    f"CREATE INDEX IF NOT EXISTS idx_backups_table_name ON {BACKUPS_COLLECTION}(table_name);",
    f"CREATE INDEX IF NOT EXISTS idx_backups_table_id ON {BACKUPS_COLLECTION}(table_id);",
    f"CREATE INDEX IF NOT EXISTS idx_backups_timestamp ON {BACKUPS_COLLECTION}(timestamp);",
)


class VaultDatabase:
    """Thin SQLite wrapper with explicit open/close and units of work.

    One connection is shared across threads; every unit of work holds
    a re-entrant lock so statements from different callers never
    interleave inside a transaction.
    """

    def __init__(self, database_path: Path) -> None:
        self._database_path = database_path
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._depth = 0

    @property
    def database_path(self) -> Path:
        return self._database_path

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self) -> "VaultDatabase":
        """Open the database file and ensure the schema exists.

        Returns:
            This database, for chaining.

        Raises:
            StorageError: If the file cannot be opened or initialized.
        """
        with self._lock:
            if self._connection is not None:
                return self
            try:
                self._database_path.parent.mkdir(parents=True, exist_ok=True)
                connection = sqlite3.connect(
                    self._database_path,
                    timeout=DATABASE_BUSY_TIMEOUT_SECONDS,
                    isolation_level=None,
                    check_same_thread=False,
                )
                connection.row_factory = sqlite3.Row
                connection.execute("PRAGMA journal_mode=WAL;")
                for statement in _SCHEMA_STATEMENTS:
                    connection.execute(statement)
                connection.commit()
            except (OSError, sqlite3.Error) as error:
                raise StorageError(
                    f"Failed to open database at {self._database_path}: {error}. "
                    "Check the data root path and file permissions."
                ) from error
            self._connection = connection
        _LOGGER.info("database_opened", database_path=str(self._database_path))
        return self

    def close(self) -> None:
        """Close the connection; closing twice is a no-op."""
        with self._lock:
            if self._connection is None:
                return
            self._connection.close()
            self._connection = None
        _LOGGER.info("database_closed", database_path=str(self._database_path))

    @contextmanager
    def unit_of_work(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """Run statements atomically against the shared connection.

        Units opened inside another unit on the same thread join the
        enclosing transaction instead of starting their own.

        Args:
            immediate: Take the database write lock before the first
                statement, so reads inside the unit cannot go stale
                under writers from other connections or processes.

        Yields:
            The open connection; changes commit on clean exit.

        Raises:
            StorageError: If the database is closed or a statement fails.
        """
        with self._lock:
            connection = self._connection
            if connection is None:
                raise StorageError(
                    f"Database at {self._database_path} is not open. "
                    "Open the database before running store operations."
                )
            if self._depth > 0:
                self._depth += 1
                try:
                    yield connection
                finally:
                    self._depth -= 1
                return
            self._depth = 1
            try:
                connection.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
                yield connection
                connection.commit()
            except sqlite3.Error as error:
                connection.rollback()
                raise StorageError(
                    f"Database operation failed at {self._database_path}: {error}."
                ) from error
            except BaseException:
                connection.rollback()
                raise
            finally:
                self._depth = 0

    def __enter__(self) -> "VaultDatabase":
        return self.open()

    def __exit__(self, *_exc_info: object) -> None:
        self.close()
