"""Table store with CRUD, row mutation, and CSV round-tripping.

This module owns live table records in the embedded database. All
higher-level mutations read the current table, compute the new rows,
and write them back through one merge primitive while holding the
table's mutation lock, so concurrent callers never lose updates.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Sequence

from core.byte_size import format_bytes, serialized_size_bytes
from core.constants import DEFAULT_PAGE_SIZE, TABLES_COLLECTION
from core.errors import (
    DuplicateNameError,
    EmptyInputError,
    IndexOutOfRangeError,
    NotFoundError,
)
from core.logging_config import get_logger
from core.types import (
    Table,
    TablePage,
    TableStats,
    normalize_columns,
    normalize_row,
    normalize_rows,
)
from store.database import VaultDatabase
from store.mutation_locks import MutationLockRegistry
from store.record_payload import (
    encode_columns,
    encode_rows,
    format_timestamp,
    table_from_db_row,
    utc_now,
)

_LOGGER = get_logger(__name__)

_UPDATABLE_FIELDS = ("name", "columns", "rows", "row_count")

DeleteListener = Callable[[int], None]


class TableStore:
    """Persistent store for live tables.

    Names are unique among live tables. Every mutating method runs
    under ``mutation_lock``, which pairs the per-id lock with one write
    transaction; creation and restore-by-name also hold a per-name lock.
    """

    def __init__(self, database: VaultDatabase, locks: MutationLockRegistry | None = None) -> None:
        """Initialize the store on an opened database.

        Args:
            database: Shared embedded database.
            locks: Optional lock registry shared with other components.
        """
        self._database = database
        self._locks = locks or MutationLockRegistry()
        self._delete_listeners: list[DeleteListener] = []

    @contextmanager
    def mutation_lock(self, table_id: int) -> Iterator[None]:
        """Serialize a block against every other mutation of one table.

        The block runs inside one write transaction, so a read and the
        write that depends on it stay atomic across connections too.
        """
        with self._locks.hold(table_id), self._database.unit_of_work(immediate=True):
            yield

    def add_delete_listener(self, listener: DeleteListener) -> None:
        """Register a callback invoked with the id of each deleted table."""
        self._delete_listeners.append(listener)

    def create(
        self,
        name: str,
        columns: Sequence[object],
        rows: Sequence[Sequence[object]] = (),
    ) -> int:
        """Create a new table.

        Args:
            name: Unique table name.
            columns: Ordered header labels, possibly empty.
            rows: Initial rows, possibly ragged.

        Returns:
            New table id.

        Raises:
            DuplicateNameError: If a live table already uses the name.
            StorageError: If persistence fails.
        """
        normalized_columns = normalize_columns(columns)
        normalized_rows = normalize_rows(rows)
        with self._locks.hold(("name", name)):
            timestamp = format_timestamp(utc_now())
            with self._database.unit_of_work(immediate=True) as connection:
                existing = connection.execute(
                    f"SELECT id FROM {TABLES_COLLECTION} WHERE name = ?", (name,)
                ).fetchone()
                if existing is not None:
                    raise DuplicateNameError(
                        f"Table '{name}' already exists with id {existing['id']}. "
                        "Choose another name or append to the existing table."
                    )
                cursor = connection.execute(
                    f"""
                    INSERT INTO {TABLES_COLLECTION}
                        (name, columns, rows, row_count, created_at, last_modified)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        name,
                        encode_columns(normalized_columns),
                        encode_rows(normalized_rows),
                        len(normalized_rows),
                        timestamp,
                        timestamp,
                    ),
                )
                table_id = int(cursor.lastrowid)
        _LOGGER.info(
            "table_created",
            table_id=table_id,
            table_name=name,
            column_count=len(normalized_columns),
            row_count=len(normalized_rows),
        )
        return table_id

    def list(self, name_filter: str | None = None) -> list[Table]:
        """Return live tables ordered by id.

        Args:
            name_filter: Optional case-insensitive substring of the name.
        """
        with self._database.unit_of_work() as connection:
            db_rows = connection.execute(f"SELECT * FROM {TABLES_COLLECTION} ORDER BY id").fetchall()
        tables = [table_from_db_row(db_row) for db_row in db_rows]
        if not name_filter:
            return tables
        needle = name_filter.lower()
        return [table for table in tables if needle in table.name.lower()]

    def get_by_name(self, name: str) -> Table | None:
        """Return the live table with an exact name, or ``None``."""
        with self._database.unit_of_work() as connection:
            db_row = connection.execute(
                f"SELECT * FROM {TABLES_COLLECTION} WHERE name = ?", (name,)
            ).fetchone()
        return table_from_db_row(db_row) if db_row is not None else None

    def get_by_id(self, table_id: int) -> Table | None:
        """Return the live table with an id, or ``None``."""
        with self._database.unit_of_work() as connection:
            db_row = connection.execute(
                f"SELECT * FROM {TABLES_COLLECTION} WHERE id = ?", (table_id,)
            ).fetchone()
        return table_from_db_row(db_row) if db_row is not None else None

    def require(self, table_id: int) -> Table:
        """Return a live table or raise.

        Raises:
            NotFoundError: If the id is unknown.
        """
        table = self.get_by_id(table_id)
        if table is None:
            raise NotFoundError(
                f"Table with id {table_id} not found. Use list() to discover valid table ids."
            )
        return table

    def delete(self, table_id: int) -> None:
        """Delete a table; existing backups are left untouched.

        Args:
            table_id: Table to remove.

        Raises:
            NotFoundError: If the id is unknown, including repeated deletes.
            StorageError: If persistence fails.
        """
        with self.mutation_lock(table_id):
            with self._database.unit_of_work() as connection:
                cursor = connection.execute(
                    f"DELETE FROM {TABLES_COLLECTION} WHERE id = ?", (table_id,)
                )
                deleted = cursor.rowcount
            if deleted == 0:
                raise NotFoundError(
                    f"Table with id {table_id} not found. It may already have been deleted."
                )
        _LOGGER.info("table_deleted", table_id=table_id)
        for listener in list(self._delete_listeners):
            listener(table_id)

    def append_rows(self, table_id: int, new_rows: Sequence[Sequence[object]]) -> int:
        """Append rows after the existing ones.

        Args:
            table_id: Target table.
            new_rows: Rows to append, possibly ragged.

        Returns:
            The table id.

        Raises:
            NotFoundError: If the id is unknown.
        """
        appended = normalize_rows(new_rows)
        with self.mutation_lock(table_id):
            table = self.require(table_id)
            rows = table.rows + appended
            self._update(table_id, rows=rows, row_count=len(rows))
        _LOGGER.info(
            "rows_appended", table_id=table_id, appended=len(appended), row_count=len(rows)
        )
        return table_id

    def set_row(self, table_id: int, index: int, row_data: Sequence[object]) -> int:
        """Replace the row at an index.

        Raises:
            NotFoundError: If the id is unknown.
            IndexOutOfRangeError: If ``index`` is outside ``[0, row_count)``.
        """
        with self.mutation_lock(table_id):
            table = self.require(table_id)
            _check_index(table, index)
            rows = list(table.rows)
            rows[index] = normalize_row(row_data)
            self._update(table_id, rows=tuple(rows))
        _LOGGER.info("row_updated", table_id=table_id, index=index)
        return table_id

    def delete_row(self, table_id: int, index: int) -> int:
        """Remove the row at an index and shift later rows down.

        Raises:
            NotFoundError: If the id is unknown.
            IndexOutOfRangeError: If ``index`` is outside ``[0, row_count)``.
        """
        with self.mutation_lock(table_id):
            table = self.require(table_id)
            _check_index(table, index)
            rows = table.rows[:index] + table.rows[index + 1 :]
            self._update(table_id, rows=rows, row_count=len(rows))
        _LOGGER.info("row_deleted", table_id=table_id, index=index, row_count=len(rows))
        return table_id

    def replace_contents(
        self,
        table_id: int,
        columns: Sequence[object],
        rows: Sequence[Sequence[object]],
    ) -> int:
        """Overwrite columns and rows, keeping id and creation time.

        Raises:
            NotFoundError: If the id is unknown.
        """
        normalized_rows = normalize_rows(rows)
        with self.mutation_lock(table_id):
            self._update(
                table_id,
                columns=normalize_columns(columns),
                rows=normalized_rows,
                row_count=len(normalized_rows),
            )
        return table_id

    def restore_contents(
        self,
        name: str,
        columns: Sequence[object],
        rows: Sequence[Sequence[object]],
    ) -> int:
        """Overwrite the live table with a name, or create it when absent.

        Returns:
            Id of the overwritten or created table.
        """
        with self._locks.hold(("name", name)):
            existing = self.get_by_name(name)
            if existing is not None:
                try:
                    return self.replace_contents(existing.id, columns, rows)
                except NotFoundError:
                    # deleted after the lookup
                    _LOGGER.info("restore_target_vanished", table_id=existing.id, table_name=name)
            return self.create(name, columns, rows)

    def import_csv(
        self,
        name: str,
        header_plus_rows: Sequence[Sequence[object]],
        append: bool = False,
    ) -> int:
        """Import parsed CSV rows into a new or existing table.

        Args:
            name: Target table name.
            header_plus_rows: Header row followed by data rows.
            append: Append to an existing table of that name, keeping its
                columns, instead of creating a new table.

        Returns:
            Id of the created or appended table.

        Raises:
            EmptyInputError: If no rows were given.
            DuplicateNameError: If creating and the name is taken.
        """
        if len(header_plus_rows) == 0:
            raise EmptyInputError(
                f"No data to import into table '{name}'. Provide at least a header row."
            )
        columns = header_plus_rows[0]
        data_rows = header_plus_rows[1:]
        if append:
            with self._locks.hold(("name", name)):
                existing = self.get_by_name(name)
                if existing is not None:
                    try:
                        return self.append_rows(existing.id, data_rows)
                    except NotFoundError:
                        _LOGGER.info(
                            "append_target_vanished", table_id=existing.id, table_name=name
                        )
                return self.create(name, columns, data_rows)
        return self.create(name, columns, data_rows)

    def export_csv(self, table_id: int) -> list[list[str | None]]:
        """Return ``[columns, *rows]`` ready for CSV serialization.

        Raises:
            NotFoundError: If the id is unknown.
        """
        table = self.require(table_id)
        return [list(table.columns)] + [list(row) for row in table.rows]

    def stats(self, table_id: int) -> TableStats:
        """Summarize size and shape of a table.

        Raises:
            NotFoundError: If the id is unknown.
        """
        table = self.require(table_id)
        size_bytes = serialized_size_bytes(table.rows)
        return TableStats(
            name=table.name,
            row_count=table.row_count,
            column_count=len(table.columns),
            size_bytes=size_bytes,
            size_formatted=format_bytes(size_bytes),
            created_at=table.created_at,
            last_modified=table.last_modified,
        )

    def page(self, table_id: int, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> TablePage:
        """Return one page of rows for display.

        Args:
            table_id: Table to read.
            page: One-based page number.
            page_size: Rows per page.

        Raises:
            NotFoundError: If the id is unknown.
            IndexOutOfRangeError: If the page does not exist.
            ValueError: If ``page_size`` is not positive.
        """
        if page_size < 1:
            raise ValueError(f"Page size must be positive, got {page_size}.")
        table = self.require(table_id)
        total_rows = len(table.rows)
        page_count = max(1, -(-total_rows // page_size))
        if not 1 <= page <= page_count:
            raise IndexOutOfRangeError(
                f"Page {page} is out of range for table '{table.name}' "
                f"with {page_count} pages of {page_size} rows."
            )
        start = (page - 1) * page_size
        rows = table.rows[start : start + page_size]
        return TablePage(
            table_name=table.name,
            columns=table.columns,
            rows=rows,
            page=page,
            page_count=page_count,
            first_row=start + 1 if rows else 0,
            last_row=start + len(rows),
            total_rows=total_rows,
        )

    def _update(self, table_id: int, **fields: Any) -> int:
        """Merge fields over a stored table and bump ``last_modified``.

        Callers must hold the table's mutation lock.

        Raises:
            NotFoundError: If the id is unknown.
            DuplicateNameError: If renaming onto a live name.
        """
        unknown_fields = sorted(set(fields) - set(_UPDATABLE_FIELDS))
        if unknown_fields:
            raise ValueError(f"Unsupported table fields: {', '.join(unknown_fields)}")
        assignments = ["last_modified = ?"]
        values: list[object] = [format_timestamp(utc_now())]
        for field_name in _UPDATABLE_FIELDS:
            if field_name not in fields:
                continue
            assignments.append(f"{field_name} = ?")
            values.append(_encode_field(field_name, fields[field_name]))
        with self._database.unit_of_work(immediate=True) as connection:
            if "name" in fields:
                clash = connection.execute(
                    f"SELECT id FROM {TABLES_COLLECTION} WHERE name = ? AND id != ?",
                    (fields["name"], table_id),
                ).fetchone()
                if clash is not None:
                    raise DuplicateNameError(
                        f"Table '{fields['name']}' already exists with id {clash['id']}."
                    )
            cursor = connection.execute(
                f"UPDATE {TABLES_COLLECTION} SET {', '.join(assignments)} WHERE id = ?",
                (*values, table_id),
            )
            updated = cursor.rowcount
        if updated == 0:
            raise NotFoundError(
                f"Table with id {table_id} not found. Use list() to discover valid table ids."
            )
        return table_id


def _check_index(table: Table, index: int) -> None:
    if not 0 <= index < len(table.rows):
        raise IndexOutOfRangeError(
            f"Row index {index} is out of range for table '{table.name}' "
            f"with {len(table.rows)} rows. Use an index in [0, {len(table.rows)})."
        )


def _encode_field(field_name: str, value: Any) -> object:
    if field_name == "columns":
        return encode_columns(normalize_columns(value))
    if field_name == "rows":
        return encode_rows(normalize_rows(value))
    if field_name == "row_count":
        return int(value)
    return str(value)
