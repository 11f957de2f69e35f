"""Shared typed models.

This module defines immutable data models used by the table store,
backup store, CSV ingest, and SDK layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence, Union

from core.constants import DEFAULT_CSV_DELIMITER, DEFAULT_CSV_ENCODING, DEFAULT_HEADER_ROW

CellValue = Union[str, None]
Row = tuple[CellValue, ...]


@dataclass(frozen=True)
class Table:
    """Live table record.

    Attributes:
        id: Store-assigned identifier.
        name: Unique table name among live tables.
        columns: Ordered header labels.
        rows: Ordered rows; lengths may differ from ``columns``.
        row_count: Denormalized number of rows.
        created_at: UTC creation timestamp.
        last_modified: UTC timestamp of the latest mutation.
    """

    id: int
    name: str
    columns: tuple[str, ...]
    rows: tuple[Row, ...]
    row_count: int
    created_at: datetime
    last_modified: datetime


@dataclass(frozen=True)
class Backup:
    """Immutable point-in-time copy of a table.

    Attributes:
        id: Store-assigned identifier.
        table_id: Source table id at capture time.
        table_name: Source table name at capture time.
        timestamp: UTC capture timestamp.
        description: Free-text label, possibly empty.
        version: Snapshot format version.
        columns: Captured header labels.
        rows: Captured rows.
        row_count: Captured row count.
    """

    id: int
    table_id: int
    table_name: str
    timestamp: datetime
    description: str
    version: str
    columns: tuple[str, ...]
    rows: tuple[Row, ...]
    row_count: int


@dataclass(frozen=True)
class TableStats:
    """Size and shape summary for one table.

    Attributes:
        name: Table name.
        row_count: Number of rows.
        column_count: Number of header columns.
        size_bytes: Serialized byte size of the rows.
        size_formatted: Human-readable form of ``size_bytes``.
        created_at: UTC creation timestamp.
        last_modified: UTC timestamp of the latest mutation.
    """

    name: str
    row_count: int
    column_count: int
    size_bytes: int
    size_formatted: str
    created_at: datetime
    last_modified: datetime


@dataclass(frozen=True)
class TablePage:
    """One page of table rows for display.

    Attributes:
        table_name: Table name.
        columns: Header labels.
        rows: Rows on this page.
        page: One-based page number.
        page_count: Total number of pages, at least one.
        first_row: One-based number of the first row shown, 0 when empty.
        last_row: One-based number of the last row shown.
        total_rows: Row count of the whole table.
    """

    table_name: str
    columns: tuple[str, ...]
    rows: tuple[Row, ...]
    page: int
    page_count: int
    first_row: int
    last_row: int
    total_rows: int


@dataclass(frozen=True)
class BackupFile:
    """Portable snapshot file payload.

    Attributes:
        file_name: Suggested file name embedding table name and capture date.
        content: Encoded file bytes.
    """

    file_name: str
    content: bytes


@dataclass(frozen=True)
class CsvImportOptions:
    """Options for reading CSV files before import.

    Attributes:
        delimiter: Field delimiter, ``None`` to sniff it from the text.
        encoding: Text encoding used to decode file bytes.
        header_row: One-based row index holding the column labels.
    """

    delimiter: str | None = DEFAULT_CSV_DELIMITER
    encoding: str = DEFAULT_CSV_ENCODING
    header_row: int = DEFAULT_HEADER_ROW


def normalize_columns(columns: Iterable[object]) -> tuple[str, ...]:
    """Coerce header labels into an immutable tuple of strings.

    Args:
        columns: Raw header labels.

    Returns:
        Tuple of labels with ``None`` rendered as empty strings.
    """
    return tuple("" if label is None else str(label) for label in columns)


def normalize_row(row: Iterable[object]) -> Row:
    """Coerce one row into an immutable tuple of cell values.

    Args:
        row: Raw cell values.

    Returns:
        Tuple of string or ``None`` cells.
    """
    return tuple(None if cell is None else str(cell) for cell in row)


def normalize_rows(rows: Iterable[Sequence[object]]) -> tuple[Row, ...]:
    """Coerce many rows, keeping ragged lengths as given."""
    return tuple(normalize_row(row) for row in rows)
