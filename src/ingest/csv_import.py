"""Multi-file CSV import preparation.

This module reads one or more CSV files and merges them into a
single header-plus-rows list ready for ``TableStore.import_csv``.
The header comes from the first file that has one; the data rows of
every file follow in file order.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from core.errors import VaultIngestError
from core.types import CsvImportOptions
from ingest.csv_codec import read_csv_file


def load_csv_files(
    file_paths: Sequence[Path],
    options: CsvImportOptions | None = None,
) -> list[list[str]]:
    """Read CSV files and merge them into one header-plus-rows list.

    Args:
        file_paths: Files to read, in import order.
        options: Delimiter, encoding, and one-based header row.

    Returns:
        ``[header, *rows]``, or an empty list when no file holds a header.

    Raises:
        VaultIngestError: If a file cannot be read or the header row is invalid.
    """
    resolved_options = options or CsvImportOptions()
    if resolved_options.header_row < 1:
        raise VaultIngestError(
            f"Invalid header row {resolved_options.header_row}: rows are numbered from 1."
        )
    header_index = resolved_options.header_row - 1
    header: list[str] | None = None
    data_rows: list[list[str]] = []
    for file_path in file_paths:
        parsed_rows = read_csv_file(
            Path(file_path).expanduser(),
            delimiter=resolved_options.delimiter,
            encoding=resolved_options.encoding,
        )
        if len(parsed_rows) <= header_index:
            continue
        if header is None:
            header = parsed_rows[header_index]
        data_rows.extend(parsed_rows[header_index + 1 :])
    if header is None:
        return []
    return [header, *data_rows]
