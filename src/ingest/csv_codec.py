"""CSV text codec and file readers.

This module parses CSV text into rows and serializes rows back into
CSV text. It also decodes raw file bytes with a caller-chosen text
encoding before parsing.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Sequence

from core.constants import (
    CSV_LINE_TERMINATOR,
    DEFAULT_CSV_DELIMITER,
    DEFAULT_CSV_ENCODING,
    SNIFF_CANDIDATE_DELIMITERS,
    SNIFF_SAMPLE_SIZE,
)
from core.errors import VaultIngestError

_UTF8_BOM = "\ufeff"


def parse_csv_text(text: str, delimiter: str | None = DEFAULT_CSV_DELIMITER) -> list[list[str]]:
    """Parse CSV text into rows, skipping blank lines.

    Args:
        text: Decoded CSV text.
        delimiter: Field delimiter, or ``None`` to sniff it from the text.

    Returns:
        Parsed rows in source order; row lengths are kept as found.

    Raises:
        VaultIngestError: If the text is not valid CSV.
    """
    resolved_delimiter = delimiter if delimiter is not None else detect_delimiter(text)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=resolved_delimiter, strict=True)
    try:
        return [row for row in reader if row]
    except csv.Error as error:
        raise VaultIngestError(
            f"Failed to parse CSV at line {reader.line_num}: {error}. "
            "Check quoting and the selected delimiter."
        ) from error


def detect_delimiter(text: str) -> str:
    """Guess the delimiter from a leading sample of the text.

    Falls back to a comma when the sample is inconclusive.
    """
    sample = text[:SNIFF_SAMPLE_SIZE]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=SNIFF_CANDIDATE_DELIMITERS)
    except csv.Error:
        return DEFAULT_CSV_DELIMITER
    return dialect.delimiter


def serialize_csv(rows: Sequence[Sequence[str | None]], delimiter: str = DEFAULT_CSV_DELIMITER) -> str:
    """Serialize rows into CSV text.

    Args:
        rows: Rows to write; ``None`` cells become empty fields.
        delimiter: Field delimiter.

    Returns:
        CSV text with CRLF line endings.
    """
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator=CSV_LINE_TERMINATOR)
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buffer.getvalue()


def decode_csv_bytes(payload: bytes, encoding: str = DEFAULT_CSV_ENCODING) -> str:
    """Decode raw bytes into text and drop a leading byte-order mark.

    Raises:
        VaultIngestError: If the encoding is unknown or the bytes do not match it.
    """
    try:
        text = payload.decode(encoding)
    except LookupError as error:
        raise VaultIngestError(
            f"Unknown text encoding '{encoding}'. Use a codec name such as utf-8 or latin-1."
        ) from error
    except UnicodeDecodeError as error:
        raise VaultIngestError(
            f"Failed to decode CSV bytes as {encoding} at offset {error.start}. "
            "Select the encoding the file was saved with."
        ) from error
    return text[1:] if text.startswith(_UTF8_BOM) else text


def read_csv_file(
    file_path: Path,
    delimiter: str | None = DEFAULT_CSV_DELIMITER,
    encoding: str = DEFAULT_CSV_ENCODING,
) -> list[list[str]]:
    """Read, decode, and parse one CSV file.

    Raises:
        VaultIngestError: If the file is missing, unreadable, or invalid.
    """
    try:
        payload = file_path.read_bytes()
    except OSError as error:
        raise VaultIngestError(
            f"Failed to read CSV file {file_path}: {error}. Provide an existing readable file."
        ) from error
    try:
        return parse_csv_text(decode_csv_bytes(payload, encoding), delimiter)
    except VaultIngestError as error:
        raise VaultIngestError(f"{file_path}: {error}") from error


def write_csv_file(file_path: Path, rows: Sequence[Sequence[str | None]], encoding: str) -> None:
    """Serialize rows and write them to disk.

    Raises:
        VaultIngestError: If the file cannot be written.
    """
    try:
        file_path.write_bytes(serialize_csv(rows).encode(encoding))
    except (OSError, UnicodeEncodeError, LookupError) as error:
        raise VaultIngestError(
            f"Failed to write CSV file {file_path}: {error}. "
            "Check the output directory and encoding."
        ) from error
