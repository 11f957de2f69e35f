"""Runtime configuration model for tablevault.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    AUTO_DETECT_DELIMITER,
    DATABASE_FILE_NAME,
    DEFAULT_AUTO_BACKUP_INTERVAL_HOURS,
    DEFAULT_BACKUP_RETENTION,
    DEFAULT_CSV_DELIMITER,
    DEFAULT_CSV_ENCODING,
    DEFAULT_DATA_ROOT,
)
from core.errors import VaultConfigError


@dataclass(frozen=True)
class VaultConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local directory holding the embedded database file.
        backup_retention: Number of auto-backups kept per table.
        auto_backup_interval_hours: Default period between auto-backups.
        csv_delimiter: Default CSV delimiter, ``None`` to sniff it.
        csv_encoding: Default text encoding for CSV files.
    """

    data_root: Path
    backup_retention: int
    auto_backup_interval_hours: float
    csv_delimiter: str | None
    csv_encoding: str

    @property
    def database_path(self) -> Path:
        """Return the SQLite database file location."""
        return self.data_root / DATABASE_FILE_NAME

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            VaultConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("TABLEVAULT_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        retention_value = os.getenv("TABLEVAULT_BACKUP_RETENTION", str(DEFAULT_BACKUP_RETENTION))
        interval_value = os.getenv(
            "TABLEVAULT_AUTO_BACKUP_HOURS", str(DEFAULT_AUTO_BACKUP_INTERVAL_HOURS)
        )
        delimiter_value = os.getenv("TABLEVAULT_CSV_DELIMITER", DEFAULT_CSV_DELIMITER)
        encoding_value = os.getenv("TABLEVAULT_CSV_ENCODING", DEFAULT_CSV_ENCODING)
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            backup_retention=_parse_retention(retention_value),
            auto_backup_interval_hours=_parse_interval_hours(interval_value),
            csv_delimiter=parse_delimiter(delimiter_value),
            csv_encoding=encoding_value,
        )


def _parse_retention(raw_value: str) -> int:
    """Parse the backup retention environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive retention count.

    Raises:
        VaultConfigError: If value is not a positive integer.
    """
    try:
        retention = int(raw_value)
    except ValueError as error:
        raise VaultConfigError(
            "Invalid TABLEVAULT_BACKUP_RETENTION value: "
            f"expected integer, got '{raw_value}'. "
            "Set TABLEVAULT_BACKUP_RETENTION to a positive whole number."
        ) from error
    if retention < 1:
        raise VaultConfigError(
            f"Invalid TABLEVAULT_BACKUP_RETENTION value {retention}: "
            "at least one backup must be kept."
        )
    return retention


def _parse_interval_hours(raw_value: str) -> float:
    """Parse the auto-backup interval environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive interval in hours.

    Raises:
        VaultConfigError: If value is not a positive number.
    """
    try:
        interval_hours = float(raw_value)
    except ValueError as error:
        raise VaultConfigError(
            "Invalid TABLEVAULT_AUTO_BACKUP_HOURS value: "
            f"expected number, got '{raw_value}'. "
            "Set TABLEVAULT_AUTO_BACKUP_HOURS to a positive number of hours."
        ) from error
    if interval_hours <= 0:
        raise VaultConfigError(
            f"Invalid TABLEVAULT_AUTO_BACKUP_HOURS value {interval_hours}: "
            "interval must be greater than zero."
        )
    return interval_hours


def parse_delimiter(raw_value: str, source: str = "TABLEVAULT_CSV_DELIMITER") -> str | None:
    """Parse a CSV delimiter setting.

    Args:
        raw_value: Raw string from environment or command line.
        source: Setting name used in error messages.

    Returns:
        Single-character delimiter, or ``None`` when sniffing is requested.

    Raises:
        VaultConfigError: If value is not one character or ``auto``.
    """
    if raw_value == AUTO_DETECT_DELIMITER:
        return None
    if raw_value == "\\t":
        return "\t"
    if len(raw_value) != 1:
        raise VaultConfigError(
            f"Invalid {source} value '{raw_value}': "
            f"expected a single character or '{AUTO_DETECT_DELIMITER}'."
        )
    return raw_value
