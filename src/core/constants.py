"""Core constants used across tablevault modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".tablevault")
DATABASE_FILE_NAME = "tablevault.db"
DATABASE_BUSY_TIMEOUT_SECONDS = 30.0
TABLES_COLLECTION = "tables"
BACKUPS_COLLECTION = "backups"
DEFAULT_BACKUP_RETENTION = 7
DEFAULT_AUTO_BACKUP_INTERVAL_HOURS = 24.0
SECONDS_PER_HOUR = 3600
AUTO_BACKUP_DESCRIPTION = "Auto-backup"
BACKUP_FORMAT_VERSION = "1.0"
BACKUP_FILE_PREFIX = "backup_"
BACKUP_FILE_EXTENSION = ".json"
CSV_FILE_EXTENSION = ".csv"
DEFAULT_CSV_DELIMITER = ","
AUTO_DETECT_DELIMITER = "auto"
DEFAULT_CSV_ENCODING = "utf-8"
DEFAULT_HEADER_ROW = 1
DEFAULT_PAGE_SIZE = 50
CSV_LINE_TERMINATOR = "\r\n"
SNIFF_SAMPLE_SIZE = 4096
SNIFF_CANDIDATE_DELIMITERS = ",;\t|"
BYTE_SIZE_BASE = 1024
BYTE_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")
BACKUP_PLAN_VERSION = 1
