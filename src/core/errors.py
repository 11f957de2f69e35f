"""Tablevault exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for all tablevault failures."""


class VaultConfigError(VaultError):
    """Raised for invalid runtime configuration."""


class VaultIngestError(VaultError):
    """Raised for CSV decoding, parsing, and file read failures."""


class VaultScheduleError(VaultError):
    """Raised for invalid auto-backup schedules."""


class BackupPlanError(VaultError):
    """Raised for invalid or unreadable YAML backup plans."""


class NotFoundError(VaultError):
    """Raised when a referenced table or backup does not exist."""


class DuplicateNameError(VaultError):
    """Raised when a table name is already used by a live table."""


class EmptyInputError(VaultError):
    """Raised when a CSV import receives no rows at all."""


class IndexOutOfRangeError(VaultError):
    """Raised when a row index falls outside the current table bounds."""


class StorageError(VaultError):
    """Raised when the embedded database fails to open, read, or write."""
