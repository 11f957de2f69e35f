"""Backup CLI command wiring.

This module registers manual backup subcommands (capture, list,
restore, delete, export) and maps them onto backup store calls.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from store.vault_sdk import VaultClient


def add_backup_commands(subparsers: Any) -> None:
    """Register backup subcommands."""
    backup_parser = subparsers.add_parser("backup", help="Capture a backup of a table")
    backup_parser.add_argument("table", help="Table name")
    backup_parser.add_argument("--description", default="", help="Free-text backup label")

    list_parser = subparsers.add_parser("backups", help="List backups, newest first")
    list_parser.add_argument("--table", help="Only list backups of this table name")

    restore_parser = subparsers.add_parser("restore", help="Restore a table from a backup")
    restore_parser.add_argument("backup_id", type=int, help="Backup id")

    delete_parser = subparsers.add_parser("delete-backup", help="Delete one backup")
    delete_parser.add_argument("backup_id", type=int, help="Backup id")

    export_parser = subparsers.add_parser("export-backup", help="Write a backup as a JSON file")
    export_parser.add_argument("backup_id", type=int, help="Backup id")
    export_parser.add_argument("--output-dir", required=True, help="Directory for the JSON file")


def run_backup_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle backup command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    backup_id = client.table(args.table).backup(args.description)
    print(backup_id)
    return 0


def run_backups_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle backups command with one tab-separated line per backup."""
    for backup in client.backups.list(args.table):
        print(
            f"{backup.id}\t"
            f"{backup.table_name}\t"
            f"{backup.timestamp.isoformat()}\t"
            f"{backup.row_count}\t"
            f"{backup.description}"
        )
    return 0


def run_restore_command(client: VaultClient, args: argparse.Namespace) -> int:
    table_id = client.backups.restore(args.backup_id)
    print(table_id)
    return 0


def run_delete_backup_command(client: VaultClient, args: argparse.Namespace) -> int:
    client.backups.delete(args.backup_id)
    return 0


def run_export_backup_command(client: VaultClient, args: argparse.Namespace) -> int:
    print(client.write_backup_file(args.backup_id, Path(args.output_dir)))
    return 0


BACKUP_COMMAND_HANDLERS = {
    "backup": run_backup_command,
    "backups": run_backups_command,
    "restore": run_restore_command,
    "delete-backup": run_delete_backup_command,
    "export-backup": run_export_backup_command,
}
