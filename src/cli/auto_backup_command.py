"""Auto-backup CLI command wiring.

This module registers the auto-backup subcommand. Tables come from a
YAML backup plan or from a single ``--table`` flag; ``--once`` runs one
backup-and-prune cycle per table and exits, otherwise schedules stay
active until the process is interrupted.
"""

from __future__ import annotations

import argparse
import threading
from typing import Any

from core.backup_plan import BackupPlanEntry, load_backup_plan
from core.errors import VaultScheduleError
from core.logging_config import get_logger
from store.vault_sdk import VaultClient

_LOGGER = get_logger(__name__)


def add_auto_backup_command(subparsers: Any) -> None:
    """Register auto-backup subcommand."""
    parser = subparsers.add_parser(
        "auto-backup",
        help="Back up tables on an interval, keeping the newest backups",
    )
    parser.add_argument("--table", help="Table name to back up")
    parser.add_argument("--plan", help="Path to YAML backup plan")
    parser.add_argument("--interval-hours", type=float, help="Hours between backups")
    parser.add_argument("--once", action="store_true", help="Run one cycle per table and exit")


def run_auto_backup_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle auto-backup command invocation.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code; 1 when a one-shot cycle failed for any table.

    Raises:
        VaultScheduleError: If neither or both of ``--table`` and ``--plan`` are given.
    """
    entries = _resolve_entries(client, args)
    if args.once:
        return _run_single_cycles(client, entries)
    for entry in entries:
        client.table(entry.table_name).schedule_auto_backup(entry.interval_hours)
        print(f"{entry.table_name}\tevery {entry.interval_hours:g}h")
    _wait_until_interrupted()
    return 0


def _resolve_entries(
    client: VaultClient,
    args: argparse.Namespace,
) -> tuple[BackupPlanEntry, ...]:
    if bool(args.table) == bool(args.plan):
        raise VaultScheduleError("Provide exactly one of --table or --plan for auto-backup.")
    if args.interval_hours is not None and args.interval_hours <= 0:
        raise VaultScheduleError(
            f"Invalid --interval-hours value {args.interval_hours}: use a value greater than zero."
        )
    fallback_hours = (
        client.config.auto_backup_interval_hours
        if args.interval_hours is None
        else args.interval_hours
    )
    if args.plan:
        return load_backup_plan(args.plan, fallback_hours).entries
    return (BackupPlanEntry(table_name=args.table, interval_hours=fallback_hours),)


def _run_single_cycles(client: VaultClient, entries: tuple[BackupPlanEntry, ...]) -> int:
    exit_code = 0
    for entry in entries:
        backup_id = client.backups.run_auto_backup_cycle(client.table(entry.table_name).id)
        if backup_id is None:
            exit_code = 1
        print(f"{entry.table_name}\t{backup_id if backup_id is not None else 'failed'}")
    return exit_code


def _wait_until_interrupted() -> None:
    stop_event = threading.Event()
    try:
        stop_event.wait()
    except KeyboardInterrupt:
        _LOGGER.info("auto_backup_interrupted")
