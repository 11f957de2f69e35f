"""Tablevault CLI entry points.
This module exposes table commands for CSV import, export, and row edits.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.auto_backup_command import add_auto_backup_command, run_auto_backup_command
from cli.backup_command import BACKUP_COMMAND_HANDLERS, add_backup_commands
from core.byte_size import format_bytes, serialized_size_bytes
from core.config import VaultConfig
from core.constants import DEFAULT_PAGE_SIZE
from core.errors import VaultError
from core.logging_config import enable_console_logging
from ingest.csv_codec import parse_csv_text, serialize_csv
from store.vault_sdk import VaultClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="tablevault", description="Tablevault table store CLI")
    parser.add_argument("--data-root", help="Override TABLEVAULT_DATA_ROOT for this command")
    parser.add_argument("--verbose", action="store_true", help="Print structured log events")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_tables_command(subparsers)
    _add_create_command(subparsers)
    _add_import_command(subparsers)
    _add_export_command(subparsers)
    _add_show_command(subparsers)
    _add_stats_command(subparsers)
    _add_append_command(subparsers)
    _add_set_row_command(subparsers)
    _add_delete_row_command(subparsers)
    _add_delete_command(subparsers)
    add_backup_commands(subparsers)
    add_auto_backup_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the tablevault CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        enable_console_logging()
    handlers = {
        **_COMMAND_HANDLERS,
        **BACKUP_COMMAND_HANDLERS,
        "auto-backup": run_auto_backup_command,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.error(f"Unsupported command: {args.command}")
        return 2
    try:
        with _build_client(args.data_root) as client:
            return handler(client, args)
    except VaultError as error:
        print(f"error={error}", file=sys.stderr)
        return 1


def _build_client(data_root: str | None) -> VaultClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = VaultConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return VaultClient(config)


def parse_row_values(raw_values: str) -> list[str]:
    """Parse one comma-separated CLI value list, honoring CSV quoting."""
    parsed_rows = parse_csv_text(raw_values)
    return parsed_rows[0] if parsed_rows else []


def _run_tables_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle tables command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    for table in sorted(client.tables.list(args.filter), key=lambda item: item.name):
        size = format_bytes(serialized_size_bytes(table.rows))
        print(
            f"{table.id}\t"
            f"{table.name}\t"
            f"{table.row_count}\t"
            f"{len(table.columns)}\t"
            f"{size}\t"
            f"{table.last_modified.isoformat()}"
        )
    return 0


def _run_create_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle create command for an empty table with optional columns."""
    columns = parse_row_values(args.columns) if args.columns else []
    table_id = client.tables.create(args.table, columns, [])
    print(table_id)
    return 0


def _run_import_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = client.csv_options(
        delimiter=args.delimiter,
        encoding=args.encoding,
        header_row=args.header_row,
    )
    table_id = client.import_csv_files(
        args.table,
        [Path(file_path) for file_path in args.files],
        options=options,
        append=args.append,
    )
    print(table_id)
    return 0


def _run_export_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle export command, to a file when an output directory is given."""
    handle = client.table(args.table)
    if args.output_dir:
        print(client.write_csv_export(handle.id, Path(args.output_dir)))
        return 0
    sys.stdout.write(serialize_csv(handle.export_csv()))
    return 0


def _run_show_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle show command: one page of rows as CSV, range summary on stderr."""
    page = client.table(args.table).page(args.page, args.page_size)
    sys.stdout.write(serialize_csv([page.columns, *page.rows]))
    print(
        f"rows {page.first_row}-{page.last_row} of {page.total_rows} "
        f"(page {page.page}/{page.page_count})",
        file=sys.stderr,
    )
    return 0


def _run_stats_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle stats command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    stats = client.table(args.table).stats()
    print(f"name={stats.name}")
    print(f"row_count={stats.row_count}")
    print(f"column_count={stats.column_count}")
    print(f"size_bytes={stats.size_bytes}")
    print(f"size={stats.size_formatted}")
    print(f"created_at={stats.created_at.isoformat()}")
    print(f"last_modified={stats.last_modified.isoformat()}")
    return 0


def _run_append_command(client: VaultClient, args: argparse.Namespace) -> int:
    handle = client.table(args.table)
    handle.append_rows([parse_row_values(raw_row) for raw_row in args.row])
    print(handle.load().row_count)
    return 0


def _run_set_row_command(client: VaultClient, args: argparse.Namespace) -> int:
    client.table(args.table).set_row(args.index, parse_row_values(args.values))
    return 0


def _run_delete_row_command(client: VaultClient, args: argparse.Namespace) -> int:
    handle = client.table(args.table)
    handle.delete_row(args.index)
    print(handle.load().row_count)
    return 0


def _run_delete_command(client: VaultClient, args: argparse.Namespace) -> int:
    client.delete_table(client.table(args.table).id)
    return 0


def _add_tables_command(subparsers: Any) -> None:
    """Register tables subcommand."""
    parser = subparsers.add_parser("tables", help="List live tables with size")
    parser.add_argument("--filter", help="Case-insensitive substring of table names")


def _add_create_command(subparsers: Any) -> None:
    """Register create subcommand."""
    parser = subparsers.add_parser("create", help="Create an empty table")
    parser.add_argument("table", help="Table name")
    parser.add_argument("--columns", help="Comma-separated column labels")


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Import one or more CSV files into a table")
    parser.add_argument("table", help="Table name")
    parser.add_argument("files", nargs="+", help="CSV files, merged in order")
    parser.add_argument("--append", action="store_true", help="Append to an existing table")
    parser.add_argument("--delimiter", help="Field delimiter; 'auto' to detect")
    parser.add_argument("--encoding", help="Text encoding of the files, e.g. latin-1")
    parser.add_argument("--header-row", type=int, help="One-based row holding column labels")


def _add_export_command(subparsers: Any) -> None:
    """Register export subcommand."""
    parser = subparsers.add_parser("export", help="Export a table as CSV")
    parser.add_argument("table", help="Table name")
    parser.add_argument("--output-dir", help="Write <table>_<date>.csv here instead of stdout")


def _add_show_command(subparsers: Any) -> None:
    """Register show subcommand."""
    parser = subparsers.add_parser("show", help="Print one page of table rows")
    parser.add_argument("table", help="Table name")
    parser.add_argument("--page", type=int, default=1, help="One-based page number")
    parser.add_argument(
        "--page-size",
        type=_positive_int,
        default=DEFAULT_PAGE_SIZE,
        help="Rows per page",
    )


def _positive_int(raw_value: str) -> int:
    value = int(raw_value)
    if value < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {raw_value}")
    return value


def _add_stats_command(subparsers: Any) -> None:
    """Register stats subcommand."""
    parser = subparsers.add_parser("stats", help="Show table size and shape")
    parser.add_argument("table", help="Table name")


def _add_append_command(subparsers: Any) -> None:
    """Register append subcommand."""
    parser = subparsers.add_parser("append", help="Append rows to a table")
    parser.add_argument("table", help="Table name")
    parser.add_argument(
        "--row",
        action="append",
        required=True,
        help="Comma-separated cell values; repeat for more rows",
    )


def _add_set_row_command(subparsers: Any) -> None:
    """Register set-row subcommand."""
    parser = subparsers.add_parser("set-row", help="Replace one row by index")
    parser.add_argument("table", help="Table name")
    parser.add_argument("index", type=int, help="Zero-based row index")
    parser.add_argument("--values", required=True, help="Comma-separated cell values")


def _add_delete_row_command(subparsers: Any) -> None:
    """Register delete-row subcommand."""
    parser = subparsers.add_parser("delete-row", help="Delete one row by index")
    parser.add_argument("table", help="Table name")
    parser.add_argument("index", type=int, help="Zero-based row index")


def _add_delete_command(subparsers: Any) -> None:
    """Register delete subcommand."""
    parser = subparsers.add_parser("delete", help="Delete a table; backups are kept")
    parser.add_argument("table", help="Table name")


_COMMAND_HANDLERS = {
    "tables": _run_tables_command,
    "create": _run_create_command,
    "import": _run_import_command,
    "export": _run_export_command,
    "show": _run_show_command,
    "stats": _run_stats_command,
    "append": _run_append_command,
    "set-row": _run_set_row_command,
    "delete-row": _run_delete_row_command,
    "delete": _run_delete_command,
}
