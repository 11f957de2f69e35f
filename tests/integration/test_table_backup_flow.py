"""Integration tests for the table and backup workflow."""

from __future__ import annotations

from dataclasses import replace

from core.config import VaultConfig
from fixture_paths import fixture_path
from ingest.csv_codec import parse_csv_text, serialize_csv
from store.vault_sdk import VaultClient


def test_import_edit_backup_restore_flow(tmp_path) -> None:
    """End-to-end flow should import, edit, back up, and restore a table."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)
    with VaultClient(config) as client:
        table_id = client.import_csv_files(
            "orders",
            [fixture_path("csv/orders.csv"), fixture_path("csv/orders_more.csv")],
        )
        handle = client.table("orders")
        backup_id = handle.backup("before edits")
        handle.delete_row(0)
        handle.append_rows([["Gizmo", "1", "2.00"]])

        restored_id = client.backups.restore(backup_id)
        restored = handle.load()

    assert restored_id == table_id
    assert [row[0] for row in restored.rows] == ["Widget", "Gadget", "Sprocket"]


def test_exported_csv_reimports_identically(tmp_path) -> None:
    """Exported CSV text should parse back into the same header and rows."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)
    with VaultClient(config) as client:
        table_id = client.import_csv_files("quoted", [fixture_path("csv/quoted.csv")])
        exported = client.tables.export_csv(table_id)

    reparsed = parse_csv_text(serialize_csv(exported))

    assert reparsed == [["name", "notes"], ["Smith, J", 'said "hi"'], ["Lee", ""]]


def test_auto_backup_retention_across_schedules(tmp_path) -> None:
    """Scheduled and one-shot cycles should share the retention window."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path, backup_retention=7)
    with VaultClient(config) as client:
        table_id = client.tables.create("orders", ["product"], [["Widget"]])
        client.table("orders").schedule_auto_backup(24.0)
        for _ in range(9):
            client.backups.run_auto_backup_cycle(table_id)
        remaining = client.backups.list("orders")

    assert len(remaining) == 7


def test_public_module_exposes_client(tmp_path) -> None:
    """The top-level tablevault module should re-export the SDK client."""
    import tablevault

    config = replace(tablevault.VaultConfig.from_env(), data_root=tmp_path)
    with tablevault.VaultClient(config) as client:
        table_id = client.tables.create("orders", ["product"])

    assert table_id == 1 and "VaultClient" in tablevault.__all__
