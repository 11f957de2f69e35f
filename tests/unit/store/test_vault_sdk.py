"""Unit tests for the SDK client."""

from __future__ import annotations

import json
import threading
from dataclasses import replace
from datetime import date

import pytest

from core.config import VaultConfig
from core.errors import NotFoundError, VaultConfigError
from fixture_paths import fixture_path
from store.vault_sdk import VaultClient


def test_import_csv_files_creates_table(tmp_path) -> None:
    """SDK import should create a table from CSV files."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)

    with VaultClient(config) as client:
        table_id = client.import_csv_files("orders", [fixture_path("csv/orders.csv")])
        table = client.tables.require(table_id)

    assert table.columns == ("product", "quantity", "price") and table.row_count == 2


def test_csv_options_maps_auto_to_sniffing(tmp_path) -> None:
    """An explicit auto delimiter should request sniffing."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path, csv_delimiter=",")

    with VaultClient(config) as client:
        sniffing = client.csv_options(delimiter="auto")
        defaulted = client.csv_options()

    assert sniffing.delimiter is None and defaulted.delimiter == ","


def test_csv_options_rejects_bad_delimiter(tmp_path) -> None:
    """Multi-character delimiters should be rejected."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)

    with VaultClient(config) as client:
        with pytest.raises(VaultConfigError):
            client.csv_options(delimiter="ab")


def test_table_handle_for_missing_table_raises(tmp_path) -> None:
    """Opening a handle for an unknown name should fail."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)

    with VaultClient(config) as client:
        with pytest.raises(NotFoundError):
            client.table("missing")


def test_write_csv_export_names_file_by_date(tmp_path) -> None:
    """CSV export should write <name>_<date>.csv."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path / "data")

    with VaultClient(config) as client:
        table_id = client.tables.create("orders", ["product"], [["Widget"]])
        output_path = client.write_csv_export(table_id, tmp_path / "out")

    assert output_path.name == f"orders_{date.today().isoformat()}.csv"
    assert output_path.read_bytes() == b"product\r\nWidget\r\n"


def test_write_backup_file_writes_json(tmp_path) -> None:
    """Backup export should write the snapshot JSON file."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path / "data")

    with VaultClient(config) as client:
        client.tables.create("orders", ["product"])
        backup_id = client.table("orders").backup("manual")
        output_path = client.write_backup_file(backup_id, tmp_path / "out")

    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["id"] == backup_id and payload["description"] == "manual"


def test_handle_operations_update_table(tmp_path) -> None:
    """Handle helpers should forward to the table store."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)

    with VaultClient(config) as client:
        client.tables.create("orders", ["product"], [["Widget"]])
        handle = client.table("orders")
        handle.append_rows([["Gadget"], ["Sprocket"]])
        handle.set_row(0, ["Gizmo"])
        handle.delete_row(1)
        exported = handle.export_csv()

    assert exported == [["product"], ["Gizmo"], ["Sprocket"]]


def test_close_stops_schedules(tmp_path) -> None:
    """Closing the client should cancel active schedules."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)
    client = VaultClient(config)
    client.tables.create("orders", ["product"])
    scheduled = client.table("orders").schedule_auto_backup(24.0)

    client.close()

    assert not scheduled.is_active


def test_data_persists_across_clients(tmp_path) -> None:
    """Reopening the same data root should see stored tables."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)
    with VaultClient(config) as client:
        client.tables.create("orders", ["product"], [["Widget"]])

    with VaultClient(config) as reopened:
        table = reopened.table("orders").load()

    assert table.rows == (("Widget",),)


def test_two_clients_on_one_data_root_keep_all_appends(tmp_path) -> None:
    """Appends from two clients sharing a data root should not be lost."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)
    with VaultClient(config) as first, VaultClient(config) as second:
        first.tables.create("orders", ["n"])

        def append_batch(client: VaultClient, start: int) -> None:
            handle = client.table("orders")
            for offset in range(50):
                handle.append_rows([[start + offset]])

        workers = [
            threading.Thread(target=append_batch, args=(first, 0)),
            threading.Thread(target=append_batch, args=(second, 100)),
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        table = second.table("orders").load()

    assert table.row_count == 100


def test_handle_page_returns_rows(tmp_path) -> None:
    """Handle paging should forward to the table store."""
    config = replace(VaultConfig.from_env(), data_root=tmp_path)

    with VaultClient(config) as client:
        client.tables.create("orders", ["product"], [["Widget"], ["Gadget"]])
        page = client.table("orders").page(2, page_size=1)

    assert page.rows == (("Gadget",),) and page.page_count == 2
