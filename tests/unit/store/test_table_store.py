"""Unit tests for table store persistence."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from core.errors import DuplicateNameError, EmptyInputError, IndexOutOfRangeError, NotFoundError
from store.database import VaultDatabase
from store.table_store import TableStore


def _open_store(tmp_path: Path) -> tuple[VaultDatabase, TableStore]:
    database = VaultDatabase(tmp_path / "vault.db").open()
    return database, TableStore(database)


def test_create_persists_orders_table(tmp_path) -> None:
    """Created tables should be readable by id and name."""
    database, store = _open_store(tmp_path)

    table_id = store.create(
        "orders",
        ["product", "quantity", "price"],
        [["Widget", 10, 19.99], ["Gadget", 5, 49.99]],
    )
    table = store.require(table_id)
    database.close()

    assert table.name == "orders"
    assert table.row_count == 2
    assert table.rows[0] == ("Widget", "10", "19.99")


def test_create_rejects_duplicate_name(tmp_path) -> None:
    """Live table names should be unique and the first table left untouched."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"], [["Widget"]])
    before = store.require(table_id)

    with pytest.raises(DuplicateNameError):
        store.create("orders", ["other"], [["Gadget"], ["Sprocket"]])
    after = store.require(table_id)
    table_count = len(store.list())
    database.close()

    assert after == before and table_count == 1


def test_name_is_reusable_after_delete(tmp_path) -> None:
    """Deleting a table should free its name."""
    database, store = _open_store(tmp_path)
    first_id = store.create("orders", ["product"])
    store.delete(first_id)

    second_id = store.create("orders", ["product"])
    database.close()

    assert second_id != first_id


def test_delete_unknown_table_raises(tmp_path) -> None:
    """Repeated deletes should report the table as missing."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"])
    store.delete(table_id)

    with pytest.raises(NotFoundError):
        store.delete(table_id)
    database.close()


def test_get_returns_none_for_unknown(tmp_path) -> None:
    """Lookups of unknown tables should return None."""
    database, store = _open_store(tmp_path)

    missing_by_id = store.get_by_id(999)
    missing_by_name = store.get_by_name("missing")
    database.close()

    assert missing_by_id is None and missing_by_name is None


def test_append_rows_keeps_order_and_updates_count(tmp_path) -> None:
    """Appended rows should follow existing rows."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"], [["Widget"]])

    store.append_rows(table_id, [["Gadget"], ["Sprocket"]])
    table = store.require(table_id)
    database.close()

    assert [row[0] for row in table.rows] == ["Widget", "Gadget", "Sprocket"]
    assert table.row_count == 3


def test_append_rows_bumps_last_modified(tmp_path) -> None:
    """Mutations should move last_modified forward."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"])
    before = store.require(table_id)

    store.append_rows(table_id, [["Widget"]])
    after = store.require(table_id)
    database.close()

    assert after.last_modified >= before.last_modified
    assert after.created_at == before.created_at


def test_set_row_replaces_row(tmp_path) -> None:
    """Set-row should replace exactly one row."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"], [["Widget"], ["Gadget"]])

    store.set_row(table_id, 1, ["Sprocket", "extra"])
    table = store.require(table_id)
    database.close()

    assert table.rows == (("Widget",), ("Sprocket", "extra"))


def test_set_row_out_of_range_raises(tmp_path) -> None:
    """Set-row outside the row range should fail without changing rows."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"], [["Widget"]])

    with pytest.raises(IndexOutOfRangeError):
        store.set_row(table_id, 1, ["Gadget"])
    table = store.require(table_id)
    database.close()

    assert table.rows == (("Widget",),)


def test_delete_row_shifts_later_rows(tmp_path) -> None:
    """Deleting a row should shift later rows down by one."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"], [["a"], ["b"], ["c"]])

    store.delete_row(table_id, 1)
    table = store.require(table_id)
    database.close()

    assert table.rows == (("a",), ("c",)) and table.row_count == 2


@pytest.mark.parametrize("index", [-1, 3, 4])
def test_delete_row_out_of_range_raises(tmp_path, index: int) -> None:
    """Delete-row outside the row range should fail and leave the table unchanged."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"], [["a"], ["b"], ["c"]])
    before = store.require(table_id)

    with pytest.raises(IndexOutOfRangeError):
        store.delete_row(table_id, index)
    after = store.require(table_id)
    database.close()

    assert after == before


def test_csv_round_trip_keeps_ragged_rows(tmp_path) -> None:
    """Import then export should return the same header and rows."""
    database, store = _open_store(tmp_path)
    header_plus_rows = [["a", "b", "c"], ["1", "2"], ["3", "4", "5", "6"], []]

    table_id = store.import_csv("ragged", header_plus_rows)
    exported = store.export_csv(table_id)
    database.close()

    assert exported == header_plus_rows


def test_import_csv_rejects_empty_input(tmp_path) -> None:
    """Import without a header row should fail."""
    database, store = _open_store(tmp_path)

    with pytest.raises(EmptyInputError):
        store.import_csv("empty", [])
    database.close()


def test_import_csv_append_extends_existing_table(tmp_path) -> None:
    """Append-mode import should keep columns and add rows."""
    database, store = _open_store(tmp_path)
    table_id = store.import_csv("orders", [["product"], ["Widget"]])

    appended_id = store.import_csv("orders", [["ignored"], ["Gadget"]], append=True)
    table = store.require(table_id)
    database.close()

    assert appended_id == table_id
    assert table.columns == ("product",) and table.row_count == 2


def test_stats_reports_size_and_shape(tmp_path) -> None:
    """Stats should describe rows, columns, and serialized size."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product", "price"], [["Widget", "1"]])

    stats = store.stats(table_id)
    database.close()

    assert (stats.row_count, stats.column_count) == (1, 2)
    assert stats.size_bytes == len('[["Widget","1"]]')
    assert stats.size_formatted == f"{stats.size_bytes} Bytes"


def test_update_rejects_unknown_field(tmp_path) -> None:
    """The merge primitive should refuse fields it does not own."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"])

    with pytest.raises(ValueError):
        store._update(table_id, created_at="never")
    database.close()


def test_concurrent_appends_do_not_lose_rows(tmp_path) -> None:
    """Parallel appends should all land in the table."""
    database, store = _open_store(tmp_path)
    table_id = store.create("counter", ["n"])

    def append_batch(start: int) -> None:
        for offset in range(10):
            store.append_rows(table_id, [[start + offset]])

    workers = [threading.Thread(target=append_batch, args=(start,)) for start in (0, 100, 200)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    table = store.require(table_id)
    database.close()

    assert table.row_count == 30 and len(table.rows) == 30


def test_delete_notifies_listeners(tmp_path) -> None:
    """Delete listeners should receive the deleted id."""
    database, store = _open_store(tmp_path)
    deleted_ids: list[int] = []
    store.add_delete_listener(deleted_ids.append)
    table_id = store.create("orders", ["product"])

    store.delete(table_id)
    database.close()

    assert deleted_ids == [table_id]


def test_orders_scenario_stats_append_export(tmp_path) -> None:
    """Stats, append, and export should agree on the table contents."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["id", "amt"], [["1", "10"], ["2", "20"]])

    stats = store.stats(table_id)
    store.append_rows(table_id, [["3", "30"]])
    exported = store.export_csv(table_id)
    database.close()

    assert (stats.row_count, stats.column_count) == (2, 2)
    assert exported == [["id", "amt"], ["1", "10"], ["2", "20"], ["3", "30"]]


def test_export_then_import_into_fresh_name_round_trips(tmp_path) -> None:
    """Exported rows should import into a new table with equal contents."""
    database, store = _open_store(tmp_path)
    source_id = store.create(
        "source",
        ["a", "b", "c"],
        [["1", None, "3"], ["4"], ["5", "6", "7", "8"], [None]],
    )

    copy_id = store.import_csv("copy", store.export_csv(source_id))
    source = store.require(source_id)
    copy = store.require(copy_id)
    database.close()

    assert copy.columns == source.columns
    assert copy.rows == source.rows
    assert copy.row_count == source.row_count


def test_concurrent_appends_from_two_connections(tmp_path) -> None:
    """Appends through separate database connections should all land."""
    first_database, first_store = _open_store(tmp_path)
    second_database, second_store = _open_store(tmp_path)
    table_id = first_store.create("counter", ["n"])

    def append_batch(store: TableStore, start: int) -> None:
        for offset in range(50):
            store.append_rows(table_id, [[start + offset]])

    workers = [
        threading.Thread(target=append_batch, args=(first_store, 0)),
        threading.Thread(target=append_batch, args=(second_store, 100)),
    ]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    table = first_store.require(table_id)
    first_database.close()
    second_database.close()

    assert table.row_count == 100 and len(table.rows) == 100


def test_restore_contents_recreates_table_deleted_after_lookup(
    tmp_path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Restore should fall back to create when the looked-up table is gone."""
    database, store = _open_store(tmp_path)
    table_id = store.create("orders", ["product"], [["Widget"]])
    stale_table = store.require(table_id)
    store.delete(table_id)
    monkeypatch.setattr(store, "get_by_name", lambda name: stale_table)

    restored_id = store.restore_contents("orders", ["product"], [["Gadget"]])
    restored = store.require(restored_id)
    database.close()

    assert restored_id != table_id and restored.rows == (("Gadget",),)


def test_list_filters_by_name_substring(tmp_path) -> None:
    """Name filters should match case-insensitive substrings."""
    database, store = _open_store(tmp_path)
    store.create("Orders2024", ["product"])
    store.create("customers", ["name"])

    names = [table.name for table in store.list("orders")]
    database.close()

    assert names == ["Orders2024"]


def test_page_returns_requested_slice(tmp_path) -> None:
    """Pages should slice rows and report their position."""
    database, store = _open_store(tmp_path)
    table_id = store.create("numbers", ["n"], [[str(n)] for n in range(120)])

    page = store.page(table_id, 3, page_size=50)
    database.close()

    assert (page.first_row, page.last_row, page.total_rows) == (101, 120, 120)
    assert page.page_count == 3 and page.rows[0] == ("100",)


def test_page_out_of_range_raises(tmp_path) -> None:
    """Pages past the end should be rejected, while empty tables have one page."""
    database, store = _open_store(tmp_path)
    table_id = store.create("empty", ["n"])

    empty_page = store.page(table_id, 1)
    with pytest.raises(IndexOutOfRangeError):
        store.page(table_id, 2)
    database.close()

    assert empty_page.rows == () and empty_page.first_row == 0
