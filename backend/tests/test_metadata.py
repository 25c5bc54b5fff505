"""Tests for the logical file registry."""

from __future__ import annotations

from datetime import datetime, timezone
import threading
from pathlib import Path
from types import SimpleNamespace

import pytest

from vexcel.core.errors import MetadataError
from vexcel.db.metadata import SQLiteMetadataStore, SupabaseMetadataStore
from vexcel.db.sqlite import SQLiteDatabase
from vexcel.models.entities import NewLogicalFile


@pytest.fixture
def store(tmp_path: Path) -> SQLiteMetadataStore:
    db = SQLiteDatabase(tmp_path / "meta.db")
    db.ensure_schema()
    yield SQLiteMetadataStore(db)
    db.close()


def _record(**overrides) -> NewLogicalFile:
    values = dict(
        owner_id="u1",
        filename="sales.xlsx",
        remote_path="u1/sales.xlsx",
        size_bytes=12,
        cloud_file_id="cloud-1",
        cloud_embed_url="https://onedrive.test/embed?resid=1&amp;em=2",
    )
    values.update(overrides)
    return NewLogicalFile(**values)


def test_insert_normalizes_embed_url(store: SQLiteMetadataStore) -> None:
    created = store.insert(_record())
    fetched = store.get(created.id, "u1")
    assert fetched is not None
    assert fetched.cloud_embed_url == "https://onedrive.test/embed?resid=1&em=2"
    assert store.get_cloud_file_id(created.id) == "cloud-1"


def test_insert_is_keyed_by_owner_and_filename(store: SQLiteMetadataStore) -> None:
    first = store.insert(_record())
    second = store.insert(_record(size_bytes=99, cloud_file_id=None, cloud_embed_url=None))
    assert first.id == second.id
    rows = store.list_for_owner("u1")
    assert len(rows) == 1
    assert rows[0].size_bytes == 99
    assert rows[0].cloud_file_id is None


def test_reupload_keeps_first_upload_time(store: SQLiteMetadataStore) -> None:
    first = store.insert(_record())
    second = store.insert(_record(size_bytes=99))
    assert second.uploaded_at == first.uploaded_at
    assert second.size_bytes == 99


def test_concurrent_inserts_share_one_row(store: SQLiteMetadataStore) -> None:
    ids: list[str] = []
    errors: list[BaseException] = []
    start = threading.Barrier(8)

    def insert(size: int) -> None:
        start.wait()
        try:
            ids.append(store.insert(_record(size_bytes=size)).id)
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=insert, args=(size,)) for size in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors
    rows = store.list_for_owner("u1")
    assert len(rows) == 1
    assert set(ids) == {rows[0].id}


def test_update_embed_url_scoped_to_owner(store: SQLiteMetadataStore) -> None:
    created = store.insert(_record())
    stamp = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
    assert store.update_embed_url(created.id, "someone-else", "https://x.test/?a=1", stamp) is False
    assert store.update_embed_url(created.id, "u1", "https://x.test/?a=1&amp;b=2", stamp) is True
    updated = store.get(created.id, "u1")
    assert updated.cloud_embed_url == "https://x.test/?a=1&b=2"
    assert updated.last_synced_at == stamp


def test_delete(store: SQLiteMetadataStore) -> None:
    created = store.insert(_record())
    assert store.delete(created.id, "u1") is True
    assert store.get(created.id, "u1") is None
    assert store.delete(created.id, "u1") is False


def test_backend_failure_raises_metadata_error(store: SQLiteMetadataStore) -> None:
    store.db.execute("DROP TABLE user_files")
    with pytest.raises(MetadataError):
        store.list_for_owner("u1")


class _Query:
    def __init__(self, table: "_Table", op: str, payload=None) -> None:
        self.table = table
        self.op = op
        self.payload = payload
        self.filters: dict[str, str] = {}

    def select(self, *_args, **_kwargs):
        return self

    def eq(self, column: str, value: str) -> "_Query":
        self.filters[column] = value
        return self

    def limit(self, *_args):
        return self

    def order(self, *_args, **_kwargs):
        return self

    def execute(self):
        if self.table.error:
            raise RuntimeError(self.table.error)
        matches = [row for row in self.table.rows if all(row.get(k) == v for k, v in self.filters.items())]
        if self.op == "upsert":
            self.table.rows = [row for row in self.table.rows if row["id"] != self.payload["id"]]
            self.table.rows.append(dict(self.payload))
            return SimpleNamespace(data=[dict(self.payload)])
        if self.op == "update":
            for row in matches:
                row.update(self.payload)
        if self.op == "delete":
            self.table.rows = [row for row in self.table.rows if row not in matches]
        return SimpleNamespace(data=[dict(row) for row in matches])


class _Table:
    def __init__(self) -> None:
        self.rows: list[dict] = []
        self.error: str | None = None

    def select(self, *_args):
        return _Query(self, "select")

    def upsert(self, payload):
        return _Query(self, "upsert", payload)

    def update(self, payload):
        return _Query(self, "update", payload)

    def delete(self):
        return _Query(self, "delete")


class _Client:
    def __init__(self) -> None:
        self.tables: dict[str, _Table] = {}

    def table(self, name: str) -> _Table:
        return self.tables.setdefault(name, _Table())


def test_supabase_store_round_trip() -> None:
    client = _Client()
    store = SupabaseMetadataStore(client)
    created = store.insert(_record())
    assert client.tables["user_files"].rows[0]["onedrive_embed_url"] == "https://onedrive.test/embed?resid=1&em=2"
    assert store.find("u1", "sales.xlsx").id == created.id
    assert store.get_cloud_file_id(created.id) == "cloud-1"

    stamp = datetime(2026, 10, 18, tzinfo=timezone.utc)
    assert store.update_embed_url(created.id, "u1", "https://x.test/?a=1&amp;b=2", stamp) is True
    assert store.get(created.id, "u1").cloud_embed_url == "https://x.test/?a=1&b=2"
    assert store.delete(created.id, "u1") is True
    assert store.list_for_owner("u1") == []


def test_supabase_errors_become_metadata_errors() -> None:
    client = _Client()
    client.table("user_files").error = "connection reset"
    store = SupabaseMetadataStore(client)
    with pytest.raises(MetadataError, match="connection reset"):
        store.get("f1", "u1")
