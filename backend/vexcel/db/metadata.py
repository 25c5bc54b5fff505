"""Registry of logical files: which remote path and cloud copy belong together."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Mapping, Protocol

from supabase import create_client

from vexcel.core.errors import MetadataError
from vexcel.db.sqlite import SQLiteDatabase
from vexcel.models.entities import LogicalFile, NewLogicalFile
from vexcel.utils.ids import new_id, new_uuid
from vexcel.utils.time import parse_timestamp, utc_now
from vexcel.utils.urls import normalize_embed_url

_COLUMNS = (
    "id, user_id, file_name, file_path, file_size, uploaded_at, last_accessed, "
    "mcp_filename, mcp_file_path, onedrive_file_id, onedrive_web_url, "
    "onedrive_embed_url, onedrive_uploaded_at, onedrive_folder_path"
)
# Columns a re-upload of the same (owner, filename) must not overwrite.
_UPSERT_KEEP = frozenset({"id", "user_id", "file_name", "uploaded_at"})


class MetadataStore(Protocol):
    """Operations the upload, chat and delete workflows need from the registry.

    Backend failures raise :class:`MetadataError`; a missing row is reported
    as ``None``/``False`` rather than an exception.
    """

    def insert(self, record: NewLogicalFile) -> LogicalFile: ...

    def get(self, file_id: str, owner_id: str) -> LogicalFile | None: ...

    def find(self, owner_id: str, filename: str) -> LogicalFile | None: ...

    def list_for_owner(self, owner_id: str) -> list[LogicalFile]: ...

    def get_cloud_file_id(self, file_id: str) -> str | None: ...

    def update_embed_url(self, file_id: str, owner_id: str, new_url: str, timestamp: datetime) -> bool: ...

    def delete(self, file_id: str, owner_id: str) -> bool: ...


def _record_payload(record: NewLogicalFile, file_id: str, now: datetime) -> dict[str, Any]:
    return {
        "id": file_id,
        "user_id": record.owner_id,
        "file_name": record.filename,
        "file_path": record.remote_path,
        "file_size": record.size_bytes,
        "uploaded_at": now.isoformat(),
        "last_accessed": now.isoformat(),
        "mcp_filename": record.filename,
        "mcp_file_path": record.remote_path,
        "onedrive_file_id": record.cloud_file_id,
        "onedrive_web_url": record.cloud_web_url,
        "onedrive_embed_url": normalize_embed_url(record.cloud_embed_url),
        "onedrive_uploaded_at": record.cloud_uploaded_at.isoformat() if record.cloud_uploaded_at else None,
        "onedrive_folder_path": record.cloud_folder,
    }


def row_to_file(row: Mapping[str, Any]) -> LogicalFile:
    return LogicalFile(
        id=row["id"],
        owner_id=row["user_id"],
        filename=row["file_name"],
        remote_path=row["mcp_file_path"] or row["file_path"],
        size_bytes=int(row["file_size"] or 0),
        cloud_file_id=row["onedrive_file_id"],
        cloud_web_url=row["onedrive_web_url"],
        cloud_embed_url=normalize_embed_url(row["onedrive_embed_url"]),
        cloud_folder=row["onedrive_folder_path"],
        cloud_uploaded_at=parse_timestamp(row["onedrive_uploaded_at"]),
        uploaded_at=parse_timestamp(row["uploaded_at"]),
        last_synced_at=parse_timestamp(row["last_accessed"]),
    )


class SQLiteMetadataStore:
    """``user_files`` table in a local SQLite database."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def insert(self, record: NewLogicalFile) -> LogicalFile:
        """Upsert on ``(owner, filename)``; a re-upload keeps the row id and first upload time."""
        payload = _record_payload(record, new_id("file"), utc_now())
        columns = ", ".join(payload)
        placeholders = ", ".join("?" for _ in payload)
        updates = ", ".join(f"{column} = excluded.{column}" for column in payload if column not in _UPSERT_KEEP)
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    f"INSERT INTO user_files ({columns}) VALUES ({placeholders}) "
                    f"ON CONFLICT (user_id, file_name) DO UPDATE SET {updates}",
                    list(payload.values()),
                )
                cursor.execute(
                    f"SELECT {_COLUMNS} FROM user_files WHERE user_id = ? AND file_name = ?",
                    [record.owner_id, record.filename],
                )
                row = cursor.fetchone()
        except sqlite3.Error as exc:
            raise MetadataError(f"Failed to save file metadata: {exc}") from exc
        return row_to_file(row)

    def get(self, file_id: str, owner_id: str) -> LogicalFile | None:
        rows = self._select("WHERE id = ? AND user_id = ?", [file_id, owner_id])
        return rows[0] if rows else None

    def find(self, owner_id: str, filename: str) -> LogicalFile | None:
        rows = self._select("WHERE user_id = ? AND file_name = ?", [owner_id, filename])
        return rows[0] if rows else None

    def list_for_owner(self, owner_id: str) -> list[LogicalFile]:
        return self._select("WHERE user_id = ? ORDER BY uploaded_at DESC", [owner_id])

    def get_cloud_file_id(self, file_id: str) -> str | None:
        try:
            rows = self.db.query("SELECT onedrive_file_id FROM user_files WHERE id = ?", [file_id])
        except sqlite3.Error as exc:
            raise MetadataError(f"Failed to read file metadata: {exc}") from exc
        return rows[0]["onedrive_file_id"] if rows else None

    def update_embed_url(self, file_id: str, owner_id: str, new_url: str, timestamp: datetime) -> bool:
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    "UPDATE user_files SET onedrive_embed_url = ?, last_accessed = ? WHERE id = ? AND user_id = ?",
                    [normalize_embed_url(new_url), timestamp.isoformat(), file_id, owner_id],
                )
                updated = cursor.rowcount
        except sqlite3.Error as exc:
            raise MetadataError(f"Failed to update embed URL: {exc}") from exc
        return updated > 0

    def delete(self, file_id: str, owner_id: str) -> bool:
        try:
            with self.db.transaction() as cursor:
                cursor.execute("DELETE FROM user_files WHERE id = ? AND user_id = ?", [file_id, owner_id])
                deleted = cursor.rowcount
        except sqlite3.Error as exc:
            raise MetadataError(f"Failed to delete file metadata: {exc}") from exc
        return deleted > 0

    def _select(self, where: str, params: list[Any]) -> list[LogicalFile]:
        try:
            rows = self.db.query(f"SELECT {_COLUMNS} FROM user_files {where}", params)
        except sqlite3.Error as exc:
            raise MetadataError(f"Failed to read file metadata: {exc}") from exc
        return [row_to_file(row) for row in rows]


class SupabaseMetadataStore:
    """``user_files`` table in the hosted Postgres behind Supabase."""

    def __init__(self, client: Any, table: str = "user_files") -> None:
        self.client = client
        self.table = table

    def insert(self, record: NewLogicalFile) -> LogicalFile:
        existing = self.find(record.owner_id, record.filename)
        payload = _record_payload(record, existing.id if existing else new_uuid(), utc_now())
        if existing and existing.uploaded_at:
            payload["uploaded_at"] = existing.uploaded_at.isoformat()
        rows = self._run("save file metadata", self.client.table(self.table).upsert(payload))
        return row_to_file(rows[0] if rows else payload)

    def get(self, file_id: str, owner_id: str) -> LogicalFile | None:
        query = self.client.table(self.table).select(_COLUMNS).eq("id", file_id).eq("user_id", owner_id).limit(1)
        rows = self._run("read file metadata", query)
        return row_to_file(rows[0]) if rows else None

    def find(self, owner_id: str, filename: str) -> LogicalFile | None:
        query = (
            self.client.table(self.table).select(_COLUMNS).eq("user_id", owner_id).eq("file_name", filename).limit(1)
        )
        rows = self._run("read file metadata", query)
        return row_to_file(rows[0]) if rows else None

    def list_for_owner(self, owner_id: str) -> list[LogicalFile]:
        query = self.client.table(self.table).select(_COLUMNS).eq("user_id", owner_id).order("uploaded_at", desc=True)
        return [row_to_file(row) for row in self._run("list file metadata", query)]

    def get_cloud_file_id(self, file_id: str) -> str | None:
        query = self.client.table(self.table).select("onedrive_file_id").eq("id", file_id).limit(1)
        rows = self._run("read file metadata", query)
        return rows[0].get("onedrive_file_id") if rows else None

    def update_embed_url(self, file_id: str, owner_id: str, new_url: str, timestamp: datetime) -> bool:
        query = (
            self.client.table(self.table)
            .update({"onedrive_embed_url": normalize_embed_url(new_url), "last_accessed": timestamp.isoformat()})
            .eq("id", file_id)
            .eq("user_id", owner_id)
        )
        return bool(self._run("update embed URL", query))

    def delete(self, file_id: str, owner_id: str) -> bool:
        query = self.client.table(self.table).delete().eq("id", file_id).eq("user_id", owner_id)
        return bool(self._run("delete file metadata", query))

    def _run(self, what: str, query: Any) -> list[dict[str, Any]]:
        try:
            response = query.execute()
        except Exception as exc:  # noqa: BLE001 - postgrest and transport errors alike
            raise MetadataError(f"Failed to {what}: {exc}") from exc
        return list(response.data or [])


def create_supabase_client(url: str | None, key: str | None) -> Any:
    """Build a supabase-py client; missing credentials fail loudly."""
    if not url:
        raise MetadataError("supabase_url is required for the supabase metadata backend.")
    if not key:
        raise MetadataError("supabase_key is required for the supabase metadata backend.")
    return create_client(url, key)


__all__ = [
    "MetadataStore",
    "SQLiteMetadataStore",
    "SupabaseMetadataStore",
    "create_supabase_client",
    "row_to_file",
]
