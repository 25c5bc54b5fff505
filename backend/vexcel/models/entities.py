"""Internal dataclasses representing persisted and in-flight entities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

R = TypeVar("R")


@dataclass(slots=True)
class LogicalFile:
    """One user spreadsheet, spanning the remote, cloud and metadata stores."""

    id: str
    owner_id: str
    filename: str
    remote_path: str
    size_bytes: int
    cloud_file_id: str | None = None
    cloud_web_url: str | None = None
    cloud_embed_url: str | None = None
    cloud_folder: str | None = None
    cloud_uploaded_at: datetime | None = None
    uploaded_at: datetime | None = None
    last_synced_at: datetime | None = None


@dataclass(slots=True)
class NewLogicalFile:
    owner_id: str
    filename: str
    remote_path: str
    size_bytes: int
    cloud_file_id: str | None = None
    cloud_web_url: str | None = None
    cloud_embed_url: str | None = None
    cloud_folder: str | None = None
    cloud_uploaded_at: datetime | None = None


@dataclass(slots=True)
class SyncResult:
    """Whether the cloud view reflects the remote copy after an operation."""

    success: bool
    message: str
    embed_url_updated: bool = False
    new_embed_url: str | None = None
    synced_at: datetime | None = None


@dataclass(slots=True)
class SyncedOperationOutcome(Generic[R]):
    result: R
    sync_result: SyncResult
    pre_sync: SyncResult | None = None


__all__ = ["LogicalFile", "NewLogicalFile", "SyncResult", "SyncedOperationOutcome"]
