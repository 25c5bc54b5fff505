"""Value objects returned by the store clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class RemoteFile:
    filename: str
    relative_path: str
    size_bytes: int
    modified: float | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "RemoteFile":
        return cls(
            filename=payload["filename"],
            relative_path=payload.get("relative_path") or payload.get("file_path") or "",
            size_bytes=int(payload.get("size_bytes") or 0),
            modified=payload.get("modified"),
        )


@dataclass(slots=True)
class ExcelData:
    headers: list[str]
    rows: list[list[Any]]
    total_rows: int
    total_columns: int
    filename: str


@dataclass(slots=True)
class CloudStatus:
    enabled: bool
    account_type: str | None = None
    folder_name: str | None = None
    message: str | None = None


@dataclass(slots=True)
class CloudFile:
    filename: str
    file_id: str
    web_url: str | None
    size_bytes: int
    embed_url: str | None = None
    created_at: str | None = None
    last_modified_at: str | None = None
    folder_path: str | None = None


@dataclass(slots=True)
class CloudUpload:
    file_id: str
    web_url: str | None
    embed_url: str | None
    size_bytes: int
    created_at: str | None
    folder_path: str | None = None
    message: str | None = None


@dataclass(slots=True)
class SyncResponse:
    """Server acknowledgement of a one-way copy between remote and cloud."""

    message: str
    embed_url: str | None = None
    file_id: str | None = None
    size_bytes: int | None = None
    last_modified: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "CloudFile",
    "CloudStatus",
    "CloudUpload",
    "ExcelData",
    "RemoteFile",
    "SyncResponse",
]
