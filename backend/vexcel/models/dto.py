"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vexcel.models.entities import LogicalFile, SyncResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LogicalFileResponse(BaseModel):
    id: str
    owner_id: str
    filename: str
    remote_path: str
    size_bytes: int
    cloud_file_id: str | None = None
    cloud_web_url: str | None = None
    cloud_embed_url: str | None = None
    uploaded_at: datetime | None = None
    last_synced_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: LogicalFile) -> "LogicalFileResponse":
        return cls(
            id=entity.id,
            owner_id=entity.owner_id,
            filename=entity.filename,
            remote_path=entity.remote_path,
            size_bytes=entity.size_bytes,
            cloud_file_id=entity.cloud_file_id,
            cloud_web_url=entity.cloud_web_url,
            cloud_embed_url=entity.cloud_embed_url,
            uploaded_at=entity.uploaded_at,
            last_synced_at=entity.last_synced_at,
        )


class UploadResponse(BaseModel):
    file: LogicalFileResponse
    cloud_warning: str | None = None


class DeleteResponse(BaseModel):
    status: Literal["ok"]
    file_id: str
    metadata_deleted: bool
    remote_deleted: bool | None = None
    remote_error: str | None = None


class ProcessRequest(CamelModel):
    user_message: str = ""
    current_data: list[list[Any]] = Field(default_factory=list)
    headers: list[str] = Field(default_factory=list)
    remote_file_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("remoteFilePath", "mcpFilePath", "remote_file_path"),
    )
    file_id: str | None = None
    sync_from_cloud_first: bool | None = None


class SyncResultResponse(CamelModel):
    success: bool
    message: str
    embed_url_updated: bool = False
    new_embed_url: str | None = None

    @classmethod
    def from_entity(cls, entity: SyncResult) -> "SyncResultResponse":
        return cls(
            success=entity.success,
            message=entity.message,
            embed_url_updated=entity.embed_url_updated,
            new_embed_url=entity.new_embed_url,
        )


class ProcessResponse(CamelModel):
    response: str
    configured: bool = True
    error: bool = False
    file_modified: bool = False
    mutations: list[str] = Field(default_factory=list)
    unclassified_tools: list[str] = Field(default_factory=list)
    sync_result: SyncResultResponse | None = None
    view_may_be_stale: bool = False


class ApiKeyStatusResponse(CamelModel):
    has_api_key: bool
    key_length: int
    environment: str


class StoreStatusResponse(CamelModel):
    remote_healthy: bool
    cloud_enabled: bool
    cloud_message: str | None = None


class TranscriptionResponse(BaseModel):
    text: str
    confidence: float
    model: str


__all__ = [
    "ApiKeyStatusResponse",
    "DeleteResponse",
    "LogicalFileResponse",
    "ProcessRequest",
    "ProcessResponse",
    "StoreStatusResponse",
    "SyncResultResponse",
    "TranscriptionResponse",
    "UploadResponse",
]
