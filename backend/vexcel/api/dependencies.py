"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

import requests

from vexcel.core.config import Settings, get_settings
from vexcel.db.metadata import (
    MetadataStore,
    SQLiteMetadataStore,
    SupabaseMetadataStore,
    create_supabase_client,
)
from vexcel.db.sqlite import SQLiteDatabase
from vexcel.services.chat import ChatService
from vexcel.services.files import FileService
from vexcel.services.upload import UploadService
from vexcel.services.voice import SpeechToTextClient
from vexcel.stores.cloud import CloudEditStoreClient
from vexcel.stores.remote import RemoteFileStoreClient
from vexcel.sync import KeyedLocks, SyncOrchestrator

_SESSION: requests.Session | None = None
_DB: SQLiteDatabase | None = None
_METADATA: MetadataStore | None = None
_LOCKS: KeyedLocks | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_http_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = requests.Session()
    return _SESSION


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        db = SQLiteDatabase(get_app_settings().db_path)
        db.ensure_schema()
        _DB = db
    return _DB


def get_metadata_store() -> MetadataStore:
    global _METADATA
    if _METADATA is None:
        settings = get_app_settings()
        if settings.metadata_backend == "supabase":
            client = create_supabase_client(settings.supabase_url, settings.supabase_key)
            _METADATA = SupabaseMetadataStore(client, table=settings.supabase_table)
        else:
            _METADATA = SQLiteMetadataStore(get_database())
    return _METADATA


def get_remote_store() -> RemoteFileStoreClient:
    settings = get_app_settings()
    return RemoteFileStoreClient(settings.mcp_base_url, session=get_http_session(), timeout=settings.http_timeout)


def get_cloud_store() -> CloudEditStoreClient:
    settings = get_app_settings()
    return CloudEditStoreClient(settings.mcp_base_url, session=get_http_session(), timeout=settings.http_timeout)


def get_locks() -> KeyedLocks:
    global _LOCKS
    if _LOCKS is None:
        _LOCKS = KeyedLocks()
    return _LOCKS


def get_orchestrator() -> SyncOrchestrator:
    settings = get_app_settings()
    return SyncOrchestrator(
        cloud=get_cloud_store(),
        metadata=get_metadata_store(),
        folder=settings.cloud_folder,
        locks=get_locks() if settings.serialize_per_file else None,
    )


def get_upload_service() -> UploadService:
    return UploadService(get_remote_store(), get_cloud_store(), get_metadata_store(), get_app_settings())


def get_file_service() -> FileService:
    return FileService(get_remote_store(), get_metadata_store())


def get_chat_service() -> ChatService:
    return ChatService(
        orchestrator=get_orchestrator(),
        remote=get_remote_store(),
        metadata=get_metadata_store(),
        settings=get_app_settings(),
    )


def get_speech_client() -> SpeechToTextClient:
    return SpeechToTextClient(get_app_settings(), session=get_http_session())


__all__ = [
    "get_app_settings",
    "get_chat_service",
    "get_cloud_store",
    "get_database",
    "get_file_service",
    "get_http_session",
    "get_locks",
    "get_metadata_store",
    "get_orchestrator",
    "get_remote_store",
    "get_speech_client",
    "get_upload_service",
]
