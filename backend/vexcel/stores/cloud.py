"""Client for the cloud edit copy (OneDrive, fronted by the processing server)."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from vexcel.core.errors import CloudStoreError
from vexcel.core.logging import get_logger, log_context
from vexcel.stores.http import HttpStoreClient
from vexcel.stores.types import CloudFile, CloudStatus, CloudUpload, SyncResponse
from vexcel.utils.urls import normalize_embed_url

logger = get_logger(__name__)


class CloudEditStoreClient(HttpStoreClient):
    """Second copy of each spreadsheet plus browser-embeddable view URLs.

    Every embed URL leaving this client has been passed through
    :func:`normalize_embed_url`.
    """

    store_name = "cloud"
    error_cls = CloudStoreError

    def status(self) -> CloudStatus:
        """Integration flag. Any failure to ask counts as disabled."""
        try:
            resp = self._request("GET", "/onedrive/status", "status", "OneDrive status check failed")
            payload = self._json(resp, "OneDrive status check failed")
        except CloudStoreError as exc:
            return CloudStatus(enabled=False, message=str(exc))
        return CloudStatus(
            enabled=bool(payload.get("enabled")),
            account_type=payload.get("account_type"),
            folder_name=payload.get("folder_name"),
            message=payload.get("message"),
        )

    def upload(
        self,
        owner_id: str,
        filename: str,
        content: bytes,
        folder: str | None = None,
        allow_edit: bool = False,
        content_type: str | None = None,
    ) -> CloudUpload:
        """First write of a file. ``allow_edit`` grants edit rights to anyone holding the embed URL."""
        data = {"allow_edit": str(allow_edit).lower()}
        if folder:
            data["folder_path"] = folder
        resp = self._request(
            "POST",
            f"/onedrive/upload/{quote(owner_id)}",
            "upload",
            "OneDrive upload failed",
            files={"file": (filename, content, content_type or "application/octet-stream")},
            data=data,
        )
        payload = self._json(resp, "OneDrive upload failed")
        file_id = payload.get("onedrive_file_id")
        if not file_id:
            raise CloudStoreError("OneDrive upload failed: response carried no file id", status_code=resp.status_code)
        uploaded = CloudUpload(
            file_id=file_id,
            web_url=payload.get("onedrive_web_url"),
            embed_url=normalize_embed_url(payload.get("embed_url")),
            size_bytes=int(payload.get("size_bytes") or len(content)),
            created_at=payload.get("created_datetime"),
            folder_path=payload.get("folder_path"),
            message=payload.get("message"),
        )
        logger.info(
            "Uploaded %s to OneDrive",
            filename,
            extra=log_context(action="cloud.upload", owner_id=owner_id, file_id=file_id, allow_edit=allow_edit),
        )
        return uploaded

    def list(self, owner_id: str, folder: str | None = None) -> list[CloudFile]:
        params = {"folder_path": folder} if folder else None
        resp = self._request(
            "GET",
            f"/onedrive/files/{quote(owner_id)}",
            "list",
            "Failed to list OneDrive files",
            allow_statuses=(404,),
            params=params,
        )
        if resp.status_code == 404:
            return []
        payload = self._json(resp, "Failed to list OneDrive files")
        return [_cloud_file(item) for item in payload.get("files") or []]

    def get_embed_url(self, file_id: str, allow_edit: bool = False) -> str:
        resp = self._request(
            "GET",
            f"/onedrive/embed/{quote(file_id)}",
            "embed_url",
            "Failed to get embed URL",
            params={"allow_edit": str(allow_edit).lower()},
        )
        payload = self._json(resp, "Failed to get embed URL")
        embed_url = normalize_embed_url(payload.get("embed_url"))
        if not embed_url:
            raise CloudStoreError("Failed to get embed URL: response carried no URL", status_code=resp.status_code)
        return embed_url

    def sync_local_to_cloud(self, owner_id: str, filename: str, folder: str | None = None) -> SyncResponse:
        """Overwrite the cloud copy bound to ``(owner_id, filename)`` with the remote working copy."""
        data = {"folder_path": folder} if folder else {}
        resp = self._request(
            "POST",
            f"/onedrive/upload-local/{quote(owner_id)}/{quote(filename)}",
            "sync_local_to_cloud",
            "Sync to OneDrive failed",
            data=data,
        )
        payload = self._json(resp, "Sync to OneDrive failed")
        return SyncResponse(
            message=payload.get("message") or "File synced to OneDrive successfully",
            embed_url=normalize_embed_url(payload.get("embed_url")),
            file_id=payload.get("onedrive_file_id"),
            size_bytes=payload.get("size_bytes"),
            last_modified=payload.get("last_modified_datetime"),
            raw=payload,
        )

    def sync_cloud_to_local(self, owner_id: str, file_id: str, filename: str) -> SyncResponse:
        """Overwrite the remote working copy with the cloud copy ``file_id``."""
        resp = self._request(
            "POST",
            f"/onedrive/download-to-local/{quote(owner_id)}/{quote(file_id)}",
            "sync_cloud_to_local",
            "Sync from OneDrive failed",
            data={"filename": filename},
        )
        payload = self._json(resp, "Sync from OneDrive failed")
        return SyncResponse(
            message=payload.get("message") or "File synced from OneDrive successfully",
            size_bytes=payload.get("size_bytes"),
            last_modified=payload.get("last_modified"),
            raw=payload,
        )


def _cloud_file(item: dict[str, Any]) -> CloudFile:
    return CloudFile(
        filename=item.get("filename", ""),
        file_id=item.get("file_id", ""),
        web_url=item.get("web_url"),
        size_bytes=int(item.get("size_bytes") or 0),
        embed_url=normalize_embed_url(item.get("embed_url")),
        created_at=item.get("created_datetime"),
        last_modified_at=item.get("last_modified_datetime"),
        folder_path=item.get("folder_path"),
    )


__all__ = ["CloudEditStoreClient"]
