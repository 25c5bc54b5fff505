"""Client for the spreadsheet processing server's file endpoints."""

from __future__ import annotations

from urllib.parse import quote

from vexcel.core.errors import RemoteStoreError
from vexcel.core.logging import get_logger, log_context
from vexcel.stores.http import HttpStoreClient
from vexcel.stores.types import ExcelData, RemoteFile

logger = get_logger(__name__)


class RemoteFileStoreClient(HttpStoreClient):
    """Working copies addressed by ``(owner_id, filename)``."""

    store_name = "remote"
    error_cls = RemoteStoreError

    def health(self) -> bool:
        """Liveness probe. Unreachable and unhealthy both report ``False``."""
        try:
            resp = self._request("GET", "/health", "health", "Health check failed")
            payload = self._json(resp, "Health check failed")
        except RemoteStoreError:
            return False
        healthy = payload.get("status") == "healthy"
        if not healthy:
            logger.warning("Remote store reports %s", payload.get("status"), extra=log_context(action="remote.health"))
        return healthy

    def upload(self, owner_id: str, filename: str, content: bytes, content_type: str | None = None) -> RemoteFile:
        resp = self._request(
            "POST",
            f"/upload/{quote(owner_id)}",
            "upload",
            "Upload failed",
            files={"file": (filename, content, content_type or "application/octet-stream")},
            data={"allow_edit": "true"},
        )
        payload = self._json(resp, "Upload failed")
        uploaded = RemoteFile(
            filename=payload.get("filename") or filename,
            relative_path=payload.get("file_path") or remote_path_for(owner_id, filename),
            size_bytes=int(payload.get("size_bytes") or len(content)),
        )
        logger.info(
            "Uploaded %s to remote store",
            uploaded.relative_path,
            extra=log_context(action="remote.upload", owner_id=owner_id, size_bytes=uploaded.size_bytes),
        )
        return uploaded

    def download(self, owner_id: str, filename: str) -> bytes:
        resp = self._request(
            "GET",
            f"/download/{quote(owner_id)}/{quote(filename)}",
            "download",
            "Download failed",
        )
        return resp.content

    def list(self, owner_id: str) -> list[RemoteFile]:
        resp = self._request(
            "GET",
            f"/files/{quote(owner_id)}",
            "list",
            "Failed to list files",
            allow_statuses=(404,),
        )
        if resp.status_code == 404:
            return []
        payload = self._json(resp, "Failed to list files")
        return [RemoteFile.from_payload(item) for item in payload.get("files") or []]

    def delete(self, owner_id: str, filename: str) -> None:
        self._request(
            "DELETE",
            f"/files/{quote(owner_id)}/{quote(filename)}",
            "delete",
            "Failed to delete file",
        )
        logger.info("Deleted %s/%s from remote store", owner_id, filename, extra=log_context(action="remote.delete"))

    def excel_data(self, owner_id: str, filename: str) -> ExcelData:
        resp = self._request(
            "GET",
            f"/excel-data/{quote(owner_id)}/{quote(filename)}",
            "excel_data",
            "Failed to get Excel data",
        )
        payload = self._json(resp, "Failed to get Excel data")
        return ExcelData(
            headers=list(payload.get("headers") or []),
            rows=list(payload.get("rows") or []),
            total_rows=int(payload.get("total_rows") or 0),
            total_columns=int(payload.get("total_columns") or 0),
            filename=filename,
        )


def remote_path_for(owner_id: str, filename: str) -> str:
    """Deterministic relative path of a working copy."""
    return f"{owner_id}/{filename}"


__all__ = ["RemoteFileStoreClient", "remote_path_for"]
