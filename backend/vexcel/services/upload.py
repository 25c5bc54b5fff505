"""First write of a logical file into all three stores."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath

from vexcel.core.config import Settings
from vexcel.core.errors import CloudStoreError, StoreUnavailable, UploadRejected
from vexcel.core.logging import get_logger, log_context
from vexcel.db.metadata import MetadataStore
from vexcel.models.entities import LogicalFile, NewLogicalFile
from vexcel.stores.cloud import CloudEditStoreClient
from vexcel.stores.remote import RemoteFileStoreClient
from vexcel.stores.types import CloudUpload
from vexcel.sync.outcome import Outcome
from vexcel.utils.time import parse_timestamp

logger = get_logger(__name__)

_MIB = 1024 * 1024


@dataclass(slots=True)
class UploadResult:
    file: LogicalFile
    cloud_warning: str | None = None


class UploadService:
    """Remote write is mandatory, the cloud write is best-effort, then the row is recorded."""

    def __init__(
        self,
        remote: RemoteFileStoreClient,
        cloud: CloudEditStoreClient,
        metadata: MetadataStore,
        settings: Settings,
    ) -> None:
        self.remote = remote
        self.cloud = cloud
        self.metadata = metadata
        self.settings = settings

    def upload(self, owner_id: str, filename: str, content: bytes, content_type: str | None = None) -> UploadResult:
        self.validate(filename, content)
        ctx = log_context(owner_id=owner_id, filename=filename, size_bytes=len(content))

        if not self.remote.health():
            raise StoreUnavailable("Excel processing server is currently unavailable. Please try again later.")
        remote_file = self.remote.upload(owner_id, filename, content, content_type)

        cloud = self._upload_to_cloud(owner_id, remote_file.filename, content, content_type)
        if not cloud.is_ok:
            logger.warning("Cloud copy unavailable: %s", cloud.reason, extra=ctx)
        uploaded = cloud.value

        record = NewLogicalFile(
            owner_id=owner_id,
            filename=remote_file.filename,
            remote_path=remote_file.relative_path,
            size_bytes=remote_file.size_bytes,
            cloud_file_id=uploaded.file_id if uploaded else None,
            cloud_web_url=uploaded.web_url if uploaded else None,
            cloud_embed_url=uploaded.embed_url if uploaded else None,
            cloud_folder=(uploaded.folder_path or self.settings.cloud_folder) if uploaded else None,
            cloud_uploaded_at=parse_timestamp(uploaded.created_at) if uploaded else None,
        )
        logical_file = self.metadata.insert(record)
        logger.info("Registered uploaded file %s", logical_file.id, extra=ctx)
        return UploadResult(file=logical_file, cloud_warning=None if cloud.is_ok else cloud.reason)

    def validate(self, filename: str, content: bytes) -> None:
        if not filename or PurePath(filename).name != filename:
            raise UploadRejected("Please choose a file with a plain file name.")
        suffix = PurePath(filename).suffix.lower()
        if suffix not in self.settings.allowed_extensions:
            allowed = ", ".join(self.settings.allowed_extensions)
            raise UploadRejected(f"Please upload a spreadsheet file ({allowed}).")
        if not content:
            raise UploadRejected("The uploaded file is empty.")
        if len(content) > self.settings.max_upload_bytes:
            limit = self.settings.max_upload_bytes
            shown = f"{limit // _MIB}MB" if limit >= _MIB else f"{limit} bytes"
            raise UploadRejected(f"File size must be less than {shown}")

    def _upload_to_cloud(
        self, owner_id: str, filename: str, content: bytes, content_type: str | None
    ) -> Outcome[CloudUpload]:
        if not self.cloud.status().enabled:
            return Outcome.degraded("OneDrive integration is currently disabled")
        try:
            uploaded = self.cloud.upload(
                owner_id,
                filename,
                content,
                folder=self.settings.cloud_folder,
                allow_edit=self.settings.cloud_allow_edit,
                content_type=content_type,
            )
        except CloudStoreError as exc:
            return Outcome.degraded(str(exc), error=exc)
        return Outcome.ok(uploaded)


__all__ = ["UploadResult", "UploadService"]
