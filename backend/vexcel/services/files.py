"""Listing and removal of logical files."""

from __future__ import annotations

from dataclasses import dataclass

from vexcel.core.errors import FileNotRegistered, RemoteStoreError
from vexcel.core.logging import get_logger, log_context
from vexcel.db.metadata import MetadataStore
from vexcel.models.entities import LogicalFile
from vexcel.stores.remote import RemoteFileStoreClient

logger = get_logger(__name__)


@dataclass(slots=True)
class DeleteReport:
    file_id: str
    metadata_deleted: bool
    remote_deleted: bool | None = None
    remote_error: str | None = None


class FileService:
    def __init__(self, remote: RemoteFileStoreClient, metadata: MetadataStore) -> None:
        self.remote = remote
        self.metadata = metadata

    def list_files(self, owner_id: str) -> list[LogicalFile]:
        return self.metadata.list_for_owner(owner_id)

    def delete(self, owner_id: str, file_id: str, purge: bool = False) -> DeleteReport:
        """Drop the registry row; with ``purge`` also remove the remote working copy.

        The cloud copy is never removed. A failed remote purge is reported, not
        raised, since the row is already gone.
        """
        logical_file = self.metadata.get(file_id, owner_id)
        if logical_file is None:
            raise FileNotRegistered(f"File {file_id} not found")
        deleted = self.metadata.delete(file_id, owner_id)
        report = DeleteReport(file_id=file_id, metadata_deleted=deleted)
        if not purge:
            return report
        try:
            self.remote.delete(owner_id, logical_file.filename)
            report.remote_deleted = True
        except RemoteStoreError as exc:
            logger.warning(
                "Remote copy not purged: %s",
                exc,
                extra=log_context(owner_id=owner_id, file_id=file_id, filename=logical_file.filename),
            )
            report.remote_deleted = False
            report.remote_error = str(exc)
        return report


__all__ = ["DeleteReport", "FileService"]
