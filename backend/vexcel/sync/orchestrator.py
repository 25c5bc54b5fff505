"""Keep the remote, cloud and metadata copies of a file in step around an edit."""

from __future__ import annotations

import time
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, ContextManager, TypeVar

from vexcel.core.errors import CloudStoreError, MetadataError
from vexcel.core.logging import get_logger, log_context
from vexcel.core.metrics import SYNC_DURATION, SYNC_STAGE_COUNT
from vexcel.db.metadata import MetadataStore
from vexcel.models.entities import SyncedOperationOutcome, SyncResult
from vexcel.stores.cloud import CloudEditStoreClient
from vexcel.stores.types import SyncResponse
from vexcel.sync.locks import KeyedLocks
from vexcel.sync.outcome import Outcome
from vexcel.utils.time import utc_now

logger = get_logger(__name__)

R = TypeVar("R")

CLOUD_DISABLED_MESSAGE = "OneDrive integration is disabled"


@dataclass(slots=True)
class SyncOptions:
    file_id: str | None = None
    cloud_file_id: str | None = None
    sync_from_cloud_first: bool = False


class SyncOrchestrator:
    """Wrap an edit of the remote working copy with a cloud pre-sync and post-sync.

    The steps run strictly in sequence with no rollback:

    1. optional pre-sync (cloud -> remote), only when a cloud file id is known;
       failure is logged and ignored
    2. the wrapped operation; its result and exceptions pass through untouched
    3. post-sync (remote -> cloud), then the metadata pointer update

    A failed post-sync means the two canonical copies diverged and is reported
    through ``SyncResult.success``. A failed metadata update only leaves a
    stale pointer and does not flip ``success``.
    """

    def __init__(
        self,
        cloud: CloudEditStoreClient,
        metadata: MetadataStore,
        folder: str | None = "excel-files",
        locks: KeyedLocks | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.cloud = cloud
        self.metadata = metadata
        self.folder = folder
        self.locks = locks
        self.clock = clock

    def perform_synced_operation(
        self,
        owner_id: str,
        filename: str,
        operation: Callable[[], R],
        options: SyncOptions | None = None,
    ) -> SyncedOperationOutcome[R]:
        options = options or SyncOptions()
        ctx = log_context(owner_id=owner_id, filename=filename, file_id=options.file_id)
        started = time.perf_counter()
        with self._serialized(owner_id, filename):
            pre_sync: SyncResult | None = None
            if options.sync_from_cloud_first and options.cloud_file_id:
                pre_sync = self.sync_before_operation(owner_id, filename, options.cloud_file_id)

            logger.info("Running wrapped operation", extra=ctx)
            try:
                result = operation()
            except Exception:
                SYNC_STAGE_COUNT.labels("operation", "failed").inc()
                logger.warning("Wrapped operation failed; skipping post-sync", extra=ctx, exc_info=True)
                raise
            SYNC_STAGE_COUNT.labels("operation", "ok").inc()

            sync_result = self.sync_after_operation(owner_id, filename, options.file_id)
        SYNC_DURATION.observe(time.perf_counter() - started)
        return SyncedOperationOutcome(result=result, sync_result=sync_result, pre_sync=pre_sync)

    def sync_before_operation(self, owner_id: str, filename: str, cloud_file_id: str | None) -> SyncResult:
        """Pull the cloud copy over the remote working copy. Never raises."""
        outcome = self._pull_from_cloud(owner_id, filename, cloud_file_id)
        if outcome.is_ok:
            SYNC_STAGE_COUNT.labels("pre_sync", "ok").inc()
            return SyncResult(success=True, message="File synced from OneDrive successfully", synced_at=self.clock())
        SYNC_STAGE_COUNT.labels("pre_sync", "failed").inc()
        logger.warning(
            "Pre-sync failed, continuing with remote version: %s",
            outcome.reason,
            extra=log_context(signal="pre_sync_failed", owner_id=owner_id, filename=filename),
        )
        return SyncResult(success=False, message=outcome.reason or "Sync from OneDrive failed")

    def sync_after_operation(self, owner_id: str, filename: str, file_id: str | None = None) -> SyncResult:
        """Push the remote working copy to the cloud and refresh the stored embed URL. Never raises."""
        pushed = self._push_to_cloud(owner_id, filename)
        if pushed.is_failed or pushed.value is None:
            SYNC_STAGE_COUNT.labels("post_sync", "failed").inc()
            logger.error(
                "Post-sync failed: %s",
                pushed.reason,
                extra=log_context(signal="post_sync_failed", owner_id=owner_id, filename=filename),
            )
            return SyncResult(success=False, message=pushed.reason or "Sync to OneDrive failed")
        SYNC_STAGE_COUNT.labels("post_sync", "ok").inc()

        synced_at = self.clock()
        embed_url = pushed.value.embed_url
        embed_url_updated = False
        if file_id and embed_url:
            recorded = self._record_embed_url(file_id, owner_id, embed_url, synced_at)
            embed_url_updated = recorded.is_ok
            if not recorded.is_ok:
                SYNC_STAGE_COUNT.labels("metadata", "failed").inc()
                logger.warning(
                    "Failed to update stored embed URL: %s",
                    recorded.reason,
                    extra=log_context(signal="metadata_update_failed", owner_id=owner_id, file_id=file_id),
                )
            else:
                SYNC_STAGE_COUNT.labels("metadata", "ok").inc()

        return SyncResult(
            success=True,
            message="File synced to OneDrive successfully",
            embed_url_updated=embed_url_updated,
            new_embed_url=embed_url,
            synced_at=synced_at,
        )

    # Internal helpers -------------------------------------------------

    def _serialized(self, owner_id: str, filename: str) -> ContextManager[None]:
        if self.locks is None:
            return nullcontext()
        return self.locks.hold((owner_id, filename))

    def _pull_from_cloud(self, owner_id: str, filename: str, cloud_file_id: str | None) -> Outcome[SyncResponse]:
        if not cloud_file_id:
            return Outcome.failed("No OneDrive file ID available for sync")
        if not self.cloud.status().enabled:
            return Outcome.failed(CLOUD_DISABLED_MESSAGE)
        try:
            return Outcome.ok(self.cloud.sync_cloud_to_local(owner_id, cloud_file_id, filename))
        except CloudStoreError as exc:
            return Outcome.failed(f"Failed to sync from OneDrive: {exc}", error=exc)

    def _push_to_cloud(self, owner_id: str, filename: str) -> Outcome[SyncResponse]:
        status = self.cloud.status()
        if not status.enabled:
            return Outcome.failed(CLOUD_DISABLED_MESSAGE)
        try:
            return Outcome.ok(self.cloud.sync_local_to_cloud(owner_id, filename, self.folder))
        except CloudStoreError as exc:
            return Outcome.failed(f"Failed to sync to OneDrive: {exc}", error=exc)

    def _record_embed_url(self, file_id: str, owner_id: str, embed_url: str, synced_at: datetime) -> Outcome[bool]:
        try:
            updated = self.metadata.update_embed_url(file_id, owner_id, embed_url, synced_at)
        except MetadataError as exc:
            return Outcome.degraded(str(exc), value=False, error=exc)
        if not updated:
            return Outcome.degraded(f"No metadata row {file_id} for owner {owner_id}", value=False)
        return Outcome.ok(True)


__all__ = ["CLOUD_DISABLED_MESSAGE", "SyncOptions", "SyncOrchestrator"]
