"""One chat turn: resolve the file, run the AI step inside a synced operation, reply."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

import openai

from vexcel.ai.mutations import MutationKind
from vexcel.ai.narrative import compose_reply, friendly_error
from vexcel.ai.step import AIMutationStep, AIStepResult
from vexcel.core.config import FeatureFlags, Settings
from vexcel.core.errors import MetadataError, StoreError, VExcelError
from vexcel.core.logging import get_logger, log_context
from vexcel.db.metadata import MetadataStore
from vexcel.models.entities import SyncResult
from vexcel.stores.remote import RemoteFileStoreClient
from vexcel.sync.orchestrator import SyncOptions, SyncOrchestrator
from vexcel.utils.urls import split_remote_path

logger = get_logger(__name__)

OPENAI_MISSING_MESSAGE = (
    "OpenAI API key is not configured. Please add OPENAI_API_KEY to your environment variables."
)
NO_FILE_MESSAGE = "No file path provided. Please make sure a file is selected."


@dataclass(slots=True)
class ChatRequest:
    user_message: str
    remote_path: str | None = None
    file_id: str | None = None
    headers: Sequence[str] = ()
    total_rows: int | None = None
    sync_from_cloud_first: bool | None = None


@dataclass(slots=True)
class ChatReply:
    response: str
    configured: bool = True
    error: bool = False
    file_modified: bool = False
    mutations: list[MutationKind] = field(default_factory=list)
    unclassified_tools: list[str] = field(default_factory=list)
    sync_result: SyncResult | None = None

    @property
    def view_may_be_stale(self) -> bool:
        return self.sync_result is not None and not self.sync_result.success


class ChatService:
    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        remote: RemoteFileStoreClient,
        metadata: MetadataStore,
        settings: Settings,
        step_factory: Callable[[], AIMutationStep] | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.remote = remote
        self.metadata = metadata
        self.settings = settings
        self.step_factory = step_factory or (lambda: AIMutationStep(settings))

    def process(self, request: ChatRequest) -> ChatReply:
        if not FeatureFlags.from_env().openai.has_api_key:
            return ChatReply(response=OPENAI_MISSING_MESSAGE, configured=False)
        if not request.remote_path:
            return ChatReply(response=NO_FILE_MESSAGE, error=True)
        try:
            owner_id, filename = split_remote_path(request.remote_path)
        except ValueError:
            return ChatReply(response=NO_FILE_MESSAGE, error=True)

        file_id, cloud_file_id = self._resolve_file(owner_id, filename, request.file_id)
        ctx = log_context(owner_id=owner_id, filename=filename, file_id=file_id)
        headers, total_rows = self._sheet_context(owner_id, filename, request)
        options = SyncOptions(
            file_id=file_id,
            cloud_file_id=cloud_file_id,
            sync_from_cloud_first=(
                self.settings.sync_from_cloud_first
                if request.sync_from_cloud_first is None
                else request.sync_from_cloud_first
            ),
        )
        step = self.step_factory()
        try:
            outcome = self.orchestrator.perform_synced_operation(
                owner_id,
                filename,
                lambda: step.run(request.user_message, request.remote_path, filename, headers, total_rows),
                options,
            )
        except (openai.OpenAIError, VExcelError) as exc:
            logger.error("AI processing failed: %s", exc, extra=ctx)
            return ChatReply(response=friendly_error(exc), error=True)
        except Exception as exc:
            logger.error("Unexpected failure during AI processing", extra=ctx, exc_info=True)
            return ChatReply(response=friendly_error(exc), error=True)

        result: AIStepResult = outcome.result
        sync_result = outcome.sync_result
        return ChatReply(
            response=compose_reply(
                result.narrative,
                result.report,
                filename,
                view_stale=not sync_result.success,
            ),
            file_modified=result.file_modified,
            mutations=result.report.kinds,
            unclassified_tools=result.report.unclassified,
            sync_result=sync_result,
        )

    def _resolve_file(self, owner_id: str, filename: str, file_id: str | None) -> tuple[str | None, str | None]:
        """Registry id and cloud id for the file being edited.

        A ``file_id`` that belongs to another owner or another file is dropped, so
        neither sync step can touch that file's cloud copy or metadata row.
        """
        if not file_id:
            return None, None
        ctx = log_context(owner_id=owner_id, filename=filename, file_id=file_id)
        try:
            logical_file = self.metadata.get(file_id, owner_id)
        except MetadataError as exc:
            logger.warning("Could not look up file metadata: %s", exc, extra=ctx)
            return None, None
        if logical_file is None or logical_file.filename != filename:
            logger.warning("Ignoring file id that does not match the selected file", extra=ctx)
            return None, None
        return logical_file.id, logical_file.cloud_file_id

    def _sheet_context(self, owner_id: str, filename: str, request: ChatRequest) -> tuple[list[str], int]:
        headers = list(request.headers)
        if headers:
            return headers, request.total_rows or 0
        try:
            data = self.remote.excel_data(owner_id, filename)
        except StoreError as exc:
            logger.info("Sheet preview unavailable: %s", exc, extra=log_context(owner_id=owner_id, filename=filename))
            return [], request.total_rows or 0
        return data.headers, data.total_rows


__all__ = ["ChatReply", "ChatRequest", "ChatService"]
