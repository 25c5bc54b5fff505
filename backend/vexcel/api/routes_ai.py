"""Chat route that runs the AI edit inside a synced operation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from vexcel.api.dependencies import get_chat_service
from vexcel.models.dto import ProcessRequest, ProcessResponse, SyncResultResponse
from vexcel.services.chat import ChatRequest, ChatService

router = APIRouter()


@router.post("/process", response_model=ProcessResponse, summary="Apply a natural-language instruction")
def process(request: ProcessRequest, service: ChatService = Depends(get_chat_service)) -> ProcessResponse:
    if not request.user_message.strip():
        raise HTTPException(status_code=400, detail="User message is required")
    reply = service.process(
        ChatRequest(
            user_message=request.user_message,
            remote_path=request.remote_file_path,
            file_id=request.file_id,
            headers=request.headers,
            total_rows=max(len(request.current_data) - 1, 0) if request.current_data else None,
            sync_from_cloud_first=request.sync_from_cloud_first,
        )
    )
    return ProcessResponse(
        response=reply.response,
        configured=reply.configured,
        error=reply.error,
        file_modified=reply.file_modified,
        mutations=[kind.value for kind in reply.mutations],
        unclassified_tools=reply.unclassified_tools,
        sync_result=SyncResultResponse.from_entity(reply.sync_result) if reply.sync_result else None,
        view_may_be_stale=reply.view_may_be_stale,
    )


__all__ = ["router"]
