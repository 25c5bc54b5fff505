"""File upload, listing and deletion routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile

from vexcel.api.dependencies import get_app_settings, get_file_service, get_upload_service
from vexcel.core.config import Settings
from vexcel.models.dto import DeleteResponse, LogicalFileResponse, UploadResponse
from vexcel.services.files import FileService
from vexcel.services.upload import UploadService

router = APIRouter()


@router.post("/upload", response_model=UploadResponse, summary="Upload a spreadsheet")
def upload_file(
    owner_id: str = Form(...),
    file: UploadFile = File(...),
    service: UploadService = Depends(get_upload_service),
    settings: Settings = Depends(get_app_settings),
) -> UploadResponse:
    # One byte past the limit is enough for validation to reject the file.
    content = file.file.read(settings.max_upload_bytes + 1)
    result = service.upload(owner_id, file.filename or "", content, file.content_type)
    return UploadResponse(file=LogicalFileResponse.from_entity(result.file), cloud_warning=result.cloud_warning)


@router.get("/{owner_id}", response_model=list[LogicalFileResponse], summary="List an owner's files")
def list_files(owner_id: str, service: FileService = Depends(get_file_service)) -> list[LogicalFileResponse]:
    return [LogicalFileResponse.from_entity(item) for item in service.list_files(owner_id)]


@router.delete("/{owner_id}/{file_id}", response_model=DeleteResponse, summary="Remove a file")
def delete_file(
    owner_id: str,
    file_id: str,
    purge: bool = False,
    service: FileService = Depends(get_file_service),
) -> DeleteResponse:
    report = service.delete(owner_id, file_id, purge=purge)
    return DeleteResponse(
        status="ok",
        file_id=report.file_id,
        metadata_deleted=report.metadata_deleted,
        remote_deleted=report.remote_deleted,
        remote_error=report.remote_error,
    )


__all__ = ["router"]
