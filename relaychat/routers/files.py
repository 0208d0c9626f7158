# relaychat/routers/files.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from relaychat.core.dependencies import get_ledger, get_upload_handler
from relaychat.core.errors import ValidationError
from relaychat.core.ledger import VersionLedger
from relaychat.core.uploads import UploadHandler
from relaychat.schemas.files import (
    ErrorResponse,
    FileMetadata,
    RestoreVersionRequest,
    RestoreVersionResponse,
    UploadResponse,
    VersionHistoryResponse,
)

router = APIRouter()


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    user_id: Optional[str] = Form(None, alias="userId"),
    handler: UploadHandler = Depends(get_upload_handler),
):
    """
    Upload a single file for sharing in the chat.

    The file is stored under a unique storage name and recorded as a new
    version of its original name. Returns:
      - localPath / fileName: where it was stored
      - mimeType
      - version / versionInfo: the new version record
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    # One byte past the limit is enough to reject oversized files
    data = await file.read(handler.max_size + 1)
    result = await handler.handle_upload(
        filename=file.filename,
        content_type=file.content_type,
        data=data,
        uploader_id=user_id,
    )
    return UploadResponse(
        message="File uploaded successfully",
        local_path=result.local_path,
        file_name=result.storage_name,
        mime_type=result.mime_type,
        version=result.version.version,
        version_info=result.version,
    )


@router.get(
    "/file-versions/{storage_name}",
    response_model=VersionHistoryResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_file_versions(storage_name: str, ledger: VersionLedger = Depends(get_ledger)):
    """
    Version history of a stored file. Each call counts as one view.
    """
    metadata = ledger.get_versions(storage_name)
    return VersionHistoryResponse(
        original_name=metadata.original_name,
        versions=metadata.versions,
        last_modified=metadata.last_modified,
        access_count=metadata.access_count,
    )


@router.post(
    "/restore-version",
    response_model=RestoreVersionResponse,
    responses={404: {"model": ErrorResponse}},
)
def restore_version(payload: RestoreVersionRequest, ledger: VersionLedger = Depends(get_ledger)):
    """
    Validates the requested version and echoes its metadata.
    The stored content is not rewritten.
    """
    target = ledger.get_version(payload.file_name, payload.version)
    return RestoreVersionResponse(message="Version restored successfully", version=target)


@router.get("/files", response_model=List[FileMetadata])
def list_files(ledger: VersionLedger = Depends(get_ledger)):
    return ledger.list_files()


@router.get("/files/trending", response_model=List[FileMetadata])
def trending_files(
    limit: int = Query(5, ge=1, le=50),
    ledger: VersionLedger = Depends(get_ledger),
):
    return ledger.trending(limit)
