# relaychat/schemas/files.py
from typing import Any, Dict, List, Optional

from relaychat.schemas.base import CamelModel


class VersionRecord(CamelModel):
    version: int
    timestamp: str
    user_id: Optional[str] = None
    size: int
    mime_type: str
    hash: str
    path: str
    description: str = "File updated"


class FileMetadata(CamelModel):
    storage_name: str
    original_name: str
    versions: List[VersionRecord]
    last_modified: str
    access_count: int = 0


class UploadResponse(CamelModel):
    message: str
    local_path: str
    file_name: str  # storage name
    mime_type: str
    version: int
    version_info: VersionRecord


class VersionHistoryResponse(CamelModel):
    original_name: str
    versions: List[VersionRecord]
    last_modified: str
    access_count: int


class RestoreVersionRequest(CamelModel):
    file_name: str  # original name
    version: int


class RestoreVersionResponse(CamelModel):
    message: str
    version: VersionRecord


# Both fields are optional here so a missing one is reported as a 400, not a 422
class ConvertRequest(CamelModel):
    file_path: Optional[str] = None
    file_name: Optional[str] = None


class ConvertResponse(CamelModel):
    message: str
    drive_link: str


class ErrorResponse(CamelModel):
    error: str
    details: Dict[str, Any] = {}
