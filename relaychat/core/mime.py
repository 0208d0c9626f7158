# relaychat/core/mime.py
import os

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".txt": "text/plain",
}


def mime_type_for(filename: str) -> str:
    """
    Resolves a MIME type from the file extension alone (case-insensitive).
    """
    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)
