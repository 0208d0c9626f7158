# relaychat/core/uploads.py
import hashlib
import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from starlette.concurrency import run_in_threadpool

from relaychat.core.config import ALLOWED_DOCUMENT_TYPES, MAX_UPLOAD_SIZE_BYTES
from relaychat.core.errors import PersistenceError, ValidationError
from relaychat.core.ledger import VersionLedger
from relaychat.schemas.files import VersionRecord

logger = logging.getLogger(__name__)

INVALID_TYPE_MESSAGE = (
    "Invalid file type. Only images, PDFs, Word documents, Excel files, "
    "and text files are allowed."
)


@dataclass
class UploadResult:
    local_path: str
    storage_name: str
    mime_type: str
    version: VersionRecord


def _write_bytes(directory: str, path: str, data: bytes) -> None:
    os.makedirs(directory, exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


class UploadHandler:
    """
    Validates an uploaded file, stores it under a collision-resistant
    storage name and records it as a new version of its original name.
    """

    def __init__(
        self,
        ledger: VersionLedger,
        upload_directory: str,
        max_size: int = MAX_UPLOAD_SIZE_BYTES,
        allowed_types: Iterable[str] = ALLOWED_DOCUMENT_TYPES,
    ):
        self.ledger = ledger
        self.upload_directory = upload_directory
        self.max_size = max_size
        self.allowed_types = frozenset(allowed_types)

    def is_allowed_type(self, content_type: Optional[str]) -> bool:
        if not content_type:
            return False
        return content_type.startswith("image/") or content_type in self.allowed_types

    def validate(self, filename: Optional[str], content_type: Optional[str], size: int) -> None:
        if not filename:
            raise ValidationError("No file uploaded")
        if not self.is_allowed_type(content_type):
            raise ValidationError(INVALID_TYPE_MESSAGE, details={"mimeType": content_type})
        if size > self.max_size:
            raise ValidationError(
                f"File too large. Maximum size is {self.max_size} bytes.",
                details={"size": size, "maxSize": self.max_size},
            )

    @staticmethod
    def storage_name_for(original_name: str) -> str:
        """<epoch millis>-<random suffix>-<original name>"""
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{unique_suffix}-{os.path.basename(original_name)}"

    async def handle_upload(
        self,
        filename: Optional[str],
        content_type: Optional[str],
        data: bytes,
        uploader_id: Optional[str],
    ) -> UploadResult:
        # Directory parts are dropped for both the storage name and the version key
        original_name = os.path.basename(filename or "")
        self.validate(original_name, content_type, len(data))

        storage_name = self.storage_name_for(original_name)
        local_path = os.path.join(self.upload_directory, storage_name)
        try:
            await run_in_threadpool(_write_bytes, self.upload_directory, local_path, data)
        except OSError as e:
            logger.error("Error saving upload %s: %s", local_path, e)
            raise PersistenceError("File was not saved properly", details={"reason": str(e)}) from e

        record = await self.ledger.record_version(
            original_name=original_name,
            uploader_id=uploader_id,
            size=len(data),
            mime_type=content_type,
            content_hash=hashlib.md5(data).hexdigest(),
            storage_path=local_path,
            storage_name=storage_name,
        )

        logger.info(
            "File uploaded successfully: path=%s name=%s type=%s",
            local_path,
            storage_name,
            content_type,
        )
        return UploadResult(
            local_path=local_path,
            storage_name=storage_name,
            mime_type=content_type,
            version=record,
        )
