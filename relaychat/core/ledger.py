# relaychat/core/ledger.py
"""
In-memory version history for uploaded files.

Versions are keyed by the file's *original* name, so two uploads of
"report.pdf" become versions 0 and 1 of the same history even though each is
stored on disk under its own storage name. File metadata (access counter,
last-modified) is keyed by storage name.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from relaychat.core.errors import NotFoundError
from relaychat.schemas.files import FileMetadata, VersionRecord

logger = logging.getLogger(__name__)


def describe_change(old: Optional[VersionRecord], new: VersionRecord) -> str:
    """
    Human-readable summary of what changed between two versions.
    Only size and MIME type are compared; returns "File updated" when neither changed.
    """
    old_size = old.size if old is not None else None
    old_mime = old.mime_type if old is not None else None

    changes = []
    if old_size != new.size:
        changes.append(
            f"File size changed from {old_size if old_size is not None else 'N/A'} to {new.size}"
        )
    if old_mime != new.mime_type:
        changes.append(f"File type changed from {old_mime or 'N/A'} to {new.mime_type}")
    return ", ".join(changes) or "File updated"


class _TrackedFile:
    def __init__(self, original_name: str, last_modified: str):
        self.original_name = original_name
        self.last_modified = last_modified
        self.access_count = 0


class VersionLedger:
    def __init__(self):
        self._versions: Dict[str, List[VersionRecord]] = {}
        self._files: Dict[str, _TrackedFile] = {}
        # One lock per original name; lives as long as that name's history
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, original_name: str) -> asyncio.Lock:
        return self._locks.setdefault(original_name, asyncio.Lock())

    async def record_version(
        self,
        original_name: str,
        uploader_id: Optional[str],
        size: int,
        mime_type: str,
        content_hash: str,
        storage_path: str,
        storage_name: Optional[str] = None,
    ) -> VersionRecord:
        """
        Appends a new version for `original_name` and returns it.

        Index assignment is serialized per original name; uploads of
        different names never wait on each other. When `storage_name` is
        given, the file metadata for that storage name is registered too.
        """
        async with self._lock_for(original_name):
            versions = self._versions.setdefault(original_name, [])
            previous = versions[-1] if versions else None
            now = datetime.now(timezone.utc).isoformat()

            record = VersionRecord(
                version=len(versions),
                timestamp=now,
                user_id=uploader_id,
                size=size,
                mime_type=mime_type,
                hash=content_hash,
                path=storage_path,
            )
            record.description = describe_change(previous, record)
            versions.append(record)

            if storage_name is not None:
                tracked = self._files.get(storage_name)
                if tracked is None:
                    self._files[storage_name] = _TrackedFile(original_name, now)
                else:
                    tracked.last_modified = now

        logger.info(
            "Recorded version %d of %s (%d bytes, %s)",
            record.version,
            original_name,
            size,
            mime_type,
        )
        return record

    def get_versions(self, storage_name: str) -> FileMetadata:
        """
        Returns the version history for a stored file.

        NOTE: this read has a side effect. Every successful lookup increments
        the file's access counter, which feeds the trending view. A failed
        lookup (NotFoundError) changes nothing.
        """
        tracked = self._files.get(storage_name)
        if tracked is None:
            raise NotFoundError("File not found", details={"fileName": storage_name})
        tracked.access_count += 1
        return self._snapshot(storage_name, tracked)

    def get_version(self, original_name: str, index: int) -> VersionRecord:
        versions = self._versions.get(original_name, [])
        if index < 0 or index >= len(versions):
            raise NotFoundError(
                "Version not found",
                details={"fileName": original_name, "version": index},
            )
        return versions[index]

    def versions_of(self, original_name: str) -> List[VersionRecord]:
        return list(self._versions.get(original_name, []))

    def list_files(self) -> List[FileMetadata]:
        files = [self._snapshot(name, tracked) for name, tracked in self._files.items()]
        return sorted(files, key=lambda f: f.last_modified, reverse=True)

    def trending(self, limit: int = 5) -> List[FileMetadata]:
        """Most-viewed files first. Does not count as an access."""
        files = sorted(
            self.list_files(),
            key=lambda f: (f.access_count, f.last_modified),
            reverse=True,
        )
        return files[:limit]

    def _snapshot(self, storage_name: str, tracked: _TrackedFile) -> FileMetadata:
        return FileMetadata(
            storage_name=storage_name,
            original_name=tracked.original_name,
            versions=list(self._versions.get(tracked.original_name, [])),
            last_modified=tracked.last_modified,
            access_count=tracked.access_count,
        )
