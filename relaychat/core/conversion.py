# relaychat/core/conversion.py
import asyncio
import logging
import os
from typing import Dict, Optional

from starlette.concurrency import run_in_threadpool

from relaychat.core.blob_store import BlobStore
from relaychat.core.errors import ConversionFailed, NotFoundError, PersistenceError
from relaychat.core.mime import mime_type_for

logger = logging.getLogger(__name__)


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


class ConversionCache:
    """
    Mirrors local uploads to a blob store, once per local path.

    A cached link is final: later calls for the same path return it without
    touching the filesystem or the blob store, even though the local copy is
    deleted after the first successful upload. Failed attempts cache nothing.
    """

    def __init__(self, blob_store: BlobStore, timeout: Optional[float] = None):
        self.blob_store = blob_store
        self.timeout = timeout
        self._links: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, local_path: str) -> Optional[str]:
        return self._links.get(local_path)

    def __contains__(self, local_path: str) -> bool:
        return local_path in self._links

    def __len__(self) -> int:
        return len(self._links)

    def pending_paths(self) -> int:
        """Paths with a conversion lock, i.e. never converted successfully."""
        return len(self._locks)

    def _lock_for(self, local_path: str) -> asyncio.Lock:
        return self._locks.setdefault(local_path, asyncio.Lock())

    async def convert(self, local_path: str, file_name: str) -> str:
        cached = self._links.get(local_path)
        if cached:
            logger.info("Cache hit for %s", local_path)
            return cached

        # Concurrent conversions of one path wait here and then hit the cache
        async with self._lock_for(local_path):
            cached = self._links.get(local_path)
            if cached:
                return cached

            if not os.path.exists(local_path):
                raise NotFoundError("File not found", details={"filePath": local_path})

            mime_type = mime_type_for(file_name)
            try:
                data = await run_in_threadpool(_read_bytes, local_path)
            except OSError as e:
                raise PersistenceError(f"Could not read {local_path}: {e}") from e

            link = await self._upload(data, file_name, mime_type)
            self._links[local_path] = link
            # Waiters already hold this lock; new callers hit the cache first
            self._locks.pop(local_path, None)

        logger.info("Converted %s to %s", local_path, link)
        await self._cleanup(local_path)
        return link

    async def _upload(self, data: bytes, file_name: str, mime_type: str) -> str:
        try:
            blob_id = await self._bounded(self.blob_store.create(data, file_name, mime_type))
            # Permission grant and link fetch don't depend on each other
            _, link = await self._bounded(
                asyncio.gather(
                    self.blob_store.grant_public_read(blob_id),
                    self.blob_store.get_public_link(blob_id),
                )
            )
        except asyncio.TimeoutError as e:
            logger.error("Blob store timed out converting %s", file_name)
            raise ConversionFailed("Timed out converting file", cause=e) from e
        except Exception as e:
            logger.error("Error converting %s: %s", file_name, e)
            raise ConversionFailed(str(e) or "Error converting file", cause=e) from e
        return link

    async def _bounded(self, awaitable):
        if self.timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, self.timeout)

    async def _cleanup(self, local_path: str) -> None:
        try:
            await run_in_threadpool(os.remove, local_path)
        except OSError as e:
            logger.warning("Could not delete file %s: %s", local_path, e)
