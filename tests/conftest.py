"""
Shared fixtures for relaychat tests.

Component fixtures build fresh, isolated state objects; the `client` fixture
wires them into the FastAPI app through dependency overrides.
"""

from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from relaychat.core.blob_store import BlobStore
from relaychat.core.conversion import ConversionCache
from relaychat.core.dependencies import (
    get_conversion_cache,
    get_ledger,
    get_relay,
    get_upload_handler,
)
from relaychat.core.errors import BlobStoreError
from relaychat.core.ledger import VersionLedger
from relaychat.core.relay import Participant, Relay
from relaychat.core.uploads import UploadHandler
from relaychat.main import app


class FakeBlobStore(BlobStore):
    """
    Records every call. `fail_with`, `fail_grant_with` and `fail_link_with`
    make `create`, `grant_public_read` and `get_public_link` raise.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.blobs: Dict[str, bytes] = {}
        self.fail_with = None
        self.fail_grant_with = None
        self.fail_link_with = None

    async def create(self, data: bytes, name: str, mime_type: str) -> str:
        self.calls.append(("create", name, mime_type))
        if self.fail_with is not None:
            raise self.fail_with
        blob_id = f"blob-{len(self.blobs) + 1}"
        self.blobs[blob_id] = data
        return blob_id

    async def grant_public_read(self, blob_id: str) -> None:
        self.calls.append(("grant_public_read", blob_id))
        if self.fail_grant_with is not None:
            raise self.fail_grant_with

    async def get_public_link(self, blob_id: str) -> str:
        self.calls.append(("get_public_link", blob_id))
        if self.fail_link_with is not None:
            raise self.fail_link_with
        return f"https://drive.google.com/file/d/{blob_id}/view"


def _drain(participant: Participant) -> List[Dict[str, Any]]:
    """Pops every queued outbound event without waiting."""
    events = []
    while not participant.outbox.empty():
        event = participant.outbox.get_nowait()
        if event is not None:
            events.append(event)
    return events


# ===== COMPONENT FIXTURES =====


@pytest.fixture
def relay() -> Relay:
    return Relay()


@pytest.fixture
def ledger() -> VersionLedger:
    return VersionLedger()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def conversion_cache(blob_store) -> ConversionCache:
    return ConversionCache(blob_store)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def upload_handler(ledger, upload_dir) -> UploadHandler:
    return UploadHandler(ledger, str(upload_dir))


@pytest.fixture
def failing_blob_error() -> BlobStoreError:
    return BlobStoreError(
        "Google Drive request failed with status 403",
        status_code=403,
        payload={"error": {"message": "insufficientPermissions"}},
    )


# ===== APP FIXTURES =====


@pytest.fixture
def client(relay, ledger, conversion_cache, upload_handler):
    app.dependency_overrides[get_relay] = lambda: relay
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_conversion_cache] = lambda: conversion_cache
    app.dependency_overrides[get_upload_handler] = lambda: upload_handler
    # Entering the client keeps one event loop for every request and socket
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def drain():
    """Returns a helper that pops every queued outbound event of a participant."""
    return _drain
