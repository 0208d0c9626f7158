# relaychat/core/dependencies.py
"""
Process-wide state shared by the routers, built once and injected with
FastAPI's Depends. Tests swap these out through `app.dependency_overrides`.
"""
from functools import lru_cache

from fastapi import Depends

from relaychat.core.blob_store import GoogleDriveBlobStore
from relaychat.core.config import (
    BLOB_STORE_TIMEOUT_SECONDS,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REFRESH_TOKEN,
    UPLOAD_DIRECTORY,
)
from relaychat.core.conversion import ConversionCache
from relaychat.core.ledger import VersionLedger
from relaychat.core.relay import Relay
from relaychat.core.uploads import UploadHandler


@lru_cache
def get_relay() -> Relay:
    return Relay()


@lru_cache
def get_ledger() -> VersionLedger:
    return VersionLedger()


@lru_cache
def get_conversion_cache() -> ConversionCache:
    blob_store = GoogleDriveBlobStore(
        client_id=GOOGLE_CLIENT_ID,
        client_secret=GOOGLE_CLIENT_SECRET,
        refresh_token=GOOGLE_REFRESH_TOKEN,
        timeout=BLOB_STORE_TIMEOUT_SECONDS,
    )
    return ConversionCache(blob_store, timeout=BLOB_STORE_TIMEOUT_SECONDS)


def get_upload_handler(ledger: VersionLedger = Depends(get_ledger)) -> UploadHandler:
    return UploadHandler(ledger, UPLOAD_DIRECTORY)
