# relaychat/core/blob_store.py
"""
External object storage used to mirror uploads.

`BlobStore` is the contract the conversion cache depends on. The concrete
`GoogleDriveBlobStore` talks to the Drive v3 REST API through google-auth's
`AuthorizedSession`, which refreshes the OAuth2 access token on its own. The
blocking calls run in Starlette's threadpool so the event loop stays free.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials
from starlette.concurrency import run_in_threadpool

from relaychat.core.errors import BlobStoreError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"


class BlobStore(ABC):
    @abstractmethod
    async def create(self, data: bytes, name: str, mime_type: str) -> str:
        """Stores `data` under `name` and returns the blob id."""

    @abstractmethod
    async def grant_public_read(self, blob_id: str) -> None:
        """Makes the blob readable by anyone with the link."""

    @abstractmethod
    async def get_public_link(self, blob_id: str) -> str:
        """Returns the public view URL of the blob."""


def _response_payload(response: requests.Response) -> Dict[str, Any]:
    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError:
        return {"body": response.text}
    return payload if isinstance(payload, dict) else {"body": payload}


def authorized_session(client_id: str, client_secret: str, refresh_token: str) -> AuthorizedSession:
    """A requests session that signs every call with a refreshed Google access token."""
    credentials = Credentials(
        None,
        refresh_token=refresh_token,
        client_id=client_id,
        client_secret=client_secret,
        token_uri=TOKEN_URL,
    )
    return AuthorizedSession(credentials)


class GoogleDriveBlobStore(BlobStore):
    """
    Google Drive via OAuth2 refresh-token credentials.

    Uploads use Drive's resumable protocol: the metadata opens an upload
    session and the bytes are PUT to the session URL.
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.timeout = timeout
        if session is None and self.configured:
            session = authorized_session(client_id, client_secret, refresh_token)
        self.session = session

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    async def create(self, data: bytes, name: str, mime_type: str) -> str:
        return await run_in_threadpool(self._create, data, name, mime_type)

    async def grant_public_read(self, blob_id: str) -> None:
        await run_in_threadpool(self._grant_public_read, blob_id)

    async def get_public_link(self, blob_id: str) -> str:
        return await run_in_threadpool(self._get_public_link, blob_id)

    # --------------------
    # Blocking implementation
    # --------------------

    def _create(self, data: bytes, name: str, mime_type: str) -> str:
        opened = self._send(
            "POST",
            DRIVE_UPLOAD_URL,
            params={"uploadType": "resumable", "fields": "id", "supportsAllDrives": "false"},
            json={"name": name, "mimeType": mime_type},
            headers={
                "X-Upload-Content-Type": mime_type,
                "X-Upload-Content-Length": str(len(data)),
            },
        )
        session_url = opened.headers.get("Location")
        if not session_url:
            raise BlobStoreError("Google Drive did not open an upload session")

        result = _response_payload(
            self._send("PUT", session_url, data=data, headers={"Content-Type": mime_type})
        )
        blob_id = result.get("id")
        if not blob_id:
            raise BlobStoreError("Google Drive did not return a file id", payload=result)
        logger.info("Uploaded %s to Google Drive as %s", name, blob_id)
        return blob_id

    def _grant_public_read(self, blob_id: str) -> None:
        self._send(
            "POST",
            f"{DRIVE_FILES_URL}/{blob_id}/permissions",
            params={"fields": "id"},
            json={"role": "reader", "type": "anyone"},
        )

    def _get_public_link(self, blob_id: str) -> str:
        result = _response_payload(
            self._send("GET", f"{DRIVE_FILES_URL}/{blob_id}", params={"fields": "webViewLink"})
        )
        link = result.get("webViewLink")
        if not link:
            raise BlobStoreError("Google Drive did not return a view link", payload=result)
        return link

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        if not self.configured or self.session is None:
            raise BlobStoreError("Google Drive is not configured")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except RefreshError as e:
            raise BlobStoreError(f"Could not refresh Google access token: {e}") from e
        if not response.ok:
            raise BlobStoreError(
                f"Google Drive request failed with status {response.status_code}",
                status_code=response.status_code,
                payload=_response_payload(response),
            )
        return response
