# relaychat/core/errors.py
from typing import Any, Dict, Optional


class RelayChatError(Exception):
    """
    Base class for every error surfaced to a client.
    Rendered as {"error": message, "details": {...}} with `status_code`.
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}


class ValidationError(RelayChatError):
    """Rejected input (file type, size, missing fields). Raised before any state changes."""

    status_code = 400


class NotFoundError(RelayChatError):
    status_code = 404


class PersistenceError(RelayChatError):
    """Local disk read/write failure."""

    status_code = 500


class BlobStoreError(Exception):
    """Raised by blob store implementations; wrapped in ConversionFailed before reaching clients."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class ConversionFailed(RelayChatError):
    """
    The blob store rejected an upload, permission grant or link fetch.
    The underlying exception is kept on `cause`.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if details is None and isinstance(cause, BlobStoreError):
            details = cause.payload
        super().__init__(message, details)
        self.cause = cause
