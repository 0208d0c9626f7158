"""Realtime two-party chat relay with versioned uploads and Google Drive mirroring."""

__version__ = "0.1.0"
