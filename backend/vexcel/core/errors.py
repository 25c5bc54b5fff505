"""Exception taxonomy shared by stores, services and routes."""

from __future__ import annotations


class VExcelError(Exception):
    """Base class for errors raised by VExcel components."""


class ConfigurationError(VExcelError):
    """A required credential or setting is missing."""


class StoreError(VExcelError):
    """Non-2xx response or transport failure from an external file store."""

    store = "store"

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RemoteStoreError(StoreError):
    store = "remote"


class CloudStoreError(StoreError):
    store = "cloud"


class StoreUnavailable(VExcelError):
    """A dependency failed its health probe or is switched off."""


class MetadataError(VExcelError):
    """The metadata registry could not be read or written."""


class FileNotRegistered(MetadataError):
    """No metadata row matches the requested file."""


class UploadRejected(VExcelError):
    """An upload failed validation before any store was touched."""


__all__ = [
    "CloudStoreError",
    "ConfigurationError",
    "FileNotRegistered",
    "MetadataError",
    "RemoteStoreError",
    "StoreError",
    "StoreUnavailable",
    "UploadRejected",
    "VExcelError",
]
