"""Custom exception classes for listingmedia."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from listingmedia.models.image import ImageRef


class ListingMediaError(Exception):
    """Base exception for listingmedia errors."""
    pass


class ValidationError(ListingMediaError):
    """Raised when reconcile or upload input is malformed."""
    pass


class RecordNotFound(ListingMediaError):
    """Raised when the target record of an update or delete does not exist."""

    def __init__(self, record_type: str, record_id: str) -> None:
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(f"{record_type} not found: {record_id}")


class ConfigurationError(ListingMediaError):
    """Raised when required configuration is missing."""
    pass


class NetworkError(ListingMediaError):
    """Raised when network requests fail."""
    pass


class APIError(ListingMediaError):
    """Raised when a remote API returns an error."""
    pass


class StorageError(ListingMediaError):
    """Raised when a blob store call fails."""
    pass


class UploadError(StorageError):
    """Raised when a batch of uploads could not be stored."""
    pass


class StorageDeletionFailure(StorageError):
    """
    A single blob that could not be deleted.

    Collected in a DeletionReport; the deletion executor never raises it.
    """

    def __init__(self, image: ImageRef, cause: BaseException) -> None:
        self.image = image
        self.cause = cause
        super().__init__(
            f"Failed to delete blob {image.storage_key!r} ({image.url}): "
            f"{type(cause).__name__}: {cause}"
        )
