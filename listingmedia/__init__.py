"""listingmedia: image attachments for real-estate listing records.

Keeps the image list of Property and Offer records consistent with the
files held in a blob store (local disk, S3 or a hosted media service)
across create, update and delete.

Example usage:
    from listingmedia import ListingMedia, UploadedFile

    async with ListingMedia() as media:
        listing = await media.create_property(
            {'title': 'Two bedroom flat'},
            files=[UploadedFile(filename='front.jpg', content=data, content_type='image/jpeg')],
            image_urls='https://example.com/plan.png',
        )
        await media.update_property(listing.id, existing_images=[listing.images[1].url])
"""

from listingmedia.listing import ListingMedia
from listingmedia.exceptions import (
    ListingMediaError,
    ValidationError,
    RecordNotFound,
    ConfigurationError,
    NetworkError,
    APIError,
    StorageError,
    UploadError,
    StorageDeletionFailure,
)

# Models
from listingmedia.models.image import ImageRef, UploadedFile
from listingmedia.models.record import AttachmentRecord, Property, Offer, Page

# Reconciliation
from listingmedia.reconciler import (
    Reconciliation,
    attach_on_create,
    reconcile_on_update,
    detach_on_delete,
)

# Services
from listingmedia.services.attachment_service import AttachmentService
from listingmedia.services.deletion_service import DeletionService, DeletionReport
from listingmedia.services.upload_service import UploadService

__version__ = "0.1.0"

__all__ = [
    # Main entry point
    "ListingMedia",
    # Exceptions
    "ListingMediaError",
    "ValidationError",
    "RecordNotFound",
    "ConfigurationError",
    "NetworkError",
    "APIError",
    "StorageError",
    "UploadError",
    "StorageDeletionFailure",
    # Models
    "ImageRef",
    "UploadedFile",
    "AttachmentRecord",
    "Property",
    "Offer",
    "Page",
    # Reconciliation
    "Reconciliation",
    "attach_on_create",
    "reconcile_on_update",
    "detach_on_delete",
    # Services
    "AttachmentService",
    "DeletionService",
    "DeletionReport",
    "UploadService",
]
