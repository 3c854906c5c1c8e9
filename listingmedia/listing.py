import sys
from collections.abc import Sequence
from typing import Any

from loguru import logger

from listingmedia.client import Client
from listingmedia.exceptions import ConfigurationError
from listingmedia.models.image import ImageRef, UploadedFile
from listingmedia.models.record import AttachmentRecord, Offer, Page, Property
from listingmedia.services.attachment_service import AttachmentService
from listingmedia.services.deletion_service import DeletionReport, DeletionService
from listingmedia.services.upload_service import UploadService
from listingmedia.storage.blob_store import BlobStore
from listingmedia.storage.local_store import LocalBlobStore
from listingmedia.storage.media_host_store import MediaHostBlobStore
from listingmedia.storage.s3_store import S3BlobStore
from listingmedia.store.record_store import InMemoryRecordStore, JsonFileRecordStore, RecordStore
from listingmedia.utils.normalize import UrlListInput, normalize_optional_url_list, normalize_url_list
from listingmedia.utils.settings import Settings, get_settings


def build_blob_store(settings: Settings) -> BlobStore:
    """
    Construct the blob store selected by LISTING_STORAGE_BACKEND.

    :param settings: Application settings
    :return: A ready blob store
    :raises ConfigurationError: If the backend's settings are incomplete
    """
    if settings.storage_backend == 'local':
        return LocalBlobStore(settings.upload_dir, settings.public_url_prefix)
    if settings.storage_backend == 's3':
        return S3BlobStore(
            settings.s3_bucket,
            region_name=settings.aws_region,
            prefix=settings.s3_prefix,
            endpoint_url=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_base_url,
        )
    if settings.storage_backend == 'media_host':
        return MediaHostBlobStore(
            Client(settings.media_host_base_url),
            settings.media_host_cloud_name,
            settings.media_host_api_key,
            settings.media_host_api_secret,
            folder=settings.media_host_folder,
        )
    raise ConfigurationError(f"Unknown storage backend: {settings.storage_backend}")


def build_record_store(record_type: type[AttachmentRecord], settings: Settings) -> RecordStore:
    if settings.data_dir:
        return JsonFileRecordStore(record_type, settings.data_dir)
    return InMemoryRecordStore(record_type)


class ListingMedia:
    """
    Main entry point for listing records and their images.

    Wires the configured blob store and record stores into one attachment
    service per record type, and normalizes loosely shaped request fields
    (single values, comma-separated strings or lists) before they reach the
    services.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        blob_store: BlobStore | None = None,
        property_store: RecordStore[Property] | None = None,
        offer_store: RecordStore[Offer] | None = None
    ) -> None:
        self.settings = settings or get_settings()
        self._init_logger()

        self.blob_store = blob_store or build_blob_store(self.settings)
        self.deletion_service = DeletionService(
            self.blob_store,
            timeout=self.settings.delete_timeout,
            max_workers=self.settings.delete_concurrency,
        )
        self.upload_service = UploadService(
            self.blob_store,
            max_files=self.settings.max_files,
            max_file_size=self.settings.max_file_size,
            deletion_service=self.deletion_service,
        )

        self.properties: AttachmentService[Property] = AttachmentService(
            Property,
            property_store or build_record_store(Property, self.settings),
            self.upload_service,
            self.deletion_service,
            wait_for_deletions=self.settings.wait_for_deletions,
        )
        self.offers: AttachmentService[Offer] = AttachmentService(
            Offer,
            offer_store or build_record_store(Offer, self.settings),
            self.upload_service,
            self.deletion_service,
            wait_for_deletions=self.settings.wait_for_deletions,
        )

    async def close(self) -> None:
        """Wait for pending blob deletions, then release the blob store."""
        await self.drain()
        await self.blob_store.close()

    async def __aenter__(self) -> "ListingMedia":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def drain(self) -> list[DeletionReport]:
        """Wait for every background blob deletion of both services."""
        return [*await self.properties.drain(), *await self.offers.drain()]

    async def create_property(
        self,
        fields: dict[str, Any],
        files: Sequence[UploadedFile] = (),
        image_urls: UrlListInput = None
    ) -> Property:
        """
        Create a property listing.

        :param fields: Listing fields, 'title' is required
        :param files: Image files to upload
        :param image_urls: External image urls (list or comma-separated string)
        :return: The saved property
        """
        return await self.properties.create(fields, files, normalize_url_list(image_urls))

    async def update_property(
        self,
        property_id: str,
        fields: dict[str, Any] | None = None,
        files: Sequence[UploadedFile] = (),
        existing_images: UrlListInput = None,
        deleted_images: UrlListInput = None,
        image_urls: UrlListInput = None
    ) -> Property:
        """
        Update a property listing.

        :param property_id: Property ID
        :param fields: Listing fields to change
        :param files: Image files to upload
        :param existing_images: Current image urls to keep
        :param deleted_images: Current image urls to drop, overrides existing_images
        :param image_urls: External image urls to add
        :return: The saved property
        """
        return await self.properties.update(
            property_id,
            fields,
            files,
            keep_urls=normalize_optional_url_list(existing_images),
            delete_urls=normalize_optional_url_list(deleted_images),
            external_urls=normalize_url_list(image_urls),
        )

    async def delete_property(self, property_id: str) -> list[ImageRef]:
        return await self.properties.delete(property_id)

    async def get_property(self, property_id: str) -> Property:
        return await self.properties.get(property_id)

    async def list_properties(self, page: int = 1, limit: int = 10) -> Page[Property]:
        return await self.properties.list(page, limit)

    async def create_offer(
        self,
        files: Sequence[UploadedFile] = (),
        image_urls: UrlListInput = None,
        fields: dict[str, Any] | None = None
    ) -> Offer:
        """
        Create an offer.

        :param files: Image files to upload
        :param image_urls: External image urls (list or comma-separated string)
        :param fields: Offer fields (optional)
        :return: The saved offer
        """
        return await self.offers.create(fields, files, normalize_url_list(image_urls))

    async def update_offer(
        self,
        offer_id: str,
        files: Sequence[UploadedFile] = (),
        existing_images: UrlListInput = None,
        deleted_images: UrlListInput = None,
        image_urls: UrlListInput = None,
        fields: dict[str, Any] | None = None
    ) -> Offer:
        """
        Update an offer's images.

        :param offer_id: Offer ID
        :param files: Image files to upload
        :param existing_images: Current image urls to keep
        :param deleted_images: Current image urls to drop, overrides existing_images
        :param image_urls: External image urls to add
        :param fields: Offer fields to change (optional)
        :return: The saved offer
        """
        return await self.offers.update(
            offer_id,
            fields,
            files,
            keep_urls=normalize_optional_url_list(existing_images),
            delete_urls=normalize_optional_url_list(deleted_images),
            external_urls=normalize_url_list(image_urls),
        )

    async def delete_offer(self, offer_id: str) -> list[ImageRef]:
        return await self.offers.delete(offer_id)

    async def get_offer(self, offer_id: str) -> Offer:
        return await self.offers.get(offer_id)

    async def list_offers(self, page: int = 1, limit: int = 10) -> Page[Offer]:
        """Active offers, newest first."""
        return await self.offers.list(page, limit, active_only=True)

    def _init_logger(self) -> None:
        """Configure logging based on the LISTING_DEBUG setting.

        If LISTING_DEBUG is set to a truthy value, enables DEBUG level logging.
        Otherwise, only WARNING and above are shown.
        """
        logger.remove()
        level = "DEBUG" if self.settings.debug else "WARNING"
        log_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ) if self.settings.debug else "<level>{message}</level>"
        logger.add(sys.stderr, level=level, format=log_format)
