import asyncio
from collections.abc import Sequence

from loguru import logger

from listingmedia.exceptions import UploadError
from listingmedia.models.image import ImageRef, UploadedFile
from listingmedia.services.deletion_service import DeletionService
from listingmedia.storage.blob_store import BlobStore
from listingmedia.utils.retry import with_retry
from listingmedia.utils.validation import (
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_MAX_FILES,
    validate_upload_batch,
)


class UploadService:
    """Turns the raw files of one request into stored images."""

    def __init__(
        self,
        blob_store: BlobStore,
        max_files: int = DEFAULT_MAX_FILES,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        max_workers: int = 5,
        max_retries: int = 2,
        deletion_service: DeletionService | None = None
    ):
        """
        Initialize the upload service.

        :param blob_store: Store uploads are written to
        :param max_files: Maximum files per request (default 10)
        :param max_file_size: Maximum size of each file in bytes (default 10 MiB)
        :param max_workers: Number of concurrent uploads (default 5)
        :param max_retries: Retries per upload on transient network errors (default 2)
        :param deletion_service: Executor removing the stored files of a failed batch
            (default: a DeletionService on the same blob store)
        """
        self.blob_store = blob_store
        self.max_files = max_files
        self.max_file_size = max_file_size
        self.max_workers = max_workers
        self.max_retries = max_retries
        self.deletion_service = deletion_service or DeletionService(blob_store)

    async def upload_files(self, files: Sequence[UploadedFile]) -> list[ImageRef]:
        """
        Validate and upload a batch of files concurrently.

        Either every file is stored or none is: when an upload fails, the
        files of the batch that did get stored are deleted again before the
        error is raised.

        :param files: Files of one request
        :return: Stored images, in the order of ``files``
        :raises ValidationError: If the batch breaks the upload limits
        :raises UploadError: If any file could not be stored
        """
        validate_upload_batch(files, self.max_files, self.max_file_size)
        if not files:
            return []

        semaphore = asyncio.Semaphore(self.max_workers)

        async def upload_one(file: UploadedFile) -> ImageRef:
            async with semaphore:
                return await with_retry(
                    self.blob_store.upload,
                    file,
                    max_retries=self.max_retries,
                    label=f'upload of {file.filename}'
                )

        results = await asyncio.gather(*[upload_one(file) for file in files], return_exceptions=True)

        stored = [result for result in results if isinstance(result, ImageRef)]
        errors = [
            (file, result) for file, result in zip(files, results)
            if isinstance(result, BaseException)
        ]
        if not errors:
            logger.debug(f'Uploaded {len(stored)} files to {self.blob_store.name} store.')
            return stored

        for file, error in errors:
            logger.error(f"Failed to upload {file.filename}: {type(error).__name__}: {error}")
        await self._discard(stored)

        first_file, first_error = errors[0]
        raise UploadError(
            f"Failed to upload {len(errors)}/{len(files)} files (first: {first_file.filename}: {first_error})"
        ) from first_error

    async def _discard(self, stored: list[ImageRef]) -> None:
        """Remove the stored half of a failed batch; each deletion is time-boxed."""
        await self.deletion_service.delete_images(stored)
