import asyncio
from collections.abc import Callable, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from listingmedia.exceptions import StorageDeletionFailure
from listingmedia.models.image import ImageRef
from listingmedia.reconciler import deletable
from listingmedia.storage.blob_store import BlobStore


class DeletionReport(BaseModel):
    """What happened to each image of one deletion worklist."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    deleted: list[ImageRef] = Field(default_factory=list)
    skipped: list[ImageRef] = Field(default_factory=list)
    failures: list[StorageDeletionFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed(self) -> list[ImageRef]:
        return [failure.image for failure in self.failures]


class DeletionService:
    """Deletes the blobs behind dropped images, tolerating partial failure."""

    def __init__(self, blob_store: BlobStore, timeout: float = 10.0, max_workers: int = 5):
        """
        Initialize the deletion service.

        :param blob_store: Store the blobs live in
        :param timeout: Seconds allowed for each deletion call (default 10)
        :param max_workers: Number of concurrent deletions (default 5)
        """
        self.blob_store = blob_store
        self.timeout = timeout
        self.max_workers = max_workers

    async def delete_images(
        self,
        images: Sequence[ImageRef],
        progress_callback: Callable[[int, int, int], None] | None = None
    ) -> DeletionReport:
        """
        Delete the blobs of images concurrently.

        Images without a storage key are skipped. Each call gets its own
        timeout; a failed or stalled call is reported and never stops the
        others. Nothing is retried and nothing is raised.

        :param images: Deletion worklist
        :param progress_callback: Optional callback(completed, total, failed) for progress
        :return: Report of deleted, skipped and failed images
        """
        report = DeletionReport(skipped=[image for image in images if not image.has_storage_key])
        targets = deletable(images)
        total = len(targets)
        completed = 0
        semaphore = asyncio.Semaphore(self.max_workers)

        async def delete_one(image: ImageRef) -> None:
            nonlocal completed
            async with semaphore:
                try:
                    await asyncio.wait_for(self.blob_store.delete(image.storage_key), timeout=self.timeout)
                    report.deleted.append(image)
                except asyncio.TimeoutError as e:
                    failure = StorageDeletionFailure(image, TimeoutError(f"timed out after {self.timeout}s"))
                    failure.__cause__ = e
                    report.failures.append(failure)
                    logger.warning(str(failure))
                except Exception as e:
                    failure = StorageDeletionFailure(image, e)
                    report.failures.append(failure)
                    logger.warning(str(failure))
                completed += 1
                if progress_callback:
                    progress_callback(completed, total, len(report.failures))

        await asyncio.gather(*[delete_one(image) for image in targets])

        if report.failures:
            logger.warning(
                f'Failed to delete {len(report.failures)}/{total} blobs from {self.blob_store.name} store.'
            )
        else:
            logger.debug(f'Deleted {len(report.deleted)} blobs, skipped {len(report.skipped)} external images.')

        return report
