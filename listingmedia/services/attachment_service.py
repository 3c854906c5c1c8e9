from __future__ import annotations

import asyncio
import weakref
from collections import deque
from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from listingmedia.exceptions import RecordNotFound, ValidationError
from listingmedia.models.image import ImageRef, UploadedFile
from listingmedia.models.meta import managed_keys, partial_fields
from listingmedia.models.record import AttachmentRecord, Page, utcnow
from listingmedia.reconciler import attach_on_create, detach_on_delete, reconcile_on_update
from listingmedia.services.deletion_service import DeletionReport, DeletionService
from listingmedia.services.upload_service import UploadService
from listingmedia.store.record_store import RecordStore
from listingmedia.utils.validation import validate_id

R = TypeVar('R', bound=AttachmentRecord)


class AttachmentService(Generic[R]):
    """
    Create, update and delete records together with their images.

    The record write always happens after the next image list is computed
    and before any blob is deleted. Blob deletion runs in the background by
    default and its outcome never changes the result of the record
    operation; a failed deletion leaves an orphaned blob, never a reference
    to a missing one.
    """

    def __init__(
        self,
        record_type: type[R],
        record_store: RecordStore[R],
        upload_service: UploadService,
        deletion_service: DeletionService,
        wait_for_deletions: bool = False,
        history_len: int = 50
    ):
        """
        Initialize the attachment service.

        :param record_type: Record model handled by this service
        :param record_store: Primary store for records of that type
        :param upload_service: Pipeline storing incoming files
        :param deletion_service: Executor for blob deletions
        :param wait_for_deletions: Await blob deletions before returning (default False)
        :param history_len: Number of deletion reports kept in deletion_history (default 50)
        """
        self.record_type = record_type
        self.record_store = record_store
        self.upload_service = upload_service
        self.deletion_service = deletion_service
        self.wait_for_deletions = wait_for_deletions
        self.deletion_history: deque[DeletionReport] = deque(maxlen=history_len)
        self._pending: set[asyncio.Task[DeletionReport]] = set()
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @property
    def type_name(self) -> str:
        return self.record_type.__name__

    @property
    def pending_deletions(self) -> int:
        return len(self._pending)

    def _lock_for(self, record_id: str) -> asyncio.Lock:
        lock = self._locks.get(record_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[record_id] = lock
        return lock

    def _build_record(self, fields: dict[str, Any], images: list[ImageRef]) -> R:
        managed = managed_keys(self.record_type)
        values = {key: value for key, value in fields.items() if key not in managed}
        try:
            return self.record_type(**values, images=images)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {self.type_name}: {e}") from e

    def _check_fields(self, fields: dict[str, Any] | None) -> dict[str, Any]:
        try:
            return partial_fields(self.record_type, fields)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {self.type_name} update: {e}") from e

    async def _find_or_raise(self, record_id: str) -> R:
        validate_id(record_id, f"{self.type_name} ID")
        record = await self.record_store.find(record_id)
        if record is None:
            raise RecordNotFound(self.type_name, record_id)
        return record

    async def get(self, record_id: str) -> R:
        """
        Fetch a record.

        :param record_id: Record ID
        :return: The record
        :raises RecordNotFound: If no such record exists
        """
        return await self._find_or_raise(record_id)

    async def list(self, page: int = 1, limit: int = 10, active_only: bool = False) -> Page[R]:
        """
        List records newest first.

        :param page: 1-based page number (default 1)
        :param limit: Records per page (default 10)
        :param active_only: Only include records whose is_active flag is set (default False)
        :return: The requested page
        """
        predicate = (lambda record: getattr(record, 'is_active', True)) if active_only else None
        return await self.record_store.list(page, limit, predicate)

    async def create(
        self,
        fields: dict[str, Any] | None = None,
        files: Sequence[UploadedFile] = (),
        external_urls: Sequence[str] = ()
    ) -> R:
        """
        Create a record with uploaded and externally linked images.

        :param fields: Domain fields of the record
        :param files: Files to upload and attach
        :param external_urls: Urls to attach without uploading
        :return: The saved record
        :raises ValidationError: If the fields or files are invalid
        :raises UploadError: If the files could not be stored
        """
        fields = fields or {}
        # Validate the fields before anything is uploaded.
        self._build_record(fields, [])

        uploaded = await self.upload_service.upload_files(files)
        try:
            images = attach_on_create(uploaded, external_urls)
            record = await self.record_store.save(self._build_record(fields, images))
        except Exception:
            await self._schedule_deletion(uploaded, 'failed create')
            raise

        logger.info(f"Created {self.type_name} {record.id} with {len(record.images)} images")
        return record

    async def update(
        self,
        record_id: str,
        fields: dict[str, Any] | None = None,
        files: Sequence[UploadedFile] = (),
        keep_urls: Sequence[str] | None = None,
        delete_urls: Sequence[str] | None = None,
        external_urls: Sequence[str] = ()
    ) -> R:
        """
        Update a record's fields and images.

        ``delete_urls``, when given, lists the images to drop and wins over
        ``keep_urls``. Otherwise ``keep_urls``, when given, is the complete
        set of current images to keep. When neither is given all current
        images are kept. New uploads, then new external urls, are appended.

        :param record_id: Record ID
        :param fields: Domain fields to change
        :param files: Files to upload and attach
        :param keep_urls: Current image urls to keep
        :param delete_urls: Current image urls to drop
        :param external_urls: Urls to attach without uploading
        :return: The saved record
        :raises RecordNotFound: If no such record exists
        :raises ValidationError: If the fields or files are invalid
        :raises UploadError: If the files could not be stored
        """
        async with self._lock_for(record_id):
            record = await self._find_or_raise(record_id)
            changes = self._check_fields(fields)

            uploaded = await self.upload_service.upload_files(files)
            try:
                retained = keep_urls if keep_urls is not None else record.image_urls()
                additions = attach_on_create(uploaded, external_urls)
                reconciliation = reconcile_on_update(record.images, additions, retained, delete_urls)
                updated = record.model_copy(update={
                    **changes,
                    'images': reconciliation.next,
                    'updated_at': utcnow(),
                })
                saved = await self.record_store.save(updated)
            except Exception:
                await self._schedule_deletion(uploaded, 'failed update')
                raise

        logger.info(
            f"Updated {self.type_name} {record_id}: {len(saved.images)} images, "
            f"{len(reconciliation.to_delete)} dropped"
        )
        await self._schedule_deletion(reconciliation.to_delete, f'update of {self.type_name} {record_id}')
        return saved

    async def delete(self, record_id: str) -> list[ImageRef]:
        """
        Delete a record and schedule deletion of all of its images.

        :param record_id: Record ID
        :return: The images whose blobs are being deleted
        :raises RecordNotFound: If no such record exists
        """
        async with self._lock_for(record_id):
            record = await self._find_or_raise(record_id)
            worklist = detach_on_delete(record)
            await self.record_store.delete(record_id)

        logger.info(f"Deleted {self.type_name} {record_id} with {len(worklist)} images")
        await self._schedule_deletion(worklist, f'delete of {self.type_name} {record_id}')
        return worklist

    async def _schedule_deletion(self, images: Sequence[ImageRef], reason: str) -> DeletionReport | None:
        if not images:
            return None
        if self.wait_for_deletions:
            return await self._run_deletion(list(images), reason)

        task = asyncio.create_task(self._run_deletion(list(images), reason))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return None

    async def _run_deletion(self, images: list[ImageRef], reason: str) -> DeletionReport:
        logger.debug(f"Deleting {len(images)} images after {reason}")
        report = await self.deletion_service.delete_images(images)
        self.deletion_history.append(report)
        return report

    async def drain(self) -> list[DeletionReport]:
        """
        Wait for every background deletion to finish.

        :return: Reports of the deletions that were pending
        """
        reports: list[DeletionReport] = []
        while self._pending:
            reports.extend(await asyncio.gather(*list(self._pending)))
        return reports
