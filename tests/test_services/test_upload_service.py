"""Tests for UploadService."""
import asyncio

import pytest
from unittest.mock import AsyncMock

from listingmedia.exceptions import NetworkError, UploadError, ValidationError
from listingmedia.services.deletion_service import DeletionService
from listingmedia.services.upload_service import UploadService


@pytest.fixture
def upload_service(blob_store):
    return UploadService(blob_store, max_files=3, max_file_size=1024)


class TestUploadFiles:
    """Tests for upload_files method."""

    @pytest.mark.asyncio
    async def test_uploads_in_request_order(self, upload_service, blob_store, image_file):
        files = [image_file('one.jpg'), image_file('two.png', content_type='image/png')]

        images = await upload_service.upload_files(files)

        assert [image.storage_key for image in images] == ['key-1-one', 'key-2-two']
        assert all(image.has_storage_key for image in images)
        assert len(blob_store.blobs) == 2

    @pytest.mark.asyncio
    async def test_no_files(self, upload_service, blob_store):
        assert await upload_service.upload_files([]) == []

    @pytest.mark.asyncio
    async def test_rejects_too_many_files(self, upload_service, blob_store, image_file):
        files = [image_file(f'{i}.jpg') for i in range(4)]

        with pytest.raises(ValidationError, match="more than 3"):
            await upload_service.upload_files(files)
        assert blob_store.blobs == {}

    @pytest.mark.asyncio
    async def test_rejects_oversized_file(self, upload_service, blob_store, image_file):
        with pytest.raises(ValidationError, match="maximum size"):
            await upload_service.upload_files([image_file(content=b'x' * 2048)])
        assert blob_store.blobs == {}

    @pytest.mark.asyncio
    async def test_rejects_non_image(self, upload_service, image_file):
        with pytest.raises(ValidationError, match="not an image"):
            await upload_service.upload_files([image_file('notes.txt', content_type='text/plain')])

    @pytest.mark.asyncio
    async def test_rejects_empty_file(self, upload_service, image_file):
        with pytest.raises(ValidationError, match="empty"):
            await upload_service.upload_files([image_file(content=b'')])

    @pytest.mark.asyncio
    async def test_failed_upload_discards_rest_of_batch(self, upload_service, blob_store, image_file):
        """A partially stored batch is removed again before the error surfaces."""
        blob_store.fail_upload.add('bad.jpg')
        files = [image_file('good.jpg'), image_file('bad.jpg'), image_file('fine.jpg')]

        with pytest.raises(UploadError, match="bad.jpg"):
            await upload_service.upload_files(files)

        assert blob_store.blobs == {}
        assert sorted(blob_store.deleted) == ['key-1-good', 'key-2-fine']

    @pytest.mark.asyncio
    async def test_stalled_rollback_does_not_block_the_request(self, blob_store, image_file):
        """A hanging delete of the stored half is cut off by the deletion timeout."""
        service = UploadService(blob_store, deletion_service=DeletionService(blob_store, timeout=0.2))
        blob_store.fail_upload.add('bad.jpg')
        blob_store.hang_delete.add('key-1-good')

        with pytest.raises(UploadError, match="bad.jpg"):
            await asyncio.wait_for(service.upload_files([image_file('good.jpg'), image_file('bad.jpg')]), timeout=5)

        assert blob_store.delete_calls == ['key-1-good']

    @pytest.mark.asyncio
    async def test_retries_transient_network_errors(self, blob_store, image_file):
        service = UploadService(blob_store, max_retries=2)
        real_upload = blob_store.upload

        async def flaky(file):
            if blob_store.upload.call_count == 1:
                raise NetworkError("reset")
            return await real_upload(file)

        blob_store.upload = AsyncMock(side_effect=flaky)

        images = await service.upload_files([image_file('one.jpg')])

        assert len(images) == 1
        assert blob_store.upload.call_count == 2
