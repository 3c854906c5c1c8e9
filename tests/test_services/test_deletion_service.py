"""Tests for DeletionService."""
import asyncio

import pytest

from listingmedia.exceptions import StorageDeletionFailure
from listingmedia.models.image import ImageRef
from listingmedia.services.deletion_service import DeletionService


@pytest.fixture
def deletion_service(blob_store):
    return DeletionService(blob_store, timeout=0.2, max_workers=3)


class TestDeleteImages:
    """Tests for delete_images method."""

    @pytest.mark.asyncio
    async def test_deletes_every_stored_image(self, deletion_service, blob_store):
        images = [ImageRef(url=f'u{i}', storage_key=f'k{i}') for i in range(4)]

        report = await deletion_service.delete_images(images)

        assert report.ok
        assert sorted(blob_store.deleted) == ['k0', 'k1', 'k2', 'k3']
        assert len(report.deleted) == 4

    @pytest.mark.asyncio
    async def test_skips_images_without_storage_key(self, deletion_service, blob_store, sample_images):
        """External images never produce a remote delete call."""
        report = await deletion_service.delete_images(sample_images)

        assert sorted(blob_store.delete_calls) == ['ka', 'kb']
        assert report.skipped == [ImageRef(url='http://ext/c.png')]

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_other_deletions(self, deletion_service, blob_store):
        images = [ImageRef(url=f'u{i}', storage_key=f'k{i}') for i in range(3)]
        blob_store.fail_delete.add('k1')

        report = await deletion_service.delete_images(images)

        assert not report.ok
        assert sorted(blob_store.deleted) == ['k0', 'k2']
        assert report.failed == [images[1]]
        assert isinstance(report.failures[0], StorageDeletionFailure)
        assert 'delete refused' in str(report.failures[0])

    @pytest.mark.asyncio
    async def test_stalled_deletion_times_out(self, deletion_service, blob_store):
        """A hanging call is reported as failed without blocking the others."""
        images = [ImageRef(url='slow', storage_key='slow'), ImageRef(url='fast', storage_key='fast')]
        blob_store.hang_delete.add('slow')

        report = await asyncio.wait_for(deletion_service.delete_images(images), timeout=5)

        assert blob_store.deleted == ['fast']
        assert report.failed == [images[0]]
        assert isinstance(report.failures[0].cause, TimeoutError)

    @pytest.mark.asyncio
    async def test_never_raises(self, deletion_service, blob_store):
        """Unexpected errors from the store are reported, not raised."""
        async def explode(storage_key):
            raise RuntimeError("boom")

        blob_store.delete = explode

        report = await deletion_service.delete_images([ImageRef(url='a', storage_key='k')])

        assert len(report.failures) == 1
        assert isinstance(report.failures[0].cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_deletions_run_concurrently(self, blob_store):
        """Deletions fan out instead of running one after another."""
        concurrent_count = 0
        max_concurrent = 0

        async def track_concurrent(storage_key):
            nonlocal concurrent_count, max_concurrent
            concurrent_count += 1
            max_concurrent = max(max_concurrent, concurrent_count)
            await asyncio.sleep(0.01)
            concurrent_count -= 1

        blob_store.delete = track_concurrent
        service = DeletionService(blob_store, max_workers=3)
        images = [ImageRef(url=f'u{i}', storage_key=f'k{i}') for i in range(10)]

        await service.delete_images(images)

        assert 1 < max_concurrent <= 3

    @pytest.mark.asyncio
    async def test_calls_progress_callback(self, deletion_service, blob_store):
        progress_calls = []
        blob_store.fail_delete.add('k2')
        images = [ImageRef(url=f'u{i}', storage_key=f'k{i}') for i in range(3)]

        await deletion_service.delete_images(
            images,
            progress_callback=lambda completed, total, failed: progress_calls.append((completed, total, failed))
        )

        assert len(progress_calls) == 3
        assert all(call[1] == 3 for call in progress_calls)
        assert progress_calls[-1][0] == 3
        assert progress_calls[-1][2] == 1

    @pytest.mark.asyncio
    async def test_empty_worklist(self, deletion_service, blob_store):
        report = await deletion_service.delete_images([])

        assert report.ok
        assert blob_store.delete_calls == []
