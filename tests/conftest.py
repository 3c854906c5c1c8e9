"""Shared fixtures for listingmedia tests."""
import asyncio

import pytest

from listingmedia.exceptions import StorageError
from listingmedia.models.image import ImageRef, UploadedFile
from listingmedia.storage.blob_store import BlobStore


class FakeBlobStore(BlobStore):
    """In-memory blob store with failure injection."""

    name = 'fake'

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.delete_calls: list[str] = []
        self.fail_delete: set[str] = set()
        self.hang_delete: set[str] = set()
        self.fail_upload: set[str] = set()
        self.closed = False
        self._counter = 0

    async def upload(self, file: UploadedFile) -> ImageRef:
        if file.filename in self.fail_upload:
            raise StorageError(f"upload refused: {file.filename}")
        self._counter += 1
        key = f'key-{self._counter}-{file.stem}'
        self.blobs[key] = file.content
        return ImageRef(url=f'https://cdn.test/{key}{file.extension}', storage_key=key)

    async def delete(self, storage_key: str) -> None:
        self.delete_calls.append(storage_key)
        if storage_key in self.hang_delete:
            await asyncio.sleep(60)
        if storage_key in self.fail_delete:
            raise StorageError(f"delete refused: {storage_key}")
        self.blobs.pop(storage_key, None)
        self.deleted.append(storage_key)

    async def close(self) -> None:
        self.closed = True


def make_file(name: str = 'house.jpg', content: bytes = b'\xff\xd8image-bytes', content_type: str = 'image/jpeg'):
    return UploadedFile(filename=name, content=content, content_type=content_type)


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def image_file():
    """Factory for uploaded image files."""
    return make_file


@pytest.fixture
def sample_images():
    """Three attached images, the last one linked externally."""
    return [
        ImageRef(url='https://cdn.test/a.png', storage_key='ka'),
        ImageRef(url='https://cdn.test/b.png', storage_key='kb'),
        ImageRef(url='http://ext/c.png'),
    ]


@pytest.fixture
def sample_property_data():
    return {
        'title': 'Sea view apartment',
        'description': 'Two bedrooms, fourth floor',
        'type': 'residential',
        'price': '250000',
        'location': 'Seafront',
        'property_floor': '4',
        'amenities': 'lift,parking',
    }
