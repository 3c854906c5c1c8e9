"""Blob store writing uploads to a local directory."""
import asyncio
import os
import uuid

from loguru import logger

from listingmedia.exceptions import StorageError, ValidationError
from listingmedia.models.image import ImageRef, UploadedFile
from listingmedia.storage.blob_store import BlobStore, timestamped_name
from listingmedia.utils.io import build_path, remove_file, write_bytes
from listingmedia.utils.validation import validate_storage_key


class LocalBlobStore(BlobStore):
    """Stores files as '<upload_dir>/<timestamp>-<original name>', served under url_prefix."""

    name = 'local'

    def __init__(self, upload_dir: str = 'uploads', url_prefix: str = '/uploads'):
        self.upload_dir = upload_dir
        self.url_prefix = url_prefix.rstrip('/')

    def path_for(self, storage_key: str) -> str:
        try:
            validate_storage_key(storage_key)
        except ValidationError as e:
            raise StorageError(str(e)) from e
        return build_path(self.upload_dir, storage_key, make_dir=False)

    async def upload(self, file: UploadedFile) -> ImageRef:
        name = os.path.basename(file.filename.replace('\\', '/'))
        storage_key = timestamped_name(name)
        while True:
            path = self.path_for(storage_key)
            try:
                await asyncio.to_thread(write_bytes, file.content, path, True)
                break
            except FileExistsError:
                # same name stored within the same millisecond
                storage_key = timestamped_name(f'{uuid.uuid4().hex[:8]}-{name}')
        logger.debug(f"Stored {file.filename} as {path}")
        return ImageRef(url=f'{self.url_prefix}/{storage_key}', storage_key=storage_key)

    async def delete(self, storage_key: str) -> None:
        await asyncio.to_thread(remove_file, self.path_for(storage_key))
