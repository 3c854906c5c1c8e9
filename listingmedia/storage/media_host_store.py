"""Blob store backed by a third-party media host."""
from loguru import logger

from listingmedia.api.media_host_api import MediaHostApi
from listingmedia.client import Client
from listingmedia.exceptions import APIError, StorageError
from listingmedia.models.image import ImageRef, UploadedFile
from listingmedia.storage.blob_store import BlobStore, timestamped_name


class MediaHostBlobStore(BlobStore):
    """
    Uploads images to a hosted media service and deletes them by public id.

    Public ids are '<folder>/<timestamp>-<original name without extension>';
    images are converted to ``file_format`` by the host.
    """

    name = 'media_host'

    def __init__(
        self,
        client: Client,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = 'offer_images',
        file_format: str | None = 'png'
    ):
        self._client = client
        self.api = MediaHostApi(client, cloud_name, api_key, api_secret)
        self.folder = folder.strip('/')
        self.file_format = file_format

    def public_id_for(self, file: UploadedFile) -> str:
        name = timestamped_name(file.stem)
        return f'{self.folder}/{name}' if self.folder else name

    async def upload(self, file: UploadedFile) -> ImageRef:
        public_id = self.public_id_for(file)
        try:
            response = await self.api.upload_image(
                (file.filename, file.content, file.content_type),
                public_id,
                self.file_format
            )
        except APIError as e:
            raise StorageError(f"Media host rejected {file.filename}: {e}") from e

        url = response.get('secure_url') or response.get('url')
        if not url:
            raise StorageError(f"Media host returned no url for {file.filename}: {response}")
        logger.debug(f"Uploaded {file.filename} as {response.get('public_id', public_id)}")
        return ImageRef(url=url, storage_key=response.get('public_id', public_id))

    async def delete(self, storage_key: str) -> None:
        try:
            response = await self.api.destroy_image(storage_key)
        except APIError as e:
            raise StorageError(f"Media host failed to delete {storage_key}: {e}") from e

        result = response.get('result')
        if result != 'ok':
            raise StorageError(f"Media host could not delete {storage_key}: {result}")

    async def close(self) -> None:
        await self._client.close()
