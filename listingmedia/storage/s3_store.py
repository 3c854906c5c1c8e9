"""S3 blob store for listing images."""
import asyncio
import base64
import hashlib
import uuid

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from listingmedia.exceptions import ConfigurationError, StorageError
from listingmedia.models.image import ImageRef, UploadedFile
from listingmedia.storage.blob_store import BlobStore


def get_md5(data: bytes) -> str:
    """Calculate base64-encoded MD5 hash of data."""
    return base64.b64encode(hashlib.md5(data).digest()).decode('utf-8')


class S3BlobStore(BlobStore):
    """Stores images as '<prefix><uuid><ext>' objects in one bucket."""

    name = 's3'

    def __init__(
        self,
        bucket: str | None,
        region_name: str = 'us-east-1',
        prefix: str = 'listing-images/',
        endpoint_url: str | None = None,
        public_base_url: str | None = None,
        s3_client=None
    ):
        """
        Initialize the S3 blob store.

        Credentials come from the standard AWS chain (environment, profile, role).

        :param bucket: Bucket name
        :param region_name: AWS region (default us-east-1)
        :param prefix: Key prefix for uploaded objects
        :param endpoint_url: Custom S3 endpoint (optional)
        :param public_base_url: Base URL objects are served from (defaults to the bucket URL)
        :param s3_client: Preconfigured boto3 S3 client (optional)
        :raises ConfigurationError: If bucket is not provided
        """
        if not bucket:
            raise ConfigurationError("LISTING_S3_BUCKET is required for the s3 storage backend")
        self.bucket = bucket
        self.region_name = region_name
        self.prefix = prefix
        self.public_base_url = (
            public_base_url or f'https://{bucket}.s3.{region_name}.amazonaws.com'
        ).rstrip('/')
        self._s3_client = s3_client or boto3.client(
            's3',
            region_name=region_name,
            endpoint_url=endpoint_url
        )

    def url_for(self, key: str) -> str:
        return f'{self.public_base_url}/{key}'

    def _put(self, key: str, file: UploadedFile) -> None:
        self._s3_client.put_object(
            Body=file.content,
            Bucket=self.bucket,
            Key=key,
            ContentType=file.content_type,
            ContentMD5=get_md5(file.content)
        )

    async def upload(self, file: UploadedFile) -> ImageRef:
        key = f'{self.prefix}{uuid.uuid4()}{file.extension}'
        try:
            await asyncio.to_thread(self._put, key, file)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload {file.filename} to s3://{self.bucket}/{key}: {e}") from e
        logger.debug(f"Uploaded {file.filename} to s3://{self.bucket}/{key}")
        return ImageRef(url=self.url_for(key), storage_key=key)

    async def delete(self, storage_key: str) -> None:
        try:
            await asyncio.to_thread(self._s3_client.delete_object, Bucket=self.bucket, Key=storage_key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete s3://{self.bucket}/{storage_key}: {e}") from e
        logger.debug(f"Deleted s3://{self.bucket}/{storage_key}")

