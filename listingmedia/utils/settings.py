"""
listingmedia configuration settings.

Uses Pydantic Settings for type-safe configuration with environment variable support.

Optional environment variables (with defaults):
- LISTING_STORAGE_BACKEND: Blob store to use, 'local', 's3' or 'media_host' (default: 'local')
- LISTING_UPLOAD_DIR: Directory for the local blob store (default: 'uploads')
- LISTING_PUBLIC_URL_PREFIX: URL prefix of locally stored files (default: '/uploads')
- LISTING_MAX_FILES: Maximum files per request (default: 10)
- LISTING_MAX_FILE_SIZE: Maximum size of one file in bytes (default: 10 MiB)
- LISTING_DELETE_TIMEOUT: Timeout of one blob deletion in seconds (default: 10.0)
- LISTING_DELETE_CONCURRENCY: Concurrent blob deletions (default: 5)
- LISTING_WAIT_FOR_DELETIONS: Await blob deletions before returning (default: false)
- LISTING_DATA_DIR: Directory for JSON record files; records stay in memory when unset
- LISTING_DEBUG: Enable debug logging (default: false)

S3 blob store:
- LISTING_S3_BUCKET: Bucket name (required for the 's3' backend)
- AWS_REGION: AWS region (default: 'us-east-1')
- LISTING_S3_ENDPOINT_URL: Custom endpoint, e.g. for MinIO (optional)
- LISTING_S3_PUBLIC_BASE_URL: Base URL objects are served from (optional)
- LISTING_S3_PREFIX: Key prefix for uploaded objects (default: 'listing-images/')

Media host blob store:
- MEDIA_HOST_CLOUD_NAME, MEDIA_HOST_API_KEY, MEDIA_HOST_API_SECRET (required for 'media_host')
- MEDIA_HOST_FOLDER: Folder uploaded images are placed in (default: 'offer_images')
- MEDIA_HOST_BASE_URL: API base URL (default: 'https://api.cloudinary.com/v1_1')
"""
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from listingmedia.utils.validation import DEFAULT_MAX_FILE_SIZE, DEFAULT_MAX_FILES

StorageBackend = Literal['local', 's3', 'media_host']


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True,
    )

    storage_backend: StorageBackend = Field(default='local', alias='LISTING_STORAGE_BACKEND')

    # Local disk storage
    upload_dir: str = Field(default='uploads', alias='LISTING_UPLOAD_DIR')
    public_url_prefix: str = Field(default='/uploads', alias='LISTING_PUBLIC_URL_PREFIX')

    # Upload limits
    max_files: int = Field(default=DEFAULT_MAX_FILES, gt=0, alias='LISTING_MAX_FILES')
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0, alias='LISTING_MAX_FILE_SIZE')

    # Blob deletion
    delete_timeout: float = Field(default=10.0, gt=0, alias='LISTING_DELETE_TIMEOUT')
    delete_concurrency: int = Field(default=5, gt=0, alias='LISTING_DELETE_CONCURRENCY')
    wait_for_deletions: bool = Field(default=False, alias='LISTING_WAIT_FOR_DELETIONS')

    # Record storage
    data_dir: str | None = Field(default=None, alias='LISTING_DATA_DIR')

    # Debug settings
    debug: bool = Field(default=False, alias='LISTING_DEBUG')

    # S3 (only needed for the 's3' backend)
    s3_bucket: str | None = Field(default=None, alias='LISTING_S3_BUCKET')
    aws_region: str = Field(default='us-east-1', alias='AWS_REGION')
    s3_endpoint_url: str | None = Field(default=None, alias='LISTING_S3_ENDPOINT_URL')
    s3_public_base_url: str | None = Field(default=None, alias='LISTING_S3_PUBLIC_BASE_URL')
    s3_prefix: str = Field(default='listing-images/', alias='LISTING_S3_PREFIX')

    # Media host (only needed for the 'media_host' backend)
    media_host_cloud_name: str | None = Field(default=None, alias='MEDIA_HOST_CLOUD_NAME')
    media_host_api_key: str | None = Field(default=None, alias='MEDIA_HOST_API_KEY')
    media_host_api_secret: str | None = Field(default=None, alias='MEDIA_HOST_API_SECRET')
    media_host_folder: str = Field(default='offer_images', alias='MEDIA_HOST_FOLDER')
    media_host_base_url: str = Field(
        default='https://api.cloudinary.com/v1_1',
        alias='MEDIA_HOST_BASE_URL'
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
