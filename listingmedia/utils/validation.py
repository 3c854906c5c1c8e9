"""Shared validation utilities for listingmedia."""
from collections.abc import Sequence

from listingmedia.exceptions import ValidationError
from listingmedia.models.image import UploadedFile

# Default constraints
DEFAULT_MAX_FILES = 10
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_PAGE_SIZE = 100
IMAGE_CONTENT_TYPE_PREFIX = 'image/'


def validate_non_empty(value: str, field_name: str) -> None:
    """
    Validate that a string value is non-empty.

    :param value: Value to validate
    :param field_name: Name of the field for error messages
    :raises ValidationError: If value is empty or whitespace-only
    """
    if not value or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty")


def validate_id(value: str, field_name: str = "ID") -> None:
    """
    Validate that an ID is non-empty and usable as a file name.

    :param value: ID value to validate
    :param field_name: Name of the field for error messages (default "ID")
    :raises ValidationError: If ID is empty or contains a path separator
    """
    validate_non_empty(value, field_name)
    if '/' in value or '\\' in value or value in ('.', '..'):
        raise ValidationError(f"Invalid {field_name}: {value}")


def validate_storage_key(key: str) -> None:
    """
    Validate a blob storage key.

    :param key: Key to validate
    :raises ValidationError: If the key is empty or escapes its directory
    """
    validate_non_empty(key, "Storage key")
    if '..' in key.split('/') or key.startswith('/') or '\\' in key:
        raise ValidationError(f"Invalid storage key: {key}")


def validate_image_file(file: UploadedFile, max_file_size: int = DEFAULT_MAX_FILE_SIZE) -> None:
    """
    Validate a single uploaded image.

    :param file: File to validate
    :param max_file_size: Maximum size in bytes (default 10 MiB)
    :raises ValidationError: If the file is empty, too large or not an image
    """
    validate_non_empty(file.filename, "Filename")
    if file.size == 0:
        raise ValidationError(f"File '{file.filename}' is empty")
    if file.size > max_file_size:
        raise ValidationError(
            f"File '{file.filename}' exceeds the maximum size of {max_file_size} bytes"
        )
    if not file.content_type.startswith(IMAGE_CONTENT_TYPE_PREFIX):
        raise ValidationError(
            f"File '{file.filename}' is not an image ({file.content_type})"
        )


def validate_upload_batch(
    files: Sequence[UploadedFile],
    max_files: int = DEFAULT_MAX_FILES,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
) -> None:
    """
    Validate the files of one request.

    :param files: Files to validate
    :param max_files: Maximum number of files (default 10)
    :param max_file_size: Maximum size of each file in bytes (default 10 MiB)
    :raises ValidationError: If there are too many files or any file is invalid
    """
    if len(files) > max_files:
        raise ValidationError(f"Cannot upload more than {max_files} files at once")
    for file in files:
        validate_image_file(file, max_file_size)


def validate_page(page: int, limit: int, max_limit: int = DEFAULT_MAX_PAGE_SIZE) -> None:
    """
    Validate pagination parameters.

    :param page: 1-based page number
    :param limit: Items per page
    :param max_limit: Largest allowed page size (default 100)
    :raises ValidationError: If page or limit is out of range
    """
    if page < 1:
        raise ValidationError("Page must be at least 1")
    if limit < 1 or limit > max_limit:
        raise ValidationError(f"Limit must be between 1 and {max_limit}")
