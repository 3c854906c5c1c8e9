"""Abstract contract for remote image storage."""
import time
from abc import ABC, abstractmethod

from listingmedia.models.image import ImageRef, UploadedFile


def timestamped_name(name: str) -> str:
    """Prefix a name with the current time in milliseconds, e.g. '1718000000000-house'."""
    return f'{int(time.time() * 1000)}-{name}'


class BlobStore(ABC):
    """Contract for storing image files and deleting them by storage key.

    Implementations: local disk, S3, third-party media host.
    """

    name: str = 'blob'

    @abstractmethod
    async def upload(self, file: UploadedFile) -> ImageRef:
        """Store a file and return its url and storage key.

        :raises StorageError: If the file could not be stored
        """

    @abstractmethod
    async def delete(self, storage_key: str) -> None:
        """Delete a stored file.

        :raises StorageError: If the file could not be deleted
        """

    async def close(self) -> None:
        """Release any connections held by the store."""
