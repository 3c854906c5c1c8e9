from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImageRef(BaseModel):
    """
    One image attached to a record.

    ``storage_key`` is the identifier the blob store needs to delete the file.
    It is absent for images linked from an external URL.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    storage_key: str | None = Field(default=None, alias='public_id')

    @field_validator('url')
    @classmethod
    def check_url(cls, url: str) -> str:
        if not url or not url.strip():
            raise ValueError('url cannot be empty')
        return url

    @property
    def has_storage_key(self) -> bool:
        return bool(self.storage_key)


class UploadedFile(BaseModel):
    """A raw file received from a client, before it is stored."""
    filename: str
    content: bytes
    content_type: str = 'application/octet-stream'

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def stem(self) -> str:
        return os.path.splitext(os.path.basename(self.filename))[0]

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1].lower()
