from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from listingmedia.models.image import ImageRef

T = TypeVar('T')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    return uuid.uuid4().hex


class AttachmentRecord(BaseModel):
    """
    Any entity that owns an ordered list of images.

    ``images`` is unique by url. The reconciler keeps it that way; records
    are never built with a hand-assembled image list. Fields also accept
    and serialize to their camelCase document names (``createdAt``).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_record_id)
    images: list[ImageRef] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def image_urls(self) -> list[str]:
        return [image.url for image in self.images]


class Property(AttachmentRecord):
    title: str
    description: str | None = None
    type: str | None = None
    subtype: str | None = None
    status: str | None = None
    available_for: str | None = None
    price: str | None = None
    location: str | None = None
    local_address: str | None = None
    area: str | None = None
    google_drive_image: str | None = None
    google_drive_video: str | None = None
    google_map_link: str | None = None
    available_from: str | None = None
    property_info: str | None = None
    nearby_places: str | None = Field(default=None, alias='nearbyplaces')
    property_age: str | None = None
    property_facing: str | None = None
    property_floor: str | None = None
    property_total_floor: str | None = None
    agreement: str | None = None
    amenities: str | None = None
    features: str | None = None


class Offer(AttachmentRecord):
    is_active: bool = True


class Page(BaseModel, Generic[T]):
    """One page of a record listing."""
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.pages
