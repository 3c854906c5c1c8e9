"""
Image attachment reconciliation.

Computes the next image list of a record and the images whose blobs should
be removed, for create, update and delete. Everything here is pure: remote
deletion is carried out by the caller from the returned worklist.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict

from listingmedia.exceptions import ValidationError
from listingmedia.models.image import ImageRef
from listingmedia.models.record import AttachmentRecord


class Reconciliation(BaseModel):
    """Outcome of an update: the new image list and the images dropped from it."""
    model_config = ConfigDict(frozen=True)

    next: list[ImageRef]
    to_delete: list[ImageRef]

    @property
    def next_urls(self) -> list[str]:
        return [image.url for image in self.next]

    @property
    def delete_urls(self) -> list[str]:
        return [image.url for image in self.to_delete]


def dedupe_by_url(images: Iterable[ImageRef]) -> list[ImageRef]:
    """Drop repeated urls, keeping the first occurrence and the original order."""
    seen: set[str] = set()
    unique: list[ImageRef] = []
    for image in images:
        if image.url in seen:
            continue
        seen.add(image.url)
        unique.append(image)
    return unique


def deletable(images: Iterable[ImageRef]) -> list[ImageRef]:
    """Images that have something to delete remotely (a storage key)."""
    return [image for image in images if image.has_storage_key]


def validate_uploaded(uploaded: Sequence[ImageRef]) -> None:
    """
    Reject an upload batch with empty or repeated urls.

    :param uploaded: Images returned by the upload pipeline
    :raises ValidationError: If a url is empty or appears twice
    """
    seen: set[str] = set()
    for image in uploaded:
        if not image.url or not image.url.strip():
            raise ValidationError("Uploaded image url cannot be empty")
        if image.url in seen:
            raise ValidationError(f"Duplicate uploaded image url: {image.url}")
        seen.add(image.url)


def attach_on_create(uploaded: Sequence[ImageRef], external_urls: Sequence[str]) -> list[ImageRef]:
    """
    Build the image list of a new record.

    Uploaded images come first, then external urls (which have no storage
    key). When a url repeats, the first occurrence wins, so an upload beats
    an external link with the same url.

    :param uploaded: Images already stored by the upload pipeline
    :param external_urls: Bare urls supplied without an upload
    :return: Image list without repeated urls (may be empty)
    :raises ValidationError: If the upload batch is malformed or a url is empty
    """
    validate_uploaded(uploaded)
    for url in external_urls:
        if not url or not url.strip():
            raise ValidationError("External image url cannot be empty")

    return dedupe_by_url([*uploaded, *(ImageRef(url=url) for url in external_urls)])


def reconcile_on_update(
    current: Sequence[ImageRef],
    uploaded: Sequence[ImageRef],
    keep_urls: Iterable[str],
    explicit_delete_urls: Iterable[str] | None = None
) -> Reconciliation:
    """
    Compute the image list of a record after an update.

    An explicit delete list, when given, takes precedence: every url in it
    is dropped even if it is also in ``keep_urls``. Without one,
    ``keep_urls`` is the full retention set and every other current image is
    dropped. New uploads are appended after the retained images.

    :param current: The record's images before the update
    :param uploaded: Images uploaded for this update
    :param keep_urls: Current urls to retain
    :param explicit_delete_urls: Current urls to drop, or None
    :return: The next image list and the dropped images
    :raises ValidationError: If the upload batch is malformed
    """
    validate_uploaded(uploaded)

    if explicit_delete_urls is not None:
        drop = set(explicit_delete_urls)
        unknown = drop.difference(image.url for image in current)
        if unknown:
            logger.debug(f"Ignoring delete request for unattached urls: {sorted(unknown)}")
        retained = [image for image in current if image.url not in drop]
    else:
        keep = set(keep_urls)
        retained = [image for image in current if image.url in keep]

    retained_urls = {image.url for image in retained}
    added = [image for image in uploaded if image.url not in retained_urls]
    next_images = dedupe_by_url([*retained, *added])

    next_urls = {image.url for image in next_images}
    to_delete = dedupe_by_url(image for image in current if image.url not in next_urls)

    return Reconciliation(next=next_images, to_delete=to_delete)


def detach_on_delete(record: AttachmentRecord) -> list[ImageRef]:
    """The deletion worklist of a record being removed: all of its images."""
    return list(record.images)
