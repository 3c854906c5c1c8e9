"""Pagination utilities for record listings."""
from collections.abc import Callable, Iterable
from typing import TypeVar

from listingmedia.models.record import AttachmentRecord, Page
from listingmedia.utils.validation import validate_page

R = TypeVar('R', bound=AttachmentRecord)


def paginate_items(
    records: Iterable[R],
    page: int = 1,
    limit: int = 10,
    predicate: Callable[[R], bool] | None = None
) -> Page[R]:
    """
    Slice records into one page, newest first.

    :param records: Records to page through
    :param page: 1-based page number (default 1)
    :param limit: Records per page (default 10)
    :param predicate: Optional filter applied before counting
    :return: The requested page with the total matching count
    :raises ValidationError: If page or limit is out of range
    """
    validate_page(page, limit)

    matching = [record for record in records if predicate is None or predicate(record)]
    matching.sort(key=lambda record: record.created_at, reverse=True)

    start = (page - 1) * limit
    return Page(
        items=matching[start:start + limit],
        total=len(matching),
        page=page,
        limit=limit,
    )
