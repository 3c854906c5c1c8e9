"""Normalization of loosely shaped request fields into typed url lists."""
from collections.abc import Iterable

UrlListInput = str | Iterable[str] | None


def normalize_url_list(value: UrlListInput, split_commas: bool = True) -> list[str]:
    """
    Normalize a url list field as it arrives from a form or query string.

    Accepts None, a single url, or a list of urls. With ``split_commas``
    each entry may itself be a comma-separated list of urls. Whitespace is
    trimmed, empty entries are dropped and repeated urls keep their first
    position.

    :param value: Raw field value
    :param split_commas: Split entries on commas (default True)
    :return: Ordered list of unique urls
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]

    urls: list[str] = []
    seen: set[str] = set()
    for entry in value:
        for part in (entry.split(',') if split_commas else [entry]):
            url = part.strip()
            if url and url not in seen:
                seen.add(url)
                urls.append(url)
    return urls


def normalize_optional_url_list(value: UrlListInput) -> list[str] | None:
    """
    Normalize a list of already attached urls, keeping None to mean "field not sent".

    Attached urls may contain commas, so entries are never split.
    """
    if value is None:
        return None
    return normalize_url_list(value, split_commas=False)
