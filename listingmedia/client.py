import logging
from collections import deque
from typing import Any

import httpx
from httpx import Response, Timeout
from loguru import logger

from listingmedia.exceptions import APIError, NetworkError

# Suppress verbose httpx debug logging
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

USER_AGENT = 'listingmedia/0.1.0'

SENSITIVE_KEYS = {'api_secret', 'signature', 'secret', 'token', 'password'}

# Multipart file tuple accepted by httpx: (filename, content, content_type)
FileField = tuple[str, bytes, str]


def _sanitize_for_logging(fields: dict[str, Any] | None) -> dict[str, Any] | None:
    """Mask secrets in form fields before they are logged."""
    if fields is None:
        return None
    return {
        key: '[REDACTED]' if key.lower() in SENSITIVE_KEYS else value
        for key, value in fields.items()
    }


def _error_message(response: Response) -> str:
    """Pull the message out of an error body like {"error": {"message": "..."}}."""
    try:
        error = response.json().get('error', response.text)
    except ValueError:
        return response.text
    if isinstance(error, dict):
        return error.get('message', str(error))
    return str(error)


class Client:
    """Async HTTP/2 client for form and multipart APIs that answer in JSON."""

    def __init__(self, base_url: str, history_len: int = 30, timeout: float = 30.0) -> None:
        """
        :param base_url: Root url every request path is resolved against
        :param history_len: Number of responses kept in ``history`` (default 30)
        :param timeout: Default request timeout in seconds (default 30)
        """
        self.http2_client = httpx.AsyncClient(
            http2=True,
            base_url=base_url,
            headers={'accept': 'application/json', 'user-agent': USER_AGENT},
            timeout=Timeout(timeout=timeout)
        )
        self.history: deque[Response] = deque(maxlen=history_len)

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.http2_client.aclose()

    async def post_form(
        self,
        url: str,
        form: dict[str, Any],
        files: dict[str, FileField] | None = None,
        timeout: float | Timeout | None = None
    ) -> dict[str, Any]:
        """
        POST form fields, as multipart when files are attached and url-encoded otherwise.

        :param url: Request path
        :param form: Form fields
        :param files: Multipart file fields (optional)
        :param timeout: Optional per-request timeout (seconds or Timeout object)
        :return: JSON response body
        :raises NetworkError: On connection/timeout errors
        :raises APIError: On HTTP errors or non-JSON responses
        """
        logger.debug(
            f'POST form to {url}',
            form=_sanitize_for_logging(form),
            files=[name for name, _, _ in files.values()] if files else None
        )

        request_kwargs: dict[str, Any] = {'data': form, 'files': files}
        if timeout is not None:
            request_kwargs['timeout'] = timeout

        try:
            response = await self.http2_client.post(url, **request_kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise NetworkError(f"Network error: {e}") from e

        self.history.append(response)

        if response.status_code >= 400:
            raise APIError(f"HTTP {response.status_code}: {_error_message(response)}")

        try:
            body = response.json()
        except ValueError:
            raise APIError(f'Non-JSON response ({response.status_code}): {response.text}')
        logger.debug(f'Response ({response.status_code}), body: {body}')
        return body
