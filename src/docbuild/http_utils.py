"""HTTP utilities for probing external links with retry logic and connection pooling."""

from __future__ import annotations

import asyncio
from typing import Final

import httpx

from docbuild.config import (
    DOCBUILD_FETCH_BACKOFF_S,
    DOCBUILD_FETCH_MAX_RETRIES,
    DOCBUILD_FETCH_TIMEOUT_S,
    DOCBUILD_USER_AGENT,
)
from docbuild.exceptions import FetchError

RETRY_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})
# Servers that refuse HEAD answer with one of these; the probe retries with GET.
HEAD_UNSUPPORTED_CODES: Final[frozenset[int]] = frozenset({405, 501})

_MAX_REDIRECTS: Final[int] = 5


def new_client() -> httpx.AsyncClient:
    """Client configured with docbuild's timeout, user agent and redirect policy."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(DOCBUILD_FETCH_TIMEOUT_S),
        headers={"User-Agent": DOCBUILD_USER_AGENT},
        follow_redirects=True,
        max_redirects=_MAX_REDIRECTS,
    )


async def fetch_with_retries(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    method: str = "GET",
) -> httpx.Response:
    """Request a URL, retrying transient failures with exponential backoff.

    Args:
        url: The URL to request.
        client: Optional httpx.AsyncClient for connection pooling. If not
            provided, a new client is created for this request.
        method: HTTP method, ``GET`` or ``HEAD``.

    Returns:
        The first response whose status is not retryable (any 2xx-4xx status).

    Raises:
        FetchError: If every attempt failed with a network error or a
            retryable status.
    """
    last_exc: Exception | None = None

    async def do_fetch(http_client: httpx.AsyncClient) -> httpx.Response:
        nonlocal last_exc

        for attempt in range(DOCBUILD_FETCH_MAX_RETRIES + 1):
            try:
                response = await http_client.request(method, url)

                if response.status_code in RETRY_STATUS_CODES:
                    last_exc = FetchError(f"HTTP {response.status_code} from {url}")
                else:
                    return response
            except httpx.RequestError as exc:
                last_exc = exc

            if attempt < DOCBUILD_FETCH_MAX_RETRIES:
                backoff = DOCBUILD_FETCH_BACKOFF_S * (2**attempt)
                await asyncio.sleep(backoff)

        raise FetchError(f"Failed to fetch {url}: {last_exc}")

    if client is not None:
        return await do_fetch(client)

    async with new_client() as owned_client:
        return await do_fetch(owned_client)


async def probe_url(url: str, *, client: httpx.AsyncClient | None = None) -> int:
    """Return the status code of ``url``, using HEAD and falling back to GET.

    Raises:
        FetchError: If the URL cannot be reached after retries.
    """
    response = await fetch_with_retries(url, client=client, method="HEAD")
    if response.status_code in HEAD_UNSUPPORTED_CODES:
        response = await fetch_with_retries(url, client=client, method="GET")
    return response.status_code
