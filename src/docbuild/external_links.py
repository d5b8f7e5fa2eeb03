"""Opt-in reachability check for external http(s) links."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Mapping

import httpx

from docbuild.config import DOCBUILD_EXTERNAL_CONCURRENCY
from docbuild.exceptions import FetchError
from docbuild.http_utils import new_client, probe_url
from docbuild.links import iter_references
from docbuild.markdown_utils import LineIndex
from docbuild.schemas import Page, ValidationIssue
from docbuild.schemas.issues import warning

logger = logging.getLogger(__name__)

_HTTP_PREFIXES = ("http://", "https://")


def collect_external_urls(pages: Mapping[str, Page]) -> dict[str, list[tuple[str, int, int]]]:
    """Map each external URL to the (path, offset, line) locations linking it."""
    locations: dict[str, list[tuple[str, int, int]]] = defaultdict(list)
    for path in sorted(pages):
        page = pages[path]
        lines = LineIndex(page.raw_text)
        for reference in iter_references(page):
            if reference.target.lower().startswith(_HTTP_PREFIXES):
                url = reference.target.split("#", 1)[0]
                locations[url].append((path, reference.offset, lines.line_of(reference.offset)))
    return dict(locations)


async def check_external_links(
    pages: Mapping[str, Page],
    *,
    client: httpx.AsyncClient | None = None,
    concurrency: int = DOCBUILD_EXTERNAL_CONCURRENCY,
) -> list[ValidationIssue]:
    """Probe every distinct external URL once and warn about unreachable ones.

    Args:
        pages: Loaded pages keyed by path.
        client: Optional shared client; one is created when omitted.
        concurrency: Maximum number of requests in flight.

    Returns:
        One warning per location of each URL that failed or answered 4xx/5xx.
    """
    locations = collect_external_urls(pages)
    if not locations:
        return []

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def probe(http_client: httpx.AsyncClient, url: str) -> tuple[str, str | None]:
        async with semaphore:
            try:
                status = await probe_url(url, client=http_client)
            except FetchError as exc:
                logger.debug("External link %s unreachable: %s", url, exc)
                return url, str(exc)
        if status >= 400:
            return url, f"HTTP {status}"
        return url, None

    async def run(http_client: httpx.AsyncClient) -> list[tuple[str, str | None]]:
        return await asyncio.gather(*(probe(http_client, url) for url in sorted(locations)))

    if client is not None:
        results = await run(client)
    else:
        async with new_client() as owned_client:
            results = await run(owned_client)

    issues: list[ValidationIssue] = []
    for url, problem in results:
        if problem is None:
            continue
        logger.info("External link failed", extra={"url": url, "problem": problem})
        for path, offset, line in locations[url]:
            issues.append(
                warning(
                    f"External link {url} is unreachable ({problem})",
                    "unreachable-url",
                    path=path,
                    offset=offset,
                    line=line,
                )
            )
    return issues
