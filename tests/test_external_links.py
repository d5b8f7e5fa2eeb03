"""Tests for the opt-in external link probe."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docbuild.exceptions import FetchError
from docbuild.external_links import check_external_links, collect_external_urls
from docbuild.schemas import Page, Severity

PAGES = {
    "a.md": Page(
        path="a.md",
        raw_text="[docs](https://docs.example.com/guide#intro)\n\n[dead](https://dead.example.com)\n",
    ),
    "b.md": Page(
        path="b.md",
        raw_text='<a href="https://dead.example.com">again</a> [local](a.md) [mail](mailto:x@example.com)\n',
    ),
}


class TestCollectExternalUrls:
    """Tests for collect_external_urls."""

    def test_groups_locations_by_url(self) -> None:
        urls = collect_external_urls(PAGES)

        assert sorted(urls) == ["https://dead.example.com", "https://docs.example.com/guide"]
        assert urls["https://dead.example.com"] == [("a.md", 46, 3), ("b.md", 0, 1)]

    def test_ignores_code(self) -> None:
        pages = {"c.md": Page(path="c.md", raw_text="```\n[x](https://example.com)\n```\n")}

        assert collect_external_urls(pages) == {}


class TestCheckExternalLinks:
    """Tests for check_external_links."""

    @pytest.mark.asyncio
    async def test_warns_for_each_location_of_a_dead_url(self) -> None:
        async def fake_probe(url: str, *, client) -> int:
            return 404 if "dead" in url else 200

        with patch("docbuild.external_links.probe_url", new=AsyncMock(side_effect=fake_probe)) as probe:
            issues = await check_external_links(PAGES, client=MagicMock())

        assert probe.await_count == 2
        assert [(issue.location.path, issue.code) for issue in issues] == [
            ("a.md", "unreachable-url"),
            ("b.md", "unreachable-url"),
        ]
        assert all(issue.severity is Severity.WARNING for issue in issues)
        assert "HTTP 404" in issues[0].message

    @pytest.mark.asyncio
    async def test_fetch_error_becomes_warning(self) -> None:
        pages = {"a.md": PAGES["a.md"]}
        probe = AsyncMock(side_effect=FetchError("Failed to fetch https://docs.example.com/guide"))

        with patch("docbuild.external_links.probe_url", new=probe):
            issues = await check_external_links(pages, client=MagicMock())

        assert len(issues) == 2
        assert "Failed to fetch" in issues[0].message

    @pytest.mark.asyncio
    async def test_no_external_links_makes_no_requests(self) -> None:
        pages = {"a.md": Page(path="a.md", raw_text="[b](b.md)\n")}

        with patch("docbuild.external_links.new_client") as mock_new_client:
            issues = await check_external_links(pages)

        assert issues == []
        mock_new_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_creates_client_when_none_given(self) -> None:
        mock_client = AsyncMock()
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=None)

        with (
            patch("docbuild.external_links.new_client", return_value=mock_client),
            patch("docbuild.external_links.probe_url", new=AsyncMock(return_value=200)) as probe,
        ):
            issues = await check_external_links({"a.md": PAGES["a.md"]})

        assert issues == []
        assert probe.await_args.kwargs["client"] is mock_client
