"""Shared HTML utilities for inline HTML found in Markdown pages."""

from __future__ import annotations

import re
from dataclasses import dataclass

try:
    from bs4 import BeautifulSoup
except ImportError as exc:  # pragma: no cover - runtime dependency check
    raise RuntimeError(
        "BeautifulSoup4 is required for HTML parsing (pip install beautifulsoup4)."
    ) from exc


_REFERENCE_TAG_RE = re.compile(r"<(a|img|source|iframe)\b[^>]*>", re.IGNORECASE)
_REFERENCE_ATTRS = {"a": "href", "img": "src", "source": "src", "iframe": "src"}
_HTML_ELEMENT_RE = re.compile(
    r"</?(a|b|br|code|em|i|img|kbd|mark|span|strong|sub|sup)\b[^>]*>", re.IGNORECASE
)


@dataclass(frozen=True)
class HtmlReference:
    """A link target taken from an inline HTML element."""

    tag: str
    target: str
    offset: int


def find_html_references(text: str) -> list[HtmlReference]:
    """Collect ``href``/``src`` targets from inline HTML tags.

    ``text`` should already have code regions masked so that tags shown as
    examples are not picked up. Offsets point at the opening ``<``.
    """
    references: list[HtmlReference] = []
    for match in _REFERENCE_TAG_RE.finditer(text):
        tag_name = match.group(1).lower()
        soup = BeautifulSoup(match.group(0), "html.parser")
        tag = soup.find(tag_name)
        if tag is None:
            continue
        value = tag.get(_REFERENCE_ATTRS[tag_name])
        if isinstance(value, list):
            value = " ".join(value)
        if value and value.strip():
            references.append(
                HtmlReference(tag=tag_name, target=value.strip(), offset=match.start())
            )
    return references


def element_ids(fragment: str) -> list[str]:
    """Return the ``id`` (and legacy ``name``) attributes declared in a fragment."""
    if "<" not in fragment:
        return []
    soup = BeautifulSoup(fragment, "html.parser")
    ids: list[str] = []
    for tag in soup.find_all(True):
        for attr in ("id", "name"):
            value = tag.get(attr)
            if isinstance(value, str) and value.strip() and value.strip() not in ids:
                ids.append(value.strip())
    return ids


def strip_tags(fragment: str) -> str:
    """Drop HTML tags from a fragment, keeping the text.

    Only fragments holding recognizable HTML elements are parsed, so generic
    type names such as ``List<T>`` survive untouched.
    """
    if not _HTML_ELEMENT_RE.search(fragment):
        return fragment
    return BeautifulSoup(fragment, "html.parser").get_text()
