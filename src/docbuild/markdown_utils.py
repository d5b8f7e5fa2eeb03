"""Markdown scanning helpers shared by the scanner, link checker and renderer."""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from urllib.parse import unquote

from docbuild.html_utils import element_ids, strip_tags
from docbuild.schemas import Heading

_FENCE_OPEN_RE = re.compile(r"^[ \t]*(`{3,}|~{3,})(.*)$")
_INLINE_CODE_RE = re.compile(r"(?<!`)(`+)(?!`)(.+?)(?<!`)\1(?!`)")
_HTML_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.+?)[ \t]*$", re.MULTILINE)
_CLOSING_HASHES_RE = re.compile(r"[ \t]+#+$")
_MD_LINK_TEXT_RE = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")
_EMPHASIS_RE = re.compile(r"[*_`~]")
_SLUG_STRIP_RE = re.compile(r"[^\w\s-]", re.UNICODE)
_WHITESPACE_RE = re.compile(r"\s")
_HYPHEN_RUN_RE = re.compile(r"-{2,}")

# [text](target "title"), text may hold one level of nested brackets (image links).
_MD_LINK_RE = re.compile(
    r"(!?)\[((?:[^\[\]]|\[[^\[\]]*\])*)\]\(\s*(<[^>]*>|[^\s)]+)(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)"
)
_REF_DEFINITION_RE = re.compile(r"^ {0,3}\[([^\]]+)\]:[ \t]*<?([^\s>]+)>?", re.MULTILINE)
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


@dataclass(frozen=True)
class MarkdownLink:
    """A link target found in Markdown text."""

    target: str
    offset: int
    image: bool = False


def mask_code(text: str, *, inline_code: bool = True) -> str:
    """Blank out fenced code blocks, inline code spans and HTML comments.

    Masked characters become spaces and newlines are kept, so offsets and line
    numbers in the result match the original text. An unterminated fence masks
    everything up to the end of the text. With ``inline_code=False`` backtick
    spans are left alone.
    """
    out: list[str] = []
    fence_char: str | None = None
    fence_len = 0
    for line in text.splitlines(keepends=True):
        body = line.rstrip("\r\n")
        if fence_char is None:
            match = _FENCE_OPEN_RE.match(body)
            if match and not (match.group(1)[0] == "`" and "`" in match.group(2)):
                fence_char = match.group(1)[0]
                fence_len = len(match.group(1))
                out.append(_blank(line))
                continue
            out.append(line)
            continue
        stripped = body.strip()
        if (
            stripped
            and set(stripped) == {fence_char}
            and len(stripped) >= fence_len
        ):
            fence_char = None
        out.append(_blank(line))
    masked = "".join(out)
    if inline_code:
        masked = _INLINE_CODE_RE.sub(lambda m: _blank(m.group(0)), masked)
    return _HTML_COMMENT_RE.sub(lambda m: _blank(m.group(0)), masked)


def _blank(segment: str) -> str:
    return "".join(ch if ch in "\r\n" else " " for ch in segment)


class LineIndex:
    """Map character offsets to 1-based line numbers."""

    def __init__(self, text: str) -> None:
        self._starts = [0]
        self._starts.extend(i + 1 for i, ch in enumerate(text) if ch == "\n")

    def line_of(self, offset: int) -> int:
        return bisect.bisect_right(self._starts, offset)


def slugify(title: str) -> str:
    """Convert a heading title to its anchor id.

    Lowercase, punctuation stripped, each whitespace character turned into a hyphen.
    """
    text = strip_tags(title)
    text = _MD_LINK_TEXT_RE.sub(r"\1", text)
    text = _EMPHASIS_RE.sub("", text)
    text = text.strip().lower()
    text = _SLUG_STRIP_RE.sub("", text)
    return _WHITESPACE_RE.sub("-", text)


def extract_headings(text: str, masked: str | None = None) -> list[Heading]:
    """Find ATX headings outside code and compute their anchors.

    Repeated slugs get ``-1``, ``-2`` suffixes in document order.
    """
    if masked is None:
        masked = mask_code(text)
    headings: list[Heading] = []
    seen: dict[str, int] = {}
    for match in _HEADING_RE.finditer(masked):
        level = len(match.group(1))
        raw_title = text[match.start(2) : match.end(2)]
        raw_title = _CLOSING_HASHES_RE.sub("", raw_title).strip()
        explicit = tuple(element_ids(raw_title))
        title = strip_tags(raw_title).strip()
        base = slugify(title)
        count = seen.get(base, 0)
        seen[base] = count + 1
        anchor = base if count == 0 else f"{base}-{count}"
        headings.append(
            Heading(
                level=level,
                title=title,
                anchor=anchor,
                offset=match.start(),
                explicit_anchors=explicit,
            )
        )
    return headings


def anchor_set(headings: list[Heading]) -> set[str]:
    """All fragments that reach some heading, lowercased."""
    anchors: set[str] = set()
    for heading in headings:
        anchors.add(heading.anchor.lower())
        anchors.add(_HYPHEN_RUN_RE.sub("-", heading.anchor.lower()))
        anchors.update(anchor.lower() for anchor in heading.explicit_anchors)
    return anchors


def find_markdown_links(masked: str) -> list[MarkdownLink]:
    """Collect inline link/image targets and reference definitions from masked text."""
    links: list[MarkdownLink] = []
    _collect_inline_links(masked, 0, links)
    for match in _REF_DEFINITION_RE.finditer(masked):
        # GitBook footnote definitions look the same but start with "^".
        if match.group(1).startswith("^"):
            continue
        links.append(MarkdownLink(target=match.group(2), offset=match.start()))
    links.sort(key=lambda link: link.offset)
    return links


def _collect_inline_links(text: str, base: int, links: list[MarkdownLink]) -> None:
    for match in _MD_LINK_RE.finditer(text):
        target = match.group(3)
        if target.startswith("<") and target.endswith(">"):
            target = target[1:-1]
        links.append(
            MarkdownLink(
                target=target.strip(),
                offset=base + match.start(),
                image=bool(match.group(1)),
            )
        )
        inner = match.group(2)
        if "](" in inner:
            _collect_inline_links(inner, base + match.start(2), links)


def is_external(target: str) -> bool:
    """True for targets with a URL scheme (http:, mailto:, data:) or protocol-relative."""
    return bool(_SCHEME_RE.match(target)) or target.startswith("//")


def split_fragment(target: str) -> tuple[str, str | None]:
    """Split ``path#anchor`` into an unquoted path and the raw fragment."""
    path, sep, fragment = target.partition("#")
    path = path.split("?", 1)[0]
    return unquote(path), (fragment if sep else None)
