"""Compose a manifest and its pages into a navigable site."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Mapping

from docbuild.loader import front_matter_span
from docbuild.markdown_utils import extract_headings
from docbuild.schemas import (
    Directive,
    DirectiveNode,
    ManifestNode,
    Page,
    RenderedSite,
    SiteNode,
)

logger = logging.getLogger(__name__)

SITE_JSON = "site.json"
BOOK_MARKDOWN = "book.md"
NAV_TEXT = "nav.txt"


def render(manifest: ManifestNode, pages: Mapping[str, Page]) -> RenderedSite:
    """Walk the manifest in pre-order and pair each entry with its page.

    Pages that no manifest entry reaches are appended as unlisted nodes,
    sorted by path.
    """
    listed: set[str] = set(manifest.iter_paths())
    nodes = [_render_node(child, pages) for child in manifest.children]
    unlisted = [
        _page_node(pages[path], title=_fallback_title(pages[path]), listed=False)
        for path in sorted(pages)
        if path not in listed
    ]
    return RenderedSite(title=manifest.title, nodes=nodes, unlisted=unlisted)


def _render_node(node: ManifestNode, pages: Mapping[str, Page]) -> SiteNode:
    page = pages.get(node.path) if node.path else None
    if page is not None:
        site_node = _page_node(page, title=node.title, listed=True)
    else:
        site_node = SiteNode(title=node.title, path=node.path, url=node.url)
    site_node.children = [_render_node(child, pages) for child in node.children]
    return site_node


def _page_node(page: Page, *, title: str, listed: bool) -> SiteNode:
    description = page.front_matter.get("description")
    body = page.raw_text[front_matter_span(page.raw_text) :]
    return SiteNode(
        title=title,
        path=page.path,
        description=str(description).strip() if description else None,
        content=body.strip("\n"),
        headings=extract_headings(page.raw_text),
        directives=build_directive_tree(page.directives),
        listed=listed,
    )


def _fallback_title(page: Page) -> str:
    title = page.front_matter.get("title")
    if title:
        return str(title)
    for heading in extract_headings(page.raw_text):
        if heading.level == 1:
            return heading.title
    return page.path


def build_directive_tree(directives: Iterable[Directive]) -> list[DirectiveNode]:
    """Nest a flat, document-ordered directive list by depth."""
    roots: list[DirectiveNode] = []
    stack: list[tuple[int, DirectiveNode]] = []
    for directive in sorted(directives, key=lambda d: d.start_offset):
        node = DirectiveNode(
            kind=directive.kind,
            attributes=dict(directive.attributes),
            argument=directive.argument,
            start_offset=directive.start_offset,
            end_offset=directive.end_offset,
        )
        while stack and stack[-1][0] >= directive.depth:
            stack.pop()
        if stack:
            stack[-1][1].children.append(node)
        else:
            roots.append(node)
        stack.append((directive.depth, node))
    return roots


def count_pages(site: RenderedSite) -> int:
    """Count nodes that carry page content."""
    return sum(1 for node in site.walk() if node.content is not None)


def count_directives(nodes: Iterable[DirectiveNode]) -> int:
    total = 0
    for node in nodes:
        total += 1
        total += count_directives(node.children)
    return total


def format_site_summary(site: RenderedSite) -> str:
    """Summary lines describing a rendered site."""
    directives = sum(count_directives(node.directives) for node in site.walk())
    lines = [
        f"Title: {site.title}",
        f"Pages: {count_pages(site)}",
        f"Unlisted: {len(site.unlisted)}",
        f"Directives: {directives}",
    ]
    return "\n".join(lines)


def format_nav(site: RenderedSite) -> str:
    """Indented navigation tree, unlisted pages last."""
    lines = [site.title]
    lines.extend(_nav_lines(site.nodes, 1))
    if site.unlisted:
        lines.append("(unlisted)")
        lines.extend(_nav_lines(site.unlisted, 1))
    return "\n".join(lines) + "\n"


def _nav_lines(nodes: Iterable[SiteNode], indent: int) -> list[str]:
    lines: list[str] = []
    for node in nodes:
        label = node.title
        if node.path:
            label += f" ({node.path})"
        elif node.url:
            label += f" <{node.url}>"
        lines.append(" " * (indent * 4) + label)
        lines.extend(_nav_lines(node.children, indent + 1))
    return lines


def format_book(site: RenderedSite) -> str:
    """All pages in navigation order as one Markdown document."""
    blocks: list[str] = [f"# {site.title}", format_site_summary(site)]
    toc = _render_toc(site.nodes)
    if toc:
        blocks.append("## Contents\n" + toc)
    for node in site.walk():
        blocks.extend(_render_page(node))
    return "\n\n".join(block for block in blocks if block).strip() + "\n"


def _render_toc(nodes: Iterable[SiteNode], indent: int = 0) -> str:
    lines: list[str] = []
    for node in nodes:
        lines.append("  " * indent + "- " + node.title)
        if node.children:
            lines.append(_render_toc(node.children, indent + 1))
    return "\n".join(lines)


def _render_page(node: SiteNode) -> list[str]:
    if node.content is None:
        return []
    marker = "" if node.listed else " (unlisted)"
    blocks = [f"<!-- page: {node.path}{marker} -->"]
    if node.description:
        blocks.append(f"> {node.description}")
    blocks.append(node.content)
    return blocks


def write_site(site: RenderedSite, out_dir: Path) -> list[Path]:
    """Write ``site.json``, ``book.md`` and ``nav.txt`` into ``out_dir``.

    Output depends only on the site, so unchanged input renders byte-identical files.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(site.model_dump(mode="json"), indent=2, sort_keys=True, ensure_ascii=False)
    outputs = {
        SITE_JSON: payload + "\n",
        BOOK_MARKDOWN: format_book(site),
        NAV_TEXT: format_nav(site),
    }
    written: list[Path] = []
    for name, content in outputs.items():
        target = out_dir / name
        target.write_text(content, encoding="utf-8", newline="\n")
        written.append(target)
        logger.debug("Wrote %s", target)
    return written
