"""Check manifest entries, in-page links and directive references."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Iterator, Mapping
from urllib.parse import unquote

from docbuild.config import DEFAULT_README_FILE, DOCBUILD_SUMMARY_FILE
from docbuild.exceptions import PageLoadError
from docbuild.filesystem import FileSystem, normalize_page_path
from docbuild.html_utils import find_html_references
from docbuild.markdown_utils import (
    LineIndex,
    anchor_set,
    extract_headings,
    find_markdown_links,
    is_external,
    mask_code,
    split_fragment,
)
from docbuild.schemas import DirectiveKind, ManifestNode, Page, ValidationIssue
from docbuild.schemas.issues import error, warning


@dataclass(frozen=True)
class Reference:
    """A link target found in a page, with where it came from."""

    target: str
    offset: int
    source: str


def check_links(
    manifest: ManifestNode,
    pages: Mapping[str, Page],
    *,
    file_system: FileSystem | None = None,
    load_errors: Mapping[str, PageLoadError] | None = None,
    manifest_source: str = DOCBUILD_SUMMARY_FILE,
    readme: str = DEFAULT_README_FILE,
) -> list[ValidationIssue]:
    """Validate manifest paths and every relative reference inside pages.

    Manifest entries whose page is missing (or failed to load) are errors.
    Page links, inline HTML links and directive references that resolve to
    neither a page, a heading anchor, nor an existing file are warnings.

    Args:
        manifest: Root of the manifest tree.
        pages: Loaded pages keyed by normalized path.
        file_system: Used to accept links to non-page files such as images.
        load_errors: Load failures keyed by path, reported in place of a
            generic missing-page error.
        manifest_source: Manifest path used in issue locations.
        readme: Landing page that a link to the book root (``./``) opens.

    Returns:
        Issues in manifest order, then page order.
    """
    issues = _check_manifest(manifest, pages, load_errors or {}, manifest_source)
    anchors = _AnchorCache(pages)
    for path in sorted(pages):
        issues.extend(_check_page(pages[path], pages, anchors, file_system, readme))
    return issues


def _check_manifest(
    manifest: ManifestNode,
    pages: Mapping[str, Page],
    load_errors: Mapping[str, PageLoadError],
    manifest_source: str,
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    seen: set[str] = set()
    for node in manifest.iter_nodes():
        if node.path is None:
            continue
        if node.path in seen:
            issues.append(
                warning(
                    f"Page {node.path} is listed more than once",
                    "duplicate-entry",
                    path=manifest_source,
                    line=node.line,
                )
            )
        seen.add(node.path)
        if node.path in pages:
            continue
        load_error = load_errors.get(node.path)
        if load_error is not None:
            issues.append(
                error(str(load_error), load_error.kind.value, path=manifest_source, line=node.line)
            )
            continue
        issues.append(
            error(
                f"Manifest entry '{node.title}' points at missing page: {node.path}",
                "missing-page",
                path=manifest_source,
                line=node.line,
            )
        )
    return issues


class _AnchorCache:
    def __init__(self, pages: Mapping[str, Page]) -> None:
        self._pages = pages
        self._anchors: dict[str, set[str]] = {}

    def get(self, path: str) -> set[str]:
        if path not in self._anchors:
            self._anchors[path] = anchor_set(extract_headings(self._pages[path].raw_text))
        return self._anchors[path]


def iter_references(page: Page, masked: str | None = None) -> Iterator[Reference]:
    """Yield Markdown links, inline HTML links and directive references of a page."""
    if masked is None:
        masked = mask_code(page.raw_text)
    for link in find_markdown_links(masked):
        yield Reference(link.target, link.offset, "image" if link.image else "link")
    for html_ref in find_html_references(masked):
        yield Reference(html_ref.target, html_ref.offset, html_ref.tag)
    for directive in page.directives:
        target = _directive_target(directive.kind, directive.attributes, directive.argument)
        if target:
            yield Reference(target, directive.start_offset, directive.kind.value)


def _directive_target(
    kind: DirectiveKind, attributes: Mapping[str, str], argument: str | None
) -> str | None:
    if kind in (DirectiveKind.CONTENT_REF, DirectiveKind.EMBED):
        return attributes.get("url") or argument
    if kind is DirectiveKind.INCLUDE:
        return argument or attributes.get("src") or attributes.get("path")
    if kind is DirectiveKind.FILE:
        return attributes.get("src") or argument
    return None


def resolve_target(page_path: str, target: str) -> tuple[str, str | None]:
    """Resolve a relative link against the linking page.

    A leading ``/`` is relative to the book root. Returns the normalized path
    (the page itself for a bare ``#anchor``) and the fragment, if any.
    """
    path, fragment = split_fragment(target)
    if not path:
        return page_path, fragment
    if path.startswith("/"):
        joined = path.lstrip("/")
    else:
        joined = posixpath.join(posixpath.dirname(page_path), path)
    return normalize_page_path(joined), fragment


def _check_page(
    page: Page,
    pages: Mapping[str, Page],
    anchors: _AnchorCache,
    file_system: FileSystem | None,
    readme: str,
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    lines = LineIndex(page.raw_text)
    for reference in iter_references(page):
        target = reference.target
        if not target or target == "#" or is_external(target):
            continue
        line = lines.line_of(reference.offset)
        resolved, fragment = resolve_target(page.path, target)

        if resolved == ".." or resolved.startswith("../"):
            issues.append(
                warning(
                    f"{reference.source} target '{target}' points outside the book",
                    "dangling-link",
                    path=page.path,
                    offset=reference.offset,
                    line=line,
                )
            )
            continue

        page_path = page_for(resolved, pages, readme=readme)
        if page_path is None:
            if file_system is not None and resolved and file_system.exists(resolved):
                continue
            issues.append(
                warning(
                    f"{reference.source} target '{target}' does not resolve to a page or file",
                    "dangling-link",
                    path=page.path,
                    offset=reference.offset,
                    line=line,
                )
            )
            continue

        if fragment:
            wanted = unquote(fragment).strip().lower()
            if wanted and wanted not in anchors.get(page_path):
                issues.append(
                    warning(
                        f"Anchor '#{fragment}' not found in {page_path}",
                        "dangling-anchor",
                        path=page.path,
                        offset=reference.offset,
                        line=line,
                    )
                )
    return issues


def page_for(
    resolved: str, pages: Mapping[str, Page], *, readme: str = DEFAULT_README_FILE
) -> str | None:
    """Return the page a resolved link opens, or None.

    A directory opens its ``README.md``; the book root opens ``readme``.
    """
    if resolved in pages:
        return resolved
    index = posixpath.join(resolved, DEFAULT_README_FILE) if resolved else normalize_page_path(readme)
    if index in pages:
        return index
    return None


