"""Parse SUMMARY.md-style table of contents into a manifest tree."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import quote

from docbuild.config import DOCBUILD_SUMMARY_FILE
from docbuild.filesystem import normalize_page_path
from docbuild.markdown_utils import is_external, mask_code, split_fragment
from docbuild.schemas import ManifestNode, ValidationIssue
from docbuild.schemas.issues import error, warning

DEFAULT_ROOT_TITLE = "Table of contents"

_ITEM_RE = re.compile(r"^(?P<indent>[ \t]*)[*+-][ \t]+(?P<body>.*?)[ \t]*$")
_HEADING_RE = re.compile(r"^[ \t]{0,3}(?P<hashes>#{1,6})[ \t]+(?P<title>.+?)[ \t#]*$")
_LINK_RE = re.compile(
    r"^\[(?P<title>(?:[^\[\]]|\[[^\[\]]*\])*)\]"
    r"\(\s*(?P<target><[^>]*>|[^\s)]+)(?:\s+\"(?P<label>[^\"]*)\")?\s*\)"
)
_MENTION_LABEL = "mention"


@dataclass
class _Draft:
    title: str
    indent: int
    line: int | None = None
    path: str | None = None
    url: str | None = None
    mention: bool = False
    group: bool = False
    children: list["_Draft"] = field(default_factory=list)


def parse_manifest(
    text: str, *, source: str = DOCBUILD_SUMMARY_FILE
) -> tuple[ManifestNode, list[ValidationIssue]]:
    """Parse a nested-list manifest into a tree.

    A leading ``# Title`` names the root; ``## Group`` headings become pathless
    top-level nodes owning the items that follow. List indentation maps to tree
    depth. An item whose indentation matches no open level is reported and
    attached under the nearest shallower ancestor.

    Args:
        text: Raw manifest text.
        source: Manifest path used in issue locations.

    Returns:
        Tuple of (root node, issues). The root has no path and no line.
    """
    issues: list[ValidationIssue] = []
    root = _Draft(title=DEFAULT_ROOT_TITLE, indent=-2)
    stack: list[_Draft] = [root]
    base_depth = 1
    seen_item = False

    masked = mask_code(text, inline_code=False)
    for number, line in enumerate(masked.splitlines(), start=1):
        line = line.expandtabs(4)
        if not line.strip():
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            title = heading.group("title").strip()
            if len(heading.group("hashes")) == 1 and not seen_item and not root.children:
                root.title = title
                continue
            group = _Draft(title=title, indent=-1, line=number, group=True)
            root.children.append(group)
            stack = [root, group]
            base_depth = 2
            continue

        item = _ITEM_RE.match(line)
        if not item:
            continue
        seen_item = True
        indent = len(item.group("indent"))
        node = _parse_item(item.group("body"), indent=indent, line=number)

        popped = False
        while len(stack) > base_depth and stack[-1].indent > indent:
            stack.pop()
            popped = True
        if len(stack) > base_depth and stack[-1].indent == indent:
            stack.pop()
        elif popped and len(stack) > base_depth:
            issues.append(
                error(
                    f"Entry '{node.title}' is indented to column {indent}, which matches no "
                    f"enclosing level; attached under '{stack[-1].title}'",
                    "misaligned-entry",
                    path=source,
                    line=number,
                )
            )
        stack[-1].children.append(node)
        stack.append(node)

    tree = _freeze(root)
    for manifest_node in tree.iter_nodes():
        if manifest_node is tree:
            continue
        if manifest_node.path is None and manifest_node.url is None and not manifest_node.children:
            issues.append(
                warning(
                    f"Section '{manifest_node.title}' has no page and no children",
                    "empty-section",
                    path=source,
                    line=manifest_node.line,
                )
            )
    return tree, issues


def _parse_item(body: str, *, indent: int, line: int) -> _Draft:
    match = _LINK_RE.match(body)
    if not match:
        return _Draft(title=body.strip(), indent=indent, line=line)

    title = match.group("title").strip()
    target = match.group("target")
    if target.startswith("<") and target.endswith(">"):
        target = target[1:-1].strip()
    mention = match.group("label") == _MENTION_LABEL
    if is_external(target):
        return _Draft(title=title, indent=indent, line=line, url=target, mention=mention)

    path, _fragment = split_fragment(target)
    normalized = normalize_page_path(path)
    return _Draft(
        title=title,
        indent=indent,
        line=line,
        path=normalized or None,
        mention=mention,
    )


def _freeze(draft: _Draft) -> ManifestNode:
    return ManifestNode(
        title=draft.title,
        path=draft.path,
        url=draft.url,
        mention=draft.mention,
        group=draft.group,
        line=draft.line,
        children=tuple(_freeze(child) for child in draft.children),
    )


def serialize_manifest(root: ManifestNode) -> str:
    """Write a manifest tree back out as a SUMMARY.md nested list."""
    lines = [f"# {root.title}", ""]
    for child in root.children:
        if child.group:
            lines.extend(["", f"## {child.title}", ""])
            for grandchild in child.children:
                _serialize_node(grandchild, 0, lines)
        else:
            _serialize_node(child, 0, lines)
    return "\n".join(lines).strip() + "\n"


def _serialize_node(node: ManifestNode, depth: int, lines: list[str]) -> None:
    prefix = "  " * depth + "* "
    target = node.url or (quote(node.path, safe="/") if node.path else None)
    if target is None:
        lines.append(prefix + node.title)
    elif node.mention:
        lines.append(f'{prefix}[{node.title}]({target} "{_MENTION_LABEL}")')
    else:
        lines.append(f"{prefix}[{node.title}]({target})")
    for child in node.children:
        _serialize_node(child, depth + 1, lines)


def count_entries(root: ManifestNode) -> int:
    """Count list entries in the tree (group headings and the root excluded)."""
    return sum(1 for node in root.iter_nodes() if node is not root and not node.group)
