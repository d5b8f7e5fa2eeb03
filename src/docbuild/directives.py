"""Scan pages for GitBook block directives and check their nesting."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from docbuild.config import DOCBUILD_RECOVERY_DEPTH
from docbuild.markdown_utils import LineIndex, mask_code
from docbuild.schemas import Directive, DirectiveKind, Page, ScanResult, ValidationIssue
from docbuild.schemas.issues import error, warning

_TAG_RE = re.compile(r"\{%-?\s*(?P<name>[A-Za-z]\w*(?:-\w+)*)(?P<attrs>(?:[^%{]|%(?!\})|\{(?!%))*?)-?%\}")
_ATTR_RE = re.compile(
    r"(?P<key>[A-Za-z_][\w-]*)\s*=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<bare>[^\s\"']+))"
)
_ARGUMENT_RE = re.compile(r"^\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)')")
_FENCE_RE = re.compile(r"^[ \t]*(?:`{3,}|~{3,})", re.MULTILINE)
_WIDTH_RE = re.compile(r"^\d+(?:\.\d+)?%?$")

_KINDS = {kind.value: kind for kind in DirectiveKind}

# Directives that are only meaningful directly inside a container directive.
_REQUIRED_PARENT = {
    DirectiveKind.TAB: DirectiveKind.TABS,
    DirectiveKind.STEP: DirectiveKind.STEPPER,
    DirectiveKind.COLUMN: DirectiveKind.COLUMNS,
}

HINT_STYLES = frozenset({"info", "success", "warning", "danger", "tip"})
_BOOLEAN_VALUES = frozenset({"true", "false"})
_OVERFLOW_VALUES = frozenset({"wrap", "scroll"})


@dataclass
class _Open:
    kind: DirectiveKind
    start: int
    attributes: dict[str, str]
    argument: str | None
    depth: int


@dataclass
class _Scan:
    page: Page
    lines: LineIndex
    directives: list[Directive] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)

    def error(self, message: str, code: str, offset: int) -> None:
        self.issues.append(
            error(message, code, path=self.page.path, offset=offset, line=self.lines.line_of(offset))
        )

    def warning(self, message: str, code: str, offset: int) -> None:
        self.issues.append(
            warning(message, code, path=self.page.path, offset=offset, line=self.lines.line_of(offset))
        )


def scan_directives(page: Page, *, recovery_depth: int = DOCBUILD_RECOVERY_DEPTH) -> ScanResult:
    """Find GitBook directives in a page and pair opening with closing tags.

    Fenced code blocks, inline code and HTML comments are ignored. Closing tags
    pair with the innermost open directive (LIFO). A closing tag that does not
    match the innermost directive is reported as unmatched. Recovery then looks
    backwards through the stack of already open directives, innermost first and
    at most ``recovery_depth`` entries deep, for one of the same kind; the text
    is never scanned forward for a later closer. If one is found, everything
    opened above it is reported unclosed and dropped. Otherwise the stray
    closer is ignored. Directives still open at the end are reported unclosed.

    A tag never spans another ``{%``, so unterminated openers cost time
    proportional to the distance to the next opener.

    Args:
        page: The page to scan.
        recovery_depth: How far down the open stack a mismatched closer may reach.

    Returns:
        Completed directives in document order and the issues found.
    """
    masked = mask_code(page.raw_text)
    scan = _Scan(page=page, lines=LineIndex(page.raw_text))
    stack: list[_Open] = []

    for match in _TAG_RE.finditer(masked):
        name = match.group("name").lower()
        start = match.start()

        if name.startswith("end") and name[3:] in _KINDS:
            _close(scan, stack, _KINDS[name[3:]], match, recovery_depth)
            continue

        kind = _KINDS.get(name)
        if kind is None:
            scan.warning(f"Unknown directive '{name}'", "unknown-directive", start)
            continue

        raw_attrs = page.raw_text[match.start("attrs") : match.end("attrs")]
        attributes, argument = parse_attributes(raw_attrs)
        _check_context(scan, stack, kind, start)
        _check_attributes(scan, kind, attributes, start)

        if kind.self_closing:
            scan.directives.append(
                Directive(
                    kind=kind,
                    start_offset=start,
                    end_offset=match.end(),
                    attributes=attributes,
                    argument=argument,
                    depth=len(stack),
                )
            )
            continue

        stack.append(
            _Open(kind=kind, start=start, attributes=attributes, argument=argument, depth=len(stack))
        )

    for entry in stack:
        _report_unclosed(scan, entry)

    scan.directives.sort(key=lambda directive: directive.start_offset)
    scan.issues.sort(key=lambda issue: issue.location.offset or 0)
    return ScanResult(directives=tuple(scan.directives), issues=tuple(scan.issues))


def _close(
    scan: _Scan,
    stack: list[_Open],
    kind: DirectiveKind,
    match: re.Match[str],
    recovery_depth: int,
) -> None:
    start = match.start()
    if stack and stack[-1].kind is kind:
        _complete(scan, stack.pop(), match.end())
        return

    if stack:
        expected = f"'{{% {stack[-1].kind.end_tag} %}}'"
    else:
        expected = "no closing tag (nothing is open)"
    scan.error(
        f"unmatched directive: '{{% {kind.end_tag} %}}' found where {expected} was expected",
        "unmatched-directive",
        start,
    )

    for position in range(len(stack) - 1, max(-1, len(stack) - 1 - recovery_depth), -1):
        if stack[position].kind is kind:
            for abandoned in stack[position + 1 :]:
                _report_unclosed(scan, abandoned)
            del stack[position + 1 :]
            _complete(scan, stack.pop(), match.end())
            return


def _complete(scan: _Scan, entry: _Open, end_offset: int) -> None:
    if entry.kind is DirectiveKind.CODE:
        body = scan.page.raw_text[entry.start:end_offset]
        if not _FENCE_RE.search(body):
            scan.warning(
                "'{% code %}' block does not wrap a fenced code block",
                "code-without-fence",
                entry.start,
            )
    scan.directives.append(
        Directive(
            kind=entry.kind,
            start_offset=entry.start,
            end_offset=end_offset,
            attributes=entry.attributes,
            argument=entry.argument,
            depth=entry.depth,
        )
    )


def _report_unclosed(scan: _Scan, entry: _Open) -> None:
    scan.error(
        f"unclosed directive: '{{% {entry.kind.value} %}}' has no matching '{{% {entry.kind.end_tag} %}}'",
        "unclosed-directive",
        entry.start,
    )


def _check_context(scan: _Scan, stack: list[_Open], kind: DirectiveKind, offset: int) -> None:
    parent = _REQUIRED_PARENT.get(kind)
    if parent is None:
        return
    if not stack or stack[-1].kind is not parent:
        scan.error(
            f"'{{% {kind.value} %}}' must appear directly inside '{{% {parent.value} %}}'",
            "misplaced-directive",
            offset,
        )


def _check_attributes(
    scan: _Scan, kind: DirectiveKind, attributes: dict[str, str], offset: int
) -> None:
    if kind is DirectiveKind.HINT:
        style = attributes.get("style")
        if style is not None and style not in HINT_STYLES:
            scan.warning(
                f"Unknown hint style '{style}' (expected one of {', '.join(sorted(HINT_STYLES))})",
                "bad-attribute",
                offset,
            )
    elif kind is DirectiveKind.CODE:
        line_numbers = attributes.get("lineNumbers")
        if line_numbers is not None and line_numbers.lower() not in _BOOLEAN_VALUES:
            scan.warning(
                f"'lineNumbers' should be true or false, got '{line_numbers}'",
                "bad-attribute",
                offset,
            )
        overflow = attributes.get("overflow")
        if overflow is not None and overflow.lower() not in _OVERFLOW_VALUES:
            scan.warning(
                f"'overflow' should be wrap or scroll, got '{overflow}'",
                "bad-attribute",
                offset,
            )
    elif kind is DirectiveKind.COLUMN:
        width = attributes.get("width")
        if width is not None and not _WIDTH_RE.match(width.strip()):
            scan.warning(f"Column width '{width}' is not a percentage", "bad-attribute", offset)
    elif kind is DirectiveKind.TAB and not attributes.get("title"):
        scan.warning("'{% tab %}' has no title", "bad-attribute", offset)


def parse_attributes(raw: str) -> tuple[dict[str, str], str | None]:
    """Split directive text after the name into attributes and a bare argument.

    ``{% include "a.md" %}`` yields argument ``a.md``; ``{% hint style="info" %}``
    yields ``{"style": "info"}``.
    """
    argument = None
    argument_match = _ARGUMENT_RE.match(raw)
    if argument_match:
        argument = argument_match.group("dq")
        if argument is None:
            argument = argument_match.group("sq")
        raw = raw[argument_match.end() :]

    attributes: dict[str, str] = {}
    for match in _ATTR_RE.finditer(raw):
        value = match.group("dq")
        if value is None:
            value = match.group("sq")
        if value is None:
            value = match.group("bare")
        attributes[match.group("key")] = value
    return attributes, argument
