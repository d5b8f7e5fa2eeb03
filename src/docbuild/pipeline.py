"""Validation and render pipeline for a GitBook directory."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from docbuild.config import DEFAULT_GITBOOK_CONFIG_FILE, DOCBUILD_RECOVERY_DEPTH
from docbuild.directives import scan_directives
from docbuild.exceptions import (
    ConfigError,
    LoadErrorKind,
    PageLoadError,
    RenderBlockedError,
    RootNotFoundError,
)
from docbuild.external_links import check_external_links
from docbuild.filesystem import FileSystem, LocalFileSystem, normalize_page_path
from docbuild.gitbook_config import GitBookConfig, load_gitbook_config
from docbuild.links import check_links, page_for
from docbuild.loader import attach_directives, load_page
from docbuild.manifest import DEFAULT_ROOT_TITLE, parse_manifest
from docbuild.renderer import BOOK_MARKDOWN, render, write_site
from docbuild.schemas import (
    ManifestNode,
    Page,
    RenderedSite,
    Severity,
    ValidationIssue,
    ValidationReport,
)
from docbuild.schemas.issues import error, warning

logger = logging.getLogger(__name__)


@dataclass
class BuildOptions:
    """Options for a validation or render run.

    Attributes:
        summary_file: Manifest path relative to the content root. When None the
            value from ``.gitbook.yaml`` (or ``SUMMARY.md``) is used.
        check_external: If True, probe external http(s) links over the network.
        recovery_depth: How far a mismatched closing directive may search the
            open stack for its partner.
        strict: If True, warnings are promoted to errors.
    """

    summary_file: str | None = None
    check_external: bool = False
    recovery_depth: int = DOCBUILD_RECOVERY_DEPTH
    strict: bool = False


@dataclass
class BuildResult:
    """Everything a validation run produced."""

    manifest: ManifestNode
    pages: dict[str, Page]
    issues: list[ValidationIssue] = field(default_factory=list)
    config: GitBookConfig = field(default_factory=GitBookConfig)
    summary_file: str = ""
    content_root: Path | None = None

    @property
    def report(self) -> ValidationReport:
        return ValidationReport(issues=tuple(self.issues))


def build(
    root: Path | str,
    options: BuildOptions | None = None,
    *,
    exclude: Iterable[Path] = (),
) -> BuildResult:
    """Validate the book stored under ``root``.

    Raises:
        RootNotFoundError: If ``root`` is missing or not a directory. This is
            the only failure that stops a run; content problems become issues.
    """
    opts = options or BuildOptions()
    root_path = Path(root)
    if not root_path.is_dir():
        raise RootNotFoundError(f"Book root not found or not a directory: {root_path}")

    issues: list[ValidationIssue] = []
    try:
        config = load_gitbook_config(LocalFileSystem(root_path))
    except ConfigError as exc:
        issues.append(error(str(exc), "bad-gitbook-config", path=DEFAULT_GITBOOK_CONFIG_FILE))
        config = GitBookConfig()

    content_root = root_path / config.root if config.root else root_path
    if not content_root.is_dir():
        issues.append(
            error(
                f"Content root '{config.root}' from {DEFAULT_GITBOOK_CONFIG_FILE} does not exist",
                "bad-gitbook-config",
                path=DEFAULT_GITBOOK_CONFIG_FILE,
            )
        )
        content_root = root_path

    result = build_book(LocalFileSystem(content_root, exclude=exclude), opts, config=config)
    result.issues[:0] = issues
    result.content_root = content_root
    return result


def build_book(
    file_system: FileSystem,
    options: BuildOptions | None = None,
    *,
    config: GitBookConfig | None = None,
) -> BuildResult:
    """Run every pass over a book exposed through ``file_system``.

    Steps: parse the manifest, load listed and unlisted pages, scan
    directives, check links, report orphans and dangling redirects, and
    optionally probe external links.
    """
    opts = options or BuildOptions()
    cfg = config or GitBookConfig()
    summary_file = normalize_page_path(opts.summary_file or cfg.structure.summary)
    readme = normalize_page_path(cfg.structure.readme)
    issues: list[ValidationIssue] = []

    manifest = _read_manifest(file_system, summary_file, issues)
    listed = list(dict.fromkeys(manifest.iter_paths()))
    listed_set = set(listed)
    unlisted = [
        path
        for path in file_system.iter_markdown()
        if path not in listed_set and path != summary_file
    ]

    pages: dict[str, Page] = {}
    load_errors: dict[str, PageLoadError] = {}
    for path in listed + unlisted:
        try:
            page = load_page(path, file_system)
        except PageLoadError as exc:
            load_errors[path] = exc
            if path not in listed_set:
                issues.append(error(str(exc), exc.kind.value, path=path))
            continue

        scan = scan_directives(page, recovery_depth=opts.recovery_depth)
        pages[path] = attach_directives(page, scan.directives)
        issues.extend(scan.issues)
        if page.front_matter_error:
            issues.append(warning(page.front_matter_error, "bad-front-matter", path=path, line=1))

    issues.extend(
        check_links(
            manifest,
            pages,
            file_system=file_system,
            load_errors=load_errors,
            manifest_source=summary_file,
            readme=readme,
        )
    )

    for path in unlisted:
        if path in pages and path != readme:
            issues.append(
                warning(f"Page {path} is not listed in {summary_file}", "orphan-page", path=path)
            )

    issues.extend(_check_redirects(cfg, pages, readme))

    if opts.check_external:
        issues.extend(asyncio.run(check_external_links(pages)))

    if opts.strict:
        issues = [_promote(issue) for issue in issues]

    result = BuildResult(
        manifest=manifest,
        pages=pages,
        issues=issues,
        config=cfg,
        summary_file=summary_file,
    )
    report = result.report
    logger.info(
        "Validated %d page(s): %s",
        len(pages),
        report.summary_line(),
        extra={"pages": len(pages), "errors": report.error_count, "warnings": report.warning_count},
    )
    return result


def _read_manifest(
    file_system: FileSystem, summary_file: str, issues: list[ValidationIssue]
) -> ManifestNode:
    try:
        manifest_page = load_page(summary_file, file_system)
    except PageLoadError as exc:
        code = "missing-manifest" if exc.kind is LoadErrorKind.NOT_FOUND else exc.kind.value
        issues.append(error(str(exc), code, path=summary_file))
        return ManifestNode(title=DEFAULT_ROOT_TITLE)

    manifest, manifest_issues = parse_manifest(manifest_page.raw_text, source=summary_file)
    issues.extend(manifest_issues)
    return manifest


def _check_redirects(
    config: GitBookConfig, pages: dict[str, Page], readme: str
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for old, new in sorted(config.redirects.items()):
        if page_for(new, pages, readme=readme) is not None:
            continue
        issues.append(
            warning(
                f"Redirect '{old}' points at missing page {new}",
                "dangling-redirect",
                path=DEFAULT_GITBOOK_CONFIG_FILE,
            )
        )
    return issues


def _promote(issue: ValidationIssue) -> ValidationIssue:
    if issue.severity is Severity.ERROR:
        return issue
    return issue.model_copy(update={"severity": Severity.ERROR})


def validate(root: Path | str, options: BuildOptions | None = None) -> ValidationReport:
    """Validate a book directory and return its report."""
    return build(root, options).report


def render_book(
    root: Path | str,
    out_dir: Path | str,
    options: BuildOptions | None = None,
) -> tuple[RenderedSite, ValidationReport]:
    """Validate a book and write its rendered site to ``out_dir``.

    Warnings do not block rendering.

    Raises:
        RootNotFoundError: If ``root`` is missing.
        RenderBlockedError: If validation recorded any error, or ``out_dir``
            is the book root itself or holds pages of the book. Nothing is
            written in any of these cases.
    """
    root_path = Path(root)
    out_path = Path(out_dir)
    if out_path.resolve() == root_path.resolve():
        raise RenderBlockedError(f"Refusing to write output into the book root {root_path}")

    result = build(root_path, options, exclude=(out_path,))
    conflicts = _source_pages_in(out_path, result)
    if conflicts:
        raise RenderBlockedError(
            f"Refusing to write output into {out_path}: it holds book page(s) "
            + ", ".join(conflicts),
            report=result.report,
        )
    report = result.report
    if report.has_errors:
        raise RenderBlockedError(
            f"Rendering blocked by {report.error_count} error(s)", report=report
        )

    site = render(result.manifest, result.pages)
    write_site(site, out_path)
    logger.info("Rendered %s into %s", root_path, out_path)
    return site, report


def _source_pages_in(out_path: Path, result: BuildResult) -> list[str]:
    """Book pages that writing into ``out_path`` could overwrite.

    Only matters when ``out_path`` lies inside the book. A ``book.md`` left by an
    earlier render is not a page unless the manifest lists it.
    """
    if result.content_root is None or not out_path.is_dir():
        return []
    out_resolved = out_path.resolve()
    content_root = result.content_root.resolve()
    if not out_resolved.is_relative_to(content_root):
        return []

    conflicts: set[str] = set()
    for node in result.manifest.iter_nodes():
        if node.path and (content_root / node.path).resolve().is_relative_to(out_resolved):
            conflicts.add(node.path)
    prefix = out_resolved.relative_to(content_root)
    for path in LocalFileSystem(out_resolved).iter_markdown():
        if path != BOOK_MARKDOWN:
            conflicts.add((prefix / path).as_posix())
    return sorted(conflicts)
