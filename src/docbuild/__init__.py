"""docbuild: validate and render GitBook-style Markdown books."""

from docbuild.directives import scan_directives
from docbuild.exceptions import (
    ConfigError,
    DocbuildError,
    FetchError,
    LoadErrorKind,
    PageLoadError,
    RenderBlockedError,
    RootNotFoundError,
)
from docbuild.filesystem import FileSystem, InMemoryFileSystem, LocalFileSystem
from docbuild.links import check_links
from docbuild.loader import load_page
from docbuild.manifest import parse_manifest, serialize_manifest
from docbuild.pipeline import BuildOptions, BuildResult, build, build_book, render_book, validate
from docbuild.renderer import render, write_site
from docbuild.schemas import (
    Directive,
    DirectiveKind,
    ManifestNode,
    Page,
    RenderedSite,
    Severity,
    ValidationIssue,
    ValidationReport,
)

__all__ = [
    "BuildOptions",
    "BuildResult",
    "ConfigError",
    "Directive",
    "DirectiveKind",
    "DocbuildError",
    "FetchError",
    "FileSystem",
    "InMemoryFileSystem",
    "LoadErrorKind",
    "LocalFileSystem",
    "ManifestNode",
    "Page",
    "PageLoadError",
    "RenderBlockedError",
    "RenderedSite",
    "RootNotFoundError",
    "Severity",
    "ValidationIssue",
    "ValidationReport",
    "build",
    "build_book",
    "check_links",
    "load_page",
    "parse_manifest",
    "render",
    "render_book",
    "scan_directives",
    "serialize_manifest",
    "validate",
    "write_site",
]
