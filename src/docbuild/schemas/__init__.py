"""Shared schemas for docbuild."""

from docbuild.schemas.issues import Location, Severity, ValidationIssue, ValidationReport
from docbuild.schemas.manifest import ManifestNode
from docbuild.schemas.pages import Directive, DirectiveKind, Heading, Page, ScanResult
from docbuild.schemas.site import DirectiveNode, RenderedSite, SiteNode

__all__ = [
    "Directive",
    "DirectiveKind",
    "DirectiveNode",
    "Heading",
    "Location",
    "ManifestNode",
    "Page",
    "RenderedSite",
    "ScanResult",
    "Severity",
    "SiteNode",
    "ValidationIssue",
    "ValidationReport",
]
