"""Custom exceptions for docbuild."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docbuild.schemas import ValidationReport


class DocbuildError(Exception):
    """Base exception for docbuild operations."""


class LoadErrorKind(str, Enum):
    """Why a page could not be loaded."""

    NOT_FOUND = "not-found"
    ENCODING_ERROR = "encoding-error"


class PageLoadError(DocbuildError):
    """A page could not be read or decoded."""

    def __init__(self, path: str, kind: LoadErrorKind, message: str) -> None:
        super().__init__(message)
        self.path = path
        self.kind = kind


class ConfigError(DocbuildError):
    """Malformed repository configuration (.gitbook.yaml)."""


class RootNotFoundError(DocbuildError):
    """The book root does not exist or is not a directory."""


class RenderBlockedError(DocbuildError):
    """Rendering refused: validation recorded errors or the output directory is unsafe."""

    def __init__(self, message: str, report: ValidationReport | None = None) -> None:
        super().__init__(message)
        self.report = report

    @property
    def error_count(self) -> int:
        return self.report.error_count if self.report is not None else 0


class FetchError(DocbuildError):
    """Error while probing an external URL."""
