"""Validation issue models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    """How serious a validation issue is."""

    ERROR = "error"
    WARNING = "warning"


class Location(BaseModel):
    """Where an issue was found: a page offset or a manifest line."""

    model_config = ConfigDict(frozen=True)

    path: str | None = None
    offset: int | None = None
    line: int | None = None

    def __str__(self) -> str:
        if self.path is None:
            return "<book>"
        if self.line is not None:
            return f"{self.path}:{self.line}"
        return self.path


class ValidationIssue(BaseModel):
    """One detected problem.

    Attributes:
        severity: ``error`` blocks rendering, ``warning`` does not.
        location: Page path plus offset/line, or the manifest entry's line.
        message: Human readable description.
        code: Short stable identifier (for example ``unclosed-directive``).
    """

    model_config = ConfigDict(frozen=True)

    severity: Severity
    location: Location
    message: str
    code: str

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def format(self) -> str:
        return f"{self.severity.value}: {self.location}: {self.message} [{self.code}]"


class ValidationReport(BaseModel):
    """Aggregated issues from a validation run."""

    model_config = ConfigDict(frozen=True)

    issues: tuple[ValidationIssue, ...] = ()

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if not issue.is_error)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def summary_line(self) -> str:
        return f"{self.error_count} error(s), {self.warning_count} warning(s)"


def error(message: str, code: str, *, path: str | None = None, offset: int | None = None,
          line: int | None = None) -> ValidationIssue:
    """Shortcut for an error-severity issue."""
    return ValidationIssue(
        severity=Severity.ERROR,
        location=Location(path=path, offset=offset, line=line),
        message=message,
        code=code,
    )


def warning(message: str, code: str, *, path: str | None = None, offset: int | None = None,
            line: int | None = None) -> ValidationIssue:
    """Shortcut for a warning-severity issue."""
    return ValidationIssue(
        severity=Severity.WARNING,
        location=Location(path=path, offset=offset, line=line),
        message=message,
        code=code,
    )
