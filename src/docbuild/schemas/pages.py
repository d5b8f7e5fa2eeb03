"""Page and directive models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from docbuild.schemas.issues import ValidationIssue


class DirectiveKind(str, Enum):
    """GitBook block directives understood by the scanner."""

    HINT = "hint"
    CODE = "code"
    TABS = "tabs"
    TAB = "tab"
    STEPPER = "stepper"
    STEP = "step"
    COLUMNS = "columns"
    COLUMN = "column"
    CONTENT_REF = "content-ref"
    EMBED = "embed"
    INCLUDE = "include"
    FILE = "file"

    @property
    def self_closing(self) -> bool:
        return self in _SELF_CLOSING

    @property
    def end_tag(self) -> str:
        return f"end{self.value}"


_SELF_CLOSING = frozenset({DirectiveKind.EMBED, DirectiveKind.INCLUDE, DirectiveKind.FILE})


class Directive(BaseModel):
    """A completed GitBook block construct found in a page."""

    model_config = ConfigDict(frozen=True)

    kind: DirectiveKind
    start_offset: int
    end_offset: int
    attributes: dict[str, str] = Field(default_factory=dict)
    argument: str | None = None
    depth: int = 0


class ScanResult(BaseModel):
    """Directives and structural issues from one page scan."""

    model_config = ConfigDict(frozen=True)

    directives: tuple[Directive, ...] = ()
    issues: tuple[ValidationIssue, ...] = ()


class Heading(BaseModel):
    """An ATX heading and the anchors it can be linked by."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(..., ge=1, le=6)
    title: str
    anchor: str
    offset: int
    explicit_anchors: tuple[str, ...] = ()


class Page(BaseModel):
    """One Markdown file of the book.

    Attributes:
        path: Normalized POSIX path relative to the book root.
        raw_text: Decoded file contents, front matter included.
        directives: Directives attached after scanning.
        front_matter: Parsed YAML front matter (empty when absent or invalid).
        front_matter_error: Parser message when the front matter is malformed.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    raw_text: str
    directives: tuple[Directive, ...] = ()
    front_matter: dict[str, Any] = Field(default_factory=dict)
    front_matter_error: str | None = None
