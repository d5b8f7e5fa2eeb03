"""Rendered site models."""

from __future__ import annotations

from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field

from docbuild.schemas.pages import DirectiveKind, Heading


class DirectiveNode(BaseModel):
    """A directive with its nested directives."""

    kind: DirectiveKind
    attributes: dict[str, str] = Field(default_factory=dict)
    argument: str | None = None
    start_offset: int
    end_offset: int
    children: list["DirectiveNode"] = Field(default_factory=list)


class SiteNode(BaseModel):
    """A navigation entry paired with its page content."""

    title: str
    path: str | None = None
    url: str | None = None
    description: str | None = None
    content: str | None = None
    headings: list[Heading] = Field(default_factory=list)
    directives: list[DirectiveNode] = Field(default_factory=list)
    listed: bool = True
    children: list["SiteNode"] = Field(default_factory=list)

    def walk(self) -> Iterator["SiteNode"]:
        yield self
        for child in self.children:
            yield from child.walk()


class RenderedSite(BaseModel):
    """The navigable output of a build."""

    model_config = ConfigDict(frozen=True)

    title: str
    nodes: list[SiteNode] = Field(default_factory=list)
    unlisted: list[SiteNode] = Field(default_factory=list)

    def walk(self) -> Iterator[SiteNode]:
        """Yield listed nodes in manifest pre-order, then unlisted pages."""
        for node in self.nodes:
            yield from node.walk()
        yield from self.unlisted
