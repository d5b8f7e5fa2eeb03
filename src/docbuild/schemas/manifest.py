"""Table of contents tree models."""

from __future__ import annotations

from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field


class ManifestNode(BaseModel):
    """One entry in the table of contents.

    A node without ``path`` (and without ``url``) is a pure section header and
    is expected to own at least one child.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    path: str | None = None
    url: str | None = None
    mention: bool = False
    group: bool = False
    line: int | None = None
    children: tuple["ManifestNode", ...] = Field(default_factory=tuple)

    def iter_nodes(self) -> Iterator["ManifestNode"]:
        """Yield this node and its descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def iter_paths(self) -> Iterator[str]:
        """Yield every page path referenced below (and including) this node."""
        for node in self.iter_nodes():
            if node.path is not None:
                yield node.path
