"""Load Markdown pages from a book's file system."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

import yaml

from docbuild.exceptions import LoadErrorKind, PageLoadError
from docbuild.filesystem import FileSystem, normalize_page_path
from docbuild.schemas import Directive, Page

logger = logging.getLogger(__name__)

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_BOM = "\ufeff"


def load_page(path: str, file_system: FileSystem) -> Page:
    """Read and decode one page.

    Args:
        path: Page path relative to the book root.
        file_system: Read capability over the book.

    Returns:
        The loaded page, without directives attached.

    Raises:
        PageLoadError: ``NOT_FOUND`` when the file is missing (or a directory),
            ``ENCODING_ERROR`` when the bytes are not valid UTF-8.
    """
    normalized = normalize_page_path(path)
    try:
        data = file_system.read_bytes(normalized)
    except (FileNotFoundError, IsADirectoryError) as exc:
        raise PageLoadError(
            normalized, LoadErrorKind.NOT_FOUND, f"Page not found: {normalized}"
        ) from exc

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise PageLoadError(
            normalized,
            LoadErrorKind.ENCODING_ERROR,
            f"Page is not valid UTF-8: {normalized} (byte offset {exc.start})",
        ) from exc

    if text.startswith(_BOM):
        text = text[len(_BOM) :]

    front_matter, front_matter_error = _parse_front_matter(text)
    logger.debug("Loaded %s (%d chars)", normalized, len(text))
    return Page(
        path=normalized,
        raw_text=text,
        front_matter=front_matter,
        front_matter_error=front_matter_error,
    )


def _parse_front_matter(text: str) -> tuple[dict[str, Any], str | None]:
    match = _FRONT_MATTER_RE.match(text)
    if not match:
        return {}, None
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        return {}, f"Invalid front matter: {exc}".replace("\n", " ")
    if data is None:
        return {}, None
    if not isinstance(data, dict):
        return {}, "Front matter is not a mapping"
    return {str(key): value for key, value in data.items()}, None


def front_matter_span(text: str) -> int:
    """Offset where the page body starts (0 when there is no front matter)."""
    match = _FRONT_MATTER_RE.match(text)
    return match.end() if match else 0


def attach_directives(page: Page, directives: Iterable[Directive]) -> Page:
    """Return a copy of ``page`` carrying its scanned directives."""
    return page.model_copy(update={"directives": tuple(directives)})
