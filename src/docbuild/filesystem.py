"""Read-only file system capabilities used by the page loader."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Protocol


class FileSystem(Protocol):
    """Read access to a book's files, addressed by POSIX paths relative to the root."""

    def read_bytes(self, path: str) -> bytes:
        """Return file contents; raise FileNotFoundError when absent."""
        ...

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def iter_markdown(self) -> Iterator[str]:
        """Yield every ``*.md`` path under the root, sorted, hidden directories skipped."""
        ...


def normalize_page_path(path: str) -> str:
    """Normalize a relative page path to POSIX form (``./a/../b.md`` -> ``b.md``)."""
    path = path.replace("\\", "/").strip()
    normalized = posixpath.normpath(path.lstrip("/")) if path else ""
    return "" if normalized == "." else normalized


def _escapes_root(path: str) -> bool:
    return path == ".." or path.startswith("../")


class LocalFileSystem:
    """A directory on disk. Paths escaping the root read as missing."""

    def __init__(self, root: Path, *, exclude: Iterable[Path] = ()) -> None:
        self.root = root.resolve()
        self._exclude = [p.resolve() for p in exclude]

    def _resolve(self, path: str) -> Path | None:
        normalized = normalize_page_path(path)
        if _escapes_root(normalized):
            return None
        return self.root / normalized if normalized else self.root

    def read_bytes(self, path: str) -> bytes:
        target = self._resolve(path)
        if target is None or not target.exists():
            raise FileNotFoundError(path)
        if target.is_dir():
            raise IsADirectoryError(path)
        return target.read_bytes()

    def exists(self, path: str) -> bool:
        target = self._resolve(path)
        return target is not None and target.exists()

    def is_dir(self, path: str) -> bool:
        target = self._resolve(path)
        return target is not None and target.is_dir()

    def iter_markdown(self) -> Iterator[str]:
        found: list[str] = []
        for candidate in self.root.rglob("*.md"):
            relative = candidate.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if any(candidate.resolve().is_relative_to(excluded) for excluded in self._exclude):
                continue
            if candidate.is_file():
                found.append(relative.as_posix())
        yield from sorted(found)


class InMemoryFileSystem:
    """A mapping of relative paths to contents (``str`` is encoded as UTF-8)."""

    def __init__(self, files: Mapping[str, str | bytes]) -> None:
        self._files: dict[str, bytes] = {}
        for path, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            self._files[normalize_page_path(path)] = data

    def read_bytes(self, path: str) -> bytes:
        normalized = normalize_page_path(path)
        if normalized in self._files:
            return self._files[normalized]
        if self.is_dir(normalized):
            raise IsADirectoryError(path)
        raise FileNotFoundError(path)

    def exists(self, path: str) -> bool:
        normalized = normalize_page_path(path)
        return normalized in self._files or self.is_dir(normalized)

    def is_dir(self, path: str) -> bool:
        normalized = normalize_page_path(path)
        if not normalized:
            return True
        prefix = normalized + "/"
        return any(name.startswith(prefix) for name in self._files)

    def iter_markdown(self) -> Iterator[str]:
        for name in sorted(self._files):
            if not name.endswith(".md"):
                continue
            if any(part.startswith(".") for part in name.split("/")):
                continue
            yield name
