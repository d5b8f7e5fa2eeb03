"""Tests for page loading and the file system capabilities."""

from __future__ import annotations

from pathlib import Path

import pytest

from docbuild.exceptions import LoadErrorKind, PageLoadError
from docbuild.filesystem import InMemoryFileSystem, LocalFileSystem, normalize_page_path
from docbuild.loader import attach_directives, front_matter_span, load_page
from docbuild.schemas import Directive, DirectiveKind


class TestLoadPage:
    """Tests for load_page."""

    def test_loads_utf8_page(self) -> None:
        fs = InMemoryFileSystem({"events/delegates.md": "# Delegates\n\nA delegate is a type.\n"})

        page = load_page("./events/delegates.md", fs)

        assert page.path == "events/delegates.md"
        assert page.raw_text.startswith("# Delegates")
        assert page.directives == ()
        assert page.front_matter == {}

    def test_missing_page(self) -> None:
        fs = InMemoryFileSystem({})

        with pytest.raises(PageLoadError) as exc_info:
            load_page("ghost.md", fs)

        assert exc_info.value.kind is LoadErrorKind.NOT_FOUND
        assert exc_info.value.path == "ghost.md"
        assert "ghost.md" in str(exc_info.value)

    def test_directory_is_not_a_page(self) -> None:
        fs = InMemoryFileSystem({"events/README.md": "# Events\n"})

        with pytest.raises(PageLoadError) as exc_info:
            load_page("events", fs)

        assert exc_info.value.kind is LoadErrorKind.NOT_FOUND

    def test_invalid_utf8(self) -> None:
        fs = InMemoryFileSystem({"latin.md": "# Caf".encode("utf-8") + b"\xe9\n"})

        with pytest.raises(PageLoadError) as exc_info:
            load_page("latin.md", fs)

        assert exc_info.value.kind is LoadErrorKind.ENCODING_ERROR
        assert "byte offset 5" in str(exc_info.value)

    def test_strips_byte_order_mark(self) -> None:
        fs = InMemoryFileSystem({"bom.md": b"\xef\xbb\xbf# Title\n"})

        page = load_page("bom.md", fs)

        assert page.raw_text == "# Title\n"

    def test_parses_front_matter(self) -> None:
        text = "---\ndescription: Type-safe callbacks\nicon: bolt\n---\n\n# Delegates\n"
        fs = InMemoryFileSystem({"a.md": text})

        page = load_page("a.md", fs)

        assert page.front_matter == {"description": "Type-safe callbacks", "icon": "bolt"}
        assert page.front_matter_error is None
        assert page.raw_text == text

    def test_invalid_front_matter_is_recorded(self) -> None:
        fs = InMemoryFileSystem({"a.md": "---\ntags: [unclosed\n---\n# A\n"})

        page = load_page("a.md", fs)

        assert page.front_matter == {}
        assert page.front_matter_error is not None
        assert "front matter" in page.front_matter_error.lower()

    def test_scalar_front_matter_is_recorded(self) -> None:
        fs = InMemoryFileSystem({"a.md": "---\njust text\n---\n# A\n"})

        page = load_page("a.md", fs)

        assert page.front_matter == {}
        assert page.front_matter_error == "Front matter is not a mapping"

    def test_horizontal_rule_later_in_page_is_not_front_matter(self) -> None:
        fs = InMemoryFileSystem({"a.md": "# A\n\n---\n\ntext\n---\n"})

        page = load_page("a.md", fs)

        assert page.front_matter == {}
        assert page.front_matter_error is None


class TestFrontMatterSpan:
    """Tests for front_matter_span."""

    def test_no_front_matter(self) -> None:
        assert front_matter_span("# A\n") == 0

    def test_offset_after_closing_marker(self) -> None:
        text = "---\na: 1\n---\n# A\n"

        assert text[front_matter_span(text) :] == "# A\n"


class TestAttachDirectives:
    """Tests for attach_directives."""

    def test_returns_new_page(self) -> None:
        page = load_page("a.md", InMemoryFileSystem({"a.md": "x"}))
        directive = Directive(kind=DirectiveKind.EMBED, start_offset=0, end_offset=1)

        updated = attach_directives(page, [directive])

        assert updated.directives == (directive,)
        assert page.directives == ()


class TestNormalizePagePath:
    """Tests for normalize_page_path."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("a.md", "a.md"),
            ("./a.md", "a.md"),
            ("/guide/a.md", "guide/a.md"),
            ("guide\\a.md", "guide/a.md"),
            ("guide/../a.md", "a.md"),
            ("../a.md", "../a.md"),
            (".", ""),
            ("", ""),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_page_path(raw) == expected


class TestLocalFileSystem:
    """Tests for LocalFileSystem."""

    def test_reads_and_discovers_pages(self, tmp_path: Path) -> None:
        (tmp_path / "guide").mkdir()
        (tmp_path / "guide" / "b.md").write_text("b", encoding="utf-8")
        (tmp_path / "a.md").write_text("a", encoding="utf-8")
        (tmp_path / "image.png").write_bytes(b"\x89PNG")

        fs = LocalFileSystem(tmp_path)

        assert list(fs.iter_markdown()) == ["a.md", "guide/b.md"]
        assert fs.read_bytes("guide/b.md") == b"b"
        assert fs.exists("image.png")
        assert fs.is_dir("guide")

    def test_skips_hidden_and_excluded_directories(self, tmp_path: Path) -> None:
        (tmp_path / ".gitbook" / "includes").mkdir(parents=True)
        (tmp_path / ".gitbook" / "includes" / "note.md").write_text("n", encoding="utf-8")
        (tmp_path / "_book").mkdir()
        (tmp_path / "_book" / "book.md").write_text("out", encoding="utf-8")
        (tmp_path / "a.md").write_text("a", encoding="utf-8")

        fs = LocalFileSystem(tmp_path, exclude=[tmp_path / "_book"])

        assert list(fs.iter_markdown()) == ["a.md"]
        assert fs.exists(".gitbook/includes/note.md")

    def test_paths_outside_root_read_as_missing(self, tmp_path: Path) -> None:
        (tmp_path / "secret.md").write_text("s", encoding="utf-8")
        root = tmp_path / "book"
        root.mkdir()

        fs = LocalFileSystem(root)

        assert not fs.exists("../secret.md")
        with pytest.raises(PageLoadError) as exc_info:
            load_page("../secret.md", fs)
        assert exc_info.value.kind is LoadErrorKind.NOT_FOUND


class TestInMemoryFileSystem:
    """Tests for InMemoryFileSystem."""

    def test_directories_are_implied(self) -> None:
        fs = InMemoryFileSystem({"guide/a.md": "a", ".gitbook/assets/x.png": b"png"})

        assert fs.is_dir("guide")
        assert fs.exists(".gitbook/assets/x.png")
        assert list(fs.iter_markdown()) == ["guide/a.md"]
