"""Tests for Markdown scanning helpers."""

from __future__ import annotations

import pytest

from docbuild.html_utils import element_ids, find_html_references, strip_tags
from docbuild.markdown_utils import (
    LineIndex,
    anchor_set,
    extract_headings,
    find_markdown_links,
    is_external,
    mask_code,
    slugify,
    split_fragment,
)


class TestMaskCode:
    """Tests for mask_code."""

    def test_preserves_length_and_lines(self) -> None:
        text = "a `b` c\n```\ncode\n```\n<!-- note\nmore -->\nend\n"

        masked = mask_code(text)

        assert len(masked) == len(text)
        assert masked.count("\n") == text.count("\n")
        assert "code" not in masked
        assert "note" not in masked
        assert masked.startswith("a     c\n")
        assert masked.endswith("end\n")

    def test_unterminated_fence_masks_rest(self) -> None:
        masked = mask_code("before\n```\n{% hint %}\n")

        assert masked.startswith("before\n")
        assert "hint" not in masked

    def test_inline_code_can_be_kept(self) -> None:
        assert mask_code("* [`x`](x.md)", inline_code=False) == "* [`x`](x.md)"

    def test_backtick_line_with_info_backticks_is_not_a_fence(self) -> None:
        text = "``` `not a fence` ```\nvisible\n"

        assert "visible" in mask_code(text, inline_code=False)


class TestLineIndex:
    """Tests for LineIndex."""

    def test_line_of(self) -> None:
        lines = LineIndex("one\ntwo\nthree")

        assert lines.line_of(0) == 1
        assert lines.line_of(3) == 1
        assert lines.line_of(4) == 2
        assert lines.line_of(8) == 3


class TestSlugify:
    """Tests for slugify."""

    @pytest.mark.parametrize(
        ("title", "slug"),
        [
            ("Getting Started", "getting-started"),
            ("What's new in C# 12?", "whats-new-in-c-12"),
            ("The `event` keyword", "the-event-keyword"),
            ("**Bold** and _em_", "bold-and-em"),
            ("[Linked](other.md) title", "linked-title"),
            ("List<T> and Dictionary<K, V>", "listt-and-dictionaryk-v"),
            ("A - B", "a---b"),
            ("Über Ärger", "über-ärger"),
        ],
    )
    def test_slug(self, title: str, slug: str) -> None:
        assert slugify(title) == slug


class TestExtractHeadings:
    """Tests for extract_headings."""

    def test_levels_and_anchors(self) -> None:
        text = "# Title\n\nText\n\n## Usage ##\n\n### Usage\n"

        headings = extract_headings(text)

        assert [(h.level, h.title, h.anchor) for h in headings] == [
            (1, "Title", "title"),
            (2, "Usage", "usage"),
            (3, "Usage", "usage-1"),
        ]

    def test_skips_headings_in_code(self) -> None:
        assert extract_headings("```\n# not a heading\n```\n") == []

    def test_hash_without_space_is_not_heading(self) -> None:
        assert extract_headings("#hashtag\n") == []

    def test_explicit_anchor(self) -> None:
        (heading,) = extract_headings('## Setup <a href="#install" id="install"></a>\n')

        assert heading.title == "Setup"
        assert heading.explicit_anchors == ("install",)
        assert anchor_set([heading]) == {"setup", "install"}

    def test_anchor_set_collapses_hyphen_runs(self) -> None:
        headings = extract_headings("## A - B\n")

        assert anchor_set(headings) == {"a---b", "a-b"}


class TestFindMarkdownLinks:
    """Tests for find_markdown_links."""

    def test_inline_links_and_images(self) -> None:
        text = '[a](a.md) ![img](i.png "Title") [b](<my page.md>)'

        links = find_markdown_links(text)

        assert [(link.target, link.image) for link in links] == [
            ("a.md", False),
            ("i.png", True),
            ("my page.md", False),
        ]
        assert links[1].offset == text.index("![img]")

    def test_image_inside_link(self) -> None:
        text = "[![badge](badge.svg)](https://ci.example.com)"

        targets = [link.target for link in find_markdown_links(text)]

        assert targets == ["https://ci.example.com", "badge.svg"]

    def test_reference_definitions_skip_footnotes(self) -> None:
        text = "[ref]: guide.md\n[^note]: Footnote text\n"

        assert [link.target for link in find_markdown_links(text)] == ["guide.md"]


class TestTargets:
    """Tests for is_external and split_fragment."""

    @pytest.mark.parametrize(
        ("target", "expected"),
        [
            ("https://example.com", True),
            ("mailto:a@example.com", True),
            ("//cdn.example.com/x.js", True),
            ("guide.md", False),
            ("#anchor", False),
            ("../a.md", False),
        ],
    )
    def test_is_external(self, target: str, expected: bool) -> None:
        assert is_external(target) is expected

    def test_split_fragment(self) -> None:
        assert split_fragment("a%20b.md#Sec%20One") == ("a b.md", "Sec%20One")
        assert split_fragment("a.md") == ("a.md", None)
        assert split_fragment("#top") == ("", "top")


class TestHtmlUtils:
    """Tests for the inline HTML helpers."""

    def test_find_html_references(self) -> None:
        text = '<p>x</p><img src="a.png" alt="a"><a href="b.md">b</a><iframe src="https://e.com"></iframe>'

        refs = find_html_references(text)

        assert [(ref.tag, ref.target) for ref in refs] == [
            ("img", "a.png"),
            ("a", "b.md"),
            ("iframe", "https://e.com"),
        ]
        assert refs[0].offset == text.index("<img")

    def test_anchor_without_href(self) -> None:
        assert find_html_references('<a id="top"></a>') == []

    def test_element_ids(self) -> None:
        assert element_ids('<a id="one"></a><a name="two"></a>') == ["one", "two"]
        assert element_ids("plain") == []

    def test_strip_tags(self) -> None:
        assert strip_tags("<strong>Bold</strong> text") == "Bold text"
        assert strip_tags("List<T>") == "List<T>"
