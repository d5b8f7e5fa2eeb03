"""Test setup for docbuild."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for pytest.

    This allows skipping tests that reach the network:
        pytest -m "not network"
    """
    config.addinivalue_line(
        "markers",
        "network: marks tests that make real HTTP requests",
    )


def write_book(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create a book directory from a mapping of relative paths to contents."""
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_book():
    """Factory fixture writing book files under a directory."""
    return write_book


@pytest.fixture
def two_page_book(tmp_path: Path) -> Path:
    """A valid book: page A has a hint and links to page B."""
    return write_book(
        tmp_path / "book",
        {
            "SUMMARY.md": "# Table of contents\n\n* [Page A](a.md)\n* [Page B](b.md)\n",
            "a.md": (
                "# Page A\n\n"
                '{% hint style="info" %}\n'
                "Delegates are type-safe function pointers.\n"
                "{% endhint %}\n\n"
                "See [page B](b.md) for events.\n"
            ),
            "b.md": "# Page B\n\nEvents build on delegates.\n",
        },
    )
