"""Read a book's ``.gitbook.yaml`` repository configuration."""

from __future__ import annotations

import logging

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docbuild.config import (
    DEFAULT_GITBOOK_CONFIG_FILE,
    DEFAULT_README_FILE,
    DOCBUILD_SUMMARY_FILE,
)
from docbuild.exceptions import ConfigError
from docbuild.filesystem import FileSystem, normalize_page_path

logger = logging.getLogger(__name__)


class Structure(BaseModel):
    """Where GitBook finds the table of contents and the landing page."""

    model_config = ConfigDict(frozen=True)

    summary: str = DOCBUILD_SUMMARY_FILE
    readme: str = DEFAULT_README_FILE


class GitBookConfig(BaseModel):
    """Parsed ``.gitbook.yaml``.

    Attributes:
        root: Content root relative to the repository, ``""`` for the repository itself.
        structure: Manifest and readme file names relative to ``root``.
        redirects: Old path -> page path (relative to ``root``).
    """

    model_config = ConfigDict(frozen=True)

    root: str = ""
    structure: Structure = Field(default_factory=Structure)
    redirects: dict[str, str] = Field(default_factory=dict)


def load_gitbook_config(file_system: FileSystem) -> GitBookConfig:
    """Read ``.gitbook.yaml`` from the repository root, or return defaults.

    Raises:
        ConfigError: If the file exists but is not valid YAML or has the wrong shape.
    """
    try:
        raw = file_system.read_bytes(DEFAULT_GITBOOK_CONFIG_FILE)
    except (FileNotFoundError, IsADirectoryError):
        return GitBookConfig()

    try:
        data = yaml.safe_load(raw.decode("utf-8"))
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Invalid {DEFAULT_GITBOOK_CONFIG_FILE}: {exc}") from exc

    if data is None:
        return GitBookConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{DEFAULT_GITBOOK_CONFIG_FILE} must contain a mapping")

    structure = data.get("structure") or {}
    redirects = data.get("redirects") or {}
    try:
        config = GitBookConfig(
            root=normalize_page_path(str(data.get("root") or "")),
            structure=Structure(**{key: str(value) for key, value in structure.items()}),
            redirects={
                str(old): normalize_page_path(str(new)) for old, new in redirects.items()
            },
        )
    except (AttributeError, TypeError, ValidationError) as exc:
        raise ConfigError(f"Invalid {DEFAULT_GITBOOK_CONFIG_FILE}: {exc}") from exc

    logger.debug("Loaded %s: root=%r summary=%r", DEFAULT_GITBOOK_CONFIG_FILE, config.root,
                 config.structure.summary)
    return config
