"""Local configuration for docbuild."""

from __future__ import annotations

import os


DEFAULT_SUMMARY_FILE = "SUMMARY.md"
DEFAULT_README_FILE = "README.md"
DEFAULT_GITBOOK_CONFIG_FILE = ".gitbook.yaml"
DEFAULT_RECOVERY_DEPTH = 8
DEFAULT_FETCH_TIMEOUT_S = 10.0
DEFAULT_FETCH_MAX_RETRIES = 2
DEFAULT_FETCH_BACKOFF_S = 0.5
DEFAULT_EXTERNAL_CONCURRENCY = 8
DEFAULT_USER_AGENT = "docbuild/0.1 (+https://github.com/docbuild/docbuild)"
DEFAULT_LOG_LEVEL = "WARNING"

DOCBUILD_SUMMARY_FILE = os.getenv("DOCBUILD_SUMMARY_FILE", DEFAULT_SUMMARY_FILE)
# How many open directives the scanner searches through when a closing tag does not match the innermost one.
DOCBUILD_RECOVERY_DEPTH = int(os.getenv("DOCBUILD_RECOVERY_DEPTH", str(DEFAULT_RECOVERY_DEPTH)))
DOCBUILD_FETCH_TIMEOUT_S = float(os.getenv("DOCBUILD_FETCH_TIMEOUT_S", str(DEFAULT_FETCH_TIMEOUT_S)))
DOCBUILD_FETCH_MAX_RETRIES = int(os.getenv("DOCBUILD_FETCH_MAX_RETRIES", str(DEFAULT_FETCH_MAX_RETRIES)))
DOCBUILD_FETCH_BACKOFF_S = float(os.getenv("DOCBUILD_FETCH_BACKOFF_S", str(DEFAULT_FETCH_BACKOFF_S)))
DOCBUILD_EXTERNAL_CONCURRENCY = int(
    os.getenv("DOCBUILD_EXTERNAL_CONCURRENCY", str(DEFAULT_EXTERNAL_CONCURRENCY))
)
DOCBUILD_USER_AGENT = os.getenv("DOCBUILD_USER_AGENT", DEFAULT_USER_AGENT)
DOCBUILD_LOG_LEVEL = os.getenv("DOCBUILD_LOG_LEVEL", DEFAULT_LOG_LEVEL)
