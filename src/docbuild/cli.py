"""Command line entry point: ``docbuild validate`` and ``docbuild render``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from docbuild.config import DOCBUILD_LOG_LEVEL, DOCBUILD_RECOVERY_DEPTH
from docbuild.exceptions import RenderBlockedError, RootNotFoundError
from docbuild.pipeline import BuildOptions, build, render_book
from docbuild.renderer import format_site_summary
from docbuild.schemas import ValidationReport
from docbuild.utils.logging_config import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docbuild",
        description="Validate and render GitBook-style Markdown books.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress (INFO level)")
    parser.add_argument("--log-level", default=None, help=f"Log level (default {DOCBUILD_LOG_LEVEL})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Check manifest, directives and links")
    validate_parser.add_argument("root", type=Path, help="Book root containing SUMMARY.md")
    _add_build_options(validate_parser)

    render_parser = subparsers.add_parser("render", help="Validate, then write the rendered site")
    render_parser.add_argument("root", type=Path, help="Book root containing SUMMARY.md")
    render_parser.add_argument("out_dir", type=Path, help="Directory to write site.json, book.md, nav.txt")
    _add_build_options(render_parser)
    return parser


def _add_build_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--summary", default=None, help="Manifest file relative to the content root")
    parser.add_argument("--strict", action="store_true", help="Treat warnings as errors")
    parser.add_argument(
        "--check-external",
        action="store_true",
        help="Probe external http(s) links over the network",
    )
    parser.add_argument(
        "--recovery-depth",
        type=int,
        default=DOCBUILD_RECOVERY_DEPTH,
        help="How many open directives a mismatched closing tag may skip over",
    )


def _options_from(args: argparse.Namespace) -> BuildOptions:
    return BuildOptions(
        summary_file=args.summary,
        check_external=args.check_external,
        recovery_depth=args.recovery_depth,
        strict=args.strict,
    )


def print_report(report: ValidationReport) -> None:
    for issue in report.issues:
        print(issue.format())
    print(report.summary_line())


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = args.log_level or ("INFO" if args.verbose else None)
    configure_logging(level)

    try:
        if args.command == "validate":
            report = build(args.root, _options_from(args)).report
            print_report(report)
            return EXIT_INVALID if report.has_errors else EXIT_OK

        site, report = render_book(args.root, args.out_dir, _options_from(args))
        print_report(report)
        print(format_site_summary(site))
        print(f"Wrote {args.out_dir}")
        return EXIT_OK
    except RootNotFoundError as exc:
        print(f"fatal: {exc}", file=sys.stderr)
        return EXIT_FATAL
    except RenderBlockedError as exc:
        if exc.report is not None:
            print_report(exc.report)
        print(f"render refused: {exc}", file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
