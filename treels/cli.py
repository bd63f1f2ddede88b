"""Command-line front door for treels.

Parses CLI options over config defaults, builds a flat listing or a tree,
and prints aligned rows. Warnings go to stderr; only an invalid root fails
the run.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import TextIO

import structlog

from .config import load_defaults
from .errors import InvalidRootError
from .listing import list_directory, listed_nodes
from .log import configure_logging
from .tree_model.build import build_tree
from .tree_model.layout import flat_records, layout
from .tree_model.rendering import write_records
from .tree_model.types import BuildOptions, BuildResult
from .ui_theme import resolve_theme

EXIT_INVALID_ROOT = 2

logger = structlog.get_logger(__name__)


def _non_negative_int(value: str) -> int:
    """argparse type for integer values >= 0."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    parsed = _non_negative_int(value)
    if parsed == 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def build_parser(defaults: dict[str, object] | None = None) -> argparse.ArgumentParser:
    """Return the argument parser with config values applied as defaults."""
    parser = argparse.ArgumentParser(
        prog="treels",
        description="List a directory or print it as a tree, with git status and sizes.",
    )
    parser.add_argument("path", nargs="?", default=".", help="Directory or file to list. Defaults to '.'.")
    parser.add_argument("-l", "--long", action="store_true", help="Show permissions, owner, size and mtime.")
    parser.add_argument("-t", "--tree", action="store_true", help="Print a recursive tree.")
    parser.add_argument(
        "-d",
        "--depth",
        type=_non_negative_int,
        default=None,
        help="Maximum tree depth (default: unbounded).",
    )
    parser.add_argument(
        "-a",
        "--all",
        dest="show_all",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Show hidden and ignored entries.",
    )
    parser.add_argument(
        "-g",
        "--git",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Annotate entries with git status.",
    )
    parser.add_argument(
        "-s",
        "--calculate-sizes",
        dest="calculate_sizes",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Compute recursive directory sizes.",
    )
    parser.add_argument(
        "-j",
        "--workers",
        type=_positive_int,
        default=1,
        help="Directories listed in parallel (default: 1).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--log-level", default=None, help="Diagnostic log level (default: warning).")
    if defaults:
        parser.set_defaults(**{key: value for key, value in defaults.items() if key != "status_precedence"})
    return parser


def options_from_args(args: argparse.Namespace, defaults: dict[str, object] | None = None) -> BuildOptions:
    """Translate parsed arguments into ``BuildOptions``."""
    kwargs: dict[str, object] = {
        "show_all": args.show_all,
        "max_depth": args.depth if args.tree else None,
        "compute_git": args.git,
        "compute_sizes": args.calculate_sizes,
        "workers": args.workers,
    }
    if defaults and "status_precedence" in defaults:
        kwargs["status_precedence"] = defaults["status_precedence"]
    return BuildOptions(**kwargs)  # type: ignore[arg-type]


def _use_color(args: argparse.Namespace, stream: TextIO) -> bool:
    if args.no_color or os.environ.get("NO_COLOR"):
        return False
    if getattr(args, "color", True) is False:
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def report_warnings(result: BuildResult, stream: TextIO) -> None:
    for warning in result.warnings:
        stream.write(f"treels: warning: {warning}\n")


def main(
    argv: list[str] | None = None,
    *,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    config_path: Path | None = None,
) -> int:
    """Parse CLI arguments, print the listing, and return the exit status.

    ``stdout``/``stderr``/``config_path`` are primarily for tests.
    """
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    # Logging must be routed to stderr before config loading can log.
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--log-level", default=None)
    pre_parser.add_argument("-d", "--depth", default=None)
    pre_args, _ = pre_parser.parse_known_args(argv)
    configure_logging(pre_args.log_level, stream=err)

    defaults = load_defaults(config_path)
    parser = build_parser(defaults)
    args = parser.parse_args(argv)
    if pre_args.depth is not None and not args.tree:
        parser.error("argument -d/--depth: requires -t/--tree")

    options = options_from_args(args, defaults)
    root_path = Path(args.path)
    logger.debug("run_started", path=str(root_path), tree=args.tree, options=repr(options))
    try:
        if args.tree:
            result = build_tree(root_path, options)
            records = layout(result.root, root_label=args.path)
        else:
            result = list_directory(root_path, options)
            records = flat_records(listed_nodes(result))
    except InvalidRootError as exc:
        err.write(f"treels: {exc}\n")
        return EXIT_INVALID_ROOT

    theme = resolve_theme(no_color=not _use_color(args, out))
    write_records(
        records,
        out,
        long=args.long,
        show_git=options.compute_git,
        show_size=options.compute_sizes,
        theme=theme,
    )
    report_warnings(result, err)
    return 0


if __name__ == "__main__":
    sys.exit(main())
