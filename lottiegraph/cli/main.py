"""Main CLI entry point for lottiegraph."""

from __future__ import annotations

import argparse
import logging
import sys

from .. import __version__
from .compile_cli import build_compile_parser
from .normalize_cli import build_normalize_parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="lottiegraph",
        description="Compile Lottie animations into keyframe-animated graphic elements",
    )
    parser.add_argument("--version", action="version", version=f"lottiegraph {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Log progress (-v) or debug details (-vv) to stderr",
    )
    subparsers = parser.add_subparsers(dest="command")
    build_compile_parser(subparsers)
    build_normalize_parser(subparsers)
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0
    _configure_logging(args.verbose)
    return args.func(args)


def cli_entry() -> None:
    sys.exit(main())
