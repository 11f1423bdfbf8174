"""
CLI command for migrating a legacy Lottie file to the current encoding.

Usage:
    lottiegraph normalize old_animation.json -o animation.json
"""

from __future__ import annotations

import argparse
import sys

from ..exceptions import LottieGraphError
from ..normalize import normalize
from .compile_cli import dump_document, read_document, write_output


def cmd_normalize(args: argparse.Namespace) -> int:
    """Main handler for ``lottiegraph normalize``."""
    try:
        document = read_document(args.input)
    except (OSError, ValueError) as exc:
        print(f"Error: cannot read {args.input}: {exc}", file=sys.stderr)
        return 1

    try:
        doc = normalize(document)
    except LottieGraphError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    write_output(dump_document(doc.data, "json", args.indent), args.output)
    return 0


def build_normalize_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``normalize`` subcommand and its arguments."""
    p = subparsers.add_parser(
        "normalize",
        help="Migrate a Lottie JSON file to the current encoding",
        description="Rewrite version-specific legacy encodings (0-255 colors, "
                    "relative path tangents, shape-level closed flags) and "
                    "expand precompositions.",
    )
    p.add_argument(
        "input",
        help="Path to the Lottie JSON file, or - for stdin",
    )
    p.add_argument(
        "-o", "--output", default=None,
        help="Output file path (default: stdout)",
    )
    p.add_argument(
        "--indent", type=int, default=2,
        help="JSON indentation; 0 for compact output (default: 2)",
    )
    p.set_defaults(func=cmd_normalize)
