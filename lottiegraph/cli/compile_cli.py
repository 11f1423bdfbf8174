"""
CLI command for compiling a Lottie JSON file into an element tree.

Usage:
    lottiegraph compile animation.json -o elements.json
    lottiegraph compile animation.json --loop --format yaml
    cat animation.json | lottiegraph compile - --indent 0
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import yaml

from ..compiler import compile_animation
from ..config import load_options
from ..exceptions import LottieGraphError


def read_document(source: str) -> Any:
    """Parse a JSON document from a path, or from stdin for ``-``."""
    if source == "-":
        return json.load(sys.stdin)
    return json.loads(Path(source).read_text(encoding="utf-8"))


def dump_document(data: Any, fmt: str = "json", indent: int | None = 2) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
    if indent is not None and indent <= 0:
        return json.dumps(data, separators=(",", ":"))
    return json.dumps(data, indent=indent)


def write_output(text: str, output: str | None) -> None:
    if output is None or output == "-":
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
        return
    Path(output).write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")


def cmd_compile(args: argparse.Namespace) -> int:
    """Main handler for ``lottiegraph compile``."""
    try:
        document = read_document(args.input)
    except (OSError, ValueError) as exc:
        print(f"Error: cannot read {args.input}: {exc}", file=sys.stderr)
        return 1

    try:
        options = load_options(args.config, loop=True if args.loop else None)
        result = compile_animation(document, options)
    except LottieGraphError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    write_output(dump_document(result.to_dict(), args.format, args.indent), args.output)
    if args.output and args.output != "-":
        print(f"Wrote {len(result.elements)} top-level elements to {args.output}",
              file=sys.stderr)
    return 0


def build_compile_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``compile`` subcommand and its arguments."""
    p = subparsers.add_parser(
        "compile",
        help="Compile a Lottie JSON file into graphic elements",
        description="Compile a Lottie animation into groups and custom shape "
                    "elements with keyframe animation timelines.",
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
        "--loop", action="store_true",
        help="Mark every timeline as looping",
    )
    p.add_argument(
        "--config", default=None,
        help="YAML file with compile options (default: $LOTTIEGRAPH_CONFIG "
             "or ~/.config/lottiegraph/config.yaml)",
    )
    p.add_argument(
        "--format", choices=["json", "yaml"], default="json",
        help="Output format (default: json)",
    )
    p.add_argument(
        "--indent", type=int, default=2,
        help="JSON indentation; 0 for compact output (default: 2)",
    )
    p.set_defaults(func=cmd_compile)
