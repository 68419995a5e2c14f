"""Command line entry point: ``syndef diff`` and ``syndef format``."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, TextIO

from .decompiler import load_synthdef
from .differ import diff, format_differences
from .graph import SynthDefError
from .serializers import FORMATS, to_dot, to_json, to_xml
from .tree import render

logger = logging.getLogger(__name__)

DEFAULT_COLUMN_WIDTH = 50


@dataclass(frozen=True)
class Options:
    """Settings shared by the ``diff`` and ``format`` commands."""

    column_width: int = DEFAULT_COLUMN_WIDTH
    commutative: bool = False
    name: str | None = None
    output_format: str = "tree"
    verbosity: int = 0

    def __post_init__(self) -> None:
        if self.column_width < 1:
            raise ValueError(f"column width must be positive, got {self.column_width}")
        if self.output_format not in FORMATS:
            raise ValueError(f"unknown output format: {self.output_format!r}")

    @property
    def log_level(self) -> int:
        return {0: logging.WARNING, 1: logging.INFO}.get(self.verbosity, logging.DEBUG)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v",
        "--verbose",
        dest="verbosity",
        action="count",
        default=0,
        help="Increase log output (repeat for debug output)",
    )
    common.add_argument(
        "--name",
        help="Synthdef to select from files holding more than one definition",
    )
    parser = argparse.ArgumentParser(
        prog="syndef", description="Inspect and diff SuperCollider synthdef files"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    diff_parser = commands.add_parser(
        "diff", parents=[common], help="Report structural differences between two synthdefs"
    )
    diff_parser.add_argument("left", type=Path, help="First synthdef file")
    diff_parser.add_argument("right", type=Path, help="Second synthdef file")
    diff_parser.add_argument(
        "--commutative",
        action="store_true",
        help="Ignore swapped operands of commutative binary operators",
    )
    diff_parser.add_argument(
        "--width",
        dest="column_width",
        type=int,
        default=DEFAULT_COLUMN_WIDTH,
        help="Column width of the diff table",
    )

    format_parser = commands.add_parser(
        "format", parents=[common], help="Render a synthdef as a tree, JSON, DOT or XML"
    )
    format_parser.add_argument("path", type=Path, help="Synthdef file")
    format_parser.add_argument(
        "-o",
        "--output",
        dest="output_format",
        choices=FORMATS,
        default="tree",
        help="Output format (default: tree)",
    )
    return parser


def _options_from_args(args: argparse.Namespace) -> Options:
    return Options(
        column_width=getattr(args, "column_width", DEFAULT_COLUMN_WIDTH),
        commutative=getattr(args, "commutative", False),
        name=args.name,
        output_format=getattr(args, "output_format", "tree"),
        verbosity=args.verbosity,
    )


def run_diff(left: Path, right: Path, options: Options, stream: TextIO) -> int:
    differences = diff(
        load_synthdef(left, name=options.name),
        load_synthdef(right, name=options.name),
        commutative=options.commutative,
    )
    logger.info("%d differences between %s and %s", len(differences), left, right)
    print(
        format_differences(differences, str(left), str(right), width=options.column_width),
        file=stream,
    )
    return len(differences)


def run_format(path: Path, options: Options, stream: TextIO) -> None:
    synthdef = load_synthdef(path, name=options.name)
    if options.output_format == "json":
        print(to_json(synthdef), file=stream)
    elif options.output_format == "dot":
        print(to_dot(synthdef), file=stream)
    elif options.output_format == "xml":
        print(to_xml(synthdef), file=stream)
    else:
        for line in render(synthdef):
            print(line, file=stream)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        options = _options_from_args(args)
    except ValueError as e:
        parser.error(str(e))
    logging.basicConfig(level=options.log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        if args.command == "diff":
            run_diff(args.left, args.right, options, sys.stdout)
        else:
            run_format(args.path, options, sys.stdout)
    except (SynthDefError, OSError) as e:
        print(f"syndef: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
