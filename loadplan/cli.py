"""CLI entry point for loadplan.

Validates YAML plan files and exports them as the JSON the execution engine
consumes. Nothing here issues HTTP traffic.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console

from . import __version__
from .config import load_plan
from .exceptions import LoadPlanError
from .export import write_plan
from .logging_config import get_logger
from .summary import print_plan_summary

logger = get_logger("cli")

DEFAULT_OUTPUT = "plan.json"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loadplan",
        description="Compose and validate HTTP load-test plans. "
        "Scenarios, injection profiles and protocol settings in one immutable plan.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"loadplan {__version__}",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Load a YAML plan, validate it and print a summary")
    validate.add_argument("plan", help="Path to YAML plan file")

    export = sub.add_parser("export", help="Load a YAML plan and write it as engine-ready JSON")
    export.add_argument("plan", help="Path to YAML plan file")
    export.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT,
        help=f"Output path for JSON plan (default: {DEFAULT_OUTPUT})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    def handle_error(e: BaseException) -> int:
        if isinstance(e, LoadPlanError):
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        if isinstance(e, (FileNotFoundError, ValueError)):
            print(f"Error: {e}", file=sys.stderr)
            return 1
        logger.exception("Unexpected error")
        print("Error: An unexpected error occurred. Check logs for details.", file=sys.stderr)
        return 1

    try:
        plan = load_plan(Path(args.plan))
        if args.command == "validate":
            print_plan_summary(plan, Console())
            print(f"Plan '{plan.name}' is valid.")
        else:
            out = write_plan(plan, args.output)
            print(f"Plan '{plan.name}' written to {out}")
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        return handle_error(e)
    return 0


if __name__ == "__main__":
    sys.exit(main())
