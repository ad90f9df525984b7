"""
CLI entry point for zipserve.

The program has a single command, so the serve module's arguments are
registered directly on the top-level parser.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable

from zipserve.cli import serve


def _get_version() -> str:
    """Get zipserve version string."""
    try:
        from zipserve import __version__
        return __version__
    except ImportError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="zipserve",
        description=(
            "zipserve is a simple tool to serve the contents of a ZIP file over HTTP.\n"
            "It allows you to quickly share files contained in a ZIP archive "
            "(such as a lecture web site) via a web browser."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    serve.register_args(parser)
    parser.set_defaults(_func=serve.main)
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for zipserve CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)

    func: Callable[[argparse.Namespace], int] = args._func
    try:
        return func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
