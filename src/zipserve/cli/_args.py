"""Argument registration helpers for zipserve commands."""
from __future__ import annotations

import argparse

from zipserve.core.site import PREFIX_FILE_NAME
from zipserve.core.web_server.models import DEFAULT_PORT


def _port_number(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port number: {value!r}") from exc
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between 0 and 65535, got {port}")
    return port


def add_archive_arg(parser: argparse.ArgumentParser) -> None:
    """Add the ZIPFILE positional argument."""
    parser.add_argument(
        "zipfile",
        metavar="ZIPFILE",
        help="ZIP archive containing the web site",
    )


def add_port_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--port",
        "-p",
        type=_port_number,
        default=None,
        help=f"Port number (default: {DEFAULT_PORT}, or server.port from config)",
    )


def add_prefix_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--prefix",
        "-q",
        default="",
        help=f"Path prefix. If not set, the prefix is read from the {PREFIX_FILE_NAME} file inside the zip file.",
    )


def add_directory_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--directory",
        "-d",
        default="",
        help=f"Directory to serve in the zip file. If not set, the directory containing the {PREFIX_FILE_NAME} file is used",
    )


def add_skip_browser_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--skip-browser",
        "-n",
        action="store_true",
        help="Do not open the browser automatically",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--json",
        action="store_true",
        help="Report the serving URL and errors as JSON",
    )


def add_config_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config file (default: ~/.zipserve/config.yaml when present)",
    )


def add_serve_args(parser: argparse.ArgumentParser) -> None:
    """Register every argument of the serve command."""
    add_archive_arg(parser)
    add_port_flag(parser)
    add_prefix_flag(parser)
    add_directory_flag(parser)
    add_skip_browser_flag(parser)
    add_verbose_flag(parser)
    add_json_flag(parser)
    add_config_flag(parser)


__all__ = [
    "add_archive_arg",
    "add_port_flag",
    "add_prefix_flag",
    "add_directory_flag",
    "add_skip_browser_flag",
    "add_verbose_flag",
    "add_json_flag",
    "add_config_flag",
    "add_serve_args",
]
