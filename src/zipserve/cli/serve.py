"""
zipserve serve command.

SUMMARY: Serve contents of a ZIP file over HTTP
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict

from zipserve.cli._args import add_serve_args
from zipserve.cli._output import OutputFormatter, print_success
from zipserve.core.config import ConfigManager
from zipserve.core.exceptions import ConfigError, ZipServeError
from zipserve.core.serve import serve_archive
from zipserve.core.utils import configure_stdlib_logging
from zipserve.core.utils.stdlib_logging import DEFAULT_FORMAT
from zipserve.core.web_server import WebServerConfig

SUMMARY = "Serve contents of a ZIP file over HTTP"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_serve_args(parser)


def load_effective_config(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge config files and environment, then apply command-line flags."""
    config_path = Path(args.config) if getattr(args, "config", None) else None
    cfg = ConfigManager(config_path).load_config()

    if getattr(args, "port", None) is not None:
        cfg["server"]["port"] = int(args.port)
    if getattr(args, "skip_browser", False):
        cfg["browser"]["open"] = False
    if getattr(args, "verbose", False):
        cfg["logging"]["level"] = "DEBUG"
    return cfg


def _announcer(formatter: OutputFormatter):
    def announce(url: str) -> None:
        if formatter.json_mode:
            formatter.json_output({"status": "running", "url": url})
            return
        formatter.text("")
        print_success(f"Server running at {url}")
        formatter.text("  Press Ctrl+C to stop the server.")

    return announce


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=bool(getattr(args, "json", False)))

    try:
        cfg = load_effective_config(args)
        web_config = WebServerConfig.from_raw(cfg)
    except (ConfigError, ValueError) as exc:
        formatter.error(exc, error_code="config_error")
        return 1

    log_cfg = cfg.get("logging") or {}
    log_file = log_cfg.get("file")
    configure_stdlib_logging(
        level=str(log_cfg.get("level") or "INFO"),
        fmt=str(log_cfg.get("format") or DEFAULT_FORMAT),
        log_path=Path(log_file) if log_file else None,
    )

    try:
        return serve_archive(
            args.zipfile,
            config=web_config,
            prefix=args.prefix or "",
            directory=args.directory or "",
            launch_browser=bool((cfg.get("browser") or {}).get("open", True)),
            announce=_announcer(formatter),
        )
    except ZipServeError as exc:
        formatter.error(exc, error_code=exc.__class__.__name__)
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
