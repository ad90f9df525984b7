"""CLI output formatting utilities.

Human-facing results go to stdout, errors to stderr; both bypass logging so
they stay visible whatever the configured log level.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Optional


class OutputFormatter:
    """Output formatter for CLI commands (text or JSON)."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON; otherwise output text
            indent: JSON indentation level
        """
        self.json_mode = json_mode
        self.indent = indent

    def error(
        self,
        error: Exception,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
    ) -> None:
        """Output error result.

        Args:
            error: The exception that occurred
            message: Optional human-readable message (defaults to str(error))
            error_code: Error code for JSON output
        """
        msg = message or str(error)
        if self.json_mode:
            to_json = getattr(error, "to_json_error", None)
            output = to_json() if callable(to_json) else {"code": error_code, "message": msg}
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        print(json.dumps(data, indent=self.indent, default=str), flush=True)

    def text(self, message: str) -> None:
        print(message, flush=True)


def print_success(message: str) -> None:
    """Print success message with checkmark."""
    print(f"✓ {message}", flush=True)


__all__ = ["OutputFormatter", "print_success"]
