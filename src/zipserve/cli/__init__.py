"""
zipserve CLI package.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Argument registration helpers
- _dispatcher: Parser construction and the console entry point
"""
from ._output import OutputFormatter, print_success

__all__ = [
    "OutputFormatter",
    "print_success",
]
