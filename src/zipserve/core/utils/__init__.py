"""Shared helpers with no knowledge of archives or HTTP."""

from .merge import deep_merge
from .stdlib_logging import configure_stdlib_logging, reset_stdlib_logging_for_tests

__all__ = ["deep_merge", "configure_stdlib_logging", "reset_stdlib_logging_for_tests"]
