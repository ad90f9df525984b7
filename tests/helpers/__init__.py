"""Test helper modules for the zipserve test suite.

- archives: ZIP fixture builders and canned site layouts
- http: a live-server context manager and a non-redirecting request helper
"""
from __future__ import annotations
