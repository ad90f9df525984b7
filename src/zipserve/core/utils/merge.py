"""Recursive dictionary merging for layered configuration.

Mappings merge key by key; any other value (lists included) in the
override replaces the base value outright.
"""
from __future__ import annotations

from typing import Any, Dict


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries without mutating inputs.

    Args:
        base: Base dictionary (lower priority)
        override: Override dictionary (higher priority)

    Returns:
        New merged dictionary

    Example:
        >>> base = {"server": {"port": 8080, "host": ""}}
        >>> override = {"server": {"port": 9000}}
        >>> deep_merge(base, override)
        {'server': {'port': 9000, 'host': ''}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


__all__ = ["deep_merge"]
