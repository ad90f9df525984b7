from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_ZIPSERVE_HANDLERS: list[logging.Handler] = []


def _level_from_name(name: str) -> int:
    try:
        return int(getattr(logging, name.upper()))
    except Exception:
        return logging.INFO


def configure_stdlib_logging(
    *,
    level: str = "INFO",
    fmt: str = DEFAULT_FORMAT,
    log_path: Path | None = None,
    stream: TextIO | None = None,
) -> None:
    """Route stdlib logging to stderr (and optionally `log_path`).

    Handlers installed by a previous call are replaced, so calling this again
    with a different level or path reconfigures instead of duplicating output.
    """
    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    for h in _ZIPSERVE_HANDLERS:
        root.removeHandler(h)
        try:
            h.close()
        except Exception:
            pass
    _ZIPSERVE_HANDLERS.clear()

    formatter = logging.Formatter(fmt)

    sh = logging.StreamHandler(stream if stream is not None else sys.stderr)
    sh.setFormatter(formatter)
    root.addHandler(sh)
    _ZIPSERVE_HANDLERS.append(sh)

    if log_path is not None:
        resolved = Path(log_path).expanduser().resolve()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(resolved, encoding="utf-8")
        fh.setFormatter(formatter)
        root.addHandler(fh)
        _ZIPSERVE_HANDLERS.append(fh)


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the handlers installed by configure_stdlib_logging and restore the root level."""
    root = logging.getLogger()
    root.setLevel(logging.WARNING)
    for h in _ZIPSERVE_HANDLERS:
        root.removeHandler(h)
        try:
            h.close()
        except Exception:
            pass
    _ZIPSERVE_HANDLERS.clear()


__all__ = ["DEFAULT_FORMAT", "configure_stdlib_logging", "reset_stdlib_logging_for_tests"]
