from __future__ import annotations

import posixpath
from dataclasses import dataclass
from datetime import datetime, timezone

ROOT = "."


def normalize_entry_path(path: str) -> str:
    """Return the canonical archive-relative form of ``path``.

    Leading slashes are dropped, ``.``/``..`` segments and repeated slashes
    are collapsed, and ``..`` can never climb above the archive root. The
    logical root is ``"."``.

    >>> normalize_entry_path("/site//css/../index.html")
    'site/index.html'
    >>> normalize_entry_path("../../etc/passwd")
    'etc/passwd'
    >>> normalize_entry_path("")
    '.'
    """
    cleaned = posixpath.normpath("/" + str(path or "").lstrip("/"))
    return cleaned.lstrip("/") or ROOT


def join_entry_path(root: str, path: str) -> str:
    """Join ``path`` under ``root`` without letting it escape ``root``."""
    rel = normalize_entry_path(path)
    base = normalize_entry_path(root)
    if base == ROOT:
        return rel
    if rel == ROOT:
        return base
    return f"{base}/{rel}"


@dataclass(frozen=True)
class ArchiveEntry:
    """Metadata for one file or (possibly synthesized) directory in an archive."""

    path: str
    is_dir: bool
    size: int = 0
    modified: datetime | None = None

    @property
    def name(self) -> str:
        if self.path == ROOT:
            return ROOT
        return posixpath.basename(self.path)

    @property
    def parent(self) -> str:
        if self.path == ROOT:
            return ROOT
        return posixpath.dirname(self.path) or ROOT


def zip_timestamp(date_time: tuple[int, int, int, int, int, int]) -> datetime | None:
    """Convert a ZipInfo ``date_time`` tuple to an aware UTC datetime.

    ZIP timestamps carry no zone; they are treated as UTC. Out-of-range
    values written by some archivers yield ``None``.
    """
    try:
        return datetime(*date_time, tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


__all__ = ["ROOT", "ArchiveEntry", "normalize_entry_path", "join_entry_path", "zip_timestamp"]
