"""Read-only hierarchical access to the entries of a ZIP archive.

ZIP files list their members flat and do not always carry explicit
directory entries, so the reader infers every parent directory from the
member paths when the archive is opened. After that the index never
changes, which makes lookups safe from concurrent request threads.
"""
from __future__ import annotations

import logging
import threading
import zipfile
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import IO, Iterator

from zipserve.core.exceptions import (
    ArchiveClosedError,
    ArchiveOpenError,
    EntryNotFoundError,
    EntryReadError,
)

from .models import ROOT, ArchiveEntry, normalize_entry_path, zip_timestamp
from .view import ArchiveView

logger = logging.getLogger(__name__)


class ArchiveReader:
    """An open ZIP archive exposed as a read-only tree of entries.

    Paths are archive-relative with ``/`` separators; ``"."`` is the
    logical root. Use :meth:`open` to construct one and :meth:`close` (or a
    ``with`` block) to release the underlying file.
    """

    def __init__(self, zf: zipfile.ZipFile, *, source: str = "") -> None:
        self._zip: zipfile.ZipFile | None = zf
        self._close_lock = threading.Lock()
        self.source = source or str(zf.filename or "")

        self._files: dict[str, zipfile.ZipInfo] = {}
        self._dirs: dict[str, ArchiveEntry] = {ROOT: ArchiveEntry(path=ROOT, is_dir=True)}
        self._children: dict[str, set[str]] = {ROOT: set()}
        self._build_index(zf)

    @classmethod
    def open(cls, path: str | PathLike[str]) -> ArchiveReader:
        """Open ``path`` as a ZIP archive.

        Raises:
            ArchiveOpenError: If the file is missing, unreadable, or not a ZIP.
        """
        source = str(Path(path))
        logger.debug("Opening file %s", source)
        try:
            zf = zipfile.ZipFile(source, "r")
        except (zipfile.BadZipFile, OSError) as exc:
            raise ArchiveOpenError(
                f"Failed to open zip file {source}: {exc}",
                context={"path": source},
            ) from exc
        return cls(zf, source=source)

    # ---------------------------------------------------------------- index

    def _build_index(self, zf: zipfile.ZipFile) -> None:
        for info in zf.infolist():
            norm = normalize_entry_path(info.filename)
            if norm == ROOT:
                continue
            if info.is_dir():
                self._add_dir(norm, zip_timestamp(info.date_time))
                continue
            if norm in self._dirs:
                logger.debug("Ignoring file entry %s shadowed by a directory", info.filename)
                continue
            self._files[norm] = info
            self._link(norm)

    def _add_dir(self, path: str, modified: datetime | None = None) -> None:
        existing = self._dirs.get(path)
        if existing is not None:
            if modified is not None and existing.modified is None:
                self._dirs[path] = ArchiveEntry(path=path, is_dir=True, modified=modified)
            return
        if path in self._files:
            # A directory wins over a file of the same name.
            del self._files[path]
        self._dirs[path] = ArchiveEntry(path=path, is_dir=True, modified=modified)
        self._children.setdefault(path, set())
        self._link(path)

    def _link(self, path: str) -> None:
        parent, _, _ = path.rpartition("/")
        parent = parent or ROOT
        if parent not in self._dirs:
            self._add_dir(parent)
        self._children[parent].add(path)

    # --------------------------------------------------------------- access

    @property
    def closed(self) -> bool:
        return self._zip is None

    def _require_open(self) -> zipfile.ZipFile:
        zf = self._zip
        if zf is None:
            raise ArchiveClosedError(
                f"Archive {self.source} is already closed",
                context={"path": self.source},
            )
        return zf

    def stat(self, path: str) -> ArchiveEntry:
        """Return metadata for ``path`` without extracting it.

        Raises:
            EntryNotFoundError: If nothing exists at ``path``.
        """
        self._require_open()
        norm = normalize_entry_path(path)
        entry = self._dirs.get(norm)
        if entry is not None:
            return entry
        info = self._files.get(norm)
        if info is None:
            raise EntryNotFoundError(f"{norm}: no such entry in archive", context={"path": norm})
        return ArchiveEntry(
            path=norm,
            is_dir=False,
            size=int(info.file_size),
            modified=zip_timestamp(info.date_time),
        )

    def list_dir(self, path: str) -> list[ArchiveEntry]:
        """Return the direct children of directory ``path`` sorted by name."""
        self._require_open()
        norm = normalize_entry_path(path)
        if norm not in self._dirs:
            if norm in self._files:
                raise EntryReadError(f"{norm}: not a directory", context={"path": norm})
            raise EntryNotFoundError(f"{norm}: no such entry in archive", context={"path": norm})
        children = sorted(self._children.get(norm, ()), key=lambda p: p.rpartition("/")[2])
        return [self.stat(child) for child in children]

    def open_entry(self, path: str) -> IO[bytes]:
        """Open file ``path`` for sequential binary reading.

        Raises:
            EntryNotFoundError: If nothing exists at ``path``.
            EntryReadError: If ``path`` is a directory or cannot be decoded.
        """
        zf = self._require_open()
        norm = normalize_entry_path(path)
        if norm in self._dirs:
            raise EntryReadError(f"{norm}: is a directory", context={"path": norm})
        info = self._files.get(norm)
        if info is None:
            raise EntryNotFoundError(f"{norm}: no such entry in archive", context={"path": norm})
        try:
            return zf.open(info, "r")
        except (zipfile.BadZipFile, NotImplementedError, RuntimeError, OSError) as exc:
            raise EntryReadError(f"{norm}: {exc}", context={"path": norm}) from exc

    def entries(self) -> Iterator[ArchiveEntry]:
        """Yield every entry (synthesized directories included) in path order."""
        self._require_open()
        for path in sorted(set(self._dirs) | set(self._files)):
            yield self.stat(path)

    def view(self, root: str = ROOT) -> ArchiveView:
        """Return a read-only view with lookups rewritten under ``root``."""
        return ArchiveView(self, ROOT).sub(root)

    @property
    def root_view(self) -> ArchiveView:
        return ArchiveView(self, ROOT)

    # -------------------------------------------------------------- release

    def close(self) -> None:
        """Release the archive file. Safe to call more than once."""
        with self._close_lock:
            zf, self._zip = self._zip, None
        if zf is None:
            return
        logger.debug("Closing zip file %s", self.source)
        try:
            zf.close()
        except Exception as exc:
            logger.error("Failed to close zip file %s: %s", self.source, exc)

    def __enter__(self) -> ArchiveReader:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<ArchiveReader {self.source!r} ({state})>"


__all__ = ["ArchiveReader"]
