from __future__ import annotations

import posixpath
from dataclasses import replace
from typing import IO, TYPE_CHECKING, Iterator

from zipserve.core.exceptions import EntryNotFoundError, RootNotDirectoryError

from .models import ROOT, ArchiveEntry, join_entry_path, normalize_entry_path

if TYPE_CHECKING:
    from .reader import ArchiveReader


class ArchiveView:
    """A read-only projection of an archive rooted at ``root``.

    Every path handed to a view is interpreted relative to its root and
    cannot climb above it; entries come back with paths relative to the
    root as well. A view holds no resources of its own and fails with
    ``ArchiveClosedError`` once the reader behind it is closed.
    """

    def __init__(self, reader: ArchiveReader, root: str = ROOT) -> None:
        self._reader = reader
        self.root = normalize_entry_path(root)

    @property
    def reader(self) -> ArchiveReader:
        return self._reader

    def _full(self, path: str) -> str:
        return join_entry_path(self.root, path)

    def _relative(self, entry: ArchiveEntry) -> ArchiveEntry:
        if self.root == ROOT:
            return entry
        if entry.path == self.root:
            rel = ROOT
        else:
            rel = posixpath.relpath(entry.path, self.root)
        return replace(entry, path=rel)

    def stat(self, path: str) -> ArchiveEntry:
        return self._relative(self._reader.stat(self._full(path)))

    def list_dir(self, path: str = ROOT) -> list[ArchiveEntry]:
        return [self._relative(e) for e in self._reader.list_dir(self._full(path))]

    def open_entry(self, path: str) -> IO[bytes]:
        return self._reader.open_entry(self._full(path))

    def exists(self, path: str) -> bool:
        try:
            self.stat(path)
        except EntryNotFoundError:
            return False
        return True

    def walk(self, top: str = ROOT) -> Iterator[ArchiveEntry]:
        """Yield ``top`` and everything below it, depth-first in name order.

        Siblings are visited in lexicographic order and each directory is
        descended into as soon as it is yielded, so the sequence is stable
        for a given archive. Stopping iteration early skips the rest.
        Entries that disappear between listing and visiting are skipped.
        """
        stack = [self.stat(top)]
        while stack:
            entry = stack.pop()
            yield entry
            if not entry.is_dir:
                continue
            try:
                children = self.list_dir(entry.path)
            except EntryNotFoundError:
                continue
            stack.extend(reversed(children))

    def sub(self, root: str) -> ArchiveView:
        """Return a view rooted at ``root`` (relative to this view).

        Raises:
            RootNotDirectoryError: If ``root`` is missing or not a directory.
        """
        target = self._full(root)
        try:
            entry = self._reader.stat(target)
        except EntryNotFoundError as exc:
            raise RootNotDirectoryError(
                f"Directory {root} not found or is not a directory in zip file",
                context={"directory": root},
            ) from exc
        if not entry.is_dir:
            raise RootNotDirectoryError(
                f"Directory {root} not found or is not a directory in zip file",
                context={"directory": root},
            )
        return ArchiveView(self._reader, target)

    def __repr__(self) -> str:
        return f"<ArchiveView {self.root!r} of {self._reader!r}>"


__all__ = ["ArchiveView"]
