"""Locate the site inside an archive and derive the URL prefix it is served under.

Both lookups are driven by a ``.prefix`` marker file:

- With no explicit directory, the first marker found while walking the
  archive (depth-first, name order) decides the site root: its parent.
- With no explicit prefix, the first line of the marker inside the site
  root is the prefix.

Whatever the source, the prefix is normalized to start and end with ``/``.
"""
from __future__ import annotations

import io
import logging
import posixpath
import zipfile

from zipserve.core.archive import ROOT, ArchiveView, join_entry_path
from zipserve.core.exceptions import (
    EntryNotFoundError,
    TraversalError,
    ZipServeError,
)

from .models import SiteLayout

logger = logging.getLogger(__name__)

PREFIX_FILE_NAME = ".prefix"
DEFAULT_DIRECTORY = ROOT
MAX_PREFIX_LINE = 64 * 1024


def find_root_directory(view: ArchiveView) -> str:
    """Return the parent directory of the first marker file in ``view``.

    Falls back to the logical root when the archive holds no marker.

    Raises:
        TraversalError: If walking the archive fails.
    """
    logger.debug("Searching for %s file to determine directory", PREFIX_FILE_NAME)
    try:
        for entry in view.walk(ROOT):
            if entry.name == PREFIX_FILE_NAME:
                directory = posixpath.dirname(entry.path) or DEFAULT_DIRECTORY
                logger.debug("Found %s in %s", PREFIX_FILE_NAME, directory)
                return directory
    except EntryNotFoundError:
        return DEFAULT_DIRECTORY
    except ZipServeError as exc:
        raise TraversalError(f"Failed to walk directory: {exc}", context=exc.context) from exc
    return DEFAULT_DIRECTORY


def read_prefix_from_file(view: ArchiveView, directory: str) -> str:
    """Return the trimmed first line of the marker file in ``directory``.

    A missing marker yields an empty string. A marker that exists but
    cannot be read is logged as a warning and also yields an empty string.
    """
    logger.debug("Reading prefix from %s file", PREFIX_FILE_NAME)
    marker = join_entry_path(directory, PREFIX_FILE_NAME)
    try:
        with view.open_entry(marker) as raw:
            with io.TextIOWrapper(raw, encoding="utf-8-sig", errors="strict") as text:
                first_line = text.readline(MAX_PREFIX_LINE + 1)
    except EntryNotFoundError:
        return ""
    except (ZipServeError, OSError, UnicodeDecodeError, zipfile.BadZipFile) as exc:
        logger.warning("Error reading %s file: %s", PREFIX_FILE_NAME, exc)
        return ""
    if len(first_line) > MAX_PREFIX_LINE and not first_line.endswith(("\n", "\r")):
        logger.warning(
            "Error reading %s file: first line exceeds %d characters", PREFIX_FILE_NAME, MAX_PREFIX_LINE
        )
        return ""
    return first_line.strip()


def normalize_prefix(prefix: str) -> str:
    """Ensure the prefix starts and ends with exactly one ``/``.

    Slashes are collapsed only at the boundaries; interior segments are
    kept as given.

    >>> normalize_prefix("")
    '/'
    >>> normalize_prefix("demo")
    '/demo/'
    >>> normalize_prefix("//docs//v1//")
    '/docs//v1/'
    """
    body = (prefix or "").strip("/")
    if not body:
        return "/"
    return f"/{body}/"


def resolve_site(view: ArchiveView, *, directory: str = "", prefix: str = "") -> SiteLayout:
    """Resolve the directory and prefix to serve, in that order.

    An explicit ``directory`` is used verbatim and only validated later,
    when the subtree is mounted. An explicit ``prefix`` skips the marker.
    """
    if not directory:
        directory = find_root_directory(view)
    logger.debug("Using directory: %s", directory)

    if not prefix:
        prefix = read_prefix_from_file(view, directory)
    prefix = normalize_prefix(prefix)
    logger.debug("Using prefix: %s", prefix)

    return SiteLayout(directory=directory, prefix=prefix)


__all__ = [
    "PREFIX_FILE_NAME",
    "DEFAULT_DIRECTORY",
    "MAX_PREFIX_LINE",
    "find_root_directory",
    "read_prefix_from_file",
    "normalize_prefix",
    "resolve_site",
]
