"""Read-only filesystem view over the entries of a ZIP archive.

- ``ArchiveReader`` owns the open archive and indexes its entries
- ``ArchiveView`` projects a subtree, rewriting lookups under its root
- ``ArchiveEntry`` carries per-entry metadata without extracting content
"""

from .models import ROOT, ArchiveEntry, join_entry_path, normalize_entry_path
from .reader import ArchiveReader
from .view import ArchiveView

__all__ = [
    "ROOT",
    "ArchiveEntry",
    "ArchiveReader",
    "ArchiveView",
    "join_entry_path",
    "normalize_entry_path",
]
