"""Site root and URL prefix resolution driven by ``.prefix`` marker files."""

from .models import SiteLayout
from .resolver import (
    DEFAULT_DIRECTORY,
    PREFIX_FILE_NAME,
    find_root_directory,
    normalize_prefix,
    read_prefix_from_file,
    resolve_site,
)

__all__ = [
    "SiteLayout",
    "DEFAULT_DIRECTORY",
    "PREFIX_FILE_NAME",
    "find_root_directory",
    "normalize_prefix",
    "read_prefix_from_file",
    "resolve_site",
]
