from __future__ import annotations

from typing import Any, Dict, Mapping


class ZipServeError(Exception):
    """Base exception for zipserve."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ArchiveOpenError(ZipServeError):
    """Raised when the archive is missing, corrupt, or not a ZIP file."""


class ArchiveClosedError(ZipServeError, ValueError):
    """Raised when an archive or one of its views is used after release."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ZipServeError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class EntryNotFoundError(ZipServeError, FileNotFoundError):
    """Raised when a path does not name any entry in the archive."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ZipServeError.__init__(self, message, context=context)
        FileNotFoundError.__init__(self, message)


class EntryReadError(ZipServeError, OSError):
    """Raised when an entry exists but its content cannot be read."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ZipServeError.__init__(self, message, context=context)
        OSError.__init__(self, message)


class RootNotDirectoryError(ZipServeError, NotADirectoryError):
    """Raised when the directory to serve is missing or is not a directory."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ZipServeError.__init__(self, message, context=context)
        NotADirectoryError.__init__(self, message)


class TraversalError(ZipServeError, RuntimeError):
    """Raised when walking the archive tree fails."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ZipServeError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class ListenerError(ZipServeError, RuntimeError):
    """Raised when the HTTP listener fails while starting or serving."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ZipServeError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class ListenerBindError(ListenerError):
    """Raised when the HTTP listener cannot bind its address."""


class ConfigError(ZipServeError, ValueError):
    """Raised when configuration cannot be loaded or fails validation."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ZipServeError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "ZipServeError",
    "ArchiveOpenError",
    "ArchiveClosedError",
    "EntryNotFoundError",
    "EntryReadError",
    "RootNotDirectoryError",
    "TraversalError",
    "ListenerError",
    "ListenerBindError",
    "ConfigError",
]
