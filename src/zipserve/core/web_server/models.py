from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

DEFAULT_PORT = 8080
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 5.0
DEFAULT_STARTUP_TIMEOUT_SECONDS = 5.0
DEFAULT_POLL_INTERVAL_SECONDS = 0.5
DEFAULT_INDEX_FILES = ("index.html", "index.htm")


class LifecycleState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


@dataclass(frozen=True)
class WebServerConfig:
    """Settings for the HTTP listener and the static files it serves."""

    host: str = ""
    port: int = DEFAULT_PORT
    display_host: str = "localhost"
    shutdown_timeout_seconds: float = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
    startup_timeout_seconds: float = DEFAULT_STARTUP_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    index_files: tuple[str, ...] = DEFAULT_INDEX_FILES
    directory_listing: bool = True

    @classmethod
    def from_raw(cls, raw: Any) -> WebServerConfig:
        """Build from a merged config mapping with ``server`` and ``site`` sections.

        Missing or malformed values fall back to defaults; a port outside
        0-65535 is rejected.
        """
        if not isinstance(raw, dict):
            return cls()
        server = raw.get("server") if isinstance(raw.get("server"), dict) else {}
        site = raw.get("site") if isinstance(raw.get("site"), dict) else {}

        def _as_float(v: Any, default: float) -> float:
            try:
                if v is None:
                    return float(default)
                return float(v)
            except Exception:
                return float(default)

        port_raw = server.get("port", DEFAULT_PORT)
        try:
            port = int(port_raw)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"server.port must be an integer, got {port_raw!r}") from exc
        if not 0 <= port <= 65535:
            raise ValueError(f"server.port must be between 0 and 65535, got {port}")

        index_raw = site.get("index_files")
        if isinstance(index_raw, list):
            index_files = tuple(str(x).strip() for x in index_raw if str(x).strip())
        else:
            index_files = DEFAULT_INDEX_FILES

        return cls(
            host=str(server.get("host") or "").strip(),
            port=port,
            display_host=str(server.get("display_host") or "localhost").strip(),
            shutdown_timeout_seconds=_as_float(
                server.get("shutdown_timeout_seconds"), DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
            ),
            startup_timeout_seconds=_as_float(
                server.get("startup_timeout_seconds"), DEFAULT_STARTUP_TIMEOUT_SECONDS
            ),
            poll_interval_seconds=_as_float(
                server.get("poll_interval_seconds"), DEFAULT_POLL_INTERVAL_SECONDS
            ),
            index_files=index_files,
            directory_listing=bool(site.get("directory_listing", True)),
        )


__all__ = [
    "DEFAULT_PORT",
    "DEFAULT_SHUTDOWN_TIMEOUT_SECONDS",
    "DEFAULT_STARTUP_TIMEOUT_SECONDS",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_INDEX_FILES",
    "LifecycleState",
    "WebServerConfig",
]
