from __future__ import annotations

import logging
import socketserver
import threading
from dataclasses import dataclass
from http.server import ThreadingHTTPServer
from typing import Any

from zipserve.core.archive import ArchiveView

from .handler import ArchiveRequestHandler
from .models import DEFAULT_INDEX_FILES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteMount:
    prefix: str
    view: ArchiveView


@dataclass(frozen=True)
class RouteMatch:
    mount: SiteMount
    remainder: str


class SiteRouter:
    """Maps request paths onto the single mounted archive subtree.

    Owned by one server; nothing is registered process-wide.
    """

    def __init__(self) -> None:
        self._mount: SiteMount | None = None

    @property
    def mounted(self) -> SiteMount | None:
        return self._mount

    def mount(self, prefix: str, view: ArchiveView) -> SiteMount:
        """Serve ``view`` for every path starting with ``prefix``.

        ``prefix`` must already be normalized (leading and trailing ``/``).
        """
        if self._mount is not None:
            raise ValueError(f"A site is already mounted at {self._mount.prefix}")
        if not (prefix.startswith("/") and prefix.endswith("/")):
            raise ValueError(f"Mount prefix must start and end with '/': {prefix!r}")
        self._mount = SiteMount(prefix=prefix, view=view)
        return self._mount

    def match(self, path: str) -> RouteMatch | None:
        """Return the mount and the path with the prefix stripped, if it matches."""
        m = self._mount
        if m is None or not path.startswith(m.prefix):
            return None
        return RouteMatch(mount=m, remainder=path[len(m.prefix):])

    def redirect_for(self, path: str) -> str | None:
        """Return the prefix when ``path`` is the prefix minus its trailing slash."""
        m = self._mount
        if m is None or m.prefix == "/":
            return None
        if path == m.prefix[:-1]:
            return m.prefix
        return None


class ArchiveHTTPServer(ThreadingHTTPServer):
    """Threaded HTTP server answering from a ``SiteRouter``.

    Request threads are counted so shutdown can wait for in-flight
    requests with a deadline instead of joining them unconditionally.
    """

    daemon_threads = True
    block_on_close = False

    def __init__(
        self,
        server_address: tuple[str, int],
        router: SiteRouter,
        *,
        index_files: tuple[str, ...] = DEFAULT_INDEX_FILES,
        directory_listing: bool = True,
        bind_and_activate: bool = True,
    ) -> None:
        self.router = router
        self.index_files = tuple(index_files)
        self.directory_listing = directory_listing
        self._inflight = 0
        self._inflight_cond = threading.Condition()
        super().__init__(server_address, ArchiveRequestHandler, bind_and_activate)

    def server_bind(self) -> None:
        # Skip HTTPServer's reverse DNS lookup of the bind address.
        socketserver.TCPServer.server_bind(self)
        host, port = self.server_address[:2]
        self.server_name = host or "localhost"
        self.server_port = port

    @property
    def in_flight(self) -> int:
        with self._inflight_cond:
            return self._inflight

    def _request_done(self) -> None:
        with self._inflight_cond:
            self._inflight -= 1
            self._inflight_cond.notify_all()

    def process_request(self, request: Any, client_address: Any) -> None:
        with self._inflight_cond:
            self._inflight += 1
        try:
            super().process_request(request, client_address)
        except Exception:
            self._request_done()
            raise

    def process_request_thread(self, request: Any, client_address: Any) -> None:
        try:
            super().process_request_thread(request, client_address)
        finally:
            self._request_done()

    def wait_for_requests(self, timeout: float) -> bool:
        """Block until no request is in flight; False if ``timeout`` ran out first."""
        with self._inflight_cond:
            return self._inflight_cond.wait_for(lambda: self._inflight == 0, timeout=max(0.0, timeout))

    def handle_error(self, request: Any, client_address: Any) -> None:
        logger.debug("Error while handling request from %s", client_address, exc_info=True)


__all__ = ["SiteMount", "RouteMatch", "SiteRouter", "ArchiveHTTPServer"]
