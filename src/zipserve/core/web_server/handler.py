"""HTTP request handler serving static files out of an archive view.

Follows ``SimpleHTTPRequestHandler`` conventions (index documents, a
directory listing, trailing-slash redirects, ``If-Modified-Since``) but
resolves paths against the mounted ``ArchiveView`` instead of the disk.
"""
from __future__ import annotations

import email.utils
import io
import logging
import urllib.parse
from datetime import timezone
from functools import lru_cache
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler
from typing import IO, TYPE_CHECKING

from jinja2 import Environment, PackageLoader, Template, select_autoescape

from zipserve import __version__
from zipserve.core.archive import ROOT, ArchiveEntry, ArchiveView, join_entry_path
from zipserve.core.exceptions import ArchiveClosedError, EntryNotFoundError, EntryReadError

if TYPE_CHECKING:
    from .server import ArchiveHTTPServer

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _listing_template() -> Template:
    env = Environment(
        loader=PackageLoader("zipserve", "data/templates"),
        autoescape=select_autoescape(default=True, default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    return env.get_template("directory_listing.html.j2")


def render_directory_listing(display_path: str, entries: list[ArchiveEntry], *, has_parent: bool) -> str:
    rows = []
    for entry in entries:
        suffix = "/" if entry.is_dir else ""
        rows.append(
            {
                "href": urllib.parse.quote(entry.name) + suffix,
                "label": entry.name + suffix,
            }
        )
    return _listing_template().render(display_path=display_path, entries=rows, has_parent=has_parent)


class ArchiveRequestHandler(SimpleHTTPRequestHandler):
    server: ArchiveHTTPServer
    server_version = f"zipserve/{__version__}"

    def send_head(self) -> IO[bytes] | None:
        parsed = urllib.parse.urlsplit(self.path)
        path = urllib.parse.unquote(parsed.path)
        router = self.server.router

        target = router.redirect_for(path)
        if target is not None:
            self._redirect(target, parsed.query)
            return None

        match = router.match(path)
        if match is None:
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
            return None

        view = match.mount.view
        try:
            entry = view.stat(match.remainder)
            if not entry.is_dir:
                return self._send_entry(view, entry)

            if not parsed.path.endswith("/"):
                self._redirect(parsed.path + "/", parsed.query)
                return None
            for name in self.server.index_files:
                try:
                    index = view.stat(join_entry_path(entry.path, name))
                except EntryNotFoundError:
                    continue
                if not index.is_dir:
                    return self._send_entry(view, index)
            if self.server.directory_listing:
                return self._send_listing(view, entry, path)
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
            return None
        except EntryNotFoundError:
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
        except ArchiveClosedError:
            self.send_error(HTTPStatus.SERVICE_UNAVAILABLE, "Archive is closed")
        except EntryReadError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            self.send_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to read archive entry")
        return None

    def _redirect(self, location: str, query: str = "") -> None:
        if query:
            location = f"{location}?{query}"
        self.send_response(HTTPStatus.MOVED_PERMANENTLY)
        self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _not_modified_since(self, entry: ArchiveEntry) -> bool:
        if entry.modified is None:
            return False
        if "If-Modified-Since" not in self.headers or "If-None-Match" in self.headers:
            return False
        try:
            ims = email.utils.parsedate_to_datetime(self.headers["If-Modified-Since"])
        except (TypeError, IndexError, OverflowError, ValueError):
            return False
        if ims.tzinfo is None:
            ims = ims.replace(tzinfo=timezone.utc)
        return entry.modified.replace(microsecond=0) <= ims

    def _send_entry(self, view: ArchiveView, entry: ArchiveEntry) -> IO[bytes] | None:
        if self._not_modified_since(entry):
            self.send_response(HTTPStatus.NOT_MODIFIED)
            self.end_headers()
            return None

        f = view.open_entry(entry.path)
        try:
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-type", self.guess_type(entry.name))
            self.send_header("Content-Length", str(entry.size))
            if entry.modified is not None:
                self.send_header("Last-Modified", self.date_time_string(entry.modified.timestamp()))
            self.end_headers()
        except Exception:
            f.close()
            raise
        return f

    def _send_listing(self, view: ArchiveView, entry: ArchiveEntry, display_path: str) -> IO[bytes]:
        body = render_directory_listing(
            display_path,
            view.list_dir(entry.path),
            has_parent=entry.path != ROOT,
        ).encode("utf-8", "surrogateescape")
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        return io.BytesIO(body)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        logger.debug("%s - - [%s] %s", self.client_address[0], self.log_date_time_string(), format % args)


__all__ = ["ArchiveRequestHandler", "render_directory_listing"]
