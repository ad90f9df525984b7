"""Serve one archive: open, resolve, mount, run, release.

The archive stays open for the whole lifetime of the listener and is
closed exactly once on every exit path, including failures that happen
before any socket is bound.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from os import PathLike
from typing import Any

from zipserve.core.archive import ArchiveReader
from zipserve.core.site import resolve_site
from zipserve.core.web_server import ServeLifecycle, SiteRouter, WebServerConfig, open_browser

logger = logging.getLogger(__name__)

LifecycleFactory = Callable[..., ServeLifecycle]


def serve_archive(
    archive_path: str | PathLike[str],
    *,
    config: WebServerConfig | None = None,
    prefix: str = "",
    directory: str = "",
    launch_browser: bool = True,
    browser_opener: Callable[[str], Any] = open_browser,
    announce: Callable[[str], None] | None = None,
    lifecycle_factory: LifecycleFactory = ServeLifecycle,
) -> int:
    """Serve ``archive_path`` until interrupted and return the exit code.

    Raises:
        ArchiveOpenError: The archive cannot be opened.
        TraversalError: Walking the archive for the marker file failed.
        RootNotDirectoryError: The directory to serve does not exist.
        ListenerError: The listener failed to bind or died while serving.
    """
    config = config or WebServerConfig()
    with ArchiveReader.open(archive_path) as archive:
        layout = resolve_site(archive.root_view, directory=directory, prefix=prefix)

        site_view = archive.root_view.sub(layout.directory)
        logger.debug("Serving %s from %s under %s", archive.source, layout.directory, layout.prefix)

        router = SiteRouter()
        router.mount(layout.prefix, site_view)

        lifecycle = lifecycle_factory(
            router,
            config,
            browser_opener=browser_opener,
            launch_browser=launch_browser,
            announce=announce,
        )
        return lifecycle.run()


__all__ = ["serve_archive"]
