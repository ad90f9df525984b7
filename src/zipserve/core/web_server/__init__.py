"""HTTP exposure of an archive subtree.

This module provides:
- A router that mounts one archive view under a URL prefix
- A threaded HTTP server answering from that router
- The run/shutdown lifecycle around the server (signals, bounded shutdown)
"""

from .browser import open_browser
from .handler import ArchiveRequestHandler, render_directory_listing
from .lifecycle import SHUTDOWN_SIGNALS, ErrorSlot, ServeLifecycle
from .models import LifecycleState, WebServerConfig
from .server import ArchiveHTTPServer, RouteMatch, SiteMount, SiteRouter

__all__ = [
    "ArchiveHTTPServer",
    "ArchiveRequestHandler",
    "ErrorSlot",
    "LifecycleState",
    "RouteMatch",
    "SHUTDOWN_SIGNALS",
    "ServeLifecycle",
    "SiteMount",
    "SiteRouter",
    "WebServerConfig",
    "open_browser",
    "render_directory_listing",
]
