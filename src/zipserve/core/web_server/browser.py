from __future__ import annotations

import logging
import webbrowser

logger = logging.getLogger(__name__)


def open_browser(url: str) -> bool:
    """Best-effort launch of the platform's default browser on ``url``.

    Never raises; a failure is logged as a warning and reported as False.
    """
    try:
        opened = webbrowser.open(url)
    except Exception as exc:
        logger.warning("Failed to open browser: %s", exc)
        return False
    if not opened:
        logger.warning("Failed to open browser: no usable browser found for %s", url)
    return bool(opened)


__all__ = ["open_browser"]
