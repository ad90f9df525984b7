from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SiteLayout:
    """Where the site lives inside the archive and the URL prefix it answers on."""

    directory: str
    prefix: str

    def url(self, host: str, port: int) -> str:
        return f"http://{host}:{port}{self.prefix}"
