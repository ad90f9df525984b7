from __future__ import annotations

import pytest

from zipserve.core.archive import ArchiveReader
from zipserve.core.web_server import SiteRouter


@pytest.fixture
def site_view(demo_archive):
    with ArchiveReader.open(demo_archive) as reader:
        yield reader.view("site")


def test_unmounted_router_matches_nothing() -> None:
    router = SiteRouter()
    assert router.mounted is None
    assert router.match("/") is None
    assert router.redirect_for("/demo") is None


def test_match_strips_prefix(site_view) -> None:
    router = SiteRouter()
    mount = router.mount("/demo/", site_view)

    match = router.match("/demo/css/style.css")
    assert match is not None
    assert match.mount is mount
    assert match.remainder == "css/style.css"
    assert router.match("/demo/").remainder == ""


@pytest.mark.parametrize("path", ["/", "/other/", "/demo", "/demonstration/", "/DEMO/index.html"])
def test_paths_outside_prefix_do_not_match(site_view, path: str) -> None:
    router = SiteRouter()
    router.mount("/demo/", site_view)
    assert router.match(path) is None


def test_root_prefix_matches_everything(site_view) -> None:
    router = SiteRouter()
    router.mount("/", site_view)
    assert router.match("/anything/here").remainder == "anything/here"
    assert router.redirect_for("") is None


def test_redirect_only_for_prefix_without_trailing_slash(site_view) -> None:
    router = SiteRouter()
    router.mount("/docs/v1/", site_view)
    assert router.redirect_for("/docs/v1") == "/docs/v1/"
    assert router.redirect_for("/docs") is None
    assert router.redirect_for("/docs/v1/") is None


def test_only_one_site_can_be_mounted(site_view) -> None:
    router = SiteRouter()
    router.mount("/a/", site_view)
    with pytest.raises(ValueError, match="already mounted"):
        router.mount("/b/", site_view)


@pytest.mark.parametrize("prefix", ["", "demo", "/demo", "demo/"])
def test_mount_requires_normalized_prefix(site_view, prefix: str) -> None:
    with pytest.raises(ValueError, match="must start and end with"):
        SiteRouter().mount(prefix, site_view)


def test_routers_are_independent(site_view) -> None:
    first, second = SiteRouter(), SiteRouter()
    first.mount("/a/", site_view)
    second.mount("/b/", site_view)
    assert first.match("/b/index.html") is None
    assert second.match("/b/index.html") is not None
