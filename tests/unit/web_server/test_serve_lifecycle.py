from __future__ import annotations

import logging
import os
import signal
import socket
import threading
import time

import pytest

from helpers.http import request
from zipserve.core.archive import ArchiveReader
from zipserve.core.exceptions import ListenerBindError, ListenerError
from zipserve.core.web_server import (
    ArchiveHTTPServer,
    ErrorSlot,
    LifecycleState,
    ServeLifecycle,
    SiteRouter,
    WebServerConfig,
)


def _config(**overrides) -> WebServerConfig:
    values = {
        "host": "127.0.0.1",
        "port": 0,
        "display_host": "127.0.0.1",
        "shutdown_timeout_seconds": 1.0,
        "startup_timeout_seconds": 5.0,
        "poll_interval_seconds": 0.05,
    }
    values.update(overrides)
    return WebServerConfig(**values)


@pytest.fixture
def demo_router(demo_archive):
    with ArchiveReader.open(demo_archive) as reader:
        router = SiteRouter()
        router.mount("/demo/", reader.view("site"))
        yield router


def _signal_when_running(lifecycle: ServeLifecycle, sig: int, *, before=None) -> threading.Thread:
    """Deliver ``sig`` to this process once ``lifecycle`` reports running."""

    def _run() -> None:
        deadline = time.monotonic() + 10
        while lifecycle.state is not LifecycleState.RUNNING:
            if time.monotonic() > deadline:
                return
            time.sleep(0.01)
        if before is not None:
            before()
        os.kill(os.getpid(), sig)

    thread = threading.Thread(target=_run, daemon=True)
    thread.start()
    return thread


def test_error_slot_keeps_first_error() -> None:
    slot = ErrorSlot()
    assert slot.error is None
    first, second = ListenerError("first"), ListenerError("second")
    assert slot.offer(first) is True
    assert slot.offer(second) is False
    assert slot.error is first


def test_start_reports_url_with_actual_port_and_prefix(demo_router) -> None:
    lifecycle = ServeLifecycle(demo_router, _config(display_host="localhost"))
    url = lifecycle.start()
    try:
        assert lifecycle.state is LifecycleState.RUNNING
        port = lifecycle.server.server_port
        assert port != 0
        assert url == f"http://localhost:{port}/demo/"
        assert lifecycle.url == url
        assert request(port, "/demo/index.html").status == 200
    finally:
        assert lifecycle.shutdown() is True
    assert lifecycle.state is LifecycleState.STOPPED


def test_idle_shutdown_is_graceful(demo_router, caplog: pytest.LogCaptureFixture) -> None:
    lifecycle = ServeLifecycle(demo_router, _config())
    lifecycle.start()
    with caplog.at_level(logging.INFO, logger="zipserve.core.web_server.lifecycle"):
        assert lifecycle.shutdown() is True
    assert "Server stopped gracefully" in caplog.text
    # A second call is a no-op.
    assert lifecycle.shutdown() is True


def test_shutdown_before_start_stops_immediately(demo_router) -> None:
    lifecycle = ServeLifecycle(demo_router, _config())
    assert lifecycle.shutdown() is True
    assert lifecycle.state is LifecycleState.STOPPED
    with pytest.raises(RuntimeError, match="Invalid lifecycle transition"):
        lifecycle.start()


def test_stalled_request_forces_shutdown_after_timeout(demo_router, caplog: pytest.LogCaptureFixture) -> None:
    lifecycle = ServeLifecycle(demo_router, _config(shutdown_timeout_seconds=0.3))
    lifecycle.start()
    server = lifecycle.server
    client = socket.create_connection(("127.0.0.1", server.server_port), timeout=5)
    try:
        client.sendall(b"GET /demo/index.html HTTP/1.1\r\n")
        deadline = time.monotonic() + 5
        while server.in_flight == 0 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert server.in_flight == 1

        started = time.monotonic()
        with caplog.at_level(logging.WARNING, logger="zipserve.core.web_server.lifecycle"):
            assert lifecycle.shutdown() is False
        assert time.monotonic() - started < 3
    finally:
        client.close()

    assert lifecycle.state is LifecycleState.STOPPED
    assert "Server forced to shutdown after 0.3s (1 request(s) still in flight)" in caplog.text


def test_bind_failure_is_fatal_before_browser(demo_router) -> None:
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    opened: list[str] = []
    announced: list[str] = []
    try:
        port = blocker.getsockname()[1]
        lifecycle = ServeLifecycle(
            demo_router,
            _config(port=port),
            browser_opener=opened.append,
            announce=announced.append,
        )
        with pytest.raises(ListenerBindError, match=f"Failed to listen on 127.0.0.1:{port}"):
            lifecycle.run()
    finally:
        blocker.close()

    assert lifecycle.state is LifecycleState.STOPPED
    assert lifecycle.error is not None
    assert opened == []
    assert announced == []


def test_interrupt_shuts_down_and_returns_zero(demo_router) -> None:
    opened: list[str] = []
    announced: list[str] = []
    served: list[int] = []
    previous = signal.getsignal(signal.SIGINT)

    lifecycle = ServeLifecycle(
        demo_router,
        _config(),
        browser_opener=opened.append,
        announce=announced.append,
    )
    _signal_when_running(
        lifecycle,
        signal.SIGINT,
        before=lambda: served.append(request(lifecycle.server.server_port, "/demo/").status),
    )

    assert lifecycle.run() == 0
    assert lifecycle.state is LifecycleState.STOPPED
    assert lifecycle.received_signal == signal.SIGINT
    assert served == [200]
    assert opened == announced == [lifecycle.url]
    assert signal.getsignal(signal.SIGINT) is previous


def test_browser_failure_is_not_fatal(demo_router, caplog: pytest.LogCaptureFixture) -> None:
    def broken_browser(url: str) -> None:
        raise RuntimeError("no display")

    lifecycle = ServeLifecycle(demo_router, _config(), browser_opener=broken_browser)
    _signal_when_running(lifecycle, signal.SIGTERM)

    with caplog.at_level(logging.INFO, logger="zipserve.core.web_server.lifecycle"):
        assert lifecycle.run() == 0

    assert lifecycle.received_signal == signal.SIGTERM
    assert "Failed to open browser: no display" in caplog.text
    assert f"Server running at {lifecycle.url}" in caplog.text
    assert "Shutting down server..." in caplog.text


def test_skip_browser(demo_router) -> None:
    opened: list[str] = []
    lifecycle = ServeLifecycle(demo_router, _config(), browser_opener=opened.append, launch_browser=False)
    _signal_when_running(lifecycle, signal.SIGINT)
    assert lifecycle.run() == 0
    assert opened == []


def test_listener_crash_is_reported_after_cleanup(demo_router, monkeypatch: pytest.MonkeyPatch) -> None:
    def crash(self, poll_interval=0.5):
        raise OSError("socket went away")

    monkeypatch.setattr(ArchiveHTTPServer, "serve_forever", crash)
    lifecycle = ServeLifecycle(demo_router, _config(shutdown_timeout_seconds=0.3), launch_browser=False)

    with pytest.raises(ListenerError, match="Server error: socket went away"):
        lifecycle.run()
    assert lifecycle.state is LifecycleState.STOPPED


def test_url_is_announced_before_browser_launch(demo_router) -> None:
    events: list[tuple[str, str]] = []
    lifecycle = ServeLifecycle(
        demo_router,
        _config(),
        browser_opener=lambda url: events.append(("browser", url)),
        announce=lambda url: events.append(("announce", url)),
    )
    _signal_when_running(lifecycle, signal.SIGINT)

    assert lifecycle.run() == 0
    assert events == [("announce", lifecycle.url), ("browser", lifecycle.url)]


def test_listener_bound_after_startup_timeout_is_closed(demo_router, monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[ArchiveHTTPServer] = []
    original_init = ArchiveHTTPServer.__init__

    def slow_init(self, *args, **kwargs) -> None:
        time.sleep(0.4)
        original_init(self, *args, **kwargs)
        created.append(self)

    monkeypatch.setattr(ArchiveHTTPServer, "__init__", slow_init)
    lifecycle = ServeLifecycle(demo_router, _config(startup_timeout_seconds=0.1), launch_browser=False)

    with pytest.raises(ListenerBindError, match="did not start within 0.1s"):
        lifecycle.run()

    deadline = time.monotonic() + 5
    while not (created and created[0].socket.fileno() == -1) and time.monotonic() < deadline:
        time.sleep(0.01)
    assert created and created[0].socket.fileno() == -1
    assert lifecycle.server is None
    assert lifecycle.state is LifecycleState.STOPPED
