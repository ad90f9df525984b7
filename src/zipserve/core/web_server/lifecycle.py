"""Run/shutdown lifecycle of the archive HTTP listener.

The listener binds and serves on a background thread. The controlling
thread waits until either an OS signal (SIGINT/SIGTERM) arrives or the
listener reports a failure through a single-slot error channel, then
performs a graceful shutdown bounded by ``shutdown_timeout_seconds``.

States: idle -> starting -> running -> shutting_down -> stopped. A bind
failure goes from starting straight to shutting_down.
"""
from __future__ import annotations

import logging
import signal
import threading
import time
from collections.abc import Callable
from typing import Any

from zipserve.core.exceptions import ListenerBindError, ListenerError

from .browser import open_browser
from .models import LifecycleState, WebServerConfig
from .server import ArchiveHTTPServer, SiteRouter

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.IDLE: frozenset({LifecycleState.STARTING, LifecycleState.STOPPED}),
    LifecycleState.STARTING: frozenset({LifecycleState.RUNNING, LifecycleState.SHUTTING_DOWN}),
    LifecycleState.RUNNING: frozenset({LifecycleState.SHUTTING_DOWN}),
    LifecycleState.SHUTTING_DOWN: frozenset({LifecycleState.STOPPED}),
    LifecycleState.STOPPED: frozenset(),
}

SHUTDOWN_SIGNALS: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM)


class ErrorSlot:
    """Holds the first error offered to it; later offers are ignored."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._error: ListenerError | None = None

    def offer(self, error: ListenerError) -> bool:
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> ListenerError | None:
        with self._lock:
            return self._error


class ServeLifecycle:
    """Owns one ``ArchiveHTTPServer`` from bind to shutdown.

    Args:
        router: Router holding the mounted site.
        config: Listener settings.
        browser_opener: Called with the serving URL when ``launch_browser`` is
            set; failures are logged, never raised.
        launch_browser: Whether to launch a browser once running.
        announce: Called with the serving URL once running.
        signals: OS signals that trigger shutdown while ``run`` blocks.
    """

    def __init__(
        self,
        router: SiteRouter,
        config: WebServerConfig,
        *,
        browser_opener: Callable[[str], Any] = open_browser,
        launch_browser: bool = True,
        announce: Callable[[str], None] | None = None,
        signals: tuple[int, ...] = SHUTDOWN_SIGNALS,
    ) -> None:
        self._router = router
        self._config = config
        self._browser_opener = browser_opener
        self._launch_browser = launch_browser
        self._announce = announce
        self._signals = signals

        self._state = LifecycleState.IDLE
        self._state_lock = threading.Lock()
        self._errors = ErrorSlot()
        self._ready = threading.Event()
        self._startup_lock = threading.Lock()
        self._wake = threading.Event()
        self._server: ArchiveHTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._received_signal: int | None = None
        self.url: str | None = None

    # ---------------------------------------------------------------- state

    @property
    def state(self) -> LifecycleState:
        with self._state_lock:
            return self._state

    @property
    def server(self) -> ArchiveHTTPServer | None:
        return self._server

    @property
    def error(self) -> ListenerError | None:
        return self._errors.error

    @property
    def received_signal(self) -> int | None:
        return self._received_signal

    def _transition(self, new: LifecycleState) -> None:
        with self._state_lock:
            if new not in _TRANSITIONS[self._state]:
                raise RuntimeError(f"Invalid lifecycle transition {self._state.value} -> {new.value}")
            logger.debug("Server state %s -> %s", self._state.value, new.value)
            self._state = new

    # ------------------------------------------------------------- listener

    def _fail(self, error: ListenerError) -> None:
        self._errors.offer(error)
        self._ready.set()
        self._wake.set()

    def _listen(self) -> None:
        host, port = self._config.host, self._config.port
        try:
            server = ArchiveHTTPServer(
                (host, port),
                self._router,
                index_files=self._config.index_files,
                directory_listing=self._config.directory_listing,
            )
        except OSError as exc:
            self._fail(
                ListenerBindError(
                    f"Failed to listen on {host or '*'}:{port}: {exc}",
                    context={"host": host, "port": port},
                )
            )
            return

        with self._startup_lock:
            abandoned = self._errors.error is not None
            if not abandoned:
                self._server = server
                self._ready.set()
        if abandoned:
            # start() already gave up waiting.
            server.server_close()
            return
        logger.debug("Starting HTTP server on port %d", server.server_port)
        try:
            server.serve_forever(poll_interval=self._config.poll_interval_seconds)
        except Exception as exc:
            self._fail(ListenerError(f"Server error: {exc}", context={"port": server.server_port}))

    def start(self) -> str:
        """Bind the listener on a background thread and return the serving URL.

        Raises:
            ListenerBindError: If binding fails or does not finish in time.
        """
        self._transition(LifecycleState.STARTING)
        self._thread = threading.Thread(target=self._listen, name="zipserve-listener", daemon=True)
        self._thread.start()

        if not self._ready.wait(timeout=self._config.startup_timeout_seconds):
            with self._startup_lock:
                if not self._ready.is_set():
                    self._fail(
                        ListenerBindError(
                            f"Server did not start within {self._config.startup_timeout_seconds:g}s",
                            context={"port": self._config.port},
                        )
                    )
        error = self._errors.error
        if error is not None:
            raise error

        assert self._server is not None
        mount = self._router.mounted
        prefix = mount.prefix if mount is not None else "/"
        self.url = f"http://{self._config.display_host}:{self._server.server_port}{prefix}"
        self._transition(LifecycleState.RUNNING)
        return self.url

    # -------------------------------------------------------------- waiting

    def _handle_signal(self, signum: int, frame: Any) -> None:
        self._received_signal = signum
        self._wake.set()

    def _install_signal_handlers(self) -> dict[int, Any]:
        previous: dict[int, Any] = {}
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread; signal handlers not installed")
            return previous
        for sig in self._signals:
            previous[sig] = signal.signal(sig, self._handle_signal)
        return previous

    @staticmethod
    def _restore_signal_handlers(previous: dict[int, Any]) -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)

    def wait(self) -> ListenerError | None:
        """Block until a shutdown signal or a listener failure; return the failure."""
        while not self._wake.wait(timeout=self._config.poll_interval_seconds):
            pass
        error = self._errors.error
        if error is not None:
            logger.error("Server error: %s", error)
        else:
            logger.info("Shutting down server...")
        return error

    # ------------------------------------------------------------- shutdown

    def shutdown(self) -> bool:
        """Stop the listener, letting in-flight requests finish until the timeout.

        Returns False when requests were still running at the deadline; that
        is logged as a warning, never raised.
        """
        state = self.state
        if state is LifecycleState.STOPPED:
            return True
        if state is LifecycleState.IDLE:
            self._transition(LifecycleState.STOPPED)
            return True
        if state is not LifecycleState.SHUTTING_DOWN:
            self._transition(LifecycleState.SHUTTING_DOWN)

        timeout = self._config.shutdown_timeout_seconds
        deadline = time.monotonic() + timeout

        def remaining() -> float:
            return max(0.0, deadline - time.monotonic())

        drained = True
        server = self._server
        if server is not None:
            # server.shutdown() waits for serve_forever to return; a listener
            # that already died would never get there.
            if self._thread is not None and self._thread.is_alive():
                stopper = threading.Thread(target=server.shutdown, name="zipserve-shutdown", daemon=True)
                stopper.start()
                stopper.join(remaining())
                drained = not stopper.is_alive()
            drained = server.wait_for_requests(remaining()) and drained
            pending = server.in_flight
            server.server_close()
            if drained:
                logger.info("Server stopped gracefully")
            else:
                logger.warning(
                    "Server forced to shutdown after %gs (%d request(s) still in flight)",
                    timeout,
                    pending,
                )
        if self._thread is not None:
            self._thread.join(remaining())

        self._transition(LifecycleState.STOPPED)
        return drained

    # ------------------------------------------------------------------ run

    def _report_running(self, url: str) -> None:
        if self._announce is not None:
            self._announce(url)
        else:
            logger.info("Server running at %s", url)
        if self._launch_browser:
            try:
                self._browser_opener(url)
            except Exception as exc:
                logger.warning("Failed to open browser: %s", exc)

    def run(self) -> int:
        """Serve until interrupted; return 0 after a clean shutdown.

        Raises:
            ListenerError: After shutdown, if the listener failed to bind or
                died while serving.
        """
        previous = self._install_signal_handlers()
        try:
            url = self.start()
            self._report_running(url)
            error = self.wait()
            self.shutdown()
            if error is not None:
                raise error
            return 0
        finally:
            if self.state not in (LifecycleState.IDLE, LifecycleState.STOPPED):
                self.shutdown()
            self._restore_signal_handlers(previous)


__all__ = ["ErrorSlot", "ServeLifecycle", "SHUTDOWN_SIGNALS"]
