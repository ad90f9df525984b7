"""Run the real ``python -m zipserve`` process against generated archives."""
from __future__ import annotations

import os
import queue
import re
import signal
import subprocess
import sys
import threading
from pathlib import Path

import pytest

from helpers.http import request

REPO_ROOT = Path(__file__).resolve().parents[2]
URL_RE = re.compile(r"Server running at (http://\S+:(\d+)(/\S*))")

pytestmark = pytest.mark.slow


def _env() -> dict[str, str]:
    env = {k: v for k, v in os.environ.items() if not k.startswith("ZIPSERVE_")}
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT / "src"), env.get("PYTHONPATH")]))
    env["PYTHONUNBUFFERED"] = "1"
    env["ZIPSERVE_SERVER__HOST"] = "127.0.0.1"
    env["ZIPSERVE_SERVER__SHUTDOWN_TIMEOUT_SECONDS"] = "2"
    env["ZIPSERVE_USER_CONFIG_DIR"] = os.environ["ZIPSERVE_USER_CONFIG_DIR"]
    return env


def _spawn(*args: str) -> subprocess.Popen[str]:
    return subprocess.Popen(
        [sys.executable, "-m", "zipserve", *args],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        env=_env(),
    )


def _wait_for_url(proc: subprocess.Popen[str], timeout: float = 15.0) -> re.Match[str]:
    lines: queue.Queue[str] = queue.Queue()

    def pump() -> None:
        assert proc.stdout is not None
        for line in proc.stdout:
            lines.put(line)

    threading.Thread(target=pump, daemon=True).start()
    while True:
        try:
            line = lines.get(timeout=timeout)
        except queue.Empty:
            proc.kill()
            pytest.fail("zipserve did not report a serving URL")
        match = URL_RE.search(line)
        if match:
            return match


def test_serves_until_interrupted(demo_archive: Path) -> None:
    proc = _spawn("-n", "-p", "0", str(demo_archive))
    try:
        match = _wait_for_url(proc)
        port, prefix = int(match.group(2)), match.group(3)
        assert prefix == "/demo/"

        resp = request(port, "/demo/index.html")
        assert resp.status == 200
        assert resp.body == b"<h1>Demo</h1>\n"
        assert request(port, "/other/").status == 404

        proc.send_signal(signal.SIGINT)
        assert proc.wait(timeout=15) == 0
        assert proc.stderr is not None
        assert "Server stopped gracefully" in proc.stderr.read()
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()


def test_missing_directory_fails_without_serving(demo_archive: Path) -> None:
    proc = _spawn("-n", "-p", "0", "-d", "nowhere", str(demo_archive))
    out, err = proc.communicate(timeout=30)
    assert proc.returncode == 1
    assert "Directory nowhere not found" in err
    assert "Server running" not in out


def test_corrupt_archive_fails(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.zip"
    bogus.write_bytes(b"PK not really")
    proc = _spawn("-n", str(bogus))
    _, err = proc.communicate(timeout=30)
    assert proc.returncode == 1
    assert "Failed to open zip file" in err
