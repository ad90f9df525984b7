import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'zipserve' and tests/ importable for helpers
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from helpers.archives import DEMO_SITE, PLAIN_SITE, build_zip
from zipserve.core.utils import reset_stdlib_logging_for_tests


@pytest.fixture(autouse=True)
def isolated_config_env(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point user config at an empty directory and drop ZIPSERVE_* overrides.

    Config loading must never pick up the developer's ~/.zipserve or shell
    environment during tests.
    """
    for key in list(os.environ):
        if key.startswith("ZIPSERVE_"):
            monkeypatch.delenv(key, raising=False)
    user_dir = tmp_path_factory.mktemp("zipserve-user-config")
    monkeypatch.setenv("ZIPSERVE_USER_CONFIG_DIR", str(user_dir))
    return user_dir


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_stdlib_logging_for_tests()


@pytest.fixture
def make_archive(tmp_path: Path):
    """Factory: make_archive(files, dirs=(), name="site.zip") -> Path."""

    def _make(files, *, dirs=(), name: str = "site.zip") -> Path:
        return build_zip(tmp_path / name, files, dirs=dirs)

    return _make


@pytest.fixture
def demo_archive(make_archive) -> Path:
    """Archive whose site lives in site/ with a .prefix of 'demo'."""
    return make_archive(DEMO_SITE, name="demo.zip")


@pytest.fixture
def plain_archive(make_archive) -> Path:
    """Archive with no .prefix marker anywhere."""
    return make_archive(PLAIN_SITE, name="plain.zip")
