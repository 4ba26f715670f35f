import logging
import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'lighthttp' and tests/ importable for helpers
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from helpers.cache_utils import reset_lighthttp_caches
from lighthttp.core.config.manager import BOOTSTRAP_ENV_ALIASES, ENV_PREFIX


@pytest.fixture(autouse=True)
def _isolate_lighthttp(tmp_path, monkeypatch):
    """Point every test at a private home directory and working directory.

    Developer shells may export LIGHTHTTP_* overrides or the legacy bootstrap
    variables (PLAYER_SERVER_PORT, ...); none of them may leak into a test.
    """
    for key in list(os.environ.keys()):
        if key.startswith(ENV_PREFIX) or key in BOOTSTRAP_ENV_ALIASES:
            monkeypatch.delenv(key, raising=False)

    home = tmp_path / "lighthttp-home"
    home.mkdir()
    monkeypatch.setenv("LIGHTHTTP_HOME", str(home))

    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    root_level = logging.getLogger().level
    reset_lighthttp_caches()
    yield
    reset_lighthttp_caches()
    logging.getLogger().setLevel(root_level)


@pytest.fixture
def lighthttp_home() -> Path:
    """The isolated light-http home directory of the current test."""
    return Path(os.environ["LIGHTHTTP_HOME"]).resolve()


@pytest.fixture
def project_settings(tmp_path):
    """Write ``<cwd>/.light-http/settings/<name>.yaml`` overlays."""
    import yaml

    settings_dir = Path.cwd() / ".light-http" / "settings"
    settings_dir.mkdir(parents=True, exist_ok=True)

    def _write(name: str, data: dict) -> Path:
        path = settings_dir / f"{name}.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        reset_lighthttp_caches()
        return path

    return _write


@pytest.fixture
def site_dir(tmp_path) -> Path:
    """A small static tree: index.html, a nested asset and a text file."""
    root = tmp_path / "site"
    (root / "img").mkdir(parents=True)
    (root / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (root / "hello.txt").write_text("hello world", encoding="utf-8")
    (root / "img" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nmain-logo")
    return root
