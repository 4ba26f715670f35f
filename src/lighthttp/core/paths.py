"""Home and settings directory resolution.

The light-http home directory (default: ``~/.light-http``) holds the
persisted server list, generated TLS material and user settings.

Precedence (highest to lowest):
1. Environment variable: LIGHTHTTP_HOME
2. Hardcoded fallback: ``~/.light-http``

Relative values are resolved against the user's home directory, not the CWD.
"""

from __future__ import annotations

import os
from pathlib import Path

from lighthttp.core.utils.io import ensure_directory

DEFAULT_HOME_DIRNAME = ".light-http"
HOME_ENV_VAR = "LIGHTHTTP_HOME"
SETTINGS_DIRNAME = "settings"


def get_home_dir(*, create: bool = False) -> Path:
    """Return the absolute light-http home directory."""
    raw = os.environ.get(HOME_ENV_VAR, "").strip() or DEFAULT_HOME_DIRNAME
    p = Path(raw).expanduser()
    if not p.is_absolute():
        p = Path.home() / p

    resolved = p.resolve()
    if create:
        ensure_directory(resolved)
    return resolved


def get_user_settings_dir() -> Path:
    """Directory holding user-level ``*.yaml`` settings overlays."""
    return get_home_dir() / SETTINGS_DIRNAME


def get_project_settings_dir(cwd: Path | None = None) -> Path:
    """Directory holding project-level ``*.yaml`` settings overlays."""
    base = Path(cwd) if cwd is not None else Path.cwd()
    return base.resolve() / DEFAULT_HOME_DIRNAME / SETTINGS_DIRNAME


def resolve_under_home(value: str | Path) -> Path:
    """Resolve ``value`` against the home directory unless it is absolute."""
    p = Path(str(value)).expanduser()
    if not p.is_absolute():
        p = get_home_dir() / p
    return p.resolve()


__all__ = [
    "DEFAULT_HOME_DIRNAME",
    "HOME_ENV_VAR",
    "get_home_dir",
    "get_user_settings_dir",
    "get_project_settings_dir",
    "resolve_under_home",
]
