"""Centralized configuration caching.

Provides a single source of truth for loaded configuration across all domain
configs. Cache keys include the working directory, the home directory, a
fingerprint of relevant environment variables and the mtimes of every
settings overlay, so edits made while a process runs are picked up.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from lighthttp.core.paths import (
    get_home_dir,
    get_project_settings_dir,
    get_user_settings_dir,
)
from lighthttp.core.utils.io import iter_yaml_files

_config_cache: Dict[str, Dict[str, Any]] = {}


def _fingerprint_dir(directory: Path) -> List[Tuple[str, int, int]]:
    files: List[Tuple[str, int, int]] = []
    for p in iter_yaml_files(directory):
        try:
            st = p.stat()
        except OSError:
            files.append((p.name, 0, 0))
            continue
        files.append((p.name, int(st.st_mtime_ns), int(st.st_size)))
    return files


def _cache_key(cwd: Path) -> str:
    from .manager import BOOTSTRAP_ENV_ALIASES, ENV_PREFIX

    env_items = sorted(
        (k, os.environ.get(k, ""))
        for k in os.environ.keys()
        if k.startswith(ENV_PREFIX) or k in BOOTSTRAP_ENV_ALIASES
    )
    env_fp = hashlib.sha256(repr(env_items).encode("utf-8")).hexdigest()[:12]

    cfg_files = {
        "user": _fingerprint_dir(get_user_settings_dir()),
        "project": _fingerprint_dir(get_project_settings_dir(cwd)),
    }
    cfg_fp = hashlib.sha256(repr(cfg_files).encode("utf-8")).hexdigest()[:12]

    return f"{cwd}:home={get_home_dir()}:env={env_fp}:cfg={cfg_fp}"


def get_cached_config(cwd: Optional[Path] = None, validate: bool = True) -> Dict[str, Any]:
    """Get configuration with caching.

    Returns the same config dict instance while nothing relevant changed.
    The returned dict is shared: treat it as immutable.
    """
    from .manager import ConfigManager

    root = Path(cwd).resolve() if cwd is not None else Path.cwd().resolve()
    key = f"{_cache_key(root)}:validate={validate}"
    if key not in _config_cache:
        _config_cache[key] = ConfigManager(cwd=root).load_config(validate=validate)
    return _config_cache[key]


def clear_all_caches() -> None:
    """Drop every cached config dict."""
    _config_cache.clear()


__all__ = [
    "get_cached_config",
    "clear_all_caches",
]
