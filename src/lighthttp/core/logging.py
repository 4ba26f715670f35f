"""Process-wide stdlib logging setup for the light-http CLI."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from lighthttp.core.utils.io import ensure_directory

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_STREAM_HANDLER: logging.Handler | None = None
_FILE_HANDLER: logging.Handler | None = None
_CONFIGURED_LOG_PATH: str | None = None


def _level_from_name(name: Union[str, int]) -> int:
    if isinstance(name, int):
        return name
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else logging.INFO


def _drop(handler: Optional[logging.Handler]) -> None:
    if handler is None:
        return
    root = logging.getLogger()
    root.removeHandler(handler)
    handler.close()


def configure_logging(
    level: Union[str, int] = "INFO",
    log_path: Optional[Path] = None,
    *,
    stream: bool = True,
) -> None:
    """Install light-http's stderr and optional file handlers on the root logger.

    Idempotent per-process: calling again only adjusts levels and swaps the
    handlers whose settings changed. ``stream=False`` keeps stderr quiet
    (used by ``--json`` output).
    """
    global _STREAM_HANDLER, _FILE_HANDLER, _CONFIGURED_LOG_PATH

    lvl = _level_from_name(level)
    root = logging.getLogger()
    root.setLevel(lvl)
    fmt = logging.Formatter(LOG_FORMAT)

    if stream and _STREAM_HANDLER is None:
        _STREAM_HANDLER = logging.StreamHandler(sys.stderr)
        _STREAM_HANDLER.setFormatter(fmt)
        root.addHandler(_STREAM_HANDLER)
    elif not stream and _STREAM_HANDLER is not None:
        _drop(_STREAM_HANDLER)
        _STREAM_HANDLER = None
    if _STREAM_HANDLER is not None:
        _STREAM_HANDLER.setLevel(lvl)

    resolved = str(Path(log_path).resolve()) if log_path else None
    if resolved != _CONFIGURED_LOG_PATH:
        _drop(_FILE_HANDLER)
        _FILE_HANDLER = None
        _CONFIGURED_LOG_PATH = None
        if resolved is not None:
            ensure_directory(Path(resolved).parent)
            _FILE_HANDLER = logging.FileHandler(resolved, encoding="utf-8")
            _FILE_HANDLER.setFormatter(fmt)
            root.addHandler(_FILE_HANDLER)
            _CONFIGURED_LOG_PATH = resolved
    if _FILE_HANDLER is not None:
        _FILE_HANDLER.setLevel(lvl)

    if not root.handlers:
        # Keeps logging's lastResort handler from writing to stderr.
        root.addHandler(logging.NullHandler())


def reset_logging_for_tests() -> None:
    """Test-only: remove the handlers installed by ``configure_logging``."""
    global _STREAM_HANDLER, _FILE_HANDLER, _CONFIGURED_LOG_PATH
    _drop(_STREAM_HANDLER)
    _drop(_FILE_HANDLER)
    _STREAM_HANDLER = None
    _FILE_HANDLER = None
    _CONFIGURED_LOG_PATH = None


__all__ = ["LOG_FORMAT", "configure_logging", "reset_logging_for_tests"]
