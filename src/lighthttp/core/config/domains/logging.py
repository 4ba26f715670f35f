"""Domain-specific configuration for light-http logging.

This config controls:
- The root level for ``lighthttp`` loggers
- An optional log file (relative paths resolve against the home directory)
- Whether uvicorn emits per-request access lines
"""
from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path
from typing import Optional

from lighthttp.core.paths import resolve_under_home

from ..base import BaseDomainConfig


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level_name(self) -> str:
        return str(self.section.get("level", "INFO")).upper()

    @cached_property
    def level(self) -> int:
        value = logging.getLevelName(self.level_name)
        return value if isinstance(value, int) else logging.INFO

    @cached_property
    def path(self) -> Optional[Path]:
        raw = str(self.section.get("path") or "").strip()
        return resolve_under_home(raw) if raw else None

    @cached_property
    def access_log(self) -> bool:
        return bool(self.section.get("access_log", False))


__all__ = ["LoggingConfig"]
