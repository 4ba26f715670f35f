"""Location of the persisted server list."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path

from lighthttp.core.paths import resolve_under_home

from ..base import BaseDomainConfig


class StoreConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "store"

    @cached_property
    def path(self) -> Path:
        """Absolute path of the server list JSON file."""
        return resolve_under_home(self.section.get("path") or "config.json")


__all__ = ["StoreConfig"]
