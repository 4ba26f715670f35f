"""Settings for the stitched player/editor/main fleet started by ``lighthttp serve``.

Relative asset paths resolve against the working directory the command runs
in, matching how the bootstrap has always been launched from a checkout.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from ..base import BaseDomainConfig


@dataclass(frozen=True)
class AssetServerSettings:
    host: str
    port: Optional[int]
    path: Path
    alias: str


@dataclass(frozen=True)
class LocalServerSettings:
    host: str
    port: Optional[int]
    https_port: Optional[int]
    path: Path


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


class BootstrapConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "bootstrap"

    @property
    def base_dir(self) -> Path:
        return Path(self._cwd).resolve() if self._cwd is not None else Path.cwd().resolve()

    def _resolve(self, raw: Any, default: str) -> Path:
        p = Path(str(raw or default)).expanduser()
        if not p.is_absolute():
            p = self.base_dir / p
        return p.resolve()

    def _asset(self, key: str, *, port: int, path: str, alias: str) -> AssetServerSettings:
        data: Dict[str, Any] = dict(self.section.get(key) or {})
        return AssetServerSettings(
            host=str(data.get("host") or "localhost"),
            port=_optional_int(data.get("port", port)),
            path=self._resolve(data.get("path"), path),
            alias=str(data.get("alias") or alias),
        )

    @cached_property
    def player(self) -> AssetServerSettings:
        return self._asset("player", port=8001, path="../player/player", alias="mt")

    @cached_property
    def editor(self) -> AssetServerSettings:
        return self._asset("editor", port=8002, path="../editor/source", alias="WM.Editor")

    @cached_property
    def local(self) -> LocalServerSettings:
        data: Dict[str, Any] = dict(self.section.get("local") or {})
        return LocalServerSettings(
            host=str(data.get("host") or "localhost"),
            port=_optional_int(data.get("port", 80)),
            https_port=_optional_int(data.get("https_port")),
            path=self._resolve(data.get("path"), "public"),
        )


__all__ = ["BootstrapConfig", "AssetServerSettings", "LocalServerSettings"]
