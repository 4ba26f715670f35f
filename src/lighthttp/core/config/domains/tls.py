"""Certificate settings for HTTPS listeners."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from lighthttp.core.paths import get_home_dir, resolve_under_home

from ..base import BaseDomainConfig

TLS_DIRNAME = "tls"


class TLSConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "tls"

    def _optional_path(self, key: str) -> Optional[Path]:
        raw = str(self.section.get(key) or "").strip()
        return resolve_under_home(raw) if raw else None

    @cached_property
    def certfile(self) -> Optional[Path]:
        return self._optional_path("certfile")

    @cached_property
    def keyfile(self) -> Optional[Path]:
        return self._optional_path("keyfile")

    @cached_property
    def has_explicit_pair(self) -> bool:
        """True when both certfile and keyfile are configured."""
        return self.certfile is not None and self.keyfile is not None

    @cached_property
    def _self_signed(self) -> Dict[str, Any]:
        return dict(self.section.get("self_signed") or {})

    @cached_property
    def common_name(self) -> str:
        return str(self._self_signed.get("common_name", "localhost"))

    @cached_property
    def valid_days(self) -> int:
        return int(self._self_signed.get("valid_days", 825))

    @cached_property
    def renew_before_days(self) -> int:
        return int(self._self_signed.get("renew_before_days", 7))

    @property
    def generated_dir(self) -> Path:
        """Directory receiving generated self-signed material."""
        return get_home_dir() / TLS_DIRNAME


__all__ = ["TLSConfig", "TLS_DIRNAME"]
