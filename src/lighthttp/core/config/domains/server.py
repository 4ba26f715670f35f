"""Defaults applied to every ServerInstance."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class ServerConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "server"

    @cached_property
    def bind_host(self) -> str:
        return str(self.section.get("bind_host", "0.0.0.0"))

    @cached_property
    def default_http_port(self) -> int:
        return int(self.section.get("default_http_port", 80))

    @cached_property
    def default_https_port(self) -> int:
        return int(self.section.get("default_https_port", 443))

    @cached_property
    def proxy_timeout_seconds(self) -> float:
        return float(self.section.get("proxy_timeout_seconds", 30.0))

    @cached_property
    def first_free_port(self) -> int:
        return int(self.section.get("first_free_port", 8080))


__all__ = ["ServerConfig"]
