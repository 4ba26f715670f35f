"""Layered configuration for light-http.

Bundled YAML defaults are overlaid by user and project settings files and
by ``LIGHTHTTP_<section>__<key>`` environment variables, then validated
against the bundled JSON schema.
"""
from __future__ import annotations

from .base import BaseDomainConfig
from .cache import clear_all_caches, get_cached_config
from .domains import (
    BootstrapConfig,
    LoggingConfig,
    ServerConfig,
    StoreConfig,
    TLSConfig,
)
from .manager import ENV_PREFIX, ConfigManager

__all__ = [
    "BaseDomainConfig",
    "BootstrapConfig",
    "ConfigManager",
    "ENV_PREFIX",
    "LoggingConfig",
    "ServerConfig",
    "StoreConfig",
    "TLSConfig",
    "clear_all_caches",
    "get_cached_config",
]
