"""Domain-specific configuration accessors."""
from __future__ import annotations

from .bootstrap import AssetServerSettings, BootstrapConfig, LocalServerSettings
from .logging import LoggingConfig
from .server import ServerConfig
from .store import StoreConfig
from .tls import TLSConfig

__all__ = [
    "AssetServerSettings",
    "BootstrapConfig",
    "LocalServerSettings",
    "LoggingConfig",
    "ServerConfig",
    "StoreConfig",
    "TLSConfig",
]
