"""Shared helpers for CLI command modules."""
from __future__ import annotations

import argparse
from typing import Any

from lighthttp.core.server.fleet import ServerEntry
from lighthttp.core.store import ServerListStore


def get_store(args: argparse.Namespace) -> ServerListStore:
    """Server list store honouring ``--config-file``."""
    return ServerListStore(getattr(args, "config_file", None) or None)


def describe_entry(entry: ServerEntry) -> dict[str, Any]:
    """JSON-friendly view of a fleet entry."""
    server = entry.server
    data: dict[str, Any] = {
        "id": entry.id,
        "name": server.name,
        "path": str(server.path),
        "port": {"http": server.http_port, "https": server.https_port},
        "autoStart": entry.auto_start,
        "alive": server.alive,
        "listen": list(server.listen_addresses),
    }
    if entry.warning is not None:
        data["warning"] = str(entry.warning.cause or entry.warning)
    return data


def format_ports(entry: ServerEntry) -> str:
    server = entry.server
    parts = []
    if server.http_port is not None:
        parts.append(f"http:{server.http_port}")
    if server.https_port is not None:
        parts.append(f"https:{server.https_port}")
    return ", ".join(parts) or "disabled"


__all__ = ["describe_entry", "format_ports", "get_store"]
