"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse

from lighthttp.core.server.models import MAX_PORT


def port_number(value: str) -> int:
    """argparse ``type=`` for a TCP port (0 picks an ephemeral port)."""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 0 <= port <= MAX_PORT:
        raise argparse.ArgumentTypeError(f"port must be between 0 and {MAX_PORT}: {value}")
    return port


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_config_file_flag(parser: argparse.ArgumentParser) -> None:
    """Add --config-file to point at a server list other than the configured one."""
    parser.add_argument(
        "--config-file",
        type=str,
        help="Server list JSON file (default: store.path, ~/.light-http/config.json)",
    )


def add_server_name_arg(parser: argparse.ArgumentParser, *, help_text: str = "Server name") -> None:
    parser.add_argument("name", help=help_text)


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add --json and --config-file."""
    add_json_flag(parser)
    add_config_file_flag(parser)


__all__ = [
    "add_config_file_flag",
    "add_json_flag",
    "add_server_name_arg",
    "add_standard_flags",
    "port_number",
]
