"""
light-http server add command.

SUMMARY: Add a server to the persisted list

Without --http-port/--https-port the server gets the next free HTTP port
(``server.first_free_port`` + number of servers).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from lighthttp.cli import OutputFormatter, add_server_name_arg, add_standard_flags, port_number
from lighthttp.cli._utils import describe_entry, get_store
from lighthttp.core.config import ServerConfig
from lighthttp.core.exceptions import LightHttpError
from lighthttp.core.server.models import ServerDescriptor

SUMMARY = "Add a server to the persisted list"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_server_name_arg(parser)
    parser.add_argument("path", help="Directory to serve")
    parser.add_argument("--http-port", type=port_number, help="HTTP port")
    parser.add_argument("--https-port", type=port_number, help="HTTPS port")
    parser.add_argument(
        "--auto-start",
        action="store_true",
        help="Start this server with `lighthttp server run`",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        store = get_store(args)
        fleet = store.load_fleet()

        http_port = args.http_port
        if http_port is None and args.https_port is None:
            http_port = ServerConfig().first_free_port + len(fleet)

        entry = fleet.add(
            ServerDescriptor(
                name=args.name,
                path=str(Path(args.path).expanduser().resolve()),
                http_port=http_port,
                https_port=args.https_port,
                auto_start=bool(args.auto_start),
            )
        )
        store.save(fleet)
    except LightHttpError as e:
        formatter.error(e, error_code="server_add_error")
        return 1

    formatter.success(
        {"server": describe_entry(entry)},
        f"Added server {entry.name} ({entry.id})",
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
