"""
light-http server edit command.

SUMMARY: Change a persisted server's path, name or ports
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from lighthttp.cli import OutputFormatter, add_server_name_arg, add_standard_flags, port_number
from lighthttp.cli._utils import describe_entry, get_store
from lighthttp.core.exceptions import LightHttpError

SUMMARY = "Change a persisted server's path, name or ports"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_server_name_arg(parser, help_text="Server name or id")
    parser.add_argument("--path", help="New directory to serve")
    parser.add_argument("--rename", metavar="NEW_NAME", help="New server name")

    http = parser.add_mutually_exclusive_group()
    http.add_argument("--http-port", type=port_number, help="Enable HTTP on this port")
    http.add_argument("--no-http", action="store_true", help="Disable HTTP")

    https = parser.add_mutually_exclusive_group()
    https.add_argument("--https-port", type=port_number, help="Enable HTTPS on this port")
    https.add_argument("--no-https", action="store_true", help="Disable HTTPS")

    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        store = get_store(args)
        fleet = store.load_fleet()
        try:
            entry = fleet.get(args.name)
        except KeyError:
            formatter.error(KeyError(args.name), f"Unknown server: {args.name}", error_code="not_found")
            return 1

        server = entry.server
        if args.path:
            server.set_path(Path(args.path).expanduser().resolve())
        if args.http_port is not None:
            server.enable_http(args.http_port)
        elif args.no_http:
            server.disable_http()
        if args.https_port is not None:
            server.enable_https(args.https_port)
        elif args.no_https:
            server.disable_https()
        if args.rename:
            fleet.rename(entry.name, args.rename)
        store.save(fleet)
    except LightHttpError as e:
        formatter.error(e, error_code="server_edit_error")
        return 1

    formatter.success({"server": describe_entry(entry)}, f"Updated server {entry.name}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
