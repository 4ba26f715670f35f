"""
light-http server autostart command.

SUMMARY: Turn auto-start on or off for a persisted server
"""

from __future__ import annotations

import argparse
import sys

from lighthttp.cli import OutputFormatter, add_server_name_arg, add_standard_flags
from lighthttp.cli._utils import get_store
from lighthttp.core.exceptions import LightHttpError

SUMMARY = "Turn auto-start on or off for a persisted server"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_server_name_arg(parser, help_text="Server name or id")
    parser.add_argument("state", choices=["on", "off"], help="Auto-start state")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    flag = args.state == "on"
    try:
        store = get_store(args)
        fleet = store.load_fleet()
        try:
            entry = fleet.set_auto_start(args.name, flag)
        except KeyError:
            formatter.error(KeyError(args.name), f"Unknown server: {args.name}", error_code="not_found")
            return 1
        store.save(fleet)
    except LightHttpError as e:
        formatter.error(e, error_code="server_autostart_error")
        return 1

    formatter.success(
        {"name": entry.name, "autoStart": entry.auto_start},
        f"Auto-start {args.state} for {entry.name}",
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
