"""
light-http server remove command.

SUMMARY: Remove a server from the persisted list
"""

from __future__ import annotations

import argparse
import sys

from lighthttp.cli import OutputFormatter, add_server_name_arg, add_standard_flags
from lighthttp.cli._utils import get_store
from lighthttp.core.exceptions import LightHttpError

SUMMARY = "Remove a server from the persisted list"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_server_name_arg(parser, help_text="Server name or id")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        store = get_store(args)
        fleet = store.load_fleet()
        try:
            entry = fleet.remove(args.name)
        except KeyError:
            formatter.error(KeyError(args.name), f"Unknown server: {args.name}", error_code="not_found")
            return 1
        store.save(fleet)
    except LightHttpError as e:
        formatter.error(e, error_code="server_remove_error")
        return 1

    formatter.success({"removed": entry.name, "id": entry.id}, f"Removed server {entry.name}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
