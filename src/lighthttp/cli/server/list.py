"""
light-http server list command.

SUMMARY: List persisted servers
"""

from __future__ import annotations

import argparse
import sys

from lighthttp.cli import OutputFormatter, add_standard_flags
from lighthttp.cli._utils import describe_entry, format_ports, get_store
from lighthttp.core.exceptions import LightHttpError

SUMMARY = "List persisted servers"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        store = get_store(args)
        fleet = store.load_fleet()
    except LightHttpError as e:
        formatter.error(e, error_code="server_list_error")
        return 1

    if formatter.json_mode:
        formatter.json_output(
            {"path": str(store.path), "servers": [describe_entry(e) for e in fleet]}
        )
        return 0

    if not len(fleet):
        formatter.text(f"No servers configured in {store.path}")
        return 0

    for entry in fleet:
        auto = " [auto-start]" if entry.auto_start else ""
        formatter.text(f"{entry.name} ({format_ports(entry)}){auto}")
        formatter.text_kv("id", entry.id)
        formatter.text_kv("path", entry.server.path)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
