"""
light-http serve command.

SUMMARY: Run the player, editor and main servers until interrupted

Starts the two asset servers, aliases them into the main server under the
configured prefixes, and keeps everything running until SIGINT/SIGTERM.
Settings come from the ``bootstrap`` config section (or the legacy
PLAYER_* / EDITOR_* / LOCAL_* environment variables).
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from lighthttp.cli import OutputFormatter, add_json_flag
from lighthttp.core.exceptions import LightHttpError
from lighthttp.core.server.bootstrap import run_bootstrap

SUMMARY = "Run the player, editor and main servers until interrupted"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        fleet = asyncio.run(run_bootstrap())
    except LightHttpError as e:
        formatter.error(e, error_code="serve_error")
        return 1

    formatter.success(
        {"servers": [server.name for server in fleet.servers]},
        "All servers stopped",
        status="stopped",
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
