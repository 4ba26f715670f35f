"""
light-http server run command.

SUMMARY: Start persisted servers and keep them running until interrupted

With no names, every server flagged auto-start is started. Servers that
fail to start are reported as warnings; the command only fails when none
of them came up.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from lighthttp.cli import OutputFormatter, add_standard_flags
from lighthttp.cli._utils import describe_entry, get_store
from lighthttp.core.exceptions import LightHttpError, StartupError
from lighthttp.core.server.bootstrap import wait_for_termination
from lighthttp.core.server.fleet import ServerFleet

SUMMARY = "Start persisted servers and keep them running until interrupted"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("names", nargs="*", help="Servers to start (default: auto-start servers)")
    add_standard_flags(parser)


async def start_servers(fleet: ServerFleet, names: list[str]) -> list[StartupError]:
    """Start ``names`` (or the auto-start servers) concurrently; return the failures."""
    if not names:
        return await fleet.autostart()

    results = await asyncio.gather(*(fleet.start(n) for n in names), return_exceptions=True)
    failures: list[StartupError] = []
    for result in results:
        if isinstance(result, StartupError):
            failures.append(result)
        elif isinstance(result, BaseException):
            raise result
    return failures


async def _run(fleet: ServerFleet, names: list[str], formatter: OutputFormatter) -> int:
    try:
        failures = await start_servers(fleet, names)
        for failure in failures:
            formatter.warning(f"{failure} ({failure.cause})")

        running = [entry for entry in fleet if entry.server.alive]
        if not running:
            formatter.error(RuntimeError("no server started"), "No server started", error_code="server_run_error")
            return 1

        formatter.success(
            {"servers": [describe_entry(entry) for entry in fleet]},
            "\n".join(
                f"{entry.name}: {', '.join(entry.server.listen_addresses)}" for entry in running
            ),
            status="running",
        )
        await wait_for_termination()
        return 0
    finally:
        await fleet.shutdown()


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        fleet = get_store(args).load_fleet()
    except LightHttpError as e:
        formatter.error(e, error_code="server_run_error")
        return 1

    names = list(args.names or [])
    for name in names:
        try:
            fleet.get(name)
        except KeyError:
            formatter.error(KeyError(name), f"Unknown server: {name}", error_code="not_found")
            return 1

    return asyncio.run(_run(fleet, names, formatter))


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
