"""The stitched player/editor/main fleet behind ``lighthttp serve``.

Two asset servers ("player assets", "editor assets") are started first;
once they report their ports, the main server(s) alias them under
configurable prefixes and start serving the public tree.

Every instance binds ``server.bind_host``. The ``host`` of each bootstrap
subsection only names the machine in alias target URLs and log lines.
"""
from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass, field
from typing import Awaitable
from urllib.parse import urlsplit

from lighthttp.core.config import BootstrapConfig

from .instance import ServeFn, ServerInstance

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def public_url(host: str, server: ServerInstance) -> str:
    """``<scheme>://<host>:<bound port>`` for a running server."""
    parts = urlsplit(server.listen_url or "")
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"{parts.scheme or 'http'}://{host}:{parts.port}"


@dataclass
class BootstrapFleet:
    player: ServerInstance
    editor: ServerInstance
    main: list[ServerInstance] = field(default_factory=list)
    player_alias: str = "mt"
    editor_alias: str = "WM.Editor"
    player_host: str = "localhost"
    editor_host: str = "localhost"
    public_host: str = "localhost"

    @property
    def servers(self) -> list[ServerInstance]:
        """Every instance in construction order."""
        return [self.player, self.editor, *self.main]

    async def connect(self) -> None:
        """Start the asset servers, wire the aliases, then start the main server(s)."""
        results = await asyncio.gather(
            self.player.connect(), self.editor.connect(), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        player_url = public_url(self.player_host, self.player)
        editor_url = public_url(self.editor_host, self.editor)
        for server in self.main:
            server.add_alias_path(self.player_alias, self.player, player_url)
            server.add_alias_path(self.editor_alias, self.editor, editor_url)
        for server in self.main:
            await server.connect()

    def disconnect(self) -> None:
        for server in self.servers:
            server.disconnect()

    async def shutdown(self) -> None:
        self.disconnect()
        for server in self.servers:
            await server.wait_closed()


def build_bootstrap_fleet(
    config: BootstrapConfig | None = None,
    *,
    serve: ServeFn | None = None,
) -> BootstrapFleet:
    cfg = config or BootstrapConfig()
    player, editor, local = cfg.player, cfg.editor, cfg.local

    main = [ServerInstance("main http", local.path, local.port, serve=serve)]
    if local.https_port is not None:
        main.append(
            ServerInstance("main https", local.path, None, local.https_port, serve=serve)
        )

    return BootstrapFleet(
        player=ServerInstance("player assets", player.path, player.port, serve=serve),
        editor=ServerInstance("editor assets", editor.path, editor.port, serve=serve),
        main=main,
        player_alias=player.alias,
        editor_alias=editor.alias,
        player_host=player.host,
        editor_host=editor.host,
        public_host=local.host,
    )


async def wait_for_termination(signals: tuple[signal.Signals, ...] = TERMINATION_SIGNALS) -> signal.Signals:
    """Suspend until one of ``signals`` is delivered to the process."""
    loop = asyncio.get_running_loop()
    received: asyncio.Future[signal.Signals] = loop.create_future()

    def _handler(sig: signal.Signals) -> None:
        if not received.done():
            received.set_result(sig)

    for sig in signals:
        loop.add_signal_handler(sig, _handler, sig)
    try:
        return await received
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)


async def run_bootstrap(
    config: BootstrapConfig | None = None,
    *,
    serve: ServeFn | None = None,
    stop: Awaitable[object] | None = None,
) -> BootstrapFleet:
    """Run the stitched fleet until a termination signal (or ``stop``) arrives.

    Every instance is disconnected in construction order before returning,
    including when startup fails.
    """
    fleet = build_bootstrap_fleet(config, serve=serve)
    try:
        await fleet.connect()
        for server in fleet.main:
            logger.info("Public site: %s", public_url(fleet.public_host, server))
        if stop is not None:
            await stop
        else:
            sig = await wait_for_termination()
            logger.info("Received %s, shutting down servers...", sig.name)
    finally:
        await fleet.shutdown()
    return fleet


__all__ = [
    "BootstrapFleet",
    "TERMINATION_SIGNALS",
    "public_url",
    "build_bootstrap_fleet",
    "run_bootstrap",
    "wait_for_termination",
]
