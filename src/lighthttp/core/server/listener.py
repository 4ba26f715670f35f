"""The ``serve(config) -> Listener`` primitive.

A Listener binds one TCP port and runs a uvicorn server for the ASGI app
built from its ``ListenerConfig``. Progress is reported through callbacks:

- ``listening``: list of listen URLs, once the socket accepts connections
- ``error``: the exception that prevented startup (or broke the server)
- ``closed``: the socket has been released

The process shell owns signal handling, so uvicorn's signal hooks are
disabled.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import socket
from typing import Any, Callable, Iterator

import httpx
import uvicorn

from .app import build_app
from .models import ListenerConfig
from .rewrite import RewriteRule

logger = logging.getLogger(__name__)

EVENTS = ("listening", "error", "closed")
WILDCARD_HOSTS = frozenset({"", "0.0.0.0"})
LOOPBACK = "127.0.0.1"
_STARTUP_POLL_SECONDS = 0.01


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves process signals alone."""

    def install_signal_handlers(self) -> None:
        return None

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


def _bind_socket(host: str, port: int) -> socket.socket:
    bind_host = host or "0.0.0.0"
    family = socket.AF_INET6 if ":" in bind_host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        if os.name == "posix":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((bind_host, port))
    except OSError:
        sock.close()
        raise
    return sock


def _local_ipv4_addresses() -> list[str]:
    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except OSError:
        return []
    return [str(info[4][0]) for info in infos]


def listen_urls(scheme: str, host: str, bound_ip: str, port: int) -> list[str]:
    """Addresses a client can use to reach a socket bound on ``host``.

    Wildcard binds report the loopback address first.
    """
    if host in WILDCARD_HOSTS:
        candidates = [LOOPBACK, *_local_ipv4_addresses()]
    else:
        candidates = [bound_ip]

    urls: list[str] = []
    for ip in candidates:
        shown = f"[{ip}]" if ":" in ip else ip
        url = f"{scheme}://{shown}:{port}"
        if url not in urls:
            urls.append(url)
    return urls


class Listener:
    """One bound port serving a directory; created by :func:`serve`."""

    def __init__(self, config: ListenerConfig) -> None:
        self.config = config
        self.addresses: list[str] = []
        self._handlers: dict[str, list[Callable[..., Any]]] = {name: [] for name in EVENTS}
        self._server: _EmbeddedServer | None = None
        self._close_requested = False
        self._closed = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    @property
    def closed(self) -> bool:
        return self._closed

    def on(self, event: str, callback: Callable[..., Any]) -> Listener:
        if event not in self._handlers:
            raise ValueError(f"Unknown listener event: {event}")
        self._handlers[event].append(callback)
        return self

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._handlers[event]):
            try:
                callback(*args)
            except Exception:
                logger.exception("Listener %s callback failed", event)

    def close(self) -> None:
        """Request shutdown; idempotent, does not wait for the socket to be released."""
        if self._close_requested:
            return
        self._close_requested = True
        if self._server is not None and self._server.started:
            self._server.should_exit = True

    async def wait_closed(self) -> None:
        await asyncio.wait({self._task})

    def _uvicorn_config(self, app: Any) -> uvicorn.Config:
        cfg = self.config
        kwargs: dict[str, Any] = {}
        if cfg.tls:
            if cfg.certfile is None or cfg.keyfile is None:
                raise FileNotFoundError("HTTPS listener requires a certificate and a key file")
            kwargs["ssl_certfile"] = str(cfg.certfile)
            kwargs["ssl_keyfile"] = str(cfg.keyfile)
        return uvicorn.Config(
            app,
            host=cfg.host or "0.0.0.0",
            port=cfg.port,
            lifespan="off",
            log_config=None,
            access_log=cfg.access_log,
            **kwargs,
        )

    async def _run(self) -> None:
        cfg = self.config
        sock: socket.socket | None = None
        # Alias targets are local servers, often behind self-signed certificates;
        # HTTP_PROXY and friends must not reroute them.
        client = httpx.AsyncClient(timeout=cfg.proxy_timeout_seconds, verify=False, trust_env=False)
        try:
            rules = [RewriteRule.parse(rule) for rule in cfg.rewrite]
            app = build_app(cfg.directory, rules, client)
            uv_config = self._uvicorn_config(app)
            # Loads the certificate pair so TLS problems surface before binding.
            uv_config.load()
            sock = _bind_socket(cfg.host, cfg.port)
            bound_ip, bound_port = sock.getsockname()[:2]

            server = _EmbeddedServer(uv_config)
            self._server = server
            serving = asyncio.ensure_future(server.serve(sockets=[sock]))
            while not server.started and not serving.done():
                await asyncio.sleep(_STARTUP_POLL_SECONDS)
            if not server.started:
                await serving
                raise OSError(f"Listener on port {bound_port} stopped during startup")

            self.addresses = listen_urls(cfg.scheme, cfg.host, bound_ip, bound_port)
            if self._close_requested:
                server.should_exit = True
            else:
                self._emit("listening", list(self.addresses))
            await serving
        except Exception as exc:
            self._emit("error", exc)
        finally:
            if sock is not None:
                sock.close()
            await client.aclose()
            self.addresses = []
            self._closed = True
            self._emit("closed")


def serve(config: ListenerConfig) -> Listener:
    """Start serving ``config`` on the running event loop."""
    return Listener(config)


__all__ = ["EVENTS", "Listener", "listen_urls", "serve"]
