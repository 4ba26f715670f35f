"""Supervisor for one logical static-file server.

A ``ServerInstance`` owns the desired configuration of a server (root
directory, HTTP port, HTTPS port, rewrite rules) and drives up to two
listeners through an injected ``serve`` primitive. Other instances read
its ``listen_url`` to register path aliases pointing at it.

Lifecycle::

    CONFIGURED -> CONNECTING -> RUNNING -> DISCONNECTING -> CONFIGURED
    CONNECTING -> CONFIGURED  (startup failure, StartupError raised)
"""
from __future__ import annotations

import asyncio
import logging
from functools import partial
from pathlib import Path
from typing import Any, Callable, Protocol

from lighthttp.core.exceptions import PreconditionError, StartupError, ValidationError

from .models import (
    ListenerConfig,
    ServerDescriptor,
    ServerState,
    TLSMaterial,
    validate_name,
    validate_port,
)
from .rewrite import RewriteRule, alias_rule, encode_alias_prefix

logger = logging.getLogger(__name__)

HTTP = "http"
HTTPS = "https"


class SupportsListener(Protocol):
    def on(self, event: str, callback: Callable[..., Any]) -> Any: ...

    def close(self) -> None: ...

    async def wait_closed(self) -> None: ...


ServeFn = Callable[[ListenerConfig], SupportsListener]


def _default_serve(config: ListenerConfig) -> SupportsListener:
    from .listener import serve

    return serve(config)


class ServerInstance:
    """One named server: a directory served over HTTP and/or HTTPS.

    Mutators return the instance so configuration can be chained::

        main = ServerInstance("main http", "public", 80).add_alias_path("mt", player)
        await main.connect()

    ``http_port`` / ``https_port`` of ``None`` disable the protocol; ``0``
    asks the OS for an ephemeral port.
    """

    def __init__(
        self,
        name: str,
        directory: str | Path = ".",
        http_port: int | None = None,
        https_port: int | None = None,
        *,
        host: str | None = None,
        tls: TLSMaterial | None = None,
        serve: ServeFn | None = None,
        proxy_timeout_seconds: float | None = None,
        access_log: bool | None = None,
    ) -> None:
        self._name = validate_name(name)
        self._directory = self._coerce_directory(directory)
        self._http_port = validate_port(http_port, field_name="http_port")
        self._https_port = validate_port(https_port, field_name="https_port")
        self._host = host
        self._tls = tls
        self._serve: ServeFn = serve or _default_serve
        self._proxy_timeout_seconds = proxy_timeout_seconds
        self._access_log = access_log

        self._state = ServerState.CONFIGURED
        self._rules: list[RewriteRule] = []
        self._listeners: dict[str, SupportsListener] = {}
        self._retired: list[SupportsListener] = []
        self._addresses: list[str] = []

    def __repr__(self) -> str:
        return (
            f"ServerInstance(name={self._name!r}, directory={str(self._directory)!r}, "
            f"http_port={self._http_port!r}, https_port={self._https_port!r}, "
            f"state={self._state.value!r})"
        )

    @staticmethod
    def _coerce_directory(value: str | Path | None) -> Path:
        if value is None or not str(value).strip():
            raise ValidationError("Server directory must not be empty", context={"field": "directory"})
        return Path(str(value)).expanduser()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self._name

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def path(self) -> Path:
        return self._directory

    @property
    def http_port(self) -> int | None:
        return self._http_port

    @property
    def https_port(self) -> int | None:
        return self._https_port

    @property
    def port(self) -> int | None:
        return self._http_port if self._http_port is not None else self._https_port

    @property
    def http(self) -> bool:
        return self._http_port is not None

    @property
    def https(self) -> bool:
        return self._https_port is not None

    @property
    def host(self) -> str:
        if self._host is not None:
            return self._host
        from lighthttp.core.config import ServerConfig

        return ServerConfig().bind_host

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def alive(self) -> bool:
        return bool(self._addresses)

    @property
    def listen_addresses(self) -> tuple[str, ...]:
        return tuple(self._addresses)

    @property
    def listen_url(self) -> str | None:
        return self._addresses[0] if self._addresses else None

    @property
    def rewrite_rules(self) -> tuple[RewriteRule, ...]:
        return tuple(self._rules)

    # ------------------------------------------------------------------
    # Configuration mutators (effective on next connect/reconnect)
    # ------------------------------------------------------------------
    def enable_http(self, port: int | None = None) -> ServerInstance:
        if port is None:
            from lighthttp.core.config import ServerConfig

            port = ServerConfig().default_http_port
        self._http_port = validate_port(port, field_name="http_port")
        return self

    def enable_https(self, port: int | None = None) -> ServerInstance:
        if port is None:
            from lighthttp.core.config import ServerConfig

            port = ServerConfig().default_https_port
        self._https_port = validate_port(port, field_name="https_port")
        return self

    def disable_http(self) -> ServerInstance:
        self._http_port = None
        return self

    def disable_https(self) -> ServerInstance:
        self._https_port = None
        return self

    def set_directory(self, path: str | Path) -> ServerInstance:
        self._directory = self._coerce_directory(path)
        return self

    def set_path(self, path: str | Path) -> ServerInstance:
        return self.set_directory(path)

    def set_name(self, name: str) -> ServerInstance:
        self._name = validate_name(name)
        return self

    def add_rewrite(self, source: str, target: str) -> ServerInstance:
        """Append an explicit rewrite rule; the target does not need to be alive."""
        self._rules.append(RewriteRule(source=str(source).strip(), target=str(target).strip()))
        return self

    def add_alias_path(
        self,
        prefix: str,
        target: ServerInstance | str,
        target_url: str | None = None,
    ) -> ServerInstance:
        """Forward ``/<prefix>/...`` to another server.

        ``target`` is either a running ServerInstance (its current
        ``listen_url`` is captured now and never refreshed) or an http(s)
        URL. The target itself is not modified.

        Raises:
            PreconditionError: If ``target`` is a ServerInstance that is not alive.
            ValidationError: If ``prefix`` or the target URL is malformed.
        """
        if isinstance(target, ServerInstance):
            if not target.alive:
                raise PreconditionError(
                    f"Server {target.name} must be alive before creating an alias",
                    context={"server_name": self._name, "target": target.name},
                )
            url = target_url or target.listen_url or ""
        elif isinstance(target, str):
            url = target_url or target
        else:
            raise ValidationError("An instance of ServerInstance or a URL must be provided")

        rule = alias_rule(prefix, url)
        self._rules.append(rule)
        logger.info(
            "A path alias has been added to %s server: '/%s' -> '%s'",
            self._name,
            encode_alias_prefix(prefix),
            url.rstrip("/"),
        )
        return self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _enabled(self) -> list[tuple[str, int]]:
        enabled: list[tuple[str, int]] = []
        if self._http_port is not None:
            enabled.append((HTTP, self._http_port))
        if self._https_port is not None:
            enabled.append((HTTPS, self._https_port))
        return enabled

    def _listener_config(self, protocol: str, port: int) -> ListenerConfig:
        from lighthttp.core.config import LoggingConfig, ServerConfig

        settings = ServerConfig()
        timeout = self._proxy_timeout_seconds
        if timeout is None:
            timeout = settings.proxy_timeout_seconds
        access_log = self._access_log
        if access_log is None:
            access_log = LoggingConfig().access_log

        certfile = keyfile = None
        if protocol == HTTPS and self._tls is not None:
            certfile, keyfile = self._tls.certfile, self._tls.keyfile

        return ListenerConfig(
            directory=self._directory,
            port=port,
            host=self._host if self._host is not None else settings.bind_host,
            tls=protocol == HTTPS,
            rewrite=tuple(str(rule) for rule in self._rules),
            certfile=certfile,
            keyfile=keyfile,
            proxy_timeout_seconds=timeout,
            access_log=access_log,
        )

    def _settled(self, listener: SupportsListener) -> asyncio.Future[list[str]]:
        """Future resolved by the listener's first ``listening`` or ``error`` event."""
        fut: asyncio.Future[list[str]] = asyncio.get_running_loop().create_future()

        def _on_listening(addresses: Any) -> None:
            if not fut.done():
                fut.set_result([str(a) for a in addresses or []])

        def _on_error(exc: BaseException) -> None:
            if not fut.done():
                fut.set_exception(exc)

        def _on_closed() -> None:
            if not fut.done():
                fut.set_exception(OSError("listener closed before it started listening"))

        listener.on("listening", _on_listening)
        listener.on("error", _on_error)
        listener.on("closed", _on_closed)
        return fut

    def _close_listener(self, listener: SupportsListener) -> None:
        try:
            listener.close()
        except Exception:
            logger.exception("Failed to close a %s server listener", self._name)

    def _retire(self, listeners: list[SupportsListener], *, keep: SupportsListener | None = None) -> None:
        for listener in listeners:
            if listener is not keep:
                self._close_listener(listener)
        self._retired.extend(listeners)

    def _on_listener_closed(self, listener: SupportsListener) -> None:
        if self._state is not ServerState.RUNNING:
            return
        if not any(current is listener for current in self._listeners.values()):
            return
        logger.warning("A %s server listener closed unexpectedly; stopping the server", self._name)
        siblings = list(self._listeners.values())
        self._listeners = {}
        self._addresses = []
        self._retire(siblings, keep=listener)
        self._state = ServerState.CONFIGURED

    async def connect(self) -> ServerInstance:
        """Start every enabled listener and wait for all of them to settle.

        Raises:
            StartupError: If any listener fails; the ones that bound are torn down.
        """
        enabled = self._enabled()
        if not enabled:
            return self

        logger.info("Creating %s server...", self._name)
        was_running = self._state is ServerState.RUNNING
        self._state = ServerState.CONNECTING

        pending: dict[str, SupportsListener] = {}
        waiters: list[asyncio.Future[list[str]]] = []
        results: list[Any]
        try:
            if self._https_port is not None and self._tls is None:
                from .tls import ensure_tls_material

                # Key generation is CPU-bound; keep it off the event loop.
                self._tls = await asyncio.to_thread(ensure_tls_material)
            for protocol, port in enabled:
                listener = self._serve(self._listener_config(protocol, port))
                pending[protocol] = listener
                listener.on("closed", partial(self._on_listener_closed, listener))
                waiters.append(self._settled(listener))
        except Exception as exc:
            for waiter in waiters:
                waiter.cancel()
            results = [exc]
        else:
            results = list(await asyncio.gather(*waiters, return_exceptions=True))

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            self._retire(list(pending.values()))
            self._state = ServerState.RUNNING if was_running and self._addresses else ServerState.CONFIGURED
            cause = failures[0]
            logger.error("Unable to start the server %s: %s", self._name, cause)
            raise StartupError(
                f"Unable to start the server {self._name}",
                server_name=self._name,
                cause=cause,
            ) from cause

        previous = list(self._listeners.values())
        if previous:
            self._retire(previous)

        addresses: list[str] = []
        for batch in results:
            for address in batch:
                if address not in addresses:
                    addresses.append(address)

        self._listeners = pending
        self._addresses = addresses
        self._state = ServerState.RUNNING
        logger.info("%s server is listening on %s", self._name, ", ".join(addresses))
        return self

    def disconnect(self) -> ServerInstance:
        """Request shutdown of every active listener; never raises."""
        listeners = list(self._listeners.values())
        if listeners:
            logger.info("Stopping %s server...", self._name)
        self._state = ServerState.DISCONNECTING
        self._listeners = {}
        self._addresses = []
        self._retire(listeners)
        self._state = ServerState.CONFIGURED
        if listeners:
            logger.info("%s server stopped", self._name)
        return self

    def close(self) -> ServerInstance:
        return self.disconnect()

    async def wait_closed(self) -> None:
        """Wait until every listener stopped so far has released its socket."""
        retired, self._retired = self._retired, []
        for listener in retired:
            await listener.wait_closed()

    async def reconnect(self) -> ServerInstance:
        if not self.alive:
            return self
        self.disconnect()
        await self.wait_closed()
        return await self.connect()

    def to_descriptor(self, auto_start: bool = False) -> ServerDescriptor:
        return ServerDescriptor(
            name=self._name,
            path=str(self._directory),
            http_port=self._http_port,
            https_port=self._https_port,
            auto_start=auto_start,
        )

    @classmethod
    def from_descriptor(cls, descriptor: ServerDescriptor, **kwargs: Any) -> ServerInstance:
        return cls(
            descriptor.name,
            descriptor.path,
            descriptor.http_port,
            descriptor.https_port,
            **kwargs,
        )


__all__ = ["ServerInstance", "ServeFn", "SupportsListener"]
