"""Bookkeeping for a list of named servers.

A ``ServerFleet`` is the list a tray menu or the CLI works on: an ordered list of
``ServerEntry`` objects, each wrapping a ServerInstance with its auto-start
flag and the last startup failure. It converts to and from the persisted
``{"serverList": [...]}`` structure but never touches the disk itself.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

from lighthttp.core.exceptions import StartupError, ValidationError
from lighthttp.core.utils.text import snake_case

from .instance import ServeFn, ServerInstance
from .models import ServerDescriptor

logger = logging.getLogger(__name__)

ID_PREFIX = "server_"


def server_id(name: str) -> str:
    """Config key for a server name, e.g. ``"WM.Editor"`` -> ``"server_wm_editor"``."""
    slug = snake_case(name)
    if not slug:
        raise ValidationError(
            f"Server name {name!r} has no characters usable in an identifier",
            context={"name": name},
        )
    return f"{ID_PREFIX}{slug}"


@dataclass
class ServerEntry:
    id: str
    server: ServerInstance
    auto_start: bool = False
    warning: StartupError | None = None

    @property
    def name(self) -> str:
        return self.server.name

    def to_descriptor(self) -> ServerDescriptor:
        return self.server.to_descriptor(auto_start=self.auto_start)


class ServerFleet:
    def __init__(
        self,
        *,
        serve: ServeFn | None = None,
        host: str | None = None,
        first_free_port: int | None = None,
    ) -> None:
        self._entries: list[ServerEntry] = []
        self._serve = serve
        self._host = host
        self._first_free_port = first_free_port

    @classmethod
    def from_descriptors(
        cls,
        descriptors: Iterable[ServerDescriptor],
        **kwargs: Any,
    ) -> ServerFleet:
        fleet = cls(**kwargs)
        for descriptor in descriptors:
            fleet.add(descriptor)
        return fleet

    def __iter__(self) -> Iterator[ServerEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return any(entry.name == name for entry in self._entries)

    @property
    def entries(self) -> tuple[ServerEntry, ...]:
        return tuple(self._entries)

    def _check_unique(self, name: str, *, ignore: ServerEntry | None = None) -> str:
        new_id = server_id(name)
        for entry in self._entries:
            if entry is ignore:
                continue
            if entry.name == name:
                raise ValidationError(f"A server named {name!r} already exists", context={"name": name})
            if entry.id == new_id:
                raise ValidationError(
                    f"Server name {name!r} collides with {entry.name!r} (both map to {new_id})",
                    context={"name": name, "id": new_id},
                )
        return new_id

    def add(self, descriptor: ServerDescriptor) -> ServerEntry:
        entry_id = self._check_unique(descriptor.name)
        server = ServerInstance.from_descriptor(descriptor, host=self._host, serve=self._serve)
        entry = ServerEntry(id=entry_id, server=server, auto_start=descriptor.auto_start)
        self._entries.append(entry)
        return entry

    def create(self, path: str | Path) -> ServerEntry:
        """Add a server for ``path`` with the next free name and port."""
        if self._first_free_port is not None:
            base = self._first_free_port
        else:
            from lighthttp.core.config import ServerConfig

            base = ServerConfig().first_free_port
        index = len(self._entries)
        name = str(index)
        while name in self:
            index += 1
            name = str(index)
        return self.add(
            ServerDescriptor(name=name, path=str(path), http_port=base + len(self._entries))
        )

    def get(self, name: str) -> ServerEntry:
        for entry in self._entries:
            if entry.name == name or entry.id == name:
                return entry
        raise KeyError(name)

    def remove(self, name: str) -> ServerEntry:
        entry = self.get(name)
        entry.server.disconnect()
        self._entries.remove(entry)
        return entry

    def rename(self, name: str, new_name: str) -> ServerEntry:
        entry = self.get(name)
        new_id = self._check_unique(new_name, ignore=entry)
        entry.server.set_name(new_name)
        entry.id = new_id
        return entry

    def set_auto_start(self, name: str, flag: bool) -> ServerEntry:
        entry = self.get(name)
        entry.auto_start = bool(flag)
        return entry

    async def set_path(self, name: str, path: str | Path) -> ServerEntry:
        """Change a server's directory, restarting it when it is running."""
        entry = self.get(name)
        entry.server.set_path(path)
        await self._guarded(entry, entry.server.reconnect())
        return entry

    async def _guarded(self, entry: ServerEntry, operation: Any) -> ServerEntry:
        try:
            await operation
        except StartupError as exc:
            entry.warning = exc
            raise
        entry.warning = None
        return entry

    async def start(self, name: str) -> ServerEntry:
        entry = self.get(name)
        return await self._guarded(entry, entry.server.connect())

    def stop(self, name: str) -> ServerEntry:
        entry = self.get(name)
        entry.server.disconnect()
        return entry

    async def restart(self, name: str) -> ServerEntry:
        entry = self.get(name)
        return await self._guarded(entry, entry.server.reconnect())

    async def autostart(self) -> list[StartupError]:
        """Connect every auto-start server concurrently.

        Failures are stored on their entries and returned, never raised.
        """
        entries = [entry for entry in self._entries if entry.auto_start]
        results = await asyncio.gather(
            *(self._guarded(entry, entry.server.connect()) for entry in entries),
            return_exceptions=True,
        )
        failures: list[StartupError] = []
        for entry, result in zip(entries, results):
            if isinstance(result, StartupError):
                logger.warning("Auto-start of %s failed: %s", entry.name, result.cause or result)
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
        return failures

    def disconnect_all(self) -> None:
        for entry in self._entries:
            entry.server.disconnect()

    async def shutdown(self) -> None:
        self.disconnect_all()
        for entry in self._entries:
            await entry.server.wait_closed()

    def descriptors(self) -> list[ServerDescriptor]:
        return [entry.to_descriptor() for entry in self._entries]

    def to_config(self) -> dict[str, Any]:
        return {"serverList": [d.to_raw() for d in self.descriptors()]}


__all__ = ["ID_PREFIX", "ServerEntry", "ServerFleet", "server_id"]
