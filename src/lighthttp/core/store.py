"""Persistence of the server list (``~/.light-http/config.json``).

File format::

    {"serverList": [{"name": str, "path": str,
                     "port": {"http": int|null, "https": int|null},
                     "autoStart": bool}]}

Every failure is reported as ``ConfigIOError`` with the original cause
chained; callers decide whether to show it or carry on.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from lighthttp.core.exceptions import ConfigIOError, ValidationError
from lighthttp.core.schemas import collect_errors
from lighthttp.core.server.fleet import ServerFleet
from lighthttp.core.server.models import ServerDescriptor
from lighthttp.core.utils.io import LockTimeoutError, read_json, write_json_atomic

logger = logging.getLogger(__name__)

SCHEMA_NAME = "server-list"


class ServerListStore:
    def __init__(self, path: Path | str | None = None) -> None:
        if path is None:
            from lighthttp.core.config import StoreConfig

            self.path = StoreConfig().path
        else:
            self.path = Path(path).expanduser().resolve()

    def load_raw(self) -> dict[str, Any]:
        """Read and schema-check the file; a missing file is an empty list."""
        try:
            data = read_json(self.path, default=None)
        except json.JSONDecodeError as exc:
            raise ConfigIOError(
                f"Failed to parse the configuration file '{self.path}'. "
                f"It does not contain valid JSON data: {exc}",
                path=self.path,
            ) from exc
        except OSError as exc:
            raise ConfigIOError(
                f"Unable to read the configuration file '{self.path}': {exc}",
                path=self.path,
            ) from exc

        if data is None:
            return {"serverList": []}

        errors = collect_errors(data, SCHEMA_NAME)
        if errors:
            raise ConfigIOError(
                f"Invalid configuration file '{self.path}': {'; '.join(errors[:3])}",
                path=self.path,
                context={"errors": errors},
            )
        return data

    def load(self) -> list[ServerDescriptor]:
        raw = self.load_raw()
        descriptors: list[ServerDescriptor] = []
        for index, item in enumerate(raw.get("serverList") or []):
            try:
                descriptors.append(ServerDescriptor.from_raw(item))
            except ValidationError as exc:
                raise ConfigIOError(
                    f"Invalid server entry #{index} in '{self.path}': {exc}",
                    path=self.path,
                    context={"index": index},
                ) from exc
        logger.debug("Loaded %d server(s) from %s", len(descriptors), self.path)
        return descriptors

    def load_fleet(self, **kwargs: Any) -> ServerFleet:
        descriptors = self.load()
        try:
            return ServerFleet.from_descriptors(descriptors, **kwargs)
        except ValidationError as exc:
            raise ConfigIOError(
                f"Invalid server list in '{self.path}': {exc}", path=self.path
            ) from exc

    def save(self, fleet_or_config: ServerFleet | dict[str, Any] | list[ServerDescriptor]) -> Path:
        if isinstance(fleet_or_config, ServerFleet):
            payload = fleet_or_config.to_config()
        elif isinstance(fleet_or_config, list):
            payload = {"serverList": [d.to_raw() for d in fleet_or_config]}
        else:
            payload = fleet_or_config

        try:
            write_json_atomic(self.path, payload)
        except (OSError, TypeError, ValueError, LockTimeoutError) as exc:
            raise ConfigIOError(
                f"Unable to write data into the configuration file '{self.path}': {exc}",
                path=self.path,
            ) from exc
        logger.debug("Saved server list to %s", self.path)
        return self.path


__all__ = ["SCHEMA_NAME", "ServerListStore"]
