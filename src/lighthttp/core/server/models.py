from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from lighthttp.core.exceptions import ValidationError

MAX_PORT = 65535


class ServerState(str, Enum):
    """Lifecycle of a ServerInstance."""

    CONFIGURED = "configured"
    CONNECTING = "connecting"
    RUNNING = "running"
    DISCONNECTING = "disconnecting"


def validate_port(value: Any, *, field_name: str = "port") -> int | None:
    """Return ``value`` as a port number, or None when the protocol is disabled.

    ``0`` asks the OS for an ephemeral port.
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{field_name} must be an integer, got {value!r}",
            context={"field": field_name, "value": repr(value)},
        )
    if not 0 <= value <= MAX_PORT:
        raise ValidationError(
            f"{field_name} must be between 0 and {MAX_PORT}, got {value}",
            context={"field": field_name, "value": value},
        )
    return value


def validate_name(value: Any) -> str:
    name = str(value).strip() if value is not None else ""
    if not name:
        raise ValidationError("Server name must not be empty", context={"field": "name"})
    return name


@dataclass(frozen=True)
class TLSMaterial:
    certfile: Path
    keyfile: Path


@dataclass(frozen=True)
class ListenerConfig:
    """Everything one listener needs to serve a directory on a single port."""

    directory: Path
    port: int
    host: str = "0.0.0.0"
    tls: bool = False
    rewrite: tuple[str, ...] = field(default_factory=tuple)
    certfile: Path | None = None
    keyfile: Path | None = None
    proxy_timeout_seconds: float = 30.0
    access_log: bool = False

    @property
    def scheme(self) -> str:
        return "https" if self.tls else "http"


@dataclass(frozen=True)
class ServerDescriptor:
    """Serializable settings of one server, as stored in the server list."""

    name: str
    path: str = "."
    http_port: int | None = None
    https_port: int | None = None
    auto_start: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", validate_name(self.name))
        validate_port(self.http_port, field_name="http_port")
        validate_port(self.https_port, field_name="https_port")

    @classmethod
    def from_raw(cls, raw: Any) -> ServerDescriptor:
        if not isinstance(raw, dict):
            raise ValidationError(
                f"Server entry must be a mapping, got {type(raw).__name__}"
            )
        port = raw.get("port") or {}
        if not isinstance(port, dict):
            raise ValidationError("Server entry 'port' must be a mapping")
        # Names typed as numbers in hand-edited files are kept as text.
        return cls(
            name=str(raw["name"]) if raw.get("name") is not None else "",
            path=str(raw.get("path") or "."),
            http_port=port.get("http"),
            https_port=port.get("https"),
            auto_start=bool(raw.get("autoStart", False)),
        )

    def to_raw(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "port": {"http": self.http_port, "https": self.https_port},
            "autoStart": self.auto_start,
        }


__all__ = [
    "MAX_PORT",
    "ServerState",
    "ServerDescriptor",
    "ListenerConfig",
    "TLSMaterial",
    "validate_port",
    "validate_name",
]
