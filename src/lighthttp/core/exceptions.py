from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping


class LightHttpError(Exception):
    """Base exception for light-http."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ValidationError(LightHttpError, ValueError):
    """Raised when a server setting or alias path is malformed."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LightHttpError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class PreconditionError(LightHttpError, ValueError):
    """Raised when an operation needs a server that is not alive."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LightHttpError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class StartupError(LightHttpError, RuntimeError):
    """Raised when one of a server's listeners fails to bind."""

    def __init__(
        self,
        message: str,
        *,
        server_name: str,
        cause: BaseException | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["server_name"] = server_name
        if cause is not None:
            ctx["cause"] = f"{type(cause).__name__}: {cause}"
        LightHttpError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)
        self.server_name = server_name
        self.cause = cause


class ConfigIOError(LightHttpError):
    """Raised when the persisted server list cannot be read, parsed or written."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if path is not None:
            ctx["path"] = str(path)
        super().__init__(message, context=ctx)
        self.path = Path(path) if path is not None else None


class ConfigValidationError(LightHttpError, ValueError):
    """Raised when the merged configuration does not match its schema."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LightHttpError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "LightHttpError",
    "ValidationError",
    "PreconditionError",
    "StartupError",
    "ConfigIOError",
    "ConfigValidationError",
]
