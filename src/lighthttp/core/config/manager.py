"""
light-http configuration management (layered YAML + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from lighthttp.core.exceptions import ConfigValidationError
from lighthttp.core.paths import get_project_settings_dir, get_user_settings_dir
from lighthttp.core.schemas import SchemaValidationError, validate_payload
from lighthttp.core.utils.io import iter_yaml_files, read_yaml
from lighthttp.core.utils.merge import deep_merge as _deep_merge
from lighthttp.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "LIGHTHTTP_"

# Environment variables read by earlier launch scripts of the bootstrap fleet. They
# only apply when no LIGHTHTTP_bootstrap__* override is present.
BOOTSTRAP_ENV_ALIASES: Dict[str, List[str]] = {
    "PLAYER_SERVER_HOST": ["bootstrap", "player", "host"],
    "PLAYER_SERVER_PORT": ["bootstrap", "player", "port"],
    "PLAYER_PATH": ["bootstrap", "player", "path"],
    "EDITOR_SERVER_HOST": ["bootstrap", "editor", "host"],
    "EDITOR_SERVER_PORT": ["bootstrap", "editor", "port"],
    "EDITOR_PATH": ["bootstrap", "editor", "path"],
    "LOCAL_SERVER_HOST": ["bootstrap", "local", "host"],
    "LOCAL_SERVER_PORT": ["bootstrap", "local", "port"],
    "LOCAL_SERVER_HTTPS_PORT": ["bootstrap", "local", "https_port"],
    "LOCAL_PLAYER_ALIAS_PATH": ["bootstrap", "player", "alias"],
    "LOCAL_EDITOR_ALIAS_PATH": ["bootstrap", "editor", "alias"],
    "LOCAL_PUBLIC_PATH": ["bootstrap", "local", "path"],
}

_PORT_ALIASES = {"PLAYER_SERVER_PORT", "EDITOR_SERVER_PORT", "LOCAL_SERVER_PORT", "LOCAL_SERVER_HTTPS_PORT"}


class ConfigManager:
    """Load, merge, and validate light-http configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: LIGHTHTTP_<section>__<key>
    2. Legacy bootstrap variables (PLAYER_SERVER_PORT, LOCAL_PUBLIC_PATH, ...)
    3. Project config: <cwd>/.light-http/settings/*.yaml (alphabetical order)
    4. User config: <home>/settings/*.yaml (alphabetical order)
    5. Bundled defaults: lighthttp.data/config/*.yaml (alphabetical order)
    """

    def __init__(self, cwd: Optional[Path] = None) -> None:
        self.cwd = Path(cwd).resolve() if cwd is not None else Path.cwd().resolve()
        self.core_config_dir = get_data_path("config")
        self.user_config_dir = get_user_settings_dir()
        self.project_config_dir = get_project_settings_dir(self.cwd)

    def deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge dictionaries. Delegates to shared implementation."""
        return _deep_merge(base, override)

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        data = read_yaml(path, default={}, raise_on_error=True)
        if not isinstance(data, dict):
            raise ConfigValidationError(
                f"Settings file must contain a mapping: {path}",
                context={"path": str(path)},
            )
        return data

    def validate_schema(self, config: Dict[str, Any]) -> None:
        try:
            validate_payload(config, "config")
        except SchemaValidationError as exc:
            raise ConfigValidationError(
                str(exc), context={"errors": exc.errors}
            ) from exc

    ARRAY_APPEND_MARKER = object()

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        if value.strip().lower() in {"null", "none"}:
            return None
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str, *, strict: bool) -> List[Union[str, int, object]]:
        if not raw:
            return []
        segs = raw.split("__") if "__" in raw else raw.split("_")
        processed: List[Union[str, int, object]] = []
        for seg in segs:
            if seg == "":
                if strict:
                    raise ValueError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
                return []
            if seg.isdigit():
                processed.append(int(seg))
            elif seg.upper() == "APPEND":
                processed.append(self.ARRAY_APPEND_MARKER)
            else:
                # Lowercase keeps env overrides canonical; matching existing keys stays case-insensitive.
                processed.append(seg.lower())
        return processed

    def _iter_env_overrides(self, *, strict: bool) -> Iterator[Tuple[List[Union[str, int, object]], Any, str]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            # LIGHTHTTP_HOME selects the home directory; it is not a settings key.
            if not raw or raw == "HOME":
                continue
            path = self._parse_env_key(raw, strict=strict)
            if not path:
                continue
            yield path, self._coerce_type(os.environ[key]), raw

    def _set_nested(self, root: Dict[str, Any], path: List[Union[str, int, object]], value: Any) -> None:
        if not path:
            return

        def _assign_leaf(container: Any, leaf: Union[str, int, object], val: Any) -> None:
            if leaf is self.ARRAY_APPEND_MARKER:
                if not isinstance(container, list):
                    raise ValueError("APPEND requires list")
                container.append(val)
                return
            if isinstance(leaf, int):
                if not isinstance(container, list):
                    raise ValueError("Index assignment requires list")
                while len(container) <= leaf:
                    container.append(None)
                container[leaf] = val
                return
            if not isinstance(container, dict):
                raise ValueError("Key assignment requires dict")
            lower_map = {k.lower(): k for k in container.keys() if isinstance(k, str)}
            use_key = lower_map.get(str(leaf).lower(), leaf)
            container[use_key] = val

        cur: Any = root
        for i, part in enumerate(path[:-1]):
            nxt = path[i + 1]
            if isinstance(part, int) or part is self.ARRAY_APPEND_MARKER:
                raise ValueError("Invalid path: list index/APPEND may only appear at leaf")
            if not isinstance(cur, dict):
                raise ValueError("Path traverses non-dict container")
            key_candidates = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            key_to_use = key_candidates.get(str(part).lower(), part)
            if key_to_use not in cur or cur[key_to_use] is None:
                cur[key_to_use] = [] if (isinstance(nxt, int) or nxt is self.ARRAY_APPEND_MARKER) else {}
            cur = cur[key_to_use]
        _assign_leaf(cur, path[-1], value)

    def apply_env_overrides(self, cfg: Dict[str, Any], *, strict: bool) -> None:
        for path, typed_value, _raw in self._iter_env_overrides(strict=strict):
            self._set_nested(cfg, path, typed_value)

    def _apply_bootstrap_env_aliases(self, cfg: Dict[str, Any]) -> None:
        """Route the bootstrap script's environment variables through the config system."""
        explicit = f"{ENV_PREFIX}bootstrap__".lower()
        if any(k.lower().startswith(explicit) for k in os.environ.keys()):
            return

        for env_key, path in BOOTSTRAP_ENV_ALIASES.items():
            raw = os.environ.get(env_key)
            if raw is None or not raw.strip():
                continue
            value: Any = raw.strip()
            if env_key in _PORT_ALIASES:
                as_int = self._as_int(value)
                if as_int is None:
                    logger.warning("Ignoring %s=%r: not a port number", env_key, raw)
                    continue
                value = as_int
            self._set_nested(cfg, list(path), value)

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        """Merge every YAML file of ``directory`` into ``cfg`` (alphabetical order)."""
        for path in iter_yaml_files(directory):
            cfg = self.deep_merge(cfg, self.load_yaml(path))
        return cfg

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load and merge configuration from every layer (uncached).

        Args:
            validate: If True, validate against the bundled config schema

        Returns:
            Merged configuration dictionary

        Raises:
            ConfigValidationError: If validation is requested and fails
        """
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.user_config_dir, cfg)
        if self.project_config_dir != self.user_config_dir:
            cfg = self._load_directory(self.project_config_dir, cfg)

        self._apply_bootstrap_env_aliases(cfg)
        self.apply_env_overrides(cfg, strict=validate)

        if validate:
            self.validate_schema(cfg)
        return cfg

    def get(self, key: str, default: Any = None) -> Any:
        """Return a dot-notation key (``"server.bind_host"``) from the merged config."""
        cur: Any = self.load_config(validate=False)
        for part in [p for p in key.split(".") if p]:
            if not isinstance(cur, dict) or part not in cur:
                return default
            cur = cur[part]
        return cur


__all__ = ["ConfigManager", "ENV_PREFIX", "BOOTSTRAP_ENV_ALIASES"]
