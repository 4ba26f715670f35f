"""
light-http config show command.

SUMMARY: Show current configuration

Displays the merged configuration from bundled defaults, user and project
settings files, and environment variables. Supports filtering by key and
multiple output formats.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

from lighthttp.cli import OutputFormatter, add_json_flag
from lighthttp.core.config import ConfigManager
from lighthttp.core.exceptions import LightHttpError
from lighthttp.core.utils.io import dump_yaml_string

SUMMARY = "Show current configuration"

_MISSING = object()


def _nest_key(key: str, value: Any) -> Any:
    """Nest a dot-notation key into a YAML/JSON-friendly mapping."""
    parts = [p for p in str(key).split(".") if p]
    out = value
    for part in reversed(parts):
        out = {part: out}
    return out


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "key",
        nargs="?",
        help="Specific configuration key to show (e.g., 'server.bind_host')",
    )
    parser.add_argument(
        "--format",
        choices=["json", "yaml", "table"],
        default="table",
        help="Output format (default: table)",
    )
    add_json_flag(parser)


def _format_value(value: Any, indent: int = 0) -> str:
    """Format a value for table display."""
    prefix = "  " * indent
    if isinstance(value, dict):
        lines = []
        for k, v in value.items():
            formatted = _format_value(v, indent + 1)
            if "\n" in formatted:
                lines.append(f"{prefix}{k}:")
                lines.append(formatted)
            else:
                lines.append(f"{prefix}{k}: {formatted.strip()}")
        return "\n".join(lines)
    if isinstance(value, list):
        if not value:
            return "[]"
        return f"[{', '.join(str(v) for v in value)}]"
    return "null" if value is None else str(value)


def main(args: argparse.Namespace) -> int:
    """Show configuration - delegates to ConfigManager."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        config_data = ConfigManager().load_config(validate=True)
    except LightHttpError as e:
        formatter.error(e, error_code="config_show_error")
        return 1

    output_format = "json" if args.json else args.format

    if args.key:
        value: Any = config_data
        for part in [p for p in args.key.split(".") if p]:
            value = value.get(part, _MISSING) if isinstance(value, dict) else _MISSING
            if value is _MISSING:
                break
        if value is _MISSING:
            formatter.error(KeyError(args.key), f"Key not found: {args.key}", error_code="not_found")
            return 1
        if output_format == "json":
            formatter.json_output({args.key: value})
        elif output_format == "yaml":
            formatter.text(dump_yaml_string(_nest_key(args.key, value)).rstrip())
        else:
            formatter.text(f"{args.key}:")
            formatter.text(_format_value(value, indent=1))
        return 0

    if output_format == "json":
        formatter.json_output(config_data)
    elif output_format == "yaml":
        formatter.text(dump_yaml_string(config_data).rstrip())
    else:
        formatter.text("light-http configuration")
        formatter.text("=" * 60)
        formatter.text("")
        for section in sorted(config_data.keys()):
            formatter.text(f"[{section}]")
            formatter.text(_format_value(config_data[section], indent=1))
            formatter.text("")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
