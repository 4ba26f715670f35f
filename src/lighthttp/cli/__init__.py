"""
light-http CLI package.

Commands are auto-discovered from domain subfolders (``server/``,
``config/``) and root commands from ``commands/``. Each command module
exposes ``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared CLI utilities
"""
from ._args import (
    add_config_file_flag,
    add_json_flag,
    add_server_name_arg,
    add_standard_flags,
    port_number,
)
from ._output import OutputFormatter, format_json

__all__ = [
    "OutputFormatter",
    "format_json",
    "add_config_file_flag",
    "add_json_flag",
    "add_server_name_arg",
    "add_standard_flags",
    "port_number",
]
