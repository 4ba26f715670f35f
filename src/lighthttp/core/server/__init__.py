"""Static-file servers stitched together with path-alias reverse proxies.

- ``ServerInstance``: lifecycle supervisor for one named server
- ``serve``: the listener primitive (uvicorn + Starlette + httpx)
- ``ServerFleet``: bookkeeping for a persisted list of servers
- ``run_bootstrap``: the player/editor/main fleet behind ``lighthttp serve``
"""
from __future__ import annotations

from .bootstrap import BootstrapFleet, build_bootstrap_fleet, run_bootstrap, wait_for_termination
from .fleet import ServerEntry, ServerFleet, server_id
from .instance import ServerInstance
from .listener import Listener, serve
from .models import ListenerConfig, ServerDescriptor, ServerState, TLSMaterial
from .rewrite import RewriteRule, alias_rule
from .tls import ensure_tls_material

__all__ = [
    "BootstrapFleet",
    "Listener",
    "ListenerConfig",
    "RewriteRule",
    "ServerDescriptor",
    "ServerEntry",
    "ServerFleet",
    "ServerInstance",
    "ServerState",
    "TLSMaterial",
    "alias_rule",
    "build_bootstrap_fleet",
    "ensure_tls_material",
    "run_bootstrap",
    "serve",
    "server_id",
    "wait_for_termination",
]
