"""ASGI application served by every listener.

Static files come from Starlette's ``StaticFiles``; a rewrite middleware in
front of it applies the instance's rules in order. Rules targeting an
absolute URL are reverse-proxied with httpx, rules targeting a path rewrite
the request locally.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence
from urllib.parse import quote, unquote

import httpx
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Mount
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Receive, Scope, Send

from .rewrite import RewriteRule, first_match

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)
# Recomputed locally: httpx decodes bodies and the Host must match the upstream.
_REQUEST_SKIP = HOP_BY_HOP_HEADERS | {"host", "content-length"}
_RESPONSE_SKIP = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}


def request_path(scope: Scope) -> str:
    """URL-encoded request path, without the query string."""
    raw = scope.get("raw_path")
    if raw:
        return raw.decode("latin-1").split("?", 1)[0]
    return quote(scope.get("path", "/"))


def _with_query(url: str, query: bytes) -> str:
    if not query:
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{query.decode('latin-1')}"


class RewriteMiddleware:
    """Apply rewrite rules (first match wins) before static file serving."""

    def __init__(self, app: ASGIApp, rules: Sequence[RewriteRule], client: httpx.AsyncClient) -> None:
        self.app = app
        self.rules = tuple(rules)
        self.client = client

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self.rules:
            await self.app(scope, receive, send)
            return

        found = first_match(self.rules, request_path(scope))
        if found is None:
            await self.app(scope, receive, send)
            return

        rule, target = found
        if rule.is_proxy:
            url = _with_query(target, scope.get("query_string", b""))
            response = await self.proxy(Request(scope, receive), url)
            await response(scope, receive, send)
            return

        new_path, _, new_query = target.partition("?")
        scope = dict(scope)
        scope["path"] = unquote(new_path)
        scope["raw_path"] = new_path.encode("latin-1", errors="replace")
        if new_query:
            scope["query_string"] = new_query.encode("latin-1", errors="replace")
        await self.app(scope, receive, send)

    async def proxy(self, request: Request, url: str) -> Response:
        headers = [
            (k, v) for k, v in request.headers.items() if k.lower() not in _REQUEST_SKIP
        ]
        body = await request.body()
        try:
            upstream = await self.client.request(
                request.method,
                url,
                content=body or None,
                headers=headers,
            )
        except httpx.TimeoutException:
            logger.warning("Proxy request to %s timed out", url)
            return PlainTextResponse("Gateway Timeout", status_code=504)
        except httpx.HTTPError as exc:
            logger.warning("Proxy request to %s failed: %s", url, exc)
            return PlainTextResponse("Bad Gateway", status_code=502)

        response = Response(content=upstream.content, status_code=upstream.status_code)
        skip = _RESPONSE_SKIP
        if request.method == "HEAD" and "content-length" in upstream.headers:
            # No body came back; report the size the upstream announced.
            del response.headers["content-length"]
            skip = _RESPONSE_SKIP - {"content-length"}
        for key, value in upstream.headers.multi_items():
            if key.lower() not in skip:
                response.headers.append(key, value)
        return response


def build_app(
    directory: Path,
    rules: Sequence[RewriteRule],
    client: httpx.AsyncClient,
) -> ASGIApp:
    """Build the ASGI app serving ``directory`` with ``rules`` applied in order.

    Raises:
        FileNotFoundError: If ``directory`` does not exist.
    """
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory does not exist: {root}")
    # StaticFiles signals 404/405 by raising HTTPException; the exception
    # middleware of the Starlette app turns it into a reply.
    return Starlette(
        routes=[Mount("/", app=StaticFiles(directory=str(root), html=True))],
        middleware=[Middleware(RewriteMiddleware, rules=rules, client=client)],
    )


__all__ = ["HOP_BY_HOP_HEADERS", "RewriteMiddleware", "build_app", "request_path"]
