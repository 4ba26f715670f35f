"""Rewrite rules: ``"<source> -> <target>"`` strings applied to request paths.

``source`` is a regular expression matched against the whole (URL-encoded)
request path. ``$N`` in ``target`` is replaced with capture group N. A target
starting with ``http://`` or ``https://`` is reverse-proxied; a target
starting with ``/`` rewrites the path locally.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Pattern
from urllib.parse import quote, urlsplit

from lighthttp.core.exceptions import ValidationError

ARROW = "->"

# Characters encodeURIComponent leaves alone, plus "/" between segments.
_ALIAS_SAFE = "/!*'()"
_GROUP_REF = re.compile(r"\$(\d+)")


@lru_cache(maxsize=256)
def _compile(source: str) -> Pattern[str]:
    try:
        return re.compile(f"^(?:{source})$")
    except re.error as exc:
        raise ValidationError(
            f"Invalid rewrite source {source!r}: {exc}", context={"source": source}
        ) from exc


def _is_url(value: str) -> bool:
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


@dataclass(frozen=True)
class RewriteRule:
    source: str
    target: str

    def __post_init__(self) -> None:
        if not self.source:
            raise ValidationError("Rewrite source must not be empty")
        if not (self.target.startswith("/") or _is_url(self.target)):
            raise ValidationError(
                f"Rewrite target must be a path or an http(s) URL: {self.target!r}",
                context={"target": self.target},
            )
        _compile(self.source)

    @classmethod
    def parse(cls, text: str) -> RewriteRule:
        source, sep, target = str(text).partition(ARROW)
        if not sep:
            raise ValidationError(
                f"Rewrite rule must look like '<source> -> <target>': {text!r}",
                context={"rule": text},
            )
        return cls(source=source.strip(), target=target.strip())

    @property
    def pattern(self) -> Pattern[str]:
        return _compile(self.source)

    @property
    def is_proxy(self) -> bool:
        return _is_url(self.target)

    def apply(self, path: str) -> str | None:
        """Return the rewritten target for ``path``, or None when it does not match."""
        match = self.pattern.match(path)
        if match is None:
            return None

        def _group(ref: re.Match[str]) -> str:
            index = int(ref.group(1))
            if index > (self.pattern.groups or 0):
                return ""
            return match.group(index) or ""

        return _GROUP_REF.sub(_group, self.target)

    def __str__(self) -> str:
        return f"{self.source} {ARROW} {self.target}"


def encode_alias_prefix(prefix: str) -> str:
    """Validate an alias prefix and return it URL-encoded, without slashes around it."""
    cleaned = str(prefix or "").strip().strip("/")
    if not cleaned:
        raise ValidationError("Alias path must be a non-empty string", context={"prefix": prefix})
    for segment in cleaned.split("/"):
        if segment in ("", ".", ".."):
            raise ValidationError(
                f"Alias path {prefix!r} contains an invalid segment",
                context={"prefix": prefix},
            )
    return quote(cleaned, safe=_ALIAS_SAFE)


def alias_rule(prefix: str, target_url: str) -> RewriteRule:
    """Build the rule forwarding ``/<prefix>/...`` to ``<target_url>/...``."""
    encoded = encode_alias_prefix(prefix)
    target = str(target_url or "").strip()
    if not _is_url(target):
        raise ValidationError(
            f"Alias target must be an http(s) URL: {target_url!r}",
            context={"target": target_url},
        )
    return RewriteRule(source=f"/{re.escape(encoded)}/(.*)", target=f"{target.rstrip('/')}/$1")


def first_match(rules: Iterable[RewriteRule], path: str) -> tuple[RewriteRule, str] | None:
    for rule in rules:
        rewritten = rule.apply(path)
        if rewritten is not None:
            return rule, rewritten
    return None


__all__ = ["RewriteRule", "alias_rule", "encode_alias_prefix", "first_match"]
