"""Small text helpers."""
from __future__ import annotations

import re

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+|[0-9]+")


def snake_case(value: object) -> str:
    """Convert any label into a ``snake_case`` identifier.

    Splits on case changes, punctuation and whitespace, so
    ``"Player Assets"``, ``"playerAssets"`` and ``"player-assets"`` all
    become ``"player_assets"``. Non-ASCII letters are dropped.

    Example:
        >>> snake_case("WM.Editor")
        'wm_editor'
    """
    words = _WORD_RE.findall(str(value))
    return "_".join(w.lower() for w in words)


__all__ = ["snake_case"]
