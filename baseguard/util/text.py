"""Text utility helpers."""

from __future__ import annotations

from collections.abc import Sequence


def join_limited(items: Sequence[str], limit: int) -> str:
    """Join at most ``limit`` items, noting how many were left out."""
    if limit <= 0:
        return f"(+{len(items)} more)" if items else ""
    listed = ", ".join(items[:limit])
    extra = len(items) - limit
    return f"{listed} (+{extra} more)" if extra > 0 else listed
