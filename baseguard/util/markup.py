"""HTML parsing helpers built around justhtml."""

from __future__ import annotations

import logging
import os
from typing import Any

from justhtml import JustHTML

Node = Any
LOGGER = logging.getLogger(__name__)


def parse_document(html: str) -> JustHTML:
    """Parse HTML without sanitization so script and style bodies survive."""
    return JustHTML(html, sanitize=False, safe=False)


def all_nodes(node: Node, selector: str) -> list[Node]:
    """Return all selector matches, guarding selector/runtime errors."""
    try:
        if hasattr(node, "query"):
            return list(node.query(selector))
    except Exception:
        return []
    return []


def attr(node: Node | None, name: str) -> str | None:
    """Get an element attribute by name."""
    if node is None:
        return None
    attrs = getattr(node, "attrs", None)
    if not isinstance(attrs, dict):
        return None
    value = attrs.get(name)
    if value is None:
        return None
    return str(value)


def raw_text(node: Node | None) -> str:
    """Return the unnormalized text children of an element (script/style bodies)."""
    if node is None:
        return ""
    parts: list[str] = []
    for child in getattr(node, "children", None) or []:
        if getattr(child, "name", None) == "#text":
            data = getattr(child, "data", None)
            if isinstance(data, str):
                parts.append(data)
    if parts:
        return "".join(parts)
    try:
        if hasattr(node, "to_text"):
            return str(node.to_text())
    except Exception:
        return ""
    return ""


def debug_enabled() -> bool:
    """Check debug mode env flag."""
    return os.environ.get("BASEGUARD_DEBUG", "").strip() == "1"


def debug_log(message: str) -> None:
    """Emit debug logs in debug mode only."""
    if debug_enabled():
        LOGGER.debug("%s", message)
