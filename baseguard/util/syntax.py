"""Syntax-tree helpers built around tree-sitter."""

from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache
import importlib
import logging

import tree_sitter

LOGGER = logging.getLogger(__name__)

GRAMMAR_MODULES: dict[str, str] = {
    "javascript": "tree_sitter_javascript",
    "css": "tree_sitter_css",
}


@lru_cache(maxsize=None)
def get_language(grammar: str) -> tree_sitter.Language:
    """Load a compiled grammar by short name (``javascript`` or ``css``)."""
    module = importlib.import_module(GRAMMAR_MODULES[grammar])
    return tree_sitter.Language(module.language())


def parse(source: bytes, grammar: str) -> tree_sitter.Tree:
    """Parse source bytes with a fresh parser.

    Parsers are not shared between threads, so one is created per call.
    """
    parser = tree_sitter.Parser(get_language(grammar))
    return parser.parse(source)


def walk(root: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Yield every node below ``root`` (inclusive) in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def node_text(node: tree_sitter.Node | None) -> str:
    """Decode a node's source text, or return an empty string."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _blank(buffer: bytearray, start: int, end: int) -> None:
    for index in range(start, end):
        if buffer[index] not in (0x0A, 0x0D):
            buffer[index] = 0x20


def code_only(source: bytes, root: tree_sitter.Node) -> str:
    """Return the source with comments and string literal contents blanked out.

    Offsets are preserved; quotes, template delimiters and template
    substitutions are kept so the remaining text is still code-shaped.
    """
    buffer = bytearray(source)
    for node in walk(root):
        if node.type == "comment":
            _blank(buffer, node.start_byte, node.end_byte)
        elif node.type == "string":
            _blank(buffer, node.start_byte + 1, node.end_byte - 1)
        elif node.type == "template_string":
            cursor = node.start_byte + 1
            for child in node.children:
                if child.type == "template_substitution":
                    _blank(buffer, cursor, child.start_byte)
                    cursor = child.end_byte
            _blank(buffer, cursor, node.end_byte - 1)
    return buffer.decode("utf-8", errors="replace")


def declaration_parts(node: tree_sitter.Node) -> tuple[str, str]:
    """Split a CSS ``declaration`` node into lowercased property and value text."""
    prop = ""
    colon_end: int | None = None
    value_end: int | None = None
    for child in node.children:
        if child.type == "property_name" and not prop:
            prop = node_text(child)
        elif child.type == ":" and colon_end is None:
            colon_end = child.end_byte
        elif colon_end is not None and child.type != ";":
            value_end = child.end_byte
    if colon_end is None or value_end is None or node.text is None:
        return prop.strip().lower(), ""
    offset = node.start_byte
    value = node.text[colon_end - offset : value_end - offset]
    return prop.strip().lower(), value.decode("utf-8", errors="replace").strip().lower()
