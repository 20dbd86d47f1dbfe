"""Feature extraction for script, style and markup source units."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping

import tree_sitter

from .catalog import CATALOG, Declaration, Node, Pattern, Rule, Selector, Substring
from .util.markup import debug_log
from .util.syntax import code_only, declaration_parts, node_text, parse, walk


def _text_matches(rule: Rule, text: str) -> bool:
    matcher = rule.matcher
    if isinstance(matcher, Substring):
        return matcher.text in text
    if isinstance(matcher, Pattern):
        return matcher.regex.search(text) is not None
    return False


def _apply_text_rules(rules: Iterable[Rule], text: str) -> set[str]:
    return {rule.feature for rule in rules if _text_matches(rule, text)}


def _node_matches(matcher: Node, node: tree_sitter.Node) -> bool:
    if matcher.names is None:
        return True
    target = node.child_by_field_name(matcher.field) if matcher.field else node
    return node_text(target).strip() in matcher.names


def _scan_script(source: str, rules: tuple[Rule, ...]) -> set[str]:
    text_rules: list[Rule] = []
    node_rules: dict[str, list[tuple[str, Node]]] = {}
    for rule in rules:
        if isinstance(rule.matcher, Node):
            node_rules.setdefault(rule.matcher.node_type, []).append((rule.feature, rule.matcher))
        else:
            text_rules.append(rule)

    encoded = source.encode("utf-8")
    try:
        tree = parse(encoded, "javascript")
    except Exception as exc:
        # Parser crash or missing grammar -> text rules only
        debug_log(f"script parser failed ({exc.__class__.__name__}); using raw text rules")
        return _apply_text_rules(text_rules, source)

    root = tree.root_node
    if root.has_error:
        debug_log("script did not parse cleanly; using raw text rules")
        return _apply_text_rules(text_rules, source)

    features = _apply_text_rules(text_rules, code_only(encoded, root))
    if not node_rules:
        return features
    for node in walk(root):
        for feature, matcher in node_rules.get(node.type, ()):
            if feature not in features and _node_matches(matcher, node):
                features.add(feature)
    return features


def _scan_style(source: str, rules: tuple[Rule, ...]) -> set[str]:
    text_rules: list[Rule] = []
    selector_rules: list[tuple[str, Selector]] = []
    declaration_rules: list[tuple[str, Declaration]] = []
    for rule in rules:
        if isinstance(rule.matcher, Selector):
            selector_rules.append((rule.feature, rule.matcher))
        elif isinstance(rule.matcher, Declaration):
            declaration_rules.append((rule.feature, rule.matcher))
        else:
            text_rules.append(rule)

    # At-rules do not always decompose into declarations, so scan raw text too.
    features = _apply_text_rules(text_rules, source)

    tree = parse(source.encode("utf-8"), "css")
    if tree.root_node.has_error:
        debug_log("stylesheet has syntax errors; scanning recoverable rules")

    for node in walk(tree.root_node):
        if node.type == "selectors":
            selector = node_text(node)
            for feature, selector_matcher in selector_rules:
                if selector_matcher.regex.search(selector):
                    features.add(feature)
        elif node.type == "declaration":
            prop, value = declaration_parts(node)
            if not prop:
                continue
            for feature, declaration in declaration_rules:
                if not declaration.prop.fullmatch(prop):
                    continue
                if declaration.value is None or declaration.value.search(value):
                    features.add(feature)
    return features


def _scan_markup(source: str, rules: tuple[Rule, ...]) -> set[str]:
    return _apply_text_rules(rules, source)


_SCANNERS: dict[str, Callable[[str, tuple[Rule, ...]], set[str]]] = {
    "script": _scan_script,
    "style": _scan_style,
    "markup": _scan_markup,
}


def extract(
    source_text: str | bytes,
    content_type: str,
    catalog: Mapping[str, tuple[Rule, ...]] | None = None,
) -> set[str]:
    """Return the feature names detected in one source unit.

    Unsupported content types yield an empty set. Script units that fail to
    parse fall back to the text rules over the raw source. Callers treat any
    other exception as an empty result for the unit.
    """
    scanner = _SCANNERS.get(content_type)
    rules = (CATALOG if catalog is None else catalog).get(content_type)
    if scanner is None or rules is None:
        debug_log(f"skipping unsupported content type {content_type!r}")
        return set()
    if isinstance(source_text, bytes):
        source_text = source_text.decode("utf-8", errors="replace")
    if not source_text.strip():
        return set()
    return scanner(source_text, rules)
