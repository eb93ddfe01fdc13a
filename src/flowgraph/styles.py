"""Style string parsing and the default -> class -> inline cascade."""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

from .model import Graph, StyleClass

# Commas inside parentheses (e.g. rgb(0,0,0)) do not separate declarations.
_DECLARATION_SPLIT_RE = re.compile(r",(?![^(]*\))")
_DASH_LOWER_RE = re.compile(r"-([a-z])")


def camel_case(key: str) -> str:
    return _DASH_LOWER_RE.sub(lambda m: m.group(1).upper(), key)


def parse_style(text: str) -> StyleClass:
    """Parse ``fill:#f9f,stroke-width:2px`` into a property map.

    Every property is stored under its camel-cased key and its literal key.
    Parts that are not ``key:value`` are dropped.
    """
    style, _rejected = parse_style_with_rejects(text)
    return style


def parse_style_with_rejects(text: str) -> Tuple[StyleClass, List[str]]:
    style: StyleClass = {}
    rejected: List[str] = []
    for part in _DECLARATION_SPLIT_RE.split(text):
        if not part.strip():
            continue
        key, sep, value = part.partition(":")
        key = key.strip()
        if not sep or not key:
            rejected.append(part.strip())
            continue
        value = value.strip()
        style[camel_case(key)] = value
        style[key] = value
    return style, rejected


def style_value(style: Optional[StyleClass], key: str) -> Optional[str]:
    """Look up ``key`` by its literal or camel-cased spelling."""
    if not style:
        return None
    if key in style:
        return style[key]
    return style.get(camel_case(key))


def resolve_node_style(graph: Graph, node_id: str) -> Optional[StyleClass]:
    style: StyleClass = {}
    default = graph.class_defs.get("default")
    if default:
        style.update(default)
    class_name = graph.node_classes.get(node_id)
    if class_name and class_name in graph.class_defs:
        style.update(graph.class_defs[class_name])
    inline = graph.node_styles.get(node_id)
    if inline:
        style.update(inline)
    return style or None


def resolve_link_style(graph: Graph, edge_index: int) -> Optional[StyleClass]:
    style: StyleClass = {}
    if graph.default_link_style:
        style.update(graph.default_link_style)
    specific = graph.link_styles.get(edge_index)
    if specific:
        style.update(specific)
    return style or None
