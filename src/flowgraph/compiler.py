"""Flowchart text to :class:`Graph` compiler.

The compiler never raises on bad input. Each line either contributes to the
graph or is skipped, and skipped or partially understood lines are reported in
``Graph.diagnostics``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .model import (
    CurveKind,
    Diagnostic,
    Direction,
    Edge,
    EdgeType,
    Graph,
    Node,
    NodeShape,
    StyleClass,
)
from .shapes import NodeToken, match_node
from .styles import parse_style_with_rejects

logger = logging.getLogger(__name__)

FRONT_MATTER_DELIMITER = "---"

_CURVE_RE = re.compile(r"curve:\s*(\w+)")
_BARE_DIRECTION_RE = re.compile(r"^(TD|TB|BT|LR|RL)$", re.IGNORECASE)
_HEADER_RE = re.compile(r"^(?:graph|flowchart)\s+(TD|TB|BT|LR|RL)", re.IGNORECASE)
_BARE_HEADER_RE = re.compile(r"^(?:graph|flowchart)$", re.IGNORECASE)
_LINK_STYLE_RE = re.compile(r"^linkStyle\s+(.+?)\s+(.+)$", re.IGNORECASE)
_STYLE_RE = re.compile(r"^style\s+(\S+)\s+(.+)$", re.IGNORECASE)
_CLASS_DEF_RE = re.compile(r"^classDef\s+(\S+)\s+(.+)$", re.IGNORECASE)
_CLASS_RE = re.compile(r"^class\s+(\S+)\s+(\S+)$", re.IGNORECASE)
_EDGE_SPLIT_RE = re.compile(r"\s*(-{2,}>|-\.-+>|={2,}>|-{3,})\s*")
_EDGE_LABEL_RE = re.compile(r"^\|(.+?)\|\s*(.*)$")


def edge_type_for(operator: str) -> EdgeType:
    if ".-" in operator:
        return EdgeType.DOTTED
    if operator.startswith("="):
        return EdgeType.THICK
    if operator.endswith(">"):
        return EdgeType.ARROW
    return EdgeType.OPEN


@dataclass
class _NodeDraft:
    id: str
    label: str
    shape: NodeShape
    class_name: Optional[str]
    children: List[str] = field(default_factory=list)
    parents: List[str] = field(default_factory=list)

    def merge(self, token: NodeToken) -> None:
        # A bare re-reference (label == id) never overwrites an explicit label.
        if token.label and token.label != token.id:
            self.label = token.label
        if token.shape is not NodeShape.RECT:
            self.shape = token.shape
        if token.class_name:
            self.class_name = token.class_name


class _GraphBuilder:
    """Accumulates one compile pass and is frozen into a Graph by :meth:`build`."""

    def __init__(self) -> None:
        self.direction = Direction.TD
        self.default_curve = CurveKind.BEZIER.value
        self.nodes: Dict[str, _NodeDraft] = {}
        self.edges: List[Edge] = []
        self.class_defs: Dict[str, StyleClass] = {}
        self.node_styles: Dict[str, StyleClass] = {}
        self.node_classes: Dict[str, str] = {}
        self.link_styles: Dict[int, StyleClass] = {}
        self.default_link_style: Optional[StyleClass] = None
        self.diagnostics: List[Diagnostic] = []
        self.line_no = 0
        self.line_text = ""

    def warn(self, message: str) -> None:
        logger.debug("line %d: %s (%r)", self.line_no, message, self.line_text)
        self.diagnostics.append(Diagnostic(self.line_no, message, self.line_text))

    def add_node(self, token: NodeToken) -> str:
        if token.class_name:
            self.node_classes[token.id] = token.class_name
        existing = self.nodes.get(token.id)
        if existing is None:
            self.nodes[token.id] = _NodeDraft(
                token.id, token.label, token.shape, token.class_name
            )
        else:
            existing.merge(token)
        return token.id

    def add_edge(
        self, source: str, target: str, edge_type: EdgeType, label: Optional[str]
    ) -> None:
        self.edges.append(Edge(source, target, edge_type, label, len(self.edges)))
        self.nodes[source].children.append(target)
        self.nodes[target].parents.append(source)

    def build(self, previous: Optional[Graph] = None) -> Graph:
        nodes: Dict[str, Node] = {}
        for draft in self.nodes.values():
            collapsed = False
            if previous is not None and draft.id in previous.nodes:
                collapsed = previous.nodes[draft.id].collapsed
            nodes[draft.id] = Node(
                id=draft.id,
                label=draft.label,
                shape=draft.shape,
                class_name=draft.class_name,
                children=tuple(draft.children),
                parents=tuple(draft.parents),
                collapsed=collapsed,
            )
        return Graph(
            direction=self.direction,
            nodes=nodes,
            edges=tuple(self.edges),
            class_defs=self.class_defs,
            node_styles=self.node_styles,
            node_classes=self.node_classes,
            link_styles=self.link_styles,
            default_link_style=self.default_link_style,
            default_curve=self.default_curve,
            root=_select_root(nodes),
            diagnostics=tuple(self.diagnostics),
        )


def compile_graph(text: str, previous: Optional[Graph] = None) -> Graph:
    """Compile flowchart source into a Graph.

    ``previous`` is the Graph being replaced; ``collapsed`` flags are copied
    from its nodes onto nodes with the same id.
    """
    builder = _GraphBuilder()
    lines = text.splitlines()
    body_start = _read_front_matter(lines, builder)

    for offset, raw in enumerate(lines[body_start:]):
        line = raw.strip()
        builder.line_no = body_start + offset + 1
        builder.line_text = line
        if not line or line.startswith("%%"):
            continue
        _compile_line(line, builder)

    graph = builder.build(previous)
    logger.debug(
        "compiled %d nodes, %d edges, root=%s, %d diagnostics",
        len(graph.nodes),
        len(graph.edges),
        graph.root,
        len(graph.diagnostics),
    )
    return graph


def _read_front_matter(lines: List[str], builder: _GraphBuilder) -> int:
    """Apply a leading ``---`` block and return the index of the first body line."""
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start >= len(lines) or lines[start].strip() != FRONT_MATTER_DELIMITER:
        return 0

    for end in range(start + 1, len(lines)):
        if lines[end].strip() == FRONT_MATTER_DELIMITER:
            block = "\n".join(line.strip() for line in lines[start + 1 : end])
            match = _CURVE_RE.search(block)
            if match:
                builder.default_curve = match.group(1)
            return end + 1

    builder.line_no = start + 1
    builder.line_text = lines[start].strip()
    builder.warn("front matter is never closed; treating it as diagram text")
    return 0


def _compile_line(line: str, builder: _GraphBuilder) -> None:
    match = _BARE_DIRECTION_RE.match(line)
    if match:
        builder.direction = Direction(match.group(1).upper())
        return
    match = _HEADER_RE.match(line)
    if match:
        builder.direction = Direction(match.group(1).upper())
        return
    if _BARE_HEADER_RE.match(line):
        return

    if _compile_directive(line, builder):
        return

    parts = _EDGE_SPLIT_RE.split(line)
    if len(parts) >= 3:
        _compile_edge_chain(parts, builder)
        return

    token = match_node(line)
    if not token.id:
        builder.warn("empty node declaration")
        return
    builder.add_node(token)


def _compile_directive(line: str, builder: _GraphBuilder) -> bool:
    match = _LINK_STYLE_RE.match(line)
    if match:
        targets = match.group(1).strip()
        style = _parse_declarations(match.group(2).strip(), builder)
        if targets.lower() == "default":
            builder.default_link_style = style
            return True
        for raw_index in targets.split(","):
            raw_index = raw_index.strip()
            try:
                builder.link_styles[int(raw_index)] = style
            except ValueError:
                builder.warn(f"linkStyle index {raw_index!r} is not an integer")
        return True

    match = _STYLE_RE.match(line)
    if match:
        node_id = match.group(1).strip()
        builder.node_styles[node_id] = _parse_declarations(match.group(2).strip(), builder)
        return True

    match = _CLASS_DEF_RE.match(line)
    if match:
        style = _parse_declarations(match.group(2).strip(), builder)
        for class_name in match.group(1).split(","):
            class_name = class_name.strip()
            if class_name:
                builder.class_defs[class_name] = style
        return True

    match = _CLASS_RE.match(line)
    if match:
        class_name = match.group(2).strip()
        for node_id in match.group(1).split(","):
            node_id = node_id.strip()
            if node_id:
                builder.node_classes[node_id] = class_name
        return True

    return False


def _parse_declarations(text: str, builder: _GraphBuilder) -> StyleClass:
    style, rejected = parse_style_with_rejects(text)
    for part in rejected:
        builder.warn(f"ignored style declaration {part!r}")
    return style


def _compile_edge_chain(parts: List[str], builder: _GraphBuilder) -> None:
    """Expand ``A --> B -->|label| C`` into one edge per operator.

    ``parts`` alternates node text and operators, as produced by splitting on
    the edge operator pattern.
    """
    source = _chain_node(parts[0], builder)
    for i in range(1, len(parts) - 1, 2):
        operator = parts[i]
        target_text, label = _split_edge_label(parts[i + 1])
        target = _chain_node(target_text, builder)
        if source is not None and target is not None:
            builder.add_edge(source, target, edge_type_for(operator), label)
        else:
            builder.warn(f"edge {operator!r} is missing an endpoint")
        source = target


def _chain_node(text: str, builder: _GraphBuilder) -> Optional[str]:
    token = match_node(text)
    if not token.id:
        return None
    return builder.add_node(token)


def _split_edge_label(text: str) -> Tuple[str, Optional[str]]:
    match = _EDGE_LABEL_RE.match(text.strip())
    if match:
        return match.group(2), match.group(1)
    return text, None


def _select_root(nodes: Dict[str, Node]) -> Optional[str]:
    for node in nodes.values():
        if not node.parents:
            return node.id
    return next(iter(nodes), None)
