"""Breadth-first layered layout.

Every call rebuilds levels, positions and visibility from the Graph and a
collapsed set; the Graph itself is never modified.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, List, Optional, Set, Tuple

from PIL import ImageFont

from .curves import curve_path, edge_curve
from .model import EdgeLayout, Graph, LayoutResult, NodeLayout, Point
from .styles import resolve_link_style, resolve_node_style

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutConfig:
    node_width: float = 140.0
    node_height: float = 50.0
    level_gap: float = 80.0
    sibling_gap: float = 40.0
    char_width: float = 8.0
    line_height: float = 20.0
    padding: float = 20.0
    max_chars_per_line: int = 20
    # Fixed separations; when None they follow the measured node box.
    level_separation: Optional[float] = None
    sibling_separation: Optional[float] = None
    # Setting either switches line measurement from char_width to Pillow.
    font_path: Optional[str] = None
    font_size: Optional[float] = None

    @property
    def uses_font(self) -> bool:
        return self.font_path is not None or self.font_size is not None


DEFAULT_FONT_SIZE = 14.0


class TextMeasurer:
    """Line width measurement, by character count or with a Pillow font."""

    def __init__(self, config: LayoutConfig) -> None:
        self._char_width = config.char_width
        self._font_path = config.font_path
        self._font_size = config.font_size or DEFAULT_FONT_SIZE
        self._font: Optional[ImageFont.ImageFont] = None
        self._use_font = config.uses_font

    def font(self) -> ImageFont.ImageFont:
        if self._font is None:
            size = max(1, int(round(self._font_size)))
            font = None
            if self._font_path:
                try:
                    font = ImageFont.truetype(self._font_path, size)
                except OSError:
                    logger.debug("could not load font %s; using Pillow default", self._font_path)
            if font is None:
                font = ImageFont.load_default(size=size)
            self._font = font
        return self._font

    def width(self, text: str) -> float:
        if not self._use_font:
            return len(text) * self._char_width
        return float(self.font().getlength(text))


def wrap_label(label: str, max_chars: int) -> List[str]:
    """Greedy word wrap at ``max_chars``; an over-long word keeps a line to itself.

    Words are split on single spaces, so repeated and edge spaces are kept.
    """
    words = label.split(" ")
    lines: List[str] = []
    current = words[0]
    for word in words[1:]:
        if len(current) + 1 + len(word) <= max_chars:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


@dataclass(frozen=True)
class NodeMetrics:
    width: float
    height: float
    lines: Dict[str, Tuple[str, ...]]


def measure_nodes(graph: Graph, config: LayoutConfig) -> NodeMetrics:
    """Wrap every label and size the box shared by all nodes."""
    measurer = TextMeasurer(config)
    max_w = config.node_width
    max_h = config.node_height
    lines: Dict[str, Tuple[str, ...]] = {}
    for node in graph:
        wrapped = wrap_label(node.label, config.max_chars_per_line)
        lines[node.id] = tuple(wrapped)
        widest = max(measurer.width(line) for line in wrapped)
        max_w = max(max_w, widest + config.padding * 2)
        max_h = max(max_h, len(wrapped) * config.line_height + config.padding * 2)
    return NodeMetrics(max_w, max_h, lines)


def assign_levels(
    graph: Graph, collapsed: Iterable[str]
) -> Tuple[Dict[str, int], List[List[str]]]:
    """BFS from the root; a node's level is the depth at which it is first reached.

    Collapsed nodes are reached but never expanded, so their descendants stay
    hidden unless another path reaches them.
    """
    if graph.root is None:
        return {}, []
    collapsed_set: Set[str] = set(collapsed)
    level_of: Dict[str, int] = {}
    levels: List[List[str]] = []
    queue: Deque[Tuple[str, int]] = deque([(graph.root, 0)])
    while queue:
        node_id, level = queue.popleft()
        if node_id in level_of:
            continue
        level_of[node_id] = level
        if level == len(levels):
            levels.append([])
        levels[level].append(node_id)
        if node_id in collapsed_set:
            continue
        for child_id in graph.nodes[node_id].children:
            if child_id not in level_of:
                queue.append((child_id, level + 1))
    return level_of, levels


class LayoutEngine:
    def __init__(self, config: Optional[LayoutConfig] = None) -> None:
        self.config = config or LayoutConfig()

    def separations(self, width: float, height: float, horizontal: bool) -> Tuple[float, float]:
        """(level separation, sibling separation) for the shared node box."""
        along, across = (width, height) if horizontal else (height, width)
        level_sep = self.config.level_separation
        if level_sep is None:
            level_sep = along + self.config.level_gap
        sibling_sep = self.config.sibling_separation
        if sibling_sep is None:
            sibling_sep = across + self.config.sibling_gap
        return level_sep, sibling_sep

    def layout(self, graph: Graph, collapsed: Optional[Iterable[str]] = None) -> LayoutResult:
        collapsed_set = frozenset(graph.collapsed_ids() if collapsed is None else collapsed)
        horizontal = graph.direction.is_horizontal
        metrics = measure_nodes(graph, self.config)
        level_sep, sibling_sep = self.separations(metrics.width, metrics.height, horizontal)
        level_of, levels = assign_levels(graph, collapsed_set)

        positions: Dict[str, Point] = {}
        for level, members in enumerate(levels):
            along = level * level_sep
            first = -(len(members) * sibling_sep) / 2.0 + sibling_sep / 2.0
            for i, node_id in enumerate(members):
                across = first + i * sibling_sep
                positions[node_id] = (along, across) if horizontal else (across, along)

        nodes: Dict[str, NodeLayout] = {}
        for node in graph:
            x, y = positions.get(node.id, (0.0, 0.0))
            nodes[node.id] = NodeLayout(
                id=node.id,
                visible=node.id in level_of,
                x=x,
                y=y,
                level=level_of.get(node.id),
                lines=metrics.lines[node.id],
                shape=node.shape,
                style=resolve_node_style(graph, node.id),
                collapsed=node.id in collapsed_set,
                has_children=node.has_children,
                has_parents=bool(node.parents),
                class_name=graph.node_classes.get(node.id, node.class_name),
            )

        half_w = metrics.width / 2.0
        half_h = metrics.height / 2.0
        edges: List[EdgeLayout] = []
        for edge in graph.edges:
            link_style = resolve_link_style(graph, edge.index)
            curve = edge_curve(link_style, graph.default_curve)
            visible = edge.source in positions and edge.target in positions
            start = end = path = None
            if visible:
                sx, sy = positions[edge.source]
                tx, ty = positions[edge.target]
                if horizontal:
                    start, end = (sx + half_w, sy), (tx - half_w, ty)
                else:
                    start, end = (sx, sy + half_h), (tx, ty - half_h)
                path = curve_path(start[0], start[1], end[0], end[1], curve, graph.direction)
            edges.append(
                EdgeLayout(
                    index=edge.index,
                    source=edge.source,
                    target=edge.target,
                    type=edge.type,
                    label=edge.label,
                    visible=visible,
                    curve=curve,
                    style=link_style,
                    start=start,
                    end=end,
                    path=path,
                )
            )

        logger.debug(
            "laid out %d/%d nodes on %d levels (box %.0fx%.0f)",
            len(positions),
            len(graph),
            len(levels),
            metrics.width,
            metrics.height,
        )
        return LayoutResult(
            direction=graph.direction,
            root=graph.root,
            node_width=metrics.width,
            node_height=metrics.height,
            level_separation=level_sep,
            sibling_separation=sibling_sep,
            nodes=nodes,
            edges=tuple(edges),
            levels=tuple(tuple(members) for members in levels),
        )


def layout_graph(
    graph: Graph,
    collapsed: Optional[Iterable[str]] = None,
    config: Optional[LayoutConfig] = None,
) -> LayoutResult:
    return LayoutEngine(config).layout(graph, collapsed)
