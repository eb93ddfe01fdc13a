"""Value types shared by the compiler, layout engine and renderers."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

StyleClass = Dict[str, str]
Point = Tuple[float, float]


class NodeShape(str, Enum):
    RECT = "rect"
    ROUND = "round"
    STADIUM = "stadium"
    SUBROUTINE = "subroutine"
    CYLINDER = "cylinder"
    CIRCLE = "circle"
    RHOMBUS = "rhombus"
    HEXAGON = "hexagon"
    PARALLELOGRAM = "parallelogram"
    PARALLELOGRAM_ALT = "parallelogram_alt"
    TRAPEZOID = "trapezoid"
    TRAPEZOID_ALT = "trapezoid_alt"


class EdgeType(str, Enum):
    ARROW = "arrow"
    DOTTED = "dotted"
    THICK = "thick"
    OPEN = "open"


class Direction(str, Enum):
    TD = "TD"
    TB = "TB"
    BT = "BT"
    LR = "LR"
    RL = "RL"

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LR, Direction.RL)


class CurveKind(str, Enum):
    LINEAR = "linear"
    BEZIER = "bezier"
    STEP = "step"
    STEP_BEFORE = "stepbefore"
    STEP_AFTER = "stepafter"


@dataclass(frozen=True)
class Diagnostic:
    """A line the compiler ignored or only partially understood."""

    line: int
    message: str
    text: str = ""

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


@dataclass(frozen=True)
class Node:
    id: str
    label: str
    shape: NodeShape = NodeShape.RECT
    class_name: Optional[str] = None
    children: Tuple[str, ...] = ()
    parents: Tuple[str, ...] = ()
    collapsed: bool = False

    @property
    def has_children(self) -> bool:
        return bool(self.children)


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    type: EdgeType = EdgeType.ARROW
    label: Optional[str] = None
    index: int = 0


@dataclass(frozen=True)
class Graph:
    """Result of one compile pass.

    Only ``Node.collapsed`` is carried from one Graph to the next; everything
    else is rebuilt from source text.
    """

    direction: Direction = Direction.TD
    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: Tuple[Edge, ...] = ()
    class_defs: Dict[str, StyleClass] = field(default_factory=dict)
    node_styles: Dict[str, StyleClass] = field(default_factory=dict)
    node_classes: Dict[str, str] = field(default_factory=dict)
    link_styles: Dict[int, StyleClass] = field(default_factory=dict)
    default_link_style: Optional[StyleClass] = None
    default_curve: str = CurveKind.BEZIER.value
    root: Optional[str] = None
    diagnostics: Tuple[Diagnostic, ...] = ()

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes.values())

    def __len__(self) -> int:
        return len(self.nodes)

    def collapsed_ids(self) -> frozenset:
        return frozenset(node.id for node in self.nodes.values() if node.collapsed)

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "root": self.root,
            "default_curve": self.default_curve,
            "nodes": [
                {
                    "id": node.id,
                    "label": node.label,
                    "shape": node.shape.value,
                    "class_name": node.class_name,
                    "children": list(node.children),
                    "parents": list(node.parents),
                    "collapsed": node.collapsed,
                    "class_name": node.class_name,
                }
                for node in self.nodes.values()
            ],
            "edges": [
                {
                    "index": edge.index,
                    "from": edge.source,
                    "to": edge.target,
                    "type": edge.type.value,
                    "label": edge.label,
                }
                for edge in self.edges
            ],
            "class_defs": {name: dict(style) for name, style in self.class_defs.items()},
            "node_styles": {name: dict(style) for name, style in self.node_styles.items()},
            "node_classes": dict(self.node_classes),
            "link_styles": {str(idx): dict(style) for idx, style in self.link_styles.items()},
            "default_link_style": (
                dict(self.default_link_style) if self.default_link_style is not None else None
            ),
            "diagnostics": [
                {"line": diag.line, "message": diag.message} for diag in self.diagnostics
            ],
        }


@dataclass(frozen=True)
class PathSpec:
    """Edge geometry: a start point followed by SVG path segments.

    Each segment is a command letter (``L`` or ``C``) with its points.
    """

    kind: CurveKind
    start: Point
    segments: Tuple[Tuple[str, Tuple[Point, ...]], ...]

    @property
    def end(self) -> Point:
        if not self.segments:
            return self.start
        return self.segments[-1][1][-1]

    def points(self) -> List[Point]:
        out = [self.start]
        for _command, pts in self.segments:
            out.extend(pts)
        return out

    @property
    def d(self) -> str:
        parts = [f"M {fmt_number(self.start[0])} {fmt_number(self.start[1])}"]
        for command, pts in self.segments:
            coords = " ".join(f"{fmt_number(x)} {fmt_number(y)}" for x, y in pts)
            parts.append(f"{command} {coords}")
        return " ".join(parts)


@dataclass(frozen=True)
class NodeLayout:
    id: str
    visible: bool
    x: float
    y: float
    level: Optional[int]
    lines: Tuple[str, ...]
    shape: NodeShape
    style: Optional[StyleClass]
    collapsed: bool
    has_children: bool
    has_parents: bool = False
    class_name: Optional[str] = None


@dataclass(frozen=True)
class EdgeLayout:
    index: int
    source: str
    target: str
    type: EdgeType
    label: Optional[str]
    visible: bool
    curve: CurveKind
    style: Optional[StyleClass]
    start: Optional[Point] = None
    end: Optional[Point] = None
    path: Optional[PathSpec] = None


@dataclass(frozen=True)
class LayoutResult:
    direction: Direction
    root: Optional[str]
    node_width: float
    node_height: float
    level_separation: float
    sibling_separation: float
    nodes: Dict[str, NodeLayout] = field(default_factory=dict)
    edges: Tuple[EdgeLayout, ...] = ()
    levels: Tuple[Tuple[str, ...], ...] = ()

    def visible_node_ids(self) -> List[str]:
        return [node.id for node in self.nodes.values() if node.visible]

    def visible_edges(self) -> List[EdgeLayout]:
        return [edge for edge in self.edges if edge.visible]

    def level_of(self, node_id: str) -> Optional[int]:
        return self.nodes[node_id].level

    def bounds(self) -> Tuple[float, float, float, float]:
        """Bounding box of the visible node boxes as (left, top, right, bottom)."""
        visible = [node for node in self.nodes.values() if node.visible]
        if not visible:
            return 0.0, 0.0, 0.0, 0.0
        half_w = self.node_width / 2.0
        half_h = self.node_height / 2.0
        left = min(node.x for node in visible) - half_w
        right = max(node.x for node in visible) + half_w
        top = min(node.y for node in visible) - half_h
        bottom = max(node.y for node in visible) + half_h
        return left, top, right, bottom

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "root": self.root,
            "node_width": self.node_width,
            "node_height": self.node_height,
            "level_separation": self.level_separation,
            "sibling_separation": self.sibling_separation,
            "levels": [list(level) for level in self.levels],
            "nodes": [
                {
                    "id": node.id,
                    "visible": node.visible,
                    "x": node.x,
                    "y": node.y,
                    "level": node.level,
                    "lines": list(node.lines),
                    "shape": node.shape.value,
                    "style": node.style,
                    "collapsed": node.collapsed,
                    "class_name": node.class_name,
                }
                for node in self.nodes.values()
            ],
            "edges": [
                {
                    "index": edge.index,
                    "from": edge.source,
                    "to": edge.target,
                    "type": edge.type.value,
                    "label": edge.label,
                    "visible": edge.visible,
                    "curve": edge.curve.value,
                    "style": edge.style,
                    "start": list(edge.start) if edge.start is not None else None,
                    "end": list(edge.end) if edge.end is not None else None,
                    "path": edge.path.d if edge.path is not None else None,
                }
                for edge in self.edges
            ],
        }


def fmt_number(value: float) -> str:
    if math.isclose(value, round(value)):
        return str(int(round(value)))
    return f"{value:.3f}".rstrip("0").rstrip(".")


