"""Public API for flowgraph."""
from .compiler import compile_graph
from .curves import curve_path, resolve_curve
from .layout import LayoutConfig, LayoutEngine, layout_graph
from .model import (
    CurveKind,
    Diagnostic,
    Direction,
    Edge,
    EdgeLayout,
    EdgeType,
    Graph,
    LayoutResult,
    Node,
    NodeLayout,
    NodeShape,
    PathSpec,
)
from .render import render_svg
from .session import FlowChart
from .shapes import NodeToken, match_node
from .styles import parse_style, resolve_link_style, resolve_node_style

__all__ = [
    "CurveKind",
    "Diagnostic",
    "Direction",
    "Edge",
    "EdgeLayout",
    "EdgeType",
    "FlowChart",
    "Graph",
    "LayoutConfig",
    "LayoutEngine",
    "LayoutResult",
    "Node",
    "NodeLayout",
    "NodeShape",
    "NodeToken",
    "PathSpec",
    "compile_graph",
    "curve_path",
    "layout_graph",
    "match_node",
    "parse_style",
    "render_svg",
    "resolve_curve",
    "resolve_link_style",
    "resolve_node_style",
]
