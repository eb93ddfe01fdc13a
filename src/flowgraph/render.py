"""Static SVG rendering of a :class:`LayoutResult`."""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Dict, Optional

from .model import EdgeLayout, EdgeType, LayoutResult, NodeLayout, StyleClass, fmt_number
from .shapes import outline_path
from .styles import style_value

SVG_NS = "http://www.w3.org/2000/svg"
ET.register_namespace("", SVG_NS)

ARROW_MARKER_ID = "flowgraph-arrowhead"
CANVAS_PADDING = 60.0
LABEL_CHAR_WIDTH = 8.0
LABEL_HEIGHT = 16.0
LINE_HEIGHT_EM = 1.2
CONNECTOR_RADIUS = 3.0

# Light palette; hosts that theme the output override these with CSS.
PALETTE: Dict[str, str] = {
    "background": "#ffffff",
    "node_fill": "#EFECE6",
    "node_stroke": "#EFECE6",
    "node_text": "#111111",
    "edge_stroke": "#000000",
    "edge_text": "#000000",
    "label_background": "#ffffff",
    "collapsed": "#ff5555",
    "expanded": "#55ff55",
}


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def render_svg(result: LayoutResult) -> str:
    """Draw visible edges, then visible nodes, translated onto a padded canvas."""
    left, top, right, bottom = result.bounds()
    width = (right - left) + CANVAS_PADDING * 2
    height = (bottom - top) + CANVAS_PADDING * 2

    svg_root = ET.Element(
        _q("svg"),
        {
            "width": fmt_number(width),
            "height": fmt_number(height),
            "viewBox": f"0 0 {fmt_number(width)} {fmt_number(height)}",
        },
    )
    ET.SubElement(
        svg_root,
        _q("rect"),
        {"width": "100%", "height": "100%", "fill": PALETTE["background"]},
    )
    _add_arrow_marker(svg_root)

    content = ET.SubElement(
        svg_root,
        _q("g"),
        {
            "class": "flowgraph",
            "transform": (
                f"translate({fmt_number(CANVAS_PADDING - left)} {fmt_number(CANVAS_PADDING - top)})"
            ),
        },
    )
    for edge in result.visible_edges():
        _emit_edge(content, edge)
    for node in result.nodes.values():
        if node.visible:
            _emit_node(content, node, result)

    ET.indent(svg_root, space="  ")
    return ET.tostring(svg_root, encoding="unicode")


def _add_arrow_marker(svg_root: ET.Element) -> None:
    defs = ET.SubElement(svg_root, _q("defs"))
    marker = ET.SubElement(
        defs,
        _q("marker"),
        {
            "id": ARROW_MARKER_ID,
            "viewBox": "0 0 10 10",
            "refX": "9",
            "refY": "5",
            "markerWidth": "6",
            "markerHeight": "6",
            "orient": "auto",
        },
    )
    ET.SubElement(
        marker, _q("path"), {"d": "M 0 0 L 10 5 L 0 10 z", "fill": PALETTE["edge_stroke"]}
    )


def _emit_edge(parent: ET.Element, edge: EdgeLayout) -> None:
    group = ET.SubElement(
        parent,
        _q("g"),
        {"class": "edge-group", "data-id": f"edge-{edge.source}-{edge.target}"},
    )
    attrs = {
        "d": edge.path.d if edge.path is not None else "",
        "class": "edge-path",
        "fill": "none",
        "stroke": PALETTE["edge_stroke"],
        "stroke-width": "4" if edge.type is EdgeType.THICK else "2",
    }
    if edge.type is EdgeType.DOTTED:
        attrs["stroke-dasharray"] = "5,5"
    if edge.type is not EdgeType.OPEN:
        attrs["marker-end"] = f"url(#{ARROW_MARKER_ID})"
    _apply_style(attrs, edge.style, ("stroke", "stroke-width", "stroke-dasharray"))
    ET.SubElement(group, _q("path"), attrs)

    if edge.label and edge.start is not None and edge.end is not None:
        mx = (edge.start[0] + edge.end[0]) / 2.0
        my = (edge.start[1] + edge.end[1]) / 2.0
        label_width = len(edge.label) * LABEL_CHAR_WIDTH
        ET.SubElement(
            group,
            _q("rect"),
            {
                "x": fmt_number(mx - label_width / 2.0 - 2),
                "y": fmt_number(my - LABEL_HEIGHT / 2.0),
                "width": fmt_number(label_width + 4),
                "height": fmt_number(LABEL_HEIGHT),
                "class": "edge-label-bg",
                "fill": PALETTE["label_background"],
            },
        )
        text = ET.SubElement(
            group,
            _q("text"),
            {
                "x": fmt_number(mx),
                "y": fmt_number(my),
                "text-anchor": "middle",
                "dominant-baseline": "middle",
                "class": "edge-text",
                "fill": PALETTE["edge_text"],
            },
        )
        text.text = edge.label


def _emit_node(parent: ET.Element, node: NodeLayout, result: LayoutResult) -> None:
    group = ET.SubElement(
        parent,
        _q("g"),
        {
            "class": f"node-group {node.class_name}" if node.class_name else "node-group",
            "data-id": f"node-{node.id}",
            "transform": f"translate({fmt_number(node.x)} {fmt_number(node.y)})",
        },
    )
    shape_attrs = {
        "d": outline_path(node.shape, result.node_width, result.node_height),
        "class": "node-shape",
        "fill": PALETTE["node_fill"],
        "stroke": PALETTE["node_stroke"],
    }
    _apply_style(shape_attrs, node.style, ("fill", "stroke", "stroke-width", "stroke-dasharray"))
    ET.SubElement(group, _q("path"), shape_attrs)
    _emit_connectors(group, node, result)

    text = ET.SubElement(
        group,
        _q("text"),
        {
            "text-anchor": "middle",
            "class": "node-text",
            "fill": style_value(node.style, "color") or PALETTE["node_text"],
        },
    )
    if len(node.lines) == 1:
        text.set("dominant-baseline", "middle")
        text.text = node.lines[0]
    else:
        start = -((len(node.lines) - 1) * LINE_HEIGHT_EM) / 2.0
        for index, line in enumerate(node.lines):
            dy = start if index == 0 else LINE_HEIGHT_EM
            tspan = ET.SubElement(text, _q("tspan"), {"x": "0", "dy": f"{fmt_number(dy)}em"})
            tspan.text = line

    if node.has_children:
        if result.direction.is_horizontal:
            cx, cy = result.node_width / 2.0 + 6, 0.0
        else:
            cx, cy = 0.0, result.node_height / 2.0 + 8
        ET.SubElement(
            group,
            _q("circle"),
            {
                "cx": fmt_number(cx),
                "cy": fmt_number(cy),
                "r": "5",
                "class": "node-indicator",
                "fill": PALETTE["collapsed"] if node.collapsed else PALETTE["expanded"],
            },
        )


def _emit_connectors(group: ET.Element, node: NodeLayout, result: LayoutResult) -> None:
    """Dots where edges meet the box: incoming on every node but a parentless root."""
    half_w = result.node_width / 2.0
    half_h = result.node_height / 2.0
    if result.direction.is_horizontal:
        incoming, outgoing = (-half_w, 0.0), (half_w, 0.0)
    else:
        incoming, outgoing = (0.0, -half_h), (0.0, half_h)
    dots = []
    if node.has_parents or node.id != result.root:
        dots.append(incoming)
    if node.has_children:
        dots.append(outgoing)
    for cx, cy in dots:
        ET.SubElement(
            group,
            _q("circle"),
            {
                "cx": fmt_number(cx),
                "cy": fmt_number(cy),
                "r": fmt_number(CONNECTOR_RADIUS),
                "class": "node-connector",
                "fill": PALETTE["edge_stroke"],
            },
        )


def _apply_style(attrs: Dict[str, str], style: Optional[StyleClass], keys) -> None:
    for key in keys:
        value = style_value(style, key)
        if value:
            attrs[key] = value
