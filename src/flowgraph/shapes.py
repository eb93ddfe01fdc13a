"""Node token classification and per-shape outline geometry."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple, Union

from .model import NodeShape, fmt_number

_CLASS_SUFFIX_RE = re.compile(r"^(.+?):::(\w+)$")

_ID = r"([^\s\[]+)"

# Longer delimiter pairs first: `[...]` would also accept `[[...]]`.
SHAPE_PATTERNS: List[Tuple[Pattern[str], NodeShape]] = [
    (re.compile(_ID + r"\[\[(.+)\]\]$"), NodeShape.SUBROUTINE),
    (re.compile(_ID + r"\[\((.+)\)\]$"), NodeShape.CYLINDER),
    (re.compile(_ID + r"\(\((.+)\)\)$"), NodeShape.CIRCLE),
    (re.compile(_ID + r"\(\[(.+)\]\)$"), NodeShape.STADIUM),
    (re.compile(_ID + r"\{\{(.+)\}\}$"), NodeShape.HEXAGON),
    (re.compile(_ID + r"\[/(.+)/\]$"), NodeShape.PARALLELOGRAM),
    (re.compile(_ID + r"\[\\(.+)\\\]$"), NodeShape.PARALLELOGRAM_ALT),
    (re.compile(_ID + r"\[/(.+)\\\]$"), NodeShape.TRAPEZOID),
    (re.compile(_ID + r"\[\\(.+)/\]$"), NodeShape.TRAPEZOID_ALT),
    (re.compile(_ID + r"\{(.+)\}$"), NodeShape.RHOMBUS),
    (re.compile(_ID + r"\((.+)\)$"), NodeShape.ROUND),
    (re.compile(_ID + r"\[(.+)\]$"), NodeShape.RECT),
]

# Corner radius and slant inset used by the outlines below.
_CORNER = 10.0
_SLANT = 15.0


@dataclass(frozen=True)
class NodeToken:
    id: str
    label: str
    shape: NodeShape = NodeShape.RECT
    class_name: Optional[str] = None


def match_node(token: str) -> NodeToken:
    """Classify a node reference such as ``A``, ``B{Decision}`` or ``C[[Sub]]:::hot``.

    Unrecognised or unbalanced delimiters degrade to a plain rect node whose id
    and label are the whole token.
    """
    text = token.strip()
    class_name: Optional[str] = None
    suffix = _CLASS_SUFFIX_RE.match(text)
    if suffix:
        text = suffix.group(1).strip()
        class_name = suffix.group(2)

    for pattern, shape in SHAPE_PATTERNS:
        match = pattern.match(text)
        if match:
            return NodeToken(match.group(1), match.group(2), shape, class_name)
    return NodeToken(text, text, NodeShape.RECT, class_name)


def outline_path(shape: NodeShape, width: float, height: float) -> str:
    """SVG path data for a node outline centred on the origin."""
    hw = width / 2.0
    hh = height / 2.0
    c = _CORNER
    s = _SLANT
    if shape is NodeShape.ROUND:
        return _path(
            "M", -hw + c, -hh, "H", hw - c, "Q", hw, -hh, hw, -hh + c,
            "V", hh - c, "Q", hw, hh, hw - c, hh, "H", -hw + c,
            "Q", -hw, hh, -hw, hh - c, "V", -hh + c, "Q", -hw, -hh, -hw + c, -hh, "Z",
        )
    if shape is NodeShape.STADIUM:
        return _path(
            "M", -hw + hh, -hh, "H", hw - hh, "A", hh, hh, 0, 0, 1, hw - hh, hh,
            "H", -hw + hh, "A", hh, hh, 0, 0, 1, -hw + hh, -hh, "Z",
        )
    if shape is NodeShape.SUBROUTINE:
        return _path(
            "M", -hw, -hh, "H", hw, "V", hh, "H", -hw, "Z",
            "M", -hw + c, -hh, "V", hh, "M", hw - c, -hh, "V", hh,
        )
    if shape is NodeShape.CYLINDER:
        return _path(
            "M", -hw, -hh + c, "A", hw, c, 0, 0, 1, hw, -hh + c, "V", hh - c,
            "A", hw, c, 0, 0, 1, -hw, hh - c, "Z",
            "M", -hw, -hh + c, "A", hw, c, 0, 0, 1, hw, -hh + c,
        )
    if shape is NodeShape.CIRCLE:
        r = min(width, height) / 2.0
        return _path("M", -r, 0, "A", r, r, 0, 1, 1, r, 0, "A", r, r, 0, 1, 1, -r, 0, "Z")
    if shape is NodeShape.RHOMBUS:
        return _path("M", 0, -hh, "L", hw, 0, "L", 0, hh, "L", -hw, 0, "Z")
    if shape is NodeShape.HEXAGON:
        return _path(
            "M", -hw + s, -hh, "H", hw - s, "L", hw, 0, "L", hw - s, hh,
            "H", -hw + s, "L", -hw, 0, "Z",
        )
    if shape is NodeShape.PARALLELOGRAM:
        return _path("M", -hw + s, -hh, "H", hw, "L", hw - s, hh, "H", -hw, "Z")
    if shape is NodeShape.PARALLELOGRAM_ALT:
        return _path("M", -hw, -hh, "H", hw - s, "L", hw, hh, "H", -hw + s, "Z")
    if shape is NodeShape.TRAPEZOID:
        return _path("M", -hw + s, -hh, "H", hw - s, "L", hw, hh, "H", -hw, "Z")
    if shape is NodeShape.TRAPEZOID_ALT:
        return _path("M", -hw, -hh, "H", hw, "L", hw - s, hh, "H", -hw + s, "Z")

    # rect is drawn as a pill
    r = min(width, height) / 2.0
    return _path(
        "M", -hw + r, -hh, "H", hw - r, "A", r, r, 0, 0, 1, hw, -hh + r,
        "V", hh - r, "A", r, r, 0, 0, 1, hw - r, hh,
        "H", -hw + r, "A", r, r, 0, 0, 1, -hw, hh - r,
        "V", -hh + r, "A", r, r, 0, 0, 1, -hw + r, -hh, "Z",
    )


def _path(*parts: Union[str, float]) -> str:
    return " ".join(part if isinstance(part, str) else fmt_number(part) for part in parts)
