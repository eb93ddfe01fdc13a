"""Edge path geometry for the supported curve kinds."""
from __future__ import annotations

from typing import Optional, Union

from .model import CurveKind, Direction, PathSpec, Point, StyleClass
from .styles import style_value


def resolve_curve(name: Optional[Union[str, CurveKind]]) -> CurveKind:
    """Map a curve name to a kind.

    Names are case-insensitive. Unknown names containing ``step`` are plain
    steps; every other unknown name (basis, natural, monotone...) is bezier.
    """
    if isinstance(name, CurveKind):
        return name
    key = (name or "").strip().lower()
    if key == CurveKind.LINEAR.value:
        return CurveKind.LINEAR
    if key == CurveKind.STEP_AFTER.value:
        return CurveKind.STEP_AFTER
    if key == CurveKind.STEP_BEFORE.value:
        return CurveKind.STEP_BEFORE
    if "step" in key:
        return CurveKind.STEP
    return CurveKind.BEZIER


def edge_curve(link_style: Optional[StyleClass], default_curve: Optional[str]) -> CurveKind:
    """Per-edge ``curve`` link style, then the diagram default, then bezier."""
    override = style_value(link_style, "curve")
    if override:
        return resolve_curve(override)
    return resolve_curve(default_curve)


def curve_path(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    kind: Union[str, CurveKind, None] = CurveKind.BEZIER,
    direction: Direction = Direction.TD,
) -> PathSpec:
    curve = resolve_curve(kind)
    start: Point = (x1, y1)
    end: Point = (x2, y2)
    horizontal = Direction(direction).is_horizontal

    if curve is CurveKind.LINEAR:
        return PathSpec(curve, start, (("L", (end,)),))

    if curve is CurveKind.STEP_AFTER:
        corner = (x2, y1) if horizontal else (x1, y2)
        return PathSpec(curve, start, (("L", (corner,)), ("L", (end,))))

    if curve is CurveKind.STEP_BEFORE:
        corner = (x1, y2) if horizontal else (x2, y1)
        return PathSpec(curve, start, (("L", (corner,)), ("L", (end,))))

    if curve is CurveKind.STEP:
        if horizontal:
            mx = (x1 + x2) / 2.0
            first, second = (mx, y1), (mx, y2)
        else:
            my = (y1 + y2) / 2.0
            first, second = (x1, my), (x2, my)
        return PathSpec(curve, start, (("L", (first,)), ("L", (second,)), ("L", (end,))))

    # Control points sit at the midpoint of the flow axis, bending only along it.
    if horizontal:
        mx = x1 + (x2 - x1) / 2.0
        c1, c2 = (mx, y1), (mx, y2)
    else:
        my = y1 + (y2 - y1) / 2.0
        c1, c2 = (x1, my), (x2, my)
    return PathSpec(curve, start, (("C", (c1, c2, end)),))
