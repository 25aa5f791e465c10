from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from shapely import affinity
from shapely.geometry import Point, Polygon as ShapelyPolygon, box
from shapely.geometry.base import BaseGeometry


class GeometryError(Exception):
    pass


def clamp(value: float, lo: float, hi: float) -> float:
    if hi < lo:
        # canvas smaller than its margins; pin to the midpoint
        return (lo + hi) / 2.0
    return min(max(value, lo), hi)


@dataclass(frozen=True)
class RingOffset:
    angle_deg: float
    offset_x: float
    offset_y: float


def ring_offsets(count: int) -> list[RingOffset]:
    """Unit vectors spaced evenly around a circle, starting at 0 degrees."""
    total = max(1, int(count))
    out: list[RingOffset] = []
    for i in range(total):
        angle = (360.0 / total) * i
        rad = math.radians(angle)
        out.append(RingOffset(angle_deg=angle, offset_x=math.cos(rad), offset_y=math.sin(rad)))
    return out


@dataclass(frozen=True)
class Bounds:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


def grid_points(bounds: Bounds, rows: int, cols: int, *, padding: float) -> list[tuple[float, float]]:
    """
    Cell centers of a rows x cols grid inside `bounds`, inset by `padding` on every side.
    Row-major order.
    """
    if rows <= 0 or cols <= 0:
        raise GeometryError("rows and cols must be positive integers")
    usable_w = max(20.0, bounds.width - padding * 2)
    usable_h = max(20.0, bounds.height - padding * 2)
    step_x = usable_w / cols
    step_y = usable_h / rows
    pts: list[tuple[float, float]] = []
    for r in range(rows):
        for c in range(cols):
            pts.append(
                (
                    bounds.x + padding + c * step_x + step_x / 2.0,
                    bounds.y + padding + r * step_y + step_y / 2.0,
                )
            )
    return pts


def polygon_shape(poly_points: list[tuple[float, float]]) -> Optional[BaseGeometry]:
    if len(poly_points) < 3:
        return None
    pts = list(poly_points)
    # close polygon if needed
    if pts[0] != pts[-1]:
        pts = pts + [pts[0]]
    return ShapelyPolygon(pts)


def rectangle_shape(bounds: Bounds, rotation_deg: float = 0.0) -> BaseGeometry:
    shape = box(bounds.x, bounds.y, bounds.x + bounds.width, bounds.y + bounds.height)
    if rotation_deg:
        shape = affinity.rotate(shape, rotation_deg, origin="center")
    return shape


def circle_shape(cx: float, cy: float, radius: float) -> BaseGeometry:
    if radius <= 0:
        raise GeometryError("circle radius must be positive")
    return Point(cx, cy).buffer(radius)


def shape_contains_point(shape: Optional[BaseGeometry], x: float, y: float) -> bool:
    if shape is None or shape.is_empty:
        return False
    # boundary counts as inside so seats snapped to an edge still belong to the section
    return shape.covers(Point(x, y))
