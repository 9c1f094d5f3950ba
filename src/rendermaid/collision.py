"""
Collision geometry primitives.

Stateless helpers used by the edge router to decide whether a path segment
passes through a node:
- point to segment distance
- segment vs segment intersection
- segment vs axis-aligned rectangle intersection
- shape-aware segment vs node test with clearance padding
"""

import math
from dataclasses import dataclass

from .config import COLLISION_PADDING
from .geometry import Dimensions
from .models import Outline, Point, Shape

# Denominators below this mean the segments are parallel
PARALLEL_EPSILON = 1e-10


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its edges."""

    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def around(cls, center: Point, half_width: float, half_height: float) -> "Rect":
        return cls(
            center.x - half_width,
            center.y - half_height,
            center.x + half_width,
            center.y + half_height,
        )

    def contains(self, point: Point) -> bool:
        return (
            self.left <= point.x <= self.right and self.top <= point.y <= self.bottom
        )


def point_to_segment_distance(point: Point, start: Point, end: Point) -> float:
    """Shortest distance from ``point`` to the segment ``start``-``end``."""
    dx = end.x - start.x
    dy = end.y - start.y
    length_sq = dx * dx + dy * dy

    if length_sq == 0:
        return math.hypot(point.x - start.x, point.y - start.y)

    t = ((point.x - start.x) * dx + (point.y - start.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    proj_x = start.x + t * dx
    proj_y = start.y + t * dy
    return math.hypot(point.x - proj_x, point.y - proj_y)


def segments_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """
    Check whether segment p1-p2 crosses segment p3-p4.

    Uses the parametric determinant test. Parallel (and collinear) segments
    are reported as not intersecting.
    """
    denom = (p1.x - p2.x) * (p3.y - p4.y) - (p1.y - p2.y) * (p3.x - p4.x)
    if abs(denom) < PARALLEL_EPSILON:
        return False

    t = ((p1.x - p3.x) * (p3.y - p4.y) - (p1.y - p3.y) * (p3.x - p4.x)) / denom
    u = -((p1.x - p2.x) * (p1.y - p3.y) - (p1.y - p2.y) * (p1.x - p3.x)) / denom

    return 0 <= t <= 1 and 0 <= u <= 1


def segment_intersects_rect(start: Point, end: Point, rect: Rect) -> bool:
    """Check whether a segment touches or crosses ``rect``."""
    if rect.contains(start) or rect.contains(end):
        return True

    top_left = Point(rect.left, rect.top)
    top_right = Point(rect.right, rect.top)
    bottom_right = Point(rect.right, rect.bottom)
    bottom_left = Point(rect.left, rect.bottom)

    return (
        segments_intersect(start, end, top_left, top_right)
        or segments_intersect(start, end, top_right, bottom_right)
        or segments_intersect(start, end, bottom_right, bottom_left)
        or segments_intersect(start, end, bottom_left, top_left)
    )


def segment_hits_node(
    start: Point,
    end: Point,
    center: Point,
    dims: Dimensions,
    shape: Shape,
    padding: float = COLLISION_PADDING,
) -> bool:
    """
    Shape-aware test of a segment against a node's padded outline.

    Circles use the distance from the centre to the segment; every other
    shape is approximated by its padded bounding rectangle.
    """
    outline = shape.outline
    if outline is Outline.ROUND:
        radius = dims.radius if dims.radius is not None else dims.half_width
        return point_to_segment_distance(center, start, end) < radius + padding
    if outline in (Outline.BOX, Outline.DIAMOND, Outline.PILL):
        rect = Rect.around(
            center, dims.half_width + padding, dims.half_height + padding
        )
        return segment_intersects_rect(start, end, rect)
    raise ValueError(f"Unsupported outline: {outline}")
