"""
Node geometry.

Maps a node's (label, shape) to its on-canvas size and finds where a ray
from a node's centre leaves its outline. Both are pure functions; sizing is
memoized because the same node is measured by placement, routing and the
renderers.
"""

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, Tuple

from .config import (
    CHAR_WIDTH_RATIO,
    CIRCLE_TEXT_CLEARANCE,
    FONT_SIZE,
    HEIGHT_PADDING,
    MIN_CIRCLE_RADIUS,
    MIN_HEIGHT,
    MIN_WIDTH,
    RHOMBUS_WIDTH_FACTOR,
    STADIUM_EXTRA_WIDTH,
    TEXT_PADDING,
)
from .models import Outline, Point, Shape


@dataclass(frozen=True)
class Dimensions:
    """Size of a node on the canvas. ``radius`` is set for circles only."""

    width: float
    height: float
    radius: Optional[float] = None

    @property
    def half_width(self) -> float:
        return self.width / 2

    @property
    def half_height(self) -> float:
        return self.height / 2


@dataclass(frozen=True)
class NodeBox:
    """A placed node: id, centre, size and shape."""

    node_id: str
    center: Point
    dims: Dimensions
    shape: Shape


# Sizes used when a node has no label
FALLBACK_DIMENSIONS: Dict[Shape, Dimensions] = {
    Shape.RECTANGLE: Dimensions(80, 40),
    Shape.ROUNDED: Dimensions(80, 40),
    Shape.CIRCLE: Dimensions(60, 60, radius=30),
    Shape.RHOMBUS: Dimensions(80, 40),
    Shape.STADIUM: Dimensions(100, 40),
    Shape.HEXAGON: Dimensions(90, 40),
}


def estimate_text_width(text: str) -> float:
    """Approximate rendered width of ``text`` in canvas units."""
    return len(text) * FONT_SIZE * CHAR_WIDTH_RATIO


@lru_cache(maxsize=1024)
def node_dimensions(label: str, shape: Shape) -> Dimensions:
    """
    Calculate the size of a node from its label and shape.

    Args:
        label: Display text. Empty labels get a fixed per-shape size.
        shape: Node shape.

    Returns:
        Dimensions for the node.
    """
    if not label:
        return FALLBACK_DIMENSIONS[shape]

    required_width = max(MIN_WIDTH, estimate_text_width(label) + TEXT_PADDING)
    box_height = MIN_HEIGHT + HEIGHT_PADDING
    outline = shape.outline

    if outline is Outline.BOX:
        return Dimensions(required_width, box_height)
    if outline is Outline.ROUND:
        # Circle circumscribes the text box
        radius = max(
            MIN_CIRCLE_RADIUS,
            math.hypot(required_width, MIN_HEIGHT) / 2 + CIRCLE_TEXT_CLEARANCE,
        )
        return Dimensions(radius * 2, radius * 2, radius=radius)
    if outline is Outline.DIAMOND:
        return Dimensions(required_width * RHOMBUS_WIDTH_FACTOR, box_height)
    if outline is Outline.PILL:
        return Dimensions(required_width + STADIUM_EXTRA_WIDTH, box_height)
    raise ValueError(f"Unsupported outline: {outline}")


def _ray_length(ux: float, uy: float, dims: Dimensions, outline: Outline) -> float:
    """Distance from the centre to the outline along unit vector (ux, uy)."""
    hw = dims.half_width
    hh = dims.half_height
    ax = abs(ux)
    ay = abs(uy)

    if outline is Outline.ROUND:
        return dims.radius if dims.radius is not None else hw

    if outline is Outline.DIAMOND:
        # |x|/hw + |y|/hh = 1
        return 1 / (ax / hw + ay / hh)

    if outline is Outline.BOX:
        if ax * hh > ay * hw:
            return hw / ax
        return hh / ay

    if outline is Outline.PILL:
        # Capsule: flat top/bottom with half-circle ends of radius hh
        straight = max(hw - hh, 0.0)
        if ay > 0:
            flat = hh / ay
            if abs(flat * ux) <= straight:
                return flat
        cx = straight if ux >= 0 else -straight
        proj = ux * cx
        return proj + math.sqrt(max(proj * proj - cx * cx + hh * hh, 0.0))

    raise ValueError(f"Unsupported outline: {outline}")


def boundary_point(
    center: Point,
    direction: Tuple[float, float],
    dims: Dimensions,
    shape: Shape,
    offset: float = 0.0,
) -> Point:
    """
    Find where a ray from ``center`` leaves the node outline.

    Args:
        center: Node centre.
        direction: Ray direction; does not need to be normalised.
        dims: Node dimensions.
        shape: Node shape.
        offset: Extra distance beyond the outline.

    Returns:
        The boundary point, or ``center`` itself when the direction has zero
        length.
    """
    dx, dy = direction
    length = math.hypot(dx, dy)
    if length == 0:
        return center

    ux = dx / length
    uy = dy / length
    distance = _ray_length(ux, uy, dims, shape.outline) + offset
    return Point(center.x + ux * distance, center.y + uy * distance)
