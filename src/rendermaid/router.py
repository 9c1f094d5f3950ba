"""
Edge routing module for flowchart layouts.

Handles orthogonal routing of edges between placed nodes with:
- Port assignment (which face an edge leaves and enters)
- Straight and Z-shaped candidate paths
- Collision detection against every other node
- Detours that widen on each retry until the path is clear or the retry
  budget runs out
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from .collision import segment_hits_node
from .config import (
    ALIGNMENT_TOLERANCE,
    DETOUR_BASE_OFFSET,
    DETOUR_LEAD,
    DETOUR_OFFSET_STEP,
    MAX_DETOUR_RETRIES,
    PORT_OFFSET,
    SAME_LAYER_TOLERANCE,
)
from .geometry import NodeBox, boundary_point
from .layout import LayoutResult
from .models import Diagram, Direction, Edge, Point

logger = logging.getLogger(__name__)


class PortSide(Enum):
    """Which side of a node a port is on."""

    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Port:
    """A connection point just outside a node outline."""

    node: str
    side: Optional[PortSide]  # None when the direction is degenerate
    point: Point


@dataclass
class EdgeRoute:
    """A routed edge between two nodes."""

    source: str
    target: str
    source_port: Port
    target_port: Port
    waypoints: List[Point] = field(default_factory=list)
    same_layer: bool = False
    collision_free: bool = True
    attempts: int = 1
    edge: Optional[Edge] = None


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def _side_for(vector: Tuple[int, int]) -> Optional[PortSide]:
    dx, dy = vector
    if dx > 0:
        return PortSide.RIGHT
    if dx < 0:
        return PortSide.LEFT
    if dy > 0:
        return PortSide.BOTTOM
    if dy < 0:
        return PortSide.TOP
    return None


def _layer_coord(point: Point, direction: Direction) -> float:
    return point.y if direction.is_vertical else point.x


def _spread_coord(point: Point, direction: Direction) -> float:
    return point.x if direction.is_vertical else point.y


def is_same_layer(source: NodeBox, target: NodeBox, direction: Direction) -> bool:
    """True when two nodes sit on the same layer-axis coordinate."""
    delta = _layer_coord(target.center, direction) - _layer_coord(
        source.center, direction
    )
    return abs(delta) < SAME_LAYER_TOLERANCE


def calculate_ports(
    source: NodeBox, target: NodeBox, direction: Direction
) -> Tuple[Port, Port, bool]:
    """
    Pick the exit and entry ports for an edge.

    Same-layer edges use the side faces that face each other. Other edges
    leave through the face pointing at the target's layer and enter through
    the face pointing back at the source's layer, which flips for reversed
    flows and back edges.

    Args:
        source: Source node box.
        target: Target node box.
        direction: Flow direction of the diagram.

    Returns:
        Tuple of (source_port, target_port, same_layer).
    """
    vertical = direction.is_vertical
    same_layer = is_same_layer(source, target, direction)

    if same_layer:
        sign = _sign(
            _spread_coord(target.center, direction)
            - _spread_coord(source.center, direction)
        )
        vector = (sign, 0) if vertical else (0, sign)
    else:
        sign = _sign(
            _layer_coord(target.center, direction)
            - _layer_coord(source.center, direction)
        )
        vector = (0, sign) if vertical else (sign, 0)

    reverse = (-vector[0], -vector[1])
    source_point = boundary_point(
        source.center, vector, source.dims, source.shape, PORT_OFFSET
    )
    target_point = boundary_point(
        target.center, reverse, target.dims, target.shape, PORT_OFFSET
    )

    return (
        Port(source.node_id, _side_for(vector), source_point),
        Port(target.node_id, _side_for(reverse), target_point),
        same_layer,
    )


class _PathFrame:
    """
    Coordinates of an edge expressed along its exit axis.

    ``e`` runs along the axis the edge leaves its source on, ``c`` across
    it. Building paths in this frame lets one set of rules serve every
    flow direction.
    """

    def __init__(self, start: Point, end: Point, exit_is_x: bool):
        self.start = start
        self.end = end
        self.exit_is_x = exit_is_x
        self.e_start, self.c_start = self.split(start)
        self.e_end, self.c_end = self.split(end)

    def split(self, point: Point) -> Tuple[float, float]:
        if self.exit_is_x:
            return point.x, point.y
        return point.y, point.x

    def join(self, e: float, c: float) -> Point:
        if self.exit_is_x:
            return Point(e, c)
        return Point(c, e)

    @property
    def cross_mid(self) -> float:
        return (self.c_start + self.c_end) / 2

    def direct(self) -> List[Point]:
        return [self.start, self.end]

    def z_path(self) -> List[Point]:
        """Exit, run to the midpoint, cross over, run into the target."""
        mid = (self.e_start + self.e_end) / 2
        return [
            self.start,
            self.join(mid, self.c_start),
            self.join(mid, self.c_end),
            self.end,
        ]

    def detour(self, cross: float) -> List[Point]:
        """Path whose middle run is shifted to ``cross`` on the cross axis."""
        span = self.e_end - self.e_start
        step = _sign(span) * min(DETOUR_LEAD, abs(span) / 4)
        lead_out = self.e_start + step
        lead_in = self.e_end - step
        return [
            self.start,
            self.join(lead_out, self.c_start),
            self.join(lead_out, cross),
            self.join(lead_in, cross),
            self.join(lead_in, self.c_end),
            self.end,
        ]


def find_collisions(
    waypoints: Sequence[Point], obstacles: Iterable[NodeBox]
) -> List[NodeBox]:
    """
    Return the obstacles any segment of the path passes through.

    Args:
        waypoints: Path to test.
        obstacles: Nodes to test against. Callers leave out the edge's own
            endpoints.

    Returns:
        Colliding nodes in obstacle order.
    """
    segments = list(zip(waypoints, waypoints[1:]))
    hits = []
    for box in obstacles:
        for start, end in segments:
            if segment_hits_node(start, end, box.center, box.dims, box.shape):
                hits.append(box)
                break
    return hits


def route_edge(
    source: NodeBox,
    target: NodeBox,
    direction: Direction,
    obstacles: Iterable[NodeBox],
    edge: Optional[Edge] = None,
) -> EdgeRoute:
    """
    Route one edge as an orthogonal polyline.

    Same-layer pairs start with a straight line, cross-layer pairs with a
    straight line when their ports line up and a Z path otherwise. A path
    that hits another node is replaced by a detour offset away from the
    first node it hit; the offset then grows on each retry. When the retry
    budget is spent the last path is returned with ``collision_free`` unset.

    Args:
        source: Source node box.
        target: Target node box.
        direction: Flow direction of the diagram.
        obstacles: All placed nodes; the edge's endpoints are skipped.
        edge: Optional edge being routed, stored on the result.

    Returns:
        EdgeRoute with at least two waypoints.
    """
    source_port, target_port, same_layer = calculate_ports(source, target, direction)
    others = [
        box
        for box in obstacles
        if box.node_id not in (source.node_id, target.node_id)
    ]

    exit_is_x = direction.is_vertical == same_layer
    frame = _PathFrame(source_port.point, target_port.point, exit_is_x)

    if same_layer or abs(frame.c_start - frame.c_end) <= ALIGNMENT_TOLERANCE:
        waypoints = frame.direct()
    else:
        waypoints = frame.z_path()

    attempts = 1
    hits = find_collisions(waypoints, others)

    if hits:
        mid = frame.cross_mid
        offset = DETOUR_BASE_OFFSET

        def away_from(box: NodeBox, coord: float) -> int:
            node_cross = frame.split(box.center)[1]
            return 1 if node_cross <= coord else -1

        cross = mid + away_from(hits[0], mid) * offset
        waypoints = frame.detour(cross)
        attempts += 1
        hits = find_collisions(waypoints, others)

        retries = 0
        while hits and retries < MAX_DETOUR_RETRIES:
            retries += 1
            offset += DETOUR_OFFSET_STEP
            cross = mid + away_from(hits[0], cross) * offset
            waypoints = frame.detour(cross)
            attempts += 1
            hits = find_collisions(waypoints, others)

        if hits:
            logger.debug(
                "Edge %s -> %s still crosses %s after %d attempt(s)",
                source.node_id,
                target.node_id,
                ", ".join(box.node_id for box in hits),
                attempts,
            )

    return EdgeRoute(
        source=source.node_id,
        target=target.node_id,
        source_port=source_port,
        target_port=target_port,
        waypoints=waypoints,
        same_layer=same_layer,
        collision_free=not hits,
        attempts=attempts,
        edge=edge,
    )


class EdgeRouter:
    """
    Routes every edge of a laid-out diagram.
    """

    def route_edges(self, diagram: Diagram, layout: LayoutResult) -> List[EdgeRoute]:
        """
        Route all edges between placed nodes.

        Edges whose endpoints were not placed are skipped.

        Args:
            diagram: The diagram that was laid out.
            layout: Its layout result.

        Returns:
            List of EdgeRoute objects in edge order.
        """
        routes: List[EdgeRoute] = []
        obstacles = list(layout.boxes.values())

        for edge in diagram.edges:
            source = layout.boxes.get(edge.source)
            target = layout.boxes.get(edge.target)
            if source is None or target is None:
                logger.debug(
                    "Skipping edge %s -> %s: endpoint not in layout",
                    edge.source,
                    edge.target,
                )
                continue

            routes.append(
                route_edge(source, target, layout.direction, obstacles, edge=edge)
            )

        return routes
