"""
Data models for flowchart diagrams.

This module contains the immutable graph model produced by the parser and
consumed by the layout engine, routers and renderers. Nodes, edges and
diagrams are frozen dataclasses; "modifying" a diagram returns a new one.

Classes:
    Shape: Closed set of node shapes.
    Outline: Geometric family a shape belongs to.
    ConnectionType: Visual style of an edge.
    Direction: Flow direction of a flowchart.
    Node: A single node with label and shape.
    Edge: A directed connection between two node ids.
    Diagram: Direction plus nodes and edges.
    Point: A 2D coordinate.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, NamedTuple, Optional, Tuple


class Outline(Enum):
    """Geometric outline family used for sizing, ports and collisions."""

    BOX = "box"
    ROUND = "round"
    DIAMOND = "diamond"
    PILL = "pill"


class Shape(Enum):
    """Node shapes understood by the parser and the layout engine."""

    RECTANGLE = "rectangle"
    ROUNDED = "rounded"
    CIRCLE = "circle"
    RHOMBUS = "rhombus"
    HEXAGON = "hexagon"
    STADIUM = "stadium"

    @property
    def outline(self) -> Outline:
        """The outline family of this shape."""
        return _SHAPE_OUTLINES[self]

    @property
    def delimiters(self) -> Tuple[str, str]:
        """Opening and closing brackets used in flowchart text."""
        return _SHAPE_DELIMITERS[self]


_SHAPE_OUTLINES: Dict[Shape, Outline] = {
    Shape.RECTANGLE: Outline.BOX,
    Shape.ROUNDED: Outline.BOX,
    Shape.HEXAGON: Outline.BOX,
    Shape.CIRCLE: Outline.ROUND,
    Shape.RHOMBUS: Outline.DIAMOND,
    Shape.STADIUM: Outline.PILL,
}

_SHAPE_DELIMITERS: Dict[Shape, Tuple[str, str]] = {
    Shape.RECTANGLE: ("[", "]"),
    Shape.ROUNDED: ("(", ")"),
    Shape.CIRCLE: ("((", "))"),
    Shape.RHOMBUS: ("{", "}"),
    Shape.HEXAGON: ("{{", "}}"),
    Shape.STADIUM: ("([", "])"),
}


class ConnectionType(Enum):
    """Edge styles. Purely visual, routing ignores them."""

    ARROW = "arrow"
    LINE = "line"
    THICK = "thick"
    DOTTED = "dotted"
    DASHED = "dashed"

    @property
    def connector(self) -> str:
        """Connector token used in flowchart text."""
        return _CONNECTORS[self]

    @property
    def has_arrow(self) -> bool:
        """Whether the connector ends in an arrowhead."""
        return self.connector.endswith(">")


_CONNECTORS: Dict[ConnectionType, str] = {
    ConnectionType.ARROW: "-->",
    ConnectionType.LINE: "---",
    ConnectionType.THICK: "==>",
    ConnectionType.DOTTED: "-.->",
    ConnectionType.DASHED: "-.-",
}


class Direction(Enum):
    """
    Flow direction of a flowchart.

    TD and TB are synonyms. Vertical directions advance layers along y,
    horizontal ones along x. Reversed directions advance toward the origin.
    """

    TD = "TD"
    TB = "TB"
    BT = "BT"
    LR = "LR"
    RL = "RL"

    @property
    def is_vertical(self) -> bool:
        return self in (Direction.TD, Direction.TB, Direction.BT)

    @property
    def is_reversed(self) -> bool:
        return self in (Direction.BT, Direction.RL)


class Point(NamedTuple):
    """A 2D coordinate on the canvas."""

    x: float
    y: float


@dataclass(frozen=True)
class Node:
    """A flowchart node."""

    id: str
    label: str = ""
    shape: Shape = Shape.RECTANGLE


@dataclass(frozen=True)
class Edge:
    """A directed edge between two node ids."""

    source: str
    target: str
    type: ConnectionType = ConnectionType.ARROW
    label: Optional[str] = None


@dataclass(frozen=True)
class Diagram:
    """
    A flowchart diagram.

    Attributes:
        direction: Flow direction; selects the layering axis.
        nodes: Read-only mapping of node id to Node. Insertion order is kept
            and only affects the order of nodes inside a layer.
        edges: Edges in declaration order.
    """

    direction: Direction = Direction.TD
    nodes: Mapping[str, Node] = field(default_factory=dict)
    edges: Tuple[Edge, ...] = ()

    def __post_init__(self):
        # Copy the caller's containers into read-only ones
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))
        object.__setattr__(self, "edges", tuple(self.edges))

    def __hash__(self):
        return hash((self.direction, frozenset(self.nodes.items()), self.edges))

    def with_node(self, node: Node) -> "Diagram":
        """Return a copy with ``node`` added or replaced."""
        nodes = dict(self.nodes)
        nodes[node.id] = node
        return replace(self, nodes=nodes)

    def with_edge(self, edge: Edge) -> "Diagram":
        """Return a copy with ``edge`` appended."""
        return replace(self, edges=self.edges + (edge,))

    def resolved_edges(self) -> Iterator[Edge]:
        """Yield the edges whose endpoints both exist."""
        for edge in self.edges:
            if edge.source in self.nodes and edge.target in self.nodes:
                yield edge


def create_diagram(
    edges,
    nodes=None,
    direction: Direction = Direction.TD,
) -> Diagram:
    """
    Build a Diagram from plain tuples.

    Nodes referenced by edges but not listed in ``nodes`` are created as
    rectangles labelled with their id.

    Args:
        edges: Iterable of (source, target) tuples or Edge objects.
        nodes: Optional iterable of Node objects.
        direction: Flow direction.

    Returns:
        A new Diagram.
    """
    node_map: Dict[str, Node] = {}
    for node in nodes or []:
        node_map[node.id] = node

    edge_list = []
    for item in edges:
        edge = item if isinstance(item, Edge) else Edge(item[0], item[1])
        for node_id in (edge.source, edge.target):
            if node_id not in node_map:
                node_map[node_id] = Node(node_id, node_id)
        edge_list.append(edge)

    return Diagram(direction=direction, nodes=node_map, edges=tuple(edge_list))
