"""
Layered layout using networkx.

Uses networkx for:
- Graph representation (a MultiDiGraph, so parallel edges count separately)
- In-degree bookkeeping for BFS layer assignment

The layout runs in two phases:
1. Layer assignment - Kahn-style rounds from the source nodes, with a
   catch-all final layer for nodes trapped in cycles
2. Axis placement - label-aware spacing on the spread axis, layer pitch on
   the layer axis, canvas bounds

Results are deterministic, so they can be cached by content in a
``LayoutCache``.
"""

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Hashable, List, Mapping, Optional, Tuple

import networkx as nx

from .config import (
    CANVAS_PADDING,
    LAYER_SPACING_FACTOR,
    LAYER_START_OFFSET,
    MIN_NODE_GAP,
    LayoutConfig,
)
from .geometry import Dimensions, NodeBox, node_dimensions
from .models import Diagram, Direction, Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutResult:
    """
    Result of the layout algorithm.

    Results are immutable so one instance can be shared by every cache hit.
    ``layers`` is stored as a tuple of tuples and ``boxes`` as a read-only
    mapping.
    """

    layers: Tuple[Tuple[str, ...], ...] = ()
    boxes: Mapping[str, NodeBox] = field(default_factory=dict)
    canvas_width: float = 0
    canvas_height: float = 0
    direction: Direction = Direction.TD

    def __post_init__(self):
        layers = tuple(tuple(layer) for layer in self.layers)
        object.__setattr__(self, "layers", layers)
        object.__setattr__(self, "boxes", MappingProxyType(dict(self.boxes)))

    @property
    def positions(self) -> Dict[str, Point]:
        """Node id -> centre point."""
        return {node_id: box.center for node_id, box in self.boxes.items()}

    @property
    def dimensions(self) -> Dict[str, Dimensions]:
        """Node id -> node dimensions."""
        return {node_id: box.dims for node_id, box in self.boxes.items()}

    def layer_index(self, node_id: str) -> int:
        """Index of the layer holding ``node_id``."""
        for index, layer in enumerate(self.layers):
            if node_id in layer:
                return index
        raise KeyError(node_id)


def assign_layers(diagram: Diagram) -> List[List[str]]:
    """
    Assign nodes to layers with BFS rounds over in-degrees.

    Each round drains the current queue into one layer. A successor joins the
    next round once all of its incoming edges have been consumed. If the
    diagram has no source node, the first node seeds the queue. Nodes never
    reached are placed together in one final layer.

    Args:
        diagram: The diagram to layer.

    Returns:
        Ordered list of layers, each a list of node ids. Layer 0 holds the
        entry points.
    """
    graph = nx.MultiDiGraph()
    graph.add_nodes_from(diagram.nodes)
    graph.add_edges_from((e.source, e.target) for e in diagram.resolved_edges())

    if graph.number_of_nodes() == 0:
        return []

    in_degree = {node: graph.in_degree(node) for node in graph.nodes}
    queue = [node for node in graph.nodes if in_degree[node] == 0]
    if not queue:
        # Pure cycle: start anywhere so layering makes progress
        queue = [next(iter(diagram.nodes))]

    layers: List[List[str]] = []
    visited = set()

    while queue:
        current_layer = []
        next_queue = []

        for node in queue:
            if node in visited:
                continue
            visited.add(node)
            current_layer.append(node)

            # One decrement per edge, parallel edges included
            for _, successor in graph.out_edges(node):
                in_degree[successor] -= 1
                if in_degree[successor] == 0 and successor not in visited:
                    next_queue.append(successor)

        if current_layer:
            layers.append(current_layer)
        queue = next_queue

    remaining = [node for node in diagram.nodes if node not in visited]
    if remaining:
        logger.debug(
            "Placing %d node(s) unreachable from a source in a final layer",
            len(remaining),
        )
        layers.append(remaining)

    return layers


def _spread_offsets(sizes: List[float], spacing: float) -> List[float]:
    """Cumulative centre offsets along the spread axis for one layer."""
    offsets = [0.0]
    for prev_size, size in zip(sizes, sizes[1:]):
        gap = max(spacing, prev_size / 2 + MIN_NODE_GAP + size / 2)
        offsets.append(offsets[-1] + gap)
    return offsets


def place_layers(
    layers: List[List[str]],
    diagram: Diagram,
    config: Optional[LayoutConfig] = None,
) -> LayoutResult:
    """
    Convert layers into concrete node positions and canvas bounds.

    Vertical flows advance layers along y and spread nodes along x;
    horizontal flows swap the axes. Reversed flows (BT, RL) mirror the layer
    axis so layer 0 sits at the far end.

    Args:
        layers: Output of ``assign_layers``.
        diagram: The diagram the layers were built from.
        config: Spacing and requested canvas size.

    Returns:
        LayoutResult with a NodeBox for every layered node.
    """
    config = config or LayoutConfig()
    direction = diagram.direction
    vertical = direction.is_vertical
    spacing = config.node_spacing

    dims: Dict[str, Dimensions] = {}
    for layer in layers:
        for node_id in layer:
            node = diagram.nodes[node_id]
            dims[node_id] = node_dimensions(node.label, node.shape)

    def spread_size(node_id: str) -> float:
        return dims[node_id].width if vertical else dims[node_id].height

    def layer_size(node_id: str) -> float:
        return dims[node_id].height if vertical else dims[node_id].width

    # Spread axis: per-layer offsets, then one shared centre line
    layer_offsets: List[List[float]] = []
    spread_center = (config.width if vertical else config.height) / 2
    for layer in layers:
        sizes = [spread_size(node_id) for node_id in layer]
        offsets = _spread_offsets(sizes, spacing)
        layer_offsets.append(offsets)
        # Keep the first node of the layer clear of the canvas origin
        needed = offsets[-1] / 2 + sizes[0] / 2 + CANVAS_PADDING
        spread_center = max(spread_center, needed)

    # Layer axis: pitch grows with the tallest node of neighbouring layers.
    # Reversed flows walk the layers from the far end so the last layer gets
    # the canvas padding.
    layer_extents = [max(layer_size(n) for n in layer) for layer in layers]
    if direction.is_reversed:
        layer_extents.reverse()
    layer_coords: List[float] = []
    for index, extent in enumerate(layer_extents):
        if index == 0:
            layer_coords.append(
                max(LAYER_START_OFFSET, extent / 2 + CANVAS_PADDING)
            )
            continue
        prev_extent = layer_extents[index - 1]
        pitch = max(
            spacing * LAYER_SPACING_FACTOR,
            prev_extent / 2 + MIN_NODE_GAP + extent / 2,
        )
        layer_coords.append(layer_coords[-1] + pitch)

    if direction.is_reversed:
        layer_coords.reverse()

    boxes: Dict[str, NodeBox] = {}
    max_x = 0.0
    max_y = 0.0

    for layer, offsets, layer_coord in zip(layers, layer_offsets, layer_coords):
        start = spread_center - offsets[-1] / 2
        for node_id, offset in zip(layer, offsets):
            spread_coord = start + offset
            if vertical:
                center = Point(spread_coord, layer_coord)
            else:
                center = Point(layer_coord, spread_coord)

            node = diagram.nodes[node_id]
            box = NodeBox(node_id, center, dims[node_id], node.shape)
            boxes[node_id] = box

            max_x = max(max_x, center.x + box.dims.half_width + CANVAS_PADDING)
            max_y = max(max_y, center.y + box.dims.half_height + CANVAS_PADDING)

    return LayoutResult(
        layers=layers,
        boxes=boxes,
        canvas_width=max(config.width, max_x),
        canvas_height=max(config.height, max_y),
        direction=direction,
    )


def layout_fingerprint(diagram: Diagram, config: LayoutConfig) -> Tuple[Hashable, ...]:
    """
    Content-derived cache key for a layout.

    Covers everything placement reads: node ids in order with their labels
    and shapes, the edge list, spacing, requested canvas size and direction.
    """
    nodes = tuple(
        (node.id, node.label, node.shape.value) for node in diagram.nodes.values()
    )
    edges = tuple((edge.source, edge.target) for edge in diagram.edges)
    return (
        nodes,
        edges,
        config.node_spacing,
        config.width,
        config.height,
        diagram.direction.value,
    )


class LayoutCache:
    """
    Thread-safe cache of layout results keyed by content fingerprint.

    Entries are never evicted; a changed diagram simply produces a different
    key. Stored results are frozen, so a hit hands back the shared instance.
    Create one per process or per session and pass it to ``compute_layout``
    or ``FlowchartRenderer``.
    """

    def __init__(self):
        self._entries: Dict[Tuple[Hashable, ...], LayoutResult] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Tuple[Hashable, ...]) -> Optional[LayoutResult]:
        with self._lock:
            result = self._entries.get(key)
            if result is None:
                self.misses += 1
            else:
                self.hits += 1
            return result

    def put(self, key: Tuple[Hashable, ...], result: LayoutResult) -> None:
        with self._lock:
            self._entries[key] = result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key) -> bool:
        with self._lock:
            return key in self._entries


class LayeredLayout:
    """
    Layered (Sugiyama-style) layout engine.

    Runs layer assignment and axis placement for a diagram, optionally
    consulting a LayoutCache.
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        cache: Optional[LayoutCache] = None,
    ):
        self.config = config or LayoutConfig()
        self.cache = cache

    def layout(self, diagram: Diagram) -> LayoutResult:
        """
        Compute the layout for ``diagram``.

        Args:
            diagram: Diagram to lay out.

        Returns:
            LayoutResult with positions, dimensions and canvas size.
        """
        key = None
        if self.cache is not None:
            key = layout_fingerprint(diagram, self.config)
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Layout cache hit for %d node(s)", len(diagram.nodes))
                return cached

        layers = assign_layers(diagram)
        logger.debug(
            "Assigned %d node(s) to %d layer(s)", len(diagram.nodes), len(layers)
        )
        result = place_layers(layers, diagram, self.config)

        if self.cache is not None:
            self.cache.put(key, result)
        return result


def compute_layout(
    diagram: Diagram,
    config: Optional[LayoutConfig] = None,
    cache: Optional[LayoutCache] = None,
) -> LayoutResult:
    """Convenience wrapper around ``LayeredLayout(config, cache).layout``."""
    return LayeredLayout(config, cache).layout(diagram)
