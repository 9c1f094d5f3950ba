"""
Tests for routing quality - detecting paths that cut through nodes.

These tests verify that:
1. Edge paths never pass through nodes other than their source/target
2. Paths stay orthogonal once they bend
3. Typical layouts (chains, fan-in, skip edges) come out clean
"""

from typing import List, Sequence

import pytest

from rendermaid import EdgeRouter, compute_layout, create_diagram
from rendermaid.geometry import FALLBACK_DIMENSIONS
from rendermaid.layout import LayoutResult
from rendermaid.models import Direction, Node, Point, Shape
from rendermaid.router import EdgeRoute


def route_all(diagram):
    layout = compute_layout(diagram)
    return layout, EdgeRouter().route_edges(diagram, layout)


def segment_crosses_box(start: Point, end: Point, box, margin: float = 0) -> bool:
    """
    Check whether an axis-aligned segment passes through a node's interior.

    Touching the outline is allowed; only the interior counts.
    """
    left = box.center.x - box.dims.half_width - margin
    right = box.center.x + box.dims.half_width + margin
    top = box.center.y - box.dims.half_height - margin
    bottom = box.center.y + box.dims.half_height + margin

    if start.y == end.y:
        low, high = sorted((start.x, end.x))
        return top < start.y < bottom and low < right and high > left
    if start.x == end.x:
        low, high = sorted((start.y, end.y))
        return left < start.x < right and low < bottom and high > top
    raise AssertionError(f"Diagonal segment {start} -> {end}")


def find_box_intersections(layout: LayoutResult, routes: Sequence[EdgeRoute]) -> List[str]:
    """Describe every route segment that cuts through a foreign node."""
    problems = []
    for route in routes:
        for node_id, box in layout.boxes.items():
            if node_id in (route.source, route.target):
                continue
            for start, end in zip(route.waypoints, route.waypoints[1:]):
                if segment_crosses_box(start, end, box):
                    problems.append(f"{route.source}->{route.target} crosses {node_id}")
                    break
    return problems


class TestScenarios:
    """Routing checks for common diagram shapes."""

    def test_linear_chain(self, chain_diagram):
        """Test a linear chain routes as straight segments."""
        layout, routes = route_all(chain_diagram)
        xs = {box.center.x for box in layout.boxes.values()}
        assert len(xs) == 1
        for route in routes:
            assert len(route.waypoints) == 2
            assert route.collision_free

    def test_fan_in(self, fan_in_diagram):
        """Test fan-in routes stay clear of other nodes."""
        layout, routes = route_all(fan_in_diagram)
        a, b, c = (layout.positions[n] for n in "ABC")
        assert a.y == b.y
        assert c.x == (a.x + b.x) / 2
        assert all(route.collision_free for route in routes)
        assert find_box_intersections(layout, routes) == []

    @pytest.mark.parametrize("direction", list(Direction))
    def test_skip_edge(self, direction):
        """Test a skip edge detours around the middle nodes."""
        diagram = create_diagram(
            [("A", "B"), ("B", "C"), ("C", "D"), ("A", "D")], direction=direction
        )
        layout, routes = route_all(diagram)
        skip = routes[-1]
        assert (skip.source, skip.target) == ("A", "D")
        assert skip.collision_free
        assert len(skip.waypoints) == 6
        assert find_box_intersections(layout, routes) == []

    def test_empty_label_fallback(self):
        """Test unlabelled nodes use fallback sizes and still route cleanly."""
        diagram = create_diagram(
            [("A", "B"), ("B", "C")],
            nodes=[Node("A", "", Shape.CIRCLE), Node("B", "", Shape.STADIUM)],
        )
        layout, routes = route_all(diagram)
        assert layout.boxes["A"].dims == FALLBACK_DIMENSIONS[Shape.CIRCLE]
        assert layout.boxes["B"].dims == FALLBACK_DIMENSIONS[Shape.STADIUM]
        assert all(route.collision_free for route in routes)


class TestRoutingQuality:
    """Routing quality checks across several diagrams."""

    DIAGRAMS = {
        "diamond": [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")],
        "two_skips": [("A", "B"), ("B", "C"), ("C", "D"), ("D", "E"), ("A", "E"), ("B", "E")],
        "back_edge": [("A", "B"), ("B", "C"), ("C", "A")],
        "wide": [("R", f"N{i}") for i in range(6)] + [(f"N{i}", "S") for i in range(6)],
    }

    @pytest.mark.parametrize("name", sorted(DIAGRAMS))
    @pytest.mark.parametrize("direction", [Direction.TD, Direction.LR])
    def test_collision_free_routes_are_clean(self, name, direction):
        """Test routes marked collision-free really avoid every node."""
        diagram = create_diagram(self.DIAGRAMS[name], direction=direction)
        layout, routes = route_all(diagram)
        clean = [route for route in routes if route.collision_free]
        assert find_box_intersections(layout, clean) == []

    @pytest.mark.parametrize("name", sorted(DIAGRAMS))
    def test_orthogonal_when_bent(self, name):
        """Test bent routes only use horizontal and vertical segments."""
        diagram = create_diagram(self.DIAGRAMS[name])
        _, routes = route_all(diagram)
        for route in routes:
            if len(route.waypoints) > 2:
                for a, b in zip(route.waypoints, route.waypoints[1:]):
                    assert a.x == b.x or a.y == b.y

    def test_most_edges_resolve(self):
        """Test at most one edge is left unresolved."""
        diagram = create_diagram(self.DIAGRAMS["two_skips"])
        _, routes = route_all(diagram)
        assert sum(route.collision_free for route in routes) >= len(routes) - 1
