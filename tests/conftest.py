"""Pytest configuration and shared fixtures for rendermaid tests."""

import pytest

from rendermaid import FlowchartRenderer, LayoutCache, create_diagram
from rendermaid.models import Direction, Node, Shape


@pytest.fixture
def simple_input():
    """Simple linear flowchart input."""
    return """
    flowchart TD
        A --> B
        B --> C
        C --> D
    """


@pytest.fixture
def branching_input():
    """Branching flowchart input with shapes and labels."""
    return """
    flowchart TD
        Start([Start]) --> Check{Valid?}
        Check -->|Yes| Process[Process data]
        Check -->|No| Error((Error))
        Process --> End([End])
        Error -.-> End
    """


@pytest.fixture
def cyclic_input():
    """Flowchart with a cycle."""
    return """
    flowchart LR
        A --> B
        B --> C
        C --> A
    """


@pytest.fixture
def renderer():
    """Default FlowchartRenderer instance."""
    return FlowchartRenderer()


@pytest.fixture
def cache():
    """Fresh layout cache."""
    return LayoutCache()


@pytest.fixture
def chain_diagram():
    """Pre-built four node chain."""
    return create_diagram([("A", "B"), ("B", "C"), ("C", "D")])


@pytest.fixture
def fan_in_diagram():
    """Two sources feeding one sink."""
    return create_diagram([("A", "C"), ("B", "C")])


@pytest.fixture
def skip_edge_diagram():
    """Chain with an extra edge jumping over the middle nodes."""
    return create_diagram([("A", "B"), ("B", "C"), ("C", "D"), ("A", "D")])


@pytest.fixture
def shapes_diagram():
    """One node of every shape, chained together."""
    nodes = [
        Node("R", "Rectangle", Shape.RECTANGLE),
        Node("O", "Rounded", Shape.ROUNDED),
        Node("C", "Circle", Shape.CIRCLE),
        Node("D", "Decision", Shape.RHOMBUS),
        Node("H", "Hexagon", Shape.HEXAGON),
        Node("S", "Stadium", Shape.STADIUM),
    ]
    edges = [("R", "O"), ("O", "C"), ("C", "D"), ("D", "H"), ("H", "S")]
    return create_diagram(edges, nodes=nodes, direction=Direction.TD)
