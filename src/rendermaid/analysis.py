"""
Structural checks and statistics for diagrams.

Uses networkx for:
- Cycle detection
- Depth as the longest chain through the strongly connected components
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

import networkx as nx

from .models import Diagram


@dataclass
class DiagramAnalysis:
    """Summary statistics for a diagram."""

    node_count: int = 0
    edge_count: int = 0
    complexity: int = 0
    shapes: Dict[str, int] = field(default_factory=dict)
    connections: Dict[str, int] = field(default_factory=dict)
    depth: int = 0
    has_cycles: bool = False


def validate_diagram(diagram: Diagram) -> List[str]:
    """
    Check a diagram for problems the layout engine tolerates silently.

    Args:
        diagram: Diagram to check.

    Returns:
        Human-readable error messages; empty when the diagram is clean.
    """
    errors: List[str] = []

    for edge in diagram.edges:
        if edge.source not in diagram.nodes:
            errors.append(f"Edge references non-existent source node: {edge.source}")
        if edge.target not in diagram.nodes:
            errors.append(f"Edge references non-existent target node: {edge.target}")

    for node_id, node in diagram.nodes.items():
        if not node.label.strip():
            errors.append(f"Node {node_id} has empty label")

    return errors


def _to_graph(diagram: Diagram) -> nx.DiGraph:
    graph = nx.DiGraph()
    graph.add_nodes_from(diagram.nodes)
    graph.add_edges_from((e.source, e.target) for e in diagram.resolved_edges())
    return graph


def analyze_diagram(diagram: Diagram) -> DiagramAnalysis:
    """
    Compute size, shape usage, depth and cyclicity of a diagram.

    Complexity is nodes + edges + distinct shapes. Depth counts the nodes on
    the longest chain once every cycle is collapsed to a single step, so a
    pure cycle has depth 1 and an empty diagram depth 0.

    Args:
        diagram: Diagram to analyze.

    Returns:
        DiagramAnalysis for the diagram.
    """
    shapes = Counter(node.shape.value for node in diagram.nodes.values())
    connections = Counter(edge.type.value for edge in diagram.edges)

    graph = _to_graph(diagram)
    depth = 0
    if graph.number_of_nodes():
        depth = nx.dag_longest_path_length(nx.condensation(graph)) + 1

    return DiagramAnalysis(
        node_count=len(diagram.nodes),
        edge_count=len(diagram.edges),
        complexity=len(diagram.nodes) + len(diagram.edges) + len(shapes),
        shapes=dict(shapes),
        connections=dict(connections),
        depth=depth,
        has_cycles=not nx.is_directed_acyclic_graph(graph),
    )
