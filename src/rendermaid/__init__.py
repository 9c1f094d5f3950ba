"""
rendermaid - Layered flowchart layout with orthogonal edge routing

A Python library that parses Mermaid-style flowcharts, places nodes in
layers and routes edges around the nodes in their way.

Example:
    >>> from rendermaid import FlowchartRenderer
    >>> renderer = FlowchartRenderer()
    >>> svg = renderer.render('''
    ...     flowchart TD
    ...         A[Start] --> B{Ready?}
    ...         B -->|Yes| C([Done])
    ... ''')

Lower-level API Example:
    >>> from rendermaid import compute_layout, parse_flowchart, EdgeRouter
    >>> diagram = parse_flowchart("flowchart LR\\n A --> B")
    >>> layout = compute_layout(diagram)
    >>> routes = EdgeRouter().route_edges(diagram, layout)
"""

from .analysis import DiagramAnalysis, analyze_diagram, validate_diagram
from .config import LayoutConfig
from .export import DiagramExporter
from .generator import FlowchartRenderer
from .geometry import Dimensions, NodeBox, boundary_point, node_dimensions
from .layout import (
    LayeredLayout,
    LayoutCache,
    LayoutResult,
    assign_layers,
    compute_layout,
    place_layers,
)
from .models import (
    ConnectionType,
    Diagram,
    Direction,
    Edge,
    Node,
    Point,
    Shape,
    create_diagram,
)
from .parser import ParseError, Parser, extract_flowcharts, parse_flowchart
from .renderers import render_html, render_json, render_mermaid, render_svg
from .router import EdgeRoute, EdgeRouter, Port, PortSide, route_edge

__version__ = "0.4.0"

__all__ = [
    # Main API
    "FlowchartRenderer",
    # Model
    "Diagram",
    "Node",
    "Edge",
    "Shape",
    "ConnectionType",
    "Direction",
    "Point",
    "create_diagram",
    # Parser
    "Parser",
    "ParseError",
    "parse_flowchart",
    "extract_flowcharts",
    # Geometry
    "Dimensions",
    "NodeBox",
    "node_dimensions",
    "boundary_point",
    # Layout
    "LayoutConfig",
    "LayeredLayout",
    "LayoutCache",
    "LayoutResult",
    "assign_layers",
    "place_layers",
    "compute_layout",
    # Router
    "EdgeRouter",
    "EdgeRoute",
    "Port",
    "PortSide",
    "route_edge",
    # Output
    "render_svg",
    "render_json",
    "render_mermaid",
    "render_html",
    "DiagramExporter",
    # Analysis
    "validate_diagram",
    "analyze_diagram",
    "DiagramAnalysis",
]
