"""
Serializers for laid-out diagrams.

Each renderer is a pure function that turns a diagram plus its computed
layout and routes into a string:
- SVG markup with shape-aware node outlines and routed edge paths
- JSON with node geometry and edge waypoints
- Mermaid flowchart text that parses back to the same diagram
- Semantic HTML with one element per node and per edge, no geometry
"""

import json
import math
from typing import Any, Dict, List, Optional, Sequence
from xml.sax.saxutils import escape

from .geometry import NodeBox
from .layout import LayoutResult
from .models import ConnectionType, Diagram, Point, Shape
from .router import EdgeRoute

THEMES: Dict[str, Dict[str, str]] = {
    "light": {"background": "#ffffff", "stroke": "#333333", "text": "#333333"},
    "dark": {"background": "#1e1e1e", "stroke": "#e0e0e0", "text": "#e0e0e0"},
    "neutral": {"background": "#f7f7f7", "stroke": "#666666", "text": "#444444"},
}

ARROW_LENGTH = 8
EDGE_LABEL_OFFSET = 12

DASH_PATTERNS: Dict[ConnectionType, str] = {
    ConnectionType.ARROW: "none",
    ConnectionType.LINE: "none",
    ConnectionType.THICK: "none",
    ConnectionType.DOTTED: "5,5",
    ConnectionType.DASHED: "10,5",
}

HTML_STYLES = """<style>
  .rendermaid-diagram { display: grid; gap: 1rem; }
  .rendermaid-node {
    padding: 0.5rem;
    border: 1px solid currentColor;
    border-radius: 0.25rem;
    text-align: center;
  }
  .rendermaid-node-rounded, .rendermaid-node-stadium { border-radius: 1rem; }
  .rendermaid-node-circle { border-radius: 50%; }
  .rendermaid-node-rhombus { transform: rotate(45deg); }
  .rendermaid-edge { position: relative; font-size: 0.875rem; color: #666; }
</style>"""


def _fmt(value: float) -> str:
    """Format a coordinate without trailing zeros."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def label_anchor(waypoints: Sequence[Point]) -> Point:
    """Midpoint of the middle segment of a path, where edge labels go."""
    if len(waypoints) == 1:
        return waypoints[0]
    index = (len(waypoints) - 1) // 2
    start, end = waypoints[index], waypoints[index + 1]
    return Point((start.x + end.x) / 2, (start.y + end.y) / 2)


def arrowhead(waypoints: Sequence[Point], length: float = ARROW_LENGTH) -> List[Point]:
    """Triangle points for an arrowhead at the end of a path."""
    tip = waypoints[-1]
    tail = waypoints[-2]
    angle = math.atan2(tip.y - tail.y, tip.x - tail.x)
    left = Point(
        tip.x - length * math.cos(angle - math.pi / 6),
        tip.y - length * math.sin(angle - math.pi / 6),
    )
    right = Point(
        tip.x - length * math.cos(angle + math.pi / 6),
        tip.y - length * math.sin(angle + math.pi / 6),
    )
    return [tip, left, right]


def outline_polygon(box: NodeBox) -> List[Point]:
    """Corner points of polygonal shapes (rhombus, hexagon)."""
    x, y = box.center
    hw = box.dims.half_width
    hh = box.dims.half_height
    if box.shape is Shape.RHOMBUS:
        return [Point(x - hw, y), Point(x, y - hh), Point(x + hw, y), Point(x, y + hh)]
    if box.shape is Shape.HEXAGON:
        inset = hh / 2
        return [
            Point(x - hw, y),
            Point(x - hw + inset, y - hh),
            Point(x + hw - inset, y - hh),
            Point(x + hw, y),
            Point(x + hw - inset, y + hh),
            Point(x - hw + inset, y + hh),
        ]
    raise ValueError(f"{box.shape} is not a polygon shape")


def _points_attr(points: Sequence[Point]) -> str:
    return " ".join(f"{_fmt(p.x)},{_fmt(p.y)}" for p in points)


def _svg_node(box: NodeBox, label: str, colors: Dict[str, str]) -> str:
    x, y = box.center
    hw = box.dims.half_width
    hh = box.dims.half_height
    style = f'fill="none" stroke="{colors["stroke"]}" stroke-width="2"'
    shape = box.shape

    if shape is Shape.RECTANGLE:
        outline = (
            f'<rect x="{_fmt(x - hw)}" y="{_fmt(y - hh)}" width="{_fmt(box.dims.width)}" '
            f'height="{_fmt(box.dims.height)}" class="node-rect" {style}/>'
        )
    elif shape is Shape.ROUNDED:
        outline = (
            f'<rect x="{_fmt(x - hw)}" y="{_fmt(y - hh)}" width="{_fmt(box.dims.width)}" '
            f'height="{_fmt(box.dims.height)}" rx="5" class="node-rounded" {style}/>'
        )
    elif shape is Shape.STADIUM:
        outline = (
            f'<rect x="{_fmt(x - hw)}" y="{_fmt(y - hh)}" width="{_fmt(box.dims.width)}" '
            f'height="{_fmt(box.dims.height)}" rx="{_fmt(hh)}" class="node-stadium" {style}/>'
        )
    elif shape is Shape.CIRCLE:
        radius = box.dims.radius if box.dims.radius is not None else hw
        outline = (
            f'<circle cx="{_fmt(x)}" cy="{_fmt(y)}" r="{_fmt(radius)}" '
            f'class="node-circle" {style}/>'
        )
    elif shape in (Shape.RHOMBUS, Shape.HEXAGON):
        outline = (
            f'<polygon points="{_points_attr(outline_polygon(box))}" '
            f'class="node-{shape.value}" {style}/>'
        )
    else:
        raise ValueError(f"Unsupported shape: {shape}")

    text = (
        f'<text x="{_fmt(x)}" y="{_fmt(y)}" text-anchor="middle" '
        f'dominant-baseline="central">{escape(label)}</text>'
    )
    return f'  <g class="node" data-id="{escape(box.node_id)}">{outline}{text}</g>'


def _svg_edge(route: EdgeRoute, colors: Dict[str, str]) -> str:
    connection = route.edge.type if route.edge else ConnectionType.ARROW
    label = route.edge.label if route.edge else None
    points = route.waypoints

    path_data = " ".join(
        f"{'M' if index == 0 else 'L'} {_fmt(p.x)} {_fmt(p.y)}"
        for index, p in enumerate(points)
    )
    width = "3" if connection is ConnectionType.THICK else "1"
    parts = [
        f'<path d="{path_data}" stroke="{colors["stroke"]}" stroke-width="{width}" '
        f'stroke-dasharray="{DASH_PATTERNS[connection]}" fill="none"/>'
    ]

    if connection.has_arrow and len(points) >= 2 and points[-1] != points[-2]:
        parts.append(
            f'<polygon points="{_points_attr(arrowhead(points))}" '
            f'fill="{colors["stroke"]}"/>'
        )

    if label:
        anchor = label_anchor(points)
        parts.append(
            f'<text x="{_fmt(anchor.x)}" y="{_fmt(anchor.y - EDGE_LABEL_OFFSET / 2)}" '
            f'text-anchor="middle" font-size="10" class="edge-label">'
            f"{escape(label)}</text>"
        )

    return (
        f'  <g class="edge" data-from="{escape(route.source)}" '
        f'data-to="{escape(route.target)}">{"".join(parts)}</g>'
    )


def render_svg(
    diagram: Diagram,
    layout: LayoutResult,
    routes: Sequence[EdgeRoute],
    theme: str = "light",
) -> str:
    """
    Render a laid-out diagram as SVG.

    Args:
        diagram: The diagram, for labels.
        layout: Node boxes and canvas size.
        routes: Routed edges.
        theme: One of 'light', 'dark' or 'neutral'.

    Returns:
        SVG document as a string.

    Raises:
        ValueError: If the theme is unknown.
    """
    if theme not in THEMES:
        raise ValueError(f"theme must be one of {sorted(THEMES)}")
    colors = THEMES[theme]
    width = _fmt(layout.canvas_width)
    height = _fmt(layout.canvas_height)

    svg_parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">',
        f"  <style>text {{ font-family: sans-serif; font-size: 12px; "
        f'fill: {colors["text"]}; }}</style>',
        f'  <rect width="100%" height="100%" fill="{colors["background"]}"/>',
    ]

    for node_id, box in layout.boxes.items():
        svg_parts.append(_svg_node(box, diagram.nodes[node_id].label, colors))

    for route in routes:
        svg_parts.append(_svg_edge(route, colors))

    svg_parts.append("</svg>")
    return "\n".join(svg_parts)


def diagram_to_dict(
    diagram: Diagram,
    layout: Optional[LayoutResult] = None,
    routes: Optional[Sequence[EdgeRoute]] = None,
) -> Dict[str, Any]:
    """Plain-data view of a diagram, with geometry when a layout is given."""
    nodes: Dict[str, Any] = {}
    for node_id, node in diagram.nodes.items():
        entry: Dict[str, Any] = {"id": node.id, "label": node.label, "shape": node.shape.value}
        if layout is not None and node_id in layout.boxes:
            box = layout.boxes[node_id]
            entry.update(
                x=box.center.x,
                y=box.center.y,
                width=box.dims.width,
                height=box.dims.height,
            )
            if box.dims.radius is not None:
                entry["radius"] = box.dims.radius
        nodes[node_id] = entry

    # Routes follow edge order, skipping edges that could not be routed
    pending = list(routes or [])
    edges = []
    for edge in diagram.edges:
        entry = {
            "from": edge.source,
            "to": edge.target,
            "type": edge.type.value,
            "label": edge.label,
        }
        if pending and pending[0].edge == edge:
            route = pending.pop(0)
            entry["waypoints"] = [[p.x, p.y] for p in route.waypoints]
        edges.append(entry)

    data: Dict[str, Any] = {
        "diagramType": {"type": "flowchart", "direction": diagram.direction.value},
        "nodes": nodes,
        "edges": edges,
    }
    if layout is not None:
        data["canvas"] = {"width": layout.canvas_width, "height": layout.canvas_height}
    return data


def render_json(
    diagram: Diagram,
    layout: Optional[LayoutResult] = None,
    routes: Optional[Sequence[EdgeRoute]] = None,
    pretty: bool = True,
) -> str:
    """Serialize a diagram (and optionally its geometry) to JSON."""
    data = diagram_to_dict(diagram, layout, routes)
    if pretty:
        return json.dumps(data, indent=2)
    return json.dumps(data)


def render_mermaid(diagram: Diagram) -> str:
    """
    Convert a diagram back to flowchart text.

    The output parses back into an equal diagram.
    """
    lines = [f"flowchart {diagram.direction.value}"]

    for node in diagram.nodes.values():
        opening, closing = node.shape.delimiters
        lines.append(f"  {node.id}{opening}{node.label}{closing}")

    for edge in diagram.edges:
        label = f"|{edge.label}|" if edge.label else ""
        lines.append(f"  {edge.source} {edge.type.connector}{label} {edge.target}")

    return "\n".join(lines)


def _attr(value: str) -> str:
    return escape(value, {'"': "&quot;"})


def render_html(
    diagram: Diagram,
    include_styles: bool = True,
    class_name: str = "",
) -> str:
    """
    Render a diagram as semantic HTML.

    Nodes and edges become ``div`` elements in declaration order. Nodes carry
    ``data-id`` and a per-shape class; edges carry ``data-from``, ``data-to``
    and a per-connection class. No layout is computed, so the markup can be
    styled freely with CSS.

    Args:
        diagram: The diagram to render.
        include_styles: Prepend a small default ``<style>`` block.
        class_name: Extra class added to the container element.

    Returns:
        HTML fragment as a string.
    """
    classes = " ".join(filter(None, ["rendermaid-diagram", class_name.strip()]))

    parts = []
    if include_styles:
        parts.append(HTML_STYLES)
    parts.append(
        f'<div class="{_attr(classes)}" '
        f'data-direction="{diagram.direction.value}">'
    )

    parts.append('  <div class="rendermaid-nodes">')
    for node in diagram.nodes.values():
        parts.append(
            f'    <div class="rendermaid-node rendermaid-node-{node.shape.value}" '
            f'data-id="{_attr(node.id)}">{escape(node.label)}</div>'
        )
    parts.append("  </div>")

    parts.append('  <div class="rendermaid-edges">')
    for edge in diagram.edges:
        parts.append(
            f'    <div class="rendermaid-edge rendermaid-edge-{edge.type.value}" '
            f'data-from="{_attr(edge.source)}" data-to="{_attr(edge.target)}">'
            f"{escape(edge.label or '')}</div>"
        )
    parts.append("  </div>")

    parts.append("</div>")
    return "\n".join(parts)
