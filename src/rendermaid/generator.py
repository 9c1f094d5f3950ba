"""
Main flowchart renderer module.

Combines parsing, layout, routing and serialization to turn flowchart text
into SVG, JSON, flowchart text or PNG output.
"""

import logging
from typing import List, Optional, Union

from .config import LayoutConfig
from .export import DiagramExporter
from .layout import LayeredLayout, LayoutCache, LayoutResult
from .models import Diagram
from .parser import Parser
from .renderers import THEMES, render_html, render_json, render_mermaid, render_svg
from .router import EdgeRoute, EdgeRouter

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("svg", "json", "mermaid", "html")

DiagramSource = Union[str, Diagram]


class FlowchartRenderer:
    """
    Render flowcharts from Mermaid-style text descriptions.

    Example:
        >>> renderer = FlowchartRenderer()
        >>> svg = renderer.render('''
        ...     flowchart TD
        ...         A[Start] --> B{Ready?}
        ...         B -->|Yes| C([Done])
        ... ''')
    """

    def __init__(
        self,
        node_spacing: float = 120,
        width: float = 800,
        height: float = 600,
        theme: str = "light",
        cache: Optional[LayoutCache] = None,
        font: Optional[str] = None,
    ):
        """
        Initialize the flowchart renderer.

        Args:
            node_spacing: Minimum distance between neighbouring node centres
            width: Requested canvas width (the canvas grows to fit)
            height: Requested canvas height (the canvas grows to fit)
            theme: Colour theme - "light", "dark" or "neutral"
            cache: Optional LayoutCache shared between renders
            font: Font name for PNG output (e.g., "DejaVu Sans")

        Raises:
            ValueError: If a size is not positive or the theme is unknown.
        """
        if theme not in THEMES:
            raise ValueError(f"theme must be one of {sorted(THEMES)}")

        self.config = LayoutConfig(node_spacing=node_spacing, width=width, height=height)
        self.theme = theme
        self.cache = cache

        self.parser = Parser()
        self.layout_engine = LayeredLayout(self.config, cache)
        self.router = EdgeRouter()
        self.exporter = DiagramExporter(default_font=font)

    def parse(self, source: DiagramSource) -> Diagram:
        """Parse flowchart text; diagrams are passed through unchanged."""
        if isinstance(source, Diagram):
            return source
        return self.parser.parse(source)

    def layout(self, source: DiagramSource) -> LayoutResult:
        """Lay out a diagram or flowchart text."""
        return self.layout_engine.layout(self.parse(source))

    def route(
        self, source: DiagramSource, layout: Optional[LayoutResult] = None
    ) -> List[EdgeRoute]:
        """
        Route every edge of a diagram.

        Args:
            source: Flowchart text or a parsed Diagram
            layout: Layout to route against; computed when omitted

        Returns:
            List of EdgeRoute objects in edge order
        """
        diagram = self.parse(source)
        if layout is None:
            layout = self.layout_engine.layout(diagram)
        return self.router.route_edges(diagram, layout)

    def render(self, source: DiagramSource, output_format: str = "svg") -> str:
        """
        Render flowchart text or a diagram.

        Args:
            source: Flowchart text or a parsed Diagram
            output_format: "svg", "json", "mermaid" or "html"

        Returns:
            The rendered document as a string

        Raises:
            ParseError: If the flowchart text is malformed.
            ValueError: If the output format is unknown.
        """
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Unsupported output format {output_format!r}, "
                f"expected one of {', '.join(OUTPUT_FORMATS)}"
            )

        diagram = self.parse(source)
        if output_format == "mermaid":
            return render_mermaid(diagram)
        if output_format == "html":
            return render_html(diagram)

        layout = self.layout_engine.layout(diagram)
        routes = self.router.route_edges(diagram, layout)
        unresolved = sum(1 for route in routes if not route.collision_free)
        if unresolved:
            logger.debug("%d edge route(s) still cross other nodes", unresolved)

        if output_format == "json":
            return render_json(diagram, layout, routes)
        return render_svg(diagram, layout, routes, theme=self.theme)

    def save(
        self, source: DiagramSource, filename: str, output_format: str = "svg"
    ) -> None:
        """
        Render and save to a text file.

        Args:
            source: Flowchart text or a parsed Diagram
            filename: Output filename
            output_format: "svg", "json", "mermaid" or "html"
        """
        self.exporter.save_text(self.render(source, output_format), filename)

    def save_png(
        self,
        source: DiagramSource,
        filename: str,
        font_size: int = 12,
        font: Optional[str] = None,
        scale: int = 2,
    ) -> None:
        """
        Render and save as a PNG image.

        Args:
            source: Flowchart text or a parsed Diagram
            filename: Output filename (should end in .png)
            font_size: Label font size in canvas units
            font: Font name to use (overrides instance font if provided)
            scale: Resolution multiplier for crisp output (default 2 for retina)

        Example:
            >>> renderer = FlowchartRenderer(theme="dark")
            >>> renderer.save_png("flowchart LR\\n A --> B", "flowchart.png")
        """
        diagram = self.parse(source)
        layout = self.layout_engine.layout(diagram)
        routes = self.router.route_edges(diagram, layout)
        self.exporter.save_png(
            diagram,
            layout,
            routes,
            filename,
            theme=self.theme,
            font_size=font_size,
            font=font,
            scale=scale,
        )
