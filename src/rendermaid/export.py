"""
File export functionality for rendered diagrams.

This module handles writing diagrams to disk:
- Text files (.svg, .json, .mmd) - any serializer output
- PNG images - the laid-out diagram rasterized with Pillow

The DiagramExporter class handles font loading, image drawing and file I/O.
"""

import logging
import math
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from .config import FONT_SIZE
from .geometry import NodeBox
from .layout import LayoutResult
from .models import ConnectionType, Diagram, Point, Shape
from .renderers import THEMES, arrowhead, label_anchor, outline_polygon
from .router import EdgeRoute

logger = logging.getLogger(__name__)

# On/off lengths (canvas units) for dashed connection styles
PNG_DASHES = {
    ConnectionType.DOTTED: (5, 5),
    ConnectionType.DASHED: (10, 5),
}


def _dash_segments(
    start: Point, end: Point, on: float, off: float
) -> List[Tuple[Point, Point]]:
    """Split a segment into the visible pieces of a dash pattern."""
    length = math.hypot(end.x - start.x, end.y - start.y)
    if length == 0:
        return []
    ux = (end.x - start.x) / length
    uy = (end.y - start.y) / length

    pieces = []
    position = 0.0
    while position < length:
        stop = min(position + on, length)
        pieces.append(
            (
                Point(start.x + ux * position, start.y + uy * position),
                Point(start.x + ux * stop, start.y + uy * stop),
            )
        )
        position = stop + off
    return pieces


class DiagramExporter:
    """
    Exports diagrams to files.

    Attributes:
        default_font: Default font name for PNG export.
    """

    def __init__(self, default_font: Optional[str] = None):
        """
        Initialize the diagram exporter.

        Args:
            default_font: Default font name for PNG export (e.g., "DejaVu Sans").
        """
        self.default_font = default_font

    def save_text(self, content: str, filename: str) -> None:
        """
        Save serializer output (SVG, JSON or flowchart text) to a file.

        Args:
            content: The string to save.
            filename: Output filename.
        """
        output_path = Path(filename)
        output_path.write_text(content, encoding="utf-8")

    def save_png(
        self,
        diagram: Diagram,
        layout: LayoutResult,
        routes: Sequence[EdgeRoute],
        filename: str,
        theme: str = "light",
        font_size: int = FONT_SIZE,
        font: Optional[str] = None,
        scale: int = 2,
    ) -> None:
        """
        Save a laid-out diagram as a PNG image.

        Args:
            diagram: The diagram, for labels and connection styles.
            layout: Node boxes and canvas size.
            routes: Routed edges.
            filename: Output filename (should end in .png).
            theme: One of 'light', 'dark' or 'neutral'.
            font_size: Label font size in canvas units.
            font: Font name to use (overrides default_font if provided).
            scale: Resolution multiplier for crisp output (default 2 for retina).

        Raises:
            ValueError: If the theme is unknown or scale is not positive.
        """
        if theme not in THEMES:
            raise ValueError(f"theme must be one of {sorted(THEMES)}")
        if scale <= 0:
            raise ValueError("scale must be positive")

        colors = THEMES[theme]
        loaded_font = self._load_font(font_size * scale, font or self.default_font)

        img_width = int(math.ceil(layout.canvas_width * scale))
        img_height = int(math.ceil(layout.canvas_height * scale))
        img = Image.new("RGB", (img_width, img_height), colors["background"])
        draw = ImageDraw.Draw(img)

        for route in routes:
            self._draw_route(draw, route, scale, colors["stroke"])

        for node_id, box in layout.boxes.items():
            self._draw_node(draw, box, scale, colors["stroke"], colors["background"])
            self._draw_text(
                draw, box.center, diagram.nodes[node_id].label, loaded_font, scale,
                colors["text"],
            )

        for route in routes:
            if route.edge is not None and route.edge.label:
                self._draw_text(
                    draw, label_anchor(route.waypoints), route.edge.label,
                    loaded_font, scale, colors["text"],
                )

        output_path = Path(filename)
        img.save(output_path, "PNG")
        logger.debug("Wrote %dx%d PNG to %s", img_width, img_height, output_path)

    def _draw_node(
        self,
        draw: ImageDraw.ImageDraw,
        box: NodeBox,
        scale: int,
        stroke: str,
        fill: str,
    ) -> None:
        x, y = box.center
        hw = box.dims.half_width
        hh = box.dims.half_height
        bounds = [(x - hw) * scale, (y - hh) * scale, (x + hw) * scale, (y + hh) * scale]
        width = 2 * scale
        shape = box.shape

        if shape is Shape.RECTANGLE:
            draw.rectangle(bounds, fill=fill, outline=stroke, width=width)
        elif shape is Shape.ROUNDED:
            draw.rounded_rectangle(bounds, radius=5 * scale, fill=fill, outline=stroke, width=width)
        elif shape is Shape.STADIUM:
            draw.rounded_rectangle(bounds, radius=hh * scale, fill=fill, outline=stroke, width=width)
        elif shape is Shape.CIRCLE:
            draw.ellipse(bounds, fill=fill, outline=stroke, width=width)
        elif shape in (Shape.RHOMBUS, Shape.HEXAGON):
            points = [(p.x * scale, p.y * scale) for p in outline_polygon(box)]
            draw.polygon(points, fill=fill, outline=stroke, width=width)
        else:
            raise ValueError(f"Unsupported shape: {shape}")

    def _draw_route(
        self, draw: ImageDraw.ImageDraw, route: EdgeRoute, scale: int, stroke: str
    ) -> None:
        connection = route.edge.type if route.edge else ConnectionType.ARROW
        width = (3 if connection is ConnectionType.THICK else 1) * scale
        points = route.waypoints

        dash = PNG_DASHES.get(connection)
        for start, end in zip(points, points[1:]):
            pieces = _dash_segments(start, end, *dash) if dash else [(start, end)]
            for a, b in pieces:
                draw.line(
                    [(a.x * scale, a.y * scale), (b.x * scale, b.y * scale)],
                    fill=stroke,
                    width=width,
                )

        if connection.has_arrow and len(points) >= 2 and points[-1] != points[-2]:
            head = [(p.x * scale, p.y * scale) for p in arrowhead(points)]
            draw.polygon(head, fill=stroke)

    def _draw_text(
        self,
        draw: ImageDraw.ImageDraw,
        center: Point,
        text: str,
        font,
        scale: int,
        color: str,
    ) -> None:
        if not text:
            return
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x = center.x * scale - (right - left) / 2 - left
        y = center.y * scale - (bottom - top) / 2 - top
        draw.text((x, y), text, font=font, fill=color)

    def _load_font(self, font_size: int, font_name: Optional[str] = None):
        """
        Load a font for PNG rendering.

        Tries the following in order:
        1. User-specified font name if provided
        2. Common system sans-serif and monospace fonts
        3. Pillow's default font

        Args:
            font_size: Font size in pixels.
            font_name: Optional font name (e.g., "DejaVu Sans", "Arial").

        Returns:
            A PIL ImageFont object.
        """
        fonts_to_try = []

        if font_name:
            fonts_to_try.append(font_name)

        fonts_to_try.extend(
            [
                # Linux
                "DejaVuSans.ttf",
                "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
                "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
                # macOS
                "Helvetica",
                "/System/Library/Fonts/Helvetica.ttc",
                "/System/Library/Fonts/Menlo.ttc",
                # Windows
                "arial.ttf",
                "C:/Windows/Fonts/arial.ttf",
            ]
        )

        for font in fonts_to_try:
            try:
                return ImageFont.truetype(font, font_size)
            except OSError:
                continue

        logger.debug("No TrueType font found, using Pillow's default font")
        try:
            return ImageFont.load_default(size=font_size)
        except TypeError:
            # Older Pillow versions don't support size parameter
            return ImageFont.load_default()
