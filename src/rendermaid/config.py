"""
Layout configuration and tuning constants.

The constants are grouped the same way the pipeline is: node geometry,
layer placement and edge routing. ``LayoutConfig`` carries the values a
caller chooses per render (spacing and requested canvas size).
"""

from dataclasses import dataclass

# =============================================================================
# GEOMETRY - node sizing from label text
# =============================================================================

# Font size used for the text-width estimate
FONT_SIZE = 12

# Average glyph width as a fraction of the font size (monospace-ish estimate)
CHAR_WIDTH_RATIO = 0.6

# Horizontal padding added around the label text
TEXT_PADDING = 16

# Smallest box a labelled node may have
MIN_WIDTH = 60
MIN_HEIGHT = 30

# Extra height on top of MIN_HEIGHT for every labelled node
HEIGHT_PADDING = 10

# Circles never get a radius below this
MIN_CIRCLE_RADIUS = 25

# Clearance between the text box corner and the circle outline
CIRCLE_TEXT_CLEARANCE = 5

# Rhombus needs extra horizontal room because the text sits in a diamond
RHOMBUS_WIDTH_FACTOR = 1.4

# Extra width for the rounded ends of a stadium
STADIUM_EXTRA_WIDTH = 20

# =============================================================================
# LAYOUT - placement of layers and nodes
# =============================================================================

# Coordinate of the first layer along the layer axis
LAYER_START_OFFSET = 60

# Layer pitch is at least node_spacing times this factor
LAYER_SPACING_FACTOR = 1.5

# Minimum empty space between the outlines of neighbouring nodes
MIN_NODE_GAP = 40

# Margin kept between the furthest node edge and the canvas border
CANVAS_PADDING = 40

# =============================================================================
# ROUTING - ports, paths and collision resolution
# =============================================================================

# Nodes whose layer-axis coordinates differ by less than this share a layer
SAME_LAYER_TOLERANCE = 10

# Ports sit this far outside the node outline
PORT_OFFSET = 2

# Ports closer than this on the spread axis are joined by a straight line
ALIGNMENT_TOLERANCE = 2

# Clearance added around obstacles when testing for collisions
COLLISION_PADDING = 15

# First detour offset from the path midpoint
DETOUR_BASE_OFFSET = 40

# Added to the detour offset on every retry
DETOUR_OFFSET_STEP = 40

# Number of widening retries after the first detour
MAX_DETOUR_RETRIES = 3

# Length of the stub that leaves a port before a detour turns sideways
DETOUR_LEAD = 20

# =============================================================================


@dataclass(frozen=True)
class LayoutConfig:
    """
    Per-render layout settings.

    Attributes:
        node_spacing: Minimum distance between neighbouring node centres on
            the spread axis. Layers are at least 1.5x this apart.
        width: Requested canvas width. A lower bound, the canvas grows to fit.
        height: Requested canvas height. A lower bound as well.
    """

    node_spacing: float = 120
    width: float = 800
    height: float = 600

    def __post_init__(self):
        if self.node_spacing <= 0:
            raise ValueError("node_spacing must be positive")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be positive")
