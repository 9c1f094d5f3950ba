"""Unit tests for the parser module."""

import pytest

from rendermaid.models import ConnectionType, Direction, Edge, Node, Shape
from rendermaid.parser import ParseError, Parser, extract_flowcharts, parse_flowchart


class TestHeader:
    """Tests for the flowchart header line."""

    @pytest.mark.parametrize("keyword", ["flowchart", "graph"])
    @pytest.mark.parametrize("direction", ["TD", "TB", "BT", "LR", "RL"])
    def test_directions(self, keyword, direction):
        """Test every direction in the header."""
        diagram = parse_flowchart(f"{keyword} {direction}\n A --> B")
        assert diagram.direction is Direction(direction)

    def test_missing_header(self):
        """Test a missing header raises ParseError."""
        with pytest.raises(ParseError, match="Line 1"):
            parse_flowchart("A --> B")

    def test_unknown_direction(self):
        """Test an unknown direction raises ParseError."""
        with pytest.raises(ParseError):
            parse_flowchart("flowchart XY\n A --> B")

    def test_empty_input(self):
        """Test empty input raises ParseError."""
        with pytest.raises(ParseError, match="Empty input"):
            parse_flowchart("   \n  ")

    def test_leading_comment(self):
        """Test comments before the header are skipped."""
        diagram = parse_flowchart("%% title\nflowchart LR\n A --> B")
        assert diagram.direction is Direction.LR

    def test_header_only(self):
        """Test a header with no body."""
        diagram = parse_flowchart("flowchart TD")
        assert diagram.nodes == {}
        assert diagram.edges == ()


class TestNodes:
    """Tests for node declarations."""

    @pytest.mark.parametrize(
        "text,shape",
        [
            ("N[Label]", Shape.RECTANGLE),
            ("N(Label)", Shape.ROUNDED),
            ("N((Label))", Shape.CIRCLE),
            ("N{Label}", Shape.RHOMBUS),
            ("N{{Label}}", Shape.HEXAGON),
            ("N([Label])", Shape.STADIUM),
        ],
    )
    def test_shapes(self, text, shape):
        """Test parsing every node shape."""
        diagram = parse_flowchart(f"flowchart TD\n {text}")
        assert diagram.nodes["N"] == Node("N", "Label", shape)

    def test_bare_node_uses_id_as_label(self):
        """Test a bare node uses its id as label."""
        diagram = parse_flowchart("flowchart TD\n A --> B")
        assert diagram.nodes["A"] == Node("A", "A", Shape.RECTANGLE)

    def test_label_with_spaces_and_punctuation(self):
        """Test labels with spaces and punctuation."""
        diagram = parse_flowchart("flowchart TD\n Q{Is it ready?} --> R[Process data]")
        assert diagram.nodes["Q"].label == "Is it ready?"
        assert diagram.nodes["R"].label == "Process data"

    def test_explicit_overrides_bare(self):
        """Test an explicit declaration replaces a bare reference."""
        diagram = parse_flowchart("flowchart TD\n A --> B\n B((Ball))")
        assert diagram.nodes["B"] == Node("B", "Ball", Shape.CIRCLE)

    def test_first_explicit_wins(self):
        """Test the first explicit declaration wins."""
        diagram = parse_flowchart("flowchart TD\n A[One] --> B\n A(Two) --> C")
        assert diagram.nodes["A"] == Node("A", "One", Shape.RECTANGLE)

    def test_insertion_order(self):
        """Test nodes keep first-mention order."""
        diagram = parse_flowchart("flowchart TD\n C --> A\n B --> A")
        assert list(diagram.nodes) == ["C", "A", "B"]

    def test_empty_label(self):
        """Test a node with an empty label."""
        diagram = parse_flowchart("flowchart TD\n A[] --> B")
        assert diagram.nodes["A"].label == ""


class TestEdges:
    """Tests for connectors, labels and chains."""

    @pytest.mark.parametrize(
        "connector,connection",
        [
            ("-->", ConnectionType.ARROW),
            ("---", ConnectionType.LINE),
            ("==>", ConnectionType.THICK),
            ("-.->", ConnectionType.DOTTED),
            ("-.-", ConnectionType.DASHED),
        ],
    )
    def test_connectors(self, connector, connection):
        """Test parsing every connector."""
        diagram = parse_flowchart(f"flowchart TD\n A {connector} B")
        assert diagram.edges == (Edge("A", "B", connection),)

    def test_connector_without_spaces(self):
        """Test connectors without surrounding spaces."""
        diagram = parse_flowchart("flowchart TD\n A-->B")
        assert diagram.edges == (Edge("A", "B"),)

    def test_edge_label(self):
        """Test parsing an edge label."""
        diagram = parse_flowchart("flowchart TD\n A -->|Yes please| B")
        assert diagram.edges[0].label == "Yes please"

    def test_empty_edge_label_is_none(self):
        """Test an empty edge label becomes None."""
        diagram = parse_flowchart("flowchart TD\n A -->|| B")
        assert diagram.edges[0].label is None

    def test_chain(self):
        """Test a chain gives one edge per hop."""
        diagram = parse_flowchart("flowchart TD\n A --> B ==> C -.->|x| D")
        assert diagram.edges == (
            Edge("A", "B", ConnectionType.ARROW),
            Edge("B", "C", ConnectionType.THICK),
            Edge("C", "D", ConnectionType.DOTTED, "x"),
        )

    def test_comments_blank_lines_and_semicolons(self):
        """Test comments, blank lines and semicolons are skipped."""
        diagram = parse_flowchart(
            """
            flowchart TD;
                %% the start
                A --> B;

                B --> C
            """
        )
        assert len(diagram.edges) == 2

    def test_self_and_parallel_edges(self):
        """Test self edges and parallel edges are kept."""
        diagram = parse_flowchart("flowchart TD\n A --> A\n A --> B\n A --> B")
        assert len(diagram.edges) == 3
        assert diagram.edges[0] == Edge("A", "A")


class TestErrors:
    """Tests for malformed lines."""

    def test_unexpected_character(self):
        """Test an unexpected character raises ParseError."""
        with pytest.raises(ParseError, match="Line 2"):
            parse_flowchart("flowchart TD\n A --> B @")

    def test_missing_target(self):
        """Test a connector without a target raises ParseError."""
        with pytest.raises(ParseError, match="Missing target"):
            parse_flowchart("flowchart TD\n A -->")

    def test_missing_connector(self):
        """Test two nodes without a connector raise ParseError."""
        with pytest.raises(ParseError, match="Expected a connector"):
            parse_flowchart("flowchart TD\n A B")

    def test_line_starting_with_connector(self):
        """Test a line starting with a connector raises ParseError."""
        with pytest.raises(ParseError, match="Expected a node"):
            parse_flowchart("flowchart TD\n --> B")

    def test_line_number_counts_from_header(self):
        """Test error line numbers count from the first line."""
        with pytest.raises(ParseError, match="Line 4"):
            parse_flowchart("flowchart TD\n A --> B\n B --> C\n C -->")


class TestTokenize:
    """Tests for Parser.tokenize."""

    def test_token_kinds(self):
        """Test token kinds and attributes."""
        tokens = Parser().tokenize("A[Start] -->|go| B")
        assert [t.kind for t in tokens] == ["node", "connector", "label", "node"]
        assert tokens[0].shape is Shape.RECTANGLE
        assert tokens[1].connection is ConnectionType.ARROW
        assert tokens[2].label == "go"


class TestExtractFlowcharts:
    """Tests for pulling flowcharts out of markdown."""

    def test_single_block(self):
        """Test one fenced block is extracted without its fences."""
        markdown = (
            "# Notes\n\nSome text.\n\n"
            "```mermaid\nflowchart TD\n    A --> B\n    B --> C\n```\n\nMore text."
        )
        expected = "flowchart TD\n    A --> B\n    B --> C"
        assert extract_flowcharts(markdown) == [expected]

    def test_multiple_blocks_in_order(self):
        """Test several blocks come back in document order."""
        markdown = (
            "```mermaid\nflowchart TD\n    A --> B\n```\n\ntext\n\n"
            "```mermaid\nflowchart LR\n    X --> Y\n```\n"
        )
        blocks = extract_flowcharts(markdown)
        assert len(blocks) == 2
        assert "A --> B" in blocks[0]
        assert "X --> Y" in blocks[1]

    def test_other_languages_ignored(self):
        """Test fenced blocks in other languages are skipped."""
        markdown = '```javascript\nconsole.log("no diagram");\n```\n'
        assert extract_flowcharts(markdown) == []

    def test_empty_blocks_ignored(self):
        """Test empty and whitespace-only blocks are skipped."""
        markdown = (
            "```mermaid\n```\n\n"
            "```mermaid\nflowchart TD\n    A --> B\n```\n\n"
            "```mermaid\n\n\n```"
        )
        blocks = extract_flowcharts(markdown)
        assert len(blocks) == 1
        assert "A --> B" in blocks[0]

    def test_tag_is_case_insensitive(self):
        """Test MERMAID and Mermaid tags are recognised."""
        markdown = (
            "```MERMAID\nflowchart TD\n    A --> B\n```\n"
            "```Mermaid\nflowchart LR\n    X --> Y\n```"
        )
        assert len(extract_flowcharts(markdown)) == 2

    def test_blocks_parse(self):
        """Test extracted blocks are valid parser input."""
        markdown = (
            "```mermaid\nflowchart TD\n    A[Start] --> B{Decision}\n"
            "    B -->|Yes| C[Process]\n    B -->|No| D[End]\n```\n\n"
            "```mermaid\nflowchart LR\n    X --> Y --> Z\n```"
        )
        diagrams = [parse_flowchart(block) for block in extract_flowcharts(markdown)]
        assert [len(d.nodes) for d in diagrams] == [4, 3]
        assert diagrams[1].direction is Direction.LR
