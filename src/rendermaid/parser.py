"""
Parser module for flowchart text.

Handles parsing of Mermaid-style flowchart text into a Diagram:

    flowchart TD
        A[Start] --> B{Decision}
        B -->|Yes| C([Done])
        B -.-> D((Retry))
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from .models import ConnectionType, Diagram, Direction, Edge, Node, Shape


class ParseError(Exception):
    """Raised when input parsing fails."""

    pass


@dataclass
class Token:
    """A lexical token from one line of input."""

    kind: str  # 'node', 'connector' or 'label'
    value: str
    position: int
    shape: Optional[Shape] = None
    label: Optional[str] = None
    connection: Optional[ConnectionType] = None


class Parser:
    """Parses flowchart text into a Diagram."""

    HEADER_PATTERN = re.compile(r"^(?:flowchart|graph)\s+(TD|TB|BT|RL|LR)\s*;?$")

    IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"

    # Longest delimiters first so '((' is not read as '('
    SHAPE_PATTERNS: List[Tuple["re.Pattern[str]", Shape]] = [
        (re.compile(rf"({IDENTIFIER})\(\[([^\]]*)\]\)"), Shape.STADIUM),
        (re.compile(rf"({IDENTIFIER})\(\(([^)]*)\)\)"), Shape.CIRCLE),
        (re.compile(rf"({IDENTIFIER})\{{\{{([^}}]*)\}}\}}"), Shape.HEXAGON),
        (re.compile(rf"({IDENTIFIER})\{{([^}}]*)\}}"), Shape.RHOMBUS),
        (re.compile(rf"({IDENTIFIER})\(([^)]*)\)"), Shape.ROUNDED),
        (re.compile(rf"({IDENTIFIER})\[([^\]]*)\]"), Shape.RECTANGLE),
    ]

    CONNECTOR_PATTERNS: List[Tuple["re.Pattern[str]", ConnectionType]] = [
        (re.compile(r"-\.->"), ConnectionType.DOTTED),
        (re.compile(r"-\.-"), ConnectionType.DASHED),
        (re.compile(r"==>"), ConnectionType.THICK),
        (re.compile(r"-->"), ConnectionType.ARROW),
        (re.compile(r"---"), ConnectionType.LINE),
    ]

    BARE_NODE_PATTERN = re.compile(IDENTIFIER)
    LABEL_PATTERN = re.compile(r"\|([^|]*)\|")
    WHITESPACE_PATTERN = re.compile(r"\s+")

    def parse(self, input_text: str) -> Diagram:
        """
        Parse flowchart text.

        Args:
            input_text: Multi-line string starting with a
                ``flowchart <DIR>`` (or ``graph <DIR>``) header.

        Returns:
            The parsed Diagram.

        Raises:
            ParseError: If the header is missing or a line cannot be parsed.
        """
        lines = input_text.strip().split("\n")
        header_index, direction = self._parse_header(lines)

        nodes: Dict[str, Node] = {}
        explicit: Set[str] = set()
        edges: List[Edge] = []

        for line_num, line in enumerate(lines[header_index + 1 :], header_index + 2):
            stripped = line.strip().rstrip(";")

            # Skip empty lines and comments
            if not stripped or stripped.startswith("%%"):
                continue

            tokens = self.tokenize(stripped, line_num)
            for token in tokens:
                if token.kind == "node":
                    self._register_node(token, nodes, explicit)
            edges.extend(self._edges_from_tokens(tokens, line_num, stripped))

        return Diagram(direction=direction, nodes=nodes, edges=tuple(edges))

    def _parse_header(self, lines: List[str]) -> Tuple[int, Direction]:
        for index, line in enumerate(lines):
            stripped = line.strip()
            if not stripped or stripped.startswith("%%"):
                continue
            match = self.HEADER_PATTERN.match(stripped)
            if not match:
                raise ParseError(
                    f"Line {index + 1}: Expected 'flowchart <TD|TB|BT|RL|LR>' "
                    f"header, got: {stripped}"
                )
            return index, Direction(match.group(1))
        raise ParseError("Empty input")

    def tokenize(self, line: str, line_num: int = 0) -> List[Token]:
        """
        Split one line into node, connector and label tokens.

        Raises:
            ParseError: On characters that start no known token.
        """
        tokens: List[Token] = []
        position = 0

        while position < len(line):
            ws = self.WHITESPACE_PATTERN.match(line, position)
            if ws:
                position = ws.end()
                continue

            token = self._match_token(line, position)
            if token is None:
                raise ParseError(
                    f"Line {line_num}: Unexpected character {line[position]!r} "
                    f"at column {position + 1}: {line}"
                )
            tokens.append(token)
            position += len(token.value)

        return tokens

    def _match_token(self, line: str, position: int) -> Optional[Token]:
        for pattern, shape in self.SHAPE_PATTERNS:
            match = pattern.match(line, position)
            if match:
                return Token(
                    "node",
                    match.group(0),
                    position,
                    shape=shape,
                    label=match.group(2).strip(),
                )

        for pattern, connection in self.CONNECTOR_PATTERNS:
            match = pattern.match(line, position)
            if match:
                return Token(
                    "connector", match.group(0), position, connection=connection
                )

        match = self.LABEL_PATTERN.match(line, position)
        if match:
            return Token("label", match.group(0), position, label=match.group(1).strip())

        match = self.BARE_NODE_PATTERN.match(line, position)
        if match:
            return Token("node", match.group(0), position)

        return None

    def _register_node(
        self, token: Token, nodes: Dict[str, Node], explicit: Set[str]
    ) -> None:
        """Add a node, letting the first explicit declaration win."""
        node_id = self._node_id(token)
        if token.shape is None:
            if node_id not in nodes:
                nodes[node_id] = Node(node_id, node_id, Shape.RECTANGLE)
            return

        if node_id in explicit:
            return
        nodes[node_id] = Node(node_id, token.label or "", token.shape)
        explicit.add(node_id)

    def _node_id(self, token: Token) -> str:
        match = self.BARE_NODE_PATTERN.match(token.value)
        return match.group(0)

    def _edges_from_tokens(
        self, tokens: List[Token], line_num: int, line: str
    ) -> List[Edge]:
        """Read ``node (connector [label] node)*`` into edges."""
        if not tokens or tokens[0].kind != "node":
            raise ParseError(f"Line {line_num}: Expected a node: {line}")

        edges: List[Edge] = []
        previous = self._node_id(tokens[0])
        index = 1

        while index < len(tokens):
            connector = tokens[index]
            if connector.kind != "connector":
                raise ParseError(
                    f"Line {line_num}: Expected a connector after '{previous}': {line}"
                )
            index += 1

            label = None
            if index < len(tokens) and tokens[index].kind == "label":
                label = tokens[index].label or None
                index += 1

            if index >= len(tokens) or tokens[index].kind != "node":
                raise ParseError(f"Line {line_num}: Missing target node: {line}")

            target = self._node_id(tokens[index])
            edges.append(Edge(previous, target, connector.connection, label))
            previous = target
            index += 1

        return edges


def parse_flowchart(input_text: str) -> Diagram:
    """
    Convenience function to parse flowchart input.

    Args:
        input_text: Flowchart text with a header line

    Returns:
        Parsed Diagram
    """
    parser = Parser()
    return parser.parse(input_text)


MARKDOWN_FENCE = re.compile(r"```mermaid\s*\n?(.*?)\n?```", re.IGNORECASE | re.DOTALL)


def extract_flowcharts(markdown: str) -> List[str]:
    """
    Extract the bodies of ```mermaid fenced blocks from markdown text.

    The fence tag is matched case-insensitively. Bodies are stripped, and
    blocks that are empty or hold nothing but backticks are skipped.

    Args:
        markdown: Markdown document text

    Returns:
        Block bodies in document order, ready for ``parse_flowchart``
    """
    blocks = []
    for match in MARKDOWN_FENCE.finditer(markdown):
        body = match.group(1).strip()
        if body and body.strip("`"):
            blocks.append(body)
    return blocks
