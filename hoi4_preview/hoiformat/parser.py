"""Parser for the game's ``key = value`` / ``key = { ... }`` script format."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field

from ..errors import ParseError

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<ws>\s+)
    | (?P<comment>\#[^\n]*)
    | (?P<string>"(?:[^"\\\n]|\\.)*")
    | (?P<op><=|>=|!=|==|[=<>])
    | (?P<brace>[{}])
    | (?P<symbol>[^\s=<>{}"\#]+)
    """,
    re.VERBOSE,
)


@dataclass
class Token:
    kind: str
    text: str
    start: int
    end: int


@dataclass
class Node:
    """One statement of a script file.

    ``name`` is None for bare list items (``xor = { a b }``) and anonymous
    blocks. ``value`` is a string for scalars and a list of child nodes for
    blocks.
    """

    name: str | None
    operator: str | None = None
    value: str | list[Node] | None = None
    start: int = 0
    end: int = 0
    quoted: bool = False
    name_token: Token | None = field(default=None, repr=False, compare=False)

    @property
    def is_block(self) -> bool:
        return isinstance(self.value, list)

    @property
    def children(self) -> list[Node]:
        return self.value if isinstance(self.value, list) else []

    def find(self, name: str) -> Node | None:
        """First child with ``name`` (keys are case-insensitive)."""
        return next(self.find_all(name), None)

    def find_all(self, name: str) -> Iterator[Node]:
        lowered = name.lower()
        return (child for child in self.children if child.name is not None and child.name.lower() == lowered)

    def bare_values(self) -> list[str]:
        """Values of nameless scalar children, e.g. the items of ``{ a b c }``."""
        return [child.value for child in self.children if child.name is None and isinstance(child.value, str)]

    def string(self, name: str, default: str | None = None) -> str | None:
        child = self.find(name)
        if child is None or not isinstance(child.value, str):
            return default
        return child.value

    def number(self, name: str, default: float | None = None, variables: dict[str, float] | None = None) -> float | None:
        text = self.string(name)
        if text is None:
            return default
        return to_number(text, default, variables)


def to_number(text: str, default: float | None = None, variables: dict[str, float] | None = None) -> float | None:
    """Convert a scalar to a number, resolving ``@variable`` references."""
    if text.startswith("@") and variables is not None:
        return variables.get(text.lower(), default)
    try:
        return float(text)
    except ValueError:
        return default


def _line_column(text: str, offset: int) -> tuple[int, int]:
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def tokenize(text: str, file: str | None = None) -> list[Token]:
    tokens = []
    position = 0
    while position < len(text):
        match = _TOKEN_PATTERN.match(text, position)
        if match is None:
            line, column = _line_column(text, position)
            raise ParseError("Unterminated string", file, line, column)
        kind = match.lastgroup
        if kind not in ("ws", "comment"):
            tokens.append(Token(kind=kind, text=match.group(), start=match.start(), end=match.end()))
        position = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str, file: str | None):
        self.text = text
        self.file = file
        self.tokens = tokenize(text, file)
        self.index = 0

    def error(self, message: str, offset: int) -> ParseError:
        line, column = _line_column(self.text, offset)
        return ParseError(message, self.file, line, column)

    def peek(self) -> Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def next(self) -> Token | None:
        token = self.peek()
        if token is not None:
            self.index += 1
        return token

    def parse_block(self, closed_by_brace: bool, opened_at: int = 0) -> list[Node]:
        children: list[Node] = []
        while True:
            token = self.peek()
            if token is None:
                if closed_by_brace:
                    raise self.error("Missing closing brace", opened_at)
                return children
            if token.kind == "brace" and token.text == "}":
                if not closed_by_brace:
                    raise self.error("Unexpected closing brace", token.start)
                return children
            children.append(self.parse_statement())

    def parse_statement(self) -> Node:
        token = self.next()
        if token.kind == "brace":
            block, end = self.parse_braced(token)
            return Node(name=None, value=block, start=token.start, end=end)
        if token.kind == "op":
            raise self.error(f"Unexpected operator '{token.text}'", token.start)

        following = self.peek()
        if following is None or following.kind != "op":
            return Node(name=None, value=_unquote(token), start=token.start, end=token.end, quoted=token.kind == "string")

        operator = self.next()
        value_token = self.next()
        if value_token is None or value_token.kind == "op" or value_token.text == "}":
            raise self.error(f"Missing value after '{operator.text}'", operator.start)

        if value_token.kind == "brace":
            block, end = self.parse_braced(value_token)
            return Node(
                name=_unquote(token),
                operator=operator.text,
                value=block,
                start=token.start,
                end=end,
                name_token=token,
            )

        return Node(
            name=_unquote(token),
            operator=operator.text,
            value=_unquote(value_token),
            start=token.start,
            end=value_token.end,
            quoted=value_token.kind == "string",
            name_token=token,
        )

    def parse_braced(self, opening: Token) -> tuple[list[Node], int]:
        block = self.parse_block(closed_by_brace=True, opened_at=opening.start)
        closing = self.next()
        return block, closing.end


def _unquote(token: Token) -> str:
    if token.kind == "string":
        return token.text[1:-1].replace('\\"', '"')
    return token.text


def parse_hoi4_file(text: str, file: str | None = None) -> Node:
    """Parse script text into a root block node.

    Raises:
        ParseError: On unbalanced braces, dangling operators or unterminated strings
    """
    parser = _Parser(text, file)
    children = parser.parse_block(closed_by_brace=False)
    return Node(name=None, value=children, start=0, end=len(text))


def collect_variables(root: Node) -> dict[str, float]:
    """Numeric ``@name = value`` definitions anywhere at the top two levels."""
    variables: dict[str, float] = {}
    for node in (root, *root.children):
        for child in node.children:
            if child.name and child.name.startswith("@") and isinstance(child.value, str):
                number = to_number(child.value, variables=variables)
                if number is not None:
                    variables[child.name.lower()] = number
    return variables
