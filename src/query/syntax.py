"""Generic syntax tree produced by the TQL parser.

Every parsed construct, down to single keyword and operator tokens, is a
``SyntaxNode`` with a type name, a half-open source span, a parent link and
ordered children. Error-recovery nodes are ordinary nodes flagged with
``is_error``. Editor features (context resolution, highlighting, rewriting)
walk this one tree shape instead of the typed AST.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

ERROR_NODE = "⚠"


@dataclass(frozen=True)
class Span:
    """Half-open offset range ``[start, end)`` into the source text."""

    start: int
    end: int

    def contains(self, other: Span) -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(eq=False)
class SyntaxNode:
    name: str
    start: int
    end: int
    children: list[SyntaxNode] = field(default_factory=list)
    parent: Optional[SyntaxNode] = None
    is_error: bool = False
    message: str = ""

    @property
    def span(self) -> Span:
        return Span(self.start, self.end)

    def append(self, child: SyntaxNode) -> SyntaxNode:
        child.parent = self
        self.children.append(child)
        return child

    def get_child(self, name: str) -> Optional[SyntaxNode]:
        """Return the first direct child with the given type name."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def get_children(self, name: str) -> list[SyntaxNode]:
        return [c for c in self.children if c.name == name]

    def ancestors(self) -> Iterator[SyntaxNode]:
        """Yield this node and then each parent up to the root."""
        node: Optional[SyntaxNode] = self
        while node is not None:
            yield node
            node = node.parent

    def walk(self) -> Iterator[SyntaxNode]:
        """Pre-order traversal of this node and its descendants."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        flag = " error" if self.is_error else ""
        return f"SyntaxNode({self.name!r} {self.start}..{self.end}{flag})"


class SyntaxTree:
    """A parsed query: the top node plus the text it was parsed from."""

    def __init__(self, text: str, top: SyntaxNode):
        self.text = text
        self.top = top

    def text_of(self, node: SyntaxNode) -> str:
        return self.text[node.start:node.end]

    def iterate(self) -> Iterator[SyntaxNode]:
        return self.top.walk()

    def errors(self) -> list[SyntaxNode]:
        return [n for n in self.iterate() if n.is_error]

    def has_errors(self) -> bool:
        return any(n.is_error for n in self.iterate())

    def resolve_inner(self, pos: int, side: int = -1) -> SyntaxNode:
        """Return the innermost node around ``pos``.

        With ``side=-1`` a node must satisfy ``start < pos <= end``, so a
        token that ends at ``pos`` wins over one that starts there. With
        ``side=1`` the bias is reversed; ``side=0`` accepts both. Zero-length
        nodes are only entered with ``side=0``. Falls back to the top node.
        """
        node = self.top
        while True:
            for child in node.children:
                if _covers(child, pos, side):
                    node = child
                    break
            else:
                return node

    def __repr__(self) -> str:
        return f"SyntaxTree({self.top!r})"


def _covers(node: SyntaxNode, pos: int, side: int) -> bool:
    if side < 0:
        return node.start < pos <= node.end
    if side > 0:
        return node.start <= pos < node.end
    return node.start <= pos <= node.end


def dump(node: SyntaxNode, text: str, indent: int = 0) -> str:
    """Render a tree as indented text (for debugging and test failures)."""
    pad = "  " * indent
    label = node.name
    if not node.children:
        label += f" {text[node.start:node.end]!r}"
    if node.is_error and node.message:
        label += f" ({node.message})"
    lines = [f"{pad}{label} [{node.start}:{node.end}]"]
    for child in node.children:
        lines.append(dump(child, text, indent + 1))
    return "\n".join(lines)
