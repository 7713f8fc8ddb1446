"""Semantic tokens provider for TQL.

Classifies every leaf of the syntax tree through the registry's
highlighting categories, so keywords, literals and built-ins are coloured
from the same construct catalog that drives completion:
- Clause keywords vs modifier keywords (``depth``, ``asc``) as types
- Logical operators (``and``, ``not``) vs symbolic operators
- Property path segments after ``.`` as properties
- Built-in functions and ``$`` namespaces as default-library symbols
"""

from __future__ import annotations
from typing import Optional

from lsprotocol import types as lsp

from src.query.descriptors import HighlightCategory
from src.query.parser import parse
from src.query.registry import Registry
from src.query.syntax import SyntaxNode, SyntaxTree


# LSP Semantic Token Types (order matters: index is the type ID)
TOKEN_TYPES = [
    "keyword",        # 0 - clause keywords, logical operators
    "type",           # 1 - relation modifiers
    "operator",       # 2
    "string",         # 3
    "number",         # 4
    "enumMember",     # 5 - booleans, null, relative dates, date literals
    "function",       # 6
    "property",       # 7
    "variable",       # 8 - relation names, labels
]

# LSP Semantic Token Modifiers (bit flags)
TOKEN_MODIFIERS = [
    "defaultLibrary", # 0
]

_TYPE_INDEX = {name: i for i, name in enumerate(TOKEN_TYPES)}
_MOD_INDEX = {name: i for i, name in enumerate(TOKEN_MODIFIERS)}

LEGEND = lsp.SemanticTokensLegend(
    token_types=TOKEN_TYPES,
    token_modifiers=TOKEN_MODIFIERS,
)

_CATEGORY_TYPES = {
    HighlightCategory.KEYWORD: "keyword",
    HighlightCategory.TYPE_NAME: "type",
    HighlightCategory.OPERATOR_KEYWORD: "keyword",
    HighlightCategory.OPERATOR: "operator",
    HighlightCategory.STRING: "string",
    HighlightCategory.NUMBER: "number",
    HighlightCategory.ATOM: "enumMember",
    HighlightCategory.FUNCTION: "function",
    HighlightCategory.PROPERTY: "property",
    HighlightCategory.VARIABLE: "variable",
}

# Categories backed by the built-in tables rather than user data
_LIBRARY_CATEGORIES = {HighlightCategory.FUNCTION, HighlightCategory.PROPERTY,
                       HighlightCategory.ATOM}


def _mod_bits(*modifiers: str) -> int:
    """Compute modifier bitmask from modifier names."""
    bits = 0
    for m in modifiers:
        if m in _MOD_INDEX:
            bits |= (1 << _MOD_INDEX[m])
    return bits


# ---------------------------------------------------------------------------
# Semantic token collection
# ---------------------------------------------------------------------------

class SemanticTokenCollector:
    """Walks the syntax tree leaves to assign semantic token types."""

    def __init__(self, tree: SyntaxTree, registry: Registry):
        self.tree = tree
        self.registry = registry
        # Line start offsets, for offset -> (line, col)
        self.line_starts = [0]
        for i, ch in enumerate(tree.text):
            if ch == "\n":
                self.line_starts.append(i + 1)

        # Raw semantic tokens: [(line, col, length, type_index, modifier_bits)]
        self.raw_tokens: list[tuple[int, int, int, int, int]] = []

    def collect(self) -> list[int]:
        """Walk all leaves and classify them. Returns LSP-encoded token data."""
        for node in self.tree.iterate():
            if node.children or node.is_error or node.start == node.end:
                continue
            category = self.classify(node)
            if category is None or category not in _CATEGORY_TYPES:
                continue
            mods = _mod_bits("defaultLibrary") if category in _LIBRARY_CATEGORIES else 0
            self._add(node, _TYPE_INDEX[_CATEGORY_TYPES[category]], mods)

        return self._encode()

    def classify(self, leaf: SyntaxNode) -> Optional[HighlightCategory]:
        parent = leaf.parent
        if leaf.name == "Identifier" and parent is not None:
            if parent.name == "PropertyAccess" and parent.children[0] is not leaf:
                return HighlightCategory.PROPERTY
            if parent.name == "BuiltinAccess":
                return HighlightCategory.PROPERTY
            if parent.name == "Extend":
                return HighlightCategory.STRING
        return self.registry.highlighting_for(leaf.name)

    def _add(self, node: SyntaxNode, type_idx: int, mods: int):
        line = self._line_of(node.start)
        col = node.start - self.line_starts[line]
        self.raw_tokens.append((line, col, node.end - node.start, type_idx, mods))

    def _line_of(self, offset: int) -> int:
        lo, hi = 0, len(self.line_starts) - 1
        while lo < hi:
            mid = (lo + hi + 1) // 2
            if self.line_starts[mid] <= offset:
                lo = mid
            else:
                hi = mid - 1
        return lo

    def _encode(self) -> list[int]:
        """Encode raw tokens into LSP delta format."""
        self.raw_tokens.sort(key=lambda t: (t[0], t[1]))

        data: list[int] = []
        prev_line = 0
        prev_col = 0

        for line, col, length, type_idx, mods in self.raw_tokens:
            delta_line = line - prev_line
            delta_col = col - prev_col if delta_line == 0 else col
            data.extend([delta_line, delta_col, length, type_idx, mods])
            prev_line = line
            prev_col = col

        return data


def get_semantic_tokens(source: str, registry: Registry) -> lsp.SemanticTokens:
    """Compute semantic tokens for a document."""
    collector = SemanticTokenCollector(parse(source), registry)
    return lsp.SemanticTokens(data=collector.collect())
