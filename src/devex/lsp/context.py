"""Cursor-to-context resolution for TQL completion.

Maps a cursor offset in a parsed query to the ordered set of completion
contexts that apply there, by walking outward from the innermost syntax
node to the first ancestor whose construct opens any context.
"""

from __future__ import annotations

from src.query.descriptors import CompletionContext
from src.query.registry import Registry
from src.query.syntax import SyntaxNode, SyntaxTree


def is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_.$"


def word_start(text: str, offset: int) -> int:
    """Start of the in-progress word ending at ``offset``."""
    start = offset
    while start > 0 and is_word_char(text[start - 1]):
        start -= 1
    return start


def anchor_offset(text: str, offset: int) -> int:
    """Where context is resolved: before the in-progress word and any whitespace."""
    anchor = word_start(text, offset)
    while anchor > 0 and text[anchor - 1] in " \t\r\n":
        anchor -= 1
    return anchor


def resolve_contexts(tree: SyntaxTree, offset: int,
                     registry: Registry) -> tuple[CompletionContext, ...]:
    anchor = anchor_offset(tree.text, offset)
    node = tree.resolve_inner(anchor, -1)
    while node.is_error and node.parent is not None:
        node = node.parent

    contexts = list(_innermost_provided(node, registry))
    if not contexts:
        contexts = [CompletionContext.CLAUSE_BOUNDARY]
    if CompletionContext.CLAUSE_BOUNDARY not in contexts:
        contexts.append(CompletionContext.CLAUSE_BOUNDARY)
    return tuple(contexts)


def _innermost_provided(node: SyntaxNode, registry: Registry) -> tuple[CompletionContext, ...]:
    expression_nodes = registry.get_expression_node_names()
    expression_clauses = registry.get_expression_clause_names()

    for current in node.ancestors():
        if current.parent is None:
            return _top_level_contexts(current, registry)
        if current.name in expression_nodes:
            # A value in a plain slot (depth number, group name, sort key)
            parent = current.parent.name
            if parent not in expression_clauses and parent not in expression_nodes:
                continue
        provided = registry.get_provided_contexts(current.name)
        if provided:
            return provided
    return ()


def _top_level_contexts(top: SyntaxNode, registry: Registry) -> tuple[CompletionContext, ...]:
    """Contexts at query level depend on which leading clauses already exist."""
    if top.get_child("Group") is None:
        return registry.get_provided_contexts(top.name)
    if top.get_child("From") is None:
        return registry.get_provided_contexts("Group")
    return ()
