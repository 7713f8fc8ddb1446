"""Relation rename: rewrite relation references in query text.

All-or-nothing: text that does not parse cleanly is returned unchanged.
Only the relation name of each relation spec is rewritten; labels, group
names, extend targets and expressions are never touched.
"""

from __future__ import annotations

import logging

from .parser import parse
from .relations import normalize_relation_name, same_relation
from .syntax import Span, SyntaxNode

logger = logging.getLogger(__name__)


def find_relation_references(root: SyntaxNode, text: str, name: str) -> list[Span]:
    """Spans of every relation-spec identifier whose normalized text is ``name``."""
    spans: list[Span] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.name == "RelationSpec":
            # Compare the direct identifier only; labels and modifiers are skipped
            ident = node.get_child("Identifier")
            if ident is not None and normalize_relation_name(text[ident.start:ident.end]) == name:
                spans.append(ident.span)
            continue
        stack.extend(node.children)
    return spans


def rewrite_relation(text: str, old_name: str, new_name: str) -> str:
    old = normalize_relation_name(old_name)
    new = new_name.strip()
    if not text or not old or not new or same_relation(old_name, new_name):
        return text

    tree = parse(text)
    if tree.has_errors():
        logger.debug("Not rewriting '%s': query has syntax errors", old)
        return text

    spans = find_relation_references(tree.top, text, old)
    if not spans:
        return text

    # Rightmost first so earlier offsets stay valid
    result = text
    for span in sorted(spans, key=lambda s: s.start, reverse=True):
        result = result[:span.start] + new + result[span.end:]
    logger.debug("Renamed %d reference(s) to '%s' as '%s'", len(spans), old, new)
    return result
