"""Construct descriptors: the declarative record each TQL construct registers.

A descriptor ties together the keywords a construct claims, the syntax node
type it corresponds to, its documentation and highlighting, and the
completion contexts it participates in (``provides``: where it is
suggested; ``provided_contexts``: what it opens for nested content).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CompletionContext(Enum):
    START_OF_QUERY = "start-of-query"
    AFTER_GROUP_NAME = "after-group-name"
    AFTER_FROM = "after-from"
    AFTER_RELATION = "after-relation"
    AFTER_DEPTH = "after-depth"
    EXPRESSION = "expression"
    AFTER_EXPRESSION = "after-expression"
    SORT_KEY = "sort-key"
    DISPLAY_LIST = "display-list"
    CLAUSE_BOUNDARY = "clause-boundary"


# Contexts where only one specific token is valid; clause keywords are not
# suggested while any of these is active.
SLOT_CONTEXTS = frozenset({
    CompletionContext.START_OF_QUERY,
    CompletionContext.AFTER_GROUP_NAME,
    CompletionContext.AFTER_FROM,
    CompletionContext.AFTER_DEPTH,
})

# Contexts that also offer functions, namespaces and built-in properties
DATA_CONTEXTS = frozenset({
    CompletionContext.EXPRESSION,
    CompletionContext.AFTER_EXPRESSION,
    CompletionContext.SORT_KEY,
    CompletionContext.DISPLAY_LIST,
})

# Contexts that also offer relation names from the relation supplier
RELATION_CONTEXTS = frozenset({
    CompletionContext.AFTER_FROM,
    CompletionContext.AFTER_RELATION,
})


class CompletionCategory(Enum):
    KEYWORD = "keyword"
    OPERATOR = "operator"
    FUNCTION = "function"
    PROPERTY = "property"
    VALUE = "value"


class HighlightCategory(Enum):
    KEYWORD = "keyword"
    TYPE_NAME = "typeName"
    OPERATOR_KEYWORD = "operatorKeyword"
    OPERATOR = "operator"
    STRING = "string"
    NUMBER = "number"
    ATOM = "atom"
    FUNCTION = "function"
    PROPERTY = "property"
    VARIABLE = "variable"
    PUNCTUATION = "punctuation"


@dataclass(frozen=True)
class NodeDoc:
    """Hover/completion documentation for one construct."""

    title: str
    description: str
    syntax: Optional[str] = None
    examples: tuple[str, ...] = ()
    return_type: Optional[str] = None


@dataclass(frozen=True)
class ConstructDescriptor:
    name: str
    keywords: tuple[str, ...] = ()
    node_type: Optional[str] = None
    category: CompletionCategory = CompletionCategory.KEYWORD
    snippet: Optional[str] = None
    doc: Optional[NodeDoc] = None
    highlighting: Optional[HighlightCategory] = None
    provides: tuple[CompletionContext, ...] = ()
    provided_contexts: tuple[CompletionContext, ...] = ()
    clause: bool = False
    expression: bool = False
    expression_clause: bool = False
