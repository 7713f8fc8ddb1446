"""Typed AST for TQL queries.

Built from a clean syntax tree by ``converter.build_ast``. Every node owns a
span and implements ``validate(ctx)``, which recursively validates children
and records diagnostics on the context instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from .syntax import Span
from .validation import (
    INVALID_ARITY, INVALID_VALUE, UNKNOWN_FUNCTION, UNKNOWN_GROUP,
    UNKNOWN_NAMESPACE, UNKNOWN_PROPERTY, UNKNOWN_RELATION, ValidationContext,
)


@dataclass
class Node:
    span: Span = Span(0, 0)

    def children(self) -> Iterator[Node]:
        return iter(())

    def validate(self, ctx: ValidationContext) -> None:
        for child in self.children():
            child.validate(ctx)

    def walk(self) -> Iterator[Node]:
        """Pre-order traversal of this node and its descendants."""
        yield self
        for child in self.children():
            yield from child.walk()


# ---------------------------------------------------------------------------
# Token nodes
# ---------------------------------------------------------------------------

@dataclass
class TokenNode(Node):
    """An atomic keyword leaf that carries no value (``chain``, ``all``)."""

    keyword: str = ""


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass
class ExprNode(Node):
    pass


@dataclass
class StringLiteral(ExprNode):
    value: str = ""


@dataclass
class NumberLiteral(ExprNode):
    value: float = 0.0


@dataclass
class DurationLiteral(ExprNode):
    amount: float = 0.0
    unit: str = "d"  # d, w, m or y


@dataclass
class DateLiteral(ExprNode):
    value: str = ""  # ISO date, optionally with time


@dataclass
class BooleanLiteral(ExprNode):
    value: bool = False


@dataclass
class NullLiteral(ExprNode):
    pass


@dataclass
class RelativeDate(ExprNode):
    kind: str = "today"  # today, yesterday, tomorrow, startOfWeek, endOfWeek


@dataclass
class BinaryExpr(ExprNode):
    left: Optional[ExprNode] = None
    op: str = ""
    right: Optional[ExprNode] = None

    def children(self) -> Iterator[Node]:
        if self.left is not None:
            yield self.left
        if self.right is not None:
            yield self.right


@dataclass
class OrExpr(BinaryExpr):
    op: str = "or"


@dataclass
class AndExpr(BinaryExpr):
    op: str = "and"


@dataclass
class CompareExpr(BinaryExpr):
    pass


@dataclass
class ArithExpr(BinaryExpr):
    pass


@dataclass
class RangeExpr(BinaryExpr):
    """``lower..upper``, only valid on the right of ``in``."""

    op: str = ".."


@dataclass
class InExpr(BinaryExpr):
    op: str = "in"


@dataclass
class NotExpr(ExprNode):
    operand: Optional[ExprNode] = None

    def children(self) -> Iterator[Node]:
        if self.operand is not None:
            yield self.operand


@dataclass
class PropertyAccess(ExprNode):
    path: list[str] = field(default_factory=list)

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


@dataclass
class BuiltinAccess(ExprNode):
    """A ``$namespace`` reference, optionally followed by a property path."""

    namespace: str = ""
    path: list[str] = field(default_factory=list)

    def validate(self, ctx: ValidationContext) -> None:
        ns = ctx.get_namespace(self.namespace)
        if ns is None:
            valid = ", ".join(n.name for n in ctx.namespaces)
            ctx.add_error(f"Unknown built-in namespace: {self.namespace}. "
                          f"Valid namespaces: {valid}", self.span, UNKNOWN_NAMESPACE)
            return
        if self.path and ns.properties:
            names = [p.name for p in ns.properties]
            if self.path[0] not in names:
                ctx.add_error(f"Unknown property '{self.path[0]}' for {ns.name}",
                              self.span, UNKNOWN_PROPERTY)


@dataclass
class CallExpr(ExprNode):
    name: str = ""
    args: list[ExprNode] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        return iter(self.args)

    def validate(self, ctx: ValidationContext) -> None:
        fn = ctx.get_function(self.name)
        count = len(self.args)
        if fn is None:
            ctx.add_error(f"Unknown function: {self.name}", self.span, UNKNOWN_FUNCTION)
        elif count < fn.min_arity:
            ctx.add_error(f"{self.name}() requires at least {fn.min_arity} argument(s), "
                          f"got {count}", self.span, INVALID_ARITY)
        elif not fn.accepts(count):
            ctx.add_error(f"{self.name}() accepts at most {fn.max_arity} argument(s), "
                          f"got {count}", self.span, INVALID_ARITY)
        super().validate(ctx)


# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------

@dataclass
class ModifierNode(Node):
    pass


@dataclass
class DepthModifier(ModifierNode):
    value: Union[int, str] = "unlimited"  # int or "unlimited"
    text: str = ""

    def validate(self, ctx: ValidationContext) -> None:
        if self.value == "unlimited":
            return
        if not isinstance(self.value, int):
            ctx.add_error(f"Depth must be a whole number, got {self.text}",
                          self.span, INVALID_VALUE)


@dataclass
class ExtendModifier(ModifierNode):
    group: str = ""


@dataclass
class FlattenModifier(ModifierNode):
    level: Optional[int] = None  # None flattens everything
    text: str = ""

    def validate(self, ctx: ValidationContext) -> None:
        if self.text and self.level is None:
            ctx.add_error(f"Flatten level must be a whole number, got {self.text}",
                          self.span, INVALID_VALUE)


@dataclass
class SortKey(ModifierNode):
    key: Union[ExprNode, TokenNode, None] = None
    direction: str = "asc"

    @property
    def is_chain(self) -> bool:
        return isinstance(self.key, TokenNode) and self.key.keyword == "chain"

    def children(self) -> Iterator[Node]:
        if self.key is not None:
            yield self.key


# ---------------------------------------------------------------------------
# Clauses
# ---------------------------------------------------------------------------

@dataclass
class ClauseNode(Node):
    pass


@dataclass
class GroupClause(ClauseNode):
    name: str = ""


@dataclass
class RelationSpec(ClauseNode):
    name: str = ""
    name_span: Span = Span(0, 0)
    label: list[str] = field(default_factory=list)
    depth: Optional[DepthModifier] = None
    extend: Optional[ExtendModifier] = None
    flatten: Optional[FlattenModifier] = None

    def children(self) -> Iterator[Node]:
        for mod in (self.depth, self.extend, self.flatten):
            if mod is not None:
                yield mod

    def validate(self, ctx: ValidationContext) -> None:
        if not ctx.has_relation(self.name):
            ctx.add_error(f"Unknown relation: {self.name}", self.name_span, UNKNOWN_RELATION)
        if self.extend is not None and not ctx.has_group(self.extend.group):
            ctx.add_error(f"Unknown group for extend: {self.extend.group}",
                          self.extend.span, UNKNOWN_GROUP)
        super().validate(ctx)


@dataclass
class FromClause(ClauseNode):
    relations: list[RelationSpec] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        return iter(self.relations)


@dataclass
class ExpressionClause(ClauseNode):
    """A clause whose body is a single expression (prune, where, when)."""

    keyword: str = ""
    expr: Optional[ExprNode] = None

    def children(self) -> Iterator[Node]:
        if self.expr is not None:
            yield self.expr


@dataclass
class PruneClause(ExpressionClause):
    keyword: str = "prune"


@dataclass
class WhereClause(ExpressionClause):
    keyword: str = "where"


@dataclass
class WhenClause(ExpressionClause):
    keyword: str = "when"


@dataclass
class SortClause(ClauseNode):
    keys: list[SortKey] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        return iter(self.keys)

    def validate(self, ctx: ValidationContext) -> None:
        if not self.keys:
            ctx.add_error("Expected sort key", self.span, INVALID_VALUE)
        super().validate(ctx)


@dataclass
class DisplayClause(ClauseNode):
    all: bool = False
    items: list[ExprNode] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        return iter(self.items)


@dataclass
class Query(Node):
    group: Optional[GroupClause] = None
    from_: Optional[FromClause] = None
    prune: Optional[PruneClause] = None
    where: Optional[WhereClause] = None
    when: Optional[WhenClause] = None
    sort: Optional[SortClause] = None
    display: Optional[DisplayClause] = None

    def children(self) -> Iterator[Node]:
        for clause in (self.group, self.from_, self.prune, self.where,
                       self.when, self.sort, self.display):
            if clause is not None:
                yield clause
