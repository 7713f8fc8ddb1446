"""Syntax tree to typed AST conversion."""

from __future__ import annotations

from .ast_nodes import (
    AndExpr, ArithExpr, BooleanLiteral, BuiltinAccess, CallExpr, CompareExpr,
    DateLiteral, DepthModifier, DisplayClause, DurationLiteral, ExprNode,
    ExtendModifier, FlattenModifier, FromClause, GroupClause, InExpr, NotExpr,
    NullLiteral, NumberLiteral, OrExpr, PropertyAccess, PruneClause, Query,
    RangeExpr, RelationSpec, RelativeDate, SortClause, SortKey, StringLiteral,
    TokenNode, WhenClause, WhereClause,
)
from .lexer import Lexer
from .parser import ParseError, parse
from .syntax import SyntaxNode, SyntaxTree

_BINARY = {
    "OrExpr": OrExpr,
    "AndExpr": AndExpr,
    "CompareExpr": CompareExpr,
    "ArithExpr": ArithExpr,
    "InExpr": InExpr,
    "RangeExpr": RangeExpr,
}

_EXPRESSION_CLAUSES = {
    "Prune": PruneClause,
    "Where": WhereClause,
    "When": WhenClause,
}

_RELATIVE_DATES = {
    "today": "today",
    "yesterday": "yesterday",
    "tomorrow": "tomorrow",
    "startofweek": "startOfWeek",
    "endofweek": "endOfWeek",
}


def parse_query(text: str) -> Query:
    """Strict parse: raise ParseError on the first syntax error."""
    return build_ast(parse(text))


def build_ast(tree: SyntaxTree) -> Query:
    """Convert a syntax tree into a Query node.

    Raises ParseError (carrying the error's span) if the tree contains any
    error-recovery node.
    """
    for node in tree.iterate():
        if node.is_error:
            raise ParseError(node.message or "Syntax error", node.span)
    return _Converter(tree).query(tree.top)


class _Converter:
    def __init__(self, tree: SyntaxTree):
        self.tree = tree

    def text(self, node: SyntaxNode) -> str:
        return self.tree.text_of(node)

    # ---- Clauses ----

    def query(self, node: SyntaxNode) -> Query:
        q = Query(span=node.span)
        for child in node.children:
            if child.name == "Group":
                q.group = GroupClause(span=child.span, name=self.string(child.children[1]))
            elif child.name == "From":
                q.from_ = FromClause(span=child.span, relations=[
                    self.relation(c) for c in child.get_children("RelationSpec")])
            elif child.name in _EXPRESSION_CLAUSES:
                clause = _EXPRESSION_CLAUSES[child.name]
                setattr(q, child.name.lower(),
                        clause(span=child.span, expr=self.expr(child.children[1])))
            elif child.name == "Sort":
                q.sort = SortClause(span=child.span, keys=[
                    self.sort_key(c) for c in child.get_children("SortKey")])
            elif child.name == "Display":
                q.display = self.display(child)
        return q

    def relation(self, node: SyntaxNode) -> RelationSpec:
        ident = node.children[0]
        spec = RelationSpec(span=node.span, name=self.text(ident), name_span=ident.span)
        for child in node.children[1:]:
            if child.name == "Label":
                spec.label = [self.text(c) for c in child.get_children("Identifier")]
            elif child.name == "Depth":
                spec.depth = self.depth(child)
            elif child.name == "Extend":
                target = child.children[1]
                group = self.string(target) if target.name == "String" else self.text(target)
                spec.extend = ExtendModifier(span=child.span, group=group)
            elif child.name == "Flatten":
                spec.flatten = self.flatten(child)
        return spec

    def depth(self, node: SyntaxNode) -> DepthModifier:
        arg = node.children[1]
        text = self.text(arg)
        if arg.name == "unlimited":
            return DepthModifier(span=node.span, value="unlimited", text=text)
        value = int(text) if text.isdigit() else float(text)
        return DepthModifier(span=node.span, value=value, text=text)

    def flatten(self, node: SyntaxNode) -> FlattenModifier:
        if len(node.children) < 2:
            return FlattenModifier(span=node.span)
        text = self.text(node.children[1])
        level = int(text) if text.isdigit() else None
        return FlattenModifier(span=node.span, level=level, text=text)

    def sort_key(self, node: SyntaxNode) -> SortKey:
        first = node.children[0]
        if first.name == "chain":
            key = TokenNode(span=first.span, keyword="chain")
        else:
            key = self.expr(first)
        direction = "asc"
        if len(node.children) > 1:
            direction = node.children[-1].name
        return SortKey(span=node.span, key=key, direction=direction)

    def display(self, node: SyntaxNode) -> DisplayClause:
        clause = DisplayClause(span=node.span)
        items = node.get_child("DisplayList")
        for child in items.children:
            if child.name == "all":
                clause.all = True
            elif child.name != ",":
                clause.items.append(self.expr(child))
        return clause

    # ---- Expressions ----

    def expr(self, node: SyntaxNode) -> ExprNode:
        name = node.name
        span = node.span
        if name in _BINARY:
            left, op, right = node.children
            return _BINARY[name](span=span, left=self.expr(left), op=op.name,
                                 right=self.expr(right))
        if name == "NotExpr":
            return NotExpr(span=span, operand=self.expr(node.children[1]))
        if name == "ParenExpr":
            return self.expr(node.children[1])
        if name == "FunctionCall":
            args = node.children[1]
            return CallExpr(span=span, name=self.text(node.children[0]),
                            args=[self.expr(c) for c in args.children[1:-1]
                                  if c.name != ","])
        if name == "PropertyAccess":
            return PropertyAccess(span=span, path=self.segments(node))
        if name == "BuiltinAccess":
            return BuiltinAccess(span=span, namespace=self.text(node.children[0]),
                                 path=self.segments(node)[1:])
        return self.literal(node)

    def segments(self, node: SyntaxNode) -> list[str]:
        return [self.text(c) for c in node.children if c.name != "."]

    def literal(self, node: SyntaxNode) -> ExprNode:
        text = self.text(node)
        span = node.span
        if node.name == "String":
            return StringLiteral(span=span, value=self.string(node))
        if node.name == "Number":
            return NumberLiteral(span=span, value=float(text))
        if node.name == "Duration":
            return DurationLiteral(span=span, amount=float(text[:-1]), unit=text[-1])
        if node.name == "DateLiteral":
            return DateLiteral(span=span, value=text)
        if node.name == "Boolean":
            return BooleanLiteral(span=span, value=text.lower() == "true")
        if node.name == "Null":
            return NullLiteral(span=span)
        if node.name == "RelativeDate":
            return RelativeDate(span=span, kind=_RELATIVE_DATES[text.lower()])
        raise ParseError(f"Unexpected {node.name} in expression", span)

    def string(self, node: SyntaxNode) -> str:
        """Decoded value of a String leaf (escapes resolved)."""
        tokens = Lexer(self.text(node), recover=False).tokenize()
        return tokens[0].value