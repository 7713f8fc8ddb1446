"""Clause parsing: group, from (relation specs and modifiers), prune,
where, when, sort and display."""

from ..syntax import ERROR_NODE, SyntaxNode
from ..tokens import CLAUSE_KEYWORDS, TokenType

# Clause keyword -> syntax node name
CLAUSE_NODES = {
    TokenType.GROUP: "Group",
    TokenType.FROM: "From",
    TokenType.PRUNE: "Prune",
    TokenType.WHERE: "Where",
    TokenType.WHEN: "When",
    TokenType.SORT: "Sort",
    TokenType.DISPLAY: "Display",
}


class ClausesMixin:

    def _parse_query(self) -> SyntaxNode:
        query = SyntaxNode("Query", 0, len(self.source))
        seen: set[TokenType] = set()

        # group and from are required, in that order
        for kind, keyword in ((TokenType.GROUP, "group"), (TokenType.FROM, "from")):
            self._skip_junk(query)
            if self._check(kind):
                query.append(self._parse_clause(kind))
                seen.add(kind)
            else:
                query.append(self._missing(f"Expected '{keyword}'"))

        while not self._at_end():
            if self._skip_junk(query):
                continue
            kind = self._peek().type
            clause = self._parse_clause(kind)
            if kind in seen or kind in (TokenType.GROUP, TokenType.FROM):
                keyword = clause.children[0].name
                reason = "Duplicate" if kind in seen else "Misplaced"
                wrapper = SyntaxNode(ERROR_NODE, clause.start, clause.end, is_error=True,
                                     message=f"{reason} '{keyword}' clause")
                wrapper.append(clause)
                query.append(wrapper)
            else:
                seen.add(kind)
                query.append(clause)
        return query

    def _skip_junk(self, query: SyntaxNode) -> bool:
        junk = self._skip_until(CLAUSE_KEYWORDS)
        if junk is not None:
            query.append(junk)
            return True
        return False

    def _parse_clause(self, kind: TokenType) -> SyntaxNode:
        node = SyntaxNode(CLAUSE_NODES[kind], 0, 0)
        node.append(self._leaf())
        if kind == TokenType.GROUP:
            self._expect(node, TokenType.STRING, "Expected group name string")
        elif kind == TokenType.FROM:
            self._parse_from_body(node)
        elif kind == TokenType.SORT:
            self._parse_sort_body(node)
        elif kind == TokenType.DISPLAY:
            self._parse_display_body(node)
        elif self._can_start_expr():
            node.append(self._parse_expr())
        else:
            node.append(self._missing("Expected expression"))
        return self._finish(node)

    # ---- from ----

    def _parse_from_body(self, node: SyntaxNode):
        node.append(self._parse_relation_spec())
        while self._check(TokenType.COMMA):
            node.append(self._leaf())
            node.append(self._parse_relation_spec())

    def _parse_relation_spec(self) -> SyntaxNode:
        if not self._check(TokenType.IDENT):
            return self._missing("Expected relation name")
        spec = self._start("RelationSpec", self._leaf())
        if self._check(TokenType.DOT):
            label = SyntaxNode("Label", 0, 0)
            while self._check(TokenType.DOT):
                label.append(self._leaf())
                self._expect(label, TokenType.IDENT, "Expected label name", "Identifier")
            spec.append(self._finish(label))
        while self._check(TokenType.DEPTH, TokenType.EXTEND, TokenType.FLATTEN):
            spec.append(self._parse_modifier())
        return self._finish(spec)

    def _parse_modifier(self) -> SyntaxNode:
        kind = self._peek().type
        if kind == TokenType.DEPTH:
            node = self._start("Depth", self._leaf())
            if self._check(TokenType.NUMBER, TokenType.UNLIMITED):
                node.append(self._leaf())
            else:
                node.append(self._missing("Expected a number or 'unlimited'"))
        elif kind == TokenType.EXTEND:
            node = self._start("Extend", self._leaf())
            if self._check(TokenType.IDENT, TokenType.STRING):
                node.append(self._leaf())
            else:
                node.append(self._missing("Expected group name"))
        else:
            node = self._start("Flatten", self._leaf())
            if self._check(TokenType.NUMBER):
                node.append(self._leaf())
        return self._finish(node)

    # ---- sort ----

    def _parse_sort_body(self, node: SyntaxNode):
        if self._check(TokenType.BY):
            node.append(self._leaf())
        # An empty key list is left to validation, so a half-typed
        # `sort by` does not make the whole query unparseable
        if not (self._check(TokenType.CHAIN) or self._can_start_expr()):
            return
        node.append(self._parse_sort_key())
        while self._check(TokenType.COMMA):
            node.append(self._leaf())
            node.append(self._parse_sort_key())

    def _parse_sort_key(self) -> SyntaxNode:
        if self._check(TokenType.CHAIN):
            key = self._start("SortKey", self._leaf())
        elif self._can_start_expr():
            key = self._start("SortKey", self._parse_expr())
        else:
            return self._missing("Expected sort key")
        if self._check(TokenType.ASC, TokenType.DESC):
            key.append(self._leaf())
        return self._finish(key)

    # ---- display ----

    def _parse_display_body(self, node: SyntaxNode):
        if not (self._check(TokenType.ALL) or self._can_start_expr()):
            node.append(self._missing("Expected display list"))
            return
        items = SyntaxNode("DisplayList", 0, 0)
        if self._check(TokenType.ALL):
            items.append(self._leaf())
        else:
            items.append(self._parse_expr())
        while self._check(TokenType.COMMA):
            items.append(self._leaf())
            items.append(self._parse_expr())
        node.append(self._finish(items))
