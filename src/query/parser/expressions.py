"""Expression parsing: precedence climbing from `or` down to primaries."""

from ..tokens import COMPARE_OPERATORS, KEYWORDS, TokenType
from .core import LITERAL_LEAVES

EXPR_START = {
    TokenType.STRING, TokenType.NUMBER, TokenType.DURATION, TokenType.DATE,
    TokenType.BOOLEAN, TokenType.NULL, TokenType.RELATIVE_DATE,
    TokenType.IDENT, TokenType.BUILTIN, TokenType.LPAREN,
    TokenType.NOT, TokenType.BANG, TokenType.INVALID,
}

# Property segments after '.' may reuse keyword spellings (file.desc)
_SEGMENT_TYPES = {TokenType.IDENT} | set(KEYWORDS.values())


class ExpressionsMixin:

    def _can_start_expr(self) -> bool:
        return self._peek().type in EXPR_START

    def _parse_expr(self):
        return self._parse_or()

    def _parse_or(self):
        left = self._parse_and()
        while self._check(TokenType.OR):
            node = self._start("OrExpr", left)
            node.append(self._leaf())
            node.append(self._parse_and())
            left = self._finish(node)
        return left

    def _parse_and(self):
        left = self._parse_not()
        while self._check(TokenType.AND):
            node = self._start("AndExpr", left)
            node.append(self._leaf())
            node.append(self._parse_not())
            left = self._finish(node)
        return left

    def _parse_not(self):
        if self._check(TokenType.NOT, TokenType.BANG):
            op = self._leaf()
            node = self._start("NotExpr", op)
            node.append(self._parse_not())
            return self._finish(node)
        return self._parse_compare()

    def _parse_compare(self):
        left = self._parse_arith()
        if self._peek().type in COMPARE_OPERATORS:
            node = self._start("CompareExpr", left)
            node.append(self._leaf())
            node.append(self._parse_arith())
            return self._finish(node)
        if self._check(TokenType.IN):
            node = self._start("InExpr", left)
            node.append(self._leaf())
            right = self._parse_arith()
            if self._check(TokenType.DOT_DOT):
                rng = self._start("RangeExpr", right)
                rng.append(self._leaf())
                rng.append(self._parse_arith())
                right = self._finish(rng)
            node.append(right)
            return self._finish(node)
        return left

    def _parse_arith(self):
        left = self._parse_primary()
        while self._check(TokenType.PLUS, TokenType.MINUS):
            node = self._start("ArithExpr", left)
            node.append(self._leaf())
            node.append(self._parse_primary())
            left = self._finish(node)
        return left

    # ---- Primaries ----

    def _parse_primary(self):
        tok = self._peek()
        if tok.type in LITERAL_LEAVES:
            return self._leaf()
        if tok.type == TokenType.LPAREN:
            node = self._start("ParenExpr", self._leaf())
            node.append(self._parse_expr())
            self._expect(node, TokenType.RPAREN, "Expected ')'")
            return self._finish(node)
        if tok.type == TokenType.BUILTIN:
            node = self._start("BuiltinAccess", self._leaf())
            self._parse_segments(node)
            return self._finish(node)
        if tok.type == TokenType.IDENT:
            if self._peek(1).type == TokenType.LPAREN:
                return self._parse_call()
            node = self._start("PropertyAccess", self._leaf())
            self._parse_segments(node)
            return self._finish(node)
        if tok.type == TokenType.INVALID:
            return self._invalid()
        return self._missing("Expected expression")

    def _parse_segments(self, node):
        while self._check(TokenType.DOT):
            node.append(self._leaf())
            if self._peek().type in _SEGMENT_TYPES:
                node.append(self._leaf("Identifier"))
            else:
                node.append(self._missing("Expected property name"))

    def _parse_call(self):
        node = self._start("FunctionCall", self._leaf("FunctionName"))
        args = self._start("ArgList", self._leaf())  # (
        if not self._check(TokenType.RPAREN):
            args.append(self._parse_expr())
            while self._check(TokenType.COMMA):
                args.append(self._leaf())
                args.append(self._parse_expr())
        self._expect(args, TokenType.RPAREN, "Expected ')'")
        node.append(self._finish(args))
        return self._finish(node)
