"""Parser core: token manipulation, tree building and error recovery."""

from ..lexer import Lexer
from ..syntax import ERROR_NODE, Span, SyntaxNode
from ..tokens import KEYWORDS, OPERATORS, Token, TokenType


class ParseError(Exception):
    def __init__(self, message: str, span: Span):
        self.span = span
        self.message = message
        super().__init__(f"{message} at {span.start}:{span.end}")


_KEYWORD_TYPES = set(KEYWORDS.values())
_OPERATOR_TYPES = set(OPERATORS.values())

# Literal token types and the leaf name they produce
LITERAL_LEAVES = {
    TokenType.STRING: "String",
    TokenType.NUMBER: "Number",
    TokenType.DURATION: "Duration",
    TokenType.DATE: "DateLiteral",
    TokenType.BOOLEAN: "Boolean",
    TokenType.NULL: "Null",
    TokenType.RELATIVE_DATE: "RelativeDate",
}


class ParserBase:
    """Builds a SyntaxNode tree and never raises on malformed input.

    Unexpected tokens are wrapped in error nodes; a missing required element
    becomes a zero-length error node at the start of the next token.
    """

    def __init__(self, source: str):
        self.source = source
        self.tokens: list[Token] = Lexer(source, recover=True).tokenize()
        self.pos = 0

    # ---- Token helpers ----

    def _peek(self, offset: int = 0) -> Token:
        pos = self.pos + offset
        if pos < len(self.tokens):
            return self.tokens[pos]
        return self.tokens[-1]  # EOF

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TokenType.EOF:
            self.pos += 1
        return tok

    def _at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _check(self, *types: TokenType) -> bool:
        return self._peek().type in types

    # ---- Tree helpers ----

    def _leaf(self, name: str | None = None) -> SyntaxNode:
        """Consume the current token as a leaf node."""
        tok = self._advance()
        if name is None:
            name = leaf_name(tok)
        return SyntaxNode(name, tok.start, tok.end)

    def _expect(self, parent: SyntaxNode, token_type: TokenType,
                msg: str, name: str | None = None) -> bool:
        """Append the expected token as a leaf, or a missing-element error."""
        if self._check(token_type):
            parent.append(self._leaf(name))
            return True
        parent.append(self._missing(msg))
        return False

    def _missing(self, msg: str) -> SyntaxNode:
        at = self._peek().start
        return SyntaxNode(ERROR_NODE, at, at, is_error=True, message=msg)

    def _invalid(self) -> SyntaxNode:
        """Consume an INVALID token as an error node carrying the lexer message."""
        tok = self._advance()
        return SyntaxNode(ERROR_NODE, tok.start, tok.end, is_error=True,
                          message=tok.message or f"Unexpected '{tok.value}'")

    def _skip_until(self, stop: set[TokenType]) -> SyntaxNode | None:
        """Wrap consecutive unexpected tokens in one error node."""
        if self._at_end() or self._peek().type in stop:
            return None
        first = self._peek()
        message = first.message or f"Unexpected '{first.value}'"
        last = first
        while not self._at_end() and self._peek().type not in stop:
            last = self._advance()
        return SyntaxNode(ERROR_NODE, first.start, last.end, is_error=True,
                          message=message)

    @staticmethod
    def _start(name: str, first: SyntaxNode) -> SyntaxNode:
        node = SyntaxNode(name, first.start, first.end)
        node.append(first)
        return node

    @staticmethod
    def _finish(node: SyntaxNode) -> SyntaxNode:
        """Stretch a composite node's span over its children."""
        if node.children:
            node.start = node.children[0].start
            node.end = node.children[-1].end
        return node


def leaf_name(tok: Token) -> str:
    """Type name of the leaf node a token becomes."""
    if tok.type in LITERAL_LEAVES:
        return LITERAL_LEAVES[tok.type]
    if tok.type == TokenType.IDENT:
        return "Identifier"
    if tok.type == TokenType.BUILTIN:
        return "BuiltinIdentifier"
    if tok.type in _KEYWORD_TYPES:
        return tok.value.lower()
    if tok.type in _OPERATOR_TYPES:
        return tok.value
    return ERROR_NODE
