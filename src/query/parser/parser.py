"""Parser assembly: combines the parsing mixins into the final Parser class."""

from ..syntax import SyntaxTree
from .clauses import ClausesMixin
from .core import ParserBase, ParseError
from .expressions import ExpressionsMixin


class Parser(
    ClausesMixin,
    ExpressionsMixin,
    ParserBase,
):
    """Error-recovering recursive descent parser for TQL."""

    def parse(self) -> SyntaxTree:
        return SyntaxTree(self.source, self._parse_query())


def parse(text: str) -> SyntaxTree:
    """Parse query text into a syntax tree. Never raises."""
    return Parser(text).parse()


__all__ = ["Parser", "ParseError", "parse"]
