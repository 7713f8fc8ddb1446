"""Token type definitions for TQL.

Keywords are case-insensitive: the lexer looks them up by their lowercase
spelling. ``true``/``false`` lex as BOOLEAN and the relative date keywords
as RELATIVE_DATE so the parser can treat them as literals.
"""

from enum import Enum, auto
from dataclasses import dataclass


class TokenType(Enum):
    # Literals
    STRING = auto()
    NUMBER = auto()
    DURATION = auto()
    DATE = auto()
    BOOLEAN = auto()
    NULL = auto()
    RELATIVE_DATE = auto()
    IDENT = auto()
    BUILTIN = auto()       # $file, $traversal, $chain

    # Clause keywords
    GROUP = auto()
    FROM = auto()
    PRUNE = auto()
    WHERE = auto()
    WHEN = auto()
    SORT = auto()
    DISPLAY = auto()

    # Modifier keywords
    DEPTH = auto()
    UNLIMITED = auto()
    EXTEND = auto()
    FLATTEN = auto()
    BY = auto()
    CHAIN = auto()
    ASC = auto()
    DESC = auto()
    ALL = auto()

    # Operator keywords
    AND = auto()
    OR = auto()
    NOT = auto()
    IN = auto()

    # Operators
    EQ = auto()            # =
    NOT_EQ = auto()        # !=
    LT = auto()            # <
    GT = auto()            # >
    LT_EQ = auto()         # <=
    GT_EQ = auto()         # >=
    EQ_NULL = auto()       # =?
    NOT_EQ_NULL = auto()   # !=?
    PLUS = auto()          # +
    MINUS = auto()         # -
    BANG = auto()          # !
    DOT_DOT = auto()       # ..

    # Delimiters
    LPAREN = auto()        # (
    RPAREN = auto()        # )
    COMMA = auto()         # ,
    DOT = auto()           # .

    # Special
    INVALID = auto()
    EOF = auto()


@dataclass
class Token:
    type: TokenType
    value: str
    start: int
    end: int
    message: str = ""  # set on INVALID tokens

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, {self.start}:{self.end})"


# Keyword lookup table: lowercase spelling -> TokenType
KEYWORDS: dict[str, TokenType] = {
    "group": TokenType.GROUP,
    "from": TokenType.FROM,
    "prune": TokenType.PRUNE,
    "where": TokenType.WHERE,
    "when": TokenType.WHEN,
    "sort": TokenType.SORT,
    "display": TokenType.DISPLAY,
    "depth": TokenType.DEPTH,
    "unlimited": TokenType.UNLIMITED,
    "extend": TokenType.EXTEND,
    "flatten": TokenType.FLATTEN,
    "by": TokenType.BY,
    "chain": TokenType.CHAIN,
    "asc": TokenType.ASC,
    "desc": TokenType.DESC,
    "all": TokenType.ALL,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "in": TokenType.IN,
    "true": TokenType.BOOLEAN,
    "false": TokenType.BOOLEAN,
    "null": TokenType.NULL,
    "today": TokenType.RELATIVE_DATE,
    "yesterday": TokenType.RELATIVE_DATE,
    "tomorrow": TokenType.RELATIVE_DATE,
    "startofweek": TokenType.RELATIVE_DATE,
    "endofweek": TokenType.RELATIVE_DATE,
}

# Operator lookup table, longest spelling first for greedy matching
OPERATORS: dict[str, TokenType] = {
    "!=?": TokenType.NOT_EQ_NULL,
    "!=": TokenType.NOT_EQ,
    "=?": TokenType.EQ_NULL,
    "<=": TokenType.LT_EQ,
    ">=": TokenType.GT_EQ,
    "..": TokenType.DOT_DOT,
    "=": TokenType.EQ,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "!": TokenType.BANG,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
}

COMPARE_OPERATORS: set[TokenType] = {
    TokenType.EQ, TokenType.NOT_EQ, TokenType.LT, TokenType.GT,
    TokenType.LT_EQ, TokenType.GT_EQ, TokenType.EQ_NULL, TokenType.NOT_EQ_NULL,
}

CLAUSE_KEYWORDS: set[TokenType] = {
    TokenType.GROUP, TokenType.FROM, TokenType.PRUNE, TokenType.WHERE,
    TokenType.WHEN, TokenType.SORT, TokenType.DISPLAY,
}

DURATION_UNITS = "dwmy"
