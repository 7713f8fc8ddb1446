"""Lexer for TQL.

Produces tokens with half-open character offsets. In recovering mode (the
default, used by the editor-facing parser) malformed input becomes INVALID
tokens carrying the error message instead of raising LexerError.
"""

import re

from .syntax import Span
from .tokens import DURATION_UNITS, KEYWORDS, OPERATORS, Token, TokenType


class LexerError(Exception):
    def __init__(self, message: str, span: Span):
        self.span = span
        self.message = message
        super().__init__(f"{message} at {span.start}:{span.end}")


_ISO_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})(?:T(\d{2}):(\d{2}):(\d{2}))?")

_ESCAPES = {"\\": "\\", '"': '"', "n": "\n", "t": "\t"}


def is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_" or ch == "-"


class Lexer:
    def __init__(self, source: str, recover: bool = True):
        self.source = source
        self.recover = recover
        self.pos = 0
        self.tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        while self.pos < len(self.source):
            self._skip_whitespace_and_comments()
            if self.pos >= len(self.source):
                break

            start = self.pos
            try:
                self._read_token()
            except LexerError as e:
                if not self.recover:
                    raise
                end = max(e.span.end, start + 1)
                self.pos = end
                self.tokens.append(Token(TokenType.INVALID, self.source[start:end],
                                         start, end, message=e.message))

        self.tokens.append(Token(TokenType.EOF, "", len(self.source), len(self.source)))
        return self.tokens

    def _read_token(self):
        ch = self._peek()
        if ch == '"':
            self._read_string()
        elif ch.isdigit():
            self._read_number_or_date()
        elif ch == "$":
            self._read_builtin()
        elif ch.isalpha() or ch == "_":
            self._read_identifier()
        else:
            self._read_operator()

    # --- Character helpers ---

    def _peek(self, offset: int = 0) -> str:
        pos = self.pos + offset
        if pos < len(self.source):
            return self.source[pos]
        return "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        return ch

    def _emit(self, token_type: TokenType, value: str, start: int):
        self.tokens.append(Token(token_type, value, start, self.pos))

    # --- Whitespace and comments ---

    def _skip_whitespace_and_comments(self):
        while self.pos < len(self.source):
            ch = self._peek()
            if ch in (" ", "\t", "\n", "\r"):
                self._advance()
            elif ch == "/" and self._peek(1) == "/":
                while self.pos < len(self.source) and self._peek() != "\n":
                    self._advance()
            else:
                break

    # --- Literals ---

    def _read_string(self):
        start = self.pos
        self._advance()  # opening quote
        value = []
        while self.pos < len(self.source) and self._peek() != '"':
            if self._peek() == "\\":
                self._advance()
                if self.pos >= len(self.source):
                    raise LexerError("Unterminated escape sequence",
                                     Span(start, self.pos))
                escaped = self._advance()
                if escaped not in _ESCAPES:
                    raise LexerError(f"Invalid escape sequence: \\{escaped}",
                                     Span(self.pos - 2, self.pos))
                value.append(_ESCAPES[escaped])
            elif self._peek() == "\n":
                raise LexerError("Unterminated string", Span(start, self.pos))
            else:
                value.append(self._advance())

        if self.pos >= len(self.source):
            raise LexerError("Unterminated string", Span(start, self.pos))
        self._advance()  # closing quote
        self._emit(TokenType.STRING, "".join(value), start)

    def _read_number_or_date(self):
        start = self.pos
        m = _ISO_DATE.match(self.source, self.pos)
        if m and _valid_date(m):
            self.pos = m.end()
            self._emit(TokenType.DATE, m.group(0), start)
            return

        while self._peek().isdigit():
            self._advance()
        if self._peek() == "." and self._peek(1).isdigit():
            self._advance()
            while self._peek().isdigit():
                self._advance()

        suffix = self._peek()
        if suffix in DURATION_UNITS and not self._peek(1).isalnum():
            self._advance()
            self._emit(TokenType.DURATION, self.source[start:self.pos], start)
            return
        self._emit(TokenType.NUMBER, self.source[start:self.pos], start)

    # --- Identifier / keyword ---

    def _read_identifier(self):
        start = self.pos
        while self.pos < len(self.source) and is_identifier_char(self._peek()):
            self._advance()
        value = self.source[start:self.pos]
        token_type = KEYWORDS.get(value.lower(), TokenType.IDENT)
        self._emit(token_type, value, start)

    def _read_builtin(self):
        start = self.pos
        self._advance()  # $
        if not (self._peek().isalpha() or self._peek() == "_"):
            raise LexerError("Expected identifier after '$'", Span(start, self.pos))
        while self.pos < len(self.source) and (self._peek().isalnum() or self._peek() == "_"):
            self._advance()
        self._emit(TokenType.BUILTIN, self.source[start:self.pos], start)

    # --- Operators and punctuation (longest match) ---

    def _read_operator(self):
        start = self.pos
        for op, token_type in OPERATORS.items():
            if self.source.startswith(op, self.pos):
                self.pos += len(op)
                self._emit(token_type, op, start)
                return
        ch = self._peek()
        raise LexerError(f"Unexpected character '{ch}'", Span(start, start + 1))


def _valid_date(m: re.Match) -> bool:
    month, day = int(m.group(2)), int(m.group(3))
    if month < 1 or month > 12 or day < 1 or day > 31:
        return False
    if m.group(4) is not None:
        if int(m.group(4)) > 23 or int(m.group(5)) > 59 or int(m.group(6)) > 59:
            return False
    return True


def tokenize(source: str, recover: bool = True) -> list[Token]:
    return Lexer(source, recover=recover).tokenize()
