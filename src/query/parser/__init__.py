from .parser import Parser, ParseError, parse

__all__ = ["Parser", "ParseError", "parse"]
