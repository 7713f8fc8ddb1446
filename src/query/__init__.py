"""TQL query language core: parser, construct registry and rewriter."""

from .lexer import Lexer as Lexer, LexerError as LexerError
from .parser import Parser as Parser, ParseError as ParseError, parse as parse
from .converter import build_ast as build_ast, parse_query as parse_query
from .registry import (
    Registry as Registry,
    RegistrationConflict as RegistrationConflict,
    RegistryFrozenError as RegistryFrozenError,
)
from .catalog import build_registry as build_registry, default_registry as default_registry
from .rewrite import rewrite_relation as rewrite_relation
