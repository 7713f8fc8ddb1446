"""Semantic validation context and diagnostics.

``Node.validate`` never raises: every problem it finds is recorded on the
ValidationContext as a Diagnostic with a stable code, and all diagnostics
are accumulated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .builtins import FUNCTIONS, NAMESPACES, BuiltinNamespace, FunctionDef
from .relations import normalize_relation_name
from .syntax import Span

UNKNOWN_RELATION = "UNKNOWN_RELATION"
UNKNOWN_GROUP = "UNKNOWN_GROUP"
UNKNOWN_FUNCTION = "UNKNOWN_FUNCTION"
UNKNOWN_NAMESPACE = "UNKNOWN_NAMESPACE"
UNKNOWN_PROPERTY = "UNKNOWN_PROPERTY"
INVALID_ARITY = "INVALID_ARITY"
INVALID_VALUE = "INVALID_VALUE"


@dataclass(frozen=True)
class Diagnostic:
    message: str
    span: Span
    code: str = ""

    @property
    def start(self) -> int:
        return self.span.start

    @property
    def end(self) -> int:
        return self.span.end


@dataclass
class ValidationContext:
    """What validation knows about the world.

    ``relation_names`` / ``group_names`` of None mean "unknown": the
    corresponding checks are skipped rather than flagging everything.
    """

    relation_names: Optional[Iterable[str]] = None
    group_names: Optional[Iterable[str]] = None
    functions: tuple[FunctionDef, ...] = FUNCTIONS
    namespaces: tuple[BuiltinNamespace, ...] = NAMESPACES
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def __post_init__(self):
        self._relations = (None if self.relation_names is None else
                           {normalize_relation_name(r) for r in self.relation_names})
        self._groups = None if self.group_names is None else set(self.group_names)
        self._functions = {f.name: f for f in self.functions}
        self._namespaces = {ns.name: ns for ns in self.namespaces}

    def has_relation(self, name: str) -> bool:
        return self._relations is None or normalize_relation_name(name) in self._relations

    def has_group(self, name: str) -> bool:
        return self._groups is None or name in self._groups

    def get_function(self, name: str) -> Optional[FunctionDef]:
        return self._functions.get(name)

    def get_namespace(self, name: str) -> Optional[BuiltinNamespace]:
        return self._namespaces.get(name)

    def add_error(self, message: str, span: Span, code: str = ""):
        self.diagnostics.append(Diagnostic(message, span, code))
