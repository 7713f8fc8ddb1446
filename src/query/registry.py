"""Registry of TQL constructs.

Descriptors are registered once at start-up, in a fixed order, and the
registry is then frozen. Registration order is suggestion order. Every
keyword and every syntax node type may be claimed by one descriptor only;
a second claim is rejected with RegistrationConflict.
"""

from __future__ import annotations

import logging
from typing import Optional

from .builtins import FUNCTIONS, NAMESPACES, BuiltinNamespace, BuiltinProperty, FunctionDef
from .builtins import flattened_properties
from .descriptors import CompletionContext, ConstructDescriptor, HighlightCategory

logger = logging.getLogger(__name__)


class RegistrationConflict(Exception):
    def __init__(self, claim: str, existing: str, incoming: str):
        self.claim = claim
        self.existing = existing
        self.incoming = incoming
        super().__init__(
            f"'{claim}' is already registered by '{existing}', cannot register '{incoming}'")


class RegistryFrozenError(Exception):
    pass


class Registry:
    def __init__(self, functions: tuple[FunctionDef, ...] = FUNCTIONS,
                 namespaces: tuple[BuiltinNamespace, ...] = NAMESPACES):
        self._descriptors: list[ConstructDescriptor] = []
        self._names: set[str] = set()
        self._by_keyword: dict[str, ConstructDescriptor] = {}
        self._by_node_type: dict[str, ConstructDescriptor] = {}
        self._functions: dict[str, FunctionDef] = {f.name: f for f in functions}
        self._namespaces: dict[str, BuiltinNamespace] = {ns.name: ns for ns in namespaces}
        self._expression_nodes: frozenset[str] = frozenset()
        self._expression_clauses: frozenset[str] = frozenset()
        self._frozen = False

    # ---- Lifecycle ----

    def register(self, descriptor: ConstructDescriptor) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register '{descriptor.name}': registry is frozen")
        if descriptor.name in self._names:
            raise RegistrationConflict(descriptor.name, descriptor.name, descriptor.name)

        # Check every claim before mutating anything
        keywords = [kw.lower() for kw in descriptor.keywords]
        for kw in keywords:
            if kw in self._by_keyword:
                raise RegistrationConflict(kw, self._by_keyword[kw].name, descriptor.name)
        node_type = descriptor.node_type
        if node_type is not None and node_type in self._by_node_type:
            raise RegistrationConflict(node_type, self._by_node_type[node_type].name,
                                       descriptor.name)

        self._descriptors.append(descriptor)
        self._names.add(descriptor.name)
        for kw in keywords:
            self._by_keyword[kw] = descriptor
        if node_type is not None:
            self._by_node_type[node_type] = descriptor

    def freeze(self) -> Registry:
        if self._frozen:
            return self
        self._expression_nodes = frozenset(
            d.node_type for d in self._descriptors if d.expression and d.node_type)
        self._expression_clauses = frozenset(
            d.node_type for d in self._descriptors if d.expression_clause and d.node_type)
        self._frozen = True
        logger.debug("Registry frozen with %d constructs", len(self._descriptors))
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ---- Context queries ----

    def get_completables_for_context(self, ctx: CompletionContext) -> tuple[ConstructDescriptor, ...]:
        return tuple(d for d in self._descriptors if ctx in d.provides)

    def get_provided_contexts(self, node_type: str) -> tuple[CompletionContext, ...]:
        descriptor = self._by_node_type.get(node_type)
        if descriptor is None:
            return ()
        return descriptor.provided_contexts

    def get_expression_clause_names(self) -> frozenset[str]:
        return self._expression_clauses

    def get_expression_node_names(self) -> frozenset[str]:
        return self._expression_nodes

    # ---- Lookups ----

    @property
    def descriptors(self) -> tuple[ConstructDescriptor, ...]:
        return tuple(self._descriptors)

    def get_by_keyword(self, keyword: str) -> Optional[ConstructDescriptor]:
        return self._by_keyword.get(keyword.lower())

    def get_by_node_type(self, node_type: str) -> Optional[ConstructDescriptor]:
        return self._by_node_type.get(node_type)

    def get_clause_keywords(self) -> dict[str, str]:
        """Clause node type -> its keyword (``Where`` -> ``where``)."""
        return {d.node_type: d.keywords[0] for d in self._descriptors
                if d.clause and d.node_type and d.keywords}

    def keywords_by_highlighting(self, category: HighlightCategory) -> list[str]:
        result = []
        for d in self._descriptors:
            if d.highlighting == category:
                result.extend(kw.lower() for kw in d.keywords)
        return result

    def highlighting_for(self, node_type: str) -> Optional[HighlightCategory]:
        """Highlight category of a syntax node type, via its node type or keyword."""
        descriptor = self._by_node_type.get(node_type) or self._by_keyword.get(node_type)
        if descriptor is None:
            return None
        return descriptor.highlighting

    @property
    def functions(self) -> tuple[FunctionDef, ...]:
        return tuple(self._functions.values())

    @property
    def namespaces(self) -> tuple[BuiltinNamespace, ...]:
        return tuple(self._namespaces.values())

    def get_function(self, name: str) -> Optional[FunctionDef]:
        return self._functions.get(name)

    def get_namespace(self, name: str) -> Optional[BuiltinNamespace]:
        return self._namespaces.get(name)

    def builtin_properties(self) -> list[BuiltinProperty]:
        return flattened_properties(tuple(self._namespaces.values()))

    def __len__(self) -> int:
        return len(self._descriptors)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"Registry({len(self._descriptors)} constructs, {state})"


def register_construct(registry: Registry, construct_id: str,
                       descriptor: ConstructDescriptor) -> None:
    """Registration entry point: register ``descriptor`` under ``construct_id``."""
    if descriptor.name != construct_id:
        raise ValueError(
            f"Descriptor name '{descriptor.name}' does not match construct id '{construct_id}'")
    registry.register(descriptor)
