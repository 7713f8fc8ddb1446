"""Code completion provider for TQL.

Turns resolved completion contexts into suggestions: static constructs from
the registry, then functions, built-in namespaces and properties for
data-driven contexts, relation names from the injected supplier, and clause
keywords not used yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from lsprotocol import types as lsp

from src.query.descriptors import (
    DATA_CONTEXTS,
    RELATION_CONTEXTS,
    SLOT_CONTEXTS,
    CompletionCategory,
    CompletionContext,
    ConstructDescriptor,
)
from src.query.parser import parse
from src.query.registry import Registry
from src.query.syntax import SyntaxTree

from src.devex.lsp.context import resolve_contexts, word_start
from src.devex.lsp.utils import position_to_offset, span_to_range

RelationSupplier = Callable[[], Iterable[str]]


@dataclass(frozen=True)
class CompletionItem:
    label: str
    category: CompletionCategory
    detail: str = ""
    documentation: Optional[str] = None
    insert_text: Optional[str] = None
    is_snippet: bool = False


@dataclass
class CompletionList:
    """Suggestions plus the ``[start, end)`` range of text they replace."""

    items: list[CompletionItem]
    start: int
    end: int

    @property
    def labels(self) -> list[str]:
        return [item.label for item in self.items]


def _no_relations() -> list[str]:
    return []


# ---------------------------------------------------------------------------
# Item builders
# ---------------------------------------------------------------------------

def _descriptor_items(descriptor: ConstructDescriptor, seen: set[str]) -> list[CompletionItem]:
    items = []
    description = descriptor.doc.description if descriptor.doc else None
    detail = "clause" if descriptor.clause else descriptor.category.value
    snippet = descriptor.snippet if len(descriptor.keywords) == 1 else None
    for keyword in descriptor.keywords:
        if keyword.lower() in seen:
            continue
        seen.add(keyword.lower())
        items.append(CompletionItem(
            label=keyword,
            category=descriptor.category,
            detail=detail,
            documentation=description,
            insert_text=snippet,
            is_snippet=snippet is not None,
        ))
    return items


def _data_items(registry: Registry) -> list[CompletionItem]:
    items = []
    for fn in registry.functions:
        items.append(CompletionItem(
            label=fn.name,
            category=CompletionCategory.FUNCTION,
            detail=fn.signature,
            documentation=fn.description,
            insert_text=f"{fn.name}(${{1}})",
            is_snippet=True,
        ))
    for ns in registry.namespaces:
        items.append(CompletionItem(
            label=ns.name,
            category=CompletionCategory.PROPERTY,
            detail="built-in",
            documentation=ns.description,
        ))
    for prop in registry.builtin_properties():
        items.append(CompletionItem(
            label=prop.name,
            category=CompletionCategory.PROPERTY,
            detail=prop.type,
            documentation=prop.description,
        ))
    for ns in registry.namespaces:
        for prop in ns.properties:
            items.append(CompletionItem(
                label=f"{ns.name}.{prop.name}",
                category=CompletionCategory.PROPERTY,
                detail=prop.type,
                documentation=prop.description,
            ))
    return items


def _relation_items(relation_names: RelationSupplier) -> list[CompletionItem]:
    return [CompletionItem(label=name, category=CompletionCategory.VALUE, detail="relation")
            for name in relation_names()]


def find_used_clauses(tree: SyntaxTree, registry: Registry) -> set[str]:
    """Keywords of every clause present anywhere in the tree."""
    clause_keywords = registry.get_clause_keywords()
    return {clause_keywords[node.name] for node in tree.iterate()
            if node.name in clause_keywords}


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def assemble_completions(
    tree: SyntaxTree,
    offset: int,
    contexts: Iterable[CompletionContext],
    registry: Registry,
    relation_names: RelationSupplier = _no_relations,
) -> Optional[CompletionList]:
    contexts = tuple(contexts)
    used = find_used_clauses(tree, registry)
    in_slot = any(ctx in SLOT_CONTEXTS for ctx in contexts)

    seen_keywords: set[str] = set()
    items: list[CompletionItem] = []
    for ctx in contexts:
        if ctx == CompletionContext.CLAUSE_BOUNDARY:
            if in_slot:
                continue
            for descriptor in registry.get_completables_for_context(ctx):
                if descriptor.keywords and descriptor.keywords[0].lower() not in used:
                    items.extend(_descriptor_items(descriptor, seen_keywords))
            continue

        for descriptor in registry.get_completables_for_context(ctx):
            items.extend(_descriptor_items(descriptor, seen_keywords))
        if ctx in DATA_CONTEXTS:
            items.extend(_data_items(registry))
        if ctx in RELATION_CONTEXTS:
            items.extend(_relation_items(relation_names))

    start = word_start(tree.text, offset)
    prefix = tree.text[start:offset].lower()
    result: list[CompletionItem] = []
    labels: set[str] = set()
    for item in items:
        if item.label in labels or not item.label.lower().startswith(prefix):
            continue
        labels.add(item.label)
        result.append(item)

    if not result:
        return None
    return CompletionList(items=result, start=start, end=offset)


def in_string(text: str, offset: int) -> bool:
    """True if ``offset`` falls inside a string literal."""
    inside = False
    i = 0
    while i < offset:
        ch = text[i]
        if inside and ch == "\\":
            i += 2
            continue
        if ch == '"':
            inside = not inside
        elif ch == "\n":
            inside = False
        i += 1
    return inside


def complete(
    text: str,
    offset: int,
    registry: Registry,
    relation_names: RelationSupplier = _no_relations,
) -> Optional[CompletionList]:
    """Parse, resolve contexts and assemble suggestions for one request."""
    if in_string(text, offset):
        return None
    tree = parse(text)
    contexts = resolve_contexts(tree, offset, registry)
    return assemble_completions(tree, offset, contexts, registry, relation_names)


# ---------------------------------------------------------------------------
# LSP conversion
# ---------------------------------------------------------------------------

_KIND_MAP = {
    CompletionCategory.KEYWORD: lsp.CompletionItemKind.Keyword,
    CompletionCategory.OPERATOR: lsp.CompletionItemKind.Operator,
    CompletionCategory.FUNCTION: lsp.CompletionItemKind.Function,
    CompletionCategory.PROPERTY: lsp.CompletionItemKind.Property,
    CompletionCategory.VALUE: lsp.CompletionItemKind.Constant,
}


def to_lsp_items(text: str, completions: CompletionList) -> list[lsp.CompletionItem]:
    replace = span_to_range(text, completions.start, completions.end)
    items = []
    for item in completions.items:
        kind = _KIND_MAP[item.category]
        if item.detail == "relation":
            kind = lsp.CompletionItemKind.Variable
        items.append(lsp.CompletionItem(
            label=item.label,
            kind=kind,
            detail=item.detail,
            documentation=item.documentation,
            text_edit=lsp.TextEdit(range=replace, new_text=item.insert_text or item.label),
            insert_text_format=(lsp.InsertTextFormat.Snippet if item.is_snippet
                                else lsp.InsertTextFormat.PlainText),
        ))
    return items


def get_completions(
    source: str,
    position: lsp.Position,
    registry: Registry,
    relation_names: RelationSupplier = _no_relations,
) -> list[lsp.CompletionItem]:
    """Return completion items for the given cursor position."""
    offset = position_to_offset(source, position)
    completions = complete(source, offset, registry, relation_names)
    if completions is None:
        return []
    return to_lsp_items(source, completions)
