"""Documentation lookup for TQL words.

One place that answers "what is this word?" for hover, backed by the
registry's construct docs and the built-in function/property tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.query.descriptors import NodeDoc
from src.query.registry import Registry


@dataclass(frozen=True)
class WordAt:
    word: str
    start: int
    end: int


def word_at(text: str, offset: int) -> Optional[WordAt]:
    """The word under ``offset``, including ``$`` and dotted paths."""
    offset = max(0, min(offset, len(text)))
    start = offset
    while start > 0 and (text[start - 1].isalnum() or text[start - 1] in "_.$"):
        start -= 1
    end = offset
    while end < len(text) and (text[end].isalnum() or text[end] in "_."):
        end += 1
    if start == end:
        return None
    return WordAt(text[start:end], start, end)


class DocumentationFacade:
    def __init__(self, registry: Registry):
        self.registry = registry

    def lookup(self, word: str) -> Optional[NodeDoc]:
        """Documentation for ``word``: keyword, then function, property, namespace."""
        if not word:
            return None
        return (self._keyword_doc(word)
                or self._function_doc(word)
                or self._property_doc(word)
                or self._namespace_doc(word))

    def _keyword_doc(self, word: str) -> Optional[NodeDoc]:
        descriptor = self.registry.get_by_keyword(word)
        if descriptor is None:
            return None
        return descriptor.doc

    def _function_doc(self, word: str) -> Optional[NodeDoc]:
        fn = self.registry.get_function(word)
        if fn is None:
            lowered = word.lower()
            fn = next((f for f in self.registry.functions if f.name.lower() == lowered), None)
        return fn.doc if fn is not None else None

    def _property_doc(self, word: str) -> Optional[NodeDoc]:
        name = word[1:] if word.startswith("$") else word
        for prop in self.registry.builtin_properties():
            if prop.name == name:
                return NodeDoc(title=prop.name, description=prop.description,
                               return_type=prop.type)
        return None

    def _namespace_doc(self, word: str) -> Optional[NodeDoc]:
        name = word if word.startswith("$") else f"${word}"
        ns = self.registry.get_namespace(name)
        return ns.doc if ns is not None else None


def format_markdown(doc: NodeDoc) -> str:
    lines = [f"**{doc.title}**", "", doc.description]
    if doc.syntax:
        lines += ["", "```tql", doc.syntax, "```"]
    if doc.examples:
        lines += ["", "**Example:**" if len(doc.examples) == 1 else "**Examples:**"]
        lines += [f"- `{example}`" for example in doc.examples]
    if doc.return_type:
        # Properties carry a type but no call syntax
        label = "Returns" if doc.syntax else "Type"
        lines += ["", f"*{label}: {doc.return_type}*"]
    return "\n".join(lines)
