"""Hover provider for TQL.

Shows documentation when hovering over keywords, built-in functions,
built-in properties and namespaces.
"""

from typing import Optional

from lsprotocol import types as lsp

from src.query.registry import Registry

from src.devex.lsp.docs import DocumentationFacade, format_markdown, word_at
from src.devex.lsp.utils import position_to_offset, span_to_range


def get_hover_info(source: str, position: lsp.Position,
                   registry: Registry) -> Optional[lsp.Hover]:
    """Return hover information for the word under the cursor."""
    offset = position_to_offset(source, position)
    found = word_at(source, offset)
    if found is None:
        return None

    doc = DocumentationFacade(registry).lookup(found.word)
    if doc is None:
        return None

    return lsp.Hover(
        contents=lsp.MarkupContent(
            kind=lsp.MarkupKind.Markdown,
            value=format_markdown(doc),
        ),
        range=span_to_range(source, found.start, found.end),
    )
