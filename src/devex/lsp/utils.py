"""Shared utility functions for the TQL LSP feature modules.

Queries are addressed by character offsets internally; LSP uses 0-based
line/character positions. These helpers convert between the two.
"""

from __future__ import annotations

from lsprotocol import types as lsp


def offset_to_position(source: str, offset: int) -> lsp.Position:
    """Convert a character offset into a 0-based LSP position."""
    offset = max(0, min(offset, len(source)))
    line = source.count("\n", 0, offset)
    line_start = source.rfind("\n", 0, offset) + 1
    return lsp.Position(line=line, character=offset - line_start)


def position_to_offset(source: str, position: lsp.Position) -> int:
    """Convert a 0-based LSP position into a character offset (clamped)."""
    lines = source.split("\n")
    if position.line >= len(lines):
        return len(source)
    offset = sum(len(line) + 1 for line in lines[:position.line])
    return offset + min(position.character, len(lines[position.line]))


def span_to_range(source: str, start: int, end: int) -> lsp.Range:
    return lsp.Range(
        start=offset_to_position(source, start),
        end=offset_to_position(source, end),
    )
