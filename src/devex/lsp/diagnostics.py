"""Diagnostic computation for TQL documents.

Runs the query pipeline (lexer -> parser -> AST -> validation) on source
text and converts problems into LSP Diagnostic objects.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from lsprotocol import types as lsp

from src.query.ast_nodes import Query
from src.query.catalog import default_registry
from src.query.converter import build_ast
from src.query.parser import parse
from src.query.registry import Registry
from src.query.syntax import SyntaxTree
from src.query.validation import ValidationContext

from src.devex.lsp.utils import span_to_range


@dataclass
class AnalysisResult:
    """Cached result of analyzing a document."""

    uri: str
    source: str
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)
    tree: Optional[SyntaxTree] = None
    ast: Optional[Query] = None


def _make_diagnostic(
    source_text: str,
    start: int,
    end: int,
    message: str,
    code: Optional[str] = None,
    severity: lsp.DiagnosticSeverity = lsp.DiagnosticSeverity.Error,
    source: str = "tql",
) -> lsp.Diagnostic:
    """Create an LSP Diagnostic.

    Zero-length spans (missing elements) are widened to the next character
    when there is one on the same line, so editors can underline them.
    """
    if start == end and end < len(source_text) and source_text[end] != "\n":
        end += 1
    return lsp.Diagnostic(
        range=span_to_range(source_text, start, end),
        message=message,
        severity=severity,
        code=code,
        source=source,
    )


def compute_diagnostics(
    uri: str,
    source: str,
    relation_names: Optional[Iterable[str]] = None,
    group_names: Optional[Iterable[str]] = None,
    registry: Optional[Registry] = None,
) -> AnalysisResult:
    """Run the query pipeline and return diagnostics."""
    result = AnalysisResult(uri=uri, source=source)
    if not source.strip():
        return result
    registry = registry or default_registry()

    # Parsing (never raises; problems are error nodes)
    tree = parse(source)
    result.tree = tree
    errors = tree.errors()
    if errors:
        for node in errors:
            result.diagnostics.append(
                _make_diagnostic(source, node.start, node.end, node.message or "Syntax error"))
        return result

    # Semantic validation
    query = build_ast(tree)
    result.ast = query
    ctx = ValidationContext(
        relation_names=relation_names,
        group_names=group_names,
        functions=registry.functions,
        namespaces=registry.namespaces,
    )
    query.validate(ctx)
    for diag in ctx.diagnostics:
        result.diagnostics.append(
            _make_diagnostic(source, diag.start, diag.end, diag.message, code=diag.code or None))

    return result
