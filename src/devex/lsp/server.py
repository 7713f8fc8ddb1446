#!/usr/bin/env python3
"""TQL Language Server.

Provides diagnostics, hover, code completion, semantic tokens and a
relation-rename command for .tql files by reusing the query lexer, parser,
construct registry and validator.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional

# Add project root to sys.path so we can import src.query
PROJECT_ROOT = str(Path(__file__).resolve().parent.parent.parent.parent)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from lsprotocol import types as lsp  # noqa: E402
from pygls.lsp.server import LanguageServer  # noqa: E402

from src.query.catalog import default_registry  # noqa: E402
from src.query.rewrite import rewrite_relation  # noqa: E402
from src.devex.lsp.diagnostics import AnalysisResult, compute_diagnostics  # noqa: E402
from src.devex.lsp.hover import get_hover_info  # noqa: E402
from src.devex.lsp.completion import get_completions  # noqa: E402
from src.devex.lsp.semantic_tokens import get_semantic_tokens, LEGEND  # noqa: E402
from src.devex.lsp.settings import ServerSettings  # noqa: E402
from src.devex.lsp.utils import span_to_range  # noqa: E402

__version__ = "0.1.0"

RENAME_RELATION = "tql/renameRelation"

logger = logging.getLogger("tql-lsp")

server = LanguageServer("tql-lsp", __version__)
registry = default_registry()
settings = ServerSettings()

# Cache: uri -> AnalysisResult (latest)
_analysis_cache: dict[str, AnalysisResult] = {}


def _apply_settings(new_settings: ServerSettings):
    global settings
    settings = new_settings
    logging.getLogger().setLevel(settings.numeric_log_level)
    logger.info("Settings: %d relation(s), %s group(s)",
                len(settings.relations or ()),
                "any" if settings.groups is None else len(settings.groups))
    # Relation and group lists feed validation, so re-check open documents
    for uri, result in list(_analysis_cache.items()):
        _validate_document(uri, result.source)


def _validate_document(uri: str, source: str):
    """Run the query pipeline and publish diagnostics."""
    result = compute_diagnostics(uri, source, settings.relations, settings.groups, registry)
    _analysis_cache[uri] = result
    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=result.diagnostics)
    )


def _source(uri: str) -> Optional[str]:
    doc = server.workspace.get_text_document(uri)
    return doc.source if doc else None


@server.feature(lsp.INITIALIZE)
def initialize(params: lsp.InitializeParams):
    if params.initialization_options is not None:
        _apply_settings(ServerSettings.from_dict(params.initialization_options, settings))


@server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
def did_change_configuration(params: lsp.DidChangeConfigurationParams):
    _apply_settings(ServerSettings.from_dict(params.settings, settings))


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams):
    _validate_document(
        params.text_document.uri,
        params.text_document.text,
    )


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams):
    doc = server.workspace.get_text_document(params.text_document.uri)
    _validate_document(params.text_document.uri, doc.source)


@server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
def did_save(params: lsp.DidSaveTextDocumentParams):
    doc = server.workspace.get_text_document(params.text_document.uri)
    _validate_document(params.text_document.uri, doc.source)


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams):
    uri = params.text_document.uri
    _analysis_cache.pop(uri, None)
    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=[])
    )


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams):
    source = _source(params.text_document.uri)
    if source is None:
        return None
    return get_hover_info(source, params.position, registry)


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=['.', '$'])
)
def completion(params: lsp.CompletionParams):
    # Always complete against the live buffer; the parser recovers from
    # the half-typed query, so no cached analysis is needed
    source = _source(params.text_document.uri)
    if source is None:
        return []
    return get_completions(source, params.position, registry, settings.relation_names)


@server.feature(
    lsp.TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL,
    lsp.SemanticTokensOptions(legend=LEGEND, full=True),
)
def semantic_tokens_full(params: lsp.SemanticTokensParams):
    source = _source(params.text_document.uri)
    if source is None:
        return None
    return get_semantic_tokens(source, registry)


def _param(params: Any, *names: str) -> Any:
    """Read a field of a custom request's params (dict or attribute object)."""
    for name in names:
        if isinstance(params, dict):
            if name in params:
                return params[name]
        elif hasattr(params, name):
            return getattr(params, name)
    return None


def rename_relation_edit(uri: str, source: str, old_name: str,
                         new_name: str) -> Optional[lsp.WorkspaceEdit]:
    """Workspace edit replacing the document with the rewritten query, if it changed."""
    rewritten = rewrite_relation(source, old_name, new_name)
    if rewritten == source:
        return None
    return lsp.WorkspaceEdit(changes={
        uri: [lsp.TextEdit(range=span_to_range(source, 0, len(source)), new_text=rewritten)],
    })


@server.feature(RENAME_RELATION)
def rename_relation(params: Any):
    uri = _param(params, "uri")
    old_name = _param(params, "oldName", "old_name")
    new_name = _param(params, "newName", "new_name")
    if not all(isinstance(v, str) for v in (uri, old_name, new_name)):
        logger.warning("%s: expected uri, oldName and newName strings", RENAME_RELATION)
        return None
    source = _source(uri)
    if source is None:
        return None
    return rename_relation_edit(uri, source, old_name, new_name)


def main(argv: Optional[list[str]] = None):
    argparser = argparse.ArgumentParser(description="TQL language server (stdio)")
    argparser.add_argument("--relation", action="append", dest="relations", metavar="NAME",
                           help="Known relation name (repeatable)")
    argparser.add_argument("--group", action="append", dest="groups", metavar="NAME",
                           help="Known group name for 'extend' (repeatable)")
    argparser.add_argument("--log-level", default="INFO",
                           choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                           help="Logging level (default: INFO)")
    args = argparser.parse_args(argv)

    global settings
    settings = ServerSettings(relations=args.relations, groups=args.groups,
                              log_level=args.log_level)
    logging.basicConfig(level=settings.numeric_log_level, stream=sys.stderr)
    logger.info("Starting tql-lsp %s (%r)", __version__, registry)
    server.start_io()


if __name__ == "__main__":
    main()
