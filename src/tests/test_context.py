"""Tests for cursor-to-context resolution."""

import pytest
from src.query.catalog import default_registry
from src.query.descriptors import CompletionContext as Ctx
from src.query.parser import parse

from src.devex.lsp.context import anchor_offset, resolve_contexts, word_start


def contexts(source: str, offset: int = None) -> tuple:
    if offset is None:
        offset = len(source)
    return resolve_contexts(parse(source), offset, default_registry())


class TestWordBoundaries:
    def test_word_start(self):
        assert word_start("where con", 9) == 6

    def test_word_start_includes_dollar_and_dot(self):
        assert word_start("a = $file.na", 12) == 4

    def test_anchor_skips_whitespace(self):
        assert anchor_offset("from  \n up", 9) == 4


class TestResolveContexts:
    @pytest.mark.parametrize("source,expected", [
        ("", (Ctx.START_OF_QUERY, Ctx.CLAUSE_BOUNDARY)),
        ("gr", (Ctx.START_OF_QUERY, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" ', (Ctx.AFTER_GROUP_NAME, Ctx.CLAUSE_BOUNDARY)),
        ('group "A"\nfr', (Ctx.AFTER_GROUP_NAME, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from ', (Ctx.AFTER_FROM, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up ', (Ctx.AFTER_RELATION, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up depth ', (Ctx.AFTER_DEPTH, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up depth 2 ', (Ctx.AFTER_RELATION, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up where ', (Ctx.EXPRESSION, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up where a = 1 ', (Ctx.AFTER_EXPRESSION, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up where a and ', (Ctx.EXPRESSION, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up where not ', (Ctx.EXPRESSION, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up where hasTag(', (Ctx.EXPRESSION, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up sort by ', (Ctx.SORT_KEY, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up sort by date ', (Ctx.SORT_KEY, Ctx.CLAUSE_BOUNDARY)),
        ('group "A" from up display ', (Ctx.DISPLAY_LIST, Ctx.CLAUSE_BOUNDARY)),
    ])
    def test_contexts(self, source, expected):
        assert contexts(source) == expected

    def test_in_progress_word_does_not_change_context(self):
        assert contexts('group "A" from up where co') == contexts('group "A" from up where ')

    def test_clause_boundary_always_present(self):
        for source in ['group "A" from up where (a', 'zz', 'group "A" from up ???']:
            assert Ctx.CLAUSE_BOUNDARY in contexts(source)

    def test_no_duplicate_contexts(self):
        result = contexts('group "A" from up where a = 1 ')
        assert len(result) == len(set(result))

    def test_deterministic(self):
        source = 'group "A" from up, down depth 2 where a = 1 and '
        tree = parse(source)
        first = resolve_contexts(tree, len(source), default_registry())
        for _ in range(3):
            assert resolve_contexts(tree, len(source), default_registry()) == first
            assert contexts(source) == first

    def test_cursor_in_middle_of_query(self):
        source = 'group "A" from up  where a = 1'
        offset = source.index("from up") + len("from up ")
        assert contexts(source, offset) == (Ctx.AFTER_RELATION, Ctx.CLAUSE_BOUNDARY)
