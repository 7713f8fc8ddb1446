"""Tests for the completion assembler and its LSP conversion."""

import pytest
from lsprotocol import types as lsp

from src.query.catalog import default_registry
from src.query.descriptors import CompletionCategory, CompletionContext as Ctx
from src.query.parser import parse

from src.devex.lsp.completion import (
    assemble_completions,
    complete,
    find_used_clauses,
    get_completions,
    in_string,
)

RELATIONS = ["up", "down", "same"]


def relations():
    return RELATIONS


def labels(source: str, offset: int = None) -> list[str]:
    if offset is None:
        offset = len(source)
    result = complete(source, offset, default_registry(), relations)
    return result.labels if result else []


CLAUSES = {"prune", "where", "when", "sort", "display"}


class TestSlots:
    def test_start_of_query(self):
        assert labels("") == ["group"]

    def test_after_group_name(self):
        assert labels('group "A" ') == ["from"]

    def test_after_from_offers_relations_only(self):
        assert labels('group "Notes"\nfrom ') == RELATIONS

    def test_relation_supplier_called_per_request(self):
        names = []
        supplier = lambda: list(names)
        source = 'group "A" from '
        assert complete(source, len(source), default_registry(), supplier) is None
        names.append("later")
        assert complete(source, len(source), default_registry(), supplier).labels == ["later"]

    def test_after_depth(self):
        assert labels('group "A" from up depth ') == ["unlimited"]


class TestAfterRelation:
    def test_modifiers_relations_and_clauses(self):
        result = labels('group "A" from up ')
        assert result[:3] == ["depth", "extend", "flatten"]
        assert result[3:6] == RELATIONS
        assert result[6:] == ["prune", "where", "when", "sort", "display"]


class TestExpressions:
    def test_expression_offers_data(self):
        result = labels('group "A" from up where ')
        assert result[0] == "not"
        assert {"true", "today", "contains", "$file", "file.name", "$file.name"} <= set(result)
        assert "and" not in result

    def test_after_expression_offers_operators(self):
        result = labels('group "A" from up where a = 1 ')
        assert result[:3] == ["and", "or", "in"]

    def test_prefix_filter(self):
        assert labels('group "A" from up where co') == ["contains", "coalesce"]

    def test_prefix_filter_is_case_insensitive(self):
        assert "startsWith" in labels('group "A" from up where STARTS')

    def test_builtin_prefix(self):
        result = labels('group "A" from up where $fi')
        assert result[0] == "$file"
        assert all(label.startswith("$file") for label in result)
        assert "$file.modified" in result

    def test_dotted_prefix(self):
        result = labels('group "A" from up where traversal.')
        assert result == ["traversal.depth", "traversal.relation", "traversal.isImplied",
                          "traversal.parent", "traversal.path"]

    def test_unknown_word_gives_nothing(self):
        source = 'group "A" from up where zz'
        assert complete(source, len(source), default_registry(), relations) is None

    def test_replace_range_covers_word(self):
        source = 'group "A" from up where $fi'
        result = complete(source, len(source), default_registry(), relations)
        assert (result.start, result.end) == (len(source) - 3, len(source))

    def test_sort_key(self):
        result = labels('group "A" from up sort by ')
        assert result[:4] == ["by", "chain", "asc", "desc"]
        assert "sort" not in result

    def test_display_list(self):
        result = labels('group "A" from up display ')
        assert result[0] == "all"
        assert "file.name" in result


class TestClauseExclusivity:
    def test_used_clauses_not_offered(self):
        result = labels('group "A" from up where a = 1 sort by b ')
        assert "where" not in result
        assert "sort" not in result
        assert {"prune", "when", "display"} <= set(result)

    def test_find_used_clauses(self):
        tree = parse('group "A" from up where a = 1 display all')
        assert find_used_clauses(tree, default_registry()) == {
            "group", "from", "where", "display"}

    def test_all_clauses_used(self):
        source = ('group "A" from up prune a = 1 where b = 2 when c = 3 '
                  'sort by d display e ')
        assert not CLAUSES & set(labels(source))


class TestAssembly:
    def test_ordering_is_stable(self):
        source = 'group "A" from up where '
        first = labels(source)
        for _ in range(3):
            assert labels(source) == first

    def test_labels_are_unique(self):
        result = labels('group "A" from up where ')
        assert len(result) == len(set(result))

    def test_slot_context_suppresses_clause_keywords(self):
        tree = parse('group "A" from ')
        result = assemble_completions(
            tree, len(tree.text), (Ctx.AFTER_FROM, Ctx.CLAUSE_BOUNDARY),
            default_registry(), relations)
        assert result.labels == RELATIONS

    def test_clause_boundary_alone(self):
        tree = parse('group "A" from up ')
        result = assemble_completions(tree, len(tree.text), (Ctx.CLAUSE_BOUNDARY,),
                                      default_registry())
        assert result.labels == ["prune", "where", "when", "sort", "display"]
        assert all(item.detail == "clause" for item in result.items)

    def test_item_details(self):
        source = 'group "A" from up where '
        items = {i.label: i for i in complete(source, len(source), default_registry()).items}
        assert items["contains"].category == CompletionCategory.FUNCTION
        assert items["contains"].detail == "contains(haystack, needle)"
        assert items["contains"].insert_text == "contains(${1})"
        assert items["true"].category == CompletionCategory.VALUE
        assert items["file.name"].detail == "string"


class TestStrings:
    @pytest.mark.parametrize("source,expected", [
        ('group "No', True),
        ('group "Notes" ', False),
        ('group "a\\"b', True),
        ('group "a\nfrom ', False),
    ])
    def test_in_string(self, source, expected):
        assert in_string(source, len(source)) is expected

    def test_no_completion_inside_string(self):
        assert labels('group "fr') == []


class TestLspConversion:
    def test_snippet_and_range(self):
        items = get_completions("", lsp.Position(line=0, character=0), default_registry())
        assert len(items) == 1
        group = items[0]
        assert group.label == "group"
        assert group.insert_text_format == lsp.InsertTextFormat.Snippet
        assert group.kind == lsp.CompletionItemKind.Keyword
        assert group.text_edit.new_text.startswith('group "${1:name}"')

    def test_relations_are_variables(self):
        source = 'group "A"\nfrom d'
        items = get_completions(source, lsp.Position(line=1, character=6),
                                default_registry(), relations)
        assert [i.label for i in items] == ["down"]
        assert items[0].kind == lsp.CompletionItemKind.Variable
        assert items[0].text_edit.range == lsp.Range(
            start=lsp.Position(line=1, character=5), end=lsp.Position(line=1, character=6))

    def test_nothing_to_complete(self):
        source = 'group "A" from up where zz'
        assert get_completions(source, lsp.Position(line=0, character=len(source)),
                               default_registry()) == []
