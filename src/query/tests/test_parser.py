"""Tests for the TQL parser (syntax tree shape and error recovery)."""

import pytest
from src.query.parser import parse
from src.query.syntax import ERROR_NODE, dump


def tree(source: str):
    return parse(source)


def top_names(source: str) -> list[str]:
    return [c.name for c in tree(source).top.children]


def find(source: str, name: str):
    t = tree(source)
    return next(n for n in t.iterate() if n.name == name), t


def errors(source: str) -> list[str]:
    return [n.message for n in tree(source).errors()]


# --- Clauses ---

class TestClauses:
    def test_minimal_query(self):
        t = tree('group "Notes" from up')
        assert not t.has_errors(), dump(t.top, t.text)
        assert top_names('group "Notes" from up') == ["Group", "From"]

    def test_query_spans_whole_text(self):
        t = tree('group "A" from up  ')
        assert (t.top.start, t.top.end) == (0, 19)

    def test_all_clauses(self):
        source = ('group "A" from up prune a = 1 where b = 2 when c = 3 '
                  'sort by d desc display all')
        assert top_names(source) == ["Group", "From", "Prune", "Where", "When",
                                     "Sort", "Display"]
        assert not tree(source).has_errors()

    def test_clause_keyword_leaf_is_lowercase(self):
        group, _ = find('GROUP "A" FROM up', "Group")
        assert group.children[0].name == "group"

    def test_optional_clauses_in_any_order(self):
        assert not tree('group "A" from up display all where x = 1').has_errors()

    def test_comment_between_clauses(self):
        assert not tree('group "A" // name\nfrom up').has_errors()


# --- From clause ---

class TestFrom:
    def test_multiple_relations(self):
        from_, _ = find('group "A" from up, down, same', "From")
        assert [c.name for c in from_.children] == [
            "from", "RelationSpec", ",", "RelationSpec", ",", "RelationSpec"]

    def test_modifiers(self):
        spec, t = find('group "A" from down depth 2 extend Children flatten 1', "RelationSpec")
        assert [c.name for c in spec.children] == ["Identifier", "Depth", "Extend", "Flatten"]
        assert not t.has_errors()

    def test_depth_unlimited(self):
        depth, _ = find('group "A" from up depth unlimited', "Depth")
        assert depth.children[1].name == "unlimited"

    def test_extend_with_string(self):
        ext, t = find('group "A" from up extend "My Group"', "Extend")
        assert ext.children[1].name == "String"

    def test_flatten_without_level(self):
        flat, t = find('group "A" from same flatten', "Flatten")
        assert len(flat.children) == 1
        assert not t.has_errors()

    def test_label(self):
        spec, t = find('group "A" from parent.mother depth 1', "RelationSpec")
        label = spec.get_child("Label")
        assert label is not None
        assert t.text_of(label) == ".mother"
        assert spec.children[0].name == "Identifier"
        assert t.text_of(spec.children[0]) == "parent"

    def test_missing_depth_value(self):
        assert errors('group "A" from up depth') == ["Expected a number or 'unlimited'"]

    def test_missing_relation(self):
        assert errors('group "A" from ') == ["Expected relation name"]


# --- Expressions ---

class TestExpressions:
    def where_expr(self, expr: str):
        t = tree(f'group "A" from up where {expr}')
        assert not t.has_errors(), dump(t.top, t.text)
        return t.top.get_child("Where").children[1], t

    def test_precedence_or_and(self):
        node, _ = self.where_expr("a = 1 or b = 2 and c = 3")
        assert node.name == "OrExpr"
        assert node.children[2].name == "AndExpr"

    def test_not(self):
        node, _ = self.where_expr("not a = 1")
        assert node.name == "NotExpr"
        assert node.children[1].name == "CompareExpr"

    def test_bang(self):
        node, _ = self.where_expr('!hasTag("x")')
        assert node.name == "NotExpr"
        assert node.children[0].name == "!"

    def test_in_range(self):
        node, _ = self.where_expr("priority in 1..5")
        assert node.name == "InExpr"
        assert node.children[2].name == "RangeExpr"

    def test_arithmetic(self):
        node, _ = self.where_expr("date > today - 7d")
        assert node.name == "CompareExpr"
        arith = node.children[2]
        assert arith.name == "ArithExpr"
        assert [c.name for c in arith.children] == ["RelativeDate", "-", "Duration"]

    def test_function_call(self):
        node, t = self.where_expr('contains(title, "x")')
        assert node.name == "FunctionCall"
        assert node.children[0].name == "FunctionName"
        args = node.get_child("ArgList")
        assert [c.name for c in args.children] == ["(", "PropertyAccess", ",", "String", ")"]

    def test_property_access_with_keyword_segment(self):
        node, t = self.where_expr("meta.desc = 1")
        access = node.children[0]
        assert access.name == "PropertyAccess"
        assert [c.name for c in access.children] == ["Identifier", ".", "Identifier"]

    def test_builtin_access(self):
        node, t = self.where_expr("$file.name = \"x\"")
        access = node.children[0]
        assert access.name == "BuiltinAccess"
        assert access.children[0].name == "BuiltinIdentifier"

    def test_parenthesized(self):
        node, _ = self.where_expr("(a = 1 or b = 2) and c")
        assert node.name == "AndExpr"
        assert node.children[0].name == "ParenExpr"

    @pytest.mark.parametrize("literal,leaf", [
        ('"s"', "String"),
        ("3", "Number"),
        ("2w", "Duration"),
        ("2024-01-01", "DateLiteral"),
        ("true", "Boolean"),
        ("null", "Null"),
        ("yesterday", "RelativeDate"),
    ])
    def test_literals(self, literal, leaf):
        node, _ = self.where_expr(f"x = {literal}")
        assert node.children[2].name == leaf


# --- Sort and display ---

class TestSortDisplay:
    def test_sort_keys(self):
        sort, t = find('group "A" from up sort by chain, priority desc', "Sort")
        keys = sort.get_children("SortKey")
        assert len(keys) == 2
        assert keys[0].children[0].name == "chain"
        assert keys[1].children[-1].name == "desc"

    def test_sort_without_by(self):
        assert not tree('group "A" from up sort date asc').has_errors()

    def test_empty_sort_is_not_a_syntax_error(self):
        sort, t = find('group "A" from up sort by ', "Sort")
        assert not t.has_errors()
        assert sort.get_children("SortKey") == []

    def test_display_all_and_properties(self):
        items, _ = find('group "A" from up display all, file.modified', "DisplayList")
        assert [c.name for c in items.children] == ["all", ",", "PropertyAccess"]

    def test_missing_display_list(self):
        assert errors('group "A" from up display') == ["Expected display list"]


# --- Error recovery ---

class TestRecovery:
    def test_never_raises_on_garbage(self):
        for source in ["", "(((", '"', "$", "group", "from from from", "where and or",
                       "group \"A\" from up where (a = ", "!!!", ".. .. ,"]:
            t = parse(source)
            assert t.top.name == "Query"

    def test_empty_input_reports_missing_group_and_from(self):
        assert errors("") == ["Expected 'group'", "Expected 'from'"]

    def test_missing_from(self):
        assert errors('group "A" ') == ["Expected 'from'"]

    def test_missing_group_name(self):
        assert errors("group from up") == ["Expected group name string"]

    def test_missing_expression(self):
        assert errors('group "A" from up where') == ["Expected expression"]

    def test_missing_element_is_zero_length_at_next_token(self):
        t = tree('group "A" from up where sort by x')
        err = t.errors()[0]
        assert err.start == err.end == t.text.index("sort")

    def test_misspelled_keyword_is_error_node(self):
        t = tree('group "A" from r1 wher')
        errs = t.errors()
        assert len(errs) == 1
        assert errs[0].name == ERROR_NODE
        assert t.text_of(errs[0]) == "wher"

    def test_junk_recovers_at_next_clause(self):
        t = tree('group "A" from up ??? where x = 1')
        assert "Where" in [c.name for c in t.top.children]
        assert t.errors()[0].message == "Unexpected character '?'"

    def test_duplicate_clause(self):
        assert errors('group "A" from up where a = 1 where b = 2') == [
            "Duplicate 'where' clause"]

    def test_repeated_group_is_duplicate(self):
        assert errors('group "A" from up group "B"') == ["Duplicate 'group' clause"]

    def test_misplaced_group(self):
        assert errors('from up group "A"') == [
            "Expected 'group'", "Misplaced 'group' clause"]

    def test_unclosed_paren(self):
        assert errors('group "A" from up where (a = 1') == ["Expected ')'"]

    def test_unterminated_string_message(self):
        assert errors('group "A from up') == [
            "Expected group name string", "Unterminated string", "Expected 'from'"]


# --- Tree structure ---

class TestTreeStructure:
    def test_parent_links(self):
        t = tree('group "A" from up where a = 1')
        for node in t.iterate():
            for child in node.children:
                assert child.parent is node

    def test_children_within_parent_span(self):
        t = tree('group "A" from up depth 2 where a = 1 and b sort by c display all')
        for node in t.iterate():
            for child in node.children:
                assert node.span.contains(child.span)

    @pytest.mark.parametrize("source", [
        'group "A" from up, down.x depth 2 where a = 1 and not b sort by c desc, chain',
        'group "A" from up ??? where (a = 1',
        'group "A from up wher x sort by',
        'where where , ) $ "',
        'from up group "A" group "B" display all, ',
        'group\n  // note\n "A" from up extend "G" flatten depth',
    ])
    def test_sibling_spans_do_not_overlap(self, source):
        t = tree(source)
        for node in t.iterate():
            assert t.top.span.contains(node.span)
            for a, b in zip(node.children, node.children[1:]):
                assert a.end <= b.start, dump(t.top, t.text)

    def test_resolve_inner_prefers_token_ending_at_position(self):
        t = tree('group "A" from up')
        node = t.resolve_inner(len('group "A" from up'), -1)
        assert node.name == "Identifier"
