"""Tests for the construct registry and catalog."""

import pytest
from src.query.builtins import FUNCTIONS, NAMESPACES
from src.query.catalog import CONSTRUCTS, build_registry, default_registry
from src.query.descriptors import (
    CompletionCategory,
    CompletionContext,
    ConstructDescriptor,
    HighlightCategory,
)
from src.query.registry import (
    RegistrationConflict,
    Registry,
    RegistryFrozenError,
    register_construct,
)


def descriptor(name, **kwargs) -> ConstructDescriptor:
    return ConstructDescriptor(name=name, **kwargs)


# --- Lifecycle ---

class TestLifecycle:
    def test_build_registers_every_construct(self):
        registry = build_registry()
        assert len(registry) == len(CONSTRUCTS)
        assert registry.frozen

    def test_independent_instances(self):
        assert build_registry() is not build_registry()

    def test_default_registry_is_shared(self):
        assert default_registry() is default_registry()

    def test_register_after_freeze_raises(self):
        registry = Registry().freeze()
        with pytest.raises(RegistryFrozenError):
            registry.register(descriptor("late", keywords=("late",)))

    def test_freeze_is_idempotent(self):
        registry = Registry()
        assert registry.freeze() is registry.freeze()

    def test_construct_id_must_match_name(self):
        with pytest.raises(ValueError):
            register_construct(Registry(), "where", descriptor("when"))


# --- Conflicts ---

class TestConflicts:
    def test_duplicate_keyword_rejected(self):
        registry = Registry()
        registry.register(descriptor("first", keywords=("where",)))
        with pytest.raises(RegistrationConflict) as exc:
            registry.register(descriptor("second", keywords=("WHERE",)))
        assert exc.value.claim == "where"
        assert exc.value.existing == "first"
        assert exc.value.incoming == "second"

    def test_duplicate_node_type_rejected(self):
        registry = Registry()
        registry.register(descriptor("a", node_type="Where"))
        with pytest.raises(RegistrationConflict):
            registry.register(descriptor("b", node_type="Where"))

    def test_duplicate_name_rejected(self):
        registry = Registry()
        registry.register(descriptor("a"))
        with pytest.raises(RegistrationConflict):
            registry.register(descriptor("a"))

    def test_rejected_descriptor_leaves_no_trace(self):
        registry = Registry()
        registry.register(descriptor("a", keywords=("x",)))
        with pytest.raises(RegistrationConflict):
            registry.register(descriptor("b", keywords=("y", "x")))
        assert registry.get_by_keyword("y") is None
        assert len(registry) == 1

    def test_catalog_has_no_conflicts(self):
        # Building twice from the same table must succeed each time
        build_registry()
        build_registry()


# --- Context queries ---

class TestContextQueries:
    def test_completables_in_registration_order(self):
        registry = default_registry()
        names = [d.name for d in registry.get_completables_for_context(
            CompletionContext.CLAUSE_BOUNDARY)]
        assert names == ["prune", "where", "when", "sort", "display"]

    def test_start_of_query_offers_group(self):
        registry = default_registry()
        names = [d.name for d in registry.get_completables_for_context(
            CompletionContext.START_OF_QUERY)]
        assert names == ["group"]

    def test_after_relation_offers_modifiers(self):
        registry = default_registry()
        names = [d.name for d in registry.get_completables_for_context(
            CompletionContext.AFTER_RELATION)]
        assert names == ["depth", "extend", "flatten"]

    def test_provided_contexts(self):
        registry = default_registry()
        assert registry.get_provided_contexts("Where") == (CompletionContext.EXPRESSION,)
        assert registry.get_provided_contexts("RelationSpec") == (
            CompletionContext.AFTER_RELATION,)

    def test_provided_contexts_unknown_node(self):
        assert default_registry().get_provided_contexts("Nope") == ()

    def test_expression_sets(self):
        registry = default_registry()
        assert registry.get_expression_clause_names() == {"Prune", "Where", "When"}
        nodes = registry.get_expression_node_names()
        assert {"CompareExpr", "FunctionCall", "PropertyAccess", "String"} <= nodes
        assert "Where" not in nodes
        assert "Identifier" not in nodes


# --- Lookups ---

class TestLookups:
    def test_keyword_lookup_is_case_insensitive(self):
        registry = default_registry()
        assert registry.get_by_keyword("WHERE").name == "where"
        assert registry.get_by_keyword("startofweek").name == "startOfWeek"

    def test_missing_keyword(self):
        assert default_registry().get_by_keyword("nope") is None

    def test_by_node_type(self):
        assert default_registry().get_by_node_type("Group").name == "group"

    def test_clause_keywords(self):
        keywords = default_registry().get_clause_keywords()
        assert keywords["Where"] == "where"
        assert set(keywords) == {"Group", "From", "Prune", "Where", "When", "Sort", "Display"}

    def test_keywords_by_highlighting(self):
        registry = default_registry()
        assert registry.keywords_by_highlighting(HighlightCategory.OPERATOR_KEYWORD) == [
            "and", "or", "not", "in"]

    @pytest.mark.parametrize("node_type,expected", [
        ("where", HighlightCategory.KEYWORD),
        ("depth", HighlightCategory.TYPE_NAME),
        ("and", HighlightCategory.OPERATOR_KEYWORD),
        ("<=", HighlightCategory.OPERATOR),
        ("String", HighlightCategory.STRING),
        ("Duration", HighlightCategory.NUMBER),
        ("Boolean", HighlightCategory.ATOM),
        ("FunctionName", HighlightCategory.FUNCTION),
        ("Identifier", HighlightCategory.VARIABLE),
        (",", HighlightCategory.PUNCTUATION),
    ])
    def test_highlighting_for(self, node_type, expected):
        assert default_registry().highlighting_for(node_type) == expected

    def test_literal_category(self):
        assert default_registry().get_by_keyword("true").category == CompletionCategory.VALUE

    def test_builtins(self):
        registry = default_registry()
        assert registry.functions == FUNCTIONS
        assert registry.namespaces == NAMESPACES
        assert registry.get_function("contains").min_arity == 2
        assert registry.get_namespace("$file") is not None
        assert "file.name" in [p.name for p in registry.builtin_properties()]

    def test_repr(self):
        assert "frozen" in repr(default_registry())
