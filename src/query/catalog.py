"""The construct catalog: an explicit, ordered table of every TQL construct.

``build_registry`` registers the table in order, so the order of
``CONSTRUCTS`` is the order suggestions are shown in.
"""

from __future__ import annotations

from functools import lru_cache

from .descriptors import (
    CompletionCategory as Cat,
    CompletionContext as Ctx,
    ConstructDescriptor,
    HighlightCategory as Hl,
    NodeDoc,
)
from .registry import Registry, register_construct


def _doc(title, description, syntax=None, examples=(), return_type=None) -> NodeDoc:
    return NodeDoc(title, description, syntax, tuple(examples), return_type)


def _clause(keyword, node_type, doc, provides, opens, expression_clause=False,
            snippet=None) -> ConstructDescriptor:
    return ConstructDescriptor(
        name=keyword, keywords=(keyword,), node_type=node_type, doc=doc,
        highlighting=Hl.KEYWORD, snippet=snippet, provides=provides,
        provided_contexts=opens, clause=True, expression_clause=expression_clause,
    )


def _modifier(keyword, doc, provides, node_type=None, opens=(),
              category=Cat.KEYWORD) -> ConstructDescriptor:
    return ConstructDescriptor(
        name=keyword, keywords=(keyword,), node_type=node_type, category=category,
        doc=doc, highlighting=Hl.TYPE_NAME, provides=provides, provided_contexts=opens,
    )


def _logical(keyword, doc, provides) -> ConstructDescriptor:
    # The keyword leaf itself opens an expression slot (`a and |`)
    return ConstructDescriptor(
        name=keyword, keywords=(keyword,), node_type=keyword, category=Cat.OPERATOR,
        doc=doc, highlighting=Hl.OPERATOR_KEYWORD, provides=provides,
        provided_contexts=(Ctx.EXPRESSION,),
    )


def _symbol(symbol, doc) -> ConstructDescriptor:
    return ConstructDescriptor(
        name=symbol, keywords=(symbol,), node_type=symbol, category=Cat.OPERATOR,
        doc=doc, highlighting=Hl.OPERATOR, provided_contexts=(Ctx.EXPRESSION,),
    )


def _punctuation(symbol, opens=()) -> ConstructDescriptor:
    return ConstructDescriptor(
        name=symbol, keywords=(symbol,), node_type=symbol, highlighting=Hl.PUNCTUATION,
        provided_contexts=opens,
    )


def _atom(keyword, doc, node_type=None) -> ConstructDescriptor:
    return ConstructDescriptor(
        name=keyword, keywords=(keyword,), node_type=node_type, category=Cat.VALUE,
        doc=doc, highlighting=Hl.ATOM, provides=(Ctx.EXPRESSION,),
        provided_contexts=(Ctx.AFTER_EXPRESSION,) if node_type else (),
        expression=node_type is not None,
    )


def _expr(node_type, highlighting=None, opens=(Ctx.AFTER_EXPRESSION,)) -> ConstructDescriptor:
    return ConstructDescriptor(
        name=node_type, node_type=node_type, highlighting=highlighting,
        provided_contexts=opens, expression=True,
    )


# ---------------------------------------------------------------------------
# Clauses
# ---------------------------------------------------------------------------

CLAUSES = (
    ConstructDescriptor(
        name="Query", node_type="Query", provided_contexts=(Ctx.START_OF_QUERY,),
        doc=_doc("TQL Query",
                 "A complete TQL query with group name, FROM clause, and optional "
                 "filtering/sorting.",
                 'group "Name" from ... [prune ...] [where ...] [when ...] [sort ...] [display ...]'),
    ),
    _clause("group", "Group", _doc(
        "GROUP clause",
        "Names the query group. Each group appears as a section in the Trail pane.",
        'group "Name"', ['group "Children"', 'group "Related Tasks"']),
        provides=(Ctx.START_OF_QUERY,), opens=(Ctx.AFTER_GROUP_NAME,),
        snippet='group "${1:name}"\nfrom ${2:relation}'),
    _clause("from", "From", _doc(
        "FROM clause",
        "Specifies which relations to traverse from the active file.",
        "from relation [modifiers], ...",
        ["from up", "from up, down depth 2", "from up extend Children"]),
        provides=(Ctx.AFTER_GROUP_NAME,), opens=(Ctx.AFTER_FROM,)),
    ConstructDescriptor(
        name="RelationSpec", node_type="RelationSpec",
        provided_contexts=(Ctx.AFTER_RELATION,),
        doc=_doc("Relation Specification",
                 "Specifies a relation to traverse with optional depth, extend, and "
                 "flatten modifiers. If depth is omitted, traversal is unlimited.",
                 "relation [depth N] [extend Group] [flatten [N]]",
                 ["up depth 3", "down", "down extend Children", "same flatten"]),
    ),
    _clause("prune", "Prune", _doc(
        "PRUNE clause",
        "Stops traversal at nodes matching the expression. Matching nodes and their "
        "subtrees are not visited.",
        "prune Expression",
        ['prune status = "archived"', 'prune hasTag("private")', "prune traversal.depth > 5"]),
        provides=(Ctx.CLAUSE_BOUNDARY,), opens=(Ctx.EXPRESSION,), expression_clause=True),
    _clause("where", "Where", _doc(
        "WHERE clause",
        "Filters results after traversal. Non-matching nodes are hidden but their "
        "children may still appear with a gap indicator.",
        "where Expression",
        ["where priority >= 3", 'where status != "archived"',
         'where hasTag("active") and exists(due)']),
        provides=(Ctx.CLAUSE_BOUNDARY,), opens=(Ctx.EXPRESSION,), expression_clause=True),
    _clause("when", "When", _doc(
        "WHEN clause",
        "Conditional visibility for the entire group. If the active file doesn't "
        "match, the group is hidden.",
        "when Expression",
        ['when type = "project"', 'when hasTag("daily")', 'when file.folder = "Projects"']),
        provides=(Ctx.CLAUSE_BOUNDARY,), opens=(Ctx.EXPRESSION,), expression_clause=True),
    _clause("sort", "Sort", _doc(
        "SORT clause",
        "Orders results by property or chain position. Multiple sort keys are "
        "comma-separated.",
        "sort by Key [asc|desc], ...",
        ["sort by date desc", "sort by chain, priority desc",
         "sort by file.modified desc, file.name"]),
        provides=(Ctx.CLAUSE_BOUNDARY,), opens=(Ctx.SORT_KEY,)),
    ConstructDescriptor(
        name="SortKey", node_type="SortKey", provided_contexts=(Ctx.SORT_KEY,),
        doc=_doc("Sort Key",
                 "Specifies a property or chain position to sort by, with optional "
                 "direction.",
                 "property [asc|desc] | chain [asc|desc]",
                 ["date desc", "chain", "priority asc", "$file.modified desc"]),
    ),
    _clause("display", "Display", _doc(
        "DISPLAY clause",
        "Specifies which properties to show in the Trail pane UI.",
        "display Property, ... | all [, Property, ...]",
        ["display status, priority", "display all", "display all, file.modified"]),
        provides=(Ctx.CLAUSE_BOUNDARY,), opens=(Ctx.DISPLAY_LIST,)),
    ConstructDescriptor(
        name="DisplayList", node_type="DisplayList", provided_contexts=(Ctx.DISPLAY_LIST,),
    ),
)

# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------

MODIFIERS = (
    _modifier("depth", _doc(
        "depth modifier",
        "Sets how many levels to traverse for a relation. Use a number or 'unlimited'.",
        "depth N | depth unlimited", ["from up depth 3", "from down depth unlimited"]),
        provides=(Ctx.AFTER_RELATION,), node_type="depth", opens=(Ctx.AFTER_DEPTH,)),
    _modifier("extend", _doc(
        "extend",
        "At leaf nodes, continue traversal using another group's FROM definition.",
        'extend GroupName | extend "Group Name"',
        ["from up extend Children", 'from up extend "My Group" depth 5']),
        provides=(Ctx.AFTER_RELATION,), node_type="Extend"),
    _modifier("flatten", _doc(
        "flatten modifier",
        "Output all reachable nodes as a flat list at depth 1, instead of a nested "
        "tree structure. Useful for symmetric relations like 'same' that form cliques.",
        "Relation [depth N] flatten [N]",
        ["from same flatten", "from down depth 2 flatten", "from down depth 5 flatten 2"]),
        provides=(Ctx.AFTER_RELATION,), node_type="Flatten"),
    _modifier("unlimited", _doc(
        "unlimited",
        "Traverse to any depth with no limit. This is the default if depth is not "
        "specified.",
        examples=["from up depth unlimited"]),
        provides=(Ctx.AFTER_DEPTH,), category=Cat.VALUE),
    _modifier("by", _doc(
        "by keyword",
        "Used after 'sort' to introduce sort keys.",
        "sort by Key [asc|desc], ...", ["sort by date desc", "sort by chain, priority"]),
        provides=(Ctx.SORT_KEY,)),
    _modifier("chain", _doc(
        "chain sort",
        "Sorts by sequence position for sequential relations (next/prev). Only "
        "meaningful in sort clause.",
        examples=["sort by chain", "sort by chain, date desc"]),
        provides=(Ctx.SORT_KEY,)),
    _modifier("asc", _doc(
        "asc",
        "Ascending sort order (A-Z, 0-9, oldest first). This is the default.",
        examples=["sort priority asc", "sort $file.name asc"]),
        provides=(Ctx.SORT_KEY,)),
    _modifier("desc", _doc(
        "desc",
        "Descending sort order (Z-A, 9-0, newest first).",
        examples=["sort by date desc", "sort by priority desc"]),
        provides=(Ctx.SORT_KEY,)),
    _modifier("all", _doc(
        "all",
        "Show all properties of each result.",
        examples=["display all", "display all, file.modified"]),
        provides=(Ctx.DISPLAY_LIST,)),
)

# ---------------------------------------------------------------------------
# Operators and punctuation
# ---------------------------------------------------------------------------

OPERATORS = (
    _logical("and", _doc(
        "AND operator", "Logical AND. Both conditions must be true.", "Expr and Expr",
        ['status = "active" and priority > 3', 'hasTag("work") and file.folder = "Projects"']),
        provides=(Ctx.AFTER_EXPRESSION,)),
    _logical("or", _doc(
        "OR operator", "Logical OR. At least one condition must be true.", "Expr or Expr",
        ['status = "active" or status = "pending"', 'hasTag("urgent") or priority > 4']),
        provides=(Ctx.AFTER_EXPRESSION,)),
    _logical("not", _doc(
        "NOT operator", "Logical NOT. Inverts the condition. Can also use '!' prefix.",
        "not Expr | !Expr", ['not status = "archived"', '!hasTag("private")']),
        provides=(Ctx.EXPRESSION,)),
    _logical("in", _doc(
        "IN operator",
        "Checks membership in array, substring in string, or value in range.",
        "Value in Collection | Value in Lower..Upper",
        ['"tag" in tags', '"sub" in title', "priority in 1..5", "date in 2024-01-01..today"]),
        provides=(Ctx.AFTER_EXPRESSION,)),
    _symbol("=", _doc(
        "= (equals)",
        "Equality comparison. When comparing with null, checks if value is null.",
        "expr = expr", ['status = "active"', "priority = 5", "value = null"])),
    _symbol("!=", _doc(
        "!= (not equals)", "Inequality comparison.", "expr != expr",
        ['status != "archived"', "priority != 0"])),
    _symbol("<", _doc(
        "< (less than)", "Less than comparison. Works with numbers, strings, and dates.",
        "expr < expr", ["priority < 5", "date < today"])),
    _symbol(">", _doc(
        "> (greater than)",
        "Greater than comparison. Works with numbers, strings, and dates.",
        "expr > expr", ["priority > 3", "date > yesterday"])),
    _symbol("<=", _doc(
        "<= (less than or equal)", "Less than or equal comparison.", "expr <= expr",
        ["priority <= 5", "due <= endOfWeek"])),
    _symbol(">=", _doc(
        ">= (greater than or equal)", "Greater than or equal comparison.", "expr >= expr",
        ["priority >= 3", "date >= startOfWeek"])),
    _symbol("=?", _doc(
        "=? (null-safe equals)",
        "Null-safe equality. Returns false if left side is null, otherwise compares "
        "normally.",
        "expr =? expr", ['status =? "active"'])),
    _symbol("!=?", _doc(
        "!=? (null-safe not equals)",
        "Null-safe inequality. Returns true if left side is null, otherwise compares "
        "normally.",
        "expr !=? expr", ['status !=? "archived"'])),
    _symbol("+", _doc(
        "+ (plus)",
        "Addition for numbers, concatenation for strings, date + duration arithmetic.",
        "expr + expr", ["priority + 1", "today + 7d", 'name + " suffix"'])),
    _symbol("-", _doc(
        "- (minus)", "Subtraction for numbers, date - duration arithmetic.",
        "expr - expr", ["priority - 1", "today - 7d"])),
    _symbol("!", _doc(
        "! (not)", "Logical NOT. Same as 'not' keyword.", "!expr",
        ['!hasTag("private")', "!active"])),
    _symbol("..", _doc(
        ".. (range)", "Creates a range for 'in' expressions. Inclusive on both ends.",
        "value in lower..upper", ["priority in 1..5", "date in startOfWeek..endOfWeek"])),
    _punctuation("(", opens=(Ctx.EXPRESSION,)),
    _punctuation(")", opens=(Ctx.AFTER_EXPRESSION,)),
    _punctuation(","),
    _punctuation("."),
)

# ---------------------------------------------------------------------------
# Literal keywords
# ---------------------------------------------------------------------------

LITERALS = (
    _atom("true", _doc(
        "true", "Boolean true literal.",
        examples=["where active = true", "prune archived = true"]), node_type="Boolean"),
    _atom("false", _doc(
        "false", "Boolean false literal.",
        examples=["where active = false", "where draft != false"])),
    _atom("null", _doc(
        "null", "Null value. Use =? and !=? for null-safe comparisons.",
        examples=["where status != null", "where priority =? null"]), node_type="Null"),
    _atom("today", _doc(
        "today", "Current date at midnight. Supports arithmetic with durations.",
        examples=["date = today", "date > today - 7d"]), node_type="RelativeDate"),
    _atom("yesterday", _doc(
        "yesterday", "Previous day at midnight.",
        examples=["date = yesterday", "created > yesterday"])),
    _atom("tomorrow", _doc(
        "tomorrow", "Next day at midnight.",
        examples=["due = tomorrow", "due < tomorrow + 7d"])),
    _atom("startOfWeek", _doc(
        "startOfWeek", "First day of the current week (Sunday) at midnight.",
        examples=["date >= startOfWeek", "modified > startOfWeek"])),
    _atom("endOfWeek", _doc(
        "endOfWeek", "Last day of the current week (Saturday) at midnight.",
        examples=["due <= endOfWeek"])),
)

# ---------------------------------------------------------------------------
# Expression and leaf node types
# ---------------------------------------------------------------------------

EXPRESSIONS = (
    _expr("OrExpr"),
    _expr("AndExpr"),
    _expr("NotExpr"),
    _expr("CompareExpr"),
    _expr("InExpr"),
    _expr("RangeExpr"),
    _expr("ArithExpr"),
    _expr("ParenExpr"),
    _expr("FunctionCall"),
    _expr("ArgList", opens=(Ctx.EXPRESSION,)),
    _expr("PropertyAccess"),
    _expr("BuiltinAccess"),
    _expr("String", Hl.STRING),
    _expr("Number", Hl.NUMBER),
    _expr("Duration", Hl.NUMBER),
    _expr("DateLiteral", Hl.ATOM),
    ConstructDescriptor(name="FunctionName", node_type="FunctionName",
                        highlighting=Hl.FUNCTION),
    ConstructDescriptor(name="BuiltinIdentifier", node_type="BuiltinIdentifier",
                        highlighting=Hl.PROPERTY),
    ConstructDescriptor(name="Identifier", node_type="Identifier",
                        highlighting=Hl.VARIABLE),
)

CONSTRUCTS: tuple[ConstructDescriptor, ...] = CLAUSES + MODIFIERS + OPERATORS + LITERALS + EXPRESSIONS


def build_registry(constructs=CONSTRUCTS) -> Registry:
    """Build a fresh registry from the construct table and freeze it."""
    registry = Registry()
    for descriptor in constructs:
        register_construct(registry, descriptor.name, descriptor)
    return registry.freeze()


@lru_cache(maxsize=None)
def default_registry() -> Registry:
    """Process-wide registry shared by the language server."""
    return build_registry()
