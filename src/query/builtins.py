"""Built-in functions and property namespaces of the TQL language.

Single source of truth for completion, hover and call validation, so the
three never drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .descriptors import NodeDoc

VARIADIC = None  # max_arity for functions taking any number of arguments


@dataclass(frozen=True)
class FunctionDef:
    """One built-in function."""

    name: str
    signature: str
    description: str
    return_type: str
    min_arity: int
    max_arity: Optional[int]

    @property
    def doc(self) -> NodeDoc:
        return NodeDoc(
            title=self.name,
            description=self.description,
            syntax=self.signature,
            return_type=self.return_type,
        )

    def accepts(self, count: int) -> bool:
        if count < self.min_arity:
            return False
        return self.max_arity is VARIADIC or count <= self.max_arity


@dataclass(frozen=True)
class BuiltinProperty:
    name: str
    type: str
    description: str


@dataclass(frozen=True)
class BuiltinNamespace:
    """A ``$``-prefixed namespace such as ``$file``."""

    name: str
    description: str
    properties: tuple[BuiltinProperty, ...] = field(default_factory=tuple)

    @property
    def bare_name(self) -> str:
        return self.name[1:]

    @property
    def doc(self) -> NodeDoc:
        syntax = f"{self.name}.property" if self.properties else self.name
        return NodeDoc(
            title=self.name,
            description=self.description,
            syntax=syntax,
            examples=tuple(f"{self.name}.{p.name}" for p in self.properties[:2]),
        )


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------

FUNCTIONS: tuple[FunctionDef, ...] = (
    # String
    FunctionDef("contains", "contains(haystack, needle)", "Check if string contains substring", "boolean", 2, 2),
    FunctionDef("startsWith", "startsWith(string, prefix)", "Check if string starts with prefix", "boolean", 2, 2),
    FunctionDef("endsWith", "endsWith(string, suffix)", "Check if string ends with suffix", "boolean", 2, 2),
    FunctionDef("length", "length(string)", "Get string length", "number", 1, 1),
    FunctionDef("lower", "lower(string)", "Convert string to lowercase", "string", 1, 1),
    FunctionDef("upper", "upper(string)", "Convert string to uppercase", "string", 1, 1),
    FunctionDef("trim", "trim(string)", "Remove leading and trailing whitespace", "string", 1, 1),
    FunctionDef("split", "split(string, delimiter)", "Split string into array", "array", 2, 2),
    FunctionDef("matches", "matches(string, pattern, flags?)", "Test string against regex pattern", "boolean", 2, 3),
    # File
    FunctionDef("inFolder", "inFolder(folder)", "Check if file is in folder", "boolean", 1, 1),
    FunctionDef("hasExtension", "hasExtension(ext)", "Check file extension", "boolean", 1, 1),
    FunctionDef("hasTag", "hasTag(tag)", "Check if file has tag", "boolean", 1, 1),
    FunctionDef("tags", "tags()", "Get all tags from file", "array", 0, 0),
    FunctionDef("hasLink", "hasLink(target)", "Check if file links to target", "boolean", 1, 1),
    FunctionDef("backlinks", "backlinks()", "Get files linking to this file", "array", 0, 0),
    FunctionDef("outlinks", "outlinks()", "Get files this file links to", "array", 0, 0),
    # Array
    FunctionDef("len", "len(array)", "Get array length", "number", 1, 1),
    FunctionDef("first", "first(array)", "Get first element", "any", 1, 1),
    FunctionDef("last", "last(array)", "Get last element", "any", 1, 1),
    FunctionDef("isEmpty", "isEmpty(array)", "Check if array is empty", "boolean", 1, 1),
    # Existence
    FunctionDef("exists", "exists(value)", "Check if value is not null", "boolean", 1, 1),
    FunctionDef("coalesce", "coalesce(value1, value2, ...)", "Return first non-null value", "any", 1, VARIADIC),
    FunctionDef("ifnull", "ifnull(value, default)", "Return default if value is null", "any", 2, 2),
    # Date
    FunctionDef("now", "now()", "Get current date and time", "date", 0, 0),
    FunctionDef("date", "date(string)", "Parse string to date", "date", 1, 1),
    FunctionDef("year", "year(date)", "Get year from date", "number", 1, 1),
    FunctionDef("month", "month(date)", "Get month from date (1-12)", "number", 1, 1),
    FunctionDef("day", "day(date)", "Get day of month from date", "number", 1, 1),
    FunctionDef("weekday", "weekday(date)", "Get day of week (0=Sun, 6=Sat)", "number", 1, 1),
    FunctionDef("hours", "hours(date)", "Get hours from date", "number", 1, 1),
    FunctionDef("minutes", "minutes(date)", "Get minutes from date", "number", 1, 1),
    FunctionDef("format", "format(date, pattern)", "Format date as string", "string", 2, 2),
    FunctionDef("dateDiff", "dateDiff(date1, date2, unit)", "Get difference between dates", "number", 3, 3),
    # Property access
    FunctionDef("prop", "prop(name)", "Access property by name (for reserved names)", "any", 1, 1),
)


# ---------------------------------------------------------------------------
# Namespaces
# ---------------------------------------------------------------------------

FILE_NAMESPACE = BuiltinNamespace("$file", "File metadata namespace", (
    BuiltinProperty("name", "string", "File name without extension"),
    BuiltinProperty("path", "string", "Full file path"),
    BuiltinProperty("folder", "string", "Parent folder path"),
    BuiltinProperty("created", "date", "File creation date"),
    BuiltinProperty("modified", "date", "Last modification date"),
    BuiltinProperty("size", "number", "File size in bytes"),
    BuiltinProperty("tags", "array", "File tags"),
))

TRAVERSAL_NAMESPACE = BuiltinNamespace("$traversal", "Traversal context namespace", (
    BuiltinProperty("depth", "number", "Depth from active file"),
    BuiltinProperty("relation", "string", "Relation that led here"),
    BuiltinProperty("isImplied", "boolean", "Whether edge is implied"),
    BuiltinProperty("parent", "string", "Parent node path"),
    BuiltinProperty("path", "array", "Full path from root"),
))

CHAIN_NAMESPACE = BuiltinNamespace("$chain", "Sort by sequence position in traversal chain")

NAMESPACES: tuple[BuiltinNamespace, ...] = (FILE_NAMESPACE, TRAVERSAL_NAMESPACE, CHAIN_NAMESPACE)


def flattened_properties(namespaces=NAMESPACES) -> list[BuiltinProperty]:
    """Every namespace property as a dotted path without the ``$`` (``file.name``)."""
    result = []
    for ns in namespaces:
        for prop in ns.properties:
            result.append(BuiltinProperty(f"{ns.bare_name}.{prop.name}", prop.type,
                                          prop.description))
    return result
