"""Relation name canonicalization.

Relation identity is case-insensitive and ignores surrounding whitespace;
every place that compares relation names goes through this one rule.
"""


def normalize_relation_name(name: str) -> str:
    return name.strip().lower()


def same_relation(a: str, b: str) -> bool:
    return normalize_relation_name(a) == normalize_relation_name(b)
