"""AWS string condition operators and SourceIdentity pattern helpers."""
from __future__ import annotations

from typing import Optional

from .models import (
    EXTERNAL_ID_KEY,
    SENTINEL_PREFIX,
    SENTINEL_WILDCARD,
    SOURCE_IDENTITY_KEY,
    ConditionBlock,
    Statement,
)

# Order in which operators are searched for sts:SourceIdentity values.
SOURCE_IDENTITY_OPERATORS = (
    "StringLike",
    "StringEquals",
    "StringNotLike",
    "StringNotEquals",
)


def match_pattern(pattern: str, value: str) -> bool:
    """
    AWS ``StringLike`` matching: ``*`` matches any run of characters
    (including none), ``?`` matches exactly one. Case-sensitive.

    Backtracks only to the most recent ``*``, which is enough for glob
    patterns and keeps matching linear in practice.

    >>> match_pattern("sentinel:*", "sentinel:alice:abc")
    True
    >>> match_pattern("sentinel:alice:*", "sentinel:bob:x")
    False
    """
    p = v = 0
    star = -1
    star_v = 0
    while v < len(value):
        if p < len(pattern) and pattern[p] == "*":
            # Collapse consecutive stars
            while p < len(pattern) and pattern[p] == "*":
                p += 1
            if p == len(pattern):
                return True
            star, star_v = p, v
        elif p < len(pattern) and (pattern[p] == "?" or pattern[p] == value[v]):
            p += 1
            v += 1
        elif star != -1:
            star_v += 1
            p, v = star, star_v
        else:
            return False
    while p < len(pattern) and pattern[p] == "*":
        p += 1
    return p == len(pattern)


def evaluate_condition(operator: str, pattern: str, value: str) -> bool:
    """Evaluate one string condition operator. Unknown operators deny."""
    if operator == "StringLike":
        return match_pattern(pattern, value)
    if operator == "StringNotLike":
        return not match_pattern(pattern, value)
    if operator == "StringEquals":
        return pattern == value
    if operator == "StringNotEquals":
        return pattern != value
    return False


def get_source_identity_patterns(stmt: Optional[Statement]) -> list[str]:
    """
    Return every ``sts:SourceIdentity`` value referenced by *stmt*, whatever
    the operator polarity, in StringLike, StringEquals, StringNotLike,
    StringNotEquals order.
    """
    if stmt is None or not stmt.condition:
        return []
    patterns: list[str] = []
    for operator in SOURCE_IDENTITY_OPERATORS:
        patterns.extend(_condition_values(stmt.condition, operator, SOURCE_IDENTITY_KEY))
    return patterns


def has_sentinel_wildcard_pattern(patterns) -> bool:
    return any(p == SENTINEL_WILDCARD for p in patterns)


def is_sentinel_pattern(pattern: str) -> bool:
    """True for ``sentinel:*``, ``sentinel:alice:*``, ``sentinel:bob:a1b2``..."""
    return pattern.startswith(SENTINEL_PREFIX)


def has_source_identity_deny(condition: ConditionBlock) -> bool:
    """True if the block denies non-Sentinel sessions via StringNotLike (SCP shape)."""
    return any(
        v == SENTINEL_WILDCARD or (len(v) > len(SENTINEL_PREFIX) and v.startswith(SENTINEL_PREFIX))
        for v in _condition_values(condition, "StringNotLike", SOURCE_IDENTITY_KEY)
    )


def has_source_identity_key(condition: ConditionBlock) -> bool:
    """True if StringLike or StringEquals constrains sts:SourceIdentity."""
    return _has_key(condition, "StringLike", SOURCE_IDENTITY_KEY) or _has_key(
        condition, "StringEquals", SOURCE_IDENTITY_KEY
    )


def has_external_id_condition(condition: ConditionBlock) -> bool:
    return _has_key(condition, "StringEquals", EXTERNAL_ID_KEY)


def string_equals_source_identity(condition: ConditionBlock) -> tuple[str, ...]:
    """The ``StringEquals`` values for sts:SourceIdentity, if any."""
    return _condition_values(condition, "StringEquals", SOURCE_IDENTITY_KEY)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _condition_values(condition: ConditionBlock, operator: str, key: str) -> tuple[str, ...]:
    if not condition:
        return ()
    return tuple(condition.get(operator, {}).get(key, ()))


def _has_key(condition: ConditionBlock, operator: str, key: str) -> bool:
    if not condition:
        return False
    return key in condition.get(operator, {})
