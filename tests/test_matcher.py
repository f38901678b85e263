"""Tests for sentineltrust.matcher — AWS string condition semantics."""
import pytest

from sentineltrust.matcher import (
    evaluate_condition,
    get_source_identity_patterns,
    has_external_id_condition,
    has_sentinel_wildcard_pattern,
    has_source_identity_deny,
    has_source_identity_key,
    is_sentinel_pattern,
    match_pattern,
)
from sentineltrust.models import Principal, Statement


def _stmt(condition=None, effect="Allow") -> Statement:
    return Statement(
        effect=effect,
        principal=Principal(aws=("arn:aws:iam::123456789012:root",)),
        action=("sts:AssumeRole",),
        condition=condition or {},
    )


# ---------------------------------------------------------------------------
# match_pattern
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("literal", ["", "a", "sentinel:alice:abc", "arn:aws:iam::123456789012:root"])
def test_literal_matches_itself_only(literal):
    assert match_pattern(literal, literal)
    assert not match_pattern(literal, literal + "x")


@pytest.mark.parametrize("value", ["", "x", "sentinel:alice:abc", "*?"])
def test_star_matches_everything(value):
    assert match_pattern("*", value)


@pytest.mark.parametrize(
    "pattern,value,expected",
    [
        ("sentinel:*", "sentinel:alice:abc", True),
        ("sentinel:*", "sentinel:", True),
        ("sentinel:*", "other:alice:abc", False),
        ("sentinel:alice:*", "sentinel:alice:x", True),
        ("sentinel:alice:*", "sentinel:bob:x", False),
        ("sentinel:?", "sentinel:a", True),
        ("sentinel:?", "sentinel:", False),
        ("sentinel:?", "sentinel:ab", False),
        ("a*b*c", "aXXbYYc", True),
        ("a*b*c", "aXXbYY", False),
        ("a**b", "ab", True),
        ("a***", "a", True),
        ("*:*:*", "sentinel:alice:abc", True),
        ("*:*:*", "sentinel-alice", False),
        ("?*", "", False),
        ("*a", "banana", True),
        ("*an*n?", "banana", True),
        ("Sentinel:*", "sentinel:alice", False),
        ("sentinel:[ab]", "sentinel:a", False),
    ],
)
def test_match_pattern_cases(pattern, value, expected):
    assert match_pattern(pattern, value) is expected


def test_match_pattern_long_input_does_not_blow_up():
    value = "a" * 2000
    assert not match_pattern("*a*a*a*a*a*a*a*b", value)


# ---------------------------------------------------------------------------
# evaluate_condition
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "pattern,value",
    [("sentinel:*", "sentinel:x"), ("sentinel:*", "nope"), ("a?c", "abc"), ("", "")],
)
def test_string_not_like_is_negation(pattern, value):
    assert evaluate_condition("StringNotLike", pattern, value) is (not match_pattern(pattern, value))


def test_string_like_uses_glob():
    assert evaluate_condition("StringLike", "sentinel:*", "sentinel:alice:1")


def test_string_equals_is_exact():
    assert evaluate_condition("StringEquals", "sentinel:*", "sentinel:*")
    assert not evaluate_condition("StringEquals", "sentinel:*", "sentinel:alice:1")


def test_string_not_equals():
    assert evaluate_condition("StringNotEquals", "a", "b")
    assert not evaluate_condition("StringNotEquals", "a", "a")


@pytest.mark.parametrize("operator", ["ArnLike", "StringEqualsIgnoreCase", "", "stringlike"])
def test_unknown_operator_denies(operator):
    assert evaluate_condition(operator, "*", "anything") is False


# ---------------------------------------------------------------------------
# SourceIdentity extraction
# ---------------------------------------------------------------------------

def test_patterns_collected_in_operator_order():
    stmt = _stmt(
        {
            "StringNotEquals": {"sts:SourceIdentity": ("d",)},
            "StringNotLike": {"sts:SourceIdentity": ("c",)},
            "StringEquals": {"sts:SourceIdentity": ("b",)},
            "StringLike": {"sts:SourceIdentity": ("a1", "a2")},
        }
    )
    assert get_source_identity_patterns(stmt) == ["a1", "a2", "b", "c", "d"]


def test_patterns_ignore_other_keys():
    stmt = _stmt({"StringEquals": {"sts:ExternalId": ("abc",)}})
    assert get_source_identity_patterns(stmt) == []


def test_patterns_none_and_no_condition():
    assert get_source_identity_patterns(None) == []
    assert get_source_identity_patterns(_stmt()) == []


def test_sentinel_wildcard_detection():
    assert has_sentinel_wildcard_pattern(["x", "sentinel:*"])
    assert not has_sentinel_wildcard_pattern(["sentinel:alice:*"])
    assert not has_sentinel_wildcard_pattern([])


@pytest.mark.parametrize(
    "pattern,expected",
    [
        ("sentinel:*", True),
        ("sentinel:alice:*", True),
        ("sentinel:bob:a1b2c3d4", True),
        ("sentinel", False),
        ("other:*", False),
        ("*", False),
    ],
)
def test_is_sentinel_pattern(pattern, expected):
    assert is_sentinel_pattern(pattern) is expected


# ---------------------------------------------------------------------------
# Condition block predicates
# ---------------------------------------------------------------------------

def test_source_identity_deny_requires_not_like_sentinel():
    assert has_source_identity_deny({"StringNotLike": {"sts:SourceIdentity": ("sentinel:*",)}})
    assert not has_source_identity_deny({"StringNotLike": {"sts:SourceIdentity": ("other:*",)}})
    assert not has_source_identity_deny({"StringLike": {"sts:SourceIdentity": ("sentinel:*",)}})
    assert not has_source_identity_deny({})


def test_source_identity_deny_ignores_bare_prefix():
    assert not has_source_identity_deny({"StringNotLike": {"sts:SourceIdentity": ("sentinel:",)}})
    assert has_source_identity_deny({"StringNotLike": {"sts:SourceIdentity": ("sentinel:alice",)}})


def test_source_identity_key_only_like_and_equals():
    assert has_source_identity_key({"StringLike": {"sts:SourceIdentity": ("x",)}})
    assert has_source_identity_key({"StringEquals": {"sts:SourceIdentity": ("x",)}})
    assert not has_source_identity_key({"StringNotLike": {"sts:SourceIdentity": ("x",)}})
    assert not has_source_identity_key({"StringNotEquals": {"sts:SourceIdentity": ("x",)}})


def test_external_id_condition():
    assert has_external_id_condition({"StringEquals": {"sts:ExternalId": ("abc",)}})
    assert not has_external_id_condition({"StringLike": {"sts:ExternalId": ("abc",)}})
