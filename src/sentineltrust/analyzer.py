"""Classify how completely a trust policy requires Sentinel-issued credentials."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .matcher import (
    get_source_identity_patterns,
    has_sentinel_wildcard_pattern,
    has_source_identity_deny,
    is_sentinel_pattern,
    string_equals_source_identity,
)
from .models import (
    SENTINEL_PREFIX,
    SENTINEL_WILDCARD,
    AnalysisResult,
    EnforcementLevel,
    EnforcementStatus,
    Statement,
    TrustPolicyDocument,
)

ISSUE_NO_SOURCE_IDENTITY = "No sts:SourceIdentity condition found in any Allow statement"
ISSUE_NON_SENTINEL_PATTERN = (
    "SourceIdentity condition exists but pattern does not match sentinel:*"
)
ISSUE_STRING_EQUALS_WILDCARD = (
    "Using StringEquals with wildcard pattern - use StringLike instead for pattern matching"
)
ISSUE_MIXED_ENFORCEMENT = (
    "Mixed enforcement: some Allow statements lack SourceIdentity condition (migration mode)"
)

REC_ADD_CONDITION = (
    "Add StringLike condition for sts:SourceIdentity with pattern sentinel:* "
    "to require Sentinel enforcement"
)
REC_REMOVE_LEGACY = (
    "Add sts:SourceIdentity condition to all Allow statements, "
    "or remove legacy statements after migration"
)
REC_USE_WILDCARD = "Update SourceIdentity pattern to sentinel:* for full Sentinel enforcement"
REC_USE_STRING_LIKE = "Change StringEquals to StringLike for wildcard patterns (sentinel:*)"


def analyze_trust_policy(policy: Optional[TrustPolicyDocument]) -> AnalysisResult:
    """
    Analyze *policy* and return its enforcement level and status.

    Never raises: a missing document is reported as an advisory/none result
    with an explanatory issue.
    """
    if policy is None:
        return AnalysisResult(
            level=EnforcementLevel.ADVISORY,
            status=EnforcementStatus.NONE,
            has_source_identity_condition=False,
            issues=("policy document is nil",),
            recommendations=("Provide a valid trust policy document",),
        )

    signals = _collect_signals(policy)
    status = _determine_status(signals)

    level = signals.level
    if status == EnforcementStatus.NONE:
        # No Allow statement is gated, so nothing is enforced even if an
        # SCP-style Deny was seen.
        level = EnforcementLevel.ADVISORY

    return AnalysisResult(
        level=level,
        status=status,
        has_source_identity_condition=signals.has_any_source_identity,
        issues=tuple(_build_issues(signals)),
        recommendations=tuple(_build_recommendations(status, signals)),
    )


def is_enforced(policy: Optional[TrustPolicyDocument]) -> bool:
    """True only for full Sentinel enforcement."""
    return analyze_trust_policy(policy).status == EnforcementStatus.FULL


def analyze_statement(stmt: Optional[Statement]) -> tuple[bool, list[str]]:
    """
    Analyze one statement in isolation.

    Returns ``(enforced, patterns)`` where *enforced* requires an Allow
    effect and at least one ``sentinel:``-prefixed SourceIdentity pattern.
    """
    if stmt is None or stmt.effect != "Allow":
        return False, []
    patterns = get_source_identity_patterns(stmt)
    if not patterns:
        return False, []
    return any(is_sentinel_pattern(p) for p in patterns), patterns


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

@dataclass
class _Signals:
    level: EnforcementLevel = EnforcementLevel.TRUST_POLICY
    has_any_source_identity: bool = False
    has_sentinel_wildcard: bool = False
    has_user_specific: bool = False
    string_equals_wildcard: bool = False
    enforced_statements: int = 0
    legacy_statements: bool = False


def _collect_signals(policy: TrustPolicyDocument) -> _Signals:
    s = _Signals()
    for stmt in policy.statements:
        if stmt.effect != "Allow":
            if stmt.effect == "Deny" and has_source_identity_deny(stmt.condition):
                s.level = EnforcementLevel.SCP
            continue

        patterns = get_source_identity_patterns(stmt)
        if not patterns:
            s.legacy_statements = True
            continue

        s.has_any_source_identity = True
        if has_sentinel_wildcard_pattern(patterns):
            s.has_sentinel_wildcard = True
            s.enforced_statements += 1
        else:
            for p in patterns:
                if is_sentinel_pattern(p) and p != SENTINEL_WILDCARD:
                    s.has_user_specific = True
                    s.enforced_statements += 1

        if any(_looks_like_wildcard(v) for v in string_equals_source_identity(stmt.condition)):
            s.string_equals_wildcard = True
    return s


def _looks_like_wildcard(value: str) -> bool:
    return value == SENTINEL_WILDCARD or (
        len(value) > len(SENTINEL_PREFIX)
        and value.startswith(SENTINEL_PREFIX)
        and value.endswith("*")
    )


# First matching rule wins; no match means partial.
_STATUS_RULES: tuple[tuple[Callable[[_Signals], bool], EnforcementStatus], ...] = (
    (lambda s: not s.has_any_source_identity, EnforcementStatus.NONE),
    (
        lambda s: (s.has_sentinel_wildcard or s.has_user_specific) and not s.legacy_statements,
        EnforcementStatus.FULL,
    ),
    (lambda s: s.enforced_statements > 0 and s.legacy_statements, EnforcementStatus.PARTIAL),
    (lambda s: s.enforced_statements > 0, EnforcementStatus.FULL),
)


def _determine_status(signals: _Signals) -> EnforcementStatus:
    for predicate, status in _STATUS_RULES:
        if predicate(signals):
            return status
    return EnforcementStatus.PARTIAL


def _build_issues(s: _Signals) -> list[str]:
    issues: list[str] = []
    if not s.has_any_source_identity:
        issues.append(ISSUE_NO_SOURCE_IDENTITY)
    if s.has_any_source_identity and not s.has_sentinel_wildcard and not s.has_user_specific:
        issues.append(ISSUE_NON_SENTINEL_PATTERN)
    if s.string_equals_wildcard:
        issues.append(ISSUE_STRING_EQUALS_WILDCARD)
    if s.legacy_statements and s.has_any_source_identity:
        issues.append(ISSUE_MIXED_ENFORCEMENT)
    return issues


def _build_recommendations(status: EnforcementStatus, s: _Signals) -> list[str]:
    recs: list[str] = []
    if status == EnforcementStatus.NONE:
        recs.append(REC_ADD_CONDITION)
    elif status == EnforcementStatus.PARTIAL:
        if s.legacy_statements:
            recs.append(REC_REMOVE_LEGACY)
        # User-specific patterns without the broad wildcard are acceptable.
        if not s.has_sentinel_wildcard and not s.has_user_specific:
            recs.append(REC_USE_WILDCARD)
    if s.string_equals_wildcard:
        recs.append(REC_USE_STRING_LIKE)
    return recs
