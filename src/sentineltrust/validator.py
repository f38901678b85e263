"""Rule-based compliance checks for trust policy statements.

Rules (Allow statements only):

  TRUST-01  high    Wildcard principal with no conditions at all
  TRUST-02  high    No sts:SourceIdentity under StringLike / StringEquals
  TRUST-03  medium  SourceIdentity patterns present, none prefixed sentinel:
  TRUST-04  medium  Account root principal without SourceIdentity or ExternalId
  TRUST-05  low     StringEquals SourceIdentity value containing ``*``

Deny statements are never evaluated: they cannot widen who may assume the
role. NotLike / NotEquals SourceIdentity conditions do not satisfy TRUST-02
for the same reason, they describe a denial, not a grant precondition.
"""
from __future__ import annotations

from typing import Iterable, Optional

from .matcher import (
    get_source_identity_patterns,
    has_external_id_condition,
    has_source_identity_key,
    is_sentinel_pattern,
    string_equals_source_identity,
)
from .models import (
    RiskLevel,
    Statement,
    TrustPolicyDocument,
    ValidationFinding,
    ValidationResult,
)


def validate_trust_policy(policy: Optional[TrustPolicyDocument]) -> ValidationResult:
    """Validate *policy* and return its findings. Never raises."""
    if policy is None:
        return _result(
            [
                ValidationFinding(
                    rule_id="TRUST-00",
                    risk_level=RiskLevel.HIGH,
                    message="Trust policy document is nil",
                    recommendation="Provide a valid trust policy document",
                    affected_statement="N/A",
                )
            ]
        )

    findings: list[ValidationFinding] = []
    for i, stmt in enumerate(policy.statements):
        if stmt.effect != "Allow":
            continue
        findings.extend(_check_statement(stmt, stmt.sid or f"Statement[{i}]"))
    return _result(findings)


def filter_findings(
    result: ValidationResult, min_risk: RiskLevel
) -> list[ValidationFinding]:
    """Findings at or above *min_risk*, most severe first (stable within a level)."""
    kept = [f for f in result.findings if f.risk_level.rank >= min_risk.rank]
    return sorted(kept, key=lambda f: -f.risk_level.rank)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _check_statement(stmt: Statement, stmt_id: str) -> Iterable[ValidationFinding]:
    has_source_identity = has_source_identity_key(stmt.condition)

    if stmt.principal.wildcard and not stmt.condition:
        yield ValidationFinding(
            rule_id="TRUST-01",
            risk_level=RiskLevel.HIGH,
            message=(
                'Wildcard principal ("*") without any conditions allows anyone '
                "to assume this role"
            ),
            recommendation=(
                "Add StringLike condition for sts:SourceIdentity with pattern "
                "sentinel:* or restrict the principal"
            ),
            affected_statement=stmt_id,
        )

    if not has_source_identity:
        yield ValidationFinding(
            rule_id="TRUST-02",
            risk_level=RiskLevel.HIGH,
            message=(
                "Allow statement missing sts:SourceIdentity condition - "
                "non-Sentinel credentials can assume this role"
            ),
            recommendation="Add StringLike condition for sts:SourceIdentity with pattern sentinel:*",
            affected_statement=stmt_id,
        )

    patterns = get_source_identity_patterns(stmt)
    if patterns and not any(is_sentinel_pattern(p) for p in patterns):
        yield ValidationFinding(
            rule_id="TRUST-03",
            risk_level=RiskLevel.MEDIUM,
            message="SourceIdentity pattern does not match sentinel:* or sentinel:{user}:* format",
            recommendation=(
                "Use pattern sentinel:* for any Sentinel credentials or "
                "sentinel:{username}:* for specific users"
            ),
            affected_statement=stmt_id,
        )

    if (
        any(arn.endswith(":root") for arn in stmt.principal.aws)
        and not has_source_identity
        and not has_external_id_condition(stmt.condition)
    ):
        yield ValidationFinding(
            rule_id="TRUST-04",
            risk_level=RiskLevel.MEDIUM,
            message=(
                "Root principal without ExternalId or SourceIdentity condition - "
                "allows any IAM entity in the account"
            ),
            recommendation="Add sts:ExternalId condition or require SourceIdentity with pattern sentinel:*",
            affected_statement=stmt_id,
        )

    if any("*" in v for v in string_equals_source_identity(stmt.condition)):
        yield ValidationFinding(
            rule_id="TRUST-05",
            risk_level=RiskLevel.LOW,
            message=(
                "Using StringEquals with wildcard pattern (*) - wildcards require "
                "StringLike operator"
            ),
            recommendation="Change StringEquals to StringLike for patterns containing * wildcard",
            affected_statement=stmt_id,
        )


def _result(findings: list[ValidationFinding]) -> ValidationResult:
    summary = {level: 0 for level in RiskLevel}
    for f in findings:
        summary[f.risk_level] += 1
    return ValidationResult(
        findings=tuple(findings),
        risk_summary=summary,
        is_compliant=summary[RiskLevel.HIGH] == 0 and summary[RiskLevel.MEDIUM] == 0,
    )
