"""Tests for sentineltrust.generator, including analyze/validate of generated output."""
import pytest

from sentineltrust.analyzer import ISSUE_MIXED_ENFORCEMENT, analyze_trust_policy
from sentineltrust.generator import GenerateError, generate_trust_policy
from sentineltrust.models import (
    EnforcementStatus,
    GenerateInput,
    TrustPolicyPattern,
)
from sentineltrust.parser import document_to_dict
from sentineltrust.validator import validate_trust_policy

ACCOUNT = "123456789012"
ROOT_ARN = f"arn:aws:iam::{ACCOUNT}:root"
LEGACY_ARN = f"arn:aws:iam::{ACCOUNT}:role/LegacyDeployer"


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("pattern", [None, "", "pattern-d", "ANY-SENTINEL"])
def test_unknown_pattern_rejected(pattern):
    with pytest.raises(GenerateError, match="pattern is required"):
        generate_trust_policy(GenerateInput(pattern=pattern, principal_arn=ROOT_ARN))


def test_principal_required():
    with pytest.raises(GenerateError, match="principal ARN is required"):
        generate_trust_policy(GenerateInput(pattern="any-sentinel", principal_arn=""))


def test_specific_users_requires_users():
    with pytest.raises(GenerateError, match="users list is required"):
        generate_trust_policy(GenerateInput(pattern="specific-users", principal_arn=ROOT_ARN))


def test_migration_requires_legacy_principal():
    with pytest.raises(GenerateError, match="legacy principal is required"):
        generate_trust_policy(GenerateInput(pattern="migration", principal_arn=ROOT_ARN))


def test_generate_error_is_value_error():
    assert issubclass(GenerateError, ValueError)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

def test_any_sentinel_shape():
    out = generate_trust_policy(
        GenerateInput(pattern=TrustPolicyPattern.ANY_SENTINEL, principal_arn=ROOT_ARN)
    )
    assert out.pattern == TrustPolicyPattern.ANY_SENTINEL
    assert document_to_dict(out.policy) == {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "AllowSentinelAccess",
                "Effect": "Allow",
                "Principal": {"AWS": ROOT_ARN},
                "Action": "sts:AssumeRole",
                "Condition": {"StringLike": {"sts:SourceIdentity": "sentinel:*"}},
            }
        ],
    }


def test_any_sentinel_is_full_and_compliant():
    out = generate_trust_policy(GenerateInput(pattern="any-sentinel", principal_arn=ROOT_ARN))
    analysis = analyze_trust_policy(out.policy)
    assert analysis.status == EnforcementStatus.FULL
    assert analysis.issues == ()
    assert validate_trust_policy(out.policy).is_compliant is True


def test_specific_users_patterns_in_input_order():
    out = generate_trust_policy(
        GenerateInput(pattern="specific-users", principal_arn=ROOT_ARN, users=("alice", "bob"))
    )
    assert len(out.policy.statements) == 1
    stmt = out.policy.statements[0]
    assert stmt.sid == "AllowSentinelUsers"
    assert stmt.condition == {
        "StringLike": {"sts:SourceIdentity": ("sentinel:alice:*", "sentinel:bob:*")}
    }
    assert analyze_trust_policy(out.policy).status == EnforcementStatus.FULL
    assert validate_trust_policy(out.policy).is_compliant is True


def test_migration_shape():
    out = generate_trust_policy(
        GenerateInput(pattern="migration", principal_arn=ROOT_ARN, legacy_principal=LEGACY_ARN)
    )
    first, second = out.policy.statements
    assert first.sid == "AllowSentinelAccess"
    assert second.sid == "AllowLegacyAccess"
    assert second.principal.aws == (LEGACY_ARN,)
    assert second.action == ("sts:AssumeRole",)
    assert second.condition == {}
    assert "Condition" not in document_to_dict(out.policy)["Statement"][1]


def test_migration_is_partial_and_flags_legacy_statement():
    out = generate_trust_policy(
        GenerateInput(pattern="migration", principal_arn=ROOT_ARN, legacy_principal=LEGACY_ARN)
    )
    analysis = analyze_trust_policy(out.policy)
    assert analysis.status == EnforcementStatus.PARTIAL
    assert ISSUE_MIXED_ENFORCEMENT in analysis.issues

    validation = validate_trust_policy(out.policy)
    assert [(f.rule_id, f.affected_statement) for f in validation.findings] == [
        ("TRUST-02", "AllowLegacyAccess")
    ]
