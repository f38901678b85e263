"""Generate Sentinel-compliant trust policies for the supported patterns."""
from __future__ import annotations

from .models import (
    POLICY_VERSION,
    SENTINEL_WILDCARD,
    SOURCE_IDENTITY_KEY,
    GenerateInput,
    GenerateOutput,
    Principal,
    Statement,
    TrustPolicyDocument,
    TrustPolicyPattern,
)

_ASSUME_ROLE = ("sts:AssumeRole",)


class GenerateError(ValueError):
    """Raised when generation input is incomplete or inconsistent."""


def generate_trust_policy(request: GenerateInput) -> GenerateOutput:
    """
    Build a trust policy for *request.pattern*.

    - ``any-sentinel``: accept any Sentinel-issued session.
    - ``specific-users``: accept Sentinel sessions for the listed users only.
    - ``migration``: ``any-sentinel`` plus an unconditioned statement for a
      legacy principal.

    Raises:
        GenerateError: unknown pattern or a missing required field. Nothing
            is built when validation fails.
    """
    pattern = _coerce_pattern(request.pattern)

    if not request.principal_arn:
        raise GenerateError("principal ARN is required")
    if pattern == TrustPolicyPattern.SPECIFIC_USERS and not request.users:
        raise GenerateError("users list is required for 'specific-users' pattern")
    if pattern == TrustPolicyPattern.MIGRATION and not request.legacy_principal:
        raise GenerateError("legacy principal is required for 'migration' pattern")

    if pattern == TrustPolicyPattern.ANY_SENTINEL:
        statements = (_sentinel_statement(request.principal_arn),)
    elif pattern == TrustPolicyPattern.SPECIFIC_USERS:
        statements = (_users_statement(request.principal_arn, request.users),)
    else:
        statements = (
            _sentinel_statement(request.principal_arn),
            Statement(
                sid="AllowLegacyAccess",
                effect="Allow",
                principal=Principal(aws=(request.legacy_principal,)),
                action=_ASSUME_ROLE,
            ),
        )

    return GenerateOutput(
        pattern=pattern,
        policy=TrustPolicyDocument(version=POLICY_VERSION, statements=statements),
    )


def _coerce_pattern(value) -> TrustPolicyPattern:
    if isinstance(value, TrustPolicyPattern):
        return value
    try:
        return TrustPolicyPattern(value)
    except ValueError:
        raise GenerateError(
            "pattern is required: must be one of 'any-sentinel', "
            "'specific-users', or 'migration'"
        ) from None


def _sentinel_statement(principal_arn: str) -> Statement:
    return Statement(
        sid="AllowSentinelAccess",
        effect="Allow",
        principal=Principal(aws=(principal_arn,)),
        action=_ASSUME_ROLE,
        condition={"StringLike": {SOURCE_IDENTITY_KEY: (SENTINEL_WILDCARD,)}},
    )


def _users_statement(principal_arn: str, users) -> Statement:
    patterns = tuple(f"sentinel:{user}:*" for user in users)
    return Statement(
        sid="AllowSentinelUsers",
        effect="Allow",
        principal=Principal(aws=(principal_arn,)),
        action=_ASSUME_ROLE,
        condition={"StringLike": {SOURCE_IDENTITY_KEY: patterns}},
    )
