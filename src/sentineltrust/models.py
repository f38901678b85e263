"""Pure data models for sentineltrust. No I/O, no AWS calls."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

# AWS fields that accept either "value" or ["v1", "v2"] are held as tuples.
StringOrSlice = tuple[str, ...]

# Operator -> condition key -> values, e.g.
# {"StringLike": {"sts:SourceIdentity": ("sentinel:*",)}}
ConditionOperator = dict[str, StringOrSlice]
ConditionBlock = dict[str, ConditionOperator]

SOURCE_IDENTITY_KEY = "sts:SourceIdentity"
EXTERNAL_ID_KEY = "sts:ExternalId"
SENTINEL_PREFIX = "sentinel:"
SENTINEL_WILDCARD = "sentinel:*"
POLICY_VERSION = "2012-10-17"


class EnforcementLevel(Enum):
    ADVISORY = "advisory"
    TRUST_POLICY = "trust_policy"
    SCP = "scp"


class EnforcementStatus(Enum):
    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"


class RiskLevel(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Higher is more severe."""
        return {RiskLevel.HIGH: 3, RiskLevel.MEDIUM: 2, RiskLevel.LOW: 1}[self]


class TrustPolicyPattern(Enum):
    ANY_SENTINEL = "any-sentinel"
    SPECIFIC_USERS = "specific-users"
    MIGRATION = "migration"


class DriftStatus(Enum):
    OK = "ok"
    PARTIAL = "partial"
    NONE = "none"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Trust policy document
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Principal:
    """The Principal element: either ``"*"`` or an AWS/Service/Federated map."""

    wildcard: bool = False
    aws: StringOrSlice = ()
    service: StringOrSlice = ()
    federated: StringOrSlice = ()

    @classmethod
    def any(cls) -> Principal:
        return cls(wildcard=True)


@dataclass(frozen=True)
class Statement:
    """A single trust policy statement."""

    effect: str
    principal: Principal
    action: StringOrSlice
    sid: Optional[str] = None
    # Dicts are left out of the hash; equality still compares them.
    condition: ConditionBlock = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class TrustPolicyDocument:
    """An IAM AssumeRolePolicyDocument."""

    version: str
    statements: tuple[Statement, ...]


# ---------------------------------------------------------------------------
# Analysis / validation results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnalysisResult:
    """How completely a trust policy requires Sentinel-issued credentials."""

    level: EnforcementLevel
    status: EnforcementStatus
    has_source_identity_condition: bool
    issues: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationFinding:
    """One rule violation found in a trust policy statement."""

    rule_id: str
    risk_level: RiskLevel
    message: str
    recommendation: str
    affected_statement: str


@dataclass(frozen=True)
class ValidationResult:
    """All findings for a trust policy plus a per-risk tally."""

    findings: tuple[ValidationFinding, ...]
    risk_summary: dict[RiskLevel, int] = field(hash=False)
    is_compliant: bool


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GenerateInput:
    pattern: Union[TrustPolicyPattern, str, None]
    principal_arn: str
    users: tuple[str, ...] = ()
    legacy_principal: Optional[str] = None


@dataclass(frozen=True)
class GenerateOutput:
    pattern: TrustPolicyPattern
    policy: TrustPolicyDocument


# ---------------------------------------------------------------------------
# Per-role results produced by the Advisor / DriftChecker
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RoleAnalysis:
    role_arn: str
    role_name: str = ""
    analysis: Optional[AnalysisResult] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class RoleValidation:
    role_arn: str
    role_name: str = ""
    validation: Optional[ValidationResult] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DriftCheckResult:
    status: DriftStatus
    role_arn: str
    message: str
    error: Optional[str] = None
