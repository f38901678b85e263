"""Fetch IAM role trust policies and run them through the analyzer/validator.

Every per-role failure is captured on that role's result object; the batch
methods always return exactly one result per requested ARN.
"""
from __future__ import annotations

import json
import logging
from typing import Union
from urllib.parse import unquote_plus

from botocore.exceptions import BotoCoreError, ClientError

from .analyzer import analyze_trust_policy
from .models import RoleAnalysis, RoleValidation, TrustPolicyDocument
from .parser import TrustPolicyError, parse_trust_policy
from .validator import validate_trust_policy

logger = logging.getLogger(__name__)


class _RoleFetchError(Exception):
    """Internal: a role could not be turned into a TrustPolicyDocument."""

    def __init__(self, message: str, role_name: str = "") -> None:
        super().__init__(message)
        self.role_name = role_name


class Advisor:
    """Trust policy analysis for IAM roles, backed by a boto3 IAM client."""

    def __init__(self, iam_client) -> None:
        self.iam = iam_client

    def analyze_role(self, role_arn: str) -> RoleAnalysis:
        try:
            role_name, policy = self._load_policy(role_arn)
        except _RoleFetchError as exc:
            logger.warning("Could not analyze %s: %s", role_arn, exc)
            return RoleAnalysis(role_arn=role_arn, role_name=exc.role_name, error=str(exc))
        return RoleAnalysis(
            role_arn=role_arn,
            role_name=role_name,
            analysis=analyze_trust_policy(policy),
        )

    def analyze_roles(self, role_arns) -> list[RoleAnalysis]:
        return [self.analyze_role(arn) for arn in role_arns]

    def validate_role(self, role_arn: str) -> RoleValidation:
        try:
            role_name, policy = self._load_policy(role_arn)
        except _RoleFetchError as exc:
            logger.warning("Could not validate %s: %s", role_arn, exc)
            return RoleValidation(role_arn=role_arn, role_name=exc.role_name, error=str(exc))
        return RoleValidation(
            role_arn=role_arn,
            role_name=role_name,
            validation=validate_trust_policy(policy),
        )

    def validate_roles(self, role_arns) -> list[RoleValidation]:
        return [self.validate_role(arn) for arn in role_arns]

    def list_roles_by_prefix(self, prefix: str) -> list[str]:
        """
        Return ARNs of roles whose name starts with *prefix*.

        Raises:
            botocore.exceptions.ClientError: ListRoles failed.
        """
        arns: list[str] = []
        paginator = self.iam.get_paginator("list_roles")
        for page in paginator.paginate():
            for role in page.get("Roles", []):
                name = role.get("RoleName") or ""
                if name.startswith(prefix) and role.get("Arn"):
                    arns.append(role["Arn"])
        logger.debug("Found %d role(s) with prefix %r", len(arns), prefix)
        return arns

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _load_policy(self, role_arn: str) -> tuple[str, TrustPolicyDocument]:
        try:
            role_name = extract_role_name(role_arn)
        except ValueError as exc:
            raise _RoleFetchError(str(exc)) from exc

        try:
            role = self.iam.get_role(RoleName=role_name)["Role"]
        except (ClientError, BotoCoreError) as exc:
            raise _RoleFetchError(f"failed to get role: {exc}", role_name) from exc

        raw = role.get("AssumeRolePolicyDocument")
        if not raw:
            raise _RoleFetchError("role has no trust policy", role_name)

        try:
            text = decode_policy_document(raw)
        except (TypeError, ValueError) as exc:
            raise _RoleFetchError(f"failed to decode trust policy: {exc}", role_name) from exc

        try:
            policy = parse_trust_policy(text)
        except TrustPolicyError as exc:
            raise _RoleFetchError(f"failed to parse trust policy: {exc}", role_name) from exc

        logger.debug("Loaded trust policy for %s (%d statement(s))", role_name, len(policy.statements))
        return role_name, policy


def extract_role_name(arn: str) -> str:
    """
    Return the role name from an IAM role ARN.

    Handles paths: ``arn:aws:iam::123456789012:role/path/to/Name`` -> ``Name``.

    Raises:
        ValueError: *arn* is empty or not a role ARN.
    """
    if not arn:
        raise ValueError("empty role ARN")
    if ":role/" not in arn:
        raise ValueError("invalid role ARN format: must contain :role/")
    role_path = arn.split(":role/", 1)[1]
    if not role_path:
        raise ValueError("invalid role ARN format: missing role name")
    return role_path.split("/")[-1]


def decode_policy_document(raw: Union[str, dict]) -> str:
    """
    Return the trust policy as JSON text.

    IAM returns the document URL-encoded; botocore usually decodes it into a
    dict already, in which case it is re-serialized.
    """
    if isinstance(raw, dict):
        return json.dumps(raw)
    if isinstance(raw, str):
        return unquote_plus(raw, errors="strict")
    raise TypeError(f"unexpected trust policy type {type(raw).__name__}")
