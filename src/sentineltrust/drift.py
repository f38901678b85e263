"""Map a role's enforcement analysis onto a drift status."""
from __future__ import annotations

import logging

from .advisor import Advisor
from .models import DriftCheckResult, DriftStatus, EnforcementStatus

logger = logging.getLogger(__name__)


class DriftChecker:
    """Checks IAM roles for Sentinel enforcement drift via an Advisor."""

    def __init__(self, advisor: Advisor) -> None:
        self.advisor = advisor

    def check_role(self, role_arn: str) -> DriftCheckResult:
        role = self.advisor.analyze_role(role_arn)

        if role.error or role.analysis is None:
            return DriftCheckResult(
                status=DriftStatus.UNKNOWN,
                role_arn=role_arn,
                message="Failed to analyze role trust policy",
                error=role.error or "analysis result is missing",
            )

        analysis = role.analysis
        if analysis.status == EnforcementStatus.FULL:
            status, message = DriftStatus.OK, "Role has full Sentinel enforcement"
        elif analysis.status == EnforcementStatus.PARTIAL:
            status = DriftStatus.PARTIAL
            message = analysis.issues[0] if analysis.issues else "Role has partial Sentinel enforcement"
        else:
            status = DriftStatus.NONE
            message = (
                analysis.recommendations[0]
                if analysis.recommendations
                else "Role has no Sentinel enforcement"
            )

        if status != DriftStatus.OK:
            logger.info("Drift detected on %s: %s", role_arn, status.value)
        return DriftCheckResult(status=status, role_arn=role_arn, message=message)

    def check_roles(self, role_arns) -> list[DriftCheckResult]:
        return [self.check_role(arn) for arn in role_arns]
