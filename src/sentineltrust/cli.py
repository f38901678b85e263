"""sentineltrust CLI entry point."""

from __future__ import annotations

import json
import logging
import sys

import boto3
import botocore.exceptions
import click
from rich.console import Console
from rich.logging import RichHandler

from .advisor import Advisor
from .analyzer import analyze_trust_policy
from .drift import DriftChecker
from .formatters import generate_output_to_dict, get_formatter
from .generator import GenerateError, generate_trust_policy
from .models import (
    DriftStatus,
    EnforcementStatus,
    GenerateInput,
    RiskLevel,
    TrustPolicyPattern,
)
from .parser import TrustPolicyError, dumps_trust_policy, parse_trust_policy
from .validator import validate_trust_policy

_OUTPUT_OPTION = click.option(
    "--output",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format.",
)


@click.group()
@click.option(
    "--profile",
    default=None,
    envvar="AWS_PROFILE",
    help="AWS credentials profile name.",
)
@click.option(
    "--region",
    default=None,
    envvar="AWS_DEFAULT_REGION",
    help="AWS region for IAM calls.",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    envvar="SENTINELTRUST_VERBOSE",
    help="Log AWS calls and per-role decisions to stderr.",
)
@click.pass_context
def main(ctx: click.Context, profile: str | None, region: str | None, verbose: bool) -> None:
    """Check and generate IAM role trust policies that require
    Sentinel-issued credentials (sts:SourceIdentity = sentinel:*).

    Exit code is 0 when everything checked is clean, 1 when a role is not
    enforced, not compliant or could not be checked, and 2 on usage or AWS
    configuration errors.
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["region"] = region


@main.command()
@click.option(
    "--role",
    "roles",
    multiple=True,
    required=True,
    metavar="ARN",
    help="Role ARN to analyze (repeatable).",
)
@_OUTPUT_OPTION
@click.pass_context
def plan(ctx: click.Context, roles: tuple[str, ...], output: str) -> None:
    """Analyze role trust policies for Sentinel enforcement."""
    advisor = _make_advisor(ctx)
    results = advisor.analyze_roles(roles)

    get_formatter(output, console=Console(highlight=False)).render_analyses(results)

    if any(r.error for r in results):
        sys.exit(1)


@main.command()
@click.option(
    "--role",
    "roles",
    multiple=True,
    metavar="ARN",
    help="Role ARN to validate (repeatable).",
)
@click.option(
    "--prefix",
    default=None,
    help="Validate every role whose name starts with this prefix (e.g. sentinel-).",
)
@click.option(
    "--min-risk",
    type=click.Choice([level.value for level in RiskLevel]),
    default=RiskLevel.LOW.value,
    show_default=True,
    help="Lowest risk level to display.",
)
@_OUTPUT_OPTION
@click.pass_context
def validate(
    ctx: click.Context,
    roles: tuple[str, ...],
    prefix: str | None,
    min_risk: str,
    output: str,
) -> None:
    """Validate role trust policies against the TRUST-01..05 rules."""
    err = Console(stderr=True, highlight=False)
    if not roles and not prefix:
        err.print("[bold red]Error:[/bold red] at least one --role or --prefix is required")
        sys.exit(2)

    advisor = _make_advisor(ctx)

    role_arns = list(roles)
    if prefix:
        try:
            discovered = advisor.list_roles_by_prefix(prefix)
        except botocore.exceptions.ClientError as exc:
            _handle_client_error(exc, err)
            sys.exit(2)
        role_arns.extend(arn for arn in discovered if arn not in role_arns)

    if not role_arns:
        err.print("No roles found to validate")
        return

    results = advisor.validate_roles(role_arns)
    get_formatter(output, console=Console(highlight=False)).render_validations(
        results, min_risk=RiskLevel(min_risk)
    )

    if any(r.error or not r.validation.is_compliant for r in results):
        sys.exit(1)


@main.command()
@click.option(
    "--role",
    "roles",
    multiple=True,
    required=True,
    metavar="ARN",
    help="Role ARN to check (repeatable).",
)
@_OUTPUT_OPTION
@click.pass_context
def drift(ctx: click.Context, roles: tuple[str, ...], output: str) -> None:
    """Report roles whose trust policy has drifted from full enforcement."""
    checker = DriftChecker(_make_advisor(ctx))
    results = checker.check_roles(roles)

    get_formatter(output, console=Console(highlight=False)).render_drift(results)

    if any(r.status != DriftStatus.OK for r in results):
        sys.exit(1)


@main.command()
@click.option(
    "--pattern",
    type=click.Choice([p.value for p in TrustPolicyPattern]),
    required=True,
    help="Trust policy pattern to generate.",
)
@click.option(
    "--principal",
    required=True,
    metavar="ARN",
    help="AWS principal ARN allowed to assume the role (e.g. arn:aws:iam::123456789012:root).",
)
@click.option(
    "--users",
    multiple=True,
    metavar="NAME",
    help="Sentinel username for the specific-users pattern (repeatable).",
)
@click.option(
    "--legacy-principal",
    default=None,
    metavar="ARN",
    help="Principal keeping unconditioned access for the migration pattern.",
)
@_OUTPUT_OPTION
def generate(
    pattern: str,
    principal: str,
    users: tuple[str, ...],
    legacy_principal: str | None,
    output: str,
) -> None:
    """Print a trust policy JSON document requiring Sentinel SourceIdentity.

    With ``--output json`` the policy is wrapped with the pattern name.
    """
    err = Console(stderr=True, highlight=False)
    try:
        out = generate_trust_policy(
            GenerateInput(
                pattern=pattern,
                principal_arn=principal,
                users=users,
                legacy_principal=legacy_principal,
            )
        )
    except GenerateError as exc:
        err.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(2)

    if output == "json":
        click.echo(json.dumps(generate_output_to_dict(out), indent=2))
    else:
        click.echo(dumps_trust_policy(out.policy))


@main.command("inspect")
@click.argument("policy_file", type=click.File("rb"), metavar="FILE")
@click.option(
    "--min-risk",
    type=click.Choice([level.value for level in RiskLevel]),
    default=RiskLevel.LOW.value,
    show_default=True,
    help="Lowest risk level to display.",
)
@_OUTPUT_OPTION
def inspect_policy(policy_file, min_risk: str, output: str) -> None:
    """Analyze and validate a local trust policy JSON file (``-`` for stdin).

    No AWS calls are made.
    """
    err = Console(stderr=True, highlight=False)
    try:
        policy = parse_trust_policy(policy_file.read())
    except TrustPolicyError as exc:
        err.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(2)

    analysis = analyze_trust_policy(policy)
    validation = validate_trust_policy(policy)
    get_formatter(output, console=Console(highlight=False)).render_inspection(
        getattr(policy_file, "name", "-"), analysis, validation, min_risk=RiskLevel(min_risk)
    )

    if analysis.status != EnforcementStatus.FULL or not validation.is_compliant:
        sys.exit(1)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # botocore is very chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)


def _make_advisor(ctx: click.Context) -> Advisor:
    err = Console(stderr=True, highlight=False)
    try:
        session = boto3.Session(
            profile_name=ctx.obj.get("profile"), region_name=ctx.obj.get("region")
        )
        iam = session.client("iam")
    except botocore.exceptions.ProfileNotFound as exc:
        err.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(2)
    return Advisor(iam)


def _handle_client_error(
    exc: botocore.exceptions.ClientError, console: Console
) -> None:
    code = exc.response["Error"]["Code"]
    msg = exc.response["Error"]["Message"]
    if code == "AccessDenied":
        console.print(f"[bold red]Access denied:[/bold red] {msg}")
        console.print(
            "[dim]sentineltrust requires iam:ListRoles and iam:GetRole permissions.[/dim]"
        )
    else:
        console.print(f"[bold red]AWS error ({code}):[/bold red] {msg}")
