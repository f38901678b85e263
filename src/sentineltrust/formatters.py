"""Render analysis, validation and drift results to the terminal (Rich) or as JSON."""
from __future__ import annotations

import json
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import (
    AnalysisResult,
    DriftCheckResult,
    DriftStatus,
    EnforcementStatus,
    GenerateOutput,
    RiskLevel,
    RoleAnalysis,
    RoleValidation,
    ValidationFinding,
    ValidationResult,
)
from .parser import document_to_dict
from .validator import filter_findings


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------

class TextFormatter:
    """Renders results using Rich for human-readable terminal output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False)

    def render_analyses(self, results: list[RoleAnalysis]) -> None:
        c = self.console
        c.print("[bold]Sentinel Enforcement Analysis[/bold]")
        c.print()

        counts = {status: 0 for status in EnforcementStatus}
        errors = 0
        for r in results:
            c.print(f"[bold]Role:[/bold] {escape(r.role_arn)}")
            if r.error or r.analysis is None:
                _render_error(c, r.error or "analysis result is nil")
                errors += 1
                continue
            counts[r.analysis.status] += 1
            _render_analysis(c, r.analysis)
            c.print()

        table = _summary_table()
        table.add_row("Full enforcement", f"{counts[EnforcementStatus.FULL]} role(s)")
        table.add_row("Partial enforcement", f"{counts[EnforcementStatus.PARTIAL]} role(s)")
        table.add_row("No enforcement", f"{counts[EnforcementStatus.NONE]} role(s)")
        if errors:
            table.add_row("Errors", f"{errors} role(s)")
        c.print(table)

    def render_validations(
        self,
        results: list[RoleValidation],
        min_risk: RiskLevel = RiskLevel.LOW,
    ) -> None:
        c = self.console
        c.print("[bold]Trust Policy Validation[/bold]")
        c.print()

        totals = {level: 0 for level in RiskLevel}
        compliant = non_compliant = errors = 0
        for r in results:
            c.print(f"[bold]Role:[/bold] {escape(r.role_arn)}")
            if r.error or r.validation is None:
                _render_error(c, r.error or "validation result is nil")
                errors += 1
                continue
            for level, n in r.validation.risk_summary.items():
                totals[level] += n
            if r.validation.is_compliant:
                compliant += 1
            else:
                non_compliant += 1
            _render_validation(c, r.validation, min_risk)
            c.print()

        table = _summary_table()
        table.add_row("Roles validated", str(len(results)))
        table.add_row("Compliant", f"{compliant} role(s)")
        table.add_row("Non-compliant", f"{non_compliant} role(s)")
        table.add_row("HIGH findings", str(totals[RiskLevel.HIGH]))
        table.add_row("MEDIUM findings", str(totals[RiskLevel.MEDIUM]))
        table.add_row("LOW findings", str(totals[RiskLevel.LOW]))
        if errors:
            table.add_row("Errors", f"{errors} role(s)")
        c.print(table)

    def render_drift(self, results: list[DriftCheckResult]) -> None:
        table = Table(
            title="Sentinel enforcement drift",
            show_header=True,
            header_style="bold",
            box=None,
            padding=(0, 2),
        )
        table.add_column("Role", style="dim")
        table.add_column("Status")
        table.add_column("Detail")
        for r in results:
            detail = r.message if not r.error else f"{r.message}: {r.error}"
            table.add_row(
                Text(r.role_arn),
                Text(r.status.value.upper(), style=_drift_style(r.status)),
                Text(detail),
            )
        self.console.print(table)

    def render_inspection(
        self,
        source: str,
        analysis: AnalysisResult,
        validation: ValidationResult,
        min_risk: RiskLevel = RiskLevel.LOW,
    ) -> None:
        c = self.console
        c.print(f"[bold]Policy:[/bold] {escape(source)}")
        _render_analysis(c, analysis)
        c.print()
        _render_validation(c, validation, min_risk)


class JsonFormatter:
    """Renders results as JSON documents to stdout."""

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def render_analyses(self, results: list[RoleAnalysis]) -> None:
        self._emit([role_analysis_to_dict(r) for r in results])

    def render_validations(
        self,
        results: list[RoleValidation],
        min_risk: RiskLevel = RiskLevel.LOW,
    ) -> None:
        self._emit([role_validation_to_dict(r, min_risk) for r in results])

    def render_drift(self, results: list[DriftCheckResult]) -> None:
        self._emit([drift_to_dict(r) for r in results])

    def render_inspection(
        self,
        source: str,
        analysis: AnalysisResult,
        validation: ValidationResult,
        min_risk: RiskLevel = RiskLevel.LOW,
    ) -> None:
        self._emit(
            {
                "source": source,
                "analysis": analysis_to_dict(analysis),
                "validation": validation_to_dict(validation, min_risk),
            }
        )

    def _emit(self, data) -> None:
        print(json.dumps(data, indent=self.indent))


def get_formatter(
    output: str, console: Optional[Console] = None
) -> TextFormatter | JsonFormatter:
    """Factory: ``'text'`` → TextFormatter, ``'json'`` → JsonFormatter."""
    if output == "json":
        return JsonFormatter()
    return TextFormatter(console=console)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def analysis_to_dict(a: AnalysisResult) -> dict:
    return {
        "level": a.level.value,
        "status": a.status.value,
        "has_source_identity_condition": a.has_source_identity_condition,
        "issues": list(a.issues),
        "recommendations": list(a.recommendations),
    }


def finding_to_dict(f: ValidationFinding) -> dict:
    return {
        "rule_id": f.rule_id,
        "risk_level": f.risk_level.value,
        "message": f.message,
        "recommendation": f.recommendation,
        "affected_statement": f.affected_statement,
    }


def validation_to_dict(v: ValidationResult, min_risk: RiskLevel = RiskLevel.LOW) -> dict:
    """Findings below *min_risk* are dropped; the summary and compliance stay whole."""
    return {
        "findings": [
            finding_to_dict(f) for f in v.findings if f.risk_level.rank >= min_risk.rank
        ],
        "risk_summary": {level.value: n for level, n in v.risk_summary.items()},
        "is_compliant": v.is_compliant,
    }


def generate_output_to_dict(out: GenerateOutput) -> dict:
    return {"pattern": out.pattern.value, "policy": document_to_dict(out.policy)}


def role_analysis_to_dict(r: RoleAnalysis) -> dict:
    data: dict = {"role_arn": r.role_arn, "role_name": r.role_name}
    if r.analysis is not None:
        data["analysis"] = analysis_to_dict(r.analysis)
    if r.error:
        data["error"] = r.error
    return data


def role_validation_to_dict(
    r: RoleValidation, min_risk: RiskLevel = RiskLevel.LOW
) -> dict:
    data: dict = {"role_arn": r.role_arn, "role_name": r.role_name}
    if r.validation is not None:
        data["validation"] = validation_to_dict(r.validation, min_risk)
    if r.error:
        data["error"] = r.error
    return data


def drift_to_dict(r: DriftCheckResult) -> dict:
    data = {"status": r.status.value, "role_arn": r.role_arn, "message": r.message}
    if r.error:
        data["error"] = r.error
    return data


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_STATUS_LABELS = {
    EnforcementStatus.FULL: ("FULL ✓", "bold green"),
    EnforcementStatus.PARTIAL: ("PARTIAL ⚠", "bold yellow"),
    EnforcementStatus.NONE: ("NONE ✗", "bold red"),
}


def _render_analysis(console: Console, analysis: AnalysisResult) -> None:
    label, style = _STATUS_LABELS[analysis.status]
    status_text = Text()
    status_text.append("Status: ", style="bold")
    status_text.append(label, style=style)
    console.print(status_text)
    console.print(f"[bold]Level:[/bold] {analysis.level.value}")

    if analysis.issues:
        console.print("[bold]Issues:[/bold]")
        for issue in analysis.issues:
            console.print(f"  - {escape(issue)}")
    if analysis.recommendations:
        console.print("[bold]Recommendations:[/bold]")
        for rec in analysis.recommendations:
            console.print(f"  - {escape(rec)}")


def _render_validation(
    console: Console, validation: ValidationResult, min_risk: RiskLevel
) -> None:
    summary = validation.risk_summary
    shown = filter_findings(validation, min_risk)
    levels = [lvl for lvl in RiskLevel if lvl.rank >= min_risk.rank]
    breakdown = ", ".join(f"{summary[lvl]} {lvl.value.upper()}" for lvl in levels)
    console.print(f"[bold]Findings:[/bold] {len(shown)} ({breakdown})")

    if validation.is_compliant:
        console.print("[bold]Compliant:[/bold] [green]yes[/green]")
    else:
        console.print("[bold]Compliant:[/bold] [red]no[/red]")

    for f in shown:
        body = "\n".join(
            [
                escape(f.message),
                f"[dim]Statement:[/dim] {escape(f.affected_statement)}",
                f"[dim]Recommendation:[/dim] {escape(f.recommendation)}",
            ]
        )
        console.print(
            Panel(
                body,
                title=(
                    f"[{_risk_style(f.risk_level)}]{f.risk_level.value.upper()}"
                    f"[/{_risk_style(f.risk_level)}] [bold]{f.rule_id}[/bold]"
                ),
                title_align="left",
                expand=False,
            )
        )


def _render_error(console: Console, message: str) -> None:
    console.print("[bold]Status:[/bold] [bold red]ERROR[/bold red]")
    console.print(f"[bold]Error:[/bold] {escape(message)}")
    console.print()


def _summary_table() -> Table:
    table = Table(
        title="Summary",
        show_header=False,
        box=None,
        padding=(0, 2),
    )
    table.add_column("Metric", style="bold")
    table.add_column("Count")
    return table


def _risk_style(level: RiskLevel) -> str:
    if level == RiskLevel.HIGH:
        return "bold red"
    if level == RiskLevel.MEDIUM:
        return "bold yellow"
    return "cyan"


def _drift_style(status: DriftStatus) -> str:
    if status == DriftStatus.OK:
        return "green"
    if status == DriftStatus.PARTIAL:
        return "yellow"
    if status == DriftStatus.NONE:
        return "red"
    return "dim"
