from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from core.rsr.models import CheckCategory, CheckResult, CheckStatus, ComplianceReport, PolicyPack
from core.rsr.scoring import aggregate, percentage, summarize


CATEGORY_SECTIONS: List[Tuple[str, CheckCategory]] = [
    ("Documentation", CheckCategory.DOCUMENTATION),
    ("Security", CheckCategory.SECURITY),
    ("Governance", CheckCategory.GOVERNANCE),
    ("Structure", CheckCategory.STRUCTURE),
    ("Language Policy", CheckCategory.LANGUAGE_POLICY),
]

STATUS_GLYPHS: Dict[CheckStatus, str] = {
    CheckStatus.PASS: ":white_check_mark:",
    CheckStatus.FAIL: ":x:",
    CheckStatus.WARN: ":warning:",
    CheckStatus.SKIP: ":fast_forward:",
}


def compose_report(
    *,
    owner: str,
    repo: str,
    policy_pack: PolicyPack,
    results: Sequence[CheckResult],
) -> ComplianceReport:
    totals = aggregate(results)
    pct = percentage(totals)
    return ComplianceReport(
        owner=owner,
        repo=repo,
        policy=policy_pack,
        score=totals.score,
        max_score=totals.max_score,
        percentage=pct,
        required_passed=totals.required_passed,
        checks=tuple(results),
        summary=summarize(policy_pack, pct, totals.required_passed),
    )


def check_run_conclusion(report: ComplianceReport) -> str:
    if not report.required_passed:
        return "failure"
    if report.percentage >= 70.0:
        return "success"
    if report.percentage >= 50.0:
        return "neutral"
    return "failure"


def format_report_text(report: ComplianceReport) -> str:
    """Markdown detail block for check-run output, grouped by category."""
    lines: List[str] = ["## Detailed Results", ""]

    for title, category in CATEGORY_SECTIONS:
        checks = [c for c in report.checks if c.category == category]
        if not checks:
            continue
        lines.append(f"### {title}")
        lines.append("")
        for c in checks:
            lines.append(f"- {STATUS_GLYPHS[c.status]} **{c.name}**: {c.message} ({c.points}/{c.max_points})")
        lines.append("")

    return "\n".join(lines)
