"""
Unit tests for core/rsr/report.py

Tests cover:
- compose_report() totals, ordering and summary
- format_report_text() Markdown grouping and glyphs
- check_run_conclusion() mapping
"""
import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.rsr.models import CheckCategory, CheckResult, CheckStatus, ComplianceReport, PolicyPack, Severity
from core.rsr.report import check_run_conclusion, compose_report, format_report_text


def check(name, category, status, points, max_points, severity=Severity.REQUIRED, message="msg"):
    return CheckResult(
        name=name,
        category=category,
        severity=severity,
        status=status,
        points=points,
        max_points=max_points,
        message=message,
    )


SAMPLE = [
    check("README.adoc", CheckCategory.DOCUMENTATION, CheckStatus.PASS, 5, 5, message="AsciiDoc README found"),
    check("LICENSE.txt", CheckCategory.GOVERNANCE, CheckStatus.FAIL, 0, 5, message="License file missing"),
    check("SECURITY.md", CheckCategory.SECURITY, CheckStatus.WARN, 0, 5, Severity.RECOMMENDED, "Security policy missing"),
    check(".claude/CLAUDE.md", CheckCategory.STRUCTURE, CheckStatus.SKIP, 0, 0, Severity.OPTIONAL, "skipped"),
]


def report_with(pct, required_passed=True):
    return ComplianceReport(
        owner="acme",
        repo="widget",
        policy=PolicyPack.STANDARD,
        score=0,
        max_score=0,
        percentage=pct,
        required_passed=required_passed,
        checks=(),
        summary="",
    )


class TestComposeReport:
    """Building the final report"""

    def test_totals_and_summary(self):
        report = compose_report(owner="acme", repo="widget", policy_pack=PolicyPack.STANDARD, results=SAMPLE)

        assert report.owner == "acme"
        assert report.repo == "widget"
        assert report.policy == PolicyPack.STANDARD
        assert report.score == 5
        assert report.max_score == 15
        assert report.percentage == pytest.approx(33.333, abs=0.01)
        assert report.required_passed is False
        assert report.summary == "RSR standard policy: Required checks failed"

    def test_order_preserved(self):
        report = compose_report(owner="acme", repo="widget", policy_pack=PolicyPack.STANDARD, results=SAMPLE)
        assert [c.name for c in report.checks] == [c.name for c in SAMPLE]

    def test_empty_results(self):
        report = compose_report(owner="acme", repo="widget", policy_pack=PolicyPack.CUSTOM, results=[])
        assert report.percentage == 100.0
        assert report.summary == "Excellent RSR compliance (custom)"

    def test_serialized_shape(self):
        """Enum fields serialize as their lowercase values"""
        report = compose_report(owner="acme", repo="widget", policy_pack=PolicyPack.STRICT, results=SAMPLE[:1])
        data = report.model_dump(mode="json")

        assert data["policy"] == "strict"
        assert data["checks"][0]["status"] == "pass"
        assert data["checks"][0]["category"] == "documentation"
        assert data["checks"][0]["severity"] == "required"

    def test_report_is_immutable(self):
        report = compose_report(owner="acme", repo="widget", policy_pack=PolicyPack.STANDARD, results=SAMPLE)
        with pytest.raises(Exception):
            report.score = 99


class TestFormatReportText:
    """Markdown detail block"""

    def test_grouped_by_category_in_fixed_order(self):
        report = compose_report(owner="acme", repo="widget", policy_pack=PolicyPack.STANDARD, results=SAMPLE)
        text = format_report_text(report)

        assert text.startswith("## Detailed Results")
        positions = [text.index(h) for h in ("### Documentation", "### Security", "### Governance", "### Structure")]
        assert positions == sorted(positions)

    def test_empty_categories_omitted(self):
        report = compose_report(owner="acme", repo="widget", policy_pack=PolicyPack.STANDARD, results=SAMPLE)
        assert "### Language Policy" not in format_report_text(report)

    def test_bullets(self):
        report = compose_report(owner="acme", repo="widget", policy_pack=PolicyPack.STANDARD, results=SAMPLE)
        text = format_report_text(report)

        assert "- :white_check_mark: **README.adoc**: AsciiDoc README found (5/5)" in text
        assert "- :x: **LICENSE.txt**: License file missing (0/5)" in text
        assert "- :warning: **SECURITY.md**: Security policy missing (0/5)" in text
        assert "- :fast_forward: **.claude/CLAUDE.md**: skipped (0/0)" in text


class TestCheckRunConclusion:
    """Check-run conclusion mapping"""

    def test_required_failure_is_failure(self):
        assert check_run_conclusion(report_with(100.0, required_passed=False)) == "failure"

    def test_success(self):
        assert check_run_conclusion(report_with(70.0)) == "success"

    def test_neutral(self):
        assert check_run_conclusion(report_with(50.0)) == "neutral"

    def test_low_score_is_failure(self):
        assert check_run_conclusion(report_with(49.0)) == "failure"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
