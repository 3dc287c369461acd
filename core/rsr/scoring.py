from __future__ import annotations

from typing import Iterable, List, Tuple

from core.rsr.models import CheckResult, CheckStatus, PolicyPack, ScoreTotals, Severity


REQUIRED_FAILED_SUMMARY = "RSR {pack} policy: Required checks failed"

SUMMARY_TIERS: List[Tuple[float, str]] = [
    (90.0, "Excellent RSR compliance ({pack})"),
    (70.0, "Good RSR compliance ({pack}) with minor issues"),
    (50.0, "Partial RSR compliance ({pack}) - improvements needed"),
    (0.0, "Poor RSR compliance ({pack}) - significant work required"),
]


def aggregate(results: Iterable[CheckResult]) -> ScoreTotals:
    score = 0
    max_score = 0
    required_passed = True
    for r in results:
        score += r.points
        max_score += r.max_points
        if r.severity == Severity.REQUIRED and r.status == CheckStatus.FAIL:
            required_passed = False
    return ScoreTotals(score=score, max_score=max_score, required_passed=required_passed)


def percentage(totals: ScoreTotals) -> float:
    # nothing scoreable (e.g. everything skipped) is vacuously compliant
    if totals.max_score <= 0:
        return 100.0
    return 100.0 * totals.score / totals.max_score


def summarize(policy_pack: PolicyPack, pct: float, required_passed: bool) -> str:
    pack = policy_pack.value
    if not required_passed:
        return REQUIRED_FAILED_SUMMARY.format(pack=pack)
    for threshold, template in SUMMARY_TIERS:
        if pct >= threshold:
            return template.format(pack=pack)
    return SUMMARY_TIERS[-1][1].format(pack=pack)
