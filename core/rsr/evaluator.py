"""
Evaluator: walks the rule tables, asks the existence oracle about each path
and turns the answers into CheckResults.

Result order is always: required files, extra requires, banned patterns,
extra bans, workflows, license. Probing may run on a thread pool; the order
of results never depends on completion order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from core.rsr.models import (
    BannedPatternDefinition,
    CheckDefinition,
    CheckResult,
    CheckStatus,
    PolicyPack,
    RepoConfig,
    RepositoryInfo,
    Severity,
)
from core.rsr.policy import effective_severity, is_skipped, workflow_severity
from core.rsr.registry import (
    APPROVED_LICENSES,
    BANNED_PATTERNS,
    LICENSE_CHECK,
    NON_STANDARD_LICENSE_POINTS,
    REQUIRED_FILES,
    WORKFLOWS_CHECK,
    extra_banned_patterns,
    extra_required_files,
)

logger = logging.getLogger(__name__)


class RepositoryOracle(Protocol):
    def file_exists(self, owner: str, repo: str, path: str) -> bool: ...

    def get_repository(self, owner: str, repo: str) -> RepositoryInfo: ...


# -----------------------------
# Result builders
# -----------------------------

def _skipped(name: str, check, severity: Severity) -> CheckResult:
    return CheckResult(
        name=name,
        category=check.category,
        severity=severity,
        status=CheckStatus.SKIP,
        points=0,
        max_points=0,
        message=f"{check.description} skipped by config",
    )


def _presence_result(
    check: CheckDefinition,
    severity: Severity,
    present: bool,
    *,
    found_message: str,
    missing_message: str,
) -> CheckResult:
    if severity == Severity.OPTIONAL:
        # informative only: never scored, never failed
        return CheckResult(
            name=check.name,
            category=check.category,
            severity=severity,
            status=CheckStatus.PASS if present else CheckStatus.SKIP,
            points=0,
            max_points=0,
            message=found_message if present else f"{missing_message} (optional)",
        )

    if present:
        status, points, message = CheckStatus.PASS, check.points, found_message
    elif severity == Severity.REQUIRED:
        status, points, message = CheckStatus.FAIL, 0, missing_message
    else:
        status, points, message = CheckStatus.WARN, 0, missing_message

    return CheckResult(
        name=check.name,
        category=check.category,
        severity=severity,
        status=status,
        points=points,
        max_points=check.points,
        message=message,
    )


def evaluate_file(
    check: CheckDefinition,
    repo_config: RepoConfig,
    policy_pack: PolicyPack,
    present: Dict[str, bool],
) -> CheckResult:
    severity = effective_severity(check, repo_config, policy_pack)
    if is_skipped(check, repo_config):
        return _skipped(check.name, check, severity)
    return _presence_result(
        check,
        severity,
        present.get(check.name, False),
        found_message=f"{check.description} found",
        missing_message=f"{check.description} missing",
    )


def evaluate_banned(
    pattern: BannedPatternDefinition,
    repo_config: RepoConfig,
    policy_pack: PolicyPack,
    present: Dict[str, bool],
) -> Optional[CheckResult]:
    severity = effective_severity(pattern, repo_config, policy_pack)
    if is_skipped(pattern, repo_config):
        return _skipped(pattern.result_name, pattern, severity)
    # absence of a banned file is the baseline, not an achievement
    if not present.get(pattern.name, False):
        return None
    return CheckResult(
        name=pattern.result_name,
        category=pattern.category,
        severity=severity,
        status=CheckStatus.FAIL if severity == Severity.REQUIRED else CheckStatus.WARN,
        points=0,
        max_points=0,
        message=f"{pattern.description} detected - RSR violation",
    )


def evaluate_workflows(
    repo_config: RepoConfig,
    policy_pack: PolicyPack,
    present: Dict[str, bool],
) -> CheckResult:
    check = WORKFLOWS_CHECK
    severity = workflow_severity(repo_config, policy_pack)
    if is_skipped(check, repo_config):
        return _skipped(check.name, check, severity)
    return _presence_result(
        check,
        severity,
        present.get(check.name, False),
        found_message="GitHub Actions workflows found",
        missing_message="No GitHub Actions workflows",
    )


def evaluate_license(
    info: RepositoryInfo,
    repo_config: RepoConfig,
    policy_pack: PolicyPack,
) -> CheckResult:
    check = LICENSE_CHECK
    severity = effective_severity(check, repo_config, policy_pack)
    max_points = 0 if severity == Severity.OPTIONAL else check.points
    lic = info.license

    if lic is None:
        if severity == Severity.OPTIONAL:
            status = CheckStatus.SKIP
        elif severity == Severity.REQUIRED:
            status = CheckStatus.FAIL
        else:
            status = CheckStatus.WARN
        points, message = 0, "No license detected"
    elif lic.key.lower() in APPROVED_LICENSES:
        status, points, message = CheckStatus.PASS, max_points, f"Approved license: {lic.name}"
    else:
        # partial credit, whatever the severity
        status = CheckStatus.WARN
        points = min(NON_STANDARD_LICENSE_POINTS, max_points)
        message = f"Non-standard license: {lic.name}"

    return CheckResult(
        name=check.name,
        category=check.category,
        severity=severity,
        status=status,
        points=points,
        max_points=max_points,
        message=message,
    )


# -----------------------------
# Oracle access
# -----------------------------

def probe_paths(
    oracle: RepositoryOracle,
    owner: str,
    repo: str,
    paths: Iterable[str],
    max_workers: int = 1,
) -> Dict[str, bool]:
    unique = list(dict.fromkeys(paths))

    def _exists(path: str) -> bool:
        return bool(oracle.file_exists(owner, repo, path))

    if max_workers <= 1 or len(unique) <= 1:
        return {p: _exists(p) for p in unique}

    with ThreadPoolExecutor(max_workers=min(max_workers, len(unique))) as pool:
        return dict(zip(unique, pool.map(_exists, unique)))


def fetch_repository_info(oracle: RepositoryOracle, owner: str, repo: str) -> Optional[RepositoryInfo]:
    try:
        return oracle.get_repository(owner, repo)
    except Exception as e:
        logger.warning("Repository metadata unavailable for %s/%s, omitting license check: %s", owner, repo, e)
        return None


# -----------------------------
# Entry point
# -----------------------------

def evaluate(
    *,
    owner: str,
    repo: str,
    oracle: RepositoryOracle,
    repo_config: RepoConfig,
    policy_pack: PolicyPack,
    registry: Sequence[CheckDefinition] = REQUIRED_FILES,
    banned: Sequence[BannedPatternDefinition] = BANNED_PATTERNS,
    max_workers: int = 1,
) -> List[CheckResult]:
    required = tuple(registry) + extra_required_files(repo_config.require, registry, banned)
    patterns = tuple(banned) + extra_banned_patterns(repo_config.ban, banned, registry)

    paths: List[str] = [c.name for c in required if not is_skipped(c, repo_config)]
    paths += [b.name for b in patterns if not is_skipped(b, repo_config)]
    if not is_skipped(WORKFLOWS_CHECK, repo_config):
        paths.append(WORKFLOWS_CHECK.name)

    present = probe_paths(oracle, owner, repo, paths, max_workers=max_workers)

    results: List[CheckResult] = [evaluate_file(c, repo_config, policy_pack, present) for c in required]

    for pattern in patterns:
        violation = evaluate_banned(pattern, repo_config, policy_pack, present)
        if violation is not None:
            results.append(violation)

    results.append(evaluate_workflows(repo_config, policy_pack, present))

    if is_skipped(LICENSE_CHECK, repo_config):
        severity = effective_severity(LICENSE_CHECK, repo_config, policy_pack)
        results.append(_skipped(LICENSE_CHECK.name, LICENSE_CHECK, severity))
    else:
        info = fetch_repository_info(oracle, owner, repo)
        if info is not None:
            results.append(evaluate_license(info, repo_config, policy_pack))

    logger.debug("Evaluated %d checks for %s/%s (%s)", len(results), owner, repo, policy_pack.value)
    return results
