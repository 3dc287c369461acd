from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from core.rsr.evaluator import RepositoryOracle, evaluate
from core.rsr.models import (
    DEFAULT_POLICY_PACK,
    BannedPatternDefinition,
    CheckDefinition,
    ComplianceReport,
    PolicyPack,
    RepoConfig,
)
from core.rsr.policy import load_repo_config
from core.rsr.registry import BANNED_PATTERNS, REPO_CONFIG_PATH, REQUIRED_FILES
from core.rsr.report import compose_report

logger = logging.getLogger(__name__)


class ComplianceSource(RepositoryOracle, Protocol):
    def get_file_content(self, owner: str, repo: str, path: str) -> Optional[str]: ...


def fetch_repo_config(
    source: ComplianceSource,
    owner: str,
    repo: str,
    default_policy: PolicyPack = DEFAULT_POLICY_PACK,
) -> RepoConfig:
    text = source.get_file_content(owner, repo, REPO_CONFIG_PATH)
    if text is None:
        logger.debug("No %s in %s/%s, using defaults", REPO_CONFIG_PATH, owner, repo)
    return load_repo_config(text, default_policy)


def check_compliance(
    owner: str,
    repo: str,
    source: ComplianceSource,
    *,
    policy_pack: Optional[PolicyPack] = None,
    default_policy: PolicyPack = DEFAULT_POLICY_PACK,
    registry: Sequence[CheckDefinition] = REQUIRED_FILES,
    banned: Sequence[BannedPatternDefinition] = BANNED_PATTERNS,
    max_workers: int = 1,
) -> ComplianceReport:
    """
    Evaluate owner/repo and build its ComplianceReport.

    policy_pack, when given, replaces the pack chosen by the repository's own
    .rsr.toml; overrides, skip, require and ban from that document still apply.
    """
    repo_config = fetch_repo_config(source, owner, repo, default_policy)
    pack = policy_pack or repo_config.policy

    results = evaluate(
        owner=owner,
        repo=repo,
        oracle=source,
        repo_config=repo_config,
        policy_pack=pack,
        registry=registry,
        banned=banned,
        max_workers=max_workers,
    )

    report = compose_report(owner=owner, repo=repo, policy_pack=pack, results=results)
    logger.info(
        "Compliance %s/%s: %s/%s (%.1f%%) required_passed=%s",
        owner, repo, report.score, report.max_score, report.percentage, report.required_passed,
    )
    return report
