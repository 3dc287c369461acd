from __future__ import annotations

import logging
import tomllib
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from core.rsr.models import (
    DEFAULT_POLICY_PACK,
    BannedPatternDefinition,
    CheckDefinition,
    PolicyPack,
    RepoConfig,
    Severity,
)
from core.rsr.registry import WORKFLOWS_CHECK

logger = logging.getLogger(__name__)

Definition = Union[CheckDefinition, BannedPatternDefinition]


# -----------------------------
# Resolution
# -----------------------------

def _lookup_names(check: Definition) -> tuple:
    if isinstance(check, BannedPatternDefinition):
        return (check.result_name, check.name)
    return (check.name,)


def is_skipped(check: Definition, repo_config: RepoConfig) -> bool:
    return any(n in repo_config.skip for n in _lookup_names(check))


def effective_severity(check: Definition, repo_config: RepoConfig, policy_pack: PolicyPack) -> Severity:
    """
    Severity a check is enforced at, ignoring skip.

    An entry in severity_overrides always wins. Otherwise the check's own
    table column for the pack is used; Custom reads the Standard column.
    """
    for n in _lookup_names(check):
        override = repo_config.severity_overrides.get(n)
        if override is not None:
            return override
    return check.severities.column(policy_pack)


def workflow_severity(repo_config: RepoConfig, policy_pack: PolicyPack) -> Severity:
    # overrides for the workflow check only apply under Custom
    if policy_pack == PolicyPack.CUSTOM:
        return effective_severity(WORKFLOWS_CHECK, repo_config, policy_pack)
    return WORKFLOWS_CHECK.severities.column(policy_pack)


# -----------------------------
# .rsr.toml
# -----------------------------

class RepoConfigError(ValueError):
    pass


def parse_repo_config(text: str, default_policy: PolicyPack = DEFAULT_POLICY_PACK) -> RepoConfig:
    """Parse a .rsr.toml document. Raises RepoConfigError on any syntax or value problem."""
    try:
        doc: Dict[str, Any] = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise RepoConfigError(f"invalid TOML: {e}") from e

    severity = doc.get("severity", {})
    if not isinstance(severity, dict):
        raise RepoConfigError("[severity] must be a table")

    try:
        return RepoConfig(
            policy=_lower(doc.get("policy", default_policy)),
            severity_overrides={k: _lower(v) for k, v in severity.items()},
            skip=doc.get("skip", []),
            require=doc.get("require", []),
            ban=doc.get("ban", []),
        )
    except ValidationError as e:
        raise RepoConfigError(str(e)) from e


def load_repo_config(text: Optional[str], default_policy: PolicyPack = DEFAULT_POLICY_PACK) -> RepoConfig:
    if text is None:
        return RepoConfig(policy=default_policy)
    try:
        return parse_repo_config(text, default_policy)
    except RepoConfigError as e:
        logger.warning("Ignoring unparsable repository policy document, using defaults: %s", e)
        return RepoConfig(policy=default_policy)


def _lower(v: Any) -> Any:
    return v.strip().lower() if isinstance(v, str) else v
