"""
Static RSR rule tables.

Rows are immutable and the tables are plain tuples so the evaluator can be
handed a synthetic registry in tests.
"""

from __future__ import annotations

from typing import Iterable, Set, Tuple

from core.rsr.models import (
    BannedPatternDefinition,
    CheckCategory,
    CheckDefinition,
    Severity,
    SeverityTable,
)


R = Severity.REQUIRED
REC = Severity.RECOMMENDED
OPT = Severity.OPTIONAL


REQUIRED_FILES: Tuple[CheckDefinition, ...] = (
    CheckDefinition("README.adoc", "AsciiDoc README", CheckCategory.DOCUMENTATION, 5, SeverityTable(R, R, R, R)),
    CheckDefinition("LICENSE.txt", "License file", CheckCategory.GOVERNANCE, 5, SeverityTable(R, R, R, R)),
    CheckDefinition("SECURITY.md", "Security policy", CheckCategory.SECURITY, 5, SeverityTable(OPT, REC, R, R)),
    CheckDefinition("CONTRIBUTING.md", "Contributing guidelines", CheckCategory.DOCUMENTATION, 3, SeverityTable(OPT, REC, REC, R)),
    CheckDefinition("CODE_OF_CONDUCT.md", "Code of conduct", CheckCategory.GOVERNANCE, 3, SeverityTable(OPT, REC, REC, R)),
    CheckDefinition(".claude/CLAUDE.md", "AI assistant instructions", CheckCategory.STRUCTURE, 2, SeverityTable(OPT, OPT, REC, REC)),
    CheckDefinition("STATE.scm", "Project state file", CheckCategory.STRUCTURE, 3, SeverityTable(OPT, REC, R, R)),
    CheckDefinition("META.scm", "Meta information", CheckCategory.STRUCTURE, 3, SeverityTable(OPT, REC, R, R)),
    CheckDefinition("ECOSYSTEM.scm", "Ecosystem position", CheckCategory.STRUCTURE, 3, SeverityTable(OPT, OPT, REC, R)),
)


BANNED_PATTERNS: Tuple[BannedPatternDefinition, ...] = (
    BannedPatternDefinition("package-lock.json", "npm lock file (use Deno)", CheckCategory.LANGUAGE_POLICY, SeverityTable(REC, R, R, R)),
    BannedPatternDefinition("yarn.lock", "Yarn lock file (use Deno)", CheckCategory.LANGUAGE_POLICY, SeverityTable(REC, R, R, R)),
    BannedPatternDefinition("pnpm-lock.yaml", "pnpm lock file (use Deno)", CheckCategory.LANGUAGE_POLICY, SeverityTable(REC, R, R, R)),
    BannedPatternDefinition("bun.lockb", "Bun lock file (use Deno)", CheckCategory.LANGUAGE_POLICY, SeverityTable(REC, R, R, R)),
    BannedPatternDefinition("go.mod", "Go module (use Rust)", CheckCategory.LANGUAGE_POLICY, SeverityTable(REC, REC, R, R)),
    BannedPatternDefinition("go.sum", "Go checksum (use Rust)", CheckCategory.LANGUAGE_POLICY, SeverityTable(REC, REC, R, R)),
)


# -----------------------------
# Synthesized checks
# -----------------------------

WORKFLOWS_CHECK = CheckDefinition(
    ".github/workflows", "GitHub Actions workflows", CheckCategory.STRUCTURE, 5, SeverityTable(OPT, REC, R, R),
)

LICENSE_CHECK = CheckDefinition(
    "license-type", "Approved license", CheckCategory.GOVERNANCE, 5, SeverityTable(REC, R, R, R),
)

APPROVED_LICENSES = frozenset({"agpl-3.0", "apache-2.0", "mit", "mpl-2.0", "lgpl-3.0"})
NON_STANDARD_LICENSE_POINTS = 2

REPO_CONFIG_PATH = ".rsr.toml"


# -----------------------------
# Extra entries from a repo's .rsr.toml
# -----------------------------

EXTRA_REQUIRE_POINTS = 3


def _builtin_names(registry: Iterable[CheckDefinition], banned: Iterable[BannedPatternDefinition]) -> Set[str]:
    names = {c.name for c in registry} | {b.name for b in banned}
    names.update((WORKFLOWS_CHECK.name, LICENSE_CHECK.name))
    return names


def extra_required_files(
    names: Iterable[str],
    registry: Iterable[CheckDefinition],
    banned: Iterable[BannedPatternDefinition] = BANNED_PATTERNS,
) -> Tuple[CheckDefinition, ...]:
    """Rows for .rsr.toml `require` entries that no built-in check already covers."""
    known = _builtin_names(registry, banned)
    out = []
    for name in names:
        if not name or name in known:
            continue
        known.add(name)
        out.append(CheckDefinition(
            name, f"Required file {name}", CheckCategory.STRUCTURE, EXTRA_REQUIRE_POINTS, SeverityTable.uniform(R),
        ))
    return tuple(out)


def extra_banned_patterns(
    names: Iterable[str],
    banned: Iterable[BannedPatternDefinition],
    registry: Iterable[CheckDefinition] = REQUIRED_FILES,
) -> Tuple[BannedPatternDefinition, ...]:
    known = _builtin_names(registry, banned)
    out = []
    for name in names:
        if not name or name in known:
            continue
        known.add(name)
        out.append(BannedPatternDefinition(
            name, f"Banned file {name}", CheckCategory.LANGUAGE_POLICY, SeverityTable.uniform(R),
        ))
    return tuple(out)
