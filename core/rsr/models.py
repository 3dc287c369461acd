from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class Severity(str, Enum):
    REQUIRED = "required"
    RECOMMENDED = "recommended"
    OPTIONAL = "optional"


class PolicyPack(str, Enum):
    MINIMAL = "minimal"
    STANDARD = "standard"
    STRICT = "strict"
    ENTERPRISE = "enterprise"
    CUSTOM = "custom"


DEFAULT_POLICY_PACK = PolicyPack.STANDARD

# Packs with a severity column of their own; custom reads the standard one.
TABLE_PACKS: Tuple[PolicyPack, ...] = (
    PolicyPack.MINIMAL,
    PolicyPack.STANDARD,
    PolicyPack.STRICT,
    PolicyPack.ENTERPRISE,
)


class CheckCategory(str, Enum):
    DOCUMENTATION = "documentation"
    SECURITY = "security"
    GOVERNANCE = "governance"
    STRUCTURE = "structure"
    LANGUAGE_POLICY = "language_policy"


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"
    SKIP = "skip"


# -----------------------------
# Definitions (registry rows)
# -----------------------------

@dataclass(frozen=True)
class SeverityTable:
    """One severity per table pack: minimal / standard / strict / enterprise."""
    minimal: Severity
    standard: Severity
    strict: Severity
    enterprise: Severity

    def column(self, pack: PolicyPack) -> Severity:
        if pack not in TABLE_PACKS:
            pack = PolicyPack.STANDARD
        return getattr(self, pack.value)

    @classmethod
    def uniform(cls, severity: Severity) -> "SeverityTable":
        return cls(severity, severity, severity, severity)


@dataclass(frozen=True)
class CheckDefinition:
    name: str
    description: str
    category: CheckCategory
    points: int
    severities: SeverityTable

    def __post_init__(self) -> None:
        if not 0 <= self.points <= 255:
            raise ValueError(f"points must be within 0..255, got {self.points}")


@dataclass(frozen=True)
class BannedPatternDefinition:
    name: str
    description: str
    category: CheckCategory
    severities: SeverityTable
    points: int = field(default=0, init=False)

    @property
    def result_name(self) -> str:
        return f"no-{self.name}"


# -----------------------------
# Per-repository policy document
# -----------------------------

class RepoConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    policy: PolicyPack = DEFAULT_POLICY_PACK
    severity_overrides: Mapping[str, Severity] = Field(default_factory=dict, validate_default=True)
    skip: FrozenSet[str] = Field(default_factory=frozenset)
    require: Tuple[str, ...] = ()
    ban: Tuple[str, ...] = ()

    @field_validator("severity_overrides", mode="after")
    @classmethod
    def freeze_overrides(cls, v: Mapping[str, Severity]) -> Mapping[str, Severity]:
        return MappingProxyType(dict(v))

    @field_serializer("severity_overrides")
    def dump_overrides(self, v: Mapping[str, Severity]) -> Dict[str, Severity]:
        return dict(v)


# -----------------------------
# Repository metadata (collaborator answer)
# -----------------------------

class LicenseInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str
    name: str
    spdx_id: Optional[str] = None


class RepositoryInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    default_branch: str = "main"
    license: Optional[LicenseInfo] = None

    name: Optional[str] = None
    full_name: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None
    topics: List[str] = Field(default_factory=list)


# -----------------------------
# Outputs
# -----------------------------

class CheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    category: CheckCategory
    severity: Severity
    status: CheckStatus
    points: int = Field(ge=0, le=255)
    max_points: int = Field(ge=0, le=255)
    message: str


class ScoreTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = 0
    max_score: int = 0
    required_passed: bool = True


class ComplianceReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    policy: PolicyPack
    score: int
    max_score: int
    percentage: float = Field(ge=0, le=100)
    required_passed: bool
    checks: Tuple[CheckResult, ...] = ()
    summary: str
