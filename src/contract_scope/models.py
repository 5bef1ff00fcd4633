"""Data models for Contract Scope.

Per-file extraction produces a ``RawFileMetrics``; the aggregator folds those
into one ``AggregatedFactors`` per run and the scoring engine turns that into
``ComplexityScores``. All records are frozen; ``to_dict()`` produces the
camelCase shape used in persisted reports and by the external analyzer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def _count(value: Any) -> int:
    count = int(value)
    if count < 0:
        raise ValueError(f"expected a non-negative count, got {value}")
    return count


def _weight(value: Any) -> float:
    weight = float(value)
    if weight < 0:
        raise ValueError(f"expected a non-negative weight, got {value}")
    return weight


class DeFiPatternType(str, Enum):
    AMM = "amm"
    LENDING = "lending"
    VESTING = "vesting"
    STAKING = "staking"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ---------------------------------------------------------------------------
# Pattern records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeFiPattern:
    """One detected DeFi pattern instance (not deduplicated across files)."""

    type: DeFiPatternType
    complexity: RiskLevel = RiskLevel.MEDIUM
    risk_level: RiskLevel = RiskLevel.MEDIUM

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "complexity": self.complexity.value,
            "riskLevel": self.risk_level.value,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DeFiPattern":
        return cls(
            type=DeFiPatternType(d["type"]),
            complexity=RiskLevel(d.get("complexity", "medium")),
            risk_level=RiskLevel(d.get("riskLevel", "medium")),
        )


@dataclass(frozen=True)
class EconomicRiskFactor:
    """One risk category present in a file; ``weight`` feeds the economic score."""

    type: str
    severity: Severity
    count: int
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "count": self.count,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EconomicRiskFactor":
        return cls(
            type=str(d["type"]),
            severity=Severity(d.get("severity", "medium")),
            count=_count(d["count"]),
            weight=_weight(d.get("weight", 1)),
        )


@dataclass(frozen=True)
class OracleUsage:
    """One recognized oracle family found in a file."""

    oracle: str
    functions: Tuple[str, ...] = ()
    risk_level: RiskLevel = RiskLevel.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "oracle": self.oracle,
            "functions": list(self.functions),
            "riskLevel": self.risk_level.value,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OracleUsage":
        return cls(
            oracle=str(d["oracle"]),
            functions=tuple(str(f) for f in d.get("functions", [])),
            risk_level=RiskLevel(d.get("riskLevel", "medium")),
        )


@dataclass(frozen=True)
class CrossProgramInvocation:
    target_program: str
    functions: Tuple[str, ...] = ()
    risk_level: RiskLevel = RiskLevel.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "targetProgram": self.target_program,
            "functions": list(self.functions),
            "riskLevel": self.risk_level.value,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CrossProgramInvocation":
        return cls(
            target_program=str(d["targetProgram"]),
            functions=tuple(str(f) for f in d.get("functions", [])),
            risk_level=RiskLevel(d.get("riskLevel", "medium")),
        )


# ---------------------------------------------------------------------------
# Count groups
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FunctionVisibility:
    public: int = 0
    private: int = 0
    internal: int = 0

    def __add__(self, other: "FunctionVisibility") -> "FunctionVisibility":
        return FunctionVisibility(
            public=self.public + other.public,
            private=self.private + other.private,
            internal=self.internal + other.internal,
        )

    def to_dict(self) -> Dict[str, int]:
        return {"public": self.public, "private": self.private, "internal": self.internal}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FunctionVisibility":
        return cls(
            public=_count(d.get("public", 0)),
            private=_count(d.get("private", 0)),
            internal=_count(d.get("internal", 0)),
        )


@dataclass(frozen=True)
class AccessControlPatterns:
    ownable: int = 0
    role_based: int = 0
    custom: int = 0

    def __add__(self, other: "AccessControlPatterns") -> "AccessControlPatterns":
        return AccessControlPatterns(
            ownable=self.ownable + other.ownable,
            role_based=self.role_based + other.role_based,
            custom=self.custom + other.custom,
        )

    def to_dict(self) -> Dict[str, int]:
        return {"ownable": self.ownable, "roleBased": self.role_based, "custom": self.custom}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AccessControlPatterns":
        return cls(
            ownable=_count(d.get("ownable", 0)),
            role_based=_count(d.get("roleBased", 0)),
            custom=_count(d.get("custom", 0)),
        )


_ANCHOR_KEYS = {
    "account_validation": "accountValidation",
    "constraint_usage": "constraintUsage",
    "instruction_handlers": "instructionHandlers",
    "account_types": "accountTypes",
    "seeds_usage": "seedsUsage",
    "bump_usage": "bumpUsage",
    "signer_checks": "signerChecks",
    "owner_checks": "ownerChecks",
    "space_allocation": "spaceAllocation",
    "rent_exemption": "rentExemption",
}


@dataclass(frozen=True)
class AnchorSpecificFeatures:
    """Anchor framework usage counts plus the derive-macro names seen."""

    account_validation: int = 0
    constraint_usage: int = 0
    instruction_handlers: int = 0
    program_derives: Tuple[str, ...] = ()
    account_types: int = 0
    seeds_usage: int = 0
    bump_usage: int = 0
    signer_checks: int = 0
    owner_checks: int = 0
    space_allocation: int = 0
    rent_exemption: int = 0

    def __add__(self, other: "AnchorSpecificFeatures") -> "AnchorSpecificFeatures":
        counts = {
            name: getattr(self, name) + getattr(other, name) for name in _ANCHOR_KEYS
        }
        return AnchorSpecificFeatures(
            program_derives=self.program_derives + other.program_derives, **counts
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            camel: getattr(self, name) for name, camel in _ANCHOR_KEYS.items()
        }
        d["programDerives"] = list(self.program_derives)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnchorSpecificFeatures":
        counts = {name: _count(d.get(camel, 0)) for name, camel in _ANCHOR_KEYS.items()}
        return cls(
            program_derives=tuple(str(x) for x in d.get("programDerives", [])), **counts
        )


@dataclass(frozen=True)
class ComplexityEstimate:
    """Cyclomatic complexity of one file: sum over functions and the maximum."""

    total: int = 1
    max: int = 1


# ---------------------------------------------------------------------------
# Per-file and aggregated factor records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawFileMetrics:
    """Raw observations for a single source file."""

    path: str
    lines_of_code: int = 0
    num_programs: int = 0
    num_functions: int = 0
    num_state_variables: int = 0
    complexity: ComplexityEstimate = field(default_factory=ComplexityEstimate)
    composition_depth: int = 0
    function_visibility: FunctionVisibility = field(default_factory=FunctionVisibility)
    view_functions: int = 0
    pure_functions: int = 0

    integer_overflow_risks: int = 0
    access_control_issues: int = 0
    input_validation_issues: int = 0
    unsafe_code_blocks: int = 0
    panic_usage: int = 0
    unwrap_usage: int = 0
    expect_usage: int = 0
    match_without_default: int = 0
    array_bounds_checks: int = 0
    memory_safety_issues: int = 0

    external_program_calls: int = 0
    unique_external_calls: frozenset = frozenset()
    known_protocol_interactions: Tuple[str, ...] = ()
    standard_library_usage: frozenset = frozenset()
    oracle_usage: Tuple[OracleUsage, ...] = ()
    access_control_patterns: AccessControlPatterns = field(default_factory=AccessControlPatterns)
    cpi_usage: int = 0
    cross_program_invocation: Tuple[CrossProgramInvocation, ...] = ()

    token_transfers: int = 0
    complex_math_operations: int = 0
    time_dependent_logic: int = 0
    defi_patterns: Tuple[DeFiPattern, ...] = ()
    economic_risk_factors: Tuple[EconomicRiskFactor, ...] = ()
    anchor_specific_features: AnchorSpecificFeatures = field(
        default_factory=AnchorSpecificFeatures
    )


def _to_list(items) -> List[Dict[str, Any]]:
    return [item.to_dict() for item in items]


@dataclass(frozen=True)
class AggregatedFactors:
    """The analysis factor record: the fold of every file's RawFileMetrics."""

    total_lines_of_code: int = 0
    num_programs: int = 0
    num_functions: int = 0
    num_state_variables: int = 0
    total_cyclomatic_complexity: int = 0
    avg_cyclomatic_complexity: float = 0.0
    max_cyclomatic_complexity: int = 0
    composition_depth: int = 0
    function_visibility: FunctionVisibility = field(default_factory=FunctionVisibility)
    view_functions: int = 0
    pure_functions: int = 0

    integer_overflow_risks: int = 0
    access_control_issues: int = 0
    input_validation_issues: int = 0
    unsafe_code_blocks: int = 0
    panic_usage: int = 0
    unwrap_usage: int = 0
    expect_usage: int = 0
    match_without_default: int = 0
    array_bounds_checks: int = 0
    memory_safety_issues: int = 0

    external_program_calls: int = 0
    unique_external_calls: int = 0
    known_protocol_interactions: Tuple[str, ...] = ()
    standard_library_usage: Tuple[str, ...] = ()
    oracle_usage: Tuple[OracleUsage, ...] = ()
    access_control_patterns: AccessControlPatterns = field(default_factory=AccessControlPatterns)
    cpi_usage: int = 0
    cross_program_invocation: Tuple[CrossProgramInvocation, ...] = ()

    token_transfers: int = 0
    complex_math_operations: int = 0
    time_dependent_logic: int = 0
    defi_patterns: Tuple[DeFiPattern, ...] = ()
    economic_risk_factors: Tuple[EconomicRiskFactor, ...] = ()
    anchor_specific_features: AnchorSpecificFeatures = field(
        default_factory=AnchorSpecificFeatures
    )

    files_analyzed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalLinesOfCode": self.total_lines_of_code,
            "numPrograms": self.num_programs,
            "numFunctions": self.num_functions,
            "numStateVariables": self.num_state_variables,
            "totalCyclomaticComplexity": self.total_cyclomatic_complexity,
            "avgCyclomaticComplexity": self.avg_cyclomatic_complexity,
            "maxCyclomaticComplexity": self.max_cyclomatic_complexity,
            "compositionDepth": self.composition_depth,
            "functionVisibility": self.function_visibility.to_dict(),
            "viewFunctions": self.view_functions,
            "pureFunctions": self.pure_functions,
            "integerOverflowRisks": self.integer_overflow_risks,
            "accessControlIssues": self.access_control_issues,
            "inputValidationIssues": self.input_validation_issues,
            "unsafeCodeBlocks": self.unsafe_code_blocks,
            "panicUsage": self.panic_usage,
            "unwrapUsage": self.unwrap_usage,
            "expectUsage": self.expect_usage,
            "matchWithoutDefault": self.match_without_default,
            "arrayBoundsChecks": self.array_bounds_checks,
            "memorySafetyIssues": self.memory_safety_issues,
            "externalProgramCalls": self.external_program_calls,
            "uniqueExternalCalls": self.unique_external_calls,
            "knownProtocolInteractions": list(self.known_protocol_interactions),
            "standardLibraryUsage": list(self.standard_library_usage),
            "oracleUsage": _to_list(self.oracle_usage),
            "accessControlPatterns": self.access_control_patterns.to_dict(),
            "cpiUsage": self.cpi_usage,
            "crossProgramInvocation": _to_list(self.cross_program_invocation),
            "tokenTransfers": self.token_transfers,
            "complexMathOperations": self.complex_math_operations,
            "timeDependentLogic": self.time_dependent_logic,
            "defiPatterns": _to_list(self.defi_patterns),
            "economicRiskFactors": _to_list(self.economic_risk_factors),
            "anchorSpecificFeatures": self.anchor_specific_features.to_dict(),
            "filesAnalyzed": self.files_analyzed,
        }


# ---------------------------------------------------------------------------
# Scores and report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DimensionScore:
    """A bounded 0-100 score plus the sub-counts that produced it."""

    score: int
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "details": self.details}


@dataclass(frozen=True)
class ComplexityScores:
    structural: DimensionScore
    security: DimensionScore
    systemic: DimensionScore
    economic: DimensionScore

    def as_mapping(self) -> Dict[str, DimensionScore]:
        return {
            "structural": self.structural,
            "security": self.security,
            "systemic": self.systemic,
            "economic": self.economic,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {name: dim.to_dict() for name, dim in self.as_mapping().items()}


@dataclass(frozen=True)
class AugmentationMeta:
    """Which factors the external analyzer replaced, and when."""

    workspace_id: str
    overridden: Tuple[str, ...] = ()
    api_version: str = "v1"
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workspaceId": self.workspace_id,
            "overridden": list(self.overridden),
            "apiVersion": self.api_version,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class PerformanceCounters:
    analysis_time_ms: int = 0
    files_analyzed: int = 0
    files_skipped: int = 0
    files_errored: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "analysisTimeMs": self.analysis_time_ms,
            "filesAnalyzed": self.files_analyzed,
            "filesSkipped": self.files_skipped,
            "filesErrored": self.files_errored,
        }


@dataclass(frozen=True)
class AnalysisReport:
    """Final analysis output."""

    repository: str
    repository_url: str
    framework: str
    analysis_factors: AggregatedFactors
    scores: ComplexityScores
    performance: PerformanceCounters = field(default_factory=PerformanceCounters)
    augmentation_meta: Optional[AugmentationMeta] = None
    language: str = "rust"
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repository": self.repository,
            "repositoryUrl": self.repository_url,
            "language": self.language,
            "framework": self.framework,
            "analysisFactors": self.analysis_factors.to_dict(),
            "scores": self.scores.to_dict(),
            "performance": self.performance.to_dict(),
            "augmentationMeta": (
                self.augmentation_meta.to_dict() if self.augmentation_meta else None
            ),
            "createdAt": self.created_at,
        }
