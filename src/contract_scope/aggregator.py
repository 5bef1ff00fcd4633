"""Cross-file aggregation of RawFileMetrics into AggregatedFactors.

The fold is order independent: counts add, maxima take the running maximum,
sets union, and every list field is emitted in a canonical sorted order so
that any permutation of the input files yields an identical record.
"""

from dataclasses import replace
from typing import Iterable, List, Set

from .logging_config import get_logger
from .models import (
    AccessControlPatterns,
    AggregatedFactors,
    AnchorSpecificFeatures,
    CrossProgramInvocation,
    DeFiPattern,
    EconomicRiskFactor,
    FunctionVisibility,
    OracleUsage,
    RawFileMetrics,
)

logger = get_logger(__name__)

# Plain integer fields shared by both records, summed across files
_SUMMED_FIELDS = (
    "num_programs",
    "num_functions",
    "num_state_variables",
    "view_functions",
    "pure_functions",
    "integer_overflow_risks",
    "access_control_issues",
    "input_validation_issues",
    "unsafe_code_blocks",
    "panic_usage",
    "unwrap_usage",
    "expect_usage",
    "match_without_default",
    "array_bounds_checks",
    "memory_safety_issues",
    "external_program_calls",
    "cpi_usage",
    "token_transfers",
    "complex_math_operations",
    "time_dependent_logic",
)


def _defi_key(p: DeFiPattern):
    return (p.type.value, p.complexity.value, p.risk_level.value)


def _risk_key(r: EconomicRiskFactor):
    return (r.type, r.severity.value, r.count, r.weight)


def _oracle_key(o: OracleUsage):
    return (o.oracle, o.functions, o.risk_level.value)


def _cpi_key(c: CrossProgramInvocation):
    return (c.target_program, c.functions, c.risk_level.value)


class FactorAccumulator:
    """Mutable fold state owned by a single analysis run."""

    def __init__(self) -> None:
        self.files = 0
        self.lines_of_code = 0
        self.total_complexity = 0
        self.max_complexity = 0
        self.composition_depth = 0
        self.sums = {name: 0 for name in _SUMMED_FIELDS}
        self.visibility = FunctionVisibility()
        self.access_control = AccessControlPatterns()
        self.anchor = AnchorSpecificFeatures()
        self.unique_external_calls: Set[str] = set()
        self.standard_library_usage: Set[str] = set()
        self.known_protocols: Set[str] = set()
        self.oracle_usage: List[OracleUsage] = []
        self.cross_program_invocation: List[CrossProgramInvocation] = []
        self.defi_patterns: List[DeFiPattern] = []
        self.economic_risk_factors: List[EconomicRiskFactor] = []

    def add(self, metrics: RawFileMetrics) -> "FactorAccumulator":
        self.files += 1
        self.lines_of_code += metrics.lines_of_code
        self.total_complexity += metrics.complexity.total
        self.max_complexity = max(self.max_complexity, metrics.complexity.max)
        self.composition_depth = max(self.composition_depth, metrics.composition_depth)

        for name in _SUMMED_FIELDS:
            self.sums[name] += getattr(metrics, name)

        self.visibility = self.visibility + metrics.function_visibility
        self.access_control = self.access_control + metrics.access_control_patterns
        self.anchor = self.anchor + metrics.anchor_specific_features

        self.unique_external_calls.update(metrics.unique_external_calls)
        self.standard_library_usage.update(metrics.standard_library_usage)
        self.known_protocols.update(metrics.known_protocol_interactions)

        self.oracle_usage.extend(metrics.oracle_usage)
        self.cross_program_invocation.extend(metrics.cross_program_invocation)
        self.defi_patterns.extend(metrics.defi_patterns)
        self.economic_risk_factors.extend(metrics.economic_risk_factors)
        return self

    def build(self) -> AggregatedFactors:
        """Freeze the fold into an AggregatedFactors record."""
        num_functions = self.sums["num_functions"]
        avg_complexity = self.total_complexity / num_functions if num_functions > 0 else 0.0

        anchor = replace(self.anchor, program_derives=tuple(sorted(self.anchor.program_derives)))

        return AggregatedFactors(
            total_lines_of_code=self.lines_of_code,
            total_cyclomatic_complexity=self.total_complexity,
            avg_cyclomatic_complexity=avg_complexity,
            max_cyclomatic_complexity=self.max_complexity,
            composition_depth=self.composition_depth,
            function_visibility=self.visibility,
            unique_external_calls=len(self.unique_external_calls),
            known_protocol_interactions=tuple(sorted(self.known_protocols)),
            standard_library_usage=tuple(sorted(self.standard_library_usage)),
            oracle_usage=tuple(sorted(self.oracle_usage, key=_oracle_key)),
            access_control_patterns=self.access_control,
            cross_program_invocation=tuple(
                sorted(self.cross_program_invocation, key=_cpi_key)
            ),
            defi_patterns=tuple(sorted(self.defi_patterns, key=_defi_key)),
            economic_risk_factors=tuple(sorted(self.economic_risk_factors, key=_risk_key)),
            anchor_specific_features=anchor,
            files_analyzed=self.files,
            **self.sums,
        )


def aggregate(metrics: Iterable[RawFileMetrics]) -> AggregatedFactors:
    """Fold per-file metrics into one repository-level factor record."""
    accumulator = FactorAccumulator()
    for item in metrics:
        accumulator.add(item)
    factors = accumulator.build()
    logger.debug(
        f"Aggregated {factors.files_analyzed} files: {factors.total_lines_of_code} loc, "
        f"{factors.num_functions} functions"
    )
    return factors
