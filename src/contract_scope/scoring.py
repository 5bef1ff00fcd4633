"""Scoring engine: AggregatedFactors -> four bounded dimension scores.

Each dimension is an independent weighted sum. A ratio term is
``weight * value / norm``; a per-unit term is ``weight * count``. The sum is
clamped to ``[0, score_cap]`` and rounded half up. ``details`` always holds
the unclamped inputs the formula consumed.
"""

from typing import Any, Dict, List, Optional

from .analyzers.math_ops import round_half_up
from .config import DEFAULT_SCORING, ScoringConfig
from .models import AggregatedFactors, ComplexityScores, DeFiPatternType, DimensionScore


def _bounded(raw: float, cap: int) -> int:
    return round_half_up(min(float(cap), max(0.0, raw)))


def _ratio(value: float, norm: float, weight: float) -> float:
    return (value / norm) * weight


def _dicts(items) -> List[Dict[str, Any]]:
    return [item.to_dict() for item in items]


def structural_score(factors: AggregatedFactors, config: ScoringConfig = DEFAULT_SCORING) -> DimensionScore:
    raw = (
        _ratio(factors.total_lines_of_code, config.structural_loc_norm, config.structural_loc_weight)
        + _ratio(factors.num_functions, config.structural_functions_norm, config.structural_functions_weight)
        + _ratio(
            factors.avg_cyclomatic_complexity,
            config.structural_avg_complexity_norm,
            config.structural_avg_complexity_weight,
        )
        + _ratio(
            factors.max_cyclomatic_complexity,
            config.structural_max_complexity_norm,
            config.structural_max_complexity_weight,
        )
    )
    return DimensionScore(
        score=_bounded(raw, config.score_cap),
        details={
            "totalLinesOfCode": factors.total_lines_of_code,
            "numPrograms": factors.num_programs,
            "numFunctions": factors.num_functions,
            "numStateVariables": factors.num_state_variables,
            "avgCyclomaticComplexity": factors.avg_cyclomatic_complexity,
            "maxCyclomaticComplexity": factors.max_cyclomatic_complexity,
            "compositionDepth": factors.composition_depth,
        },
    )


def security_score(factors: AggregatedFactors, config: ScoringConfig = DEFAULT_SCORING) -> DimensionScore:
    raw = (
        factors.unsafe_code_blocks * config.security_unsafe_weight
        + factors.panic_usage * config.security_panic_weight
        + factors.unwrap_usage * config.security_unwrap_weight
        + factors.memory_safety_issues * config.security_memory_safety_weight
        + factors.access_control_issues * config.security_access_control_weight
    )
    return DimensionScore(
        score=_bounded(raw, config.score_cap),
        details={
            "lowLevelOperations": {
                "unsafeCodeBlocks": factors.unsafe_code_blocks,
                "memorySafetyIssues": factors.memory_safety_issues,
            },
            "errorHandling": {
                "panicUsage": factors.panic_usage,
                "unwrapUsage": factors.unwrap_usage,
                "expectUsage": factors.expect_usage,
                "matchWithoutDefault": factors.match_without_default,
            },
            "accessControlIssues": factors.access_control_issues,
            "riskFactors": _dicts(factors.economic_risk_factors),
        },
    )


def systemic_score(factors: AggregatedFactors, config: ScoringConfig = DEFAULT_SCORING) -> DimensionScore:
    constraint_usage = factors.anchor_specific_features.constraint_usage
    raw = (
        _ratio(
            factors.external_program_calls,
            config.systemic_external_calls_norm,
            config.systemic_external_calls_weight,
        )
        + _ratio(
            factors.unique_external_calls,
            config.systemic_unique_calls_norm,
            config.systemic_unique_calls_weight,
        )
        + len(factors.oracle_usage) * config.systemic_oracle_weight
        + _ratio(factors.cpi_usage, config.systemic_cpi_norm, config.systemic_cpi_weight)
        + _ratio(constraint_usage, config.systemic_constraint_norm, config.systemic_constraint_weight)
    )
    custom_access = factors.access_control_patterns.custom
    return DimensionScore(
        score=_bounded(raw, config.score_cap),
        details={
            "externalDependencies": {
                "externalProgramCalls": factors.external_program_calls,
                "uniqueExternalCalls": factors.unique_external_calls,
                "knownProtocolInteractions": list(factors.known_protocol_interactions),
            },
            "standardInteractions": {
                "splTokenInteractions": "anchor_spl" in factors.standard_library_usage,
                "standardLibraryUsage": list(factors.standard_library_usage),
            },
            "oracleUsage": _dicts(factors.oracle_usage),
            "cpiUsage": factors.cpi_usage,
            "constraintUsage": constraint_usage,
            "accessControlPattern": {
                "type": "custom" if custom_access > 0 else "standard",
                "complexity": "high" if custom_access > 2 else "low",
            },
        },
    )


def economic_score(factors: AggregatedFactors, config: ScoringConfig = DEFAULT_SCORING) -> DimensionScore:
    risk_sum = sum(risk.count * risk.weight for risk in factors.economic_risk_factors)
    time_bonus = config.economic_time_dependent_bonus if factors.time_dependent_logic > 0 else 0.0
    raw = (
        _ratio(
            factors.token_transfers,
            config.economic_token_transfer_norm,
            config.economic_token_transfer_weight,
        )
        + _ratio(
            factors.complex_math_operations,
            config.economic_math_ops_norm,
            config.economic_math_ops_weight,
        )
        + len(factors.defi_patterns) * config.economic_defi_pattern_weight
        + risk_sum * config.economic_risk_weight
        + time_bonus
    )
    pattern_types = {p.type for p in factors.defi_patterns}
    return DimensionScore(
        score=_bounded(raw, config.score_cap),
        details={
            "financialPrimitives": {
                "isAMM": DeFiPatternType.AMM in pattern_types,
                "isLendingProtocol": DeFiPatternType.LENDING in pattern_types,
                "isVestingContract": DeFiPatternType.VESTING in pattern_types,
                "isStakingProtocol": DeFiPatternType.STAKING in pattern_types,
                "defiPatterns": _dicts(factors.defi_patterns),
            },
            "tokenomics": {
                "tokenTransfers": factors.token_transfers,
                "complexMathOperations": factors.complex_math_operations,
                "timeDependentLogic": factors.time_dependent_logic,
            },
            "economicRiskFactors": _dicts(factors.economic_risk_factors),
            "riskWeightSum": risk_sum,
        },
    )


def score(factors: AggregatedFactors, config: Optional[ScoringConfig] = None) -> ComplexityScores:
    """Compute all four dimension scores for a factor record."""
    config = config or DEFAULT_SCORING
    return ComplexityScores(
        structural=structural_score(factors, config),
        security=security_score(factors, config),
        systemic=systemic_score(factors, config),
        economic=economic_score(factors, config),
    )
