"""Sparse patching of AggregatedFactors with external overrides."""

from __future__ import annotations

import concurrent.futures
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import AugmentationError, AugmentationTimeoutError, MalformedAugmentationError
from ..logging_config import get_logger
from ..models import (
    AccessControlPatterns,
    AggregatedFactors,
    AnchorSpecificFeatures,
    AugmentationMeta,
    CrossProgramInvocation,
    DeFiPattern,
    EconomicRiskFactor,
    FunctionVisibility,
    OracleUsage,
)
from .client import Augmenter

logger = get_logger(__name__)


def _as_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected a number, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"expected a non-negative count, got {value}")
    return int(value)


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected a number, got {type(value).__name__}")
    return float(value)


def _as_cardinality(value: Any) -> int:
    # A set may arrive as its members instead of its size
    if isinstance(value, list):
        return len(set(map(str, value)))
    return _as_count(value)


def _as_strings(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"expected a list, got {type(value).__name__}")
    return tuple(str(v) for v in value)


def _as_unique_strings(value: Any) -> Tuple[str, ...]:
    return tuple(sorted(set(_as_strings(value))))


def _records(from_dict: Callable[[Dict[str, Any]], Any]) -> Callable[[Any], Tuple[Any, ...]]:
    def coerce(value: Any) -> Tuple[Any, ...]:
        if not isinstance(value, list):
            raise ValueError(f"expected a list, got {type(value).__name__}")
        return tuple(from_dict(item) for item in value)

    return coerce


def _record(from_dict: Callable[[Dict[str, Any]], Any]) -> Callable[[Any], Any]:
    def coerce(value: Any) -> Any:
        if not isinstance(value, dict):
            raise ValueError(f"expected an object, got {type(value).__name__}")
        return from_dict(value)

    return coerce


# camelCase factor name -> (AggregatedFactors field, coercer)
OVERRIDABLE_FACTORS: Dict[str, Tuple[str, Callable[[Any], Any]]] = {
    "totalLinesOfCode": ("total_lines_of_code", _as_count),
    "numPrograms": ("num_programs", _as_count),
    "numFunctions": ("num_functions", _as_count),
    "numStateVariables": ("num_state_variables", _as_count),
    "totalCyclomaticComplexity": ("total_cyclomatic_complexity", _as_count),
    "avgCyclomaticComplexity": ("avg_cyclomatic_complexity", _as_float),
    "maxCyclomaticComplexity": ("max_cyclomatic_complexity", _as_count),
    "compositionDepth": ("composition_depth", _as_count),
    "functionVisibility": ("function_visibility", _record(FunctionVisibility.from_dict)),
    "viewFunctions": ("view_functions", _as_count),
    "pureFunctions": ("pure_functions", _as_count),
    "integerOverflowRisks": ("integer_overflow_risks", _as_count),
    "accessControlIssues": ("access_control_issues", _as_count),
    "inputValidationIssues": ("input_validation_issues", _as_count),
    "unsafeCodeBlocks": ("unsafe_code_blocks", _as_count),
    "panicUsage": ("panic_usage", _as_count),
    "unwrapUsage": ("unwrap_usage", _as_count),
    "expectUsage": ("expect_usage", _as_count),
    "matchWithoutDefault": ("match_without_default", _as_count),
    "arrayBoundsChecks": ("array_bounds_checks", _as_count),
    "memorySafetyIssues": ("memory_safety_issues", _as_count),
    "externalProgramCalls": ("external_program_calls", _as_count),
    "uniqueExternalCalls": ("unique_external_calls", _as_cardinality),
    "knownProtocolInteractions": ("known_protocol_interactions", _as_unique_strings),
    "standardLibraryUsage": ("standard_library_usage", _as_unique_strings),
    "oracleUsage": ("oracle_usage", _records(OracleUsage.from_dict)),
    "accessControlPatterns": ("access_control_patterns", _record(AccessControlPatterns.from_dict)),
    "cpiUsage": ("cpi_usage", _as_count),
    "crossProgramInvocation": (
        "cross_program_invocation",
        _records(CrossProgramInvocation.from_dict),
    ),
    "tokenTransfers": ("token_transfers", _as_count),
    "complexMathOperations": ("complex_math_operations", _as_count),
    "timeDependentLogic": ("time_dependent_logic", _as_count),
    "defiPatterns": ("defi_patterns", _records(DeFiPattern.from_dict)),
    "economicRiskFactors": ("economic_risk_factors", _records(EconomicRiskFactor.from_dict)),
    "anchorSpecificFeatures": (
        "anchor_specific_features",
        _record(AnchorSpecificFeatures.from_dict),
    ),
}


def applicable_keys(overrides: Dict[str, Any], overridden_keys: Iterable[str]) -> List[str]:
    """Keys that are both flagged as overridden and present in ``overrides``.

    Unknown factor names are dropped. Order follows ``overridden_keys``,
    without duplicates.
    """
    keys: List[str] = []
    for key in overridden_keys:
        if key in overrides and key in OVERRIDABLE_FACTORS and key not in keys:
            keys.append(key)
    return keys


def merge(
    factors: AggregatedFactors, overrides: Dict[str, Any], overridden_keys: Iterable[str]
) -> AggregatedFactors:
    """Return a copy of ``factors`` with the overridden fields replaced.

    Nested records are replaced wholesale, never deep-merged. Derived fields
    (such as the average complexity) are not recomputed.

    Raises:
        MalformedAugmentationError: If any applied value has the wrong shape;
            no field is patched in that case
    """
    changes: Dict[str, Any] = {}
    for key in applicable_keys(overrides, overridden_keys):
        field_name, coerce = OVERRIDABLE_FACTORS[key]
        try:
            changes[field_name] = coerce(overrides[key])
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedAugmentationError(f"Invalid override for '{key}': {e}", factor=key)

    if not changes:
        return factors
    return replace(factors, **changes)


def apply_augmentation(
    factors: AggregatedFactors,
    augmenter: Augmenter,
    workspace_id: str,
    selected_files: Optional[Sequence[str]] = None,
    timeout_seconds: float = 120.0,
    cleanup: Optional[Callable[[], None]] = None,
) -> Tuple[AggregatedFactors, Optional[AugmentationMeta]]:
    """Ask ``augmenter`` for overrides and merge them into ``factors``.

    Never raises. On timeout, error, ``success == false`` or a malformed
    payload the very same ``factors`` object is returned with ``None`` meta.
    A call that exceeds ``timeout_seconds`` is abandoned, not joined.

    ``cleanup`` runs once the augmenter is done with the workspace: before
    returning, or for an abandoned call, when that call finally returns.
    """
    executor = concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="contract-scope-augment"
    )
    cleanup_deferred = False
    try:
        future = executor.submit(augmenter.augment, workspace_id, selected_files)
        try:
            result = future.result(timeout=timeout_seconds)
        except concurrent.futures.TimeoutError:
            if not future.cancel() and cleanup is not None:
                # The call may still be reading the workspace
                future.add_done_callback(lambda _: cleanup())
                cleanup_deferred = True
            raise AugmentationTimeoutError(timeout_seconds, workspace_id=workspace_id)

        if not result.success:
            logger.warning(
                f"Augmentation for {workspace_id} reported failure; using heuristic factors"
            )
            return factors, None

        merged = merge(factors, result.factors, result.overridden)
    except AugmentationError as e:
        logger.warning(f"Augmentation skipped: {e}")
        return factors, None
    except Exception as e:
        logger.warning(f"Augmentation skipped after unexpected error: {e}", exc_info=True)
        return factors, None
    finally:
        executor.shutdown(wait=False)
        if cleanup is not None and not cleanup_deferred:
            cleanup()

    applied = applicable_keys(result.factors, result.overridden)
    logger.info(f"Augmentation overrode {len(applied)} factors for {workspace_id}")
    return merged, AugmentationMeta(
        workspace_id=result.workspace_id or workspace_id,
        overridden=tuple(applied),
        api_version=result.api_version,
        timestamp=result.timestamp,
    )
