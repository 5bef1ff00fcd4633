"""Tests for the augmentation merger."""

import threading

import pytest

from contract_scope.augmentation.client import AugmentationResult
from contract_scope.augmentation.merger import applicable_keys, apply_augmentation, merge
from contract_scope.exceptions import (
    AugmentationHTTPError,
    AugmentationTimeoutError,
    MalformedAugmentationError,
)
from contract_scope.models import (
    AggregatedFactors,
    AnchorSpecificFeatures,
    DeFiPatternType,
    FunctionVisibility,
)


@pytest.fixture
def factors():
    return AggregatedFactors(
        total_lines_of_code=120,
        num_functions=6,
        total_cyclomatic_complexity=18,
        avg_cyclomatic_complexity=3.0,
        max_cyclomatic_complexity=5,
        function_visibility=FunctionVisibility(public=4, private=2),
        anchor_specific_features=AnchorSpecificFeatures(
            constraint_usage=3, seeds_usage=2, program_derives=("Accounts",)
        ),
        files_analyzed=2,
    )


class StubAugmenter:
    """Returns a canned result or raises a canned error."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def augment(self, workspace_id, selected_files=None):
        self.calls.append((workspace_id, selected_files))
        if self.error is not None:
            raise self.error
        return self.result


class BlockingAugmenter:
    """Blocks until released; used to trigger the timeout path."""

    def __init__(self):
        self.release = threading.Event()

    def augment(self, workspace_id, selected_files=None):
        self.release.wait(5)
        return AugmentationResult(success=True, workspace_id=workspace_id)


def _result(factors, overridden, success=True):
    return AugmentationResult(
        success=success,
        workspace_id="ws-1",
        overridden=tuple(overridden),
        factors=factors,
        api_version="v1",
        timestamp="2024-01-01T00:00:00Z",
    )


class TestApplicableKeys:
    def test_requires_both_flag_and_value(self):
        overrides = {"numFunctions": 3, "cpiUsage": 2}
        assert applicable_keys(overrides, ["numFunctions", "totalLinesOfCode"]) == ["numFunctions"]

    def test_unknown_keys_dropped(self):
        overrides = {"notAFactor": 1, "cpiUsage": 2}
        assert applicable_keys(overrides, ["notAFactor", "cpiUsage"]) == ["cpiUsage"]

    def test_deduplicated_in_order(self):
        overrides = {"cpiUsage": 2, "panicUsage": 1}
        keys = applicable_keys(overrides, ["panicUsage", "cpiUsage", "panicUsage"])
        assert keys == ["panicUsage", "cpiUsage"]


class TestMerge:
    def test_sparse_patch(self, factors):
        merged = merge(factors, {"numFunctions": 9, "unwrapUsage": 4}, ["numFunctions", "unwrapUsage"])
        assert merged.num_functions == 9
        assert merged.unwrap_usage == 4
        assert merged.total_lines_of_code == 120
        assert factors.num_functions == 6

    def test_value_without_flag_ignored(self, factors):
        merged = merge(factors, {"numFunctions": 9}, [])
        assert merged is factors

    def test_derived_average_not_recomputed(self, factors):
        merged = merge(factors, {"numFunctions": 9}, ["numFunctions"])
        assert merged.avg_cyclomatic_complexity == 3.0

    def test_nested_record_replaced_wholesale(self, factors):
        merged = merge(
            factors,
            {"anchorSpecificFeatures": {"constraintUsage": 7}},
            ["anchorSpecificFeatures"],
        )
        anchor = merged.anchor_specific_features
        assert anchor.constraint_usage == 7
        assert anchor.seeds_usage == 0
        assert anchor.program_derives == ()

    def test_list_of_records(self, factors):
        merged = merge(
            factors,
            {"defiPatterns": [{"type": "lending", "complexity": "high", "riskLevel": "high"}]},
            ["defiPatterns"],
        )
        assert [p.type for p in merged.defi_patterns] == [DeFiPatternType.LENDING]

    def test_unique_calls_as_members(self, factors):
        merged = merge(factors, {"uniqueExternalCalls": ["a", "b", "a"]}, ["uniqueExternalCalls"])
        assert merged.unique_external_calls == 2

    def test_malformed_value_raises_and_patches_nothing(self, factors):
        with pytest.raises(MalformedAugmentationError) as exc_info:
            merge(
                factors,
                {"numFunctions": 9, "cpiUsage": "lots"},
                ["numFunctions", "cpiUsage"],
            )
        assert exc_info.value.details["factor"] == "cpiUsage"
        assert factors.num_functions == 6

    @pytest.mark.parametrize(
        "key,value",
        [
            ("panicUsage", -1),
            ("panicUsage", True),
            ("functionVisibility", [1, 2]),
            ("defiPatterns", [{"type": "pyramid"}]),
            ("oracleUsage", [{"functions": []}]),
            ("knownProtocolInteractions", "Serum"),
        ],
    )
    def test_malformed_shapes(self, factors, key, value):
        with pytest.raises(MalformedAugmentationError):
            merge(factors, {key: value}, [key])

    @pytest.mark.parametrize(
        "key,value",
        [
            ("functionVisibility", {"public": -5}),
            ("accessControlPatterns", {"roleBased": -1}),
            ("anchorSpecificFeatures", {"signerChecks": -2}),
            ("economicRiskFactors", [{"type": "flash_loan", "count": -40, "weight": 1}]),
            ("economicRiskFactors", [{"type": "flash_loan", "count": 1, "weight": -3}]),
        ],
    )
    def test_negative_nested_counts_rejected(self, factors, key, value):
        with pytest.raises(MalformedAugmentationError):
            merge(factors, {key: value}, [key])
        assert factors.function_visibility.public == 4


class TestApplyAugmentation:
    def test_success_merges_and_reports_meta(self, factors):
        augmenter = StubAugmenter(_result({"numFunctions": 10, "bogus": 1}, ["numFunctions", "bogus"]))
        merged, meta = apply_augmentation(factors, augmenter, "ws-1", ["programs/amm"])
        assert merged.num_functions == 10
        assert meta.overridden == ("numFunctions",)
        assert meta.workspace_id == "ws-1"
        assert meta.timestamp == "2024-01-01T00:00:00Z"
        assert augmenter.calls == [("ws-1", ["programs/amm"])]

    def test_timeout_returns_identical_record(self, factors):
        augmenter = BlockingAugmenter()
        try:
            merged, meta = apply_augmentation(factors, augmenter, "ws-1", timeout_seconds=0.05)
        finally:
            augmenter.release.set()
        assert merged is factors
        assert meta is None

    def test_cleanup_runs_before_return(self, factors):
        calls = []
        augmenter = StubAugmenter(_result({"numFunctions": 10}, ["numFunctions"]))
        apply_augmentation(factors, augmenter, "ws-1", cleanup=lambda: calls.append("cleanup"))
        assert calls == ["cleanup"]

    def test_cleanup_runs_after_error(self, factors):
        calls = []
        augmenter = StubAugmenter(error=RuntimeError("boom"))
        apply_augmentation(factors, augmenter, "ws-1", cleanup=lambda: calls.append("cleanup"))
        assert calls == ["cleanup"]

    def test_cleanup_waits_for_abandoned_call(self, factors):
        cleaned = threading.Event()
        augmenter = BlockingAugmenter()
        try:
            merged, meta = apply_augmentation(
                factors, augmenter, "ws-1", timeout_seconds=0.2, cleanup=cleaned.set
            )
            assert not cleaned.is_set()
        finally:
            augmenter.release.set()
        assert cleaned.wait(5)
        assert meta is None

    def test_augmenter_error_is_absorbed(self, factors):
        augmenter = StubAugmenter(error=AugmentationHTTPError(404, workspace_id="ws-1"))
        merged, meta = apply_augmentation(factors, augmenter, "ws-1")
        assert merged is factors
        assert meta is None

    def test_unexpected_error_is_absorbed(self, factors):
        augmenter = StubAugmenter(error=RuntimeError("boom"))
        merged, meta = apply_augmentation(factors, augmenter, "ws-1")
        assert merged is factors
        assert meta is None

    def test_unsuccessful_result_is_noop(self, factors):
        augmenter = StubAugmenter(_result({"numFunctions": 10}, ["numFunctions"], success=False))
        merged, meta = apply_augmentation(factors, augmenter, "ws-1")
        assert merged is factors
        assert meta is None

    def test_malformed_override_is_noop(self, factors):
        augmenter = StubAugmenter(
            _result({"numFunctions": 10, "cpiUsage": None}, ["numFunctions", "cpiUsage"])
        )
        merged, meta = apply_augmentation(factors, augmenter, "ws-1")
        assert merged is factors
        assert meta is None

    def test_timeout_error_type(self):
        error = AugmentationTimeoutError(0.05, workspace_id="ws-1")
        assert error.details["workspace_id"] == "ws-1"
        assert error.timeout_seconds == 0.05
