"""Tests for the factor catalog."""

import pytest

from contract_scope.catalog import (
    DEFAULT_FACTORS,
    create_friendly_name,
    get_available_factors,
    get_factor_info,
    get_factor_value,
    infer_category,
)
from contract_scope.models import AggregatedFactors, AnalysisReport
from contract_scope.scoring import score


@pytest.fixture
def report_dict():
    factors = AggregatedFactors(total_lines_of_code=42, unsafe_code_blocks=1)
    report = AnalysisReport(
        repository="vault",
        repository_url="file:///tmp/vault",
        framework="anchor",
        analysis_factors=factors,
        scores=score(factors),
    )
    return report.to_dict()


class TestCatalog:
    def test_categories(self):
        assert list(get_available_factors()) == ["basic", "scores", "analysisFactors", "performance"]

    def test_default_factors_are_catalogued(self):
        catalog = get_available_factors()
        known = {path for group in catalog.values() for path in group["factors"]}
        assert set(DEFAULT_FACTORS) <= known

    def test_every_catalogued_path_resolves(self, report_dict):
        missing = object()
        for group in get_available_factors().values():
            for path in group["factors"]:
                if path in ("createdAt",):
                    continue
                assert get_factor_value(report_dict, path, missing) is not missing, path


class TestGetFactorValue:
    def test_nested_path(self, report_dict):
        assert get_factor_value(report_dict, "analysisFactors.totalLinesOfCode") == 42
        assert get_factor_value(report_dict, "scores.security.score") == 20

    def test_missing_step_gives_default(self, report_dict):
        assert get_factor_value(report_dict, "analysisFactors.nope") == ""
        assert get_factor_value(report_dict, "scores.security.score.deeper", 0) == 0

    def test_none_gives_default(self, report_dict):
        assert get_factor_value(report_dict, "augmentationMeta.workspaceId", "n/a") == "n/a"

    def test_zero_is_a_value(self, report_dict):
        assert get_factor_value(report_dict, "analysisFactors.panicUsage", "x") == 0


class TestNames:
    def test_friendly_name(self):
        assert (
            create_friendly_name("analysisFactors.anchorSpecificFeatures.seedsUsage")
            == "Anchorspecificfeatures Seedsusage"
        )

    def test_friendly_name_underscores(self):
        assert create_friendly_name("scores.custom_metric") == "Custom Metric"

    @pytest.mark.parametrize(
        "path,category",
        [
            ("scores.structural.details.extra", "Structural"),
            ("analysisFactors.totalLinesOfCodeV2", "Structural"),
            ("scores.security.details.extra", "Security"),
            ("analysisFactors.unsafeThing", "Security"),
            ("analysisFactors.cpiDepth", "Integration"),
            ("analysisFactors.tokenSupply", "Economic"),
            ("analysisFactors.anchorVersion", "Anchor"),
            ("performance.peakMemory", "Performance"),
            ("something.else", "Other"),
        ],
    )
    def test_infer_category(self, path, category):
        assert infer_category(path) == category

    def test_factor_info_from_catalog(self):
        info = get_factor_info("analysisFactors.unsafeCodeBlocks")
        assert info == {"name": "Unsafe Code Blocks", "category": "Analysis Factors"}

    def test_factor_info_fallback(self):
        info = get_factor_info("analysisFactors.tokenSupply")
        assert info == {"name": "Tokensupply", "category": "Economic"}
