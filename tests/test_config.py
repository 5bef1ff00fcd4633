"""Tests for configuration loading."""

import pytest

from contract_scope.config import AnalysisConfig, ScoringConfig, load_config
from contract_scope.exceptions import ContractScopeError, InvalidConfigError


class TestDefaults:
    def test_defaults(self):
        config = AnalysisConfig()
        assert config.file_extensions == [".rs"]
        assert config.workers == 1
        assert config.augmentation_enabled is False
        assert config.augmentation_timeout_seconds == 120.0
        assert config.math_ops_warning_threshold == 500.0
        assert config.scoring == ScoringConfig()

    def test_max_file_size_bytes(self):
        assert AnalysisConfig(max_file_size_mb=1).max_file_size_bytes == 1024 * 1024

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"workers": 0},
            {"file_extensions": []},
            {"max_files": 0},
            {"augmentation_timeout_seconds": 0},
            {"verbosity": "loud"},
        ],
    )
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            AnalysisConfig(**kwargs)

    def test_scoring_norm_must_be_positive(self):
        with pytest.raises(ValueError):
            ScoringConfig(structural_loc_norm=0)

    def test_scoring_weight_non_negative(self):
        with pytest.raises(ValueError):
            ScoringConfig(security_unsafe_weight=-1)


class TestLoadConfig:
    def test_no_sources_gives_defaults(self, isolated_config):
        assert load_config() == AnalysisConfig()

    def test_overrides_ignore_none(self, isolated_config):
        config = load_config(workers=4, augmentation_url=None)
        assert config.workers == 4
        assert config.augmentation_url == "http://localhost:8080"

    def test_verbosity_flags(self, isolated_config):
        assert load_config(verbose=True).verbosity == "verbose"
        assert load_config(quiet=True).verbosity == "quiet"
        assert load_config(verbose=False, quiet=False).verbosity == "normal"

    def test_project_file(self, isolated_config):
        (isolated_config / "contract-scope.toml").write_text("workers = 3\n")
        assert load_config().workers == 3

    def test_explicit_file_with_scoring_table(self, isolated_config, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            'augmentation_url = "http://analyzer:9000"\n'
            "[scoring]\n"
            "security_unsafe_weight = 25.0\n"
        )
        config = load_config(config_file=path)
        assert config.augmentation_url == "http://analyzer:9000"
        assert config.scoring.security_unsafe_weight == 25.0
        assert config.scoring.security_panic_weight == 5.0

    def test_missing_file(self, isolated_config, tmp_path):
        with pytest.raises(ContractScopeError):
            load_config(config_file=tmp_path / "nope.toml")

    def test_invalid_toml(self, isolated_config, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("workers = [\n")
        with pytest.raises(ContractScopeError):
            load_config(config_file=path)

    def test_unknown_scoring_key(self, isolated_config, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[scoring]\nnot_a_weight = 1.0\n")
        with pytest.raises(ContractScopeError):
            load_config(config_file=path)

    def test_env_vars(self, isolated_config, monkeypatch):
        monkeypatch.setenv("CONTRACT_SCOPE_WORKERS", "6")
        monkeypatch.setenv("CONTRACT_SCOPE_AUGMENTATION_ENABLED", "yes")
        monkeypatch.setenv("CONTRACT_SCOPE_AUGMENTATION_TIMEOUT_SECONDS", "2.5")
        config = load_config()
        assert config.workers == 6
        assert config.augmentation_enabled is True
        assert config.augmentation_timeout_seconds == 2.5

    def test_env_overridden_by_keyword(self, isolated_config, monkeypatch):
        monkeypatch.setenv("CONTRACT_SCOPE_WORKERS", "6")
        assert load_config(workers=2).workers == 2

    def test_invalid_env_value(self, isolated_config, monkeypatch):
        monkeypatch.setenv("CONTRACT_SCOPE_AUGMENTATION_ENABLED", "maybe")
        with pytest.raises(InvalidConfigError) as exc_info:
            load_config()
        assert exc_info.value.key == "CONTRACT_SCOPE_AUGMENTATION_ENABLED"

    def test_invalid_override(self, isolated_config):
        with pytest.raises(ContractScopeError):
            load_config(workers=0)
