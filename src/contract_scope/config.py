"""Configuration loading and management for Contract Scope.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in AnalysisConfig)
    2. Global config (~/.contract-scope.toml)
    3. Project config (./contract-scope.toml)
    4. Explicit config file
    5. Environment variables (CONTRACT_SCOPE_* prefix)
    6. Keyword overrides (typically CLI flags)

Example:
    >>> config = load_config(verbose=True, workers=4)
    >>> config.verbosity
    'verbose'
    >>> config.workers
    4
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ContractScopeError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "CONTRACT_SCOPE_"


@dataclass(frozen=True)
class ScoringConfig:
    """Coefficients of the four dimension scores.

    Each term is ``weight * (value / norm)``; terms without a norm are plain
    per-unit weights. The defaults are calibrated thresholds and reproduce
    the reference scores exactly.

    Attributes:
        Structural:
            structural_loc_weight / structural_loc_norm: lines of code term
            structural_functions_weight / structural_functions_norm: function count term
            structural_avg_complexity_weight / structural_avg_complexity_norm
            structural_max_complexity_weight / structural_max_complexity_norm

        Security (per occurrence):
            security_unsafe_weight, security_panic_weight, security_unwrap_weight,
            security_memory_safety_weight, security_access_control_weight

        Systemic:
            systemic_external_calls_weight / systemic_external_calls_norm
            systemic_unique_calls_weight / systemic_unique_calls_norm
            systemic_oracle_weight: per oracle usage entry
            systemic_cpi_weight / systemic_cpi_norm
            systemic_constraint_weight / systemic_constraint_norm

        Economic:
            economic_token_transfer_weight / economic_token_transfer_norm
            economic_math_ops_weight / economic_math_ops_norm
            economic_defi_pattern_weight: per DeFi pattern entry
            economic_risk_weight: multiplier on sum(count * weight) of risk factors
            economic_time_dependent_bonus: flat bonus when any time-dependent logic exists

        score_cap: upper clamp applied to every dimension
    """

    # === Structural ===
    structural_loc_weight: float = 20.0
    structural_loc_norm: float = 1000.0
    structural_functions_weight: float = 20.0
    structural_functions_norm: float = 50.0
    structural_avg_complexity_weight: float = 30.0
    structural_avg_complexity_norm: float = 5.0
    structural_max_complexity_weight: float = 30.0
    structural_max_complexity_norm: float = 10.0

    # === Security ===
    security_unsafe_weight: float = 20.0
    security_panic_weight: float = 5.0
    security_unwrap_weight: float = 2.0
    security_memory_safety_weight: float = 15.0
    security_access_control_weight: float = 10.0

    # === Systemic ===
    systemic_external_calls_weight: float = 30.0
    systemic_external_calls_norm: float = 10.0
    systemic_unique_calls_weight: float = 20.0
    systemic_unique_calls_norm: float = 5.0
    systemic_oracle_weight: float = 15.0
    systemic_cpi_weight: float = 20.0
    systemic_cpi_norm: float = 5.0
    systemic_constraint_weight: float = 15.0
    systemic_constraint_norm: float = 10.0

    # === Economic ===
    economic_token_transfer_weight: float = 25.0
    economic_token_transfer_norm: float = 10.0
    economic_math_ops_weight: float = 25.0
    economic_math_ops_norm: float = 20.0
    economic_defi_pattern_weight: float = 15.0
    economic_risk_weight: float = 2.0
    economic_time_dependent_bonus: float = 20.0

    score_cap: int = 100

    def __post_init__(self) -> None:
        """Validate scoring configuration."""
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name.endswith("_norm"):
                if value <= 0:
                    raise ValueError(f"{f.name} must be positive")
            elif value < 0:
                raise ValueError(f"{f.name} must be non-negative")
        if self.score_cap < 1:
            raise ValueError("score_cap must be at least 1")


DEFAULT_SCORING = ScoringConfig()


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for analysis execution.

    Attributes:
        File enumeration:
            file_extensions: Suffixes of source files to scan
            exclude_dirs: Directory names never descended into (hidden
                directories are always skipped)
            max_file_size_mb: Maximum file size to analyze (MB)
            max_files: Maximum number of files to analyze

        Performance:
            workers: Extraction threads (1 = sequential)

        Augmentation:
            augmentation_enabled: Call the external analyzer for overrides
            augmentation_url: Base URL of the external analyzer
            augmentation_timeout_seconds: Upper bound for the external call
            augmentation_api_version: api_version sent with each request
            shared_workspace_path: Directory shared with the external analyzer
                (empty: $SHARED_WORKSPACE_PATH, else /tmp/shared/workspaces)

        Heuristics:
            math_ops_warning_threshold: Raw weighted math-op count above which
                a pattern over-triggering warning is logged

        Output control:
            verbosity: Logging verbosity level
    """

    file_extensions: list[str] = field(default_factory=lambda: [".rs"])
    exclude_dirs: list[str] = field(default_factory=lambda: ["node_modules", "target"])
    max_file_size_mb: float = 10.0
    max_files: int = 10000

    workers: int = 1

    augmentation_enabled: bool = False
    augmentation_url: str = "http://localhost:8080"
    augmentation_timeout_seconds: float = 120.0
    augmentation_api_version: str = "v1"
    shared_workspace_path: str = ""

    math_ops_warning_threshold: float = 500.0

    verbosity: Verbosity = "normal"

    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.file_extensions:
            raise ValueError("file_extensions must not be empty")
        if self.max_file_size_mb <= 0:
            raise ValueError("max_file_size_mb must be positive")
        if self.max_files < 1:
            raise ValueError("max_files must be at least 1")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.augmentation_timeout_seconds <= 0:
            raise ValueError("augmentation_timeout_seconds must be positive")
        if self.math_ops_warning_threshold <= 0:
            raise ValueError("math_ops_warning_threshold must be positive")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be one of: quiet, normal, verbose")

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)


DEFAULT_CONFIG = AnalysisConfig()


def load_config(config_file: Optional[Path] = None, **overrides) -> AnalysisConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored so unset CLI options fall through

    Returns:
        Validated AnalysisConfig instance

    Raises:
        ContractScopeError: If a config file or value is invalid

    Example:
        >>> config = load_config(config_file=Path("custom.toml"))
    """
    merged: dict = {}

    global_config = Path.home() / ".contract-scope.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except ContractScopeError:
            raise
        except Exception as e:
            raise ContractScopeError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "contract-scope.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except ContractScopeError:
            raise
        except Exception as e:
            raise ContractScopeError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ContractScopeError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except ContractScopeError:
            raise
        except Exception as e:
            raise ContractScopeError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    # Verbosity flags arrive from the CLI as booleans
    if "verbose" in overrides:
        if overrides.pop("verbose"):
            overrides["verbosity"] = "verbose"
    if "quiet" in overrides:
        if overrides.pop("quiet"):
            overrides["verbosity"] = "quiet"

    merged.update({k: v for k, v in overrides.items() if v is not None})

    scoring = merged.pop("scoring", None)
    if scoring is not None:
        if isinstance(scoring, dict):
            try:
                merged["scoring"] = ScoringConfig(**scoring)
            except (TypeError, ValueError) as e:
                raise ContractScopeError(f"Invalid [scoring] config: {e}")
        elif isinstance(scoring, ScoringConfig):
            merged["scoring"] = scoring

    try:
        return AnalysisConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ContractScopeError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from CONTRACT_SCOPE_* environment variables.

    Every scalar AnalysisConfig field is supported, e.g.
    CONTRACT_SCOPE_WORKERS=4 or CONTRACT_SCOPE_AUGMENTATION_ENABLED=true.
    List fields and the nested scoring table are file-only.

    Returns:
        Dict of field_name -> parsed_value for any variables found.
    """
    type_hints = get_type_hints(AnalysisConfig)

    result: dict[str, Any] = {}

    for field_name in AnalysisConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns:
        Parsed value or None if the field type is not env-configurable

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]

    if origin is list or type_hint is list or type_hint is ScoringConfig:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ContractScopeError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ContractScopeError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
