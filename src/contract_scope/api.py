"""Public API for Contract Scope.

Example:
    >>> from contract_scope import analyze
    >>>
    >>> report = analyze("/path/to/program")
    >>> report.scores.security.score
    70
    >>>
    >>> # Only some files, with the external analyzer
    >>> report = analyze(
    ...     "/path/to/program",
    ...     selected_files=["programs/amm/"],
    ...     augmentation_enabled=True,
    ... )
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from .config import load_config
from .core import ContractAnalyzer
from .logging_config import get_logger
from .models import AnalysisReport

logger = get_logger(__name__)


def analyze(
    path: str = ".",
    selected_files: Optional[Sequence[str]] = None,
    config_file: Optional[Path] = None,
    **overrides,
) -> AnalysisReport:
    """Analyze a repository and return its report.

    1. Load configuration (auto-discover TOML + env + overrides)
    2. Enumerate and extract every source file
    3. Aggregate, optionally augment, and score

    Args:
        path: Repository root (default: current directory)
        selected_files: Optional allow-list of path substrings
        config_file: Optional explicit config file path
        **overrides: Configuration overrides (e.g., workers=4)

    Returns:
        AnalysisReport with factors, scores and performance counters

    Raises:
        ContractScopeError: If configuration or path is invalid, or no
            source file is found
    """
    config = load_config(config_file=config_file, **overrides)
    logger.info(f"Starting analysis of {path}")
    return ContractAnalyzer(path, config=config).analyze(selected_files)
