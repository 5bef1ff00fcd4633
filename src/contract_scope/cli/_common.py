"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import AnalysisConfig, load_config

console = Console()


def score_style(score: int) -> str:
    """Rich style for a 0-100 dimension score."""
    if score >= 75:
        return "red bold"
    elif score >= 50:
        return "red"
    elif score >= 25:
        return "yellow"
    else:
        return "green"


def resolve_config(
    config: Optional[Path] = None,
    workers: Optional[int] = None,
    augment: Optional[bool] = None,
    augment_url: Optional[str] = None,
    timeout: Optional[float] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> AnalysisConfig:
    """Build configuration from CLI options; unset options fall through."""
    return load_config(
        config_file=config,
        workers=workers,
        augmentation_enabled=augment,
        augmentation_url=augment_url,
        augmentation_timeout_seconds=timeout,
        verbose=verbose,
        quiet=quiet,
    )
