"""Exception hierarchy for Contract Scope."""

from .analysis import (
    AnalysisError,
    AugmentationError,
    AugmentationHTTPError,
    AugmentationTimeoutError,
    AugmentationUnavailableError,
    FileAccessError,
    InsufficientDataError,
    MalformedAugmentationError,
)
from .base import ContractScopeError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)

__all__ = [
    "ContractScopeError",
    "AnalysisError",
    "FileAccessError",
    "InsufficientDataError",
    "AugmentationError",
    "AugmentationTimeoutError",
    "AugmentationUnavailableError",
    "AugmentationHTTPError",
    "MalformedAugmentationError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
]
