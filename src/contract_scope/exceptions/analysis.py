"""Analysis-related exceptions: file access, missing input, augmentation."""

from pathlib import Path
from typing import Dict, Optional

from .base import ContractScopeError


class AnalysisError(ContractScopeError):
    """Base class for analysis-related errors."""
    pass


class FileAccessError(AnalysisError):
    """Raised when a source file cannot be accessed or read."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class InsufficientDataError(AnalysisError):
    """Raised when there's not enough input for analysis."""

    def __init__(self, reason: str, minimum_required: Optional[int] = None):
        details: Dict[str, str] = {"reason": reason}
        if minimum_required is not None:
            details["minimum_required"] = str(minimum_required)

        super().__init__(f"Insufficient data for analysis: {reason}", details=details)
        self.reason = reason
        self.minimum_required = minimum_required


class AugmentationError(AnalysisError):
    """Base class for failures of the external augmentation service.

    Never fatal: the augmentation step catches these and keeps the
    heuristic factor record.
    """

    def __init__(self, message: str, workspace_id: Optional[str] = None, **details: str):
        if workspace_id is not None:
            details["workspace_id"] = workspace_id
        super().__init__(message, details=details)
        self.workspace_id = workspace_id


class AugmentationTimeoutError(AugmentationError):
    """Raised when the augmentation call exceeds its timeout."""

    def __init__(self, timeout_seconds: float, workspace_id: Optional[str] = None):
        super().__init__(
            f"Augmentation timed out after {timeout_seconds}s",
            workspace_id=workspace_id,
            timeout_seconds=str(timeout_seconds),
        )
        self.timeout_seconds = timeout_seconds


class AugmentationUnavailableError(AugmentationError):
    """Raised when the augmentation service cannot be reached."""
    pass


class AugmentationHTTPError(AugmentationError):
    """Raised when the augmentation service answers with a non-2xx status."""

    def __init__(self, status_code: int, workspace_id: Optional[str] = None):
        super().__init__(
            f"Augmentation service returned HTTP {status_code}",
            workspace_id=workspace_id,
            status_code=str(status_code),
        )
        self.status_code = status_code


class MalformedAugmentationError(AugmentationError):
    """Raised when the augmentation payload does not have the expected shape."""
    pass
