"""Optional overrides from an external semantic analyzer."""

from .client import AugmentationResult, Augmenter, HttpAugmenter
from .merger import OVERRIDABLE_FACTORS, applicable_keys, apply_augmentation, merge
from .workspace import (
    WorkspaceStagingResult,
    generate_workspace_id,
    remove_workspace,
    shared_workspace_base,
    stage_workspace,
)

__all__ = [
    "Augmenter",
    "AugmentationResult",
    "HttpAugmenter",
    "OVERRIDABLE_FACTORS",
    "applicable_keys",
    "apply_augmentation",
    "merge",
    "WorkspaceStagingResult",
    "generate_workspace_id",
    "remove_workspace",
    "shared_workspace_base",
    "stage_workspace",
]
