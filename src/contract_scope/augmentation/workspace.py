"""Staging sources into the directory shared with the external analyzer."""

import os
import re
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..exceptions import AugmentationError, InvalidPathError
from ..logging_config import get_logger

logger = get_logger(__name__)

SHARED_WORKSPACE_ENV = "SHARED_WORKSPACE_PATH"
DEFAULT_SHARED_WORKSPACE = "/tmp/shared/workspaces"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True)
class WorkspaceStagingResult:
    workspace_id: str
    shared_path: Path
    source_path: Path
    copied_files: int


def shared_workspace_base(base: Optional[Union[str, Path]] = None) -> Path:
    """Explicit base, else $SHARED_WORKSPACE_PATH, else /tmp/shared/workspaces."""
    if base:
        return Path(base)
    return Path(os.environ.get(SHARED_WORKSPACE_ENV) or DEFAULT_SHARED_WORKSPACE)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_workspace_id(base_name: str) -> str:
    """Sanitised name plus a base-36 millisecond timestamp, e.g. ``my-repo-lq3k2x1a``.

    Every character outside ``[A-Za-z0-9._-]`` becomes ``-`` so the id can
    never escape the shared base directory.
    """
    safe = _UNSAFE_CHARS.sub("-", base_name)
    return f"{safe}-{_to_base36(int(time.time() * 1000))}"


def stage_workspace(
    source: Union[str, Path],
    base: Optional[Union[str, Path]] = None,
    workspace_id: Optional[str] = None,
) -> WorkspaceStagingResult:
    """Copy ``source`` recursively into a fresh workspace under the shared base.

    Raises:
        InvalidPathError: If ``source`` does not exist
        AugmentationError: If the destination already exists or the copy fails
    """
    source_path = Path(source)
    if not source_path.exists():
        raise InvalidPathError(source_path, "Source path does not exist")

    base_path = shared_workspace_base(base)
    final_id = workspace_id or generate_workspace_id(source_path.resolve().name)
    dest = base_path / final_id

    if dest.exists():
        raise AugmentationError(
            f"Destination workspace already exists: {dest}", workspace_id=final_id
        )

    copied = 0

    def _copy(src: str, dst: str) -> str:
        nonlocal copied
        copied += 1
        return shutil.copy2(src, dst)

    try:
        base_path.mkdir(parents=True, exist_ok=True)
        if source_path.is_dir():
            shutil.copytree(source_path, dest, copy_function=_copy)
        else:
            dest.mkdir(parents=True)
            _copy(str(source_path), str(dest / source_path.name))
    except OSError as e:
        # Drop whatever part of the tree was copied before the failure
        shutil.rmtree(dest, ignore_errors=True)
        raise AugmentationError(
            f"Cannot stage workspace at {dest}: {e}", workspace_id=final_id
        )

    logger.info(f"Staged workspace '{final_id}' -> {dest} (files={copied})")
    return WorkspaceStagingResult(
        workspace_id=final_id, shared_path=dest, source_path=source_path, copied_files=copied
    )


def remove_workspace(result: WorkspaceStagingResult) -> None:
    """Delete a staged workspace; failures are logged, not raised."""
    try:
        shutil.rmtree(result.shared_path)
    except OSError as e:
        logger.warning(f"Could not remove staged workspace {result.shared_path}: {e}")
