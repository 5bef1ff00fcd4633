"""Source enumeration: which files of a repository get analyzed."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..config import DEFAULT_CONFIG, AnalysisConfig
from ..exceptions import FileAccessError, InvalidPathError
from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """A source file's location and text."""

    path: str
    relative_path: str
    text: str

    @classmethod
    def from_text(cls, relative_path: str, text: str) -> "SourceFile":
        """Build an in-memory source that never touched the filesystem."""
        return cls(path=relative_path, relative_path=relative_path, text=text)


@dataclass
class ScanStats:
    files_found: int = 0
    files_skipped: int = 0
    files_errored: int = 0


def _is_selected(
    filepath: Path, root: Path, selected_files: Optional[Sequence[str]]
) -> bool:
    if not selected_files:
        return True
    # Entries may be absolute or relative to the repository root
    candidates = (filepath.relative_to(root).as_posix(), filepath.absolute().as_posix())
    return any(
        selected in path_str for selected in selected_files for path_str in candidates
    )


def _read_text(filepath: Path) -> str:
    try:
        with open(filepath, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as e:
        raise FileAccessError(filepath, f"Cannot read file: {e}")


def enumerate_sources(
    root: Path,
    config: Optional[AnalysisConfig] = None,
    selected_files: Optional[Sequence[str]] = None,
) -> Tuple[List[SourceFile], ScanStats]:
    """Collect the readable source files under ``root``.

    Hidden directories and ``config.exclude_dirs`` are never entered. With
    ``selected_files``, a file is kept only if its root-relative or absolute
    path contains one of the given substrings; an empty or missing allow-list
    keeps everything.

    Args:
        root: Repository root directory
        config: Analysis configuration (extensions, size and count limits)
        selected_files: Optional allow-list of path substrings

    Returns:
        (sources sorted by relative path, scan statistics)

    Raises:
        InvalidPathError: If ``root`` is not a directory
    """
    config = config or DEFAULT_CONFIG
    root = Path(root)
    if not root.is_dir():
        raise InvalidPathError(root, "Not a directory")

    ext_set = set(config.file_extensions)
    exclude = set(config.exclude_dirs)
    stats = ScanStats()

    candidates: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        # Prune in place so excluded trees are never walked
        dirnames[:] = sorted(
            d for d in dirnames if not d.startswith(".") and d not in exclude
        )
        for name in filenames:
            filepath = Path(dirpath) / name
            if filepath.suffix not in ext_set:
                continue
            if not _is_selected(filepath, root, selected_files):
                continue
            candidates.append(filepath)

    candidates.sort(key=lambda p: p.relative_to(root).as_posix())

    sources: List[SourceFile] = []
    for filepath in candidates:
        if len(sources) >= config.max_files:
            logger.warning(f"Reached max files limit ({config.max_files})")
            break

        try:
            size = filepath.stat().st_size
        except OSError as e:
            stats.files_errored += 1
            logger.warning(f"Cannot stat {filepath}: {e}")
            continue
        if size > config.max_file_size_bytes:
            stats.files_skipped += 1
            logger.debug(f"Skipped (size): {filepath} ({size} bytes)")
            continue

        try:
            text = _read_text(filepath)
        except FileAccessError as e:
            stats.files_errored += 1
            logger.warning(f"Access error for {filepath}: {e.reason}")
            continue

        sources.append(
            SourceFile(
                path=str(filepath),
                relative_path=filepath.relative_to(root).as_posix(),
                text=text,
            )
        )

    stats.files_found = len(sources)
    logger.info(
        f"Enumeration complete: {stats.files_found} files, {stats.files_skipped} skipped, "
        f"{stats.files_errored} errors"
    )
    return sources, stats
