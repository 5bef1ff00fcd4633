"""Analysis pipeline orchestrator for Contract Scope.

enumerate -> extract (per file) -> aggregate -> augment (optional) -> score
"""

import concurrent.futures
import functools
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .aggregator import aggregate
from .analyzers import PatternExtractor
from .augmentation import (
    Augmenter,
    HttpAugmenter,
    apply_augmentation,
    remove_workspace,
    stage_workspace,
)
from .config import DEFAULT_CONFIG, AnalysisConfig
from .exceptions import AugmentationError, InsufficientDataError, InvalidPathError
from .logging_config import get_logger
from .models import (
    AggregatedFactors,
    AnalysisReport,
    AugmentationMeta,
    PerformanceCounters,
    RawFileMetrics,
)
from .scanning import SourceFile, detect_framework, enumerate_sources
from .scoring import score

logger = get_logger(__name__)

ProgressCallback = Optional[Callable[[str], None]]


class ContractAnalyzer:
    """Runs one analysis of a repository of Rust / Solana programs.

    Each call to ``analyze`` owns its own fold state; an analyzer instance
    holds only configuration and may be reused.
    """

    def __init__(
        self,
        root_dir: Union[Path, str],
        config: Optional[AnalysisConfig] = None,
        augmenter: Optional[Augmenter] = None,
    ):
        root = Path(root_dir).resolve()
        if not root.exists():
            raise InvalidPathError(root, "Path does not exist")
        if not root.is_dir():
            raise InvalidPathError(root, "Not a directory")
        self.root_dir = root

        self.config = config or DEFAULT_CONFIG
        self.extractor = PatternExtractor(self.config.math_ops_warning_threshold)

        if augmenter is None and self.config.augmentation_enabled:
            augmenter = HttpAugmenter(
                self.config.augmentation_url,
                timeout_seconds=self.config.augmentation_timeout_seconds,
                api_version=self.config.augmentation_api_version,
            )
        self.augmenter = augmenter

        logger.debug(
            f"Analyzer for {self.root_dir}: workers={self.config.workers}, "
            f"augmentation={'on' if self.augmenter else 'off'}"
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def analyze(
        self,
        selected_files: Optional[Sequence[str]] = None,
        progress_callback: ProgressCallback = None,
    ) -> AnalysisReport:
        """Analyze the repository and build the report.

        Args:
            selected_files: Optional allow-list of path substrings
            progress_callback: Called with a short message at each phase

        Raises:
            InsufficientDataError: If no source file is found
        """
        started = time.perf_counter()

        def _progress(message: str) -> None:
            logger.debug(message)
            if progress_callback is not None:
                progress_callback(message)

        _progress("Enumerating sources")
        sources, stats = enumerate_sources(self.root_dir, self.config, selected_files)
        if not sources:
            raise InsufficientDataError(
                f"no {'/'.join(self.config.file_extensions)} files found under {self.root_dir}",
                minimum_required=1,
            )

        _progress(f"Extracting metrics from {len(sources)} files")
        metrics, extraction_errors = self._extract_all(sources)

        _progress("Aggregating factors")
        factors = aggregate(metrics)

        meta: Optional[AugmentationMeta] = None
        if self.augmenter is not None:
            _progress("Requesting augmentation")
            factors, meta = self._augment(factors, selected_files)

        _progress("Scoring")
        scores = score(factors, self.config.scoring)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        report = AnalysisReport(
            repository=self.root_dir.name,
            repository_url=self.root_dir.as_uri(),
            framework=detect_framework(self.root_dir),
            analysis_factors=factors,
            scores=scores,
            performance=PerformanceCounters(
                analysis_time_ms=elapsed_ms,
                files_analyzed=len(metrics),
                files_skipped=stats.files_skipped,
                files_errored=stats.files_errored + extraction_errors,
            ),
            augmentation_meta=meta,
            created_at=datetime.now(timezone.utc).isoformat(),
        )

        logger.info(
            f"Analysis complete: {len(metrics)} files in {elapsed_ms}ms, scores "
            + ", ".join(f"{name}={dim.score}" for name, dim in scores.as_mapping().items())
        )
        return report

    def analyze_sources(self, sources: Sequence[SourceFile]) -> AggregatedFactors:
        """Extract and aggregate in-memory sources, no filesystem access."""
        metrics, _errors = self._extract_all(sources)
        return aggregate(metrics)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _extract_one(self, source: SourceFile) -> Optional[RawFileMetrics]:
        try:
            return self.extractor.extract(source.text, source.relative_path)
        except Exception as e:
            logger.error(f"Unexpected error analyzing {source.relative_path}: {e}")
            return None

    def _extract_all(self, sources: Sequence[SourceFile]) -> Tuple[List[RawFileMetrics], int]:
        """Extract every file; results keep the input order."""
        if self.config.workers > 1 and len(sources) > 1:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.config.workers
            ) as executor:
                results = list(executor.map(self._extract_one, sources))
        else:
            results = [self._extract_one(source) for source in sources]

        metrics = [m for m in results if m is not None]
        return metrics, len(results) - len(metrics)

    def _augment(
        self, factors: AggregatedFactors, selected_files: Optional[Sequence[str]]
    ) -> Tuple[AggregatedFactors, Optional[AugmentationMeta]]:
        """Stage the sources, ask the augmenter, always fall back to ``factors``."""
        try:
            staged = stage_workspace(self.root_dir, base=self.config.shared_workspace_path)
        except (AugmentationError, InvalidPathError) as e:
            logger.warning(f"Augmentation skipped, cannot stage workspace: {e}")
            return factors, None

        return apply_augmentation(
            factors,
            self.augmenter,
            staged.workspace_id,
            selected_files,
            timeout_seconds=self.config.augmentation_timeout_seconds,
            cleanup=functools.partial(remove_workspace, staged),
        )
