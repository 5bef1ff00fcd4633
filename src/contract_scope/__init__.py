"""
Contract Scope - Risk-signal extraction and complexity scoring for Solana programs

Scans Rust / Anchor sources with a battery of lexical heuristics, folds the
per-file signals into one factor record and maps it onto four bounded
complexity scores (structural, security, systemic, economic) used to rank
audit priority.
"""

__version__ = "0.1.0"

from .aggregator import aggregate
from .analyzers import PatternExtractor, count_logical_lines, estimate_complexity, extract
from .api import analyze
from .augmentation import HttpAugmenter, apply_augmentation, merge
from .core import ContractAnalyzer
from .models import AggregatedFactors, AnalysisReport, ComplexityScores, RawFileMetrics
from .scoring import score

__all__ = [
    "analyze",  # Main entry point
    "ContractAnalyzer",
    "AnalysisReport",
    "PatternExtractor",
    "extract",
    "count_logical_lines",
    "estimate_complexity",
    "aggregate",
    "score",
    "merge",
    "apply_augmentation",
    "HttpAugmenter",
    "RawFileMetrics",
    "AggregatedFactors",
    "ComplexityScores",
]
