"""Per-file analyzers: line counting, pattern extraction, complexity."""

from .complexity import count_decision_points, estimate_complexity
from .extractor import PatternExtractor, extract
from .lines import count_logical_lines
from .math_ops import count_complex_math_operations, remove_comments_and_strings
from .rules import (
    RULES,
    ExtractionRule,
    KeywordTrigger,
    RuleCategory,
    get_rule,
    rules_by_category,
)

__all__ = [
    "PatternExtractor",
    "extract",
    "count_logical_lines",
    "estimate_complexity",
    "count_decision_points",
    "count_complex_math_operations",
    "remove_comments_and_strings",
    "ExtractionRule",
    "KeywordTrigger",
    "RuleCategory",
    "RULES",
    "get_rule",
    "rules_by_category",
]
