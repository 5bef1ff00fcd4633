"""Heuristic cyclomatic complexity estimation."""

import math

from ..models import ComplexityEstimate
from .rules import DECISION_RULES, FUNCTION_BOUNDARY_RULE, MATCH_ARM_RULE, MATCH_BLOCK_RULE


def count_decision_points(code: str) -> int:
    """Decision points in ``code``: 1 + branch constructs + extra match arms.

    Each ``match`` block adds (arms - 1); the ``match`` keyword itself is
    already counted as a branch construct.
    """
    complexity = 1
    for rule in DECISION_RULES:
        complexity += rule.count(code)

    for block in MATCH_BLOCK_RULE.matches(code):
        complexity += max(0, MATCH_ARM_RULE.count(block) - 1)

    return complexity


def estimate_complexity(text: str, function_count: int) -> ComplexityEstimate:
    """Estimate total and maximum cyclomatic complexity of one file.

    The file is cut at each function declaration and every slice (up to the
    next declaration, or end of file) is scored on its own. Never returns
    less than 1 for either figure.

    Args:
        text: File content
        function_count: Number of functions the extractor counted; when
            fewer declarations are located, the missing ones are assumed
            to have the average complexity of those found

    Returns:
        ComplexityEstimate(total, max)
    """
    if function_count <= 0:
        return ComplexityEstimate(total=1, max=1)

    starts = [m.start() for m in FUNCTION_BOUNDARY_RULE.finditer(text)]

    if not starts:
        # No usable boundaries: spread the whole file evenly
        decision_points = count_decision_points(text)
        average = max(1, math.ceil(decision_points / function_count))
        return ComplexityEstimate(
            total=average * function_count,
            max=min(average * 2, decision_points),
        )

    total = 0
    highest = 1
    ends = starts[1:] + [len(text)]
    for start, end in zip(starts, ends):
        function_complexity = max(1, count_decision_points(text[start:end]))
        total += function_complexity
        highest = max(highest, function_complexity)

    if len(starts) < function_count:
        average = math.ceil(total / len(starts))
        total += (function_count - len(starts)) * average

    return ComplexityEstimate(total=total, max=highest)
